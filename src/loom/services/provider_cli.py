"""Subprocess plumbing shared by the provider CLIs.

Each provider module builds a ProviderCommand and hands it to
``run_captured`` (one blocking call, stdout returned whole) or
``run_streamed`` (JSONL events decoded as they arrive).
"""

import codecs
import json
import os
import select
import subprocess
import sys
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

TextExtractor = Callable[[str], str | None]

TERMINATE_GRACE_SECONDS = 5
POLL_INTERVAL_SECONDS = 1.0
READ_CHUNK_BYTES = 4096


class ProviderError(Exception):
    """A provider CLI could not produce a response."""


class ReadTimeout(Exception):
    """A child process pipe stayed open past its deadline."""


@dataclass(frozen=True)
class ProviderCommand:
    """One invocation of a provider executable."""

    name: str
    argv: list[str]
    error: type[ProviderError] = ProviderError
    cwd: Path | None = None
    timeout: int = 600

    def fail(self, reason: str) -> ProviderError:
        return self.error(f"{self.name} {reason}")


def decode_event(line: str) -> dict[str, Any] | None:
    """Parse one stream-json line, returning None for anything but an object."""
    try:
        event = json.loads(line)
    except json.JSONDecodeError:
        return None
    return event if isinstance(event, dict) else None


def timed_lines(stream: IO[str], deadline: float) -> Iterator[str]:
    """Yield lines from a child process pipe until EOF.

    Waits on the pipe with select() in slices of at most one second, so a
    child that prints nothing cannot hold the reader past ``deadline``
    (a time.monotonic() value).

    Raises:
        ReadTimeout: If the deadline passes before EOF
    """
    fd = stream.fileno()
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ReadTimeout
        try:
            readable, _, _ = select.select([fd], [], [], min(remaining, POLL_INTERVAL_SECONDS))
        except (ValueError, OSError):
            break  # Pipe closed under us
        if not readable:
            continue
        chunk = os.read(fd, READ_CHUNK_BYTES)
        if not chunk:
            break
        buffer += decoder.decode(chunk)
        while "\n" in buffer:
            line, buffer = buffer.split("\n", 1)
            yield line
    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer


def write_stdout(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def run_captured(command: ProviderCommand) -> str:
    """Run the command to completion and return its stdout.

    Raises:
        ProviderError: The command's error type, on a missing executable,
            a timeout or a non-zero exit
    """
    try:
        result = subprocess.run(
            command.argv,
            cwd=command.cwd,
            capture_output=True,
            text=True,
            timeout=command.timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise command.fail(f"timed out after {command.timeout} seconds") from e
    except FileNotFoundError:
        raise command.fail(f"executable not found: {command.argv[0]}") from None

    if result.returncode != 0:
        raise command.fail(f"failed: {result.stderr.strip()}")
    return result.stdout


def _stop(process: subprocess.Popen) -> None:
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


def run_streamed(
    command: ProviderCommand,
    extract: TextExtractor,
    echo: Callable[[str], None] | None = write_stdout,
) -> str:
    """Run the command, collecting the text carried by its JSONL events.

    Args:
        command: Invocation to run; its argv must request stream-json output
        extract: Returns the text of one event line, or None to skip it
        echo: Receives each text piece as it arrives; None to stay silent

    Returns:
        All pieces joined without separators (they are model tokens)
    """
    try:
        process = subprocess.Popen(
            command.argv,
            cwd=command.cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError:
        raise command.fail(f"executable not found: {command.argv[0]}") from None

    assert process.stdout is not None
    deadline = time.monotonic() + command.timeout
    pieces: list[str] = []
    try:
        for raw in timed_lines(process.stdout, deadline):
            line = raw.strip()
            piece = extract(line) if line else None
            if not piece:
                continue
            pieces.append(piece)
            if echo is not None:
                echo(piece)

        process.wait(timeout=max(deadline - time.monotonic(), 0.1))
        if process.returncode != 0:
            stderr = process.stderr.read() if process.stderr else ""
            raise command.fail(f"failed: {stderr.strip()}")
    except (ReadTimeout, subprocess.TimeoutExpired):
        raise command.fail(f"timed out after {command.timeout} seconds") from None
    finally:
        _stop(process)

    return "".join(pieces)
