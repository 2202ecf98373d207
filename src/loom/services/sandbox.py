"""Local execution sandbox for loom.

Mounts a mount description into a working directory, installs dependencies
and starts the dev server. Failing commands are reported as display strings
on SandboxResult; they never touch the session's tree or step log.
"""

import logging
import re
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..constants import DEV_SERVER_TIMEOUT, INSTALL_TIMEOUT
from .provider_cli import ReadTimeout, timed_lines

logger = logging.getLogger(__name__)

SERVER_URL_RE = re.compile(r"https?://(?:localhost|127\.0\.0\.1|0\.0\.0\.0|\[::1?\])(?::\d+)?\S*")


class SandboxError(Exception):
    """Sandbox could not mount or run a command."""


@dataclass
class SandboxResult:
    """Outcome of a sandbox command sequence."""

    written: list[Path] = field(default_factory=list)
    install_output: str = ""
    url: str | None = None
    error: str | None = None
    process: subprocess.Popen[str] | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _safe_child(root: Path, name: str) -> Path:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise SandboxError(f"Refusing to mount entry with unsafe name: {name!r}")
    return root / name


def write_mount_description(
    description: dict[str, Any], root: Path, clean: bool = False
) -> list[Path]:
    """Materialize a mount description under ``root``.

    Args:
        description: Nested ``{"directory": ...}`` / ``{"file": ...}`` entries
        root: Directory to mount into (created if missing)
        clean: Remove ``root`` first so deleted files do not linger

    Returns:
        Paths of the files written, in description order

    Raises:
        SandboxError: If an entry name would escape ``root`` or is malformed
    """
    if clean and root.exists():
        shutil.rmtree(root)
    root.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name, entry in description.items():
        target = _safe_child(root, name)
        if "directory" in entry:
            written.extend(write_mount_description(entry["directory"], target))
        elif "file" in entry:
            target.write_text(entry["file"].get("contents") or "")
            written.append(target)
        else:
            raise SandboxError(f"Mount entry {name!r} is neither a file nor a directory")
    return written


def run_sandbox_command(
    command: str, cwd: Path, timeout: int = INSTALL_TIMEOUT
) -> subprocess.CompletedProcess[str]:
    """Run a command to completion inside the sandbox directory.

    Raises:
        SandboxError: If the executable is missing or the command times out
    """
    argv = shlex.split(command)
    if not argv:
        raise SandboxError("Empty sandbox command")
    try:
        return subprocess.run(argv, cwd=cwd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        raise SandboxError(f"Executable not found: {argv[0]}") from None
    except subprocess.TimeoutExpired as e:
        raise SandboxError(f"'{command}' timed out after {timeout} seconds") from e


def start_dev_server(
    command: str, cwd: Path, timeout: int = DEV_SERVER_TIMEOUT
) -> tuple[subprocess.Popen[str], str | None]:
    """Start the dev server and wait for it to print its URL.

    Returns:
        The running process and the first local URL it printed, or None if
        the process exited or the timeout passed first

    Raises:
        SandboxError: If the executable is missing
    """
    argv = shlex.split(command)
    if not argv:
        raise SandboxError("Empty sandbox command")
    try:
        process = subprocess.Popen(
            argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
    except FileNotFoundError:
        raise SandboxError(f"Executable not found: {argv[0]}") from None

    assert process.stdout is not None
    deadline = time.monotonic() + timeout
    try:
        for line in timed_lines(process.stdout, deadline):
            logger.debug("dev: %s", line.rstrip())
            match = SERVER_URL_RE.search(line)
            if match:
                return process, match.group(0).rstrip("/.,")
    except ReadTimeout:
        return process, None

    # Output closed; give the exit status a moment to land
    try:
        process.wait(timeout=max(min(deadline - time.monotonic(), 1.0), 0.1))
    except subprocess.TimeoutExpired:
        pass
    return process, None


def mount_and_run(
    description: dict[str, Any],
    root: Path,
    install_cmd: str | None = "npm install",
    dev_cmd: str | None = "npm run dev",
    install_timeout: int = INSTALL_TIMEOUT,
    dev_timeout: int = DEV_SERVER_TIMEOUT,
) -> SandboxResult:
    """Mount the project, install dependencies and start the dev server.

    Non-zero exits and a server that never reports a URL are returned as
    ``SandboxResult.error``. Unsafe mount names and missing executables are
    reported the same way, as are timeouts.

    Args:
        description: Mount description from the mount adapter
        root: Sandbox directory
        install_cmd: Install command, or None to skip
        dev_cmd: Dev server command, or None to skip
        install_timeout: Seconds allowed for install
        dev_timeout: Seconds to wait for the server URL

    Returns:
        SandboxResult; ``process`` holds the running server on success
    """
    result = SandboxResult()
    try:
        result.written = write_mount_description(description, root, clean=True)
        logger.info("Mounted %d file(s) into %s", len(result.written), root)

        if install_cmd:
            completed = run_sandbox_command(install_cmd, root, timeout=install_timeout)
            result.install_output = completed.stdout + completed.stderr
            if completed.returncode != 0:
                result.error = (
                    f"'{install_cmd}' exited with code {completed.returncode}: "
                    f"{completed.stderr.strip()[:500]}"
                )
                return result

        if dev_cmd:
            process, url = start_dev_server(dev_cmd, root, timeout=dev_timeout)
            result.process = process
            result.url = url
            if url is None:
                code = process.poll()
                if code is not None:
                    result.error = f"'{dev_cmd}' exited with code {code}"
                else:
                    result.error = f"'{dev_cmd}' did not report a URL within {dev_timeout} seconds"
    except SandboxError as e:
        result.error = str(e)

    return result
