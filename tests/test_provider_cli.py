"""Tests for the subprocess plumbing shared by provider CLIs."""

import contextlib
import os
import subprocess
import sys
import time
from unittest.mock import MagicMock, patch

import pytest

from loom.services.provider_cli import (
    ProviderCommand,
    ProviderError,
    ReadTimeout,
    decode_event,
    run_captured,
    run_streamed,
    timed_lines,
)

SILENT_CHILD = [sys.executable, "-c", "import time; time.sleep(5)"]


class FakeError(ProviderError):
    pass


def command(**kwargs) -> ProviderCommand:
    return ProviderCommand(name="Fake", argv=["fake", "-p", "hi"], error=FakeError, **kwargs)


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


def finished_process(returncode: int = 0, stderr: str = "") -> MagicMock:
    process = MagicMock()
    process.returncode = returncode
    process.poll.return_value = returncode
    process.stderr.read.return_value = stderr
    return process


def lines_from(lines: list[str]):
    return patch("loom.services.provider_cli.timed_lines", return_value=iter(lines))


class TestDecodeEvent:
    """Tests for decode_event function."""

    def test_object(self) -> None:
        assert decode_event('{"type": "message"}') == {"type": "message"}

    @pytest.mark.parametrize("line", ["not json", "[1, 2]", '"text"', ""])
    def test_non_objects(self, line: str) -> None:
        assert decode_event(line) is None


class TestRunCaptured:
    """Tests for run_captured function."""

    def test_returns_stdout(self) -> None:
        with patch(
            "loom.services.provider_cli.subprocess.run",
            return_value=completed(stdout="<boltArtifact/>"),
        ) as mock_run:
            assert run_captured(command(timeout=30)) == "<boltArtifact/>"

        assert mock_run.call_args[0][0] == ["fake", "-p", "hi"]
        assert mock_run.call_args[1]["timeout"] == 30
        assert mock_run.call_args[1]["capture_output"] is True

    def test_timeout(self) -> None:
        with (
            patch(
                "loom.services.provider_cli.subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="fake", timeout=30),
            ),
            pytest.raises(FakeError, match="Fake timed out after 30 seconds"),
        ):
            run_captured(command(timeout=30))

    def test_missing_executable(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.run", side_effect=FileNotFoundError()),
            pytest.raises(FakeError, match="Fake executable not found: fake"),
        ):
            run_captured(command())

    def test_non_zero_exit(self) -> None:
        with (
            patch(
                "loom.services.provider_cli.subprocess.run",
                return_value=completed(returncode=1, stderr="quota exceeded\n"),
            ),
            pytest.raises(FakeError, match="Fake failed: quota exceeded$"),
        ):
            run_captured(command())


@pytest.fixture
def pipe():
    """Text reader and raw write fd of a fresh OS pipe."""
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "r")
    try:
        yield reader, write_fd
    finally:
        reader.close()
        with contextlib.suppress(OSError):
            os.close(write_fd)


class TestTimedLines:
    """Tests for timed_lines function."""

    def test_splits_lines_until_eof(self, pipe) -> None:
        reader, write_fd = pipe
        os.write(write_fd, b'{"a": 1}\n{"b": 2}\npartial')
        os.close(write_fd)

        lines = list(timed_lines(reader, time.monotonic() + 5))

        assert lines == ['{"a": 1}', '{"b": 2}', "partial"]

    def test_multibyte_split_across_reads(self, pipe) -> None:
        reader, write_fd = pipe
        encoded = "naïve\n".encode()
        os.write(write_fd, encoded[:3])
        os.write(write_fd, encoded[3:])
        os.close(write_fd)

        assert list(timed_lines(reader, time.monotonic() + 5)) == ["naïve"]

    def test_silent_pipe_times_out(self, pipe) -> None:
        reader, _ = pipe
        start = time.monotonic()

        with pytest.raises(ReadTimeout):
            list(timed_lines(reader, start + 0.3))

        assert time.monotonic() - start < 2

    def test_lines_before_deadline_still_yielded(self, pipe) -> None:
        reader, write_fd = pipe
        os.write(write_fd, b"first\n")
        seen: list[str] = []

        with pytest.raises(ReadTimeout):
            for line in timed_lines(reader, time.monotonic() + 0.3):
                seen.append(line)

        assert seen == ["first"]


class TestRunStreamed:
    """Tests for run_streamed function."""

    def test_pieces_joined_without_separators(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=finished_process()),
            lines_from(["Hel", "lo ", "world"]),
        ):
            assert run_streamed(command(), lambda line: line, echo=None) == "Helloworld"

    def test_skips_blank_and_ignored_lines(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=finished_process()),
            lines_from(["skip", "   ", "keep", "skip"]),
        ):
            result = run_streamed(
                command(), lambda line: line if line == "keep" else None, echo=None
            )
        assert result == "keep"

    def test_echo_receives_pieces(self) -> None:
        echoed: list[str] = []
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=finished_process()),
            lines_from(["a", "b"]),
        ):
            run_streamed(command(), str.upper, echo=echoed.append)
        assert echoed == ["A", "B"]

    def test_default_echo_writes_stdout(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=finished_process()),
            lines_from(["data"]),
            patch("loom.services.provider_cli.sys.stdout.write") as mock_write,
            patch("loom.services.provider_cli.sys.stdout.flush"),
        ):
            run_streamed(command(), lambda line: line)
        mock_write.assert_called_once_with("data")

    def test_non_zero_exit(self) -> None:
        process = finished_process(returncode=1, stderr="error output")
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=process),
            lines_from([]),
            pytest.raises(FakeError, match="Fake failed: error output"),
        ):
            run_streamed(command(), lambda line: None)

    def test_missing_executable(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.Popen", side_effect=FileNotFoundError()),
            pytest.raises(FakeError, match="executable not found: fake"),
        ):
            run_streamed(command(), lambda line: None)

    def test_read_timeout_terminates(self) -> None:
        process = MagicMock()
        process.poll.return_value = None
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=process),
            patch("loom.services.provider_cli.timed_lines", side_effect=ReadTimeout),
            pytest.raises(FakeError, match="timed out after 1 seconds"),
        ):
            run_streamed(command(timeout=1), lambda line: None)

        process.terminate.assert_called_once()

    def test_silent_child_times_out(self) -> None:
        silent = ProviderCommand(name="Fake", argv=SILENT_CHILD, error=FakeError, timeout=1)
        start = time.monotonic()

        with pytest.raises(FakeError, match="Fake timed out after 1 seconds"):
            run_streamed(silent, lambda line: line, echo=None)

        assert time.monotonic() - start < 4

    def test_child_that_closes_stdout_but_lingers_times_out(self) -> None:
        lingering = ProviderCommand(
            name="Fake",
            argv=[sys.executable, "-c", "import os, time; os.close(1); time.sleep(5)"],
            error=FakeError,
            timeout=1,
        )
        start = time.monotonic()

        with pytest.raises(FakeError, match="timed out"):
            run_streamed(lingering, lambda line: line, echo=None)

        assert time.monotonic() - start < 4

    def test_process_stopped_on_unexpected_error(self) -> None:
        process = MagicMock()
        process.poll.return_value = None
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=process),
            patch(
                "loom.services.provider_cli.timed_lines", side_effect=RuntimeError("Unexpected")
            ),
            pytest.raises(RuntimeError, match="Unexpected"),
        ):
            run_streamed(command(), lambda line: None)

        process.terminate.assert_called_once()

    def test_killed_when_terminate_ignored(self) -> None:
        process = MagicMock()
        process.poll.return_value = None
        process.wait.side_effect = [subprocess.TimeoutExpired(cmd="fake", timeout=5), 0]
        with (
            patch("loom.services.provider_cli.subprocess.Popen", return_value=process),
            patch(
                "loom.services.provider_cli.timed_lines", side_effect=RuntimeError("Unexpected")
            ),
            pytest.raises(RuntimeError),
        ):
            run_streamed(command(), lambda line: None)

        process.kill.assert_called_once()
