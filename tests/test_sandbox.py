"""Tests for the local execution sandbox."""

import shlex
import subprocess
import sys
import time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from loom.services.provider_cli import ReadTimeout
from loom.services.sandbox import (
    SandboxError,
    mount_and_run,
    run_sandbox_command,
    start_dev_server,
    write_mount_description,
)

DESCRIPTION = {
    "src": {"directory": {"main.ts": {"file": {"contents": "console.log(1);"}}}},
    "package.json": {"file": {"contents": "{}"}},
}


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


def dev_process(exit_code: int | None = None) -> MagicMock:
    process = MagicMock()
    process.poll.return_value = exit_code
    return process


def dev_output(lines: list[str]):
    return patch("loom.services.sandbox.timed_lines", return_value=iter(lines))


class TestWriteMountDescription:
    """Tests for write_mount_description function."""

    def test_writes_nested_files(self, tmp_path: Path) -> None:
        written = write_mount_description(DESCRIPTION, tmp_path / "box")

        assert (tmp_path / "box" / "src" / "main.ts").read_text() == "console.log(1);"
        assert (tmp_path / "box" / "package.json").read_text() == "{}"
        assert [p.name for p in written] == ["main.ts", "package.json"]

    def test_empty_directory_created(self, tmp_path: Path) -> None:
        write_mount_description({"public": {"directory": {}}}, tmp_path)
        assert (tmp_path / "public").is_dir()

    def test_clean_removes_stale_files(self, tmp_path: Path) -> None:
        root = tmp_path / "box"
        root.mkdir()
        (root / "old.txt").write_text("stale")

        write_mount_description(DESCRIPTION, root, clean=True)

        assert not (root / "old.txt").exists()
        assert (root / "package.json").exists()

    @pytest.mark.parametrize("name", ["..", ".", "a/b", ""])
    def test_unsafe_names_rejected(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(SandboxError, match="unsafe name"):
            write_mount_description({name: {"file": {"contents": "x"}}}, tmp_path)

    def test_malformed_entry_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(SandboxError, match="neither a file nor a directory"):
            write_mount_description({"x": {"link": "/etc"}}, tmp_path)


class TestRunSandboxCommand:
    """Tests for run_sandbox_command function."""

    def test_splits_command(self, tmp_path: Path) -> None:
        with patch(
            "loom.services.sandbox.subprocess.run", return_value=completed()
        ) as mock_run:
            run_sandbox_command("npm install --silent", tmp_path, timeout=5)

        assert mock_run.call_args[0][0] == ["npm", "install", "--silent"]
        assert mock_run.call_args[1]["cwd"] == tmp_path
        assert mock_run.call_args[1]["timeout"] == 5

    def test_missing_executable(self, tmp_path: Path) -> None:
        with (
            patch("loom.services.sandbox.subprocess.run", side_effect=FileNotFoundError()),
            pytest.raises(SandboxError, match="Executable not found: npm"),
        ):
            run_sandbox_command("npm install", tmp_path)

    def test_timeout(self, tmp_path: Path) -> None:
        with (
            patch(
                "loom.services.sandbox.subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="npm", timeout=3),
            ),
            pytest.raises(SandboxError, match="timed out after 3 seconds"),
        ):
            run_sandbox_command("npm install", tmp_path, timeout=3)

    def test_empty_command(self, tmp_path: Path) -> None:
        with pytest.raises(SandboxError, match="Empty sandbox command"):
            run_sandbox_command("   ", tmp_path)


class TestStartDevServer:
    """Tests for start_dev_server function."""

    def test_returns_first_url(self, tmp_path: Path) -> None:
        with (
            patch("loom.services.sandbox.subprocess.Popen", return_value=dev_process()),
            dev_output(["> vite", "  Local:   http://localhost:5173/"]),
        ):
            _, url = start_dev_server("npm run dev", tmp_path)
        assert url == "http://localhost:5173"

    def test_no_url_when_process_exits(self, tmp_path: Path) -> None:
        process = dev_process(exit_code=1)
        with (
            patch("loom.services.sandbox.subprocess.Popen", return_value=process),
            dev_output(["error: missing script dev"]),
        ):
            returned, url = start_dev_server("npm run dev", tmp_path)
        assert returned is process
        assert url is None

    def test_silent_server_times_out(self, tmp_path: Path) -> None:
        start = time.monotonic()
        process, url = start_dev_server(
            f"{shlex.quote(sys.executable)} -c 'import time; time.sleep(5)'", tmp_path, timeout=1
        )
        try:
            assert url is None
            assert process.poll() is None
            assert time.monotonic() - start < 4
        finally:
            process.kill()
            process.wait()

    def test_real_server_url(self, tmp_path: Path) -> None:
        script = "print('ready on http://localhost:4321/', flush=True); import time; time.sleep(5)"
        command = f'{shlex.quote(sys.executable)} -c "{script}"'
        process, url = start_dev_server(command, tmp_path, timeout=5)
        try:
            assert url == "http://localhost:4321"
        finally:
            process.kill()
            process.wait()


class TestMountAndRun:
    """Tests for mount_and_run function."""

    def test_success(self, tmp_path: Path) -> None:
        process = dev_process()
        with (
            patch("loom.services.sandbox.subprocess.run", return_value=completed(stdout="ok")),
            patch("loom.services.sandbox.subprocess.Popen", return_value=process),
            dev_output(["ready at http://127.0.0.1:3000"]),
        ):
            result = mount_and_run(DESCRIPTION, tmp_path / "box")

        assert result.ok
        assert result.url == "http://127.0.0.1:3000"
        assert result.process is process
        assert result.install_output == "ok"
        assert len(result.written) == 2

    def test_install_failure_is_error_string(self, tmp_path: Path) -> None:
        with (
            patch(
                "loom.services.sandbox.subprocess.run",
                return_value=completed(returncode=1, stderr="ERESOLVE unable to resolve"),
            ),
            patch("loom.services.sandbox.subprocess.Popen") as mock_popen,
        ):
            result = mount_and_run(DESCRIPTION, tmp_path / "box")

        assert not result.ok
        assert result.error == "'npm install' exited with code 1: ERESOLVE unable to resolve"
        mock_popen.assert_not_called()
        assert (tmp_path / "box" / "package.json").exists()

    def test_dev_server_exit_is_error_string(self, tmp_path: Path) -> None:
        with (
            patch("loom.services.sandbox.subprocess.run", return_value=completed()),
            patch("loom.services.sandbox.subprocess.Popen", return_value=dev_process(exit_code=2)),
            dev_output(["crash"]),
        ):
            result = mount_and_run(DESCRIPTION, tmp_path / "box")

        assert result.error == "'npm run dev' exited with code 2"

    def test_silent_dev_server_is_error_string(self, tmp_path: Path) -> None:
        with (
            patch("loom.services.sandbox.subprocess.run", return_value=completed()),
            patch("loom.services.sandbox.subprocess.Popen", return_value=dev_process()),
            patch("loom.services.sandbox.timed_lines", side_effect=ReadTimeout),
        ):
            result = mount_and_run(DESCRIPTION, tmp_path / "box", dev_timeout=7)

        assert result.error == "'npm run dev' did not report a URL within 7 seconds"

    def test_missing_executable_is_error_string(self, tmp_path: Path) -> None:
        with patch("loom.services.sandbox.subprocess.run", side_effect=FileNotFoundError()):
            result = mount_and_run(DESCRIPTION, tmp_path / "box")

        assert result.error == "Executable not found: npm"

    def test_unsafe_mount_name_is_error_string(self, tmp_path: Path) -> None:
        description = {"..": {"directory": {"evil.txt": {"file": {"contents": "x"}}}}}
        with (
            patch("loom.services.sandbox.subprocess.run") as mock_run,
            patch("loom.services.sandbox.subprocess.Popen") as mock_popen,
        ):
            result = mount_and_run(description, tmp_path / "box")

        assert not result.ok
        assert result.error is not None and "unsafe name" in result.error
        assert result.written == []
        assert not (tmp_path / "evil.txt").exists()
        mock_run.assert_not_called()
        mock_popen.assert_not_called()

    def test_skipped_commands(self, tmp_path: Path) -> None:
        with (
            patch("loom.services.sandbox.subprocess.run") as mock_run,
            patch("loom.services.sandbox.subprocess.Popen") as mock_popen,
        ):
            result = mount_and_run(DESCRIPTION, tmp_path / "box", install_cmd=None, dev_cmd=None)

        assert result.ok
        assert result.process is None
        mock_run.assert_not_called()
        mock_popen.assert_not_called()
