"""Tests for the Claude provider."""

from unittest.mock import patch

import pytest

from loom.services.claude import ClaudeError, build_claude_command, claude_text, run_claude
from loom.services.provider_cli import ProviderError


class TestBuildClaudeCommand:
    """Tests for build_claude_command function."""

    def test_text_output(self) -> None:
        assert build_claude_command("hi") == ["claude", "-p", "hi", "--output-format", "text"]

    def test_stream_output(self) -> None:
        assert build_claude_command("hi", stream=True) == [
            "claude",
            "-p",
            "hi",
            "--verbose",
            "--output-format",
            "stream-json",
        ]

    def test_model_and_system_prompt(self) -> None:
        cmd = build_claude_command(
            "hi", exec_path="/opt/claude", model="claude-sonnet-4", system_prompt="be terse"
        )
        assert cmd[0] == "/opt/claude"
        assert cmd[cmd.index("--model") + 1] == "claude-sonnet-4"
        assert cmd[cmd.index("--append-system-prompt") + 1] == "be terse"


class TestRunClaude:
    """Tests for run_claude function."""

    def test_captured_by_default(self) -> None:
        with patch("loom.services.claude.run_captured", return_value="reply") as mock_run:
            assert run_claude("prompt", timeout=120) == "reply"

        command = mock_run.call_args[0][0]
        assert command.name == "Claude"
        assert command.error is ClaudeError
        assert command.timeout == 120

    def test_default_timeout(self) -> None:
        with patch("loom.services.claude.run_captured", return_value="") as mock_run:
            run_claude("prompt")
        assert mock_run.call_args[0][0].timeout == 600

    def test_stream(self) -> None:
        with patch("loom.services.claude.run_streamed", return_value="streamed") as mock_stream:
            assert run_claude("prompt", stream=True) == "streamed"

        command, extract = mock_stream.call_args[0]
        assert "stream-json" in command.argv
        assert extract is claude_text

    def test_error_is_provider_error(self) -> None:
        with (
            patch("loom.services.provider_cli.subprocess.run", side_effect=FileNotFoundError()),
            pytest.raises(ProviderError, match="Claude executable not found: claude"),
        ):
            run_claude("prompt")


class TestClaudeText:
    """Tests for claude_text function."""

    def test_assistant_message(self) -> None:
        line = '{"type": "assistant", "message": {"content": [{"type": "text", "text": "Hi"}]}}'
        assert claude_text(line) == "Hi"

    def test_text_parts_joined(self) -> None:
        line = (
            '{"type": "assistant", "message": {"content": '
            '[{"type": "text", "text": "a"}, {"type": "tool_use"}, {"type": "text", "text": "b"}]}}'
        )
        assert claude_text(line) == "ab"

    def test_other_events(self) -> None:
        assert claude_text('{"type": "system", "subtype": "init"}') is None
        assert claude_text('{"type": "assistant", "message": {"content": []}}') is None
        assert claude_text("not json") is None
