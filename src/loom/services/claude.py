"""Claude CLI provider, second in the default chain."""

from pathlib import Path

from ..constants import CLAUDE_TIMEOUT
from .provider_cli import ProviderCommand, ProviderError, decode_event, run_captured, run_streamed


class ClaudeError(ProviderError):
    """Claude invocation failed."""


def claude_text(line: str) -> str | None:
    """Return the text parts of one assistant event, if any.

    {"type": "assistant", "message": {"content": [{"type": "text", "text": "..."}]}}
    """
    event = decode_event(line)
    if event is None or event.get("type") != "assistant":
        return None
    parts = event.get("message", {}).get("content", [])
    text = "".join(
        part.get("text", "")
        for part in parts
        if isinstance(part, dict) and part.get("type") == "text"
    )
    return text or None


def build_claude_command(
    prompt: str,
    exec_path: str = "claude",
    model: str | None = None,
    system_prompt: str | None = None,
    stream: bool = False,
) -> list[str]:
    argv = [exec_path, "-p", prompt]
    if stream:
        argv += ["--verbose", "--output-format", "stream-json"]
    else:
        argv += ["--output-format", "text"]
    if model:
        argv += ["--model", model]
    if system_prompt:
        argv += ["--append-system-prompt", system_prompt]
    return argv


def run_claude(
    prompt: str,
    exec_path: str = "claude",
    model: str | None = None,
    system_prompt: str | None = None,
    cwd: Path | None = None,
    timeout: int | None = None,
    stream: bool = False,
) -> str:
    """Ask Claude for a response to ``prompt``.

    The system prompt is appended to Claude's own via ``--append-system-prompt``.

    Raises:
        ClaudeError: If claude is missing, times out or exits non-zero
    """
    command = ProviderCommand(
        name="Claude",
        argv=build_claude_command(prompt, exec_path, model, system_prompt, stream),
        error=ClaudeError,
        cwd=cwd,
        timeout=timeout or CLAUDE_TIMEOUT,
    )
    if stream:
        return run_streamed(command, claude_text)
    return run_captured(command)
