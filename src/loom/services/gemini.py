"""Gemini CLI provider, first in the default chain."""

from pathlib import Path

from ..constants import GEMINI_TIMEOUT
from .provider_cli import ProviderCommand, ProviderError, decode_event, run_captured, run_streamed


class GeminiError(ProviderError):
    """Gemini invocation failed."""


def gemini_text(line: str) -> str | None:
    """Return the content of one assistant message event, if any.

    {"type": "message", "role": "assistant", "content": "...", "delta": true}
    """
    event = decode_event(line)
    if event is None:
        return None
    if event.get("type") != "message" or event.get("role") != "assistant":
        return None
    content = event.get("content")
    return content if isinstance(content, str) and content else None


def with_system_prompt(prompt: str, system_prompt: str | None) -> str:
    """Prefix the prompt with the system instruction.

    The Gemini CLI has no system flag, so the instruction rides in the prompt.
    """
    if not system_prompt:
        return prompt
    return f"{system_prompt}\n\n{prompt}"


def build_gemini_command(
    prompt: str,
    exec_path: str = "gemini",
    model: str | None = None,
    system_prompt: str | None = None,
    stream: bool = False,
) -> list[str]:
    argv = [exec_path, "-p", with_system_prompt(prompt, system_prompt)]
    if model:
        argv += ["--model", model]
    if stream:
        argv += ["--output-format", "stream-json"]
    return argv


def run_gemini(
    prompt: str,
    exec_path: str = "gemini",
    model: str | None = None,
    system_prompt: str | None = None,
    cwd: Path | None = None,
    timeout: int | None = None,
    stream: bool = False,
) -> str:
    """Ask Gemini for a response to ``prompt``.

    Raises:
        GeminiError: If gemini is missing, times out or exits non-zero
    """
    command = ProviderCommand(
        name="Gemini",
        argv=build_gemini_command(prompt, exec_path, model, system_prompt, stream),
        error=GeminiError,
        cwd=cwd,
        timeout=timeout or GEMINI_TIMEOUT,
    )
    if stream:
        return run_streamed(command, gemini_text)
    return run_captured(command)
