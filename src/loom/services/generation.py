"""Text generation with provider fallback.

Tries the primary provider, then the secondary one. Callers see either the
response text or a single GenerationError; provider-specific errors are only
logged.
"""

import logging
from collections.abc import Callable

from ..config import LoomConfig, ProviderConfig, ProviderRole
from ..core.prompts import TEMPLATE_DETECTION_PROMPT, build_conversation_prompt
from ..models import Message
from .claude import run_claude
from .gemini import run_gemini
from .provider_cli import ProviderError

logger = logging.getLogger(__name__)

ProviderRunner = Callable[..., str]

PROVIDERS: dict[str, ProviderRunner] = {
    "gemini": run_gemini,
    "claude": run_claude,
}

UNAVAILABLE_MESSAGE = "Both AI services are unavailable"


class GenerationError(Exception):
    """No provider could produce a response."""


class TemplateError(Exception):
    """The project template could not be determined."""


def _call_provider(
    provider: ProviderConfig, prompt: str, system_prompt: str | None, stream: bool
) -> str:
    runner = PROVIDERS.get(provider.provider)
    if runner is None:
        raise GenerationError(f"Unknown provider: {provider.provider}")
    return runner(
        prompt,
        exec_path=provider.exec or provider.provider,
        model=provider.model,
        system_prompt=system_prompt,
        timeout=provider.timeout,
        stream=stream,
    )


def generate_text(
    prompt: str,
    system_prompt: str | None = None,
    config: LoomConfig | None = None,
    stream: bool | None = None,
) -> str:
    """Run one prompt through the fallback chain.

    Args:
        prompt: Prompt text
        system_prompt: Optional system instruction
        config: Loom configuration (defaults if None)
        stream: Override config.generation.stream

    Returns:
        Response text from the first provider that succeeds

    Raises:
        GenerationError: If both providers fail
    """
    config = config or LoomConfig()
    stream = config.generation.stream if stream is None else stream
    primary = config.get_provider(ProviderRole.PRIMARY)
    secondary = config.get_provider(ProviderRole.SECONDARY)

    try:
        return _call_provider(primary, prompt, system_prompt, stream)
    except (GenerationError, ProviderError) as primary_error:
        logger.warning(
            "%s failed, falling back to %s: %s",
            primary.provider,
            secondary.provider,
            primary_error,
        )

    try:
        return _call_provider(secondary, prompt, system_prompt, stream)
    except (GenerationError, ProviderError) as secondary_error:
        logger.error("Both providers failed: %s", secondary_error)
        raise GenerationError(UNAVAILABLE_MESSAGE) from secondary_error


def generate_response(
    messages: list[Message],
    system_prompt: str | None = None,
    config: LoomConfig | None = None,
    stream: bool | None = None,
) -> str:
    """Generate the assistant reply for a conversation.

    Args:
        messages: Conversation in send order; the last turn is the request
        system_prompt: Optional system instruction
        config: Loom configuration (defaults if None)
        stream: Override config.generation.stream

    Returns:
        Raw response text

    Raises:
        GenerationError: If the conversation is empty or both providers fail
    """
    if not messages:
        raise GenerationError("Cannot generate a response for an empty conversation")
    prompt = build_conversation_prompt(messages)
    return generate_text(prompt, system_prompt=system_prompt, config=config, stream=stream)


def determine_template(task: str, config: LoomConfig | None = None) -> str:
    """Ask the model whether ``task`` is a react or a node project.

    Returns:
        The model's answer, trimmed and lower-cased

    Raises:
        GenerationError: If both providers fail
    """
    answer = generate_text(
        task, system_prompt=TEMPLATE_DETECTION_PROMPT, config=config, stream=False
    )
    return answer.strip().lower()
