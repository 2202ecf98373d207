"""External service integrations for loom.

This package provides interfaces to external tools:
- gemini: Gemini CLI integration (primary provider)
- claude: Claude CLI integration (secondary provider)
- generation: Provider fallback for text generation
- provider_cli: Subprocess plumbing shared by the provider CLIs
- sandbox: Local mount, install and dev-server runner
"""

from .claude import ClaudeError, run_claude
from .gemini import GeminiError, run_gemini
from .generation import (
    GenerationError,
    TemplateError,
    determine_template,
    generate_response,
    generate_text,
)
from .provider_cli import ProviderCommand, ProviderError, run_captured, run_streamed
from .sandbox import (
    SandboxError,
    SandboxResult,
    mount_and_run,
    run_sandbox_command,
    start_dev_server,
    write_mount_description,
)

__all__ = [
    "ClaudeError",
    "GeminiError",
    "GenerationError",
    "ProviderCommand",
    "ProviderError",
    "SandboxError",
    "SandboxResult",
    "TemplateError",
    "determine_template",
    "generate_response",
    "generate_text",
    "mount_and_run",
    "run_captured",
    "run_claude",
    "run_gemini",
    "run_sandbox_command",
    "run_streamed",
    "start_dev_server",
    "write_mount_description",
]
