"""Configuration management for loom."""

import tomllib
from enum import Enum
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field

from .constants import CLAUDE_TIMEOUT, DEV_SERVER_TIMEOUT, GEMINI_TIMEOUT, INSTALL_TIMEOUT

CONFIG_FILE = "config.toml"


class ProviderRole(str, Enum):
    """Position of a provider in the fallback chain."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class ProviderConfig(BaseModel):
    """Configuration for one text-generation provider slot."""

    provider: str = "gemini"  # gemini or claude
    model: str | None = None  # Specific model name (e.g., gemini-2.0-flash)
    exec: str | None = None  # Override executable path
    timeout: int | None = None  # Seconds; provider default if unset


class GenerationConfig(BaseModel):
    """Provider fallback chain: primary first, secondary on failure."""

    primary: ProviderConfig = Field(default_factory=lambda: ProviderConfig(provider="gemini"))
    secondary: ProviderConfig = Field(default_factory=lambda: ProviderConfig(provider="claude"))
    stream: bool = False

    def get_provider(self, role: ProviderRole) -> ProviderConfig:
        """Get provider config for a slot in the chain."""
        return getattr(self, role.value)


class GeminiConfig(BaseModel):
    """Default settings for the Gemini CLI."""

    exec: str = "gemini"
    model: str | None = "gemini-2.0-flash"
    timeout: int = GEMINI_TIMEOUT


class ClaudeConfig(BaseModel):
    """Default settings for the Claude CLI."""

    exec: str = "claude"
    model: str | None = None
    timeout: int = CLAUDE_TIMEOUT


class SandboxConfig(BaseModel):
    """Configuration for the local execution sandbox."""

    workdir: str = Field(default="sandbox", description="Mount directory, relative to .loom")
    install: str = Field(default="npm install", description="Dependency install command")
    dev: str = Field(default="npm run dev", description="Dev server start command")
    install_timeout: int = INSTALL_TIMEOUT
    dev_timeout: int = DEV_SERVER_TIMEOUT


class ProjectConfig(BaseModel):
    """Project-level configuration."""

    name: str = "unnamed-project"


class LoomConfig(BaseModel):
    """Root configuration for loom."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    claude: ClaudeConfig = Field(default_factory=ClaudeConfig)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)

    def get_provider(self, role: ProviderRole) -> ProviderConfig:
        """Get effective provider config for a slot in the fallback chain.

        Returns the slot's config with executable, model and timeout filled
        in from the matching gemini/claude section when not overridden.
        """
        slot = self.generation.get_provider(role)

        if slot.provider == "gemini":
            defaults: GeminiConfig | ClaudeConfig = self.gemini
        elif slot.provider == "claude":
            defaults = self.claude
        else:
            return slot

        return ProviderConfig(
            provider=slot.provider,
            model=slot.model or defaults.model,
            exec=slot.exec or defaults.exec,
            timeout=slot.timeout or defaults.timeout,
        )


def load_config(loom_dir: Path) -> LoomConfig:
    """Load config from .loom/config.toml.

    Args:
        loom_dir: Path to .loom directory

    Returns:
        Loaded configuration, or defaults if config.toml doesn't exist
    """
    config_path = loom_dir / CONFIG_FILE
    if not config_path.exists():
        return LoomConfig()
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return LoomConfig.model_validate(data)


def write_config_template(loom_dir: Path, project_name: str = "your-project") -> Path:
    """Write default config.toml template.

    Args:
        loom_dir: Path to .loom directory
        project_name: Value for [project].name

    Returns:
        Path to the written config file
    """
    config_path = loom_dir / CONFIG_FILE
    template = {
        "project": {"name": project_name},
        # Fallback chain: primary is tried first, secondary on any failure
        "generation": {
            "stream": False,
            "primary": {"provider": "gemini"},
            "secondary": {"provider": "claude"},
        },
        "gemini": {"exec": "gemini", "model": "gemini-2.0-flash", "timeout": GEMINI_TIMEOUT},
        "claude": {"exec": "claude", "timeout": CLAUDE_TIMEOUT},
        "sandbox": {
            "workdir": "sandbox",
            "install": "npm install",
            "dev": "npm run dev",
            "install_timeout": INSTALL_TIMEOUT,
            "dev_timeout": DEV_SERVER_TIMEOUT,
        },
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
