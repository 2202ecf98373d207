"""Init command implementation."""

import subprocess
from pathlib import Path

import typer

from ..config import write_config_template
from ..constants import INIT_TOOL_CHECK_TIMEOUT
from ..core import get_loom_dir
from ..core.session_manager import SESSIONS_DIR
from ..output import get_output_context


def init() -> None:
    """Initialize loom in the current directory."""
    ctx = get_output_context()

    loom_dir = get_loom_dir()
    config_path = loom_dir / "config.toml"

    if ctx.dry_run:
        ctx.dry_run_notice(
            "initialize loom in this directory",
            {
                "create_directory": loom_dir / SESSIONS_DIR,
                "config": f"{config_path} (exists)" if config_path.exists() else config_path,
                "check_toolchain": "gemini, claude, npm",
            },
        )
        return

    (loom_dir / SESSIONS_DIR).mkdir(parents=True, exist_ok=True)

    if not config_path.exists():
        write_config_template(loom_dir, project_name=Path.cwd().name)
        ctx.console.print(f"[green]Created config template:[/green] {config_path}")
    else:
        ctx.console.print(f"[yellow]Config already exists:[/yellow] {config_path}")

    # One generation provider is enough; npm is needed for the sandbox
    tools = {
        "gemini": ["gemini", "--version"],
        "claude": ["claude", "--version"],
        "npm": ["npm", "--version"],
    }

    available: dict[str, bool] = {}
    for name, cmd in tools.items():
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=INIT_TOOL_CHECK_TIMEOUT
            )
            available[name] = result.returncode == 0
            if available[name]:
                ctx.console.print(f"[green]✓[/green] {name}")
            else:
                ctx.console.print(f"[red]✗[/red] {name}: {result.stderr.strip()[:50]}")
        except FileNotFoundError:
            available[name] = False
            ctx.console.print(f"[red]✗[/red] {name}: not found in PATH")
        except subprocess.TimeoutExpired:
            available[name] = False
            ctx.console.print(f"[yellow]?[/yellow] {name}: timed out")

    if not (available["gemini"] or available["claude"]):
        ctx.console.print("\n[yellow]Warning: No generation provider is available[/yellow]")
        raise typer.Exit(2)
    if not available["npm"]:
        ctx.console.print("\n[yellow]Warning: npm is missing; loom sandbox will not run[/yellow]")

    ctx.console.print("\n[bold green]Loom initialized successfully![/bold green]")
