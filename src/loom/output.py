"""Output formatting for loom CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape


@dataclass
class OutputContext:
    """Context for output formatting."""

    console: Console
    json_mode: bool = False
    dry_run: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message unless JSON output was requested."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: Any) -> None:
        """Print JSON data to stdout."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: Any, message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def warning(self, message: str) -> None:
        """Print a soft warning; JSON mode reports it as a field."""
        if self.json_mode:
            self.print_json({"warning": message})
        else:
            self.console.print(f"[yellow]Warning: {message}[/yellow]")

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        else:
            self.console.print(f"[red]Error: {message}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{message}[/green]")

    def dry_run_notice(self, action: str, details: dict[str, Any] | None = None) -> None:
        """Describe what a command would do, without doing it.

        Text mode prints "[DRY RUN] Would <action>" followed by one indented
        line per detail, with snake_case keys shown as words. JSON mode emits
        a single {"dry_run": action, **details} document instead.
        """
        details = details or {}
        if self.json_mode:
            self.print_json({"dry_run": action, **details})
            return
        self.console.print(f"[cyan][DRY RUN][/cyan] Would {escape(action)}")
        for key, value in details.items():
            label = key.replace("_", " ").capitalize()
            self.console.print(f"  {label}: {escape(str(value))}")


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
