"""Parse command: show the steps found in model output."""

import sys
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from ..core import parse_steps_with_warnings
from ..models import Step
from ..output import get_output_context


def steps_table(steps: list[Step], title: str | None = None) -> Table:
    """Render steps as a rich table."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Batch", justify="right")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Target")
    table.add_column("Status")

    styles = {"completed": "green", "in-progress": "cyan", "pending": "yellow"}
    for step in steps:
        table.add_row(
            str(step.id),
            str(step.batch),
            step.type.value,
            escape(step.title),
            escape(step.path or step.description),
            f"[{styles[step.status.value]}]{step.status.value}[/]",
        )
    return table


def parse(
    file: Path = typer.Argument(
        ...,
        help="File containing raw model output ('-' reads stdin)",
        allow_dash=True,
    ),
) -> None:
    """Parse model output and list the build steps it contains."""
    ctx = get_output_context()

    if str(file) == "-":
        raw_text = sys.stdin.read()
    else:
        if not file.is_file():
            ctx.error(f"File not found: {file}")
            raise typer.Exit(1)
        raw_text = file.read_text()

    steps, warnings = parse_steps_with_warnings(raw_text)

    if ctx.json_mode:
        ctx.print_json(
            {
                "steps": [step.model_dump(mode="json") for step in steps],
                "warnings": warnings,
            }
        )
        return

    for warning in warnings:
        ctx.warning(warning)
    if steps:
        ctx.console.print(steps_table(steps, title=f"{len(steps)} step(s)"))
