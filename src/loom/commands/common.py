"""Helpers shared by commands that operate on an existing session."""

from pathlib import Path

import typer
from rich.markup import escape

from ..builder import RoundResult
from ..completions import complete_session_id
from ..config import LoomConfig
from ..core import SessionError, count_files, get_loom_dir, latest_session_id, load_session
from ..models import Session
from ..output import get_output_context


def require_loom_dir() -> Path:
    """Return the .loom directory, exiting with code 3 if it is missing."""
    loom_dir = get_loom_dir()
    if not loom_dir.is_dir():
        get_output_context().error("Not initialized. Run: loom init")
        raise typer.Exit(3)
    return loom_dir


def resolve_session(loom_dir: Path, session_id: str | None) -> Session:
    """Load the requested session, or the most recently modified one."""
    ctx = get_output_context()

    if session_id is None:
        session_id = latest_session_id(loom_dir)
        if session_id is None:
            ctx.error("No sessions found. Start with: loom new <task>")
            raise typer.Exit(1)

    try:
        return load_session(loom_dir, session_id)
    except SessionError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None


def session_option() -> typer.models.OptionInfo:
    """Build the shared --session option."""
    return typer.Option(
        None,
        "--session",
        "-s",
        help="Session ID (defaults to most recent)",
        autocompletion=complete_session_id,
    )


def report_round(session: Session, result: RoundResult) -> None:
    """Print what a parse-and-merge round changed."""
    ctx = get_output_context()

    data = {
        "session_id": session.session_id,
        "batch": result.batch,
        "steps": [step.model_dump(mode="json") for step in result.new_steps],
        "completed": result.completed,
        "pending": len(session.pending_steps()),
        "files": count_files(session.tree),
        "warnings": result.warnings,
    }
    if not ctx.json_mode:
        for warning in result.warnings:
            ctx.warning(warning)
    if not result.found_steps:
        ctx.result(data)
        return

    ctx.result(
        data,
        f"[green]Parsed {len(result.new_steps)} step(s) in batch {result.batch}, "
        f"{result.completed} applied[/green]",
    )
    for step in result.new_steps:
        target = step.path or step.description
        ctx.print(f"  [{step.id}] {step.type.value}: {escape(target)}")
    ctx.print(f"  Project now has {data['files']} file(s)")
    if data["pending"]:
        ctx.print(f"  [yellow]{data['pending']} step(s) still pending[/yellow]")


def sandbox_dir(loom_dir: Path, config: LoomConfig) -> Path:
    """Resolve the sandbox mount directory from config."""
    workdir = Path(config.sandbox.workdir)
    return workdir if workdir.is_absolute() else loom_dir / workdir
