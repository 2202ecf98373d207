"""Apply command: merge a saved model response into a session."""

from pathlib import Path

import typer

from ..builder import BuilderSession
from ..config import load_config
from ..core import LockError, acquire_lock, parse_steps, release_lock, save_response, save_session
from ..output import get_output_context
from .common import report_round, require_loom_dir, resolve_session, session_option


def apply(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="File containing raw model output",
    ),
    session_id: str | None = session_option(),
) -> None:
    """Parse a model response from a file and merge it into the project."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()
    session = resolve_session(loom_dir, session_id)
    raw_text = file.read_text()

    if ctx.dry_run:
        ctx.dry_run_notice(
            f"apply {file} to {session.session_id}",
            {
                "steps_found": len(parse_steps(raw_text)),
                "pending_steps_to_retry": len(session.pending_steps()),
            },
        )
        return

    try:
        acquire_lock(loom_dir, session.session_id, f"apply {file}", batch=session.last_batch + 1)
    except LockError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    try:
        builder = BuilderSession(session, load_config(loom_dir))
        result = builder.apply_text(raw_text)
        if result.found_steps:
            save_response(loom_dir, session.session_id, result.batch, raw_text)
        save_session(loom_dir, session)
    finally:
        release_lock(loom_dir, session.session_id)

    report_round(session, result)
