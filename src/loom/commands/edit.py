"""Edit command: replace the content of one project file."""

from pathlib import Path

import typer

from ..builder import BuilderSession
from ..config import load_config
from ..core import LockError, save_session, session_lock
from ..output import get_output_context
from .common import require_loom_dir, resolve_session, session_option


def edit(
    path: str = typer.Argument(..., help="Project file path, e.g. /src/App.tsx"),
    source: Path = typer.Option(
        ...,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Local file holding the new content",
    ),
    session_id: str | None = session_option(),
) -> None:
    """Replace a file's content in the project tree."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()
    session = resolve_session(loom_dir, session_id)
    content = source.read_text()

    if ctx.dry_run:
        ctx.dry_run_notice(f"replace {path} in {session.session_id}", {"source": source})
        return

    try:
        with session_lock(loom_dir, session.session_id, f"edit {path}"):
            builder = BuilderSession(session, load_config(loom_dir))
            if not builder.edit_file(path, content):
                ctx.error(f"No file at {path} in session {session.session_id}")
                raise typer.Exit(1)
            save_session(loom_dir, session)
    except LockError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    ctx.success(f"Updated {path}", {"path": path, "chars": len(content)})
