"""List command for sessions."""

from rich.markup import escape

from ..core import SessionError, active_locks, latest_session_id, list_sessions, load_session
from ..output import get_output_context
from .common import require_loom_dir


def list_sessions_cmd() -> None:
    """List all sessions."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()

    session_ids = list_sessions(loom_dir)
    if not session_ids:
        ctx.result({"sessions": []}, "No sessions found")
        return

    latest = latest_session_id(loom_dir)
    locks = active_locks(loom_dir)
    rows = []
    for session_id in session_ids:
        try:
            session = load_session(loom_dir, session_id)
        except SessionError as e:
            rows.append({"session_id": session_id, "error": str(e)})
            continue
        rows.append(
            {
                "session_id": session_id,
                "template": session.template,
                "steps": len(session.steps),
                "pending": len(session.pending_steps()),
                "latest": session_id == latest,
                "locked_by": locks[session_id].describe() if session_id in locks else None,
            }
        )

    if ctx.json_mode:
        ctx.print_json({"sessions": rows})
        return

    ctx.console.print("[bold]Sessions:[/bold]")
    for row in rows:
        if "error" in row:
            ctx.console.print(f"  {row['session_id']} [red]({escape(row['error'])})[/red]")
            continue
        marker = " [cyan]*[/cyan]" if row["latest"] else ""
        busy = ""
        if row["locked_by"]:
            busy = f" [yellow](locked: {escape(row['locked_by'])})[/yellow]"
        ctx.console.print(
            f"  {row['session_id']}{marker}  "
            f"{row['template'] or '-'}, {row['steps']} steps, {row['pending']} pending{busy}"
        )
