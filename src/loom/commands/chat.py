"""Chat command: send a follow-up message and merge the reply."""

import logging

import typer

from ..builder import BuilderSession
from ..config import load_config
from ..core import (
    LockError,
    acquire_lock,
    release_lock,
    save_response,
    save_session,
    to_mount_description,
    update_heartbeat,
)
from ..models import FileTreeNode
from ..output import get_output_context
from ..services import GenerationError, SandboxError, write_mount_description
from .common import report_round, require_loom_dir, resolve_session, sandbox_dir, session_option

logger = logging.getLogger(__name__)


def chat(
    message: str = typer.Argument(..., help="Message to send to the model"),
    session_id: str | None = session_option(),
    sync: bool = typer.Option(
        False,
        "--sync",
        help="Rewrite the sandbox directory whenever the tree changes",
    ),
) -> None:
    """Send a message to the model and apply the files it returns."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()
    session = resolve_session(loom_dir, session_id)
    config = load_config(loom_dir)

    if ctx.dry_run:
        ctx.dry_run_notice(
            f"send message to session {session.session_id}",
            {
                "message": message,
                "conversation_length": len(session.messages),
                "pending_steps_to_retry": len(session.pending_steps()),
                "sync": sandbox_dir(loom_dir, config) if sync else "off",
            },
        )
        return

    target = sandbox_dir(loom_dir, config) if sync else None

    def on_tree_change(tree: list[FileTreeNode]) -> None:
        update_heartbeat(loom_dir, session.session_id)
        if target is None:
            return
        try:
            write_mount_description(to_mount_description(tree), target, clean=True)
        except SandboxError as e:
            logger.warning("Sandbox sync failed: %s", e)

    try:
        acquire_lock(loom_dir, session.session_id, "chat", batch=session.last_batch + 1)
    except LockError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    builder = BuilderSession(session, config, on_tree_change=on_tree_change)
    try:
        result = builder.send_message(message)
        if result.found_steps:
            save_response(loom_dir, session.session_id, result.batch, result.response)
    except GenerationError as e:
        ctx.error(str(e))
        raise typer.Exit(2) from None
    finally:
        save_session(loom_dir, session)
        release_lock(loom_dir, session.session_id)

    report_round(session, result)
