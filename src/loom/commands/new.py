"""New command: create a session and generate the first project."""

import typer

from ..builder import BuilderSession
from ..completions import complete_template
from ..config import ProviderRole, load_config
from ..core import (
    LockError,
    acquire_lock,
    create_session_directory,
    generate_session_id,
    release_lock,
    save_response,
    save_session,
)
from ..core.templates import TEMPLATES
from ..models import Session
from ..output import get_output_context
from ..services import GenerationError, TemplateError
from .common import report_round, require_loom_dir


def new(
    task: str = typer.Argument(..., help="What to build, in plain words"),
    template: str | None = typer.Option(
        None,
        "--template",
        "-t",
        help="Base template (react or node); detected from the task when omitted",
        autocompletion=complete_template,
    ),
) -> None:
    """Start a session and generate the initial project."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()

    if template is not None and template.lower() not in TEMPLATES:
        ctx.error(f"Unknown template: {template}. Choose from: {', '.join(TEMPLATES)}")
        raise typer.Exit(1)

    config = load_config(loom_dir)
    session_id = generate_session_id(task)

    if ctx.dry_run:
        primary = config.get_provider(ProviderRole.PRIMARY)
        ctx.dry_run_notice(
            f"create session {session_id}",
            {
                "task": task,
                "template": template or "detect",
                "primary_provider": primary.provider,
            },
        )
        return

    create_session_directory(loom_dir, session_id)
    session = Session(session_id=session_id, task=task)

    try:
        acquire_lock(loom_dir, session_id, "new", batch=1)
    except LockError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    detect = (lambda _task: template.lower()) if template else None
    builder = BuilderSession(session, config, detect_template=detect)

    try:
        ctx.print(f"[bold]Session:[/bold] {session_id}")
        result = builder.initialize(task)
        save_response(loom_dir, session_id, result.batch or session.last_batch, result.response)
    except TemplateError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None
    except GenerationError as e:
        ctx.error(str(e))
        raise typer.Exit(2) from None
    finally:
        save_session(loom_dir, session)
        release_lock(loom_dir, session_id)

    ctx.print(f"[bold]Template:[/bold] {session.template}")
    report_round(session, result)
    ctx.print(f'\nContinue with: loom chat "<message>" --session {session_id}')
