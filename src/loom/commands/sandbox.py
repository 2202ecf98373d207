"""Sandbox command: mount the project locally, install and start it."""

import typer

from ..config import load_config
from ..core import count_files, to_mount_description
from ..output import get_output_context
from ..services import mount_and_run
from .common import require_loom_dir, resolve_session, sandbox_dir, session_option


def sandbox(
    session_id: str | None = session_option(),
    no_install: bool = typer.Option(False, "--no-install", help="Skip the install command"),
    no_start: bool = typer.Option(False, "--no-start", help="Do not start the dev server"),
) -> None:
    """Mount the project into the sandbox directory and run it."""
    ctx = get_output_context()
    loom_dir = require_loom_dir()
    session = resolve_session(loom_dir, session_id)
    config = load_config(loom_dir)
    root = sandbox_dir(loom_dir, config)

    install_cmd = None if no_install else config.sandbox.install
    dev_cmd = None if no_start else config.sandbox.dev

    if ctx.dry_run:
        ctx.dry_run_notice(
            f"mount {count_files(session.tree)} file(s) to {root}",
            {"install": install_cmd or "skipped", "dev_server": dev_cmd or "skipped"},
        )
        return

    ctx.print(f"Mounting {session.session_id} into {root}")
    result = mount_and_run(
        to_mount_description(session.tree),
        root,
        install_cmd=install_cmd,
        dev_cmd=dev_cmd,
        install_timeout=config.sandbox.install_timeout,
        dev_timeout=config.sandbox.dev_timeout,
    )

    data = {
        "root": str(root),
        "files": len(result.written),
        "url": result.url,
        "error": result.error,
    }
    if not result.ok:
        if result.process is not None and result.process.poll() is None:
            result.process.terminate()
        ctx.error(result.error or "Sandbox failed", data)
        raise typer.Exit(2)

    if result.process is None:
        ctx.success(f"Mounted {len(result.written)} file(s) into {root}", data)
        return

    ctx.success(f"Dev server running at {result.url}", data)
    ctx.print("Press Ctrl+C to stop")
    try:
        result.process.wait()
    except KeyboardInterrupt:
        result.process.terminate()
        result.process.wait()
        ctx.print("\nDev server stopped")
