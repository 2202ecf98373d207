"""Read-only views of a session: step log, file tree, mount description."""

import json
from pathlib import Path

import typer
from rich.markup import escape
from rich.tree import Tree

from ..core import count_files, to_mount_description
from ..models import FileTreeNode
from ..output import get_output_context
from ..services import SandboxError, write_mount_description
from .common import require_loom_dir, resolve_session, session_option
from .parse import steps_table


def steps(
    session_id: str | None = session_option(),
    pending: bool = typer.Option(False, "--pending", help="Show only pending steps"),
) -> None:
    """Show the session's step log."""
    ctx = get_output_context()
    session = resolve_session(require_loom_dir(), session_id)

    shown = session.pending_steps() if pending else session.steps
    if ctx.json_mode:
        ctx.print_json([step.model_dump(mode="json") for step in shown])
        return
    if not shown:
        ctx.print("No steps" if not pending else "No pending steps")
        return
    ctx.console.print(steps_table(shown, title=f"Session {session.session_id}"))


def _add_nodes(branch: Tree, nodes: list[FileTreeNode]) -> None:
    # Folders first, then files, each alphabetical
    for node in sorted(nodes, key=lambda n: (n.type != "folder", n.name)):
        if node.type == "folder":
            _add_nodes(branch.add(f"[bold blue]{escape(node.name)}/[/]"), node.children or [])
        else:
            size = len(node.content or "")
            branch.add(f"{escape(node.name)} [dim]({size} chars)[/]")


def tree(session_id: str | None = session_option()) -> None:
    """Render the session's project tree."""
    ctx = get_output_context()
    session = resolve_session(require_loom_dir(), session_id)

    if ctx.json_mode:
        ctx.print_json([node.model_dump(mode="json") for node in session.tree])
        return

    root = Tree(f"[bold]{session.session_id}[/] ({count_files(session.tree)} files)")
    _add_nodes(root, session.tree)
    ctx.console.print(root)


def mount(
    session_id: str | None = session_option(),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        file_okay=False,
        help="Write the files into this directory instead of printing JSON",
    ),
) -> None:
    """Print the session's mount description, or write it to a directory."""
    ctx = get_output_context()
    session = resolve_session(require_loom_dir(), session_id)
    description = to_mount_description(session.tree)

    if output is None:
        typer.echo(json.dumps(description, indent=2))
        return

    if ctx.dry_run:
        ctx.dry_run_notice(f"write {count_files(session.tree)} file(s) to {output}")
        return

    try:
        written = write_mount_description(description, output)
    except SandboxError as e:
        ctx.error(str(e))
        raise typer.Exit(1) from None

    ctx.success(
        f"Wrote {len(written)} file(s) to {output}",
        {"output": str(output), "files": [str(p) for p in written]},
    )
