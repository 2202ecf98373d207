"""Loom CLI: turn model output into a runnable project tree."""

import typer

from loom import __version__

from .commands import (
    apply,
    chat,
    edit,
    init,
    list_sessions_cmd,
    mount,
    new,
    parse,
    sandbox,
    steps,
    tree,
)
from .core import get_loom_dir
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"loom {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="loom",
    help="Build projects from model output: parse steps, merge files, run a sandbox",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug logging and write .loom/loom.log",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would happen without changing anything",
    ),
) -> None:
    """Loom - build projects from model output."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
        debug=debug,
        log_dir=get_loom_dir() if debug else None,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output, dry_run=dry_run))


app.command()(init)
app.command()(new)
app.command()(chat)
app.command()(apply)
app.command()(parse)
app.command()(steps)
app.command()(tree)
app.command()(mount)
app.command()(edit)
app.command()(sandbox)
app.command("list")(list_sessions_cmd)


if __name__ == "__main__":
    app()
