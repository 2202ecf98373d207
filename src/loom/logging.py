"""Logging configuration for loom CLI."""

import logging
from enum import IntEnum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

LOG_FILE_NAME = "loom.log"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUPS = 3
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def resolve_level(verbosity: int = 0, quiet: bool = False, debug: bool = False) -> int:
    """Map CLI flags to a logging level.

    Flag precedence: quiet > debug > verbosity.
    """
    if quiet:
        return LogLevel.QUIET
    if debug or verbosity >= 1:
        return LogLevel.VERBOSE
    return LogLevel.NORMAL


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
    debug: bool = False,
    log_dir: Path | None = None,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1+=debug)
        quiet: Suppress non-error output (takes precedence over debug/verbosity)
        no_color: Disable colored output
        stream: Output stream for logs (defaults to the current stderr)
        debug: Enable debug logging (ignored if quiet is set)
        log_dir: If given and existing, also append DEBUG records to
            ``log_dir/loom.log`` (rotated at 2MB)

    Returns:
        Configured Rich console for output
    """
    level = resolve_level(verbosity=verbosity, quiet=quiet, debug=debug)
    detailed = debug or verbosity >= 2

    console = Console(
        stderr=stream is None,
        file=stream,
        force_terminal=not no_color,
        no_color=no_color,
    )

    handlers: list[logging.Handler] = [
        RichHandler(console=console, show_time=detailed, show_path=detailed)
    ]
    handlers[0].setLevel(level)

    if log_dir is not None and log_dir.is_dir():
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if len(handlers) > 1 else level,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )

    return console
