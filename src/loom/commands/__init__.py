"""CLI command implementations for loom.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .apply import apply
from .chat import chat
from .edit import edit
from .init import init
from .new import new
from .parse import parse
from .sandbox import sandbox
from .sessions import list_sessions_cmd
from .views import mount, steps, tree

__all__ = [
    "apply",
    "chat",
    "edit",
    "init",
    "list_sessions_cmd",
    "mount",
    "new",
    "parse",
    "sandbox",
    "steps",
    "tree",
]
