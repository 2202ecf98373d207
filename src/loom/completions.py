"""Shell completion helpers for loom CLI."""

from loom.core.session_manager import get_loom_dir, list_sessions
from loom.core.templates import TEMPLATES


def complete_session_id(incomplete: str) -> list[str]:
    """Return session IDs that start with the given prefix.

    Used for shell completion of the --session option. Sessions are read
    from the .loom directory under the current working directory.

    Args:
        incomplete: The partial string typed by the user

    Returns:
        Matching session IDs, newest first, capped at 20 results
    """
    try:
        sessions = list_sessions(get_loom_dir())
    except OSError:
        return []
    return [s for s in sessions if s.startswith(incomplete)][:20]


def complete_template(incomplete: str) -> list[str]:
    """Return template names that start with the given prefix."""
    return sorted(t for t in TEMPLATES if t.startswith(incomplete.lower()))
