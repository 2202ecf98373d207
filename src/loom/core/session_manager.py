"""Session directory and persistence utilities for loom."""

import re
from datetime import datetime
from pathlib import Path

from ..models import Session

LOOM_DIR = ".loom"
SESSIONS_DIR = "sessions"
SESSION_FILE = "session.json"


class SessionError(Exception):
    """Session could not be found or loaded."""


def get_loom_dir(root: Path | None = None) -> Path:
    """Get .loom directory path.

    Args:
        root: Project root, defaults to the current directory

    Returns:
        Path to .loom directory
    """
    return (root or Path.cwd()) / LOOM_DIR


def sanitize_slug(name: str) -> str:
    """Convert name to safe slug.

    Args:
        name: Name to sanitize

    Returns:
        Lowercase slug with only alphanumeric and hyphens
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug[:40].rstrip("-") if slug else "session"


def generate_session_id(task: str | None = None) -> str:
    """Generate session ID in format YYYYMMDD-HHMMSS-<slug>.

    Args:
        task: Optional task description to derive the slug from

    Returns:
        Generated session ID
    """
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    return f"{timestamp}-{sanitize_slug(task or '')}"


def get_session_dir(loom_dir: Path, session_id: str) -> Path:
    return loom_dir / SESSIONS_DIR / session_id


def create_session_directory(loom_dir: Path, session_id: str) -> Path:
    """Create the directory for a new session.

    Args:
        loom_dir: Path to .loom directory
        session_id: Session ID

    Returns:
        Path to created session directory
    """
    session_dir = get_session_dir(loom_dir, session_id)
    (session_dir / "responses").mkdir(parents=True, exist_ok=True)
    return session_dir


def save_session(loom_dir: Path, session: Session) -> Path:
    """Write session.json, replacing the previous state in one rename.

    Returns:
        Path to the written session file
    """
    session_dir = get_session_dir(loom_dir, session.session_id)
    session_dir.mkdir(parents=True, exist_ok=True)
    session.updated_at = datetime.now()

    path = session_dir / SESSION_FILE
    tmp_path = path.with_suffix(".json.tmp")
    tmp_path.write_text(session.model_dump_json(indent=2))
    tmp_path.replace(path)
    return path


def load_session(loom_dir: Path, session_id: str) -> Session:
    """Load a session by ID.

    Raises:
        SessionError: If the session does not exist or is unreadable
    """
    path = get_session_dir(loom_dir, session_id) / SESSION_FILE
    if not path.exists():
        raise SessionError(f"Session not found: {session_id}")
    try:
        return Session.model_validate_json(path.read_text())
    except ValueError as e:
        raise SessionError(f"Session {session_id} is corrupted: {e}") from e


def save_response(loom_dir: Path, session_id: str, batch: int, text: str) -> Path:
    """Keep the raw model response for a parse round, for later re-parsing."""
    path = get_session_dir(loom_dir, session_id) / "responses" / f"{batch:03d}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def list_sessions(loom_dir: Path) -> list[str]:
    """List session IDs, most recent first.

    Args:
        loom_dir: Path to .loom directory

    Returns:
        Session IDs sorted newest first
    """
    sessions_dir = loom_dir / SESSIONS_DIR
    if not sessions_dir.exists():
        return []
    return sorted(
        (d.name for d in sessions_dir.iterdir() if (d / SESSION_FILE).exists()),
        reverse=True,
    )


def latest_session_id(loom_dir: Path) -> str | None:
    """Return the most recently modified session, if any."""
    sessions_dir = loom_dir / SESSIONS_DIR
    if not sessions_dir.exists():
        return None
    candidates = [d for d in sessions_dir.iterdir() if (d / SESSION_FILE).exists()]
    if not candidates:
        return None
    return max(candidates, key=lambda d: (d / SESSION_FILE).stat().st_mtime).name
