"""Per-session writer locks.

A session's tree and step log have a single writer. Commands that change a
session first create ``writer.lock`` in that session's directory; other
sessions stay free. A lock whose process is gone or whose heartbeat is too
old is treated as stale and cleared.

Lock creation uses O_CREAT | O_EXCL so two processes cannot both win.
"""

import contextlib
import logging
import os
from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

from ..models import Lock
from .session_manager import SESSIONS_DIR, get_session_dir

logger = logging.getLogger(__name__)

LOCK_FILE = "writer.lock"
STALE_TIMEOUT_SECONDS = 3600
MAX_LOCK_RETRIES = 3


class LockError(Exception):
    """Error acquiring or managing lock."""


def _lock_path(loom_dir: Path, session_id: str) -> Path:
    return get_session_dir(loom_dir, session_id) / LOCK_FILE


def _is_pid_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)  # Signal 0 checks existence only
    except OSError:
        return False
    return True


def _read_lock(lock_path: Path) -> Lock | None:
    if not lock_path.exists():
        return None
    try:
        return Lock.model_validate_json(lock_path.read_text())
    except (OSError, ValueError):
        return None


def get_current_lock(loom_dir: Path, session_id: str) -> Lock | None:
    """Read a session's lock, or None if absent or unreadable."""
    return _read_lock(_lock_path(loom_dir, session_id))


def is_stale_lock(lock: Lock, timeout_seconds: int = STALE_TIMEOUT_SECONDS) -> bool:
    """Check whether the lock holder is dead or silent past the timeout."""
    if not _is_pid_running(lock.pid):
        return True
    return datetime.now() - lock.last_heartbeat > timedelta(seconds=timeout_seconds)


def _try_create(lock_path: Path, lock: Lock) -> bool:
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError:
        return False
    try:
        os.write(fd, lock.model_dump_json(indent=2).encode())
    finally:
        os.close(fd)
    return True


def acquire_lock(
    loom_dir: Path, session_id: str, command: str, batch: int | None = None
) -> Lock:
    """Take the writer lock of one session.

    Args:
        loom_dir: Path to .loom directory
        session_id: Session about to be modified
        command: Command name recorded in the lock
        batch: Parse batch the caller is about to write, if any

    Returns:
        The lock now held by this process

    Raises:
        LockError: If another live process is writing the same session
    """
    lock_path = _lock_path(loom_dir, session_id)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = Lock(pid=os.getpid(), session_id=session_id, command=command, batch=batch)

    for _ in range(MAX_LOCK_RETRIES):
        if _try_create(lock_path, lock):
            logger.debug("Locked session %s for %s", session_id, lock.describe())
            return lock

        existing = _read_lock(lock_path)
        if existing is None:
            continue
        if existing.pid == os.getpid():
            lock_path.write_text(lock.model_dump_json(indent=2))
            return lock
        if is_stale_lock(existing):
            logger.info("Clearing stale lock on %s held by %s", session_id, existing.describe())
            with contextlib.suppress(FileNotFoundError):
                lock_path.unlink()
            continue

        raise LockError(f"Session {session_id} is in use by {existing.describe()}")

    raise LockError("Failed to acquire lock after multiple attempts")


def release_lock(loom_dir: Path, session_id: str) -> None:
    """Release a session's lock if this process owns it."""
    existing = get_current_lock(loom_dir, session_id)
    if existing and existing.pid == os.getpid():
        _lock_path(loom_dir, session_id).unlink(missing_ok=True)


def update_heartbeat(loom_dir: Path, session_id: str) -> None:
    """Refresh the heartbeat of a session lock owned by this process."""
    existing = get_current_lock(loom_dir, session_id)
    if existing and existing.pid == os.getpid():
        existing.last_heartbeat = datetime.now()
        _lock_path(loom_dir, session_id).write_text(existing.model_dump_json(indent=2))


def active_locks(loom_dir: Path) -> dict[str, Lock]:
    """Map session IDs to their live writer locks; stale ones are left out."""
    sessions_dir = loom_dir / SESSIONS_DIR
    if not sessions_dir.exists():
        return {}
    locks: dict[str, Lock] = {}
    for lock_path in sessions_dir.glob(f"*/{LOCK_FILE}"):
        lock = _read_lock(lock_path)
        if lock is not None and not is_stale_lock(lock):
            locks[lock_path.parent.name] = lock
    return locks


@contextlib.contextmanager
def session_lock(
    loom_dir: Path, session_id: str, command: str, batch: int | None = None
) -> Iterator[Lock]:
    """Hold a session's writer lock for the duration of a ``with`` block."""
    lock = acquire_lock(loom_dir, session_id, command, batch)
    try:
        yield lock
    finally:
        release_lock(loom_dir, session_id)
