"""Writer lock for one session.

Each session directory may hold a ``writer.lock`` naming the process that is
currently adding a parse batch to that session (or editing its tree).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class Lock(BaseModel):
    """Ownership record of a session being written.

    Attributes:
        pid: Process ID of the writer.
        session_id: Session whose tree and step log are being written.
        command: Command line that took the lock, e.g. "chat" or "apply out.md".
        batch: Parse batch the writer will produce, or None for edits that
            do not parse a response.
        started_at: When the lock was taken.
        last_heartbeat: When the writer last reported progress.
    """

    pid: int = Field(description="Process ID of the writer")
    session_id: str = Field(description="Session being written")
    command: str = Field(description="Command that took the lock")
    batch: int | None = Field(default=None, ge=1, description="Batch being written")
    started_at: datetime = Field(default_factory=datetime.now)
    last_heartbeat: datetime = Field(default_factory=datetime.now)

    def describe(self) -> str:
        """One-line summary for error messages and listings.

        Example:
            >>> Lock(pid=42, session_id="s", command="chat", batch=3).describe()
            'chat writing batch 3 (PID 42)'
        """
        work = f"{self.command} writing batch {self.batch}" if self.batch else self.command
        return f"{work} (PID {self.pid})"
