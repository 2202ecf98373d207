"""Builder session models.

A session owns the conversation, the append-only step log and the project
tree for one generated project. It is persisted as session.json inside the
session directory.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .step import Step, StepStatus
from .tree import FileTreeNode


class Message(BaseModel):
    """One conversation turn sent to or received from the model."""

    role: Literal["user", "assistant"]
    content: str


class Session(BaseModel):
    """Builder session state written to session.json.

    Attributes:
        session_id: Unique identifier (format: YYYYMMDD-HHMMSS-slug).
        task: The user's original project description.
        template: Detected base template (react or node), if any.
        created_at: When the session was created.
        updated_at: Last time the state was saved.
        messages: Conversation history in send order.
        steps: Append-only step log across all parse rounds.
        tree: Root-level nodes of the project tree.
        warnings: Soft warnings collected from parsing.
    """

    session_id: str = Field(description="Unique session identifier")
    task: str = Field(default="", description="Original project description")
    template: str | None = Field(default=None, description="Base template name")
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    messages: list[Message] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    tree: list[FileTreeNode] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def last_batch(self) -> int:
        """Highest parse round recorded in the step log."""
        return max((s.batch for s in self.steps), default=0)

    def pending_steps(self) -> list[Step]:
        return [s for s in self.steps if s.status == StepStatus.PENDING]
