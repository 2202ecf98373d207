"""Step model for parsed build steps.

Represents a single build action extracted from model output. Steps are
the atomic units the tree merger applies to the project tree.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepType(str, Enum):
    """Kinds of build action a step can describe."""

    CREATE_FILE = "CreateFile"
    CREATE_FOLDER = "CreateFolder"
    RUN_SCRIPT = "RunScript"


class StepStatus(str, Enum):
    """Lifecycle of a step in the step log."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Step(BaseModel):
    """Parsed build step.

    A step is owned by the session's step log for its whole life. The merger
    reads it and produces a completed copy; nothing ever deletes it.

    Attributes:
        id: Sequence number, 1-based and unique within one parse call.
        type: Kind of action (create file, create folder, run script).
        title: Display label derived from the path or action kind.
        description: Display text, carries no merge semantics.
        status: Lifecycle status; never returns to pending once completed.
        code: File contents for CreateFile, command text for RunScript.
        path: Slash-delimited project path, required for CreateFile.
        batch: Parse round that produced the step (0 until logged).

    Example:
        >>> step = Step(
        ...     id=1,
        ...     type=StepType.CREATE_FILE,
        ...     title="App.tsx",
        ...     description="Update /src/App.tsx",
        ...     code="export default function App() {}",
        ...     path="/src/App.tsx",
        ... )
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(frozen=True, description="Step number (1-indexed per parse call)")
    type: StepType = Field(frozen=True, description="Build action kind")
    title: str = Field(default="", description="Display title")
    description: str = Field(default="", description="Display description")
    status: StepStatus = Field(default=StepStatus.PENDING, description="Lifecycle status")
    code: str | None = Field(default=None, description="File contents or command text")
    path: str | None = Field(default=None, description="Project path for file steps")
    batch: int = Field(default=0, ge=0, description="Parse round that produced the step")

    @field_validator("id")
    @classmethod
    def _positive_id(cls, value: int) -> int:
        if value < 1:
            raise ValueError("step id must be >= 1")
        return value

    @property
    def is_completed(self) -> bool:
        return self.status == StepStatus.COMPLETED

    def with_status(self, status: StepStatus) -> "Step":
        """Return a copy of this step with a new status.

        Raises:
            ValueError: If a completed step would move back to pending.
        """
        if self.is_completed and status == StepStatus.PENDING:
            raise ValueError(f"Step {self.id} is completed and cannot return to pending")
        return self.model_copy(update={"status": status})
