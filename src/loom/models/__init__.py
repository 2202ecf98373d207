"""Pydantic data models for loom sessions.

This package defines the data structures shared by the parser, the tree
merger and the builder session:
- Parsed build steps (Step, StepType, StepStatus)
- Project tree nodes (FileTreeNode)
- Conversation and persisted session state (Message, Session)
- Session locking (Lock)

Example:
    >>> from loom.models import Step, StepType
    >>> step = Step(id=1, type=StepType.CREATE_FILE, path="/a.txt", code="hello")
    >>> step.model_dump_json()
"""

from .lock import Lock
from .session import Message, Session
from .step import Step, StepStatus, StepType
from .tree import FileTree, FileTreeNode

__all__ = [
    "FileTree",
    "FileTreeNode",
    "Lock",
    "Message",
    "Session",
    "Step",
    "StepStatus",
    "StepType",
]
