"""File tree model for the materialized project.

Nodes are owned exclusively by their parent's ``children`` list, which keeps
the tree a strict hierarchy without cycles.
"""

from typing import Literal

from pydantic import BaseModel, Field, model_validator


class FileTreeNode(BaseModel):
    """One file or folder in the project tree.

    Attributes:
        name: Final path segment.
        path: Absolute-style path, unique across the tree.
        type: ``file`` or ``folder``.
        content: File contents; ``None`` for folders.
        children: Child nodes in creation order; ``None`` for files.
    """

    name: str
    path: str
    type: Literal["file", "folder"]
    content: str | None = None
    children: list["FileTreeNode"] | None = None

    @model_validator(mode="after")
    def _shape_matches_type(self) -> "FileTreeNode":
        if self.type == "folder":
            self.content = None
            if self.children is None:
                self.children = []
        else:
            self.children = None
            if self.content is None:
                self.content = ""
        return self

    @classmethod
    def file(cls, path: str, content: str = "") -> "FileTreeNode":
        """Build a file node from its absolute path."""
        return cls(name=path.rstrip("/").rsplit("/", 1)[-1], path=path, type="file", content=content)

    @classmethod
    def folder(cls, path: str, children: list["FileTreeNode"] | None = None) -> "FileTreeNode":
        """Build a folder node from its absolute path."""
        return cls(
            name=path.rstrip("/").rsplit("/", 1)[-1],
            path=path,
            type="folder",
            children=children or [],
        )


# A project tree is the ordered list of root-level nodes.
FileTree = list[FileTreeNode]
