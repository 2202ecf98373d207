"""Convert the project tree into a sandbox mount description."""

from collections.abc import Iterable
from typing import Any

from ..models import FileTreeNode

MountDescription = dict[str, Any]


def to_mount_description(tree: Iterable[FileTreeNode]) -> MountDescription:
    """Build the nested mount description for ``tree``.

    Folders become ``{"directory": {...}}`` and files become
    ``{"file": {"contents": str}}``, keyed by node name. Missing file content
    is written as an empty string.

    Example:
        >>> to_mount_description([FileTreeNode.file("/a.txt", "hello")])
        {'a.txt': {'file': {'contents': 'hello'}}}
    """
    description: MountDescription = {}
    for node in tree:
        if node.type == "folder":
            description[node.name] = {"directory": to_mount_description(node.children or [])}
        else:
            description[node.name] = {"file": {"contents": node.content or ""}}
    return description
