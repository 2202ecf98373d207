"""Tree merging for loom.

Applies CreateFile steps to the project tree. Every operation works on a deep
copy and returns a new tree; callers replace their reference to the old one.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..models import FileTreeNode, Step, StepStatus, StepType

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of merging one batch of steps."""

    tree: list[FileTreeNode]
    completed_ids: set[int] = field(default_factory=set)
    skipped_ids: list[int] = field(default_factory=list)


def copy_tree(tree: Iterable[FileTreeNode]) -> list[FileTreeNode]:
    """Deep copy a tree so the caller's nodes are never aliased."""
    return [node.model_copy(deep=True) for node in tree]


def split_path(path: str) -> list[str]:
    """Split a slash path into its non-empty segments."""
    return [part for part in path.split("/") if part]


def is_mountable(segments: list[str]) -> bool:
    """True if every segment can become a file or folder name in the sandbox."""
    return bool(segments) and all(
        part not in (".", "..") and "\\" not in part for part in segments
    )


def _find_child(level: list[FileTreeNode], name: str) -> FileTreeNode | None:
    for node in level:
        if node.name == name:
            return node
    return None


def _apply_file_step(tree: list[FileTreeNode], segments: list[str], code: str) -> bool:
    """Write one file into ``tree``, creating folders on the way.

    Returns:
        False if a path segment collides with a node of the other type.
    """
    level = tree
    for depth, name in enumerate(segments[:-1]):
        node = _find_child(level, name)
        if node is None:
            node = FileTreeNode.folder("/" + "/".join(segments[: depth + 1]))
            level.append(node)
        elif node.type != "folder":
            logger.warning("Cannot create folder %s: a file already uses that path", node.path)
            return False
        assert node.children is not None
        level = node.children

    file_name = segments[-1]
    existing = _find_child(level, file_name)
    if existing is None:
        level.append(FileTreeNode.file("/" + "/".join(segments), code))
    elif existing.type == "file":
        existing.content = code
    else:
        logger.warning("Cannot write file %s: a folder already uses that path", existing.path)
        return False
    return True


def merge_steps(tree: Iterable[FileTreeNode], steps: Iterable[Step]) -> MergeResult:
    """Merge a batch of steps into a copy of ``tree``.

    Only CreateFile steps touch the tree, in the order given. A later step for
    the same path overwrites an earlier one. Steps without a usable path or
    with ``code`` set to None are skipped and not reported as completed, as
    are paths with "." or ".." segments, which no sandbox could mount.

    Args:
        tree: Current root-level nodes (left untouched)
        steps: Steps to apply, normally one parse batch in id order

    Returns:
        MergeResult with the new tree and the ids that were applied
    """
    result = MergeResult(tree=copy_tree(tree))

    for step in steps:
        if step.type != StepType.CREATE_FILE:
            continue
        segments = split_path(step.path or "")
        if not is_mountable(segments) or step.code is None:
            logger.debug("Skipping malformed step %d (path=%r)", step.id, step.path)
            result.skipped_ids.append(step.id)
            continue
        if _apply_file_step(result.tree, segments, step.code):
            result.completed_ids.add(step.id)
        else:
            result.skipped_ids.append(step.id)

    logger.debug(
        "Merged %d file step(s), skipped %d", len(result.completed_ids), len(result.skipped_ids)
    )
    return result


def mark_completed(steps: Iterable[Step], completed_ids: set[int]) -> list[Step]:
    """Return ``steps`` with every step whose id is in ``completed_ids`` completed."""
    return [
        step.with_status(StepStatus.COMPLETED) if step.id in completed_ids else step
        for step in steps
    ]


def iter_nodes(tree: Iterable[FileTreeNode]) -> Iterator[FileTreeNode]:
    """Yield every node depth-first, parents before children."""
    for node in tree:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def find_node(tree: Iterable[FileTreeNode], path: str) -> FileTreeNode | None:
    """Find a node by path, walking by name from the root."""
    segments = split_path(path)
    if not segments:
        return None
    level: list[FileTreeNode] | None = list(tree)
    node: FileTreeNode | None = None
    for name in segments:
        if not level:
            return None
        node = _find_child(level, name)
        if node is None:
            return None
        level = node.children
    return node


def count_files(tree: Iterable[FileTreeNode]) -> int:
    return sum(1 for node in iter_nodes(tree) if node.type == "file")


def update_file_content(
    tree: Iterable[FileTreeNode], path: str, content: str
) -> list[FileTreeNode]:
    """Return a copy of ``tree`` with the file at ``path`` holding ``content``.

    Unknown paths and folders leave the copy unchanged.
    """
    updated = copy_tree(tree)
    node = find_node(updated, path)
    if node is not None and node.type == "file":
        node.content = content
    else:
        logger.debug("No file at %s to update", path)
    return updated
