"""Build-step parsing for loom.

Model output arrives in more than one convention, so extraction runs two
independent passes and concatenates their results:

- Pass A reads ``<boltAction type="..." filePath="...">body</boltAction>`` tags,
  optionally wrapped in a ``<boltArtifact>`` container.
- Pass B reads self-closing ``path`` markers (``<file path="..." />``), each
  paired with the next unclaimed fenced code block after it.

Neither pass raises on malformed input; a miss only yields fewer steps.
"""

import logging
import re
from dataclasses import dataclass

from ..constants import (
    DEFAULT_FILE_TITLE,
    NO_FILES_WARNING,
    RUN_COMMAND_DESCRIPTION,
    RUN_COMMAND_TITLE,
)
from ..models import Step, StepType

logger = logging.getLogger(__name__)

FENCE = "```"

FILE_ACTION_TYPES = frozenset({"file", "createFile", "updateFile", "tool_code"})
SHELL_ACTION_TYPES = frozenset({"shell"})

# Attribute bodies may contain ">" inside quoted values
_ATTRS = r"""((?:[^>"']|"[^"]*"|'[^']*')*?)"""

CONTAINER_RE = re.compile(r"<boltArtifact\b[^>]*>(.*?)</boltArtifact>", re.DOTALL)
ACTION_RE = re.compile(r"<boltAction\b" + _ATTRS + r"(?<!/)>(.*?)</boltAction>", re.DOTALL)
MARKER_RE = re.compile(r"""<([A-Za-z][\w:.-]*)\s+path\s*=\s*(?:"([^"]*)"|'([^']*)')\s*/>""")
ATTR_RE = re.compile(r"""([A-Za-z_][\w:.-]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""")
FENCED_BLOCK_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)
OPENING_FENCE_RE = re.compile(r"^```[^\n]*(?:\n|$)")


@dataclass(frozen=True)
class ExtractedAction:
    """Candidate action found by one extraction pass, before numbering."""

    type: StepType
    code: str
    path: str | None = None


def parse_attributes(attr_text: str) -> dict[str, str]:
    """Parse ``name="value"`` pairs from a tag's attribute text.

    Both quote styles are accepted. The first occurrence of a name wins.
    """
    attrs: dict[str, str] = {}
    for match in ATTR_RE.finditer(attr_text):
        name = match.group(1)
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attrs.setdefault(name, value)
    return attrs


def clean_payload(raw: str) -> str:
    """Strip surrounding whitespace and at most one outer fence on each end.

    Args:
        raw: Raw tag body or fenced block interior

    Returns:
        Payload without a leading ```lang line or a trailing ``` marker.
        Fences inside the payload are left alone.
    """
    content = raw.strip()
    if content.startswith(FENCE):
        content = OPENING_FENCE_RE.sub("", content, count=1)
    if content.endswith(FENCE):
        content = content[: -len(FENCE)]
    return content.strip()


def normalize_path(path: str) -> str:
    """Return ``path`` as ``/a/b/c``, dropping empty segments."""
    return "/" + "/".join(part for part in path.split("/") if part)


def parse_tagged_actions(text: str) -> list[ExtractedAction]:
    """Extract tag-enclosed actions (Pass A) in textual order.

    Unknown ``type`` values and file-like tags without a ``filePath`` are
    skipped.
    """
    container = CONTAINER_RE.search(text)
    body = container.group(1) if container else text

    actions: list[ExtractedAction] = []
    for match in ACTION_RE.finditer(body):
        attrs = parse_attributes(match.group(1))
        action_type = attrs.get("type", "")
        payload = clean_payload(match.group(2))

        if action_type in FILE_ACTION_TYPES:
            file_path = attrs.get("filePath", "").strip()
            if not file_path:
                logger.debug("Skipping %s action without filePath", action_type)
                continue
            actions.append(ExtractedAction(StepType.CREATE_FILE, payload, file_path))
        elif action_type in SHELL_ACTION_TYPES:
            actions.append(ExtractedAction(StepType.RUN_SCRIPT, payload))
        else:
            logger.debug("Skipping action with unsupported type %r", action_type)

    return actions


def _mask_actions(text: str) -> str:
    """Blank out action tags while keeping offsets stable."""
    return ACTION_RE.sub(lambda m: " " * len(m.group(0)), text)


def parse_path_markers(text: str, seen_paths: set[str] | None = None) -> list[ExtractedAction]:
    """Extract self-closing path markers paired with fenced blocks (Pass B).

    A marker is a self-closing tag carrying only a ``path`` attribute. Each
    marker claims the first fenced block that starts after both the marker
    and the previously claimed block. A marker whose path is already in
    ``seen_paths`` still claims its block but yields no action.

    Args:
        text: Raw model output
        seen_paths: Normalized paths already produced (e.g. by Pass A)

    Returns:
        Actions for markers with a new path and a following fenced block
    """
    seen = set(seen_paths or ())
    actions: list[ExtractedAction] = []
    cursor = 0
    # Markers and fences inside action bodies are file content, not markers
    scan = _mask_actions(text)

    for marker in MARKER_RE.finditer(scan):
        raw_path = marker.group(2) if marker.group(2) is not None else marker.group(3)
        path = raw_path.strip()
        if not path:
            continue

        block = FENCED_BLOCK_RE.search(scan, max(marker.end(), cursor))
        if block is None:
            logger.debug("Marker for %s has no fenced block after it", path)
            continue
        cursor = block.end()

        key = normalize_path(path)
        if key in seen:
            logger.debug("Skipping duplicate marker for %s", path)
            continue
        seen.add(key)
        payload = clean_payload(text[block.start(1) : block.end(1)])
        actions.append(ExtractedAction(StepType.CREATE_FILE, payload, path))

    return actions


def _build_step(step_id: int, action: ExtractedAction) -> Step:
    if action.type == StepType.RUN_SCRIPT:
        first_line = action.code.splitlines()[0].strip() if action.code.strip() else ""
        return Step(
            id=step_id,
            type=StepType.RUN_SCRIPT,
            title=RUN_COMMAND_TITLE,
            description=first_line or RUN_COMMAND_DESCRIPTION,
            code=action.code,
        )

    path = action.path or ""
    segments = [part for part in path.split("/") if part]
    return Step(
        id=step_id,
        type=action.type,
        title=segments[-1] if segments else DEFAULT_FILE_TITLE,
        description=f"Update {path}",
        code=action.code,
        path=path,
    )


def parse_steps(raw_text: str | None) -> list[Step]:
    """Parse model output into an ordered list of pending steps.

    Pass A results come first, then Pass B results whose paths Pass A did not
    already produce. Ids are assigned 1..n in that order.

    Args:
        raw_text: Raw model response

    Returns:
        Parsed steps, possibly empty
    """
    if not raw_text:
        return []

    tagged = parse_tagged_actions(raw_text)
    seen = {normalize_path(a.path) for a in tagged if a.path}
    markers = parse_path_markers(raw_text, seen)

    return [_build_step(n, action) for n, action in enumerate([*tagged, *markers], start=1)]


def parse_steps_with_warnings(raw_text: str | None) -> tuple[list[Step], list[str]]:
    """Parse steps and report extraction misses as soft warnings.

    Args:
        raw_text: Raw model response

    Returns:
        Tuple of (list of Step objects, list of warning messages)
    """
    warnings: list[str] = []
    steps = parse_steps(raw_text)
    if not steps and raw_text and raw_text.strip():
        logger.warning("No steps parsed from a %d character response", len(raw_text))
        warnings.append(NO_FILES_WARNING)
    return steps, warnings
