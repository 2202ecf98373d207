"""Core logic for loom.

This package contains logic with no network or subprocess I/O:
- step_parser: Extract build steps from raw model output
- tree_merger: Apply file steps to the project tree
- mount_adapter: Convert the tree into a sandbox mount description
- templates: Starter tree and base artifacts
- prompts: System prompt, format reminder, conversation rendering
- session_manager: Session directories and session.json persistence
- lock_manager: Per-session writer locks
"""

from .lock_manager import (
    LockError,
    acquire_lock,
    active_locks,
    release_lock,
    session_lock,
    update_heartbeat,
)
from .mount_adapter import MountDescription, to_mount_description
from .prompts import (
    FORMAT_REMINDER,
    TEMPLATE_DETECTION_PROMPT,
    build_conversation_prompt,
    get_system_prompt,
    with_format_reminder,
)
from .session_manager import (
    SessionError,
    create_session_directory,
    generate_session_id,
    get_loom_dir,
    get_session_dir,
    latest_session_id,
    list_sessions,
    load_session,
    sanitize_slug,
    save_response,
    save_session,
)
from .step_parser import (
    clean_payload,
    parse_path_markers,
    parse_steps,
    parse_steps_with_warnings,
    parse_tagged_actions,
)
from .templates import TemplatePrompts, boilerplate_tree, template_prompts
from .tree_merger import (
    MergeResult,
    count_files,
    find_node,
    iter_nodes,
    mark_completed,
    merge_steps,
    update_file_content,
)

__all__ = [
    "FORMAT_REMINDER",
    "TEMPLATE_DETECTION_PROMPT",
    "LockError",
    "MergeResult",
    "MountDescription",
    "SessionError",
    "TemplatePrompts",
    "acquire_lock",
    "active_locks",
    "boilerplate_tree",
    "build_conversation_prompt",
    "clean_payload",
    "count_files",
    "create_session_directory",
    "find_node",
    "generate_session_id",
    "get_loom_dir",
    "get_session_dir",
    "get_system_prompt",
    "iter_nodes",
    "latest_session_id",
    "list_sessions",
    "load_session",
    "mark_completed",
    "merge_steps",
    "parse_path_markers",
    "parse_steps",
    "parse_steps_with_warnings",
    "parse_tagged_actions",
    "release_lock",
    "sanitize_slug",
    "save_response",
    "save_session",
    "session_lock",
    "template_prompts",
    "to_mount_description",
    "update_file_content",
    "update_heartbeat",
    "with_format_reminder",
]
