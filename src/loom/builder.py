"""Builder session: the single owner of a project's tree and step log.

Each round sends the conversation to the generation collaborator, parses the
reply into steps, appends them to the log and merges every pending step into
a new tree. The tree and the log are replaced, never edited in place, and a
merge always finishes before observers see the new tree.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .config import LoomConfig
from .constants import GENERATION_ERROR_PLACEHOLDER
from .core.mount_adapter import MountDescription, to_mount_description
from .core.prompts import get_system_prompt, with_format_reminder
from .core.step_parser import parse_steps, parse_steps_with_warnings
from .core.templates import boilerplate_tree, template_prompts
from .core.tree_merger import find_node, merge_steps, update_file_content
from .models import FileTreeNode, Message, Session, Step, StepStatus
from .services.generation import (
    GenerationError,
    TemplateError,
    determine_template,
    generate_response,
)

logger = logging.getLogger(__name__)

ResponseGenerator = Callable[[list[Message], str | None], str]
TemplateDetector = Callable[[str], str]
TreeObserver = Callable[[list[FileTreeNode]], None]


@dataclass
class RoundResult:
    """What one parse-and-merge round did."""

    batch: int = 0
    response: str = ""
    new_steps: list[Step] = field(default_factory=list)
    completed: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def found_steps(self) -> bool:
        return bool(self.new_steps)


class BuilderSession:
    """Drive generation, parsing and merging for one session.

    Args:
        session: Session state to own; mutated by reassigning its fields
        config: Loom configuration passed to the providers
        generate: Override for the text-generation collaborator
        detect_template: Override for template detection
        on_tree_change: Called with the new tree after every completed merge
    """

    def __init__(
        self,
        session: Session,
        config: LoomConfig | None = None,
        generate: ResponseGenerator | None = None,
        detect_template: TemplateDetector | None = None,
        on_tree_change: TreeObserver | None = None,
    ) -> None:
        self.session = session
        self.config = config or LoomConfig()
        self._generate = generate or (
            lambda messages, system: generate_response(messages, system, config=self.config)
        )
        self._detect_template = detect_template or (
            lambda task: determine_template(task, config=self.config)
        )
        self._on_tree_change = on_tree_change
        self.system_prompt = get_system_prompt()

    # ------------------------------------------------------------------
    # Step log and tree
    # ------------------------------------------------------------------

    def _append_batch(self, steps: list[Step]) -> tuple[int, list[Step]]:
        batch = self.session.last_batch + 1
        logged = [step.model_copy(update={"batch": batch}) for step in steps]
        self.session.steps = [*self.session.steps, *logged]
        return batch, logged

    def _set_tree(self, tree: list[FileTreeNode]) -> None:
        self.session.tree = tree
        if self._on_tree_change is not None:
            self._on_tree_change(tree)

    def merge_pending(self) -> int:
        """Merge every pending step in the log, one batch at a time.

        Returns:
            Number of steps flipped to completed
        """
        pending = self.session.pending_steps()
        if not pending:
            return 0

        tree = self.session.tree
        completed: dict[int, set[int]] = {}
        for batch in sorted({step.batch for step in pending}):
            result = merge_steps(tree, [step for step in pending if step.batch == batch])
            tree = result.tree
            completed[batch] = result.completed_ids

        self.session.steps = [
            step.with_status(StepStatus.COMPLETED)
            if step.status == StepStatus.PENDING and step.id in completed.get(step.batch, ())
            else step
            for step in self.session.steps
        ]
        self._set_tree(tree)

        flipped = sum(len(ids) for ids in completed.values())
        logger.debug("Merged pending steps: %d completed", flipped)
        return flipped

    def _apply_response(self, response: str) -> RoundResult:
        steps, warnings = parse_steps_with_warnings(response)
        result = RoundResult(response=response, warnings=warnings)
        if warnings:
            self.session.warnings = [*self.session.warnings, *warnings]
        if not steps:
            return result

        result.batch, result.new_steps = self._append_batch(steps)
        result.completed = self.merge_pending()
        logger.info(
            "Parsed %d step(s) in batch %d, %d applied",
            len(steps),
            result.batch,
            result.completed,
        )
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def initialize(self, task: str) -> RoundResult:
        """Seed the session from the starter tree and the first generation.

        Raises:
            GenerationError: If both providers fail
            TemplateError: If the model names no known template
        """
        self.session.task = task
        self._set_tree(boilerplate_tree())

        answer = self._detect_template(task)
        prompts = template_prompts(answer)
        if prompts is None:
            raise TemplateError(f"Could not determine project type (model said {answer!r})")
        self.session.template = answer

        for base_artifact in prompts.ui_prompts:
            batch, _ = self._append_batch(parse_steps(base_artifact))
            logger.debug("Seeded base artifact as batch %d", batch)
        self.merge_pending()

        messages = [Message(role="user", content=p) for p in [*prompts.prompts, task]]
        response = self._generate(messages, self.system_prompt)
        result = self._apply_response(response)

        self.session.messages = [
            Message(role="user", content=task),
            Message(role="assistant", content=response),
        ]
        return result

    def send_message(self, text: str) -> RoundResult:
        """Send a chat message and merge the files in the reply.

        On failure the conversation gets a placeholder assistant turn and
        the tree and step log stay as they were.

        Raises:
            GenerationError: If both providers fail
        """
        user_message = Message(role="user", content=with_format_reminder(text))
        self.session.messages = [*self.session.messages, user_message]

        try:
            response = self._generate(self.session.messages, self.system_prompt)
        except GenerationError:
            self.session.messages = [
                *self.session.messages,
                Message(role="assistant", content=GENERATION_ERROR_PLACEHOLDER),
            ]
            raise

        self.session.messages = [
            *self.session.messages,
            Message(role="assistant", content=response),
        ]
        return self._apply_response(response)

    def apply_text(self, raw_text: str) -> RoundResult:
        """Parse and merge a model response obtained elsewhere."""
        return self._apply_response(raw_text)

    def edit_file(self, path: str, content: str) -> bool:
        """Replace the content of an existing file.

        Returns:
            False if no file exists at ``path``
        """
        node = find_node(self.session.tree, path)
        if node is None or node.type != "file":
            return False
        self._set_tree(update_file_content(self.session.tree, path, content))
        return True

    def mount_description(self) -> MountDescription:
        return to_mount_description(self.session.tree)
