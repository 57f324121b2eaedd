# session.py
# Owns the active project, tool provider and conversation.
#
# Replaces a process-wide singleton: whoever needs a conversation holds a
# Session and passes it around explicitly.

import logging
import uuid
from typing import Callable

from tool_chat import config
from tool_chat.controller import Conversation, ConversationController, EventListener
from tool_chat.credentials import CredentialGate
from tool_chat.models import Project, TurnResult
from tool_chat.registry import ToolProvider, ToolRegistryAdapter

logger = logging.getLogger(__name__)

TurnHook = Callable[[Project, TurnResult], None]


class Session:
    """
    One active project, one active conversation.

    Opening or creating a project discards the old conversation; the gate
    (and its cached transport) survives project switches.
    """

    def __init__(
        self,
        project: Project | None = None,
        provider: ToolProvider | None = None,
        gate: CredentialGate | None = None,
        *,
        model: str = config.DEFAULT_MODEL,
        max_tool_rounds: int = config.MAX_TOOL_ROUNDS,
        listener: EventListener | None = None,
        on_turn_complete: TurnHook | None = None,
    ) -> None:
        self.gate = gate if gate is not None else CredentialGate()
        self.model = model
        self.max_tool_rounds = max_tool_rounds
        self.listener = listener
        self.on_turn_complete = on_turn_complete
        self.provider = provider
        self.registry = ToolRegistryAdapter(lambda: self.provider)
        self.project = project or Project(id=uuid.uuid4().hex)
        self.controller = self._new_controller()

    def _new_controller(self) -> ConversationController:
        return ConversationController(
            Conversation(model=self.model),
            gate=self.gate,
            registry=self.registry,
            context_source=lambda: self.project.default_context,
            max_tool_rounds=self.max_tool_rounds,
            listener=self.listener,
        )

    @property
    def conversation(self) -> Conversation:
        return self.controller.conversation

    @property
    def context_locked(self) -> bool:
        """The default context can no longer change the running conversation."""
        return self.conversation.is_ready

    def open_project(self, project: Project, provider: ToolProvider | None = None) -> None:
        logger.info("Opening project %s (%s)", project.name, project.id)
        self.project = project
        if provider is not None:
            self.provider = provider
        self.controller = self._new_controller()

    def new_project(self, name: str = "Untitled", provider: ToolProvider | None = None) -> Project:
        project = Project(id=uuid.uuid4().hex, name=name)
        self.open_project(project, provider)
        return project

    def submit(self, user_text: str) -> TurnResult:
        result = self.controller.submit(user_text)
        if self.on_turn_complete is None:
            return result
        try:
            self.on_turn_complete(self.project, result)
        except Exception:  # noqa: BLE001
            logger.exception("Turn hook failed for project %s", self.project.id)
        return result
