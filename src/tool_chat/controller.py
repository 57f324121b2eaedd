# controller.py
# Conversation orchestration engine.
#
# The controller owns all control flow, ordering and state. The completion
# client is a passive transport and tools are passive callables — neither
# ever touches the ledger directly.
#
# Control flow for one submit():
#   credential gate → context injection (first use only) → user turn
#   → first completion (with tool schemas) → assistant turn
#   → [deferred] sequential tool dispatch → follow-up completion → assistant turn
#
# All terminal output lives in display.py; this module only emits TurnEvents.

import asyncio
import inspect
import json
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel

from tool_chat import config
from tool_chat.client import CompletionClient, encode_message
from tool_chat.credentials import CredentialGate
from tool_chat.errors import (
    ChatError,
    MissingCredentialError,
    ToolArgumentParseError,
    ToolExecutionError,
    TransportError,
    UnknownToolError,
)
from tool_chat.ledger import MessageLedger
from tool_chat.models import (
    ErrorKind,
    EventKind,
    Message,
    ToolCallRequest,
    ToolSchema,
    TurnError,
    TurnEvent,
    TurnResult,
)
from tool_chat.registry import RegistrySnapshot, ToolRegistryAdapter

logger = logging.getLogger(__name__)

EventListener = Callable[[TurnEvent], None]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_arguments(call: ToolCallRequest) -> dict[str, Any]:
    """Decode a tool call's argument payload. Anything but a JSON object is fatal."""
    try:
        arguments = json.loads(call.arguments_payload or "{}")
    except json.JSONDecodeError as exc:
        raise ToolArgumentParseError(
            f"Arguments for '{call.function_name}' are malformed: {exc}"
        ) from exc

    if not isinstance(arguments, dict):
        raise ToolArgumentParseError(
            f"Arguments for '{call.function_name}' must be a JSON object, "
            f"got {type(arguments).__name__}."
        )
    return arguments


def stringify_result(result: Any) -> str:
    """Coerce a tool's return value to message content."""
    if isinstance(result, str):
        return result
    if result is None:
        return ""
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, (dict, list, tuple, int, float, bool)):
        return json.dumps(result, default=str)
    return str(result)


def _resolve_awaitable(value: Any) -> Any:
    # Tools may be coroutines; the turn waits for each one before the next.
    async def _wait() -> Any:
        return await value

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_wait())

    # submit() was called from inside a running loop, which cannot be
    # re-entered: drive the awaitable on a private loop in a worker thread.
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, _wait()).result()


def _function_names(calls: Sequence[ToolCallRequest]) -> str:
    return ", ".join(call.function_name for call in calls)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class Conversation:
    """
    One ledger, one model id and the one-way readiness flag.

    ``is_ready`` flips to True exactly once, when the default context is
    injected as the first ledger entry.
    """

    def __init__(self, model: str = config.DEFAULT_MODEL) -> None:
        self.model = model
        self.ledger = MessageLedger()
        self.default_context: str | None = None
        self._is_ready = False

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.ledger.all()

    def inject_context(self, context: str | None) -> Message:
        if self._is_ready:
            raise RuntimeError("Default context has already been injected.")
        if not self.ledger.is_empty():
            raise RuntimeError("Default context must be the first ledger entry.")

        message = Message.system(context or "")
        self.ledger.append(message)
        self.default_context = message.content
        self._is_ready = True
        return message

    def add_message(self, message: Message) -> None:
        self.ledger.append(message)

    def transcript(self) -> list[dict[str, Any]]:
        return [encode_message(m) for m in self.ledger]


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class ConversationController:
    """
    Drives the request → tool execution → follow-up protocol for one Conversation.

    ``submit`` never raises: every failure comes back as a TurnResult with
    ``ok=False`` and a tagged ``error``.

    Example:
        controller = ConversationController(
            Conversation(model="gpt-4o-mini"),
            gate=CredentialGate(),
            registry=ToolRegistryAdapter(lambda: simulation),
            context_source=lambda: project.default_context,
        )
        result = controller.submit("Add a red box at the origin.")
    """

    def __init__(
        self,
        conversation: Conversation,
        gate: CredentialGate,
        registry: ToolRegistryAdapter,
        context_source: Callable[[], str | None] = lambda: "",
        *,
        max_tool_rounds: int = config.MAX_TOOL_ROUNDS,
        listener: EventListener | None = None,
        client_factory: Callable[[Any], CompletionClient] = CompletionClient,
    ) -> None:
        if max_tool_rounds < 0:
            raise ValueError("max_tool_rounds cannot be negative.")
        self.conversation = conversation
        self.max_tool_rounds = max_tool_rounds
        self.listener = listener
        self._gate = gate
        self._registry = registry
        self._context_source = context_source
        self._client_factory = client_factory

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, events: list[TurnEvent], event: TurnEvent) -> None:
        events.append(event)
        if self.listener is None:
            return
        try:
            self.listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Event listener failed on %s event", event.kind.value)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _inject_context(self, events: list[TurnEvent]) -> None:
        message = self.conversation.inject_context(self._context_source())
        logger.info("Default context injected (%d chars)", len(message.content or ""))
        self._emit(events, TurnEvent(kind=EventKind.CONTEXT_LOCKED, text=message.content or ""))

    def _complete(
        self, client: CompletionClient, tool_schemas: Sequence[ToolSchema] | None
    ) -> Message:
        try:
            response = client.complete(
                self.conversation.model, self.conversation.messages, tool_schemas
            )
        except ChatError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        # Stored whether final or deferred.
        self.conversation.add_message(response)
        return response

    def _dispatch(
        self, call: ToolCallRequest, snapshot: RegistrySnapshot, events: list[TurnEvent]
    ) -> Message:
        name = call.function_name
        self._emit(
            events,
            TurnEvent(kind=EventKind.TOOL_CALL, text=f"Calling function {name}", function_name=name),
        )

        arguments = parse_arguments(call)
        function = snapshot.lookup(name)
        if function is None:
            raise UnknownToolError(f"Tool '{name}' is not in the registry.")

        logger.info("Calling function %s with arguments %s", name, arguments)
        try:
            result = function(arguments)
            if inspect.isawaitable(result):
                result = _resolve_awaitable(result)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unhandled error in tool '%s'", name)
            raise ToolExecutionError(f"Tool '{name}' raised an error: {exc}") from exc

        content = stringify_result(result)
        logger.debug("Function %s result: %s", name, content)

        message = Message.tool_result(call, content)
        self.conversation.add_message(message)
        self._emit(
            events,
            TurnEvent(
                kind=EventKind.TOOL_RESULT, text=content, function_name=name, arguments=arguments
            ),
        )
        return message

    def _exchange(
        self, client: CompletionClient, events: list[TurnEvent]
    ) -> tuple[str, list[ToolCallRequest]]:
        snapshot = self._registry.snapshot()
        response = self._complete(client, snapshot.schemas)

        rounds = 0
        while response.is_deferred and rounds < self.max_tool_rounds:
            names = _function_names(response.tool_calls)
            self._emit(
                events,
                TurnEvent(
                    kind=EventKind.TOOLS_REQUESTED,
                    text=response.content or f"Response requires calling function(s): {names}",
                ),
            )
            for call in response.tool_calls:
                self._dispatch(call, snapshot, events)

            rounds += 1
            # No schemas on the last permitted follow-up.
            follow_up_tools = snapshot.schemas if rounds < self.max_tool_rounds else None
            response = self._complete(client, follow_up_tools)

        unresolved: list[ToolCallRequest] = []
        if response.is_deferred:
            unresolved = list(response.tool_calls)
            logger.warning(
                "Tool round limit (%d) reached; not running %s",
                self.max_tool_rounds,
                _function_names(unresolved),
            )
            text = response.content or (
                "Response requested further function call(s) that were not run: "
                f"{_function_names(unresolved)}"
            )
        else:
            text = response.content or ""

        self._emit(events, TurnEvent(kind=EventKind.RESPONSE, text=text))
        return text, unresolved

    def _failure(self, error: TurnError, events: list[TurnEvent], start: int) -> TurnResult:
        text = error.describe()
        self._emit(events, TurnEvent(kind=EventKind.ERROR, text=text))
        return TurnResult(
            text=text,
            ok=False,
            error=error,
            new_messages=self.conversation.ledger.since(start),
            events=events,
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def submit(self, user_text: str) -> TurnResult:
        """
        Run one full exchange for *user_text*.

        The prompt is emitted to listeners before the credential check, but
        only enters the ledger once a transport is available.
        """
        events: list[TurnEvent] = []
        start = len(self.conversation.ledger)
        self._emit(events, TurnEvent(kind=EventKind.PROMPT, text=user_text))
        logger.info("Submitting prompt: %r", user_text)

        try:
            transport = self._gate.ensure_transport()
        except MissingCredentialError as exc:
            logger.warning("Submit refused: %s", exc)
            return self._failure(_turn_error(exc), events, start)
        except ChatError as exc:
            logger.error("Transport unavailable: %s", exc)
            return self._failure(_turn_error(exc), events, start)

        try:
            if not self.conversation.is_ready:
                self._inject_context(events)
            self.conversation.add_message(Message.user(user_text))
            text, unresolved = self._exchange(self._client_factory(transport), events)
        except ChatError as exc:
            logger.error("Turn failed: %s: %s", type(exc).__name__, exc)
            return self._failure(_turn_error(exc), events, start)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during turn")
            error = TurnError(kind=ErrorKind.TRANSPORT, name=type(exc).__name__, message=str(exc))
            return self._failure(error, events, start)

        return TurnResult(
            text=text,
            new_messages=self.conversation.ledger.since(start),
            events=events,
            unresolved_tool_calls=unresolved,
        )


def _turn_error(exc: ChatError) -> TurnError:
    return TurnError(kind=exc.kind, name=type(exc).__name__, message=str(exc))
