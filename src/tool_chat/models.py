# models.py
# Data contracts for the conversation engine.
# No business logic lives here — pure schema and validation.

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    TRANSPORT = "transport"
    TOOL_ARGUMENT_PARSE = "tool_argument_parse"
    UNKNOWN_TOOL = "unknown_tool"
    TOOL_EXECUTION = "tool_execution"


class ToolCallRequest(BaseModel):
    """A single function invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque id, unique within its assistant message.")
    function_name: str
    arguments_payload: str = Field(
        default="{}", description="Raw JSON text as sent by the service. Never parsed here."
    )


class Message(BaseModel):
    """One turn in the ledger. Frozen — the ledger never mutates history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | None = None
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_call_id: str | None = None
    tool_name: str | None = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> "Message":
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError("Only assistant messages may carry tool calls.")
        ids = [call.id for call in self.tool_calls]
        if len(ids) != len(set(ids)):
            raise ValueError("Tool call ids must be unique within one message.")
        if self.role is Role.TOOL and not self.tool_call_id:
            raise ValueError("Tool messages require a tool_call_id.")
        if self.role is not Role.TOOL and (self.tool_call_id or self.tool_name):
            raise ValueError("tool_call_id / tool_name are only valid on tool messages.")
        return self

    @property
    def is_deferred(self) -> bool:
        """True when the message defers to tool calls instead of answering."""
        return bool(self.tool_calls)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def tool_result(cls, call: ToolCallRequest, content: str) -> "Message":
        return cls(
            role=Role.TOOL,
            content=content,
            tool_call_id=call.id,
            tool_name=call.function_name,
        )


class ToolSchema(BaseModel):
    """Description of a callable tool, as advertised to the model."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="parameter_schema",
    )


class Project(BaseModel):
    """The slice of a project the conversation reads: its default context."""

    id: str
    name: str = "Untitled"
    default_context: str = ""


class TurnError(BaseModel):
    """Tagged failure returned from submit() in place of an exception."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    name: str = Field(..., description="Exception class name.")
    message: str

    def describe(self) -> str:
        return f"An error occurred. {self.name} | {self.message}"


class EventKind(str, Enum):
    PROMPT = "prompt"
    CONTEXT_LOCKED = "context_locked"
    TOOLS_REQUESTED = "tools_requested"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    RESPONSE = "response"
    ERROR = "error"


class TurnEvent(BaseModel):
    """Informational fan-out for presentation layers. Never drives control flow."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    text: str = ""
    function_name: str | None = None
    arguments: dict[str, Any] | None = None


class TurnResult(BaseModel):
    """Everything one submit() produced."""

    text: str
    ok: bool = True
    error: TurnError | None = None
    new_messages: list[Message] = Field(default_factory=list)
    events: list[TurnEvent] = Field(default_factory=list)
    unresolved_tool_calls: list[ToolCallRequest] = Field(default_factory=list)
