# errors.py
# Exception hierarchy for the conversation engine.
#
# Every failure a turn can hit is one of these. The controller catches them at
# the submit() boundary and turns them into a tagged TurnError, so none of
# them ever reaches the caller of submit().

from tool_chat.models import ErrorKind


class ChatError(Exception):
    """Base class for all conversation failures. Subclasses pin ``kind``."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class MissingCredentialError(ChatError):
    """Raised when no usable API key is configured."""

    kind = ErrorKind.MISSING_CREDENTIAL


class TransportError(ChatError):
    """Raised when the completion service call fails or replies with garbage."""

    kind = ErrorKind.TRANSPORT


class ToolArgumentParseError(ChatError):
    """Raised when a tool call's arguments are not a JSON object."""

    kind = ErrorKind.TOOL_ARGUMENT_PARSE


class UnknownToolError(ChatError):
    """Raised when the model requests a tool absent from the current registry."""

    kind = ErrorKind.UNKNOWN_TOOL


class ToolExecutionError(ChatError):
    """Raised when a tool callable itself fails."""

    kind = ErrorKind.TOOL_EXECUTION
