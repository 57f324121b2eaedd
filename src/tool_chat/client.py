# client.py
# Stateless transport wrapper around the chat-completions endpoint.
#
# One call, one network round trip. No retries and no interpretation of the
# content — ordering and retry policy belong to the controller.

import logging
from collections.abc import Sequence
from typing import Any

from openai import APIError
from pydantic import ValidationError

from tool_chat.errors import TransportError
from tool_chat.models import Message, Role, ToolCallRequest, ToolSchema

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Wire encoding
# ---------------------------------------------------------------------------


def encode_message(message: Message) -> dict[str, Any]:
    """Render a ledger message in the chat-completions request shape."""
    wire: dict[str, Any] = {"role": message.role.value, "content": message.content}

    if message.tool_calls:
        wire["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.function_name, "arguments": call.arguments_payload},
            }
            for call in message.tool_calls
        ]

    if message.role is Role.TOOL:
        wire["tool_call_id"] = message.tool_call_id
        if message.tool_name:
            wire["name"] = message.tool_name
        if wire["content"] is None:
            wire["content"] = ""

    return wire


def _answered_ids(messages: Sequence[Message], index: int) -> set[str]:
    answered = set()
    for follower in messages[index + 1 :]:
        if follower.role is not Role.TOOL:
            break
        answered.add(follower.tool_call_id)
    return answered


def encode_history(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """
    Encode a ledger for transport.

    A failed turn can leave an assistant message whose tool calls never got
    answers. The service rejects such histories, so unanswered calls are left
    out of the request. The ledger itself is untouched.

    A call only counts as answered by the run of tool messages directly after
    its own assistant message; ids may repeat across turns.
    """
    wire = []
    for index, message in enumerate(messages):
        entry = encode_message(message)
        if message.tool_calls:
            answered = _answered_ids(messages, index)
            calls = [c for c in entry["tool_calls"] if c["id"] in answered]
            if calls:
                entry["tool_calls"] = calls
            else:
                del entry["tool_calls"]
                if entry["content"] is None:
                    entry["content"] = ""
        wire.append(entry)
    return wire


def encode_schema(schema: ToolSchema) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": schema.name,
            "description": schema.description,
            "parameters": schema.parameters,
        },
    }


def decode_message(raw: Any) -> Message:
    """Build an assistant Message from the SDK's response message object."""
    calls = []
    for raw_call in getattr(raw, "tool_calls", None) or []:
        function = raw_call.function
        calls.append(
            ToolCallRequest(
                id=raw_call.id,
                function_name=function.name,
                arguments_payload=function.arguments or "{}",
            )
        )
    return Message(role=Role.ASSISTANT, content=raw.content, tool_calls=tuple(calls))


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class CompletionClient:
    """Sends (model, messages, tool schemas) and returns the first choice's message."""

    def __init__(self, transport: Any) -> None:
        self._transport = transport

    def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tool_schemas: Sequence[ToolSchema] | None = None,
    ) -> Message:
        request: dict[str, Any] = {
            "model": model,
            "messages": encode_history(messages),
        }
        if tool_schemas:
            request["tools"] = [encode_schema(s) for s in tool_schemas]

        logger.debug(
            "Requesting completion: model=%s messages=%d tools=%d",
            model,
            len(request["messages"]),
            len(request.get("tools", [])),
        )

        try:
            response = self._transport.chat.completions.create(**request)
        except APIError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

        choices = getattr(response, "choices", None)
        if not choices:
            raise TransportError("Completion service returned no choices.")

        try:
            message = decode_message(choices[0].message)
        except (AttributeError, ValidationError) as exc:
            raise TransportError(f"Malformed completion reply: {exc}") from exc

        logger.debug(
            "Completion received: deferred=%s content=%r", message.is_deferred, message.content
        )
        return message
