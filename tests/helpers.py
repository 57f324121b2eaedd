# helpers.py
# Fakes shared across the test modules: scripted transports and providers.

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

from tool_chat.controller import Conversation, ConversationController
from tool_chat.credentials import CredentialGate, InMemoryCredentialStore
from tool_chat.models import ToolSchema
from tool_chat.registry import ToolRegistryAdapter

VALID_KEY = "sk-test-" + "x" * 48


def final(content: str) -> SimpleNamespace:
    """A completion whose first choice answers directly."""
    message = SimpleNamespace(role="assistant", content=content, tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def deferred(*calls: tuple[str, str, dict | str], content: str | None = None) -> SimpleNamespace:
    """A completion whose first choice asks for (id, name, args) tool calls."""
    tool_calls = [
        SimpleNamespace(
            id=call_id,
            type="function",
            function=SimpleNamespace(
                name=name, arguments=args if isinstance(args, str) else json.dumps(args)
            ),
        )
        for call_id, name, args in calls
    ]
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_transport(*responses) -> MagicMock:
    transport = MagicMock()
    transport.chat.completions.create.side_effect = list(responses)
    return transport


def provider(functions: dict | None = None, schemas: list | None = None) -> SimpleNamespace:
    functions = functions or {}
    if schemas is None:
        schemas = [ToolSchema(name=name, description=f"{name} tool") for name in functions]
    return SimpleNamespace(tool_schemas=schemas, available_functions=functions)


def make_controller(
    transport: MagicMock,
    functions: dict | None = None,
    context: str = "You are helpful.",
    key: str | None = VALID_KEY,
    **kwargs,
) -> ConversationController:
    gate = CredentialGate(InMemoryCredentialStore(key), transport_factory=lambda _key: transport)
    active = provider(functions)
    return ConversationController(
        Conversation(model="gpt-test"),
        gate=gate,
        registry=ToolRegistryAdapter(lambda: active),
        context_source=lambda: context,
        **kwargs,
    )
