# registry.py
# Read-only view over whichever tool provider is currently active.

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol

from tool_chat.models import ToolSchema


class ToolProvider(Protocol):
    """What a "simulation" must expose to be driven by the conversation."""

    @property
    def tool_schemas(self) -> Sequence[ToolSchema | Mapping[str, Any]]: ...

    @property
    def available_functions(self) -> Mapping[str, Callable[..., Any]]: ...


@dataclass(frozen=True)
class RegistrySnapshot:
    """Schemas and callables captured for one request cycle."""

    schemas: tuple[ToolSchema, ...]
    functions: Mapping[str, Callable[..., Any]]

    def lookup(self, name: str) -> Callable[..., Any] | None:
        return self.functions.get(name)


def _coerce_schema(schema: ToolSchema | Mapping[str, Any]) -> ToolSchema:
    if isinstance(schema, ToolSchema):
        return schema
    # Accept the chat-completions {"type": "function", "function": {...}} shape too.
    if "function" in schema and isinstance(schema["function"], Mapping):
        schema = schema["function"]
    return ToolSchema.model_validate(dict(schema))


class ToolRegistryAdapter:
    """
    Pass-through accessors to the active provider.

    *source* is called on every access, so switching the active provider
    between turns is picked up without any cache invalidation.
    """

    def __init__(self, source: Callable[[], ToolProvider | None]) -> None:
        self._source = source

    def current_schemas(self) -> tuple[ToolSchema, ...]:
        provider = self._source()
        if provider is None:
            return ()
        return tuple(_coerce_schema(s) for s in provider.tool_schemas)

    def current_functions(self) -> Mapping[str, Callable[..., Any]]:
        provider = self._source()
        if provider is None:
            return MappingProxyType({})
        return MappingProxyType(dict(provider.available_functions))

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(schemas=self.current_schemas(), functions=self.current_functions())
