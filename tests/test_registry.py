import pytest
from helpers import provider

from tool_chat.models import ToolSchema
from tool_chat.registry import ToolRegistryAdapter


def test_no_active_provider():
    adapter = ToolRegistryAdapter(lambda: None)
    assert adapter.current_schemas() == ()
    assert dict(adapter.current_functions()) == {}
    assert adapter.snapshot().lookup("anything") is None


def test_dict_schemas_are_coerced():
    raw = [
        {"name": "plain", "description": "d", "parameters": {"type": "object"}},
        {"type": "function", "function": {"name": "wrapped", "parameters": {"type": "object"}}},
        {"name": "aliased", "parameter_schema": {"type": "object", "properties": {}}},
        ToolSchema(name="model"),
    ]
    adapter = ToolRegistryAdapter(lambda: provider({}, raw))

    schemas = adapter.current_schemas()

    assert [s.name for s in schemas] == ["plain", "wrapped", "aliased", "model"]
    assert schemas[2].parameters == {"type": "object", "properties": {}}


def test_functions_view_is_read_only():
    adapter = ToolRegistryAdapter(lambda: provider({"echo": lambda args: args}))
    functions = adapter.current_functions()

    with pytest.raises(TypeError):
        functions["other"] = print


def test_snapshot_follows_active_provider():
    active = {"p": provider({"a": lambda args: "a"})}
    adapter = ToolRegistryAdapter(lambda: active["p"])

    first = adapter.snapshot()
    active["p"] = provider({"b": lambda args: "b"})
    second = adapter.snapshot()

    assert first.lookup("a") is not None
    assert first.lookup("b") is None
    assert second.lookup("b") is not None
    assert [s.name for s in second.schemas] == ["b"]
