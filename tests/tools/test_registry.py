"""
Tests for ToolRegistry: registration, definitions, execution, freezing.
"""

from __future__ import annotations

import pytest

from trickery import (
    CurrentTimeTool,
    RegistryFrozenError,
    Tool,
    ToolDefinition,
    ToolExecutionFailedError,
    ToolInvalidArgumentsError,
    ToolNotFoundError,
    ToolRegistry,
)


class StaticTool(Tool):
    def __init__(self, name: str, description: str = "static", schema=None, result: str = "ok"):
        self.name = name
        self._description = description
        self._schema = schema or {"type": "object", "properties": {}}
        self._result = result

    def definition(self) -> ToolDefinition:
        return ToolDefinition.function(self.name, self._description, self._schema)

    def execute(self, arguments: str) -> str:
        return self._result


class CrashingTool(StaticTool):
    def execute(self, arguments: str) -> str:
        raise KeyError("missing thing")


class TestRegistration:
    def test_new_registry_is_empty(self):
        registry = ToolRegistry()
        assert registry.available_tools() == []
        assert len(registry) == 0

    def test_with_builtins(self):
        registry = ToolRegistry.with_builtins()
        assert "current_time" in registry
        assert isinstance(registry.get("current_time"), CurrentTimeTool)

    def test_last_registration_wins(self):
        registry = ToolRegistry()
        registry.register(StaticTool("a", result="first"))
        registry.register(StaticTool("a", result="second"))

        assert registry.available_tools() == ["a"]
        assert registry.execute("a", "{}") == "second"

    def test_decorator_registers(self):
        registry = ToolRegistry()

        @registry.tool(description="Echo back the provided text.")
        def echo(text: str) -> str:
            return text

        assert registry.get("echo") is echo
        assert registry.execute("echo", '{"text": "hi"}') == "hi"

    def test_freeze_blocks_registration(self):
        registry = ToolRegistry()
        registry.register(StaticTool("a"))
        assert registry.freeze() is registry
        assert registry.frozen

        with pytest.raises(RegistryFrozenError, match="'b'"):
            registry.register(StaticTool("b"))
        assert registry.available_tools() == ["a"]
        # Reads still work
        assert registry.execute("a", "{}") == "ok"


class TestDefinitions:
    def test_round_trip(self):
        schema = {"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]}
        registry = ToolRegistry()
        registry.register(StaticTool("search", "Search the docs", schema))

        (definition,) = registry.definitions()
        assert definition.name == "search"
        assert definition.description == "Search the docs"
        assert definition.parameters == schema
        assert definition.tool_type == "function"

    def test_definitions_in_registration_order(self):
        registry = ToolRegistry()
        for name in ["c", "a", "b"]:
            registry.register(StaticTool(name))
        assert [d.name for d in registry.definitions()] == ["c", "a", "b"]

    def test_definitions_for_request_order(self):
        registry = ToolRegistry()
        for name in ["a", "b", "c"]:
            registry.register(StaticTool(name))
        assert [d.name for d in registry.definitions_for(["c", "a"])] == ["c", "a"]

    def test_definitions_for_drops_unknown(self):
        registry = ToolRegistry()
        registry.register(StaticTool("a"))
        defs = registry.definitions_for(["a", "unknown"])
        assert len(defs) == 1
        assert defs[0].name == "a"

    def test_definitions_for_only_unknown(self):
        registry = ToolRegistry.with_builtins()
        assert registry.definitions_for(["unknown_tool"]) == []


class TestExecute:
    @pytest.mark.parametrize("registry", [ToolRegistry(), ToolRegistry.with_builtins()])
    def test_missing_tool_not_found(self, registry):
        with pytest.raises(ToolNotFoundError) as exc_info:
            registry.execute("missing_tool", "{}")
        assert exc_info.value.tool_name == "missing_tool"
        assert str(exc_info.value) == "Tool not found: missing_tool"

    def test_unexpected_exception_becomes_execution_failed(self):
        registry = ToolRegistry()
        registry.register(CrashingTool("crash"))

        with pytest.raises(ToolExecutionFailedError) as exc_info:
            registry.execute("crash", "{}")
        assert exc_info.value.tool_name == "crash"
        assert isinstance(exc_info.value.error, KeyError)

    def test_tool_errors_pass_through_unchanged(self):
        registry = ToolRegistry.with_builtins()
        with pytest.raises(ToolInvalidArgumentsError):
            registry.execute("current_time", "not json")

    @pytest.mark.asyncio
    async def test_aexecute(self):
        registry = ToolRegistry()
        registry.register(StaticTool("a", result="async ok"))
        assert await registry.aexecute("a", "{}") == "async ok"

    @pytest.mark.asyncio
    async def test_aexecute_missing(self):
        with pytest.raises(ToolNotFoundError):
            await ToolRegistry().aexecute("nope", "{}")
