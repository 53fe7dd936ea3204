from typing import Any
from unittest.mock import AsyncMock

import pytest

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.registry.tool_registry import ToolRegistrationError, ToolRegistry, register_all_tools
from transcript_server.tools.base import BaseMCPTool

TRANSCRIPT_TOOLS = [
    "fetch_transcript",
    "list_transcripts",
    "get_transcript",
    "search_transcript",
    "find_transcripts",
]


class MockTool(BaseMCPTool):
    def __init__(self, name: str, description: str, input_schema: dict, handler: AsyncMock):
        super().__init__()
        self._name = name
        self._description = description
        self._input_schema = input_schema
        self._handler = handler

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> dict:
        return self._input_schema

    async def handler(self, params: dict, context: ToolExecutionContext) -> Any:
        return await self._handler(params, context)


@pytest.fixture(autouse=True)
def clear_tool_registry():
    """Empty the ToolRegistry for each test and restore the transcript tools afterwards."""
    registry = ToolRegistry()
    registry._clear()
    yield
    registry._clear()
    register_all_tools()


@pytest.fixture
def valid_mock_tool_factory():
    """Factory fixture for creating valid mock tools."""

    def _factory(name: str):
        mock_handler = AsyncMock(return_value=f"hello from {name}")
        return MockTool(
            name=name,
            description=f"Description for {name}",
            input_schema={"type": "object", "properties": {"query": {"type": "string"}}},
            handler=mock_handler,
        )

    return _factory


def test_tool_registry_is_singleton():
    """Verify that ToolRegistry always returns the same instance."""
    assert ToolRegistry() is ToolRegistry()


def test_register_tool_success(valid_mock_tool_factory):
    registry = ToolRegistry()
    tool = valid_mock_tool_factory("test_tool")
    registry.register_tool(tool)
    assert registry.get_tool("test_tool") is tool
    assert "test_tool" in registry.get_registered_tool_names()


def test_register_tool_duplicate_name_fails(valid_mock_tool_factory):
    registry = ToolRegistry()
    registry.register_tool(valid_mock_tool_factory("duplicate_tool"))

    with pytest.raises(
        ToolRegistrationError, match="Tool with name 'duplicate_tool' already registered."
    ):
        registry.register_tool(valid_mock_tool_factory("duplicate_tool"))


@pytest.mark.parametrize("name, description, message", [
    ("", "Description", "Tool must have a non-empty string 'name'."),
    ("no_desc", "", "Tool 'no_desc' must have a non-empty string 'description'."),
])
def test_register_tool_missing_metadata_fails(name, description, message):
    tool = MockTool(name=name, description=description, input_schema={"type": "object"}, handler=AsyncMock())

    with pytest.raises(ToolRegistrationError, match=message):
        ToolRegistry().register_tool(tool)


def test_register_tool_invalid_input_schema_fails():
    tool = MockTool(
        name="bad_schema",
        description="Description",
        input_schema={"type": "object", "properties": {"q": {"type": "invalid_type"}}},
        handler=AsyncMock(),
    )
    with pytest.raises(ToolRegistrationError, match="Tool 'bad_schema' has an invalid 'input_schema'"):
        ToolRegistry().register_tool(tool)


def test_register_tool_non_object_schema_fails():
    tool = MockTool(name="array_schema", description="Description", input_schema={"type": "array"}, handler=AsyncMock())

    with pytest.raises(ToolRegistrationError, match="input_schema must describe an object"):
        ToolRegistry().register_tool(tool)


def test_register_tool_non_dict_input_schema_fails():
    tool = MockTool(name="str_schema", description="Description", input_schema="not a dict", handler=AsyncMock())

    with pytest.raises(ToolRegistrationError, match="Tool 'str_schema' must have a 'input_schema' of type dict."):
        ToolRegistry().register_tool(tool)


def test_register_tool_non_async_handler_fails():
    class NonAsyncHandlerTool(BaseMCPTool):
        @property
        def name(self) -> str:
            return "non_async_tool"

        @property
        def description(self) -> str:
            return "Tool with a non-async handler"

        @property
        def input_schema(self) -> dict:
            return {"type": "object"}

        def handler(self, params: dict, context: ToolExecutionContext) -> Any:  # type: ignore
            return "sync result"

    with pytest.raises(ToolRegistrationError, match="Tool 'non_async_tool' must have an async 'handler' method."):
        ToolRegistry().register_tool(NonAsyncHandlerTool())


def test_register_non_base_mcp_tool_fails():
    class NonMCPTool:
        name = "invalid"
        description = "invalid"
        input_schema = {"type": "object"}

        async def handler(self, params: dict, context: ToolExecutionContext) -> Any:
            return "nope"

    with pytest.raises(ToolRegistrationError, match="Provided object is not an instance of BaseMCPTool"):
        ToolRegistry().register_tool(NonMCPTool())


def test_get_tool_non_existing():
    assert ToolRegistry().get_tool("non_existing_tool") is None
    assert ToolRegistry().get_registered_tool_names() == []


def test_register_all_tools_registers_transcript_tools():
    registry = register_all_tools()

    assert registry.get_registered_tool_names() == TRANSCRIPT_TOOLS


def test_register_all_tools_is_idempotent():
    first = register_all_tools()
    tool = first.get_tool("search_transcript")

    second = register_all_tools()

    assert second.get_tool("search_transcript") is tool
    assert len(second.get_registered_tool_names()) == len(TRANSCRIPT_TOOLS)


def test_generate_mcp_schema():
    schemas = {definition.name: definition for definition in register_all_tools().generate_mcp_schema()}

    assert set(schemas) == set(TRANSCRIPT_TOOLS)
    search = schemas["search_transcript"].input_schema
    assert search["required"] == ["videoId", "query"]
    assert search["properties"]["maxResults"]["maximum"] == 20
    assert schemas["fetch_transcript"].input_schema["required"] == ["videoId"]
