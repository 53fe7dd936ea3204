from inspect import iscoroutinefunction
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from transcript_server.models.mcp import MCPToolDefinition
from transcript_server.services.transcripts import TranscriptService
from transcript_server.tools.base import BaseMCPTool
from transcript_server.tools.fetch_transcript_tool import FetchTranscriptTool
from transcript_server.tools.find_transcripts_tool import FindTranscriptsTool
from transcript_server.tools.get_transcript_tool import GetTranscriptTool
from transcript_server.tools.list_transcripts_tool import ListTranscriptsTool
from transcript_server.tools.search_transcript_tool import SearchTranscriptTool


class ToolRegistrationError(Exception):
    """Custom exception for tool registration errors."""
    pass


class ToolRegistry:
    """
    Manages the registration and retrieval of MCP tools.
    Implemented as a singleton to ensure a single, consistent registry throughout the application.
    """
    _instance: Optional['ToolRegistry'] = None
    _registered_tools: Dict[str, BaseMCPTool] = {}

    def __new__(cls) -> 'ToolRegistry':
        if cls._instance is None:
            cls._instance = super(ToolRegistry, cls).__new__(cls)
            # Initialize _registered_tools only once when the first instance is created
            cls._registered_tools = {}
        return cls._instance

    def register_tool(self, tool: BaseMCPTool) -> None:
        """
        Registers an MCP tool with the registry after performing comprehensive validation.

        Args:
            tool: An instance of a class inheriting from BaseMCPTool.

        Raises:
            ToolRegistrationError: If the tool is invalid or a duplicate name is found.
        """
        self._validate_tool_instance(tool)
        self._validate_tool_properties(tool)
        self._validate_duplicate_name(tool)
        self._validate_input_schema(tool)

        self._registered_tools[tool.name] = tool

    def _validate_tool_instance(self, tool: Any) -> None:
        """Checks if the provided object is an instance of BaseMCPTool."""
        if not isinstance(tool, BaseMCPTool):
            raise ToolRegistrationError(f"Provided object is not an instance of BaseMCPTool: {type(tool)}")

    def _validate_tool_properties(self, tool: BaseMCPTool) -> None:
        """Validates that the tool has all required and correctly typed properties."""
        if not tool.name or not isinstance(tool.name, str):
            raise ToolRegistrationError("Tool must have a non-empty string 'name'.")
        if not tool.description or not isinstance(tool.description, str):
            raise ToolRegistrationError(f"Tool '{tool.name}' must have a non-empty string 'description'.")
        if not isinstance(tool.input_schema, dict):
            raise ToolRegistrationError(f"Tool '{tool.name}' must have a 'input_schema' of type dict.")
        if not (callable(tool.handler) and iscoroutinefunction(tool.handler)):
            raise ToolRegistrationError(f"Tool '{tool.name}' must have an async 'handler' method.")

    def _validate_duplicate_name(self, tool: BaseMCPTool) -> None:
        """Checks if a tool with the same name is already registered."""
        if tool.name in self._registered_tools:
            raise ToolRegistrationError(f"Tool with name '{tool.name}' already registered.")

    def _validate_input_schema(self, tool: BaseMCPTool) -> None:
        """Validates the tool's input_schema against the JSON Schema meta-schema."""
        if tool.input_schema.get("type") != "object":
            raise ToolRegistrationError(f"Tool '{tool.name}' input_schema must describe an object.")
        try:
            Draft202012Validator.check_schema(tool.input_schema)
        except SchemaError as e:
            raise ToolRegistrationError(f"Tool '{tool.name}' has an invalid 'input_schema': {e.message}")

    def get_tool(self, tool_name: str) -> Optional[BaseMCPTool]:
        """
        Retrieves a registered tool by its name.

        Args:
            tool_name: The name of the tool to retrieve.

        Returns:
            The BaseMCPTool instance if found, otherwise None.
        """
        return self._registered_tools.get(tool_name)

    def get_registered_tool_names(self) -> List[str]:
        """
        Returns a list of names of all currently registered tools.

        Returns:
            A list of strings, where each string is the name of a registered tool.
        """
        return list(self._registered_tools.keys())

    def generate_mcp_schema(self) -> List[MCPToolDefinition]:
        """
        Generates a list of MCPToolDefinition objects for all registered tools.
        This is used to expose the available tools and their schemas to the MCP client.

        Returns:
            A list of MCPToolDefinition objects.
        """
        return [
            MCPToolDefinition(
                name=tool.name,
                description=tool.description,
                input_schema=tool.input_schema,
            )
            for tool in self._registered_tools.values()
        ]

    def _clear(self) -> None:
        """
        Clears all registered tools.
        Primarily for testing purposes to reset the singleton state.
        """
        self._registered_tools.clear()


def register_all_tools(service: TranscriptService | None = None) -> ToolRegistry:
    """
    Registers the transcript tools on the singleton registry.

    Tools that are already registered are left untouched, so calling this more
    than once is harmless. Without a service the tools use the application-wide one.
    """
    registry = ToolRegistry()
    tools: list[BaseMCPTool] = [
        FetchTranscriptTool(service),
        ListTranscriptsTool(service),
        GetTranscriptTool(service),
        SearchTranscriptTool(service),
        FindTranscriptsTool(service),
    ]
    for tool in tools:
        if registry.get_tool(tool.name) is None:
            registry.register_tool(tool)
    return registry
