from abc import ABC, abstractmethod
from typing import Any

from jsonschema import ValidationError, validate

from transcript_server.models.errors import InvalidInputError, MCPError, ToolExecutionError
from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.services.transcripts import TranscriptService, get_transcript_service


class BaseMCPTool(ABC):
    """
    Abstract Base Class for all MCP Tools.

    All tools intended for use with the ToolRegistry must inherit from this class
    and implement its abstract methods and properties. Front ends call `execute`,
    which validates the parameters, runs `handler` and normalizes failures.
    """

    def __init__(self, service: TranscriptService | None = None) -> None:
        self._service = service

    @property
    def service(self) -> TranscriptService:
        """The injected service, or the application-wide one."""
        return self._service or get_transcript_service()

    @property
    @abstractmethod
    def name(self) -> str:
        """The unique name of the tool."""
        raise NotImplementedError

    @property
    @abstractmethod
    def description(self) -> str:
        """A brief description of what the tool does."""
        raise NotImplementedError

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """
        The JSON schema defining the expected input parameters for the tool's handler.
        This schema is used for validation and MCP manifest generation.
        """
        raise NotImplementedError

    @abstractmethod
    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> Any:
        """
        The asynchronous handler function that executes the tool's logic.

        Args:
            params: A dictionary of parameters validated against `input_schema`.
            context: An instance of `ToolExecutionContext` providing runtime context.

        Returns:
            The result of the tool's execution. Can be any JSON-serializable type.
        """
        raise NotImplementedError

    def validate_params(self, params: dict[str, Any]) -> None:
        try:
            validate(instance=params, schema=self.input_schema)
        except ValidationError as e:
            path = ".".join(str(part) for part in e.absolute_path)
            message = f"{path}: {e.message}" if path else e.message
            raise InvalidInputError(f"Validation failed for {self.name}: {message}") from e

    async def execute(self, params: dict[str, Any], context: ToolExecutionContext) -> Any:
        """Validate, run the handler and turn unexpected exceptions into ToolExecutionError."""
        self.validate_params(params)
        try:
            result = await self.handler(params, context)
        except MCPError as e:
            context.logger.warning(
                "tool.failed",
                tool_name=self.name,
                error_code=e.code.value,
                error_message=e.message,
                duration_ms=context.elapsed_ms(),
            )
            raise
        except Exception as e:
            context.logger.error(
                "tool.unexpected_error",
                tool_name=self.name,
                error=str(e),
                duration_ms=context.elapsed_ms(),
                exc_info=True,
            )
            raise ToolExecutionError(
                f"An unexpected error occurred while running {self.name}."
            ) from e
        context.logger.info("tool.succeeded", tool_name=self.name, duration_ms=context.elapsed_ms())
        return result
