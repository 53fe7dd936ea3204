"""Health check endpoint handler."""

from datetime import UTC, datetime

from fastapi.responses import JSONResponse

from transcript_server import __version__
from transcript_server.models.mcp import HealthCheckResponse
from transcript_server.registry.tool_registry import ToolRegistry
from transcript_server.storage.base import TranscriptStore


async def health_check(registry: ToolRegistry, store: TranscriptStore) -> JSONResponse:
    """
    Handles the health check request.
    Returns a JSON response with the server's health status and the stored transcript count.
    """
    tool_names = registry.get_registered_tool_names()
    response_model = HealthCheckResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC),
        tools_loaded=len(tool_names),
        registered_tools=tool_names,
        stored_transcripts=await store.count(),
    )

    return JSONResponse(content=response_model.model_dump(mode="json"))
