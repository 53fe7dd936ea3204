"""
This module defines the MCP Protocol-compliant application using Anthropic's FastMCP SDK.
It is intended to be mounted into a parent ASGI application.

Every tool here is a thin shim over the registry tool of the same name, so the
FastMCP transport and the JSON-RPC/REST front ends share validation and behavior.
"""

from typing import Any
from uuid import uuid4

from mcp.server.fastmcp import FastMCP

from transcript_server.config import get_config as _get_config
from transcript_server.models.errors import MCPError
from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.registry.tool_registry import ToolRegistry
from transcript_server.utils.logging import get_logger
from transcript_server.utils.serialization import dump_error, dump_result

logger = get_logger(__name__)

# Use singleton tool registry (tools are registered in __main__.py and the server lifespan)
tool_registry = ToolRegistry()

# Load configuration to determine SSE mode
_config = _get_config()

# Initialize FastMCP application
_mcp = FastMCP(
    "youtube-transcript-server",
    stateless_http=not _config.use_sse,
    streamable_http_path="/",
)


async def _invoke(tool_name: str, arguments: dict[str, Any]) -> str:
    tool_instance = tool_registry.get_tool(tool_name)
    if not tool_instance:
        logger.error("mcp_tool_not_found_in_registry", tool_name=tool_name)
        return f"Error: tool '{tool_name}' not found in registry."

    correlation_id = str(uuid4())
    tool_context = ToolExecutionContext(
        correlation_id=correlation_id,
        logger=logger.bind(correlation_id=correlation_id, tool_name=tool_name),
    )
    # Omitted optional arguments arrive as None; the JSON schemas do not accept null.
    params = {key: value for key, value in arguments.items() if value is not None}

    try:
        result = await tool_instance.execute(params, tool_context)
    except MCPError as e:
        return dump_error(e, tool_name, correlation_id)
    return dump_result(result)


@_mcp.tool()
async def fetch_transcript(videoId: str) -> str:  # noqa: N803
    """
    Fetch a YouTube transcript and save it. Accepts a video ID or any common YouTube URL.
    Returns metadata and a preview; use get_transcript or search_transcript to read more.
    """
    return await _invoke("fetch_transcript", {"videoId": videoId})


@_mcp.tool()
async def list_transcripts(page: int = 1, pageSize: int = 25, sort: str = "createdAt:desc") -> str:  # noqa: N803
    """List all saved transcripts with pagination. Returns metadata only."""
    return await _invoke("list_transcripts", {"page": page, "pageSize": pageSize, "sort": sort})


@_mcp.tool()
async def get_transcript(
    videoId: str,  # noqa: N803
    timeRangeStartSec: float | None = None,  # noqa: N803
    timeRangeEndSec: float | None = None,  # noqa: N803
    windowIndex: int | None = None,  # noqa: N803
    windowSizeSec: int | None = None,  # noqa: N803
    includeFullText: bool = False,  # noqa: N803
    includeSegments: bool = False,  # noqa: N803
) -> str:
    """
    Get a saved transcript. Short transcripts come back in full, long ones as a preview.
    Pass a time range or a window index to read a bounded slice.
    """
    return await _invoke(
        "get_transcript",
        {
            "videoId": videoId,
            "timeRangeStartSec": timeRangeStartSec,
            "timeRangeEndSec": timeRangeEndSec,
            "windowIndex": windowIndex,
            "windowSizeSec": windowSizeSec,
            "includeFullText": includeFullText,
            "includeSegments": includeSegments,
        },
    )


@_mcp.tool()
async def search_transcript(videoId: str, query: str, maxResults: int = 5) -> str:  # noqa: N803
    """Search inside a saved transcript and return the best-matching time windows with timestamps."""
    return await _invoke(
        "search_transcript", {"videoId": videoId, "query": query, "maxResults": maxResults}
    )


@_mcp.tool()
async def find_transcripts(
    query: str | None = None,
    videoId: str | None = None,  # noqa: N803
    title: str | None = None,
    includeFullContent: bool = False,  # noqa: N803
    page: int = 1,
    pageSize: int = 25,  # noqa: N803
    sort: str = "createdAt:desc",
) -> str:
    """Find saved transcripts by title, video ID or content."""
    return await _invoke(
        "find_transcripts",
        {
            "query": query,
            "videoId": videoId,
            "title": title,
            "includeFullContent": includeFullContent,
            "page": page,
            "pageSize": pageSize,
            "sort": sort,
        },
    )


def get_session_manager():
    """The streamable HTTP session manager, which must run for the mounted app to serve requests."""
    return None if _config.use_sse else _mcp.session_manager


# Export the proper ASGI app based on configuration
if _config.use_sse:
    logger.info("Exporting MCP SSE ASGI app")
    mcp_app = _mcp.sse_app()
else:
    logger.info("Exporting MCP Streamable HTTP ASGI app")
    mcp_app = _mcp.streamable_http_app()
