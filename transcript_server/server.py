"""
Main Unified ASGI Server.

This server runs on a single port and serves the REST API endpoints, the
session-based JSON-RPC endpoint and the FastMCP protocol application, which
is mounted at the /mcp path.
"""

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette import status

from transcript_server import __version__
from transcript_server.config import get_config
from transcript_server.handlers.health import health_check
from transcript_server.handlers.jsonrpc_mcp import router as jsonrpc_router
from transcript_server.mcp_server import get_session_manager, mcp_app
from transcript_server.models.errors import ErrorCode, MCPError
from transcript_server.models.mcp import MCPToolDefinition, ToolExecutionContext
from transcript_server.registry.tool_registry import ToolRegistry, register_all_tools
from transcript_server.services.transcripts import get_transcript_service
from transcript_server.utils.logging import get_logger
from transcript_server.utils.serialization import to_jsonable

logger = get_logger(__name__)

HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_IDENTIFIER: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_QUERY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WINDOW_OUT_OF_RANGE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TOOL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.UPSTREAM_STRUCTURE_CHANGED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.UPSTREAM_REQUEST_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.EMPTY_UPSTREAM_RESPONSE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.NOT_PLAYABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.NO_CAPTIONS: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.UNSUPPORTED_PROTECTION: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def http_status_for(code: ErrorCode) -> int:
    return HTTP_STATUS_BY_CODE.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan (startup and shutdown)."""
    logger.info("Starting Unified Server", version=__version__)
    config = get_config()
    logger.info(
        "Configuration loaded",
        environment=config.environment,
        log_level=config.log_level,
        use_sse=config.use_sse,
        storage_path=config.storage_path,
    )

    registry = register_all_tools()
    app.state.registry = registry
    app.state.service = get_transcript_service()
    logger.info("Tool registry accessed", tool_count=len(registry.get_registered_tool_names()))

    async with AsyncExitStack() as stack:
        session_manager = get_session_manager()
        if session_manager is not None:
            await stack.enter_async_context(session_manager.run())
        yield
    logger.info("Shutting down Unified Server")


# Create the main FastAPI application
app = FastAPI(
    title="YouTube Transcript MCP Server",
    description="Serves the MCP protocol endpoints and supporting REST API endpoints for YouTube transcripts.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(jsonrpc_router)
logger.info("Mounted JSON-RPC endpoint at /jsonrpc")

# Mount the specialized MCP application at the /mcp path
app.mount("/mcp", mcp_app)
logger.info("Mounted MCP application at /mcp")

config = get_config()
if config.cors_allowed_origins:
    origins = [origin.strip() for origin in config.cors_allowed_origins.split(",")]
    logger.info("CORS middleware enabled for entire application", allowed_origins=origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )


# Define REST API endpoints
@app.get("/health")
async def health(request: Request) -> JSONResponse:
    """Health check endpoint."""
    registry = ToolRegistry()
    return await health_check(registry, request.app.state.service.store)


@app.get("/tools/list")
async def list_tools(request: Request) -> list[MCPToolDefinition]:
    """List available MCP tools."""
    registry: ToolRegistry = request.app.state.registry
    return registry.generate_mcp_schema()


@app.post("/tools/invoke")
async def invoke_tool(request: Request) -> JSONResponse:
    """REST endpoint to invoke a tool directly."""
    registry: ToolRegistry = request.app.state.registry

    request_body: dict[str, Any] = await request.json()
    tool_name = request_body.get("tool_name")
    parameters = request_body.get("parameters") or {}

    # Prioritize correlation_id from request context, otherwise generate a new one
    correlation_id = (request_body.get("context") or {}).get("correlation_id") or str(uuid4())
    bound_logger = logger.bind(correlation_id=correlation_id)

    if not tool_name:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "tool_name is required")

    tool = registry.get_tool(tool_name)
    if not tool:
        raise HTTPException(status.HTTP_404_NOT_FOUND, f"Tool '{tool_name}' not found")

    tool_context = ToolExecutionContext(correlation_id=correlation_id, logger=bound_logger)

    try:
        result = await tool.execute(parameters, tool_context)
    except MCPError as e:
        return JSONResponse(
            {
                "error_code": e.code.value,
                "error": e.message,
                "retryable": e.retryable,
                "details": e.details,
                "correlation_id": correlation_id,
            },
            status_code=http_status_for(e.code),
        )

    return JSONResponse({"result": to_jsonable(result)})
