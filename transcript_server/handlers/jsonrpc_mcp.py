"""Pure JSON-RPC handler for MCP protocol (Claude.ai compatible)."""

from functools import lru_cache
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from transcript_server import __version__
from transcript_server.config import get_config
from transcript_server.models.errors import MCPError
from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.registry.session_registry import SessionRegistry
from transcript_server.registry.tool_registry import ToolRegistry
from transcript_server.utils.logging import get_logger
from transcript_server.utils.serialization import dump_error, dump_result

logger = get_logger(__name__)

router = APIRouter()

SESSION_HEADER = "Mcp-Session-Id"
PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "yt-transcript-mcp"

# JSON-RPC 2.0 error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request. A missing id marks a notification."""

    jsonrpc: str
    id: int | str | None = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


@lru_cache
def get_session_registry() -> SessionRegistry:
    """Get the process-wide session registry."""
    return SessionRegistry(ttl_seconds=get_config().session_ttl_seconds)


def _result(request_id: int | str | None, result: dict[str, Any], headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": request_id, "result": result}, headers=headers)


def _error(request_id: int | str | None, code: int, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}},
        status_code=status_code,
    )


@router.post("/jsonrpc")
async def jsonrpc_mcp_handler(rpc_request: JSONRPCRequest, request: Request) -> Response:
    """
    Pure JSON-RPC 2.0 handler for MCP protocol.

    `initialize` opens a session and returns its id in the Mcp-Session-Id header;
    every later request must send that header back until the session expires.
    """
    method = rpc_request.method
    params = rpc_request.params
    request_id = rpc_request.id
    sessions = get_session_registry()

    logger.info("jsonrpc.request", method=method, id=request_id)

    if method == "initialize":
        session = sessions.create(
            client_info=params.get("clientInfo") or {},
            protocol_version=params.get("protocolVersion"),
        )
        return _result(
            request_id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
            },
            headers={SESSION_HEADER: session.session_id},
        )

    session_id = request.headers.get(SESSION_HEADER)
    if not session_id:
        return _error(request_id, INVALID_REQUEST, f"Missing {SESSION_HEADER} header; call initialize first", 400)
    session = sessions.get(session_id)
    if session is None:
        return _error(request_id, INVALID_REQUEST, "Session not found or expired; call initialize again", 404)

    if request_id is None:
        # Notifications (e.g. notifications/initialized) need no response body.
        return Response(status_code=202)

    try:
        registry = ToolRegistry()

        if method == "ping":
            return _result(request_id, {})

        if method == "tools/list":
            tools_schema = registry.generate_mcp_schema()
            return _result(
                request_id,
                {
                    "tools": [
                        {"name": t.name, "description": t.description, "inputSchema": t.input_schema}
                        for t in tools_schema
                    ]
                },
            )

        if method == "tools/call":
            tool_name = params.get("name")
            arguments = params.get("arguments") or {}

            if not tool_name:
                return _error(request_id, INVALID_PARAMS, "Missing 'name' parameter", 400)

            tool = registry.get_tool(tool_name)
            if not tool:
                return _error(request_id, METHOD_NOT_FOUND, f"Tool '{tool_name}' not found", 404)

            correlation_id = str(uuid4())
            bound_logger = logger.bind(correlation_id=correlation_id, session_id=session.session_id)
            tool_context = ToolExecutionContext(
                correlation_id=correlation_id,
                logger=bound_logger,
                session_id=session.session_id,
            )

            bound_logger.info("jsonrpc.tool_call", tool_name=tool_name)
            try:
                result = await tool.execute(arguments, tool_context)
            except MCPError as e:
                return _result(
                    request_id,
                    {
                        "content": [{"type": "text", "text": dump_error(e, tool_name, correlation_id)}],
                        "isError": True,
                    },
                )

            return _result(
                request_id,
                {"content": [{"type": "text", "text": dump_result(result)}], "isError": False},
            )

        return _error(request_id, METHOD_NOT_FOUND, f"Method '{method}' not found", 404)

    except Exception as e:
        logger.error("jsonrpc.handler_error", error=str(e), exc_info=True)
        return _error(request_id, INTERNAL_ERROR, f"Internal error: {str(e)}", 500)


@router.delete("/jsonrpc")
async def close_jsonrpc_session(request: Request) -> Response:
    """Terminate the session named by the Mcp-Session-Id header."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id or not get_session_registry().close(session_id):
        return JSONResponse({"error": "Session not found"}, status_code=404)
    return Response(status_code=204)
