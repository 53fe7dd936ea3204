import json
from typing import Any

from pydantic import BaseModel

from transcript_server.models.errors import MCPError


def to_jsonable(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True)
    return result


def dump_result(result: Any) -> str:
    """Render a tool result as the pretty-printed JSON text handed to MCP clients."""
    if isinstance(result, str):
        return result
    return json.dumps(to_jsonable(result), indent=2, ensure_ascii=False)


def dump_error(error: MCPError, tool_name: str, correlation_id: str | None = None) -> str:
    detail = error.to_detail(correlation_id).model_dump(mode="json", exclude_none=True)
    return json.dumps({"error": True, "tool": tool_name, **detail}, indent=2, ensure_ascii=False)
