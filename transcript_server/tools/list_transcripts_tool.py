"""Tool that pages through stored transcripts."""

from typing import Any

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.services.transcripts import MAX_PAGE_SIZE
from transcript_server.storage.base import DEFAULT_SORT
from transcript_server.tools.base import BaseMCPTool

PAGING_PROPERTIES: dict[str, Any] = {
    "page": {
        "type": "integer",
        "minimum": 1,
        "default": 1,
        "description": "Page number (starts at 1)",
    },
    "pageSize": {
        "type": "integer",
        "minimum": 1,
        "maximum": MAX_PAGE_SIZE,
        "default": 25,
        "description": f"Number of items per page (max {MAX_PAGE_SIZE})",
    },
    "sort": {
        "type": "string",
        "default": DEFAULT_SORT,
        "description": 'Sort order (e.g., "createdAt:desc", "title:asc")',
    },
}


class ListTranscriptsTool(BaseMCPTool):
    @property
    def name(self) -> str:
        return "list_transcripts"

    @property
    def description(self) -> str:
        return "List all saved YouTube transcripts from the database. Supports pagination and sorting."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": dict(PAGING_PROPERTIES), "required": []}

    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> dict[str, Any]:
        result = await self.service.list_all(
            page=params.get("page", 1),
            page_size=params.get("pageSize", 25),
            sort=params.get("sort", DEFAULT_SORT),
        )
        context.logger.info("list_transcripts.completed", total=result["pagination"]["total"])
        return result
