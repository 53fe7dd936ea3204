"""Tool that filters stored transcripts by title, video ID or content."""

from typing import Any

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.storage.base import DEFAULT_SORT
from transcript_server.tools.base import BaseMCPTool
from transcript_server.tools.list_transcripts_tool import PAGING_PROPERTIES


class FindTranscriptsTool(BaseMCPTool):
    @property
    def name(self) -> str:
        return "find_transcripts"

    @property
    def description(self) -> str:
        return (
            "Search and filter transcripts based on query criteria. Returns multiple matching "
            "transcripts. Supports filtering by title, videoId, and full-text search in transcript "
            "content. Long text is truncated unless includeFullContent is true."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to match against title, video ID or transcript content",
                },
                "videoId": {
                    "type": "string",
                    "description": "Filter by specific video ID (partial match supported)",
                },
                "title": {
                    "type": "string",
                    "description": "Filter by title (partial match, case-insensitive)",
                },
                "includeFullContent": {
                    "type": "boolean",
                    "default": False,
                    "description": "Return full text and segments instead of truncated previews",
                },
                **PAGING_PROPERTIES,
            },
            "required": [],
        }

    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> dict[str, Any]:
        result = await self.service.find(
            query=params.get("query"),
            video_id=params.get("videoId"),
            title=params.get("title"),
            include_full_content=params.get("includeFullContent", False),
            page=params.get("page", 1),
            page_size=params.get("pageSize", 25),
            sort=params.get("sort", DEFAULT_SORT),
        )
        context.logger.info("find_transcripts.completed", total=result["pagination"]["total"])
        return result
