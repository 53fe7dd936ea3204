"""Tool that ranks the windows of a stored transcript against a keyword query."""

from typing import Any

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.services.transcripts import DEFAULT_SEARCH_RESULTS, MAX_SEARCH_RESULTS
from transcript_server.tools.base import BaseMCPTool
from transcript_server.tools.fetch_transcript_tool import VIDEO_ID_PROPERTY


class SearchTranscriptTool(BaseMCPTool):
    """BM25 search within one transcript."""

    @property
    def name(self) -> str:
        return "search_transcript"

    @property
    def description(self) -> str:
        return (
            "Search within a saved transcript using BM25 scoring. Returns the most relevant "
            "segments matching your query with timestamps. Use this to find specific content in "
            "long videos without loading the entire transcript."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "videoId": VIDEO_ID_PROPERTY,
                "query": {
                    "type": "string",
                    "minLength": 1,
                    "description": "Search query - keywords or phrases to find in the transcript",
                },
                "maxResults": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_SEARCH_RESULTS,
                    "default": DEFAULT_SEARCH_RESULTS,
                    "description": f"Maximum number of results to return (default: {DEFAULT_SEARCH_RESULTS}, max: {MAX_SEARCH_RESULTS})",
                },
            },
            "required": ["videoId", "query"],
        }

    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> dict[str, Any]:
        result = await self.service.search(
            params["videoId"],
            params["query"],
            params.get("maxResults", DEFAULT_SEARCH_RESULTS),
        )
        context.logger.info(
            "search_transcript.completed",
            video_id=result["videoId"],
            matching_results=result["matchingResults"],
        )
        return result
