"""Tool that pulls a transcript from YouTube into storage."""

from typing import Any

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.tools.base import BaseMCPTool

VIDEO_ID_PROPERTY = {
    "type": "string",
    "minLength": 1,
    "description": 'YouTube video ID (e.g., "dQw4w9WgXcQ") or full YouTube URL',
}


class FetchTranscriptTool(BaseMCPTool):
    """Fetches a transcript from YouTube (or storage) and returns metadata plus a preview."""

    @property
    def name(self) -> str:
        return "fetch_transcript"

    @property
    def description(self) -> str:
        return (
            "Fetch a transcript from YouTube for a given video ID or URL. The transcript is saved "
            "to the database. Returns metadata and a preview only to avoid context overflow. "
            "Use get_transcript to retrieve content."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"videoId": VIDEO_ID_PROPERTY},
            "required": ["videoId"],
        }

    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> dict[str, Any]:
        video_id = params["videoId"]
        context.logger.info("fetch_transcript.requested", video_id=video_id)
        result = await self.service.fetch(video_id)
        context.logger.info(
            "fetch_transcript.completed", video_id=result["videoId"], cached=result["cached"]
        )
        return result
