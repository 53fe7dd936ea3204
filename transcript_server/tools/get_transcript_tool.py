"""Tool that reads a stored transcript without flooding the caller's context."""

from typing import Any

from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.retrieval.strategy import RetrievalRequest
from transcript_server.tools.base import BaseMCPTool
from transcript_server.tools.fetch_transcript_tool import VIDEO_ID_PROPERTY


class GetTranscriptTool(BaseMCPTool):
    """Returns a time range, one window, the full text or a preview of a stored transcript."""

    @property
    def name(self) -> str:
        return "get_transcript"

    @property
    def description(self) -> str:
        return (
            "Get a saved transcript by YouTube video ID. Short transcripts are returned in full; "
            "long ones return a preview with instructions. Use timeRangeStartSec/timeRangeEndSec "
            "for a time range or windowIndex (with optional windowSizeSec) to page through "
            "fixed-size windows. Set includeFullText to force the whole transcript."
        )

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "videoId": VIDEO_ID_PROPERTY,
                "timeRangeStartSec": {
                    "type": "number",
                    "minimum": 0,
                    "description": "Start of the time range in seconds",
                },
                "timeRangeEndSec": {
                    "type": "number",
                    "minimum": 0,
                    "description": "End of the time range in seconds (defaults to the end of the video)",
                },
                "windowIndex": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Zero-based index of the time window to return",
                },
                "windowSizeSec": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "Window size in seconds (defaults to the server's chunk size)",
                },
                "includeFullText": {
                    "type": "boolean",
                    "default": False,
                    "description": "Return the whole transcript regardless of its length",
                },
                "includeSegments": {
                    "type": "boolean",
                    "default": False,
                    "description": "Also return the timestamped segments",
                },
            },
            "required": ["videoId"],
        }

    async def handler(self, params: dict[str, Any], context: ToolExecutionContext) -> dict[str, Any]:
        request = RetrievalRequest(
            time_range_start_sec=params.get("timeRangeStartSec"),
            time_range_end_sec=params.get("timeRangeEndSec"),
            window_index=params.get("windowIndex"),
            window_size_sec=params.get("windowSizeSec"),
            explicit_full_text=params.get("includeFullText", False),
            include_segments=params.get("includeSegments", False),
        )
        result = await self.service.get(params["videoId"], request)
        context.logger.info("get_transcript.completed", video_id=result["videoId"], mode=result["mode"])
        return result
