"""Data models for MCP server."""

from transcript_server.models.errors import ErrorCode, ErrorDetail, MCPError
from transcript_server.models.mcp import HealthCheckResponse
from transcript_server.models.transcript import (
    CaptionTrack,
    ScoredWindow,
    TimeWindow,
    TranscriptRecord,
    TranscriptSegment,
)
from transcript_server.models.upstream import Blocked, Playable, PlayerResponse

__all__ = [
    "Blocked",
    "CaptionTrack",
    "ErrorCode",
    "ErrorDetail",
    "HealthCheckResponse",
    "MCPError",
    "Playable",
    "PlayerResponse",
    "ScoredWindow",
    "TimeWindow",
    "TranscriptRecord",
    "TranscriptSegment",
]
