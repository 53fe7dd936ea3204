"""Error handling data models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes."""

    # Input Validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_QUERY = "INVALID_QUERY"
    WINDOW_OUT_OF_RANGE = "WINDOW_OUT_OF_RANGE"

    # Storage
    NOT_FOUND = "NOT_FOUND"

    # Upstream
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_STRUCTURE_CHANGED = "UPSTREAM_STRUCTURE_CHANGED"
    UPSTREAM_REQUEST_FAILED = "UPSTREAM_REQUEST_FAILED"
    NOT_PLAYABLE = "NOT_PLAYABLE"
    NO_CAPTIONS = "NO_CAPTIONS"
    UNSUPPORTED_PROTECTION = "UNSUPPORTED_PROTECTION"
    EMPTY_UPSTREAM_RESPONSE = "EMPTY_UPSTREAM_RESPONSE"

    # Tool Execution
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"

    # System Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: ErrorCode = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    retryable: bool = Field(False, description="Whether the caller may retry later")
    details: dict[str, Any] | None = Field(None, description="Additional error context")
    correlation_id: str | None = Field(None, description="Request correlation ID")


# Custom exception classes
class MCPError(Exception):
    """Base exception for MCP server errors."""

    retryable: bool = False

    def __init__(self, code: ErrorCode, message: str, details: dict[str, Any] | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def to_detail(self, correlation_id: str | None = None) -> ErrorDetail:
        """Serializable view of the error."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            retryable=self.retryable,
            details=self.details,
            correlation_id=correlation_id,
        )


class InvalidInputError(MCPError):
    """Invalid input provided."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_INPUT, message, details)


class ToolExecutionError(MCPError):
    """Tool execution failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.TOOL_EXECUTION_ERROR, message, details)


class InvalidIdentifierError(MCPError):
    """The caller supplied something that is neither a video ID nor a supported URL."""

    def __init__(self, value: str) -> None:
        super().__init__(
            ErrorCode.INVALID_IDENTIFIER,
            f'Invalid YouTube video ID or URL: "{value}". '
            "Please provide a valid 11-character video ID or YouTube URL.",
            {"input": value},
        )


class InvalidQueryError(MCPError):
    """The search query has no usable terms."""

    def __init__(self, query: str) -> None:
        super().__init__(
            ErrorCode.INVALID_QUERY,
            "Query is empty or contains no searchable terms.",
            {"query": query},
        )


class WindowOutOfRangeError(MCPError):
    """A window index past the end of the transcript was requested."""

    def __init__(self, index: int, total: int) -> None:
        super().__init__(
            ErrorCode.WINDOW_OUT_OF_RANGE,
            f"Window index {index} is out of range; the transcript has {total} windows "
            f"(valid indexes 0-{max(total - 1, 0)}).",
            {"windowIndex": index, "totalWindows": total},
        )


class TranscriptNotFoundError(MCPError):
    """No stored transcript for the identifier."""

    def __init__(self, video_id: str) -> None:
        super().__init__(
            ErrorCode.NOT_FOUND,
            f"No transcript found for video ID: {video_id}. "
            "Use fetch_transcript to fetch it from YouTube first.",
            {"videoId": video_id},
        )


class UpstreamError(MCPError):
    """Base class for failures reported while talking to YouTube."""

    def __init__(self, code: ErrorCode, video_id: str, message: str, **details: Any) -> None:
        self.video_id = video_id
        super().__init__(code, f"{message} (video {video_id})", {"videoId": video_id, **details})


class RateLimitedError(UpstreamError):
    """YouTube answered with 429 or a captcha; back off before retrying."""

    retryable = True

    def __init__(self, video_id: str, step: str) -> None:
        super().__init__(
            ErrorCode.RATE_LIMITED,
            video_id,
            f"YouTube is rate limiting requests during {step}; retry later",
            step=step,
        )


class UpstreamStructureChangedError(UpstreamError):
    """A page or document no longer has the shape the extractors expect."""

    def __init__(self, video_id: str, message: str, **details: Any) -> None:
        super().__init__(ErrorCode.UPSTREAM_STRUCTURE_CHANGED, video_id, message, **details)


class UpstreamRequestFailedError(UpstreamError):
    """Network failure or unexpected HTTP status from YouTube."""

    retryable = True

    def __init__(self, video_id: str, step: str, reason: str) -> None:
        super().__init__(
            ErrorCode.UPSTREAM_REQUEST_FAILED,
            video_id,
            f"Request to YouTube failed during {step}: {reason}",
            step=step,
        )


class NotPlayableError(UpstreamError):
    """Private, deleted, region-locked or age-restricted video."""

    def __init__(self, video_id: str, status: str, reason: str) -> None:
        super().__init__(ErrorCode.NOT_PLAYABLE, video_id, reason, status=status)
        self.reason = reason


class NoCaptionsError(UpstreamError):
    """The video has no caption tracks."""

    def __init__(self, video_id: str) -> None:
        super().__init__(ErrorCode.NO_CAPTIONS, video_id, "No captions available for this video")


class UnsupportedProtectionError(UpstreamError):
    """Caption tracks require a proof-of-origin token."""

    def __init__(self, video_id: str) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED_PROTECTION,
            video_id,
            "Caption tracks require a proof-of-origin token, which is not supported",
        )


class EmptyUpstreamResponseError(UpstreamError):
    """YouTube returned an empty caption document."""

    retryable = True

    def __init__(self, video_id: str) -> None:
        super().__init__(
            ErrorCode.EMPTY_UPSTREAM_RESPONSE,
            video_id,
            "YouTube returned an empty caption document; retry later",
        )
