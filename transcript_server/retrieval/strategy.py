"""Decides how much of a stored transcript to hand back for a read request."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from transcript_server.config import Config
from transcript_server.models.errors import InvalidInputError, WindowOutOfRangeError
from transcript_server.models.transcript import TranscriptRecord, TranscriptSegment
from transcript_server.search.segmenter import build_windows
from transcript_server.utils.timefmt import format_range


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RetrievalRequest(_Payload):
    """Optional caller parameters of a get_transcript call."""

    time_range_start_sec: float | None = Field(None, ge=0)
    time_range_end_sec: float | None = Field(None, ge=0)
    window_index: int | None = Field(None, ge=0)
    window_size_sec: int | None = Field(None, ge=1)
    explicit_full_text: bool = False
    include_segments: bool = False


@dataclass(frozen=True)
class RetrievalSettings:
    window_size_sec: int = 300
    max_full_transcript_length: int = 50000
    preview_length: int = 500

    @classmethod
    def from_config(cls, config: Config) -> "RetrievalSettings":
        return cls(
            window_size_sec=config.chunk_size_seconds,
            max_full_transcript_length=config.max_full_transcript_length,
            preview_length=config.preview_length,
        )


class TimeRangeResult(_Payload):
    mode: Literal["time_range"] = "time_range"
    start_sec: float
    end_sec: float
    time_range: str
    text: str
    segment_count: int
    segments: list[TranscriptSegment] | None = None


class WindowResult(_Payload):
    mode: Literal["window"] = "window"
    window_index: int
    total_windows: int
    window_size_sec: int
    start_sec: float
    end_sec: float
    time_range: str
    text: str
    segment_count: int
    segments: list[TranscriptSegment] | None = None


class FullTextResult(_Payload):
    mode: Literal["full_text"] = "full_text"
    text: str
    segment_count: int
    segments: list[TranscriptSegment] | None = None


class PreviewResult(_Payload):
    mode: Literal["preview"] = "preview"
    preview: str
    character_count: int
    total_windows: int
    window_size_sec: int
    hints: dict[str, str]


RetrievalResult = TimeRangeResult | WindowResult | FullTextResult | PreviewResult


def preview_text(text: str, length: int) -> str:
    return text if len(text) <= length else text[:length] + "..."


def _joined(segments: list[TranscriptSegment]) -> str:
    return " ".join(segment.text for segment in segments)


def _time_range(
    record: TranscriptRecord, request: RetrievalRequest
) -> TimeRangeResult:
    start_ms = int((request.time_range_start_sec or 0) * 1000)
    if request.time_range_end_sec is None:
        end_ms = record.duration_ms
    else:
        end_ms = int(request.time_range_end_sec * 1000)
    if end_ms <= start_ms and request.time_range_end_sec is not None:
        raise InvalidInputError(
            "timeRangeEndSec must be greater than timeRangeStartSec.",
            {"timeRangeStartSec": request.time_range_start_sec, "timeRangeEndSec": request.time_range_end_sec},
        )
    selected = [segment for segment in record.segments if start_ms <= segment.start_ms < end_ms]
    return TimeRangeResult(
        start_sec=start_ms / 1000,
        end_sec=end_ms / 1000,
        time_range=format_range(start_ms, end_ms),
        text=_joined(selected),
        segment_count=len(selected),
        segments=selected if request.include_segments else None,
    )


def _window(
    record: TranscriptRecord, request: RetrievalRequest, settings: RetrievalSettings
) -> WindowResult:
    size_sec = request.window_size_sec or settings.window_size_sec
    windows = build_windows(record.segments, size_sec * 1000)
    index = request.window_index or 0
    if index >= len(windows):
        raise WindowOutOfRangeError(index, len(windows))
    window = windows[index]
    return WindowResult(
        window_index=index,
        total_windows=len(windows),
        window_size_sec=size_sec,
        start_sec=window.start_ms / 1000,
        end_sec=window.end_ms / 1000,
        time_range=format_range(window.start_ms, window.end_ms),
        text=window.text,
        segment_count=len(window.segments),
        segments=window.segments if request.include_segments else None,
    )


def _hints(record: TranscriptRecord, total_windows: int, size_sec: int) -> dict[str, str]:
    return {
        "fullText": "Call get_transcript with includeFullText: true to load the entire transcript.",
        "timeRange": (
            "Call get_transcript with timeRangeStartSec and timeRangeEndSec (seconds) "
            f"to read a span; the video lasts {record.duration_ms // 1000} seconds."
        ),
        "window": (
            f"Call get_transcript with windowIndex 0-{max(total_windows - 1, 0)} to page through "
            f"{size_sec}-second windows (windowSizeSec changes the size)."
        ),
        "search": "Call search_transcript with a query to find the most relevant passages.",
    }


def resolve_retrieval(
    record: TranscriptRecord,
    request: RetrievalRequest,
    settings: RetrievalSettings,
) -> RetrievalResult:
    """
    Pick one of four outcomes, checked in this order: an explicit time range,
    an explicit window, the full text (when asked for or short enough), and
    otherwise a bounded preview with navigation hints.
    """
    if request.time_range_start_sec is not None or request.time_range_end_sec is not None:
        return _time_range(record, request)

    if request.window_index is not None:
        return _window(record, request, settings)

    if request.explicit_full_text or record.character_count <= settings.max_full_transcript_length:
        return FullTextResult(
            text=record.full_text,
            segment_count=len(record.segments),
            segments=record.segments if request.include_segments else None,
        )

    size_sec = request.window_size_sec or settings.window_size_sec
    total_windows = len(build_windows(record.segments, size_sec * 1000))
    return PreviewResult(
        preview=preview_text(record.full_text, settings.preview_length),
        character_count=record.character_count,
        total_windows=total_windows,
        window_size_sec=size_sec,
        hints=_hints(record, total_windows, size_sec),
    )
