"""Transcript data models."""

import re
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

GENERATED_KIND = "asr"


class _CamelModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class TranscriptSegment(_CamelModel):
    """Atomic unit of spoken text with its time span in milliseconds."""

    text: str = Field(..., min_length=1, description="Decoded, tag-free segment text")
    start_ms: int = Field(..., ge=0, description="Start offset in milliseconds")
    end_ms: int = Field(..., ge=0, description="End offset in milliseconds")
    duration_ms: int = Field(0, ge=0, description="end_ms - start_ms")

    @model_validator(mode="before")
    @classmethod
    def _derive_duration(cls, data: Any) -> Any:
        if isinstance(data, dict):
            start = data.get("start_ms", data.get("startMs"))
            end = data.get("end_ms", data.get("endMs"))
            if "duration_ms" not in data and "durationMs" not in data and start is not None and end is not None:
                data = {**data, "duration_ms": end - start}
        return data

    @model_validator(mode="after")
    def _check_span(self) -> "TranscriptSegment":
        if self.end_ms < self.start_ms:
            raise ValueError("end_ms must not be before start_ms")
        if self.duration_ms != self.end_ms - self.start_ms:
            raise ValueError("duration_ms must equal end_ms - start_ms")
        return self


class CaptionTrack(_CamelModel):
    """A caption track advertised by the player endpoint. Never persisted."""

    language_code: str
    base_url: str
    kind: str | None = None
    name: str | None = None

    @property
    def is_generated(self) -> bool:
        return self.kind == GENERATED_KIND


class TranscriptRecord(_CamelModel):
    """One stored transcript per video ID."""

    video_id: str = Field(..., description="Canonical 11-character YouTube video ID")
    title: str | None = Field(None, description="Video title")
    full_text: str = Field(..., description="Segment texts joined by single spaces")
    segments: list[TranscriptSegment] = Field(..., min_length=1, description="Ordered segments")
    thumbnail_url: str | None = Field(None, description="Thumbnail URL without query string")
    language_code: str | None = Field(None, description="Language of the caption track used")
    is_generated: bool = Field(False, description="Whether the caption track was auto-generated")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("video_id")
    @classmethod
    def validate_video_id(cls, v: str) -> str:
        if not VIDEO_ID_PATTERN.match(v):
            raise ValueError("video_id must be 11 characters of [A-Za-z0-9_-]")
        return v

    @model_validator(mode="after")
    def _check_order(self) -> "TranscriptRecord":
        for previous, current in zip(self.segments, self.segments[1:]):
            if current.start_ms < previous.start_ms:
                raise ValueError("segments must be ordered by start_ms")
        return self

    @classmethod
    def assemble(
        cls,
        video_id: str,
        segments: list[TranscriptSegment],
        title: str | None = None,
        track: CaptionTrack | None = None,
        thumbnail_url: str | None = None,
    ) -> "TranscriptRecord":
        """Build a record, deriving full_text from the segments."""
        return cls(
            video_id=video_id,
            title=title,
            full_text=" ".join(segment.text for segment in segments),
            segments=segments,
            thumbnail_url=thumbnail_url,
            language_code=track.language_code if track else None,
            is_generated=track.is_generated if track else False,
        )

    @property
    def duration_ms(self) -> int:
        return self.segments[-1].end_ms if self.segments else 0

    @property
    def word_count(self) -> int:
        return len(self.full_text.split())

    @property
    def character_count(self) -> int:
        return len(self.full_text)


class TimeWindow(_CamelModel):
    """A contiguous run of segments spanning at most one window duration."""

    index: int = Field(..., ge=0)
    start_ms: int = Field(..., ge=0)
    end_ms: int = Field(..., ge=0)
    text: str
    segments: list[TranscriptSegment] = Field(default_factory=list)


class ScoredWindow(TimeWindow):
    """A time window with its BM25 relevance score."""

    score: float = Field(..., gt=0)
