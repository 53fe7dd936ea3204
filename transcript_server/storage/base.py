"""Storage interface for transcript records."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from transcript_server.models.transcript import TranscriptRecord

# Public (camelCase) field names mapped to record attributes.
FILTERABLE_FIELDS = {
    "videoId": "video_id",
    "title": "title",
    "fullText": "full_text",
}
SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "videoId": "video_id",
}
DEFAULT_SORT = "createdAt:desc"


class DuplicateTranscriptError(Exception):
    """A record for this video ID already exists."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Transcript for video {video_id} already exists")


@dataclass
class TranscriptFilter:
    """
    Case-insensitive substring filters.

    Every entry of ``contains`` must match; when ``any_contains`` is set, at least
    one of its entries must match as well.
    """

    contains: dict[str, str] = field(default_factory=dict)
    any_contains: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in (*self.contains, *self.any_contains):
            if name not in FILTERABLE_FIELDS:
                raise ValueError(f"Unknown filter field '{name}'")

    def matches(self, record: TranscriptRecord) -> bool:
        if not all(_contains(record, name, value) for name, value in self.contains.items()):
            return False
        if self.any_contains:
            return any(_contains(record, name, value) for name, value in self.any_contains.items())
        return True


def _contains(record: TranscriptRecord, name: str, value: str) -> bool:
    haystack = getattr(record, FILTERABLE_FIELDS[name]) or ""
    return value.lower() in haystack.lower()


@dataclass(frozen=True)
class SortOrder:
    attribute: str
    descending: bool

    @classmethod
    def parse(cls, sort: str | None) -> "SortOrder":
        """Parse ``field:asc`` / ``field:desc``; direction defaults to ascending."""
        name, _, direction = (sort or DEFAULT_SORT).partition(":")
        name = name.strip()
        direction = (direction or "asc").strip().lower()
        if name not in SORTABLE_FIELDS:
            raise ValueError(
                f"Cannot sort by '{name}'; expected one of {', '.join(SORTABLE_FIELDS)}"
            )
        if direction not in ("asc", "desc"):
            raise ValueError(f"Sort direction must be 'asc' or 'desc', got '{direction}'")
        return cls(attribute=SORTABLE_FIELDS[name], descending=direction == "desc")


class TranscriptStore(ABC):
    """
    Abstract Base Class for transcript storage.

    Implementations own persistence and enforce one record per video ID.
    """

    @abstractmethod
    async def find_by_video_id(self, video_id: str) -> TranscriptRecord | None:
        raise NotImplementedError

    @abstractmethod
    async def create(self, record: TranscriptRecord) -> TranscriptRecord:
        """Persist a new record. Raises DuplicateTranscriptError if the ID is taken."""
        raise NotImplementedError

    @abstractmethod
    async def find_many(
        self,
        filters: TranscriptFilter | None = None,
        sort: SortOrder | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> list[TranscriptRecord]:
        raise NotImplementedError

    @abstractmethod
    async def count(self, filters: TranscriptFilter | None = None) -> int:
        raise NotImplementedError
