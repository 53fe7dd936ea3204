"""In-memory and JSON-file transcript stores."""

import asyncio
import json
from datetime import datetime
from pathlib import Path

from transcript_server.models.transcript import TranscriptRecord
from transcript_server.storage.base import (
    DEFAULT_SORT,
    DuplicateTranscriptError,
    SortOrder,
    TranscriptFilter,
    TranscriptStore,
)
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)


def _sort_key(attribute: str):
    def key(record: TranscriptRecord):
        value = getattr(record, attribute)
        if value is None:
            return ""
        if isinstance(value, datetime):
            return value.timestamp()
        return value.lower() if isinstance(value, str) else value

    return key


class InMemoryTranscriptStore(TranscriptStore):
    """Keeps records in a dict keyed by video ID."""

    def __init__(self) -> None:
        self._records: dict[str, TranscriptRecord] = {}
        self._lock = asyncio.Lock()

    async def find_by_video_id(self, video_id: str) -> TranscriptRecord | None:
        return self._records.get(video_id)

    async def create(self, record: TranscriptRecord) -> TranscriptRecord:
        async with self._lock:
            if record.video_id in self._records:
                raise DuplicateTranscriptError(record.video_id)
            await self._persist({**self._records, record.video_id: record})
            self._records[record.video_id] = record
        logger.info("storage.transcript_created", video_id=record.video_id)
        return record

    async def find_many(
        self,
        filters: TranscriptFilter | None = None,
        sort: SortOrder | None = None,
        start: int = 0,
        limit: int | None = None,
    ) -> list[TranscriptRecord]:
        sort = sort or SortOrder.parse(DEFAULT_SORT)
        matching = [r for r in self._records.values() if filters is None or filters.matches(r)]
        matching.sort(key=_sort_key(sort.attribute), reverse=sort.descending)
        end = None if limit is None else start + limit
        return matching[start:end]

    async def count(self, filters: TranscriptFilter | None = None) -> int:
        if filters is None:
            return len(self._records)
        return sum(1 for r in self._records.values() if filters.matches(r))

    async def _persist(self, records: dict[str, TranscriptRecord]) -> None:
        """Hook for subclasses that write through to disk before a create is committed."""


class JsonFileTranscriptStore(InMemoryTranscriptStore):
    """In-memory store that loads from and rewrites a JSON file on every create."""

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            for item in raw:
                record = TranscriptRecord.model_validate(item)
                self._records[record.video_id] = record
            logger.info("storage.loaded", path=str(self.path), count=len(self._records))

    async def _persist(self, records: dict[str, TranscriptRecord]) -> None:
        payload = [record.model_dump(mode="json", by_alias=True) for record in records.values()]
        text = json.dumps(payload, ensure_ascii=False)
        await asyncio.to_thread(self._write, text)

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(self.path)
