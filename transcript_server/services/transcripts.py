"""Transcript operations exposed through the MCP tools."""

import math
from functools import lru_cache
from typing import Any

from transcript_server.config import Config, get_config
from transcript_server.extraction.identifier import resolve_video_id
from transcript_server.extraction.pipeline import TranscriptExtractor
from transcript_server.models.errors import InvalidInputError, TranscriptNotFoundError
from transcript_server.models.transcript import TranscriptRecord
from transcript_server.retrieval.strategy import (
    RetrievalRequest,
    RetrievalSettings,
    preview_text,
    resolve_retrieval,
)
from transcript_server.search.ranker import BM25Params, rank_windows
from transcript_server.search.segmenter import build_windows
from transcript_server.storage.base import (
    DuplicateTranscriptError,
    SortOrder,
    TranscriptFilter,
    TranscriptStore,
)
from transcript_server.storage.memory import InMemoryTranscriptStore, JsonFileTranscriptStore
from transcript_server.utils.logging import get_logger
from transcript_server.utils.timefmt import format_range, format_time

logger = get_logger(__name__)

MAX_SEARCH_RESULTS = 20
DEFAULT_SEARCH_RESULTS = 5
MAX_PAGE_SIZE = 100
LISTING_FIELDS = ("videoId", "title", "thumbnailUrl", "languageCode", "createdAt", "updatedAt")


def _metadata(record: TranscriptRecord) -> dict[str, Any]:
    return {
        "wordCount": record.word_count,
        "characterCount": record.character_count,
        "segmentCount": len(record.segments),
        "duration": format_time(record.duration_ms),
        "durationSeconds": record.duration_ms // 1000,
        "language": record.language_code,
        "isGenerated": record.is_generated,
    }


def _pagination(page: int, page_size: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "pageSize": page_size,
        "total": total,
        "pageCount": math.ceil(total / page_size) if page_size else 0,
    }


def _check_paging(page: int, page_size: int) -> None:
    if page < 1:
        raise InvalidInputError("page must be 1 or greater.", {"page": page})
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInputError(
            f"pageSize must be between 1 and {MAX_PAGE_SIZE}.", {"pageSize": page_size}
        )


def _sort_order(sort: str | None) -> SortOrder:
    try:
        return SortOrder.parse(sort)
    except ValueError as e:
        raise InvalidInputError(str(e), {"sort": sort}) from e


class TranscriptService:
    """Glue between storage, the extraction pipeline and the read/search engines."""

    def __init__(
        self,
        store: TranscriptStore,
        extractor: TranscriptExtractor,
        config: Config,
    ) -> None:
        self.store = store
        self.extractor = extractor
        self.config = config
        self.retrieval_settings = RetrievalSettings.from_config(config)
        self.bm25_params = BM25Params(k1=config.bm25_k1, b=config.bm25_b)

    async def _require(self, video_id: str) -> TranscriptRecord:
        record = await self.store.find_by_video_id(video_id)
        if record is None:
            raise TranscriptNotFoundError(video_id)
        return record

    async def fetch(self, video_id_or_url: str) -> dict[str, Any]:
        """Return the stored transcript's metadata, extracting it from YouTube first if needed."""
        video_id = resolve_video_id(video_id_or_url)

        record = await self.store.find_by_video_id(video_id)
        cached = record is not None
        if record is None:
            extracted = await self.extractor.extract(video_id)
            try:
                record = await self.store.create(extracted)
            except DuplicateTranscriptError:
                # Another request stored the same video while this one was extracting.
                logger.info("service.concurrent_fetch_lost_race", video_id=video_id)
                record = await self._require(video_id)
                cached = True

        return {
            "message": (
                "Transcript already exists in database"
                if cached
                else "Transcript fetched and saved successfully"
            ),
            "cached": cached,
            "videoId": record.video_id,
            "title": record.title,
            "thumbnailUrl": record.thumbnail_url,
            "metadata": _metadata(record),
            "preview": preview_text(record.full_text, self.config.preview_length),
            "usage": (
                "Use get_transcript with videoId to retrieve full content, specific time ranges, "
                "or paginated windows. Use search_transcript to find passages by keyword."
            ),
        }

    async def get(self, video_id_or_url: str, request: RetrievalRequest) -> dict[str, Any]:
        video_id = resolve_video_id(video_id_or_url)
        record = await self._require(video_id)
        result = resolve_retrieval(record, request, self.retrieval_settings)
        return {
            "videoId": record.video_id,
            "title": record.title,
            "metadata": _metadata(record),
            **result.model_dump(mode="json", by_alias=True, exclude_none=True),
        }

    async def search(
        self, video_id_or_url: str, query: str, max_results: int = DEFAULT_SEARCH_RESULTS
    ) -> dict[str, Any]:
        video_id = resolve_video_id(video_id_or_url)
        max_results = min(max(max_results or DEFAULT_SEARCH_RESULTS, 1), MAX_SEARCH_RESULTS)
        record = await self._require(video_id)

        windows = build_windows(record.segments, self.config.search_segment_seconds * 1000)
        ranked = rank_windows(windows, query, self.bm25_params)[:max_results]

        results = [
            {
                "text": window.text,
                "windowIndex": window.index,
                "startTime": window.start_ms // 1000,
                "endTime": window.end_ms // 1000,
                "timeRange": format_range(window.start_ms, window.end_ms),
                "score": round(window.score, 2),
            }
            for window in ranked
        ]
        if results:
            usage = (
                f"Use get_transcript with timeRangeStartSec: {results[0]['startTime']} and "
                f"timeRangeEndSec: {results[0]['endTime'] + 1} to get full context for the top result."
            )
        else:
            usage = "No matches found. Try different keywords."

        return {
            "videoId": record.video_id,
            "title": record.title,
            "query": query,
            "totalSegments": len(windows),
            "matchingResults": len(results),
            "results": results,
            "usage": usage,
        }

    async def list_all(self, page: int = 1, page_size: int = 25, sort: str | None = None) -> dict[str, Any]:
        _check_paging(page, page_size)
        order = _sort_order(sort)
        records = await self.store.find_many(
            sort=order, start=(page - 1) * page_size, limit=page_size
        )
        total = await self.store.count()
        return {
            "data": [self._listing(record) for record in records],
            "pagination": _pagination(page, page_size, total),
        }

    async def find(
        self,
        query: str | None = None,
        video_id: str | None = None,
        title: str | None = None,
        include_full_content: bool = False,
        page: int = 1,
        page_size: int = 25,
        sort: str | None = None,
    ) -> dict[str, Any]:
        _check_paging(page, page_size)
        order = _sort_order(sort)

        contains = {}
        if video_id:
            contains["videoId"] = video_id
        if title:
            contains["title"] = title
        any_contains = {}
        if query:
            any_contains = {"title": query, "videoId": query, "fullText": query}
        filters = TranscriptFilter(contains=contains, any_contains=any_contains)

        records = await self.store.find_many(
            filters=filters, sort=order, start=(page - 1) * page_size, limit=page_size
        )
        total = await self.store.count(filters)
        return {
            "data": [self._found(record, include_full_content) for record in records],
            "pagination": _pagination(page, page_size, total),
            "filters": {"query": query or None, "videoId": video_id or None, "title": title or None},
        }

    def _listing(self, record: TranscriptRecord) -> dict[str, Any]:
        dumped = record.model_dump(mode="json", by_alias=True)
        return {name: dumped.get(name) for name in LISTING_FIELDS} | {"metadata": _metadata(record)}

    def _found(self, record: TranscriptRecord, include_full_content: bool) -> dict[str, Any]:
        if include_full_content:
            return record.model_dump(mode="json", by_alias=True)
        item = self._listing(record)
        item["fullText"] = preview_text(record.full_text, self.config.preview_length)
        item["truncated"] = len(record.full_text) > self.config.preview_length
        return item


def build_store(config: Config) -> TranscriptStore:
    if config.storage_path:
        return JsonFileTranscriptStore(config.storage_path)
    return InMemoryTranscriptStore()


@lru_cache
def get_transcript_service() -> TranscriptService:
    """Get cached service instance wired from the application config."""
    config = get_config()
    return TranscriptService(
        store=build_store(config),
        extractor=TranscriptExtractor(config),
        config=config,
    )
