"""End-to-end transcript extraction."""

from collections.abc import Sequence

import httpx

from transcript_server.config import Config
from transcript_server.extraction.captions import (
    DEFAULT_PARSERS,
    CaptionParser,
    fetch_caption_document,
    parse_caption_document,
)
from transcript_server.extraction.http import create_client
from transcript_server.extraction.player import PlayerClient
from transcript_server.extraction.tracks import select_caption_track
from transcript_server.extraction.watch_page import WatchPageFetcher
from transcript_server.models.errors import NotPlayableError
from transcript_server.models.transcript import TranscriptRecord
from transcript_server.models.upstream import Blocked
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)


class TranscriptExtractor:
    """
    Turns a canonical video ID into a TranscriptRecord.

    The steps run strictly in sequence: watch page (with at most one consent
    retry), signing key, player endpoint, playability check, track selection,
    caption download and parsing. Every failure surfaces as an MCPError subclass;
    nothing is retried and no partial record is ever returned.

    Concurrent calls for the same ID are not deduplicated.
    """

    def __init__(
        self,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
        page_fetcher: WatchPageFetcher | None = None,
        player_client: PlayerClient | None = None,
        parsers: Sequence[CaptionParser] = DEFAULT_PARSERS,
    ) -> None:
        self.config = config
        self.transport = transport
        self.page_fetcher = page_fetcher or WatchPageFetcher()
        self.player_client = player_client or PlayerClient(
            client_name=config.innertube_client_name,
            client_version=config.innertube_client_version,
        )
        self.parsers = parsers

    async def extract(self, video_id: str) -> TranscriptRecord:
        logger.info("extraction.started", video_id=video_id)
        async with create_client(self.config, self.transport) as client:
            page = await self.page_fetcher.fetch(client, video_id)
            player = await self.player_client.fetch(client, video_id, page.api_key)

            playability = player.playability
            if isinstance(playability, Blocked):
                logger.info(
                    "extraction.not_playable",
                    video_id=video_id,
                    status=playability.upstream_status,
                    reason=playability.reason,
                )
                raise NotPlayableError(video_id, playability.upstream_status, playability.reason)

            track = select_caption_track(video_id, player.caption_tracks)
            logger.info(
                "extraction.track_selected",
                video_id=video_id,
                language_code=track.language_code,
                generated=track.is_generated,
            )

            document = await fetch_caption_document(client, video_id, track)

        segments = parse_caption_document(video_id, document, self.parsers)
        record = TranscriptRecord.assemble(
            video_id=video_id,
            segments=segments,
            title=page.title or player.title or f"YouTube Video {video_id}",
            track=track,
            thumbnail_url=player.thumbnail_url,
        )
        logger.info(
            "extraction.completed",
            video_id=video_id,
            segment_count=len(record.segments),
            character_count=record.character_count,
        )
        return record
