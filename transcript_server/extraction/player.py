"""Innertube player endpoint client."""

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from transcript_server.extraction.http import send
from transcript_server.models.errors import UpstreamStructureChangedError
from transcript_server.models.upstream import PlayerResponse
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)

PLAYER_PATH = "/youtubei/v1/player"


@dataclass(frozen=True)
class PlayerClient:
    """
    Calls the player endpoint while declaring a fixed, non-browser client identity.

    The endpoint answers consistently only for the mobile client profile, so the
    name/version pair is sent on every request.
    """

    client_name: str = "ANDROID"
    client_version: str = "20.10.38"

    def build_payload(self, video_id: str) -> dict:
        return {
            "context": {
                "client": {
                    "clientName": self.client_name,
                    "clientVersion": self.client_version,
                }
            },
            "videoId": video_id,
        }

    async def fetch(self, client: httpx.AsyncClient, video_id: str, api_key: str) -> PlayerResponse:
        response = await send(
            client,
            "POST",
            PLAYER_PATH,
            params={"key": api_key},
            json=self.build_payload(video_id),
            video_id=video_id,
            step="player endpoint",
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamStructureChangedError(
                video_id, "Player endpoint did not return JSON"
            ) from e
        if not isinstance(payload, dict):
            raise UpstreamStructureChangedError(video_id, "Player endpoint returned an unexpected document")

        try:
            player = PlayerResponse.from_payload(payload)
        except (ValidationError, AttributeError) as e:
            raise UpstreamStructureChangedError(
                video_id, "Player response has an unexpected shape"
            ) from e

        logger.info(
            "extraction.player_fetched",
            video_id=video_id,
            playability=player.playability.status,
            track_count=len(player.caption_tracks),
        )
        return player
