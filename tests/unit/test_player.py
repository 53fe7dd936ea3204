"""Unit tests for the player endpoint client."""

import json

import pytest

from transcript_server.extraction.http import create_client
from transcript_server.extraction.player import PLAYER_PATH, PlayerClient
from transcript_server.models.errors import RateLimitedError, UpstreamStructureChangedError
from transcript_server.models.upstream import Blocked, Playable

from conftest import API_KEY, VIDEO_ID, player_payload


def test_payload_declares_client_identity():
    payload = PlayerClient("ANDROID", "20.10.38").build_payload(VIDEO_ID)

    assert payload == {
        "context": {"client": {"clientName": "ANDROID", "clientVersion": "20.10.38"}},
        "videoId": VIDEO_ID,
    }


@pytest.mark.asyncio
async def test_fetch_posts_signed_request(config, fake_youtube):
    async with create_client(config, fake_youtube.transport) as client:
        player = await PlayerClient().fetch(client, VIDEO_ID, API_KEY)

    assert isinstance(player.playability, Playable)
    assert len(player.caption_tracks) == 1
    request = fake_youtube.requests_to(PLAYER_PATH)[0]
    assert request.method == "POST"
    assert request.url.params["key"] == API_KEY
    assert json.loads(request.content)["context"]["client"]["clientName"] == "ANDROID"


@pytest.mark.asyncio
async def test_fetch_returns_blocked_playability(config, fake_youtube):
    fake_youtube.player = player_payload(status="ERROR", reason="This video is private")

    async with create_client(config, fake_youtube.transport) as client:
        player = await PlayerClient().fetch(client, VIDEO_ID, API_KEY)

    assert isinstance(player.playability, Blocked)
    assert player.playability.reason == "This video is private"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>not json</html>", "[1, 2, 3]"])
async def test_non_object_body_is_a_structure_change(config, fake_youtube, body):
    fake_youtube.player = body

    async with create_client(config, fake_youtube.transport) as client:
        with pytest.raises(UpstreamStructureChangedError):
            await PlayerClient().fetch(client, VIDEO_ID, API_KEY)


@pytest.mark.asyncio
async def test_player_429_is_rate_limited(config, fake_youtube):
    fake_youtube.player_status = 429

    async with create_client(config, fake_youtube.transport) as client:
        with pytest.raises(RateLimitedError) as excinfo:
            await PlayerClient().fetch(client, VIDEO_ID, API_KEY)

    assert excinfo.value.details["step"] == "player endpoint"
