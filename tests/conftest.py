import json
from collections.abc import Callable, Iterator

import httpx
import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from transcript_server.config import Config
from transcript_server.extraction.pipeline import TranscriptExtractor
from transcript_server.extraction.player import PLAYER_PATH
from transcript_server.models.mcp import ToolExecutionContext
from transcript_server.models.transcript import TranscriptRecord, TranscriptSegment
from transcript_server.registry.tool_registry import ToolRegistry, register_all_tools
from transcript_server.services.transcripts import TranscriptService
from transcript_server.storage.memory import InMemoryTranscriptStore

VIDEO_ID = "dQw4w9WgXcQ"
VIDEO_TITLE = "Rick Astley - Never Gonna Give You Up (Official Music Video)"
API_KEY = "AIzaSyTestKey_0123456789"
CAPTION_URL = f"https://www.youtube.com/api/timedtext?v={VIDEO_ID}&lang=en&fmt=srv3"

COMPACT_DOCUMENT = (
    '<?xml version="1.0" encoding="utf-8" ?><timedtext format="3"><body>'
    '<p t="0" dur="4000">We&#39;re no strangers to love</p>'
    '<p t="43000" dur="3500">Never gonna give you up</p>'
    '<p t="90000" dur="3000">You know the rules and so do I</p>'
    "</body></timedtext>"
)


def pytest_configure(config):
    """Registers the transcript tools for the test session."""
    register_all_tools()


def watch_page(api_key: str | None = API_KEY, title: str = VIDEO_TITLE) -> str:
    script = f'<script>ytcfg.set({{"INNERTUBE_API_KEY": "{api_key}"}});</script>' if api_key else ""
    return (
        f"<html><head><title>{title} - YouTube</title>"
        f'<meta name="title" content="{title}"></head>'
        f"<body>{script}</body></html>"
    )


def caption_track(language_code: str = "en", kind: str | None = None, base_url: str = CAPTION_URL) -> dict:
    track = {"baseUrl": base_url, "languageCode": language_code, "name": {"simpleText": language_code}}
    if kind:
        track["kind"] = kind
    return track


def player_payload(tracks: list[dict] | None = None, status: str = "OK", reason: str | None = None) -> dict:
    payload = {
        "playabilityStatus": {"status": status},
        "videoDetails": {
            "videoId": VIDEO_ID,
            "title": VIDEO_TITLE,
            "thumbnail": {
                "thumbnails": [
                    {"url": f"https://i.ytimg.com/vi/{VIDEO_ID}/default.jpg"},
                    {"url": f"https://i.ytimg.com/vi/{VIDEO_ID}/maxresdefault.jpg?sqp=-oaymw"},
                ]
            },
        },
    }
    if reason:
        payload["playabilityStatus"]["reason"] = reason
    if tracks is not None:
        payload["captions"] = {"playerCaptionsTracklistRenderer": {"captionTracks": tracks}}
    return payload


class FakeYouTube:
    """Serves canned watch page, player and caption responses and records every request."""

    def __init__(self) -> None:
        self.watch_pages: list[str] = [watch_page()]
        self.watch_status = 200
        self.player: dict | str = player_payload([caption_track()])
        self.player_status = 200
        self.caption_document = COMPACT_DOCUMENT
        self.caption_status = 200
        self.requests: list[httpx.Request] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/watch":
            served = sum(1 for r in self.requests if r.url.path == "/watch")
            page = self.watch_pages[min(served, len(self.watch_pages)) - 1]
            return httpx.Response(self.watch_status, text=page)
        if path == PLAYER_PATH:
            body = self.player if isinstance(self.player, str) else json.dumps(self.player)
            return httpx.Response(self.player_status, text=body, headers={"Content-Type": "application/json"})
        if path == "/api/timedtext":
            return httpx.Response(self.caption_status, text=self.caption_document)
        return httpx.Response(404)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def fake_youtube() -> FakeYouTube:
    return FakeYouTube()


@pytest.fixture
def config() -> Config:
    return Config(_env_file=None)


@pytest.fixture
def extractor(config: Config, fake_youtube: FakeYouTube) -> TranscriptExtractor:
    return TranscriptExtractor(config, transport=fake_youtube.transport)


@pytest.fixture
def service(config: Config, extractor: TranscriptExtractor) -> TranscriptService:
    return TranscriptService(store=InMemoryTranscriptStore(), extractor=extractor, config=config)


@pytest.fixture
def make_record() -> Callable[..., TranscriptRecord]:
    """Factory for records built from (text, start_ms, duration_ms) triples."""

    def _factory(
        entries: list[tuple[str, int, int]] | None = None,
        video_id: str = VIDEO_ID,
        title: str | None = VIDEO_TITLE,
    ) -> TranscriptRecord:
        entries = entries or [
            ("We're no strangers to love", 0, 4000),
            ("Never gonna give you up", 43000, 3500),
            ("You know the rules and so do I", 90000, 3000),
        ]
        segments = [
            TranscriptSegment(text=text, start_ms=start, end_ms=start + duration)
            for text, start, duration in entries
        ]
        return TranscriptRecord.assemble(video_id=video_id, segments=segments, title=title)

    return _factory


@pytest.fixture
def tool_context() -> ToolExecutionContext:
    """Fixture for a ToolExecutionContext with a plain structlog logger."""
    return ToolExecutionContext(correlation_id="test-corr-id", logger=structlog.get_logger("test_logger"))


@pytest.fixture
def registry_with_service(service: TranscriptService) -> Iterator[ToolRegistry]:
    """Swap the registered tools for ones bound to the test service, then restore the defaults."""
    registry = ToolRegistry()
    registry._clear()
    register_all_tools(service)
    yield registry
    registry._clear()
    register_all_tools()


@pytest.fixture
def api_client(registry_with_service: ToolRegistry, service: TranscriptService) -> Iterator[TestClient]:
    """
    Test client for the REST and JSON-RPC routes, backed by the fake YouTube.

    Routes are copied onto a fresh app so the FastMCP lifespan of the global app is not entered.
    """
    from transcript_server.server import app as global_app

    test_app = FastAPI()
    for route in global_app.routes:
        test_app.routes.append(route)
    test_app.state.registry = registry_with_service
    test_app.state.service = service

    with TestClient(test_app) as c:
        yield c
