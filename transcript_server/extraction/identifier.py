"""Normalization of caller-supplied video identifiers."""

import re
from urllib.parse import parse_qs, urlparse

from transcript_server.models.errors import InvalidIdentifierError
from transcript_server.models.transcript import VIDEO_ID_PATTERN

_YOUTUBE_HOSTS = {
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "youtube-nocookie.com",
    "www.youtube-nocookie.com",
}
_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
_PATH_PREFIXES = ("embed", "shorts", "live", "v", "e")
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def extract_video_id(value: str) -> str | None:
    """Return the canonical 11-character video ID for an ID or URL, or None."""
    candidate = value.strip()
    if VIDEO_ID_PATTERN.match(candidate):
        return candidate

    if not _SCHEME.match(candidate):
        candidate = f"https://{candidate}"
    parsed = urlparse(candidate)
    host = (parsed.hostname or "").lower()
    segments = [part for part in parsed.path.split("/") if part]

    found: str | None = None
    if host in _SHORT_HOSTS:
        found = segments[0] if segments else None
    elif host in _YOUTUBE_HOSTS:
        if segments[:1] == ["watch"] or not segments:
            found = parse_qs(parsed.query).get("v", [None])[0]
        elif len(segments) >= 2 and segments[0] in _PATH_PREFIXES:
            found = segments[1]

    if found and VIDEO_ID_PATTERN.match(found):
        return found
    return None


def resolve_video_id(value: str) -> str:
    """Like extract_video_id, but raises InvalidIdentifierError instead of returning None."""
    video_id = extract_video_id(value) if isinstance(value, str) else None
    if video_id is None:
        raise InvalidIdentifierError(str(value))
    return video_id
