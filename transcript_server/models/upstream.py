"""Typed view of the innertube player response."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from transcript_server.models.transcript import CaptionTrack

PLAYABLE_STATUS = "OK"


class Playable(BaseModel):
    """The video can be played, so its caption tracks are usable."""

    status: Literal["playable"] = "playable"


class Blocked(BaseModel):
    """Private, deleted, region-locked, age-restricted or otherwise refused."""

    status: Literal["blocked"] = "blocked"
    upstream_status: str = Field(..., description="Raw playabilityStatus.status value")
    reason: str = Field(..., description="Upstream-supplied human-readable reason")


Playability = Annotated[Playable | Blocked, Field(discriminator="status")]

_playability_adapter: TypeAdapter[Playable | Blocked] = TypeAdapter(Playability)


class PlayerResponse(BaseModel):
    """The parts of the player response the pipeline relies on."""

    playability: Playability
    caption_tracks: list[CaptionTrack] = Field(default_factory=list)
    title: str | None = None
    thumbnail_url: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "PlayerResponse":
        """Translate the raw JSON document into the typed response."""
        return cls(
            playability=_parse_playability(payload.get("playabilityStatus") or {}),
            caption_tracks=_parse_caption_tracks(payload.get("captions") or {}),
            title=(payload.get("videoDetails") or {}).get("title"),
            thumbnail_url=_parse_thumbnail(payload.get("videoDetails") or {}),
        )


def _parse_playability(raw: dict[str, Any]) -> Playable | Blocked:
    status = raw.get("status") or "UNKNOWN"
    if status == PLAYABLE_STATUS:
        return _playability_adapter.validate_python({"status": "playable"})
    reason = raw.get("reason") or _nested_reason(raw) or status
    return _playability_adapter.validate_python(
        {"status": "blocked", "upstream_status": status, "reason": reason}
    )


def _nested_reason(raw: dict[str, Any]) -> str | None:
    # Some refusals only carry the reason inside errorScreen renderers.
    renderer = (raw.get("errorScreen") or {}).get("playerErrorMessageRenderer") or {}
    runs = (renderer.get("reason") or {}).get("runs") or []
    text = "".join(run.get("text", "") for run in runs)
    return text or (renderer.get("reason") or {}).get("simpleText")


def _parse_caption_tracks(captions: dict[str, Any]) -> list[CaptionTrack]:
    tracks: list[CaptionTrack] = []
    for renderer in captions.values():
        if not isinstance(renderer, dict):
            continue
        for raw in renderer.get("captionTracks") or []:
            base_url = raw.get("baseUrl")
            language_code = raw.get("languageCode")
            if not base_url or not language_code:
                continue
            name = raw.get("name") or {}
            tracks.append(
                CaptionTrack(
                    language_code=language_code,
                    base_url=base_url,
                    kind=raw.get("kind"),
                    name=name.get("simpleText") or "".join(r.get("text", "") for r in name.get("runs", [])) or None,
                )
            )
    return tracks


def _parse_thumbnail(details: dict[str, Any]) -> str | None:
    thumbnails = (details.get("thumbnail") or {}).get("thumbnails") or []
    if not thumbnails:
        return None
    url = thumbnails[-1].get("url")
    return url.split("?")[0] if url else None
