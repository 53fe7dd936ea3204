"""Caption track selection."""

from transcript_server.models.errors import NoCaptionsError, UnsupportedProtectionError
from transcript_server.models.transcript import CaptionTrack

PROOF_OF_ORIGIN_MARKER = "exp=xpe"
PREFERRED_LANGUAGE = "en"


def requires_proof_of_origin(track: CaptionTrack) -> bool:
    return PROOF_OF_ORIGIN_MARKER in track.base_url


def _is_english(track: CaptionTrack) -> bool:
    code = track.language_code.lower()
    return code == PREFERRED_LANGUAGE or code.startswith(f"{PREFERRED_LANGUAGE}-")


def select_caption_track(video_id: str, tracks: list[CaptionTrack]) -> CaptionTrack:
    """
    Pick exactly one track: human-authored English, then any English, then the
    first track in upstream order.

    Raises NoCaptionsError for an empty list and UnsupportedProtectionError when
    any listed track demands a proof-of-origin token; such tracks are never
    skipped in favour of others.
    """
    if not tracks:
        raise NoCaptionsError(video_id)
    if any(requires_proof_of_origin(track) for track in tracks):
        raise UnsupportedProtectionError(video_id)

    english = [track for track in tracks if _is_english(track)]
    for track in english:
        if not track.is_generated:
            return track
    if english:
        return english[0]
    return tracks[0]
