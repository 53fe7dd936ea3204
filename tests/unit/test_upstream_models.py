"""Unit tests for the typed player response."""

from transcript_server.models.upstream import Blocked, Playable, PlayerResponse


def test_playable_response_with_tracks():
    payload = {
        "playabilityStatus": {"status": "OK"},
        "captions": {
            "playerCaptionsTracklistRenderer": {
                "captionTracks": [
                    {"baseUrl": "https://x/a", "languageCode": "en", "kind": "asr", "name": {"runs": [{"text": "English (auto)"}]}},
                    {"baseUrl": "https://x/b", "languageCode": "de", "name": {"simpleText": "German"}},
                    {"languageCode": "fr"},
                ]
            }
        },
        "videoDetails": {
            "title": "A title",
            "thumbnail": {"thumbnails": [{"url": "https://i.ytimg.com/a.jpg"}, {"url": "https://i.ytimg.com/b.jpg?sqp=1"}]},
        },
    }

    player = PlayerResponse.from_payload(payload)

    assert isinstance(player.playability, Playable)
    assert [(t.language_code, t.is_generated, t.name) for t in player.caption_tracks] == [
        ("en", True, "English (auto)"),
        ("de", False, "German"),
    ]
    assert player.title == "A title"
    assert player.thumbnail_url == "https://i.ytimg.com/b.jpg"


def test_blocked_response_keeps_upstream_reason():
    player = PlayerResponse.from_payload(
        {"playabilityStatus": {"status": "LOGIN_REQUIRED", "reason": "Sign in to confirm your age"}}
    )

    assert isinstance(player.playability, Blocked)
    assert player.playability.upstream_status == "LOGIN_REQUIRED"
    assert player.playability.reason == "Sign in to confirm your age"
    assert player.caption_tracks == []
    assert player.thumbnail_url is None


def test_blocked_reason_from_error_screen():
    player = PlayerResponse.from_payload(
        {
            "playabilityStatus": {
                "status": "UNPLAYABLE",
                "errorScreen": {
                    "playerErrorMessageRenderer": {
                        "reason": {"runs": [{"text": "Video "}, {"text": "unavailable"}]}
                    }
                },
            }
        }
    )

    assert player.playability.reason == "Video unavailable"


def test_missing_status_is_blocked():
    player = PlayerResponse.from_payload({})

    assert isinstance(player.playability, Blocked)
    assert player.playability.upstream_status == "UNKNOWN"
    assert player.playability.reason == "UNKNOWN"
