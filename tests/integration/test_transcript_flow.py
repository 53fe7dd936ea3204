"""
Integration tests: the whole stack from tool invocation to BM25 search,
with YouTube replaced by canned responses.
"""

import json

from starlette import status

from transcript_server.handlers.jsonrpc_mcp import SESSION_HEADER

from conftest import VIDEO_ID


def _invoke(client, tool_name: str, parameters: dict) -> dict:
    response = client.post("/tools/invoke", json={"tool_name": tool_name, "parameters": parameters})
    assert response.status_code == status.HTTP_200_OK, response.text
    return response.json()["result"]


def test_fetch_and_search_known_video(api_client, fake_youtube) -> None:
    fetched = _invoke(api_client, "fetch_transcript", {"videoId": VIDEO_ID})

    assert fetched["cached"] is False
    assert fetched["metadata"]["segmentCount"] == 3

    search = _invoke(api_client, "search_transcript", {"videoId": VIDEO_ID, "query": "never gonna", "maxResults": 1})

    assert search["matchingResults"] == 1
    (result,) = search["results"]
    assert "Never gonna give you up" in result["text"]
    assert result["score"] > 0

    request_paths = [r.url.path for r in fake_youtube.requests]
    assert request_paths == ["/watch", "/youtubei/v1/player", "/api/timedtext"]


def test_stored_record_matches_caption_document(api_client) -> None:
    _invoke(api_client, "fetch_transcript", {"videoId": f"https://www.youtube.com/watch?v={VIDEO_ID}"})

    full = _invoke(api_client, "get_transcript", {"videoId": VIDEO_ID, "includeFullText": True, "includeSegments": True})

    assert full["mode"] == "full_text"
    assert full["text"] == "We're no strangers to love Never gonna give you up You know the rules and so do I"
    assert [s["startMs"] for s in full["segments"]] == [0, 43000, 90000]
    assert [s["durationMs"] for s in full["segments"]] == [4000, 3500, 3000]


def test_refetch_uses_stored_copy(api_client, fake_youtube) -> None:
    _invoke(api_client, "fetch_transcript", {"videoId": VIDEO_ID})
    again = _invoke(api_client, "fetch_transcript", {"videoId": f"youtu.be/{VIDEO_ID}"})

    assert again["cached"] is True
    assert len(fake_youtube.requests) == 3


def test_long_transcript_preview_then_windows(api_client, fake_youtube, config) -> None:
    entries = "".join(
        f'<p t="{i * 5000}" d="4500">line {i} of a very long lecture about many different topics</p>'
        for i in range(1200)
    )
    fake_youtube.caption_document = f"<timedtext><body>{entries}</body></timedtext>"

    _invoke(api_client, "fetch_transcript", {"videoId": VIDEO_ID})
    preview = _invoke(api_client, "get_transcript", {"videoId": VIDEO_ID})

    assert preview["mode"] == "preview"
    assert len(preview["preview"]) == config.preview_length + 3
    assert preview["totalWindows"] == 20
    assert preview["metadata"]["duration"] == "1:39:59"

    last = _invoke(api_client, "get_transcript", {"videoId": VIDEO_ID, "windowIndex": 19})
    assert last["text"].endswith("line 1199 of a very long lecture about many different topics")

    out_of_range = api_client.post(
        "/tools/invoke",
        json={"tool_name": "get_transcript", "parameters": {"videoId": VIDEO_ID, "windowIndex": 20}},
    )
    assert out_of_range.status_code == status.HTTP_400_BAD_REQUEST
    assert out_of_range.json()["error_code"] == "WINDOW_OUT_OF_RANGE"


def test_jsonrpc_session_flow(api_client) -> None:
    init = api_client.post("/jsonrpc", json={"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
    headers = {SESSION_HEADER: init.headers[SESSION_HEADER]}

    call = api_client.post(
        "/jsonrpc",
        headers=headers,
        json={
            "jsonrpc": "2.0",
            "id": 2,
            "method": "tools/call",
            "params": {"name": "fetch_transcript", "arguments": {"videoId": VIDEO_ID}},
        },
    )
    listing = api_client.post(
        "/jsonrpc",
        headers=headers,
        json={
            "jsonrpc": "2.0",
            "id": 3,
            "method": "tools/call",
            "params": {"name": "list_transcripts", "arguments": {"pageSize": 10}},
        },
    )

    assert call.json()["result"]["isError"] is False
    listed = json.loads(listing.json()["result"]["content"][0]["text"])
    assert [item["videoId"] for item in listed["data"]] == [VIDEO_ID]
