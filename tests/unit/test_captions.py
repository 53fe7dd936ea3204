"""Unit tests for caption document parsing."""

import pytest

from transcript_server.extraction.captions import (
    CompactTagParser,
    VerboseTagParser,
    clean_caption_text,
    normalize_caption_url,
    parse_caption_document,
)
from transcript_server.models.errors import ErrorCode, UpstreamStructureChangedError

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url, expected", [
    ("https://www.youtube.com/api/timedtext?v=x&fmt=srv3", "https://www.youtube.com/api/timedtext?v=x"),
    ("https://www.youtube.com/api/timedtext?fmt=json3&v=x", "https://www.youtube.com/api/timedtext?v=x"),
    ("https://www.youtube.com/api/timedtext?v=x&fmt=srv3&lang=en", "https://www.youtube.com/api/timedtext?v=x&lang=en"),
    ("https://www.youtube.com/api/timedtext?v=x&lang=en", "https://www.youtube.com/api/timedtext?v=x&lang=en"),
])
def test_normalize_caption_url_drops_format(url, expected):
    assert normalize_caption_url(url) == expected


@pytest.mark.parametrize("raw, expected", [
    ("Never gonna give you up", "Never gonna give you up"),
    ("Tom &amp; Jerry", "Tom & Jerry"),
    ("it&#39;s", "it's"),
    ("it&amp;#39;s", "it's"),
    ("&lt;b&gt;bold&lt;/b&gt; move", "bold move"),
    ('<font color="#E5E5E5">coloured</font> words', "coloured words"),
    ("<s>split</s> <s>words</s>", "split words"),
    ("a &lt; b", "a < b"),
    ("x &lt;y and z&gt; w", "x <y and z> w"),
    ("&lt;i&gt;quiet&lt;/i&gt; please", "quiet please"),
    ("line one\nline two", "line one line two"),
    ("[Music]", "[Music]"),
])
def test_clean_caption_text(raw, expected):
    assert clean_caption_text(raw) == expected


def test_compact_parser_reads_milliseconds():
    document = '<timedtext><body><p t="1200" d="2300">hello</p><p t="3500" dur="1000">world</p></body></timedtext>'

    segments = CompactTagParser().parse(document)

    assert [(s.text, s.start_ms, s.end_ms, s.duration_ms) for s in segments] == [
        ("hello", 1200, 3500, 2300),
        ("world", 3500, 4500, 1000),
    ]


def test_compact_parser_joins_word_level_spans():
    document = '<p t="0" d="900" w="1"><s ac="0">never</s><s t="300"> gonna</s></p>'

    segments = CompactTagParser().parse(document)

    assert [s.text for s in segments] == ["never gonna"]


def test_compact_parser_skips_empty_and_invalid_entries():
    document = (
        '<p t="0" d="1000">   </p>'
        '<p d="1000">no start</p>'
        '<p t="abc" d="1000">bad start</p>'
        '<p t="2000" d="500">kept</p>'
    )

    segments = CompactTagParser().parse(document)

    assert [s.text for s in segments] == ["kept"]


def test_compact_parser_orders_by_start_time():
    document = '<p t="5000" d="100">second</p><p t="1000" d="100">first</p><p t="5000" d="50">third</p>'

    segments = CompactTagParser().parse(document)

    assert [s.text for s in segments] == ["first", "second", "third"]


def test_verbose_parser_rounds_seconds_half_up():
    document = (
        '<transcript><text start="0.0005" dur="1.0004">a&amp;b</text>'
        '<text start="2.5" dur="0.25">second line</text></transcript>'
    )

    segments = VerboseTagParser().parse(document)

    assert [(s.text, s.start_ms, s.duration_ms) for s in segments] == [
        ("a&b", 1, 1000),
        ("second line", 2500, 250),
    ]


def test_verbose_parser_defaults_missing_duration_to_zero():
    segments = VerboseTagParser().parse('<text start="3">no duration</text>')

    assert segments[0].start_ms == 3000
    assert segments[0].end_ms == 3000


@pytest.mark.parametrize("start", ["inf", "-inf", "nan", "1e400"])
def test_verbose_parser_skips_non_finite_offsets(start):
    document = f'<text start="{start}" dur="1">hi</text><text start="1" dur="1">ok</text>'

    segments = parse_caption_document(VIDEO_ID, document)

    assert [(s.text, s.start_ms, s.end_ms) for s in segments] == [("ok", 1000, 2000)]


def test_parse_caption_document_falls_back_to_second_grammar():
    document = '<transcript><text start="1.5" dur="2">fallback</text></transcript>'

    segments = parse_caption_document(VIDEO_ID, document)

    assert [(s.text, s.start_ms, s.end_ms) for s in segments] == [("fallback", 1500, 3500)]


def test_parse_caption_document_prefers_first_grammar():
    document = '<p t="100" d="100">compact</p><text start="9" dur="1">verbose</text>'

    segments = parse_caption_document(VIDEO_ID, document)

    assert [s.text for s in segments] == ["compact"]


def test_parse_caption_document_rejects_unknown_grammar():
    with pytest.raises(UpstreamStructureChangedError) as excinfo:
        parse_caption_document(VIDEO_ID, '{"events": []}')

    assert excinfo.value.code == ErrorCode.UPSTREAM_STRUCTURE_CHANGED
    assert excinfo.value.message.startswith("Unparseable transcript")
    assert excinfo.value.details["videoId"] == VIDEO_ID
