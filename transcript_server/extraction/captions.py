"""Caption document retrieval and parsing."""

import html
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

import httpx
from pydantic import ValidationError

from transcript_server.extraction.http import send
from transcript_server.models.errors import EmptyUpstreamResponseError, UpstreamStructureChangedError
from transcript_server.models.transcript import CaptionTrack, TranscriptSegment
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)

_FORMAT_PARAM = re.compile(r"([?&])fmt=[^&#]*(&?)")
_ATTRIBUTE = re.compile(r'([\w:-]+)\s*=\s*"([^"]*)"')
_MARKUP = re.compile(r"</?[A-Za-z][^>]*>")
_FORMATTING_TAG = re.compile(r"</?(?:font|b|i|u|s|c)\b[^>]*>", re.IGNORECASE)


def normalize_caption_url(url: str) -> str:
    """Drop the format override so YouTube answers with a plain XML timed-text document."""

    def _replace(match: re.Match[str]) -> str:
        separator, trailing = match.group(1), match.group(2)
        return separator if trailing else ""

    return _FORMAT_PARAM.sub(_replace, url)


def clean_caption_text(raw: str) -> str:
    """
    Strip markup and decode entities, including entities escaped twice.

    Only formatting tags are removed once entities are decoded, so spoken text
    such as "x &lt;y and z&gt; w" keeps its angle brackets.
    """
    text = html.unescape(_MARKUP.sub("", raw))
    text = html.unescape(_FORMATTING_TAG.sub("", text))
    return " ".join(text.split())


def _attributes(raw: str) -> dict[str, str]:
    return {name: value for name, value in _ATTRIBUTE.findall(raw)}


def _seconds_to_ms(value: str) -> int:
    seconds = float(value)
    if not math.isfinite(seconds):
        raise ValueError(f"non-finite offset: {value}")
    return int(math.floor(seconds * 1000 + 0.5))


class CaptionParser(ABC):
    """One caption tag grammar. An empty result means the grammar did not apply."""

    name: str = ""
    element: re.Pattern[str]

    def parse(self, document: str) -> list[TranscriptSegment]:
        segments: list[TranscriptSegment] = []
        for match in self.element.finditer(document):
            segment = self._segment(_attributes(match.group(1)), match.group(2))
            if segment is not None:
                segments.append(segment)
        # sorted() is stable, so entries sharing a start keep document order
        return sorted(segments, key=lambda s: s.start_ms)

    def _segment(self, attributes: dict[str, str], body: str) -> TranscriptSegment | None:
        text = clean_caption_text(body)
        if not text:
            return None
        try:
            span = self._span(attributes)
        except (KeyError, ValueError):
            return None
        if span is None:
            return None
        start_ms, duration_ms = span
        try:
            return TranscriptSegment(text=text, start_ms=start_ms, end_ms=start_ms + duration_ms)
        except ValidationError:
            return None

    @abstractmethod
    def _span(self, attributes: dict[str, str]) -> tuple[int, int] | None:
        """Return (start_ms, duration_ms) from the tag attributes."""
        raise NotImplementedError


class CompactTagParser(CaptionParser):
    """Format 3 documents: ``<p t="1200" d="2300">text</p>`` with millisecond offsets."""

    name = "compact"
    element = re.compile(r"<p\b([^>]*)>(.*?)</p>", re.DOTALL)

    def _span(self, attributes: dict[str, str]) -> tuple[int, int] | None:
        start = int(attributes["t"])
        duration = int(attributes.get("d") or attributes.get("dur") or 0)
        if start < 0 or duration < 0:
            return None
        return start, duration


class VerboseTagParser(CaptionParser):
    """Legacy documents: ``<text start="1.2" dur="2.3">text</text>`` with seconds."""

    name = "verbose"
    element = re.compile(r"<text\b([^>]*)>(.*?)</text>", re.DOTALL)

    def _span(self, attributes: dict[str, str]) -> tuple[int, int] | None:
        start = _seconds_to_ms(attributes["start"])
        duration = _seconds_to_ms(attributes.get("dur") or "0")
        if start < 0 or duration < 0:
            return None
        return start, duration


DEFAULT_PARSERS: tuple[CaptionParser, ...] = (CompactTagParser(), VerboseTagParser())


def parse_caption_document(
    video_id: str,
    document: str,
    parsers: Sequence[CaptionParser] = DEFAULT_PARSERS,
) -> list[TranscriptSegment]:
    """Try each grammar in order and keep the first non-empty result."""
    for parser in parsers:
        segments = parser.parse(document)
        if segments:
            logger.info(
                "extraction.captions_parsed",
                video_id=video_id,
                grammar=parser.name,
                segment_count=len(segments),
            )
            return segments
        logger.debug("extraction.grammar_not_applicable", video_id=video_id, grammar=parser.name)
    raise UpstreamStructureChangedError(video_id, "Unparseable transcript: no caption grammar matched")


async def fetch_caption_document(client: httpx.AsyncClient, video_id: str, track: CaptionTrack) -> str:
    """Download the selected track as XML."""
    response = await send(
        client,
        "GET",
        normalize_caption_url(track.base_url),
        video_id=video_id,
        step="caption document",
    )
    if not response.text.strip():
        logger.warning("extraction.empty_caption_document", video_id=video_id)
        raise EmptyUpstreamResponseError(video_id)
    return response.text
