"""Watch page retrieval: consent handling, signing key and title extraction."""

import html
import re
from dataclasses import dataclass, field

import httpx

from transcript_server.extraction.http import send
from transcript_server.models.errors import RateLimitedError, UpstreamStructureChangedError
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)

CONSENT_FORM_MARKER = 'action="https://consent.youtube.com/s"'
CONSENT_VALUE_PATTERN = re.compile(r'name="v" value="(.*?)"')
CAPTCHA_MARKER = 'class="g-recaptcha"'


@dataclass(frozen=True)
class RegexExtractor:
    """Pulls the first capture group of a pattern out of the page markup."""

    name: str
    pattern: re.Pattern[str]

    def extract(self, markup: str) -> str | None:
        match = self.pattern.search(markup)
        if not match:
            return None
        value = html.unescape(match.group(1)).strip()
        return value or None


DEFAULT_KEY_EXTRACTORS: tuple[RegexExtractor, ...] = (
    RegexExtractor("ytcfg_json", re.compile(r'"INNERTUBE_API_KEY":\s*"([a-zA-Z0-9_-]+)"')),
    RegexExtractor(
        "ytcfg_set",
        re.compile(r"ytcfg\.set\(\s*['\"]INNERTUBE_API_KEY['\"]\s*,\s*['\"]([a-zA-Z0-9_-]+)['\"]\s*\)"),
    ),
)

DEFAULT_TITLE_EXTRACTORS: tuple[RegexExtractor, ...] = (
    RegexExtractor("meta_title", re.compile(r'<meta\s+name="title"\s+content="([^"]*)"', re.IGNORECASE)),
    RegexExtractor("title_tag", re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)),
)

_TITLE_SUFFIX = " - YouTube"


@dataclass
class WatchPage:
    """Markup of a watch page plus what was extracted from it."""

    video_id: str
    markup: str
    api_key: str
    title: str | None = None


@dataclass
class WatchPageFetcher:
    """
    Fetches the watch page for a video and extracts the innertube signing key.

    Extractors are tried in order; the first one that finds a value wins. When the
    page layout drifts, swap or extend the extractor tuples rather than touching
    the fetch logic.
    """

    key_extractors: tuple[RegexExtractor, ...] = field(default=DEFAULT_KEY_EXTRACTORS)
    title_extractors: tuple[RegexExtractor, ...] = field(default=DEFAULT_TITLE_EXTRACTORS)

    async def fetch(self, client: httpx.AsyncClient, video_id: str) -> WatchPage:
        markup = await self._fetch_markup(client, video_id)

        if CONSENT_FORM_MARKER in markup:
            consent = CONSENT_VALUE_PATTERN.search(markup)
            if not consent:
                raise UpstreamStructureChangedError(
                    video_id, "Consent page found but its consent value could not be extracted"
                )
            logger.info("extraction.consent_required", video_id=video_id)
            markup = await self._fetch_markup(
                client, video_id, cookie=f"CONSENT=YES+{consent.group(1)}"
            )
            if CONSENT_FORM_MARKER in markup:
                raise UpstreamStructureChangedError(
                    video_id, "Consent cookie was not accepted by YouTube"
                )

        if CAPTCHA_MARKER in markup:
            raise RateLimitedError(video_id, "watch page (captcha)")

        api_key = self._first(self.key_extractors, markup)
        if api_key is None:
            raise UpstreamStructureChangedError(
                video_id, "Could not find the innertube API key on the watch page"
            )

        title = self._first(self.title_extractors, markup)
        if title and title.endswith(_TITLE_SUFFIX):
            title = title[: -len(_TITLE_SUFFIX)].strip() or None

        logger.info("extraction.page_parsed", video_id=video_id, has_title=title is not None)
        return WatchPage(video_id=video_id, markup=markup, api_key=api_key, title=title)

    async def _fetch_markup(self, client: httpx.AsyncClient, video_id: str, cookie: str | None = None) -> str:
        headers = {"Cookie": cookie} if cookie else None
        response = await send(
            client,
            "GET",
            "/watch",
            params={"v": video_id},
            headers=headers,
            video_id=video_id,
            step="watch page",
        )
        logger.debug("extraction.page_fetched", video_id=video_id, with_consent=cookie is not None)
        return response.text

    @staticmethod
    def _first(extractors: tuple[RegexExtractor, ...], markup: str) -> str | None:
        for extractor in extractors:
            value = extractor.extract(markup)
            if value is not None:
                return value
        return None
