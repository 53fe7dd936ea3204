"""Outbound HTTP helpers shared by the extraction steps."""

from typing import Any

import httpx

from transcript_server.config import Config
from transcript_server.models.errors import RateLimitedError, UpstreamRequestFailedError
from transcript_server.utils.logging import get_logger

logger = get_logger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def create_client(config: Config, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Build the client used for one extraction run."""
    return httpx.AsyncClient(
        base_url=config.youtube_base_url,
        headers={"User-Agent": BROWSER_USER_AGENT, "Accept-Language": config.accept_language},
        timeout=config.http_timeout_seconds,
        proxy=config.proxy_url or None,
        transport=transport,
        follow_redirects=True,
    )


async def send(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    video_id: str,
    step: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue one request and classify failures.

    A 429 becomes RateLimitedError; transport errors and any other non-2xx status
    become UpstreamRequestFailedError. Nothing is retried here.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.warning("extraction.request_failed", video_id=video_id, step=step, error=str(e))
        raise UpstreamRequestFailedError(video_id, step, type(e).__name__) from e

    if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
        logger.warning("extraction.rate_limited", video_id=video_id, step=step)
        raise RateLimitedError(video_id, step)
    if response.is_error:
        logger.warning(
            "extraction.unexpected_status",
            video_id=video_id,
            step=step,
            status_code=response.status_code,
        )
        raise UpstreamRequestFailedError(video_id, step, f"HTTP {response.status_code}")
    return response
