"""
Channel URL resolution

Maps a human-facing channel URL to the stable channel identifier. Runs once
when a channel is registered; the sync pipeline only ever sees identifiers.
"""
import logging
import re
from urllib.parse import urlparse

import httpx

from game_events.config import settings
from game_events.services.errors import ResolutionFailure


logger = logging.getLogger(__name__)

_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com"}

_CHANNEL_PATH = re.compile(r"/channel/([a-zA-Z0-9_-]+)")

# Searched in order inside the channel page markup
_PAGE_PATTERNS = (
    re.compile(r'"externalId":"([a-zA-Z0-9_-]{24})"'),
    re.compile(r'"browseId":"(UC[a-zA-Z0-9_-]{22})"'),
    re.compile(r'href="/channel/(UC[a-zA-Z0-9_-]{22})"'),
)


def extract_identifier_from_url(url: str) -> str | None:
    """Return the identifier embedded in a /channel/<id> URL, if any"""
    parsed = urlparse(url)
    if parsed.hostname not in _YOUTUBE_HOSTS:
        return None
    match = _CHANNEL_PATH.search(parsed.path)
    return match.group(1) if match else None


def extract_identifier_from_page(markup: str) -> str | None:
    for pattern in _PAGE_PATTERNS:
        match = pattern.search(markup)
        if match:
            return match.group(1)
    return None


async def resolve(url: str, *, transport: httpx.AsyncBaseTransport | None = None) -> str:
    """
    Resolve a channel URL to its channel identifier.

    Handle, custom and legacy user URLs are resolved by reading the channel
    page once.

    Raises:
        ResolutionFailure: If no identifier could be determined
    """
    if not url.lower().startswith(("http://", "https://")):
        raise ResolutionFailure(url, "URL must be HTTP/HTTPS")

    identifier = extract_identifier_from_url(url)
    if identifier:
        return identifier

    logger.info("Resolving channel identifier from page: %s", url)
    try:
        async with httpx.AsyncClient(
            timeout=settings.request_timeout_sec,
            transport=transport,
            follow_redirects=True,
        ) as client:
            response = await client.get(url, headers={"User-Agent": settings.user_agent})
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ResolutionFailure(url, f"{type(exc).__name__}: {exc}") from exc

    identifier = extract_identifier_from_page(response.text)
    if not identifier:
        raise ResolutionFailure(url, "no channel identifier found in page")

    logger.info("Resolved %s to %s", url, identifier)
    return identifier
