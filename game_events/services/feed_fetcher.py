"""
Feed Fetcher

Returns a bounded list of a channel's recent videos. The Atom feed is the
primary source; the rendered video listing page is scraped when the feed
fails or comes back empty. One attempt per source, no retries.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

import httpx
from lxml import etree  # type: ignore

from game_events.config import settings
from game_events.services.errors import FetchFailure
from game_events.services.feed_parser_service import parse_feed, parse_video_page
from game_events.services.fetch_types import VideoSummary


logger = logging.getLogger(__name__)

# InvalidURL and StreamError sit outside the httpx.HTTPError hierarchy
_SOURCE_ERRORS = (
    httpx.HTTPError,
    httpx.InvalidURL,
    httpx.StreamError,
    etree.ParserError,
    etree.XMLSyntaxError,
    ValueError,
)


@dataclass(slots=True)
class FeedOutcome:
    """Classified result of the primary feed attempt."""
    status: Literal["ok", "empty", "failed"]
    videos: list[VideoSummary] = field(default_factory=list)
    error: str | None = None


class FeedFetcher:
    """Fetch recent video summaries for a channel identifier"""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout or settings.request_timeout_sec
        self._transport = transport

    def feed_url(self, channel_identifier: str) -> str:
        return f"{settings.feed_base_url}?channel_id={channel_identifier}"

    def page_url(self, channel_identifier: str) -> str:
        return f"{settings.channel_page_base_url}/{channel_identifier}/videos"

    async def fetch_recent(self, channel_identifier: str, limit: int | None = None) -> list[VideoSummary]:
        """
        Return up to `limit` recent videos, most recent first.

        Raises:
            FetchFailure: If the feed failed or was empty and the page fallback failed too
        """
        limit = limit or settings.videos_per_channel

        async with self._client() as client:
            outcome = await self._fetch_feed(client, channel_identifier, limit)

            if outcome.status == "ok":
                logger.info(
                    "Fetched %s videos from feed for channel %s",
                    len(outcome.videos),
                    channel_identifier,
                )
                return outcome.videos

            if outcome.status == "empty":
                logger.info("Feed returned no videos for %s, trying page fallback", channel_identifier)
            else:
                logger.warning(
                    "Feed fetch failed for %s (%s), trying page fallback",
                    channel_identifier,
                    outcome.error,
                )

            try:
                videos = await self._fetch_page(client, channel_identifier, limit)
            except _SOURCE_ERRORS as exc:
                logger.error("Page fallback also failed for %s: %s", channel_identifier, exc)
                raise FetchFailure(channel_identifier, str(exc)) from exc

        logger.info("Fetched %s videos from page fallback for channel %s", len(videos), channel_identifier)
        return videos

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def _fetch_feed(
        self,
        client: httpx.AsyncClient,
        channel_identifier: str,
        limit: int,
    ) -> FeedOutcome:
        url = self.feed_url(channel_identifier)
        logger.debug("Fetching feed: %s", url)
        try:
            response = await client.get(url)
            response.raise_for_status()
            videos = parse_feed(response.content, limit)
        except _SOURCE_ERRORS as exc:
            return FeedOutcome(status="failed", error=f"{type(exc).__name__}: {exc}")

        if not videos:
            return FeedOutcome(status="empty")
        return FeedOutcome(status="ok", videos=videos)

    async def _fetch_page(
        self,
        client: httpx.AsyncClient,
        channel_identifier: str,
        limit: int,
    ) -> list[VideoSummary]:
        url = self.page_url(channel_identifier)
        logger.debug("Fetching video listing page: %s", url)
        response = await client.get(url, headers={"User-Agent": settings.user_agent})
        response.raise_for_status()
        return parse_video_page(response.content, limit, now=datetime.now(timezone.utc))
