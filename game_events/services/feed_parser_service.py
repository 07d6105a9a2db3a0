from datetime import datetime, timezone
from typing import Optional
import logging
import re

from lxml import etree, html  # type: ignore

from game_events.config import settings
from game_events.services.fetch_types import VideoSummary
from game_events.utils.timezone import parse_iso8601_to_utc, DateFormatError

logger = logging.getLogger(__name__)

NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "yt": "http://www.youtube.com/xml/schemas/2015",
    "media": "http://search.yahoo.com/mrss/",
}

UNTITLED_VIDEO = "Untitled Video"

_WATCH_ID_PATTERN = re.compile(r"v=([a-zA-Z0-9_-]{11})")


def watch_url(video_id: str) -> str:
    """Public watch page URL for a video"""
    return f"{settings.watch_base_url}?v={video_id}"


def thumbnail_url(video_id: str) -> str:
    """Default thumbnail URL constructed from the video ID"""
    return f"{settings.thumbnail_base_url}/{video_id}/default.jpg"


def parse_feed(content: bytes | str, limit: int) -> list[VideoSummary]:
    """
    Parse an Atom channel feed into video summaries

    Args:
        content: Raw feed document
        limit: Maximum number of entries to read, in feed order

    Returns:
        List of VideoSummary, most recent first as served by the feed

    Raises:
        etree.XMLSyntaxError: If XML is malformed
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    root = etree.fromstring(content, parser=parser)
    logger.debug("Feed document loaded (root tag: %s)", root.tag)

    entries = root.findall("atom:entry", NAMESPACES)[:limit]
    videos = []
    for entry in entries:
        video = _parse_single_entry(entry)
        if video:
            videos.append(video)

    logger.debug("Parsed %s of %s feed entries", len(videos), len(entries))
    return videos


def _parse_single_entry(entry: etree._Element) -> Optional[VideoSummary]:
    """Parse single feed entry, None when a required field is missing"""
    video_id = _get_text(entry, "yt:videoId")
    title = _get_text(entry, "atom:title")
    published = _get_text(entry, "atom:published")

    if not video_id or not title or not published:
        logger.debug("Skipping feed entry with missing videoId/title/published")
        return None

    try:
        published_at = parse_iso8601_to_utc(published)
    except DateFormatError:
        logger.debug("Skipping feed entry %s with invalid published time %r", video_id, published)
        return None

    description = (
        _get_text(entry, "atom:summary")
        or _get_text(entry, "media:group/media:description")
        or ""
    )

    thumbnail = None
    thumb_elem = entry.find("media:group/media:thumbnail", NAMESPACES)
    if thumb_elem is None:
        thumb_elem = entry.find("media:thumbnail", NAMESPACES)
    if thumb_elem is not None:
        thumbnail = thumb_elem.get("url")

    return VideoSummary(
        video_id=video_id,
        title=title,
        description=description,
        published_at=published_at,
        thumbnail_url=thumbnail or thumbnail_url(video_id),
        source_url=watch_url(video_id),
    )


def parse_video_page(
    content: bytes | str,
    limit: int,
    now: Optional[datetime] = None,
) -> list[VideoSummary]:
    """
    Scrape watch links out of a rendered channel video listing page

    The page carries no descriptions or timestamps, so every summary gets an
    empty description and `now` as its published time.

    Args:
        content: Raw HTML of the listing page
        limit: Maximum number of links to consider, in document order
        now: Timestamp stamped on every result (defaults to current UTC time)
    """
    if now is None:
        now = datetime.now(timezone.utc)

    document = html.fromstring(content)
    anchors = document.xpath('//a[contains(@href, "/watch?v=")]')[:limit]

    videos = []
    for anchor in anchors:
        match = _WATCH_ID_PATTERN.search(anchor.get("href", ""))
        if not match:
            continue

        video_id = match.group(1)
        title = (anchor.get("title") or anchor.text_content() or "").strip()

        videos.append(VideoSummary(
            video_id=video_id,
            title=title or UNTITLED_VIDEO,
            description="",
            published_at=now,
            thumbnail_url=thumbnail_url(video_id),
            source_url=watch_url(video_id),
        ))

    logger.debug("Scraped %s video links from %s anchors", len(videos), len(anchors))
    return videos


def _get_text(element: etree._Element, path: str) -> Optional[str]:
    """Safely extract stripped text from a namespaced child element"""
    child = element.find(path, NAMESPACES)
    if child is None or not child.text:
        return None
    return child.text.strip()
