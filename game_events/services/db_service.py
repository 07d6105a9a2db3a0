"""
Database operations for the ingestion pipeline

Insert-if-absent writes for videos and events, bulk prune by video, and the
channel registry reads the scheduler needs.
"""
import logging
from datetime import datetime, timezone
from typing import cast

from sqlalchemy import DateTime, bindparam, delete, select, text
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from game_events.models import Channel, Event
from game_events.services.channel_resolver import resolve
from game_events.services.fetch_types import (
    EventRecord,
    InsertOutcome,
    TrackedChannel,
    VideoSummary,
)
from game_events.services.feed_parser_service import watch_url


logger = logging.getLogger(__name__)


_insert_video_stmt = text(
    """
    INSERT INTO videos (
        video_id,
        channel_identifier,
        title,
        description,
        published_at,
        video_url,
        thumbnail_url,
        created_at
    )
    VALUES (
        :video_id,
        :channel_identifier,
        :title,
        :description,
        :published_at,
        :video_url,
        :thumbnail_url,
        :created_at
    )
    ON CONFLICT(video_id) DO NOTHING
    """
).bindparams(
    bindparam("published_at", type_=DateTime()),
    bindparam("created_at", type_=DateTime()),
)

_insert_event_stmt = text(
    """
    INSERT INTO events (
        event_key,
        game_label,
        title,
        description,
        start_date,
        end_date,
        source_url,
        video_id,
        created_at,
        updated_at
    )
    VALUES (
        :event_key,
        :game_label,
        :title,
        :description,
        :start_date,
        :end_date,
        :source_url,
        :video_id,
        :created_at,
        :created_at
    )
    ON CONFLICT(event_key) DO NOTHING
    """
).bindparams(bindparam("created_at", type_=DateTime()))


def _rowcount(result) -> int:
    rowcount = cast(CursorResult, result).rowcount
    return rowcount if rowcount and rowcount > 0 else 0


async def insert_video_if_absent(
    db: AsyncSession,
    channel_identifier: str,
    video: VideoSummary,
) -> bool:
    """
    Store a fetched video unless its video_id is already known.

    Existing rows are never updated, so upstream title or description edits
    are not re-synced.

    Returns:
        True if a new row was written
    """
    result = await db.execute(
        _insert_video_stmt,
        {
            "video_id": video.video_id,
            "channel_identifier": channel_identifier,
            "title": video.title,
            "description": video.description,
            "published_at": video.published_at,
            "video_url": video.source_url or watch_url(video.video_id),
            "thumbnail_url": video.thumbnail_url,
            "created_at": datetime.now(timezone.utc),
        },
    )
    inserted = _rowcount(result) > 0
    if inserted:
        logger.debug("Stored video %s", video.video_id)
    return inserted


async def event_exists(db: AsyncSession, event_key: str) -> bool:
    """Check whether an event with this key is already stored"""
    result = await db.execute(select(Event.id).where(Event.event_key == event_key).limit(1))
    return result.scalar_one_or_none() is not None


async def insert_event_if_absent(db: AsyncSession, record: EventRecord) -> InsertOutcome:
    """
    Insert an event unless its key already exists.

    The existence check short-circuits the common re-run case. Two concurrent
    syncs of the same channel can both pass it; the unique key then rejects the
    second insert, which is reported as skipped.

    Returns:
        "inserted" or "skipped"
    """
    if await event_exists(db, record.event_key):
        return "skipped"

    result = await db.execute(
        _insert_event_stmt,
        {
            "event_key": record.event_key,
            "game_label": record.game_label,
            "title": record.title,
            "description": record.description,
            "start_date": record.start_date,
            "end_date": record.end_date,
            "source_url": record.source_url,
            "video_id": record.video_id,
            "created_at": datetime.now(timezone.utc),
        },
    )

    if _rowcount(result) == 0:
        logger.info("Event %s inserted concurrently elsewhere, skipping", record.event_key)
        return "skipped"

    logger.info("Created event %s: %s", record.event_key, record.title)
    return "inserted"


async def delete_events_by_video(db: AsyncSession, video_id: str) -> int:
    """
    Delete all events extracted from a video.

    Returns:
        Number of deleted events
    """
    result = await db.execute(delete(Event).where(Event.video_id == video_id))
    deleted_count = _rowcount(result)
    logger.info("Deleted %s events for video %s", deleted_count, video_id)
    return deleted_count


async def list_tracked_channels(db: AsyncSession) -> list[TrackedChannel]:
    """All tracked channels in registration order"""
    result = await db.execute(
        select(Channel.channel_identifier, Channel.game_label).order_by(Channel.id)
    )
    return [
        TrackedChannel(channel_identifier=identifier, game_label=game_label)
        for identifier, game_label in result.all()
    ]


async def create_channel(
    db: AsyncSession,
    game_label: str,
    source_url: str,
    channel_identifier: str,
) -> Channel:
    """Register a channel; uniqueness violations surface as IntegrityError"""
    channel = Channel(
        game_label=game_label,
        source_url=source_url,
        channel_identifier=channel_identifier,
    )
    db.add(channel)
    await db.flush()
    logger.info("Registered channel %s for %s", channel_identifier, game_label)
    return channel


async def get_channel(db: AsyncSession, channel_id: int) -> Channel | None:
    return await db.get(Channel, channel_id)


async def get_channel_by_game(db: AsyncSession, game_label: str) -> Channel | None:
    result = await db.execute(select(Channel).where(Channel.game_label == game_label))
    return result.scalar_one_or_none()


async def list_channels(db: AsyncSession) -> list[Channel]:
    result = await db.execute(select(Channel).order_by(Channel.id))
    return list(result.scalars().all())


async def delete_channel(db: AsyncSession, channel_id: int) -> bool:
    result = await db.execute(delete(Channel).where(Channel.id == channel_id))
    return _rowcount(result) > 0


async def update_channel(
    db: AsyncSession,
    channel_id: int,
    *,
    game_label: str | None = None,
    source_url: str | None = None,
) -> Channel | None:
    """
    Apply a partial channel update.

    A changed source URL is resolved again so the stored identifier always
    matches it.

    Returns:
        The updated channel, or None if it does not exist

    Raises:
        ResolutionFailure: If the new URL does not lead to a channel
        IntegrityError: If the label or identifier is already taken
    """
    channel = await db.get(Channel, channel_id)
    if channel is None:
        return None

    if source_url is not None and source_url != channel.source_url:
        channel.channel_identifier = await resolve(source_url)
        channel.source_url = source_url
    if game_label is not None:
        channel.game_label = game_label

    await db.flush()
    logger.info("Updated channel %s (%s)", channel.id, channel.game_label)
    return channel
