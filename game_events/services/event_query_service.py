"""
Event Query Service

Read operations for calendar events plus manual entry and edits. Listings are
ordered by start_date ascending.
"""
from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from game_events.models import Event
from game_events.schemas import EventCreate, EventUpdate
from game_events.services.db_service import event_exists, insert_event_if_absent
from game_events.services.fetch_types import EventRecord
from game_events.services.sync_service import manual_event_key
from game_events.utils.timezone import DateFormatError, month_bounds

logger = logging.getLogger(__name__)


async def list_events(db: AsyncSession, game_label: str | None = None) -> list[Event]:
    """All events, optionally for a single game"""
    stmt = select(Event)
    if game_label:
        stmt = stmt.where(Event.game_label == game_label)
    result = await db.execute(stmt.order_by(Event.start_date, Event.id))
    events = list(result.scalars().all())
    logger.debug("Retrieved %s events (game=%s)", len(events), game_label or "*")
    return events


async def list_events_in_range(db: AsyncSession, start_date: str, end_date: str) -> list[Event]:
    """
    Events overlapping the inclusive range [start_date, end_date]

    An event without end_date is treated as open-ended.
    """
    stmt = (
        select(Event)
        .where(
            Event.start_date <= end_date,
            or_(Event.end_date.is_(None), Event.end_date >= start_date),
        )
        .order_by(Event.start_date, Event.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_events_for_month(db: AsyncSession, year: int, month: int) -> list[Event]:
    """
    Events overlapping a calendar month

    Raises:
        DateFormatError: If month is outside 1..12
    """
    month_start, next_month_start = month_bounds(year, month)
    logger.info("Fetching events for %04d-%02d", year, month)

    stmt = (
        select(Event)
        .where(
            Event.start_date < next_month_start,
            or_(Event.end_date.is_(None), Event.end_date >= month_start),
        )
        .order_by(Event.start_date, Event.id)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_event(db: AsyncSession, event_id: int) -> Event | None:
    return await db.get(Event, event_id)


async def create_manual_event(db: AsyncSession, payload: EventCreate) -> Event | None:
    """Store a hand-entered event under a manual_<epoch ms> key"""
    now = datetime.now(timezone.utc)
    event_key = manual_event_key(now)
    # Same-millisecond submissions take the next free millisecond
    while await event_exists(db, event_key):
        now += timedelta(milliseconds=1)
        event_key = manual_event_key(now)

    record = EventRecord(
        event_key=event_key,
        game_label=payload.game_label,
        title=payload.title,
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        source_url=payload.source_url,
    )
    outcome = await insert_event_if_absent(db, record)
    if outcome == "skipped":
        logger.warning("Manual event key %s already taken", record.event_key)
        return None

    result = await db.execute(select(Event).where(Event.event_key == record.event_key))
    return result.scalar_one()


async def delete_event(db: AsyncSession, event_id: int) -> bool:
    result = await db.execute(delete(Event).where(Event.id == event_id))
    return bool(result.rowcount)


async def update_event(db: AsyncSession, event_id: int, payload: EventUpdate) -> Event | None:
    """
    Apply the fields present in payload to a stored event

    The event key is left untouched, so an extracted event keeps deduplicating
    against later syncs after a manual edit.

    Raises:
        DateFormatError: If the merged end_date falls before start_date
    """
    event = await db.get(Event, event_id)
    if event is None:
        return None

    changes = payload.model_dump(exclude_unset=True)
    start_date = changes.get("start_date", event.start_date)
    end_date = changes.get("end_date", event.end_date)
    if end_date is not None and end_date < start_date:
        raise DateFormatError(f"end_date ({end_date}) must not be before start_date ({start_date})")

    for field, value in changes.items():
        setattr(event, field, value)

    await db.flush()
    logger.info("Updated event %s (%s)", event.event_key, ", ".join(sorted(changes)) or "no changes")
    return event
