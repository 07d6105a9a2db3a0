from typing import Annotated
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from game_events.database import get_db
from game_events.schemas import (
    ChannelCreate,
    ChannelCreatedResponse,
    ChannelListResponse,
    ChannelResponse,
    ChannelUpdate,
    EventCreate,
    EventListResponse,
    EventResponse,
    EventUpdate,
    SyncResponse,
)
from game_events.services import (
    FetchFailure,
    ResolutionFailure,
    create_manual_event,
    db_service,
    delete_event,
    get_event,
    list_events,
    list_events_for_month,
    list_events_in_range,
    resolve,
    sync_scheduler,
    update_event,
)
from game_events.utils.timezone import DateFormatError


logger = logging.getLogger(__name__)

main_router = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db)]


def _event_list(events) -> EventListResponse:
    return EventListResponse(
        count=len(events),
        events=[EventResponse.model_validate(event) for event in events],
    )


@main_router.get("/")
async def root() -> dict:
    """Root endpoint with service information"""
    next_run = sync_scheduler.get_next_run_time()

    return {
        "service": "Game Event Calendar",
        "version": "0.1.0",
        "next_scheduled_sync": next_run.isoformat() if next_run else None,
        "endpoints": {
            "channels": "/channels - Tracked channels (GET, POST, PUT, DELETE)",
            "sync": "/sync - Trigger a sync pass over all channels (POST)",
            "events": "/events - Calendar events (GET, POST, PUT, DELETE)",
            "health": "/health - Health check",
        },
    }


@main_router.get("/health")
async def health_check() -> dict:
    """Health check endpoint"""
    next_run = sync_scheduler.get_next_run_time()
    return {
        "status": "ok",
        "scheduler_running": sync_scheduler.scheduler.running if sync_scheduler.scheduler else False,
        "sync_in_flight": sync_scheduler.is_in_flight(),
        "next_sync": next_run.isoformat() if next_run else None,
    }


@main_router.get("/channels", response_model=ChannelListResponse)
async def get_channels(db: DbSession) -> ChannelListResponse:
    channels = await db_service.list_channels(db)
    return ChannelListResponse(
        count=len(channels),
        channels=[ChannelResponse.model_validate(channel) for channel in channels],
    )


@main_router.post("/channels", response_model=ChannelCreatedResponse, status_code=201)
async def create_channel(request: ChannelCreate, db: DbSession) -> ChannelCreatedResponse:
    """
    Register a channel and run its first sync

    A failed first sync does not fail the registration; the channel is picked
    up again by the next scheduled pass.
    """
    if await db_service.get_channel_by_game(db, request.game_label):
        raise HTTPException(status_code=409, detail="Channel with this game label already exists")

    try:
        channel_identifier = await resolve(request.channel_url)
    except ResolutionFailure as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        channel = await db_service.create_channel(
            db,
            game_label=request.game_label,
            source_url=request.channel_url,
            channel_identifier=channel_identifier,
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Channel {channel_identifier} is already tracked")

    sync = None
    try:
        result = await sync_scheduler.sync_channel(channel_identifier, request.game_label)
        sync = SyncResponse(status="success", **result.to_dict())
    except Exception as exc:
        logger.error("Error syncing new channel %s: %s", request.game_label, exc, exc_info=True)

    return ChannelCreatedResponse(
        channel=ChannelResponse.model_validate(channel),
        sync=sync,
        message="Channel created successfully",
    )


@main_router.get("/channels/{channel_id}", response_model=ChannelResponse)
async def get_channel(channel_id: int, db: DbSession) -> ChannelResponse:
    channel = await db_service.get_channel(db, channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return ChannelResponse.model_validate(channel)


@main_router.put("/channels/{channel_id}", response_model=ChannelResponse)
async def update_channel(channel_id: int, request: ChannelUpdate, db: DbSession) -> ChannelResponse:
    """Rename a channel or point it at a new URL (re-resolved)"""
    try:
        channel = await db_service.update_channel(
            db,
            channel_id,
            game_label=request.game_label,
            source_url=request.channel_url,
        )
    except ResolutionFailure as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Game label or channel is already tracked")

    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    await db.commit()
    return ChannelResponse.model_validate(channel)


@main_router.delete("/channels/{channel_id}")
async def remove_channel(channel_id: int, db: DbSession) -> dict:
    if not await db_service.delete_channel(db, channel_id):
        raise HTTPException(status_code=404, detail="Channel not found")
    await db.commit()
    return {"status": "success", "message": "Channel deleted successfully"}


@main_router.post("/channels/{channel_id}/sync", response_model=SyncResponse)
async def sync_channel(channel_id: int, db: DbSession) -> SyncResponse:
    """Manually sync one channel, independent of any scheduled pass"""
    channel = await db_service.get_channel(db, channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")

    try:
        result = await sync_scheduler.sync_channel(channel.channel_identifier, channel.game_label)
    except FetchFailure as exc:
        raise HTTPException(status_code=502, detail=str(exc))

    return SyncResponse(status="success", **result.to_dict())


@main_router.post("/sync")
async def trigger_sync() -> dict:
    """Start a pass over all channels unless one is already running"""
    logger.info("Channel sync pass triggered via API")
    task = sync_scheduler.trigger_scheduled_pass()
    if task is None:
        return {"status": "skipped", "message": "Sync pass already in progress"}
    return {"status": "started", "message": "Sync pass started"}


@main_router.get("/events", response_model=EventListResponse)
async def get_events(
    db: DbSession,
    game_label: Annotated[str | None, Query(description="Only events for this game")] = None,
) -> EventListResponse:
    return _event_list(await list_events(db, game_label))


@main_router.get("/events/by-date", response_model=EventListResponse)
async def get_events_by_date(
    db: DbSession,
    start_date: Annotated[str, Query(pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")],
    end_date: Annotated[str, Query(pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")],
) -> EventListResponse:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="end_date must not be before start_date")
    return _event_list(await list_events_in_range(db, start_date, end_date))


@main_router.get("/events/by-month/{year}/{month}", response_model=EventListResponse)
async def get_events_by_month(year: int, month: int, db: DbSession) -> EventListResponse:
    try:
        events = await list_events_for_month(db, year, month)
    except DateFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _event_list(events)


@main_router.get("/events/{event_id}", response_model=EventResponse)
async def get_single_event(event_id: int, db: DbSession) -> EventResponse:
    event = await get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return EventResponse.model_validate(event)


@main_router.post("/events", response_model=EventResponse, status_code=201)
async def create_event(request: EventCreate, db: DbSession) -> EventResponse:
    event = await create_manual_event(db, request)
    if event is None:
        raise HTTPException(status_code=409, detail="Event key collision, retry the request")
    await db.commit()
    return EventResponse.model_validate(event)


@main_router.put("/events/{event_id}", response_model=EventResponse)
async def edit_event(event_id: int, request: EventUpdate, db: DbSession) -> EventResponse:
    try:
        event = await update_event(db, event_id, request)
    except DateFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    await db.commit()
    return EventResponse.model_validate(event)


@main_router.delete("/events/{event_id}")
async def remove_event(event_id: int, db: DbSession) -> dict:
    if not await delete_event(db, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    await db.commit()
    return {"status": "success", "message": "Event deleted successfully"}


@main_router.delete("/videos/{video_id}/events")
async def prune_video_events(video_id: str, db: DbSession) -> dict:
    """Remove every event extracted from a video"""
    deleted = await db_service.delete_events_by_video(db, video_id)
    await db.commit()
    return {"status": "success", "video_id": video_id, "events_deleted": deleted}
