import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from game_events.config import settings
from game_events.database import session_scope
from game_events.services.db_service import list_tracked_channels
from game_events.services.fetch_types import TrackedChannel
from game_events.services.pass_guard import PassGuard
from game_events.services.sync_service import ChannelSyncService, SyncResult, sync_service
from game_events.utils.logging_helpers import (
    log_channel_processing,
    log_section_end,
    log_section_start,
)


logger = logging.getLogger(__name__)

JOB_ID = "channel_sync"


async def _load_tracked_channels() -> list[TrackedChannel]:
    async with session_scope() as session:
        return await list_tracked_channels(session)


class SyncScheduler:
    """Scheduler for periodic channel syncs"""

    def __init__(
        self,
        sync: ChannelSyncService | None = None,
        channel_source: Callable[[], Awaitable[list[TrackedChannel]]] | None = None,
    ):
        self.scheduler: AsyncIOScheduler | None = None
        self.sync = sync or sync_service
        self._channel_source = channel_source or _load_tracked_channels
        self._guard = PassGuard()
        self._tasks: set[asyncio.Task] = set()
        self.initial_pass: asyncio.Task | None = None

    def start(self, interval_minutes: int | None = None) -> None:
        """
        Run one pass in the background right away, then every interval_minutes.

        The startup pass is not covered by the in-flight guard.
        """
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        interval = interval_minutes or settings.sync_interval_minutes

        self.initial_pass = self._spawn(self.run_pass("initial"), "initial")

        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.scheduler.add_job(
            self._on_timer,
            trigger=IntervalTrigger(minutes=interval),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()

        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started with interval %s minutes. Next sync: %s",
            interval,
            next_time.isoformat() if next_time else "unknown",
        )

    def stop(self) -> None:
        """Cancel the timer; a pass already running is left to finish"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    def is_in_flight(self) -> bool:
        return self._guard.is_in_flight()

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled sync time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    async def _on_timer(self) -> None:
        self.trigger_scheduled_pass()

    def trigger_scheduled_pass(self) -> asyncio.Task | None:
        """
        Start a guarded pass in the background.

        Returns:
            The pass task, or None when a scheduled pass is already in flight
        """
        if not self._guard.try_acquire():
            return None
        logger.info("Scheduled channel sync triggered")
        return self._spawn(self._guarded_pass(), "scheduled")

    async def _guarded_pass(self) -> dict:
        try:
            return await self.run_pass("scheduled")
        finally:
            self._guard.release()

    async def run_pass(self, label: str) -> dict:
        """
        Sync every tracked channel sequentially in registration order.

        A failing channel is logged and does not stop the remaining ones.
        """
        section = f"{label} channel sync"
        log_section_start(logger, section)
        started_at = datetime.now(timezone.utc)

        try:
            channels = await self._channel_source()
        except Exception as exc:
            logger.error("Could not load tracked channels: %s", exc, exc_info=True)
            return {"status": "failed", "pass": label, "error": str(exc)}

        results: list[SyncResult] = []
        failures: list[dict] = []
        for index, channel in enumerate(channels, start=1):
            log_channel_processing(
                logger,
                index,
                len(channels),
                channel.game_label,
                channel.channel_identifier,
            )
            try:
                results.append(
                    await self.sync.sync_channel(channel.channel_identifier, channel.game_label)
                )
            except Exception as exc:
                logger.error(
                    "Error syncing channel %s (%s): %s",
                    channel.game_label,
                    channel.channel_identifier,
                    exc,
                    exc_info=True,
                )
                failures.append({
                    "channel_identifier": channel.channel_identifier,
                    "game_label": channel.game_label,
                    "error": str(exc),
                })

        log_section_end(logger, section)
        return {
            "status": "success",
            "pass": label,
            "started_at": started_at.isoformat(),
            "completed_at": datetime.now(timezone.utc).isoformat(),
            "channels_processed": len(channels),
            "channels_failed": len(failures),
            "events_created": sum(result.events_created for result in results),
            "channel_details": [result.to_dict() for result in results],
            "failures": failures,
        }

    async def sync_channel(self, channel_identifier: str, game_label: str) -> SyncResult:
        """
        Sync a single channel now, regardless of any scheduled pass.

        Raises:
            FetchFailure: If the channel's videos could not be fetched
        """
        logger.info("Manual sync requested for %s (%s)", game_label, channel_identifier)
        return await self.sync.sync_channel(channel_identifier, game_label)

    def _spawn(self, coro: Awaitable[dict], label: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_pass_done(done, label))
        return task

    def _on_pass_done(self, task: asyncio.Task, label: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("%s channel sync was cancelled", label.capitalize())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s channel sync crashed: %s", label.capitalize(), exc, exc_info=exc)
            return
        summary = task.result()
        logger.info(
            "%s channel sync finished: %s channels, %s failed, %s events created",
            label.capitalize(),
            summary.get("channels_processed", 0),
            summary.get("channels_failed", 0),
            summary.get("events_created", 0),
        )


sync_scheduler = SyncScheduler()
