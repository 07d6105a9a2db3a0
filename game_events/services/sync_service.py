"""
Channel Sync Service

Runs the per-channel pipeline: fetch recent videos, store each video once,
extract event candidates and insert them under deterministic keys so that
repeated runs are no-ops.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from game_events.config import settings
from game_events.database import session_scope
from game_events.services.db_service import insert_event_if_absent, insert_video_if_absent
from game_events.services.event_extractor import extract_events
from game_events.services.feed_fetcher import FeedFetcher
from game_events.services.fetch_types import EventCandidate, EventRecord
from game_events.utils.logging_helpers import log_sync_stats


logger = logging.getLogger(__name__)


def event_key_for(video_id: str, start_date: str) -> str:
    return f"{video_id}_{start_date}"


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def manual_event_key(now: datetime) -> str:
    """Key for a hand-entered event: manual_<epoch milliseconds>"""
    return f"manual_{(now - _EPOCH) // timedelta(milliseconds=1)}"


def build_event_record(candidate: EventCandidate, game_label: str) -> EventRecord:
    """Attach game label and dedup key to an extracted candidate"""
    return EventRecord(
        event_key=event_key_for(candidate.video_id, candidate.start_date),
        game_label=game_label,
        title=candidate.title,
        description=candidate.description,
        start_date=candidate.start_date,
        end_date=candidate.end_date,
        source_url=candidate.source_url,
        video_id=candidate.video_id,
    )


@dataclass(slots=True)
class SyncResult:
    channel_identifier: str
    game_label: str
    videos_fetched: int = 0
    videos_stored: int = 0
    events_created: int = 0
    events_skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "channel_identifier": self.channel_identifier,
            "game_label": self.game_label,
            "videos_fetched": self.videos_fetched,
            "videos_stored": self.videos_stored,
            "events_created": self.events_created,
            "events_skipped": self.events_skipped,
        }


class ChannelSyncService:
    """Fetch, extract and persist events for one channel at a time"""

    def __init__(
        self,
        fetcher: FeedFetcher | None = None,
        *,
        videos_per_channel: int | None = None,
        session_factory: Callable = session_scope,
    ) -> None:
        self.fetcher = fetcher or FeedFetcher()
        self.videos_per_channel = videos_per_channel or settings.videos_per_channel
        self._session_scope = session_factory

    async def sync_channel(self, channel_identifier: str, game_label: str) -> SyncResult:
        """
        Sync one channel.

        Raises:
            FetchFailure: If no video source could be read for the channel
        """
        videos = await self.fetcher.fetch_recent(channel_identifier, self.videos_per_channel)
        logger.info("Fetched %s videos for %s", len(videos), game_label)

        result = SyncResult(
            channel_identifier=channel_identifier,
            game_label=game_label,
            videos_fetched=len(videos),
        )

        for video in videos:
            async with self._session_scope() as session:
                if await insert_video_if_absent(session, channel_identifier, video):
                    result.videos_stored += 1

                for candidate in extract_events(video, game_label):
                    record = build_event_record(candidate, game_label)
                    outcome = await insert_event_if_absent(session, record)
                    if outcome == "inserted":
                        result.events_created += 1
                    else:
                        result.events_skipped += 1

        log_sync_stats(
            logger,
            game_label,
            result.videos_fetched,
            result.events_created,
            result.events_skipped,
        )
        return result


sync_service = ChannelSyncService()


__all__ = [
    "ChannelSyncService",
    "SyncResult",
    "build_event_record",
    "event_key_for",
    "manual_event_key",
    "sync_service",
]
