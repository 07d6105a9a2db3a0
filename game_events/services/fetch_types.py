"""
Shared dataclasses used across the ingestion pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


InsertOutcome = Literal["inserted", "skipped"]


@dataclass(slots=True)
class TrackedChannel:
    """Channel as seen by the pipeline: where to fetch and which game it feeds."""
    channel_identifier: str
    game_label: str


@dataclass(slots=True)
class VideoSummary:
    """Transient fetch result for one upstream video."""
    video_id: str
    title: str
    published_at: datetime
    description: str = ""
    thumbnail_url: str | None = None
    source_url: str | None = None


@dataclass(slots=True)
class EventCandidate:
    """Unpersisted event guessed from a video's title and description."""
    title: str
    description: str
    start_date: str
    source_url: str
    video_id: str
    end_date: str | None = None


@dataclass(slots=True)
class EventRecord:
    """Row-ready event with its deterministic dedup key."""
    event_key: str
    game_label: str
    title: str
    start_date: str
    source_url: str
    description: str | None = None
    end_date: str | None = None
    video_id: str | None = None


__all__ = [
    "InsertOutcome",
    "TrackedChannel",
    "VideoSummary",
    "EventCandidate",
    "EventRecord",
]
