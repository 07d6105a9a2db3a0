"""
Services package for the Game Event Calendar

This package contains the ingestion pipeline and the query layer.
"""
from game_events.services import db_service
from game_events.services.channel_resolver import resolve
from game_events.services.errors import FetchFailure, PipelineError, ResolutionFailure
from game_events.services.event_query_service import (
    create_manual_event,
    delete_event,
    get_event,
    list_events,
    list_events_for_month,
    list_events_in_range,
    update_event,
)
from game_events.services.scheduler_service import sync_scheduler

__all__ = [
    'db_service',
    'resolve',
    'FetchFailure',
    'PipelineError',
    'ResolutionFailure',
    'create_manual_event',
    'delete_event',
    'get_event',
    'list_events',
    'list_events_for_month',
    'list_events_in_range',
    'update_event',
    'sync_scheduler',
]
