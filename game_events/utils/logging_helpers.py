"""
Structured logging helpers for consistent log formatting.
"""
import logging
from datetime import datetime, timezone


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info("Starting: %s at %s", section_name, datetime.now(timezone.utc).isoformat())


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info("Completed: %s at %s", section_name, datetime.now(timezone.utc).isoformat())


def log_channel_processing(
    logger: logging.Logger,
    idx: int,
    total: int,
    game_label: str,
    channel_identifier: str,
) -> None:
    """
    Log channel processing header.

    Args:
        logger: Logger instance
        idx: Current channel index (1-based)
        total: Total number of channels
        game_label: Game the channel is tracked for
        channel_identifier: Platform channel ID
    """
    logger.info("Processing channel %s/%s: %s (%s)", idx, total, game_label, channel_identifier)


def log_sync_stats(
    logger: logging.Logger,
    game_label: str,
    videos_fetched: int,
    events_created: int,
    events_skipped: int,
) -> None:
    """Log per-channel sync statistics."""
    logger.info(
        "Synced %s: %s videos fetched, %s events created, %s already present",
        game_label,
        videos_fetched,
        events_created,
        events_skipped,
    )
