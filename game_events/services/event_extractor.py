"""
Event Extractor

Turns a video's title and description into zero or more calendar event
candidates using a keyword gate and date pattern scanning. This is a
heuristic, not date understanding: consecutive dates found in the text are
paired into start/end spans.
"""
from datetime import date, datetime, timezone
import logging
import re

from game_events.services.feed_parser_service import watch_url
from game_events.services.fetch_types import EventCandidate, VideoSummary
from game_events.utils.timezone import shift_years, utc_date_string

logger = logging.getLogger(__name__)

EVENT_KEYWORDS = (
    "이벤트", "event",
    "업데이트", "update",
    "점검", "maintenance",
    "패치", "patch",
    "시작", "start",
    "종료", "end",
    "보상", "reward",
    "업그레이드", "upgrade",
    "시즌", "season",
)

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
DOT_DATE_PATTERN = re.compile(r"\d{4}\.\d{2}\.\d{2}")
# Korean month/day form, e.g. "3월 15일"
MONTH_DAY_PATTERN = re.compile(r"(\d{1,2})월\s*(\d{1,2})일")

_VALID_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def has_event_keywords(text: str) -> bool:
    """Case-insensitive substring check against the keyword set"""
    lowered = text.lower()
    return any(keyword in lowered for keyword in EVENT_KEYWORDS)


def extract_dates(text: str, today: date | None = None) -> list[str]:
    """
    Find, normalize, validate and sort date mentions in text

    Args:
        text: Text to scan
        today: Reference date for the month/day year default and the
            plausibility window (defaults to current UTC date)

    Returns:
        Sorted unique ISO date strings
    """
    if today is None:
        today = datetime.now(timezone.utc).date()

    found: list[str] = []
    found.extend(ISO_DATE_PATTERN.findall(text))
    found.extend(match.replace(".", "-") for match in DOT_DATE_PATTERN.findall(text))
    for month, day in MONTH_DAY_PATTERN.findall(text):
        found.append(f"{today.year}-{int(month):02d}-{int(day):02d}")

    return sorted(value for value in set(found) if is_valid_date(value, today))


def is_valid_date(value: str, today: date | None = None) -> bool:
    """
    Check a YYYY-MM-DD string for shape, month/day range and plausibility

    Day counts per month are not checked. The date must fall within one year
    either side of `today`.
    """
    if not _VALID_SHAPE.match(value):
        return False

    _, month, day = (int(part) for part in value.split("-"))
    if month < 1 or month > 12 or day < 1 or day > 31:
        return False

    if today is None:
        today = datetime.now(timezone.utc).date()

    # String comparison keeps e.g. 2024-02-31 comparable without a real date
    lower = shift_years(today, -1).isoformat()
    upper = shift_years(today, 1).isoformat()
    return lower <= value <= upper


def extract_events(
    video: VideoSummary,
    game_label: str,
    today: date | None = None,
) -> list[EventCandidate]:
    """
    Extract event candidates from one video

    Returns an empty list when no event keyword is present. With keywords but
    no usable dates, a single candidate dated on the video's publish day is
    returned, or nothing if the publish time is missing. Otherwise one
    candidate per date, each ending on the next date.
    """
    title = video.title or ""
    description = video.description or ""
    full_text = f"{title} {description}"

    if not has_event_keywords(full_text):
        return []

    source_url = watch_url(video.video_id)
    dates = extract_dates(full_text, today)

    if not dates:
        if not isinstance(video.published_at, datetime):
            logger.debug("Video %s (%s) has no dates and no publish time", video.video_id, game_label)
            return []
        logger.debug("Video %s (%s) matched keywords without dates", video.video_id, game_label)
        return [
            EventCandidate(
                title=title,
                description=description,
                start_date=utc_date_string(video.published_at),
                source_url=source_url,
                video_id=video.video_id,
            )
        ]

    logger.debug("Video %s (%s) yielded dates %s", video.video_id, game_label, dates)
    return [
        EventCandidate(
            title=title,
            description=description,
            start_date=start,
            end_date=dates[index + 1] if index + 1 < len(dates) else None,
            source_url=source_url,
            video_id=video.video_id,
        )
        for index, start in enumerate(dates)
    ]
