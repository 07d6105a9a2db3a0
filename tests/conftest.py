"""
Shared pytest fixtures for the Game Event Calendar test suite.
"""
from datetime import datetime, timezone

import pytest
import pytest_asyncio

from game_events.database import close_db, init_db
from game_events.services.fetch_types import VideoSummary


@pytest_asyncio.fixture
async def database(tmp_path):
    """Fresh SQLite database per test."""
    await init_db(str(tmp_path / "test.db"))
    yield
    await close_db()


@pytest.fixture
def make_video():
    """
    Return a function that creates VideoSummary objects with sensible defaults.

    Example:
        video = make_video(title="Season 3 update", description="2024-03-01")
    """

    def _make_video(
        video_id: str = "dQw4w9WgXcQ",
        title: str = "Test Video",
        description: str = "",
        published_at: datetime | None = None,
    ) -> VideoSummary:
        if published_at is None:
            published_at = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
        return VideoSummary(
            video_id=video_id,
            title=title,
            description=description,
            published_at=published_at,
            source_url=f"https://www.youtube.com/watch?v={video_id}",
        )

    return _make_video
