"""
SQLAlchemy ORM Models for the Game Event Calendar

This module defines the database models for tracked channels, ingested videos
and calendar events.
"""
from datetime import datetime, timezone
from sqlalchemy import String, Text, DateTime, Index, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Channel(Base):
    """A tracked video channel, one per game"""
    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_label: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    source_url: Mapped[str] = mapped_column(String, nullable=False)
    channel_identifier: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, game_label={self.game_label}, channel={self.channel_identifier})>"


class Video(Base):
    """Lightweight record of a fetched video, written once and never updated"""
    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    video_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    channel_identifier: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    video_url: Mapped[str] = mapped_column(String, nullable=False)
    thumbnail_url: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    __table_args__ = (
        Index("idx_videos_channel_identifier", "channel_identifier"),
    )

    def __repr__(self) -> str:
        return f"<Video(video_id={self.video_id}, title={self.title})>"


class Event(Base):
    """Calendar event, either extracted from a video or entered by hand"""
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_key: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    game_label: Mapped[str] = mapped_column(String, nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # ISO YYYY-MM-DD strings, compared lexicographically
    start_date: Mapped[str] = mapped_column(String(10), nullable=False)
    end_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    source_url: Mapped[str] = mapped_column(String, nullable=False)
    video_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_events_game_label", "game_label"),
        Index("idx_events_start_date", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Event(event_key={self.event_key}, title={self.title}, start={self.start_date})>"
