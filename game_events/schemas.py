from datetime import date, datetime
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


_ISO_DATE_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _validate_iso_date(value: str) -> str:
    # fromisoformat alone also accepts basic (20240301) and week (2024-W10-1) forms
    if not _ISO_DATE_SHAPE.match(value):
        raise ValueError(f"Invalid date: {value}. Must be YYYY-MM-DD")
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid date: {value}. Must be YYYY-MM-DD")
    return value


class ChannelCreate(BaseModel):
    """Channel registration request"""
    game_label: str = Field(..., min_length=1, description="Game this channel announces events for")
    channel_url: str = Field(..., min_length=1, description="Public channel URL")

    @field_validator("game_label", "channel_url")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ChannelUpdate(BaseModel):
    """Partial channel update; a new channel_url is re-resolved"""
    game_label: str | None = Field(None, min_length=1)
    channel_url: str | None = Field(None, min_length=1)

    @field_validator("game_label", "channel_url")
    @classmethod
    def strip_whitespace(cls, v: str | None) -> str | None:
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ChannelResponse(BaseModel):
    """Tracked channel"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    game_label: str
    source_url: str
    channel_identifier: str
    created_at: datetime | None = None


class ChannelListResponse(BaseModel):
    count: int
    channels: list[ChannelResponse]


class EventCreate(BaseModel):
    """Manual event entry"""
    game_label: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str | None = None
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: str | None = Field(None, description="YYYY-MM-DD, on or after start_date")
    source_url: str = Field(..., min_length=1)

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str) -> str:
        return _validate_iso_date(v)

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: str | None) -> str | None:
        return _validate_iso_date(v) if v is not None else None

    @model_validator(mode="after")
    def validate_date_order(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError(f"end_date ({self.end_date}) must not be before start_date ({self.start_date})")
        return self


class EventUpdate(BaseModel):
    """
    Partial update of a stored event

    Only fields present in the request are applied. The event key never
    changes. Date order is checked against the merged result in
    event_query_service.update_event since either bound may come from the
    stored row.
    """
    game_label: str | None = Field(None, min_length=1)
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    start_date: str | None = Field(None, description="YYYY-MM-DD")
    end_date: str | None = Field(None, description="YYYY-MM-DD, null clears it")
    source_url: str | None = Field(None, min_length=1)

    @field_validator("game_label", "title", "source_url")
    @classmethod
    def reject_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("must not be null")
        return v

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("must not be null")
        return _validate_iso_date(v)

    @field_validator("end_date")
    @classmethod
    def validate_end_date(cls, v: str | None) -> str | None:
        return _validate_iso_date(v) if v is not None else None


class EventResponse(BaseModel):
    """Calendar event"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_key: str
    game_label: str
    title: str
    description: str | None = None
    start_date: str
    end_date: str | None = None
    source_url: str
    video_id: str | None = None


class EventListResponse(BaseModel):
    count: int
    events: list[EventResponse]


class SyncResponse(BaseModel):
    """Outcome of a manual channel sync"""
    status: str
    channel_identifier: str
    game_label: str
    videos_fetched: int
    videos_stored: int
    events_created: int
    events_skipped: int


class ChannelCreatedResponse(BaseModel):
    channel: ChannelResponse
    sync: SyncResponse | None = None
    message: str
