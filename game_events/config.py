from pathlib import Path
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/game_events.db"
    sync_interval_minutes: int = 60
    videos_per_channel: int = 10
    request_timeout_sec: float = 10.0

    feed_base_url: str = "https://www.youtube.com/feeds/videos.xml"
    channel_page_base_url: str = "https://www.youtube.com/channel"
    watch_base_url: str = "https://www.youtube.com/watch"
    thumbnail_base_url: str = "https://i.ytimg.com/vi"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("sync_interval_minutes")
    @classmethod
    def validate_sync_interval(cls, value: int) -> int:
        """Validate the polling interval is between one minute and one day."""
        if value < 1:
            raise ValueError("sync_interval_minutes must be >= 1")
        if value > 1440:
            raise ValueError("sync_interval_minutes must be <= 1440 (one day)")
        return value

    @field_validator("videos_per_channel")
    @classmethod
    def validate_videos_per_channel(cls, value: int) -> int:
        """Bound how many recent videos are pulled per channel."""
        if value <= 0:
            raise ValueError("videos_per_channel must be > 0")
        if value > 50:
            raise ValueError("videos_per_channel must be <= 50")
        return value

    @field_validator("request_timeout_sec")
    @classmethod
    def validate_request_timeout(cls, value: float) -> float:
        """Validate outbound request timeout (seconds)."""
        if value <= 0:
            raise ValueError("request_timeout_sec must be > 0")
        return value

    @field_validator(
        "feed_base_url",
        "channel_page_base_url",
        "watch_base_url",
        "thumbnail_base_url",
    )
    @classmethod
    def validate_base_urls(cls, value: str, info) -> str:
        """Validate upstream base URLs are HTTP/HTTPS."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level is a standard logging level name."""
        normalized = value.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  Sync Interval: %s minutes", self.sync_interval_minutes)
        logger.info("  Videos Per Channel: %s", self.videos_per_channel)
        logger.info("  Request Timeout: %ss", self.request_timeout_sec)
        logger.info("  Feed Base URL: %s", self.feed_base_url)
        logger.info("  Channel Page Base URL: %s", self.channel_page_base_url)


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
