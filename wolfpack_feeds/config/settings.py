"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env file.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_FEED_URL, ESPN_SITE_API, NC_STATE_TEAM_ID, Sport


class ESPNSettings(BaseSettings):
    """Settings for the ESPN site API."""

    model_config = SettingsConfigDict(env_prefix="ESPN_")

    site_api: str = Field(
        default=ESPN_SITE_API,
        description="Base URL for the ESPN site API",
    )
    team_id: str = Field(
        default=NC_STATE_TEAM_ID,
        description="ESPN id of the tracked team",
    )
    cache_ttl_seconds: int = Field(
        default=300,
        description="How long scoreboard and schedule payloads stay fresh",
    )
    schedule_window_days: int = Field(
        default=7,
        ge=1,
        description="Days ahead/behind covered by upcoming and recent games",
    )
    user_agent: str = Field(default="NC State Sports Hub/1.0")


class NewsSettings(BaseSettings):
    """Settings for the news feed."""

    model_config = SettingsConfigDict(env_prefix="NEWS_")

    feed_url: str = Field(
        default=DEFAULT_FEED_URL,
        description="RSS/Atom feed with team news",
    )
    cache_ttl_seconds: int = Field(
        default=600,
        description="How long a parsed feed stays fresh",
    )
    featured_count: int = Field(default=5)
    recent_days: int = Field(default=7)


class PollingSettings(BaseSettings):
    """Settings for the feed poller."""

    model_config = SettingsConfigDict(env_prefix="POLL_")

    interval_seconds: int = Field(
        default=30,
        description="Seconds between refreshes of every feed",
    )
    sports: list[str] = Field(
        default=[s.value for s in Sport],
        description="Sports refreshed on each tick",
    )

    @field_validator("sports")
    @classmethod
    def validate_sports(cls, v: list[str]) -> list[str]:
        allowed = [s.value for s in Sport]
        for sport in v:
            if sport not in allowed:
                raise ValueError(f"sports must be drawn from {allowed}")
        return v


class CacheSettings(BaseSettings):
    """Settings for the in-memory cache."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    key_prefix: str = Field(default="wolfpack")
    max_size: int = Field(default=1000)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    debug: bool = Field(default=False)

    # Sub-settings
    espn: ESPNSettings = Field(default_factory=ESPNSettings)
    news: NewsSettings = Field(default_factory=NewsSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
