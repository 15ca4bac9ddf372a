"""
Configuration for the Wolfpack feed layer.
"""
from .constants import GameStatus, Sport
from .logging_config import configure_logging
from .settings import (
    CacheSettings,
    ESPNSettings,
    NewsSettings,
    PollingSettings,
    Settings,
    get_settings,
)

__all__ = [
    "CacheSettings",
    "ESPNSettings",
    "GameStatus",
    "NewsSettings",
    "PollingSettings",
    "Settings",
    "Sport",
    "configure_logging",
    "get_settings",
]
