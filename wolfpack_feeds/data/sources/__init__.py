"""
Feed clients for the Wolfpack fan hub.

Available sources:
- ESPNClient: scoreboard, schedule, roster and team data for the tracked team
- RSSClient: RSS/Atom news feeds
"""
from .base import (
    BaseDataSource,
    CachedDataSource,
    DataSourceHealth,
    DataSourceStatus,
    FeedError,
    NetworkError,
    ParseError,
    UnsupportedSportError,
)
from .espn_client import ESPNClient
from .rss_client import RSSClient, parse_feed

__all__ = [
    # Base classes
    "BaseDataSource",
    "CachedDataSource",
    "DataSourceHealth",
    "DataSourceStatus",
    # Errors
    "FeedError",
    "NetworkError",
    "ParseError",
    "UnsupportedSportError",
    # Clients
    "ESPNClient",
    "RSSClient",
    "parse_feed",
]
