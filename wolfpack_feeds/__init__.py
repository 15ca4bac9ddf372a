"""
Wolfpack Feeds - cached scores and news for the NC State fan hub.
"""
from .data.aggregator import FeedAggregator
from .data.models import Article, Feed, Game, TeamScore
from .data.sources.base import FeedError, NetworkError, ParseError, UnsupportedSportError

__version__ = "0.1.0"

__all__ = [
    "Article",
    "Feed",
    "FeedAggregator",
    "FeedError",
    "Game",
    "NetworkError",
    "ParseError",
    "TeamScore",
    "UnsupportedSportError",
]
