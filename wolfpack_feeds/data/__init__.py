"""
Data layer for the Wolfpack fan hub.

Provides read-through cached access to:
- ESPN (scores, schedules, rosters)
- RSS/Atom news feeds
"""
from .aggregator import AggregatorHealth, FeedAggregator
from .models import Article, Feed, Game, TeamScore

__all__ = [
    "AggregatorHealth",
    "Article",
    "Feed",
    "FeedAggregator",
    "Game",
    "TeamScore",
]
