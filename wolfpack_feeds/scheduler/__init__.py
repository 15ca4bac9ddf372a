"""
Background polling for the Wolfpack feeds.
"""

from .poller import FeedPoller, NewsSnapshot, SportSnapshot

__all__ = [
    "FeedPoller",
    "NewsSnapshot",
    "SportSnapshot",
]
