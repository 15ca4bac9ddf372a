"""
Feed aggregation layer.

Single entry point the view layer polls for scores and news:
- One cache instance shared by both clients
- Health monitoring across sources
- Errors propagate to the caller, who shows a fallback and waits for the
  next poll
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from loguru import logger

from ..config.constants import Sport
from . import articles as article_views
from .cache.cache_manager import CacheManager
from .models import Article, Game
from .sources.base import DataSourceHealth, DataSourceStatus
from .sources.espn_client import ESPNClient
from .sources.rss_client import RSSClient


@dataclass
class AggregatorHealth:
    """Overall health status of the feed layer."""

    status: str  # healthy, degraded, unhealthy
    sources: dict[str, DataSourceHealth]
    cache: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class FeedAggregator:
    """
    Unified access to scores and news for the fan hub.

    Example:
        >>> async with FeedAggregator.from_settings(get_settings()) as feeds:
        ...     games = await feeds.fetch_live_games("basketball")
        ...     news = await feeds.search_articles("recruit")
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        espn: Optional[ESPNClient] = None,
        rss: Optional[RSSClient] = None,
        featured_count: int = 5,
        recent_days: int = 7,
        schedule_window_days: int = 7,
    ):
        self.cache = cache or CacheManager.create_memory_cache()
        self.espn = espn or ESPNClient(cache=self.cache)
        self.rss = rss or RSSClient(cache=self.cache)
        self.featured_count = featured_count
        self.recent_days = recent_days
        self.schedule_window_days = schedule_window_days

        self.logger = logger.bind(source="aggregator")

    @classmethod
    def from_settings(cls, settings) -> "FeedAggregator":
        """
        Create a FeedAggregator from application settings.

        Args:
            settings: Application settings object

        Returns:
            Configured FeedAggregator with one shared cache
        """
        cache = CacheManager.create_from_settings(settings)
        return cls(
            cache=cache,
            espn=ESPNClient.from_settings(settings, cache=cache),
            rss=RSSClient.from_settings(settings, cache=cache),
            featured_count=settings.news.featured_count,
            recent_days=settings.news.recent_days,
            schedule_window_days=settings.espn.schedule_window_days,
        )

    async def __aenter__(self) -> "FeedAggregator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    async def fetch_live_games(self, sport: str | Sport = Sport.BASKETBALL) -> list[Game]:
        return await self.espn.fetch_live_games(sport)

    async def fetch_upcoming_games(
        self, sport: str | Sport = Sport.BASKETBALL, now: Optional[datetime] = None
    ) -> list[Game]:
        return await self.espn.fetch_upcoming_games(
            sport, days=self.schedule_window_days, now=now
        )

    async def fetch_recent_games(
        self, sport: str | Sport = Sport.BASKETBALL, now: Optional[datetime] = None
    ) -> list[Game]:
        return await self.espn.fetch_recent_games(
            sport, days=self.schedule_window_days, now=now
        )

    async def is_team_playing(self, sport: str | Sport = Sport.BASKETBALL) -> bool:
        return await self.espn.is_team_playing(sport)

    async def fetch_standings(self, sport: str | Sport = Sport.BASKETBALL) -> list[dict]:
        return await self.espn.fetch_standings(sport)

    async def fetch_all_sports(self) -> dict[str, dict]:
        return await self.espn.fetch_all_sports()

    # ------------------------------------------------------------------
    # News
    # ------------------------------------------------------------------

    async def fetch_articles(self) -> list[Article]:
        return await self.rss.fetch_articles()

    async def search_articles(self, query: str) -> list[Article]:
        return article_views.search_articles(await self.fetch_articles(), query)

    async def fetch_articles_by_category(self, category: str) -> list[Article]:
        return article_views.filter_by_category(await self.fetch_articles(), category)

    async def fetch_recent_articles(self, days: Optional[int] = None) -> list[Article]:
        return article_views.filter_recent(
            await self.fetch_articles(), days=days or self.recent_days
        )

    async def fetch_featured_articles(self, count: Optional[int] = None) -> list[Article]:
        return article_views.featured(
            await self.fetch_articles(), count=count or self.featured_count
        )

    async def fetch_sports_news(self, sport: str) -> list[Article]:
        return article_views.filter_by_sport(await self.fetch_articles(), sport)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def health_check(self) -> AggregatorHealth:
        """Probe every source and the cache."""
        sources = {
            "espn": await self.espn.health_check(),
            "rss": await self.rss.health_check(),
        }
        cache_health = await self.cache.health_check()

        statuses = [h.status for h in sources.values()]
        if all(s == DataSourceStatus.HEALTHY for s in statuses):
            overall = "healthy"
        elif all(s == DataSourceStatus.UNHEALTHY for s in statuses):
            overall = "unhealthy"
        else:
            overall = "degraded"

        self.logger.info(
            f"Feed health: {overall}",
            sources={k: v.status.value for k, v in sources.items()},
        )
        return AggregatorHealth(status=overall, sources=sources, cache=cache_health)

    async def close(self) -> None:
        """Close all client sessions and clear the cache."""
        await self.espn.close()
        await self.rss.close()
        await self.cache.close()
        self.logger.info("Feed aggregator closed")
