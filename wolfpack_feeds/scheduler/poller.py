"""
APScheduler driver that keeps feed snapshots fresh.

Refreshes every sport and the news feed on start and then every
``interval_seconds``. A failed slice falls back to an empty list and carries
a user-visible error message until the next tick succeeds.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.constants import Sport
from ..data.aggregator import FeedAggregator
from ..data.models import Article, Game
from ..data.sources.base import FeedError

logger = logging.getLogger(__name__)


@dataclass
class SportSnapshot:
    """Last known scores for one sport."""

    live_games: list[Game] = field(default_factory=list)
    upcoming_games: list[Game] = field(default_factory=list)
    error: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass
class NewsSnapshot:
    """Last known news articles."""

    articles: list[Article] = field(default_factory=list)
    error: Optional[str] = None
    updated_at: Optional[datetime] = None


class FeedPoller:
    """
    Polls a FeedAggregator on a fixed interval.

    Example:
        >>> poller = FeedPoller(aggregator, interval_seconds=30)
        >>> poller.start()
        >>> poller.sports["basketball"].live_games
        >>> poller.stop()
    """

    def __init__(
        self,
        aggregator: FeedAggregator,
        sports: Optional[list[str]] = None,
        interval_seconds: int = 30,
    ):
        self.aggregator = aggregator
        self.interval_seconds = interval_seconds
        self.sport_names = sports or [s.value for s in Sport]

        self.sports: dict[str, SportSnapshot] = {s: SportSnapshot() for s in self.sport_names}
        self.news = NewsSnapshot()

        self.scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Only one refresh at a time
                "misfire_grace_time": interval_seconds,
            },
        )
        self._is_running = False

        self.scheduler.add_listener(self._on_job_executed, EVENT_JOB_EXECUTED)
        self.scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    @classmethod
    def from_settings(cls, settings: Any, aggregator: FeedAggregator) -> "FeedPoller":
        return cls(
            aggregator,
            sports=settings.polling.sports,
            interval_seconds=settings.polling.interval_seconds,
        )

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Start polling. Must be called from a running event loop."""
        if self._is_running:
            logger.warning("Poller already running")
            return

        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id="refresh_feeds",
            name="Refresh scores and news",
            next_run_time=datetime.now(self.scheduler.timezone),
            replace_existing=True,
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(f"Feed poller started, every {self.interval_seconds}s")

    def stop(self) -> None:
        """Stop polling. In-flight fetches are left to finish."""
        if not self._is_running:
            return

        self.scheduler.shutdown(wait=False)
        self._is_running = False
        logger.info("Feed poller stopped")

    async def refresh(self) -> None:
        """Refresh every sport and the news feed once."""
        for sport in self.sport_names:
            await self.refresh_sport(sport)
        await self.refresh_news()

    async def refresh_sport(self, sport: str) -> SportSnapshot:
        snapshot = self.sports.setdefault(sport, SportSnapshot())
        try:
            live = await self.aggregator.fetch_live_games(sport)
            upcoming = await self.aggregator.fetch_upcoming_games(sport)
        except FeedError as e:
            logger.error(f"Failed to fetch {sport} game data: {e}")
            snapshot.live_games = []
            snapshot.upcoming_games = []
            snapshot.error = f"Failed to load {sport} game data. Please try again later."
        else:
            snapshot.live_games = live
            snapshot.upcoming_games = upcoming
            snapshot.error = None
        snapshot.updated_at = datetime.now()
        return snapshot

    async def refresh_news(self) -> NewsSnapshot:
        try:
            articles = await self.aggregator.fetch_articles()
        except FeedError as e:
            logger.error(f"Failed to fetch news: {e}")
            self.news.articles = []
            self.news.error = "Failed to load news. Please try again."
        else:
            self.news.articles = articles
            self.news.error = None
        self.news.updated_at = datetime.now()
        return self.news

    def _on_job_executed(self, event: JobExecutionEvent) -> None:
        logger.debug(f"Job {event.job_id} completed")

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(f"Job {event.job_id} failed: {event.exception}")
