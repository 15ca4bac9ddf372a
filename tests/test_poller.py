"""Tests for the polling driver."""
import pytest

from wolfpack_feeds.config.constants import ESPN_SITE_API
from wolfpack_feeds.config.settings import Settings
from wolfpack_feeds.data import FeedAggregator
from wolfpack_feeds.data.sources import ESPNClient, RSSClient
from wolfpack_feeds.scheduler import FeedPoller

from .conftest import TRACKED_ID
from .test_rss_client import FEED_URL, RSS_DOC

BASKETBALL = f"{ESPN_SITE_API}/basketball/mens-college-basketball"


@pytest.fixture
def poller(cache, session) -> FeedPoller:
    aggregator = FeedAggregator(
        cache=cache,
        espn=ESPNClient(cache=cache, team_id=TRACKED_ID, session=session),
        rss=RSSClient(cache=cache, feed_url=FEED_URL, session=session),
    )
    return FeedPoller(aggregator, sports=["basketball"], interval_seconds=30)


async def test_refresh_populates_snapshots(poller, session, scoreboard):
    session.add(f"{BASKETBALL}/scoreboard", scoreboard)
    session.add(f"{BASKETBALL}/teams/{TRACKED_ID}/schedule", {"events": []})
    session.add(FEED_URL, RSS_DOC)

    await poller.refresh()

    snapshot = poller.sports["basketball"]
    assert [g.id for g in snapshot.live_games] == ["2", "3"]
    assert snapshot.error is None
    assert snapshot.updated_at is not None
    assert [a.guid for a in poller.news.articles] == ["recap-1"]
    assert poller.news.error is None


async def test_failure_falls_back_to_empty_with_message(poller, session, scoreboard):
    session.add(f"{BASKETBALL}/scoreboard", scoreboard)
    session.add(f"{BASKETBALL}/teams/{TRACKED_ID}/schedule", {"events": []})
    session.add(FEED_URL, RSS_DOC)
    await poller.refresh()

    session.add(f"{BASKETBALL}/scoreboard", "down", status=500)
    await poller.aggregator.cache.clear_prefix("live-games-")
    await poller.refresh()

    snapshot = poller.sports["basketball"]
    assert snapshot.live_games == []
    assert "basketball" in snapshot.error
    assert poller.news.error is None


async def test_warm_ticks_do_not_hit_network(poller, session, scoreboard):
    url = f"{BASKETBALL}/scoreboard"
    session.add(url, scoreboard)
    session.add(f"{BASKETBALL}/teams/{TRACKED_ID}/schedule", {"events": []})
    session.add(FEED_URL, RSS_DOC)

    await poller.refresh()
    await poller.refresh()

    assert session.calls(url) == 1
    assert session.calls(FEED_URL) == 1


async def test_news_failure(poller, session):
    session.add(f"{BASKETBALL}/scoreboard", {"events": []})
    session.add(f"{BASKETBALL}/teams/{TRACKED_ID}/schedule", {"events": []})

    await poller.refresh()

    assert poller.news.articles == []
    assert poller.news.error is not None


async def test_start_and_stop(poller):
    poller.start()
    try:
        assert poller.is_running
        job = poller.scheduler.get_job("refresh_feeds")
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30
    finally:
        poller.stop()
    assert not poller.is_running


def test_from_settings(poller):
    settings = Settings(_env_file=None, polling={"interval_seconds": 45, "sports": ["football"]})
    built = FeedPoller.from_settings(settings, poller.aggregator)

    assert built.interval_seconds == 45
    assert list(built.sports) == ["football"]
