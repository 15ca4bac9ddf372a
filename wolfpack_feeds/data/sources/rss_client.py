"""
RSS/Atom client for NC State news.

Fetches a feed with aiohttp, parses it with feedparser and caches the parsed
Feed under its URL. Article search and filtering live in
``wolfpack_feeds.data.articles`` and never trigger a fetch.
"""
import asyncio
import html
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

import aiohttp
import feedparser

from ...config.constants import (
    DEFAULT_AUTHOR,
    DEFAULT_FEED_URL,
    DEFAULT_TITLE,
    NEWS_TTL_SECONDS,
)
from ..cache.cache_manager import CacheManager
from ..models import Article, Feed
from .base import (
    CachedDataSource,
    DataSourceHealth,
    DataSourceStatus,
    FeedError,
    ParseError,
)

RSS_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml"

IMG_SRC_RE = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")
CHANNEL_RE = re.compile(rb"<(?:[\w-]+:)?channel[\s>/]", re.IGNORECASE)

# RDF-based versions (0.90, 1.0) have no <rss><channel> root
RDF_VERSIONS = frozenset({"rss090", "rss10"})


class RSSClient(CachedDataSource):
    """
    Client for RSS 2.0 / Atom news feeds.

    Any feed URL may be fetched; ``feed_url`` is the default used when
    none is given.
    """

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        feed_url: str = DEFAULT_FEED_URL,
        cache_ttl_seconds: float = NEWS_TTL_SECONDS,
        enabled: bool = True,
        user_agent: str = "NC State Sports Hub/1.0",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(
            source_name="rss",
            cache=cache,
            cache_ttl_seconds=cache_ttl_seconds,
            enabled=enabled,
            user_agent=user_agent,
            session=session,
        )
        self.feed_url = feed_url

    @classmethod
    def from_settings(cls, settings, cache: Optional[CacheManager] = None) -> "RSSClient":
        return cls(
            cache=cache,
            feed_url=settings.news.feed_url,
            cache_ttl_seconds=settings.news.cache_ttl_seconds,
            user_agent=settings.espn.user_agent,
        )

    async def health_check(self) -> DataSourceHealth:
        """Check that the default feed can be fetched and parsed."""
        if not self.enabled:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.DISABLED,
                error_message="RSS integration disabled",
            )

        try:
            await self.fetch_feed(self.feed_url, use_cache=False)
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.HEALTHY,
                last_success=datetime.now(),
                latency_ms=self._health.latency_ms,
            )
        except FeedError as e:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.UNHEALTHY,
                last_failure=datetime.now(),
                error_message=str(e),
            )

    async def fetch_feed(self, url: Optional[str] = None, use_cache: bool = True) -> Feed:
        """
        Fetch and parse a feed.

        Args:
            url: Feed URL (defaults to the configured feed)
            use_cache: Whether to use a cached parse if still fresh

        Raises:
            NetworkError: request failed or returned non-2xx
            ParseError: document is neither RSS nor Atom
        """
        url = url or self.feed_url

        async def load() -> Feed:
            body = await self._get(url, headers={"Accept": RSS_ACCEPT})
            try:
                return parse_feed(body, url)
            except ParseError as e:
                self._record_failure(str(e))
                raise

        return await self.fetch_cached(url, load, use_cache=use_cache)

    async def fetch_articles(self, url: Optional[str] = None) -> list[Article]:
        """All articles of a feed, in document order."""
        feed = await self.fetch_feed(url)
        return list(feed.articles)

    async def fetch_feed_info(self, url: Optional[str] = None) -> dict[str, str]:
        """Title, description, link and last build date of a feed."""
        feed = await self.fetch_feed(url)
        return {
            "title": feed.title,
            "description": feed.description,
            "link": feed.link,
            "last_build_date": feed.last_build_date,
        }

    async def fetch_combined(self, urls: list[str], limit: int = 20) -> list[Article]:
        """
        Merge several feeds, newest first.

        Feeds that fail are logged and skipped.
        """
        results = await asyncio.gather(
            *(self.fetch_feed(u) for u in urls),
            return_exceptions=True,
        )

        articles: list[Article] = []
        for url, result in zip(urls, results):
            if isinstance(result, FeedError):
                self.logger.warning(f"Failed to fetch feed {url}: {result}")
                continue
            if isinstance(result, Exception):
                self.logger.exception(f"Unexpected error fetching feed {url}: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            articles.extend(result.articles)

        articles.sort(key=lambda a: a.published_at, reverse=True)
        return articles[:limit]


def parse_feed(content: Union[bytes, str], url: str = "", source_name: str = "rss") -> Feed:
    """
    Parse an RSS 2.0 or Atom document into a Feed.

    Raises:
        ParseError: document has neither an ``<rss><channel>`` nor a ``<feed>`` root
    """
    if isinstance(content, str):
        # feedparser treats a bare str as a URL or path
        content = content.encode("utf-8")
    parsed = feedparser.parse(content)

    if not _has_feed_root(parsed.get("version") or "", content):
        reason = parsed.get("bozo_exception") or "no rss channel or atom feed root"
        raise ParseError(f"Invalid RSS feed format for {url}: {reason}", source_name)

    channel = parsed.get("feed", {})
    fetched_at = datetime.now(timezone.utc)

    articles = tuple(
        _parse_entry(entry, index, fetched_at)
        for index, entry in enumerate(parsed.get("entries", []))
    )

    return Feed(
        url=url,
        title=channel.get("title") or "RSS Feed",
        description=channel.get("subtitle") or channel.get("description", ""),
        link=channel.get("link", ""),
        last_build_date=channel.get("updated") or fetched_at.isoformat(),
        articles=articles,
    )


def _has_feed_root(version: str, content: bytes) -> bool:
    """Accept Atom, or RSS 0.9x/2.0 whose document really carries a channel."""
    if version.startswith("atom"):
        return True
    if not version.startswith("rss") or version in RDF_VERSIONS:
        return False
    return CHANNEL_RE.search(content) is not None


def _parse_entry(entry: Any, index: int, fetched_at: datetime) -> Article:
    raw_description = entry.get("summary") or entry.get("description") or ""
    description = strip_html(raw_description)

    guid = entry.get("id") or entry.get("guid") or f"guid-{index}"

    content = description
    if entry.get("content"):
        content = entry["content"][0].get("value") or description

    return Article(
        id=guid,
        guid=guid,
        title=entry.get("title") or DEFAULT_TITLE,
        description=description,
        link=entry.get("link", ""),
        published_at=_entry_date(entry) or fetched_at,
        author=entry.get("author") or DEFAULT_AUTHOR,
        categories=_entry_categories(entry),
        content=content,
        image_url=extract_image_url(raw_description),
    )


def _entry_categories(entry: Any) -> frozenset[str]:
    """A feed item may carry zero, one or many categories."""
    terms = set()
    for tag in entry.get("tags") or []:
        term = (tag.get("term") or "").strip()
        if term:
            terms.add(term)
    return frozenset(terms)


def _entry_date(entry: Any) -> Optional[datetime]:
    for field in ("published_parsed", "updated_parsed"):
        value = entry.get(field)
        if value:
            return datetime(*value[:6], tzinfo=timezone.utc)
    return None


def extract_image_url(markup: str) -> Optional[str]:
    """``src`` of the first ``<img>`` in a fragment of HTML."""
    match = IMG_SRC_RE.search(markup or "")
    return match.group(1) if match else None


def strip_html(markup: str) -> str:
    """Drop tags, unescape entities and collapse whitespace."""
    if not markup:
        return ""
    clean = TAG_RE.sub("", markup)
    clean = html.unescape(clean)
    return WHITESPACE_RE.sub(" ", clean).strip()
