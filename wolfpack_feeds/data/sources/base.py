"""
Base class for all feed clients.

Provides the common error taxonomy, HTTP session handling, health tracking
and cache wiring that the ESPN and RSS clients share. Fetches are never
retried here: the caller's next poll is the retry.
"""
import asyncio
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import aiohttp
import certifi
from loguru import logger

from ..cache.cache_manager import CacheManager


class DataSourceStatus(str, Enum):
    """Health status of a data source."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    DISABLED = "disabled"


@dataclass
class DataSourceHealth:
    """Health information for a data source."""

    source_name: str
    status: DataSourceStatus
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None
    latency_ms: Optional[float] = None


class FeedError(Exception):
    """Base exception for feed errors."""

    def __init__(
        self,
        message: str,
        source_name: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.source_name = source_name
        self.original_error = original_error


class NetworkError(FeedError):
    """Request could not complete or returned a non-success status."""

    def __init__(
        self,
        message: str,
        source_name: str,
        status: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, source_name, original_error=original_error)
        self.status = status


class ParseError(FeedError):
    """Payload did not match the expected JSON/XML shape."""


class UnsupportedSportError(FeedError):
    """Sport has no upstream endpoint."""

    def __init__(self, source_name: str, sport: str):
        super().__init__(f"Unsupported sport: {sport}", source_name)
        self.sport = sport


class BaseDataSource(ABC):
    """
    Abstract base class for all feed clients.

    Provides:
    - Lazily created aiohttp session (or an injected one)
    - Error mapping to NetworkError
    - Health monitoring
    - Logging
    """

    DEGRADED_AFTER_FAILURES = 2
    UNHEALTHY_AFTER_FAILURES = 5

    def __init__(
        self,
        source_name: str,
        enabled: bool = True,
        user_agent: str = "NC State Sports Hub/1.0",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.source_name = source_name
        self.enabled = enabled
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

        self._health = DataSourceHealth(
            source_name=source_name,
            status=DataSourceStatus.HEALTHY if enabled else DataSourceStatus.DISABLED,
        )

        # Setup logging
        self.logger = logger.bind(source=source_name)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": self.user_agent},
            )
            self._owns_session = True
        return self._session

    async def _get(self, url: str, headers: Optional[dict[str, str]] = None) -> bytes:
        """
        GET a URL and return the raw body.

        Raises:
            NetworkError: connection failure or non-2xx response
        """
        if not self.enabled:
            raise FeedError(
                f"Data source {self.source_name} is disabled",
                self.source_name,
            )

        session = await self._get_session()
        start_time = datetime.now()

        try:
            async with session.get(url, headers=headers) as response:
                if not 200 <= response.status < 300:
                    raise NetworkError(
                        f"{self.source_name} returned HTTP {response.status} for {url}",
                        self.source_name,
                        status=response.status,
                    )
                body = await response.read()

        except NetworkError as e:
            self._record_failure(str(e))
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._record_failure(str(e))
            raise NetworkError(
                f"Connection error fetching {url}: {e}",
                self.source_name,
                original_error=e,
            ) from e

        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
        self.logger.debug(f"GET {url} ({elapsed_ms:.0f} ms)")
        self._record_success(elapsed_ms)
        return body

    @abstractmethod
    async def health_check(self) -> DataSourceHealth:
        """
        Perform a health check on the data source.

        Should be a lightweight check (e.g., one upstream request).
        """
        pass

    def _record_success(self, latency_ms: float) -> None:
        """Record a successful fetch."""
        self._health.last_success = datetime.now()
        self._health.latency_ms = latency_ms
        self._health.consecutive_failures = 0
        self._health.error_message = None
        self._health.status = DataSourceStatus.HEALTHY

    def _record_failure(self, error_message: str) -> None:
        """Record a failed fetch."""
        self._health.last_failure = datetime.now()
        self._health.consecutive_failures += 1
        self._health.error_message = error_message

        if self._health.consecutive_failures >= self.UNHEALTHY_AFTER_FAILURES:
            self._health.status = DataSourceStatus.UNHEALTHY
            self.logger.error(
                f"{self.source_name} unhealthy after "
                f"{self._health.consecutive_failures} failures"
            )
        elif self._health.consecutive_failures >= self.DEGRADED_AFTER_FAILURES:
            self._health.status = DataSourceStatus.DEGRADED

    def get_health(self) -> DataSourceHealth:
        """Get current health status of the data source."""
        return self._health

    async def close(self) -> None:
        """Close HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None


class CachedDataSource(BaseDataSource):
    """
    Data source with built-in caching support.

    The cache manager is passed in rather than created here so several
    clients can share one cache instance.
    """

    def __init__(
        self,
        source_name: str,
        cache: Optional[CacheManager] = None,
        cache_ttl_seconds: float = 300,
        **kwargs,
    ):
        super().__init__(source_name, **kwargs)
        self.cache = cache or CacheManager.create_memory_cache()
        self.cache_ttl_seconds = cache_ttl_seconds

    async def fetch_cached(
        self,
        cache_key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
        use_cache: bool = True,
    ) -> Any:
        """
        Return the cached value for ``cache_key`` or load it with ``factory``.

        Args:
            cache_key: Key the payload is stored under
            factory: Async callable that performs the upstream fetch
            ttl_seconds: Optional TTL override
            use_cache: Whether to use cached data if available
        """
        ttl = self.cache_ttl_seconds if ttl_seconds is None else ttl_seconds

        if not use_cache:
            value = await factory()
            await self.cache.set(cache_key, value, ttl_seconds=ttl)
            return value

        return await self.cache.get_or_set(cache_key, factory, ttl_seconds=ttl)

    async def invalidate_cache(self, cache_key: str) -> None:
        """Invalidate cached data for one key."""
        await self.cache.delete(cache_key)
        self.logger.debug(f"Cache invalidated for key: {cache_key}")
