"""
In-memory TTL caching layer.

Provides a consistent interface for caching upstream feed payloads:
- CacheBackend: abstract async key/value store with TTLs
- InMemoryCache: process-local store with lazy eviction
- CacheManager: key namespacing, logging and in-flight request deduplication

Entries are valid while ``now - stored_at < ttl``. Expired entries are
treated as absent and removed on the next access; there is no background sweep.
"""
import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from loguru import logger


@dataclass
class CacheEntry:
    """A cached value and the moment it was stored."""

    key: str
    value: Any
    stored_at: float
    ttl_seconds: float

    def is_valid(self, now: float) -> bool:
        return now - self.stored_at < self.ttl_seconds

    def remaining(self, now: float) -> float:
        return max(0.0, self.ttl_seconds - (now - self.stored_at))


class CacheBackend(ABC):
    """Abstract base class for cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get a value from cache."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Set a value in cache with TTL."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key from cache."""
        pass

    @abstractmethod
    async def clear_prefix(self, prefix: str) -> None:
        """Clear all keys with given prefix."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        pass

    @abstractmethod
    async def get_ttl(self, key: str) -> Optional[float]:
        """Get remaining TTL for a key in seconds."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the backend."""
        pass


class InMemoryCache(CacheBackend):
    """
    Simple in-memory cache backend.

    All access happens on one event loop and no method awaits while holding
    state, so no lock is taken. Data is lost when the process exits.
    """

    def __init__(
        self,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._max_size = max_size
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        # Raw membership, does not evict
        return key in self._entries

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if not entry.is_valid(self._clock()):
            del self._entries[key]
            return None

        return entry.value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if key not in self._entries and len(self._entries) >= self._max_size:
            self._evict_expired()
            if len(self._entries) >= self._max_size:
                # Remove oldest 10%
                oldest = sorted(self._entries.values(), key=lambda e: e.stored_at)
                for entry in oldest[: max(1, self._max_size // 10)]:
                    del self._entries[entry.key]

        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_seconds=ttl_seconds,
        )

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    async def exists(self, key: str) -> bool:
        value = await self.get(key)
        return value is not None

    async def get_ttl(self, key: str) -> Optional[float]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if not entry.is_valid(now):
            del self._entries[key]
            return None
        return entry.remaining(now)

    async def close(self) -> None:
        self._entries.clear()

    def _evict_expired(self) -> None:
        """Remove all expired entries."""
        now = self._clock()
        for key in [k for k, e in self._entries.items() if not e.is_valid(now)]:
            del self._entries[key]


class CacheManager:
    """
    Cache manager with backend abstraction.

    Namespaces keys, logs hits and misses, and isolates callers from
    backend failures (a failing backend behaves like a miss).
    """

    def __init__(
        self,
        backend: CacheBackend,
        key_prefix: str = "wolfpack",
        default_ttl_seconds: float = 300,
    ):
        self.backend = backend
        self.key_prefix = key_prefix
        self.default_ttl_seconds = default_ttl_seconds
        self.logger = logger.bind(source="cache")
        self._in_flight: dict[str, asyncio.Task] = {}

    @classmethod
    def create_memory_cache(
        cls,
        max_size: int = 1000,
        key_prefix: str = "wolfpack",
        clock: Callable[[], float] = time.monotonic,
    ) -> "CacheManager":
        """Create a cache manager with in-memory backend."""
        return cls(InMemoryCache(max_size=max_size, clock=clock), key_prefix=key_prefix)

    @classmethod
    def create_from_settings(cls, settings) -> "CacheManager":
        """Create cache manager based on application settings."""
        return cls.create_memory_cache(
            max_size=settings.cache.max_size,
            key_prefix=settings.cache.key_prefix,
        )

    def _make_key(self, key: str) -> str:
        """Create a namespaced cache key."""
        if not self.key_prefix:
            return key
        return f"{self.key_prefix}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get a value from cache."""
        full_key = self._make_key(key)
        try:
            value = await self.backend.get(full_key)
            if value is not None:
                self.logger.debug(f"Cache hit: {key}")
            else:
                self.logger.debug(f"Cache miss: {key}")
            return value
        except Exception as e:
            self.logger.error(f"Cache get error for {key}: {e}")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """Set a value in cache."""
        full_key = self._make_key(key)
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds

        try:
            await self.backend.set(full_key, value, ttl)
            self.logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
        except Exception as e:
            self.logger.error(f"Cache set error for {key}: {e}")

    async def delete(self, key: str) -> None:
        """Delete a key from cache."""
        full_key = self._make_key(key)
        try:
            await self.backend.delete(full_key)
            self.logger.debug(f"Cache delete: {key}")
        except Exception as e:
            self.logger.error(f"Cache delete error for {key}: {e}")

    async def clear_prefix(self, prefix: str) -> None:
        """Clear all keys with given prefix."""
        full_prefix = self._make_key(prefix)
        try:
            await self.backend.clear_prefix(full_prefix)
            self.logger.info(f"Cache cleared for prefix: {prefix}")
        except Exception as e:
            self.logger.error(f"Cache clear error for prefix {prefix}: {e}")

    async def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        full_key = self._make_key(key)
        try:
            return await self.backend.exists(full_key)
        except Exception as e:
            self.logger.error(f"Cache exists error for {key}: {e}")
            return False

    async def get_ttl(self, key: str) -> Optional[float]:
        """Remaining freshness of a key in seconds, or None if absent."""
        try:
            return await self.backend.get_ttl(self._make_key(key))
        except Exception as e:
            self.logger.error(f"Cache ttl error for {key}: {e}")
            return None

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """
        Get value from cache or compute and store it.

        Concurrent callers asking for the same missing key share one
        factory call. Errors from the factory propagate to every waiter and
        nothing is cached.

        Args:
            key: Cache key
            factory: Async callable to compute value if not cached
            ttl_seconds: Optional TTL override

        Returns:
            Cached or computed value
        """
        value = await self.get(key)
        if value is not None:
            return value

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, factory, ttl_seconds))
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._forget_in_flight(key, t))
        else:
            self.logger.debug(f"Joining in-flight request: {key}")

        # A cancelled waiter must not cancel the request other callers share
        return await asyncio.shield(task)

    def _forget_in_flight(self, key: str, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _load(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float],
    ) -> Any:
        value = await factory()
        await self.set(key, value, ttl_seconds)
        return value

    async def close(self) -> None:
        """Close the cache backend."""
        for task in list(self._in_flight.values()):
            task.cancel()
        self._in_flight.clear()
        await self.backend.close()

    async def health_check(self) -> dict:
        """Check cache health."""
        try:
            test_key = self._make_key("_health_check")
            await self.backend.set(test_key, "ok", 60)
            value = await self.backend.get(test_key)
            await self.backend.delete(test_key)

            return {
                "status": "healthy" if value == "ok" else "degraded",
                "backend": type(self.backend).__name__,
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "backend": type(self.backend).__name__,
                "error": str(e),
            }
