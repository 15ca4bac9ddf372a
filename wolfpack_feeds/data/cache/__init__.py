"""
Caching layer for the Wolfpack feeds.

Provides:
- CacheEntry: stored value with its freshness window
- InMemoryCache: process-local TTL store with lazy eviction
- CacheManager: namespaced, logged access with request deduplication
"""
from .cache_manager import (
    CacheBackend,
    CacheEntry,
    CacheManager,
    InMemoryCache,
)

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CacheManager",
    "InMemoryCache",
]
