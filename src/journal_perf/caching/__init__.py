"""
Caching Layer.

Provides caching infrastructure for memoizing derived values:
    - CacheStore: TTL-based caching with FIFO eviction and pattern invalidation
    - CacheConfig: Configuration for cache behavior
    - CacheStats: Statistics snapshot (size, hit rate, memory estimate)
"""

from journal_perf.caching.cache_store import (
    CacheConfig,
    CacheEntry,
    CacheStats,
    CacheStore,
    CacheStoreProtocol,
)

__all__ = [
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "CacheStoreProtocol",
]
