"""
Cache Store - TTL-based Caching with FIFO Eviction.

Memoizes expensive derived values (analytics, per-strategy performance)
keyed by a hierarchical string such as "strategy:42:performance".

Design Notes:
    - TTL-based expiration, checked lazily on access and eagerly on cleanup()
    - Optional entry-count cap, evicting oldest-by-insertion first
    - Glob-style bulk invalidation ("strategy:*")
    - Injectable clock so expiry is testable without sleeping
    - Single-threaded: no locks, every operation is synchronous
"""

from __future__ import annotations

import asyncio
import functools
import hashlib
import inspect
import logging
import re
import sys
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    Generic,
    Iterable,
    List,
    Optional,
    Protocol,
    Tuple,
    TypeVar,
    Union,
)

from journal_perf.errors import InvalidArgument

logger = logging.getLogger(__name__)

V = TypeVar("V")

# Fallback size estimate when sys.getsizeof cannot size a value
DEFAULT_ENTRY_SIZE_BYTES = 1024


class CacheStoreProtocol(Protocol[V]):
    """Protocol for cache store implementations."""

    def get(self, key: str) -> Optional[V]:
        """Get value from cache."""
        ...

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None) -> None:
        """Set value in cache with optional TTL."""
        ...

    def has(self, key: str) -> bool:
        """Check whether a live entry exists."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a cache entry."""
        ...

    def clear(self) -> None:
        """Clear all cache entries."""
        ...


@dataclass
class CacheEntry(Generic[V]):
    """A single cache entry with metadata."""

    value: V
    created_at: float
    ttl_seconds: float
    size_bytes: int = 0
    dependencies: FrozenSet[str] = field(default_factory=frozenset)

    def is_expired(self, now: float) -> bool:
        """An entry is expired once strictly more than its TTL has elapsed."""
        return now - self.created_at > self.ttl_seconds


@dataclass
class CacheConfig:
    """Configuration for a cache store."""

    # Default TTL in seconds (default 5 minutes)
    default_ttl_seconds: float = 300.0

    # Maximum number of entries (None = unbounded)
    max_size: Optional[int] = None

    # Advisory only: how often the owner should call cleanup()
    cleanup_interval_seconds: Optional[float] = None

    # Log cache hits/misses
    log_access: bool = False

    def __post_init__(self) -> None:
        if self.default_ttl_seconds < 0:
            raise InvalidArgument(
                f"default_ttl_seconds must be >= 0, got {self.default_ttl_seconds}"
            )
        if self.max_size is not None and self.max_size < 1:
            raise InvalidArgument(f"max_size must be >= 1, got {self.max_size}")


@dataclass
class CacheStats:
    """Cache statistics snapshot."""

    size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    memory_usage: int = 0
    max_size: Optional[int] = None

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0


class CacheStore(Generic[V]):
    """
    TTL-based key/value store with FIFO eviction.

    Features:
        - Per-entry TTL, lazy expiry on get()/has()
        - Eager sweep via cleanup()
        - Entry-count cap with oldest-inserted-first eviction
        - Prefix/glob invalidation and dependency tags
        - Hit/miss statistics since the last clear()

    Cache Key Format:
        Colon separated segments, most general first.

        Example: "strategy:42:performance"
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache store.

        Args:
            config: Cache configuration
            clock: Monotonic time source in seconds
        """
        self.config = config or CacheConfig()
        self._clock = clock
        self._cache: OrderedDict[str, CacheEntry[V]] = OrderedDict()
        self._stats = CacheStats()
        self._inflight: Dict[str, "asyncio.Future[V]"] = {}

    def get(self, key: str) -> Optional[V]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        entry = self._live_entry(key)

        if entry is None:
            self._stats.misses += 1
            if self.config.log_access:
                logger.debug(f"Cache MISS: {key}")
            return None

        self._stats.hits += 1
        if self.config.log_access:
            logger.debug(f"Cache HIT: {key}")
        return entry.value

    def has(self, key: str) -> bool:
        """Check for a live entry without touching hit/miss counters."""
        return self._live_entry(key) is not None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return len(self._cache)

    def size(self) -> int:
        """Number of stored entries, including not-yet-swept expired ones."""
        return len(self._cache)

    def set(
        self,
        key: str,
        value: V,
        ttl_seconds: Optional[float] = None,
        dependencies: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: TTL in seconds (uses default if None)
            dependencies: Tags for invalidate_by_dependency()

        Raises:
            InvalidArgument: If ttl_seconds is negative
        """
        ttl = ttl_seconds if ttl_seconds is not None else self.config.default_ttl_seconds
        if ttl < 0:
            raise InvalidArgument(f"ttl_seconds must be >= 0, got {ttl}")

        entry = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl_seconds=ttl,
            size_bytes=self._estimate_size(value),
            dependencies=frozenset(dependencies or ()),
        )

        # Overwrite counts as a fresh insertion
        self._cache.pop(key, None)
        self._cache[key] = entry
        self._evict_if_needed()

        if self.config.log_access:
            logger.debug(f"Cache SET: {key} ({entry.size_bytes} bytes, TTL={ttl}s)")

    def delete(self, key: str) -> bool:
        """
        Delete a cache entry.

        Returns:
            True if entry was removed, False if not found
        """
        return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cache entries and reset statistics."""
        self._cache.clear()
        self._stats = CacheStats()
        logger.info("Cache CLEARED")

    def cleanup(self) -> int:
        """
        Remove every expired entry, accessed or not.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in self._cache.items() if e.is_expired(now)]
        for key in expired:
            del self._cache[key]
        self._stats.expirations += len(expired)

        if expired:
            logger.debug(f"Cache CLEANUP removed {len(expired)} expired entries")
        return len(expired)

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all entries matching a glob pattern.

        "strategy:*" removes every key starting with "strategy:". A pattern
        without "*" removes only the exact key. Only "*" is special.

        Args:
            pattern: Pattern to match

        Returns:
            Number of entries invalidated
        """
        if "*" not in pattern:
            return 1 if self.delete(pattern) else 0

        matches = _compile_pattern(pattern).match
        keys_to_remove = [k for k in self._cache if matches(k)]
        for key in keys_to_remove:
            del self._cache[key]

        if keys_to_remove:
            logger.debug(
                f"Cache INVALIDATED {len(keys_to_remove)} entries matching '{pattern}'"
            )
        return len(keys_to_remove)

    def invalidate_by_dependency(self, dependency: str) -> int:
        """
        Invalidate all entries tagged with a dependency.

        Returns:
            Number of entries invalidated
        """
        keys_to_remove = [
            k for k, e in self._cache.items() if dependency in e.dependencies
        ]
        for key in keys_to_remove:
            del self._cache[key]

        if keys_to_remove:
            logger.debug(
                f"Cache INVALIDATED {len(keys_to_remove)} entries depending on '{dependency}'"
            )
        return len(keys_to_remove)

    def get_stats(self) -> CacheStats:
        """Get cache statistics."""
        return CacheStats(
            size=len(self._cache),
            hits=self._stats.hits,
            misses=self._stats.misses,
            evictions=self._stats.evictions,
            expirations=self._stats.expirations,
            memory_usage=sum(e.size_bytes for e in self._cache.values()),
            max_size=self.config.max_size,
        )

    def keys(self) -> List[str]:
        """Stored keys in insertion order."""
        return list(self._cache)

    def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], V],
        ttl_seconds: Optional[float] = None,
        dependencies: Optional[Iterable[str]] = None,
    ) -> V:
        """
        Get from cache or compute and store.

        Args:
            key: Cache key
            compute_fn: Function to compute value if not cached
            ttl_seconds: TTL in seconds
            dependencies: Tags for invalidate_by_dependency()

        Returns:
            Cached or computed value

        Raises:
            InvalidArgument: If compute_fn returns an awaitable; use
                get_or_compute_async for coroutine functions
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = compute_fn()
        if inspect.isawaitable(value):
            if inspect.iscoroutine(value):
                value.close()
            raise InvalidArgument(
                f"compute_fn for {key!r} returned an awaitable, use get_or_compute_async"
            )
        self.set(key, value, ttl_seconds, dependencies)
        return value

    async def get_or_compute_async(
        self,
        key: str,
        compute_fn: Callable[[], Union[V, Awaitable[V]]],
        ttl_seconds: Optional[float] = None,
        dependencies: Optional[Iterable[str]] = None,
    ) -> V:
        """
        Get from cache or compute and store, awaiting coroutine computes.

        Concurrent calls for the same missing key share one compute: the
        first call starts it, later calls wait for its result. A failed
        compute stores nothing and raises in every waiting caller.

        Args:
            key: Cache key
            compute_fn: Function or coroutine function computing the value
            ttl_seconds: TTL in seconds
            dependencies: Tags for invalidate_by_dependency()

        Returns:
            Cached or computed value
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._compute_and_store(key, compute_fn, ttl_seconds, dependencies)
            )
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._forget_inflight, key))
        elif self.config.log_access:
            logger.debug(f"Cache JOIN: {key}")

        # A cancelled caller must not cancel the compute other callers wait on
        return await asyncio.shield(task)

    async def batch_get_or_compute(
        self,
        operations: Iterable[Tuple[str, Callable[[], Union[V, Awaitable[V]]]]],
        ttl_seconds: Optional[float] = None,
    ) -> List[V]:
        """
        Run get_or_compute_async for many (key, compute_fn) pairs concurrently.

        Returns:
            Values in the order of operations

        Raises:
            Exception: The first compute failure
        """
        return list(
            await asyncio.gather(
                *(
                    self.get_or_compute_async(key, compute_fn, ttl_seconds)
                    for key, compute_fn in operations
                )
            )
        )

    @property
    def inflight_count(self) -> int:
        """Keys with a compute currently running."""
        return len(self._inflight)

    async def _compute_and_store(
        self,
        key: str,
        compute_fn: Callable[[], Union[V, Awaitable[V]]],
        ttl_seconds: Optional[float],
        dependencies: Optional[Iterable[str]],
    ) -> V:
        value = compute_fn()
        if inspect.isawaitable(value):
            value = await value
        self.set(key, value, ttl_seconds, dependencies)
        return value

    def _forget_inflight(self, key: str, task: "asyncio.Future[V]") -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Cache compute failed for {key}: {task.exception()}")

    def _live_entry(self, key: str) -> Optional[CacheEntry[V]]:
        """Return the entry for key, deleting it first if expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            del self._cache[key]
            self._stats.expirations += 1
            if self.config.log_access:
                logger.debug(f"Cache EXPIRED: {key}")
            return None

        return entry

    def _evict_if_needed(self) -> None:
        """Evict oldest entries until the store is back at max_size."""
        max_size = self.config.max_size
        if max_size is None:
            return

        while len(self._cache) > max_size:
            key, _ = self._cache.popitem(last=False)
            self._stats.evictions += 1
            logger.debug(f"Cache EVICTED (FIFO): {key}")

    def _estimate_size(self, value: Any) -> int:
        """Estimate memory size of a value in bytes."""
        try:
            size = sys.getsizeof(value)

            if isinstance(value, dict):
                for k, v in value.items():
                    size += sys.getsizeof(k)
                    if isinstance(v, (list, tuple, dict)):
                        size += self._estimate_size(v)
                    else:
                        size += sys.getsizeof(v)
            elif isinstance(value, (list, tuple)):
                for item in value:
                    if isinstance(item, (list, tuple, dict)):
                        size += self._estimate_size(item)
                    else:
                        size += sys.getsizeof(item)

            return size
        except TypeError:
            return DEFAULT_ENTRY_SIZE_BYTES

    @staticmethod
    def make_key(operation: str, *segments: Any, **params: Any) -> str:
        """
        Create a hierarchical cache key.

        Positional segments are joined with ":"; keyword params are hashed
        into a trailing segment so arbitrary record identities fit in a key.

        Args:
            operation: Leading segment (e.g., "strategy")
            *segments: Further segments (e.g., 42, "performance")
            **params: Parameters to hash

        Returns:
            Cache key, e.g. "strategy:42:performance:a3f5c2b1..."
        """
        parts = [operation, *(str(s) for s in segments)]

        if params:
            # Sort params for consistent ordering
            param_str = str(sorted(params.items()))
            parts.append(hashlib.sha256(param_str.encode()).hexdigest()[:16])

        return ":".join(parts)


def _compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Translate a "*"-only glob into an anchored regex; other characters are literal."""
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(regex + r"\Z", re.DOTALL)
