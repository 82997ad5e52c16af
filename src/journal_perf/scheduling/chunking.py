"""
Chunked Processing - Bulk Work Without Starving the Event Loop.

Provides:
    - process_in_chunks: sequential processing in fixed-size chunks with
      one event-loop yield between chunks
    - prewarm_cache: fill a cache for many records the same way

Design Notes:
    - Sequential, never parallel: one item at a time, in order
    - Per-item failures are collected and logged, the batch continues
    - Processors may be plain functions or coroutine functions
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from journal_perf.caching.cache_store import CacheStoreProtocol
from journal_perf.errors import InvalidArgument

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 10


@dataclass
class ChunkResult(Generic[T]):
    """Result of a chunked bulk operation."""

    successful: List[T] = field(default_factory=list)
    failed: List[Tuple[Any, Exception]] = field(default_factory=list)
    chunks: int = 0

    @property
    def success_rate(self) -> float:
        """Calculate success rate (0.0 to 1.0)."""
        total = len(self.successful) + len(self.failed)
        if total == 0:
            return 1.0
        return len(self.successful) / total

    @property
    def has_failures(self) -> bool:
        return len(self.failed) > 0


async def process_in_chunks(
    items: Iterable[Any],
    processor: Callable[[Any], Any],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    operation_name: str = "chunked operation",
) -> ChunkResult[Any]:
    """
    Process items sequentially, yielding to the event loop between chunks.

    Args:
        items: Items to process, in order
        processor: Function (or coroutine function) applied to each item
        chunk_size: Items processed per event-loop tick
        operation_name: Name for logging

    Returns:
        ChunkResult with processor results and failed items

    Raises:
        InvalidArgument: If chunk_size < 1
    """
    if chunk_size < 1:
        raise InvalidArgument(f"chunk_size must be >= 1, got {chunk_size}")

    result: ChunkResult[Any] = ChunkResult()
    in_chunk = 0

    for item in items:
        if in_chunk == chunk_size:
            result.chunks += 1
            in_chunk = 0
            await asyncio.sleep(0)

        in_chunk += 1
        try:
            processed = processor(item)
            if inspect.isawaitable(processed):
                processed = await processed
            result.successful.append(processed)
        except Exception as e:
            result.failed.append((item, e))
            logger.warning(f"{operation_name} failed for {item!r}: {e}")

    if in_chunk:
        result.chunks += 1

    if result.has_failures:
        logger.warning(
            f"{operation_name} completed with {len(result.failed)} failures "
            f"({result.success_rate:.1%} success rate)"
        )

    return result


async def prewarm_cache(
    cache: CacheStoreProtocol[Any],
    items: Iterable[T],
    key_fn: Callable[[T], str],
    compute_fn: Callable[[T], Any],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    ttl_seconds: Optional[float] = None,
) -> ChunkResult[str]:
    """
    Populate a cache for many records in loop-friendly chunks.

    Keys already cached are left untouched and still count as successful.

    Args:
        cache: Target cache
        items: Records to warm
        key_fn: Builds the cache key for a record
        compute_fn: Computes the value to cache (may be a coroutine function)
        chunk_size: Records per event-loop tick
        ttl_seconds: TTL for new entries (cache default if None)

    Returns:
        ChunkResult whose successful list holds the warmed keys
    """

    async def warm(item: T) -> str:
        key = key_fn(item)
        if cache.has(key):
            return key
        value = compute_fn(item)
        if inspect.isawaitable(value):
            value = await value
        cache.set(key, value, ttl_seconds)
        return key

    result = await process_in_chunks(items, warm, chunk_size, "cache prewarm")
    logger.info(
        f"Cache prewarm: {len(result.successful)} keys ready in {result.chunks} chunks"
    )
    return result
