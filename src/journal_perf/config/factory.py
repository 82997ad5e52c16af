"""
Component Factories - Build Engine Components from Settings.

Every settings section has a consumer here, so a value in the YAML file
always reaches the component it configures.
"""

from __future__ import annotations

import functools
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

from journal_perf import configure_logging
from journal_perf.caching.cache_store import CacheConfig, CacheStore
from journal_perf.config.models import (
    CacheSettings,
    LoggingSettings,
    MonitorSettings,
    PerfEngineConfig,
    SchedulingSettings,
    WindowingSettings,
)
from journal_perf.monitoring.performance_monitor import MonitorConfig, PerformanceMonitor
from journal_perf.scheduling.batching import UpdateBatcher
from journal_perf.scheduling.chunking import ChunkResult, prewarm_cache, process_in_chunks
from journal_perf.scheduling.coalescing import Timing, UpdateCoalescer
from journal_perf.scheduling.timers import Debouncer, ThrottledValue
from journal_perf.windowing.engine import WindowingEngine

T = TypeVar("T")


def build_cache(
    settings: Optional[CacheSettings] = None,
    clock: Callable[[], float] = time.monotonic,
) -> CacheStore[Any]:
    """Create a CacheStore from cache settings."""
    settings = settings or CacheSettings()
    config = CacheConfig(
        default_ttl_seconds=settings.default_ttl_seconds,
        max_size=settings.max_size,
        cleanup_interval_seconds=settings.cleanup_interval_seconds,
        log_access=settings.log_access,
    )
    return CacheStore(config, clock=clock)


def build_caches(
    config: PerfEngineConfig,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, CacheStore[Any]]:
    """Create one CacheStore per named cache in the config."""
    return {name: build_cache(settings, clock) for name, settings in config.caches.items()}


def build_monitor(
    settings: Optional[MonitorSettings] = None,
    clock: Callable[[], float] = time.perf_counter,
) -> PerformanceMonitor:
    """Create a PerformanceMonitor from monitor settings."""
    settings = settings or MonitorSettings()
    config = MonitorConfig(
        buffer_size=settings.buffer_size,
        slow_threshold_seconds=settings.slow_threshold_seconds,
        enabled=settings.enabled,
    )
    return PerformanceMonitor(config, clock=clock)


def build_engine(settings: Optional[WindowingSettings] = None) -> WindowingEngine:
    """Create a WindowingEngine from windowing settings."""
    settings = settings or WindowingSettings()
    return WindowingEngine(item_extent=settings.item_extent, overscan=settings.overscan)


def build_debouncer(
    fn: Callable[..., Any],
    settings: Optional[SchedulingSettings] = None,
) -> Debouncer:
    """Debounce fn with the configured delay and max wait."""
    settings = settings or SchedulingSettings()
    return Debouncer(
        fn,
        settings.debounce_delay_seconds,
        max_wait_seconds=settings.debounce_max_wait_seconds,
    )


def build_throttled_value(
    initial: T,
    settings: Optional[SchedulingSettings] = None,
    on_change: Optional[Callable[[T], Any]] = None,
) -> ThrottledValue[T]:
    """Throttle a source value (e.g. scroll offset) at the configured limit."""
    settings = settings or SchedulingSettings()
    return ThrottledValue(initial, settings.throttle_limit_seconds, on_change)


def build_batcher(
    initial: T,
    settings: Optional[SchedulingSettings] = None,
    on_flush: Optional[Callable[[T], Any]] = None,
) -> UpdateBatcher[T]:
    """Batch updates to a value with the configured delay."""
    settings = settings or SchedulingSettings()
    return UpdateBatcher(initial, settings.batch_delay_seconds, on_flush)


def build_coalescer(
    settings: Optional[SchedulingSettings] = None,
    timings: Optional[Mapping[Any, Timing]] = None,
) -> UpdateCoalescer:
    """
    Coalesce update events; the configured debounce timing applies to
    event types without a timing of their own.
    """
    settings = settings or SchedulingSettings()
    return UpdateCoalescer(
        settings.debounce_delay_seconds,
        settings.debounce_max_wait_seconds,
        timings=timings,
    )


def build_chunk_processor(
    settings: Optional[SchedulingSettings] = None,
) -> Callable[..., Awaitable[ChunkResult[Any]]]:
    """process_in_chunks with the configured chunk size."""
    settings = settings or SchedulingSettings()
    return functools.partial(process_in_chunks, chunk_size=settings.chunk_size)


def build_cache_prewarmer(
    settings: Optional[SchedulingSettings] = None,
) -> Callable[..., Awaitable[ChunkResult[str]]]:
    """prewarm_cache with the configured chunk size."""
    settings = settings or SchedulingSettings()
    return functools.partial(prewarm_cache, chunk_size=settings.chunk_size)


def apply_logging(settings: Optional[LoggingSettings] = None) -> None:
    """Configure stdlib and structlog output from logging settings."""
    settings = settings or LoggingSettings()
    configure_logging(settings.level, json=settings.json_output)
