"""
Journal Perf - Client-Side Performance Layer for the Trade Journal.

Keeps a trade-journaling UI responsive with very large collections of
trades, charts and strategies. The four components are independent and
compose only at the call site.

Main Components:
    - caching: TTL/size-bounded CacheStore with pattern invalidation
    - windowing: O(1) fixed-extent list and grid virtualization
    - scheduling: debounce, throttle, batching, keyed update coalescing
      and chunked bulk work
    - monitoring: PerformanceMonitor with rolling duration statistics
    - lifecycle: ResourceRegistry for deterministic teardown
    - config: Pydantic settings, YAML loader and component factories

Example:
    >>> from journal_perf import CacheStore, WindowingEngine
    >>> cache = CacheStore()
    >>> cache.set("strategy:42:performance", {"win_rate": 0.61})
    >>> engine = WindowingEngine(item_extent=50, overscan=2)
    >>> engine.compute(100, viewport_extent=300, scroll_offset=0).total_extent
    5000
"""

import logging
from typing import Union

import structlog

from journal_perf.caching import CacheConfig, CacheStats, CacheStore
from journal_perf.errors import InvalidArgument, InvalidConfiguration, PerfEngineError
from journal_perf.lifecycle import ResourceRegistry
from journal_perf.monitoring import MonitorConfig, PerformanceMonitor, Statistics
from journal_perf.scheduling import (
    Debouncer,
    ThrottledValue,
    Throttler,
    UpdateBatcher,
    UpdateCoalescer,
    UpdateEvent,
    UpdateEventType,
    batch,
    debounce,
    prewarm_cache,
    process_in_chunks,
    throttle,
)
from journal_perf.windowing import GridWindow, Window, WindowingEngine, compute

__version__ = "0.1.0"

__all__ = [
    "CacheConfig",
    "CacheStats",
    "CacheStore",
    "Debouncer",
    "GridWindow",
    "InvalidArgument",
    "InvalidConfiguration",
    "MonitorConfig",
    "PerfEngineError",
    "PerformanceMonitor",
    "ResourceRegistry",
    "Statistics",
    "ThrottledValue",
    "Throttler",
    "UpdateBatcher",
    "UpdateCoalescer",
    "UpdateEvent",
    "UpdateEventType",
    "Window",
    "WindowingEngine",
    "batch",
    "compute",
    "configure_logging",
    "debounce",
    "prewarm_cache",
    "process_in_chunks",
    "throttle",
]


def configure_logging(
    level: Union[int, str] = logging.INFO,
    json: bool = False,
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
) -> None:
    """
    Configure logging for Journal Perf.

    Call this at application startup to see log messages. Sets up stdlib
    logging for module loggers and structlog for structured events
    (e.g. slow_operation from the PerformanceMonitor).

    Args:
        level: Logging level (default: INFO)
        json: Render structured events as JSON instead of console text
        format: Stdlib log message format

    Example:
        >>> import journal_perf
        >>> journal_perf.configure_logging(logging.DEBUG)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(
        level=level,
        format=format,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("journal_perf").setLevel(level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
