"""
Configuration Package - Models, Loaders and Factories.

    - Pydantic models for type-safe configuration
    - YAML loader with validation and profile overlays
    - Factories turning settings into engine components

Configuration Structure:
    - PerfEngineConfig: Root configuration object
    - CacheSettings: One entry per named cache (default, analytics, ...)
    - WindowingSettings: Item extent and overscan
    - SchedulingSettings: Debounce, throttle, batch and chunk timings
    - MonitorSettings: Sample buffer and slow threshold
    - LoggingSettings: Level and JSON output
"""

from journal_perf.config.factory import (
    apply_logging,
    build_batcher,
    build_cache,
    build_cache_prewarmer,
    build_caches,
    build_chunk_processor,
    build_coalescer,
    build_debouncer,
    build_engine,
    build_monitor,
    build_throttled_value,
)
from journal_perf.config.loader import ConfigLoader, deep_merge, load_config
from journal_perf.config.models import (
    CacheSettings,
    LoggingSettings,
    MonitorSettings,
    PerfEngineConfig,
    SchedulingSettings,
    WindowingSettings,
)

__all__ = [
    "CacheSettings",
    "ConfigLoader",
    "LoggingSettings",
    "MonitorSettings",
    "PerfEngineConfig",
    "SchedulingSettings",
    "WindowingSettings",
    "apply_logging",
    "build_batcher",
    "build_cache",
    "build_cache_prewarmer",
    "build_caches",
    "build_chunk_processor",
    "build_coalescer",
    "build_debouncer",
    "build_engine",
    "build_monitor",
    "build_throttled_value",
    "deep_merge",
    "load_config",
]
