"""
Pytest Configuration and Shared Fixtures.

This module contains fixtures available to all tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from journal_perf.caching.cache_store import CacheConfig, CacheStore
from journal_perf.config.models import PerfEngineConfig
from journal_perf.monitoring.performance_monitor import MonitorConfig, PerformanceMonitor


class FakeClock:
    """Manually advanced time source, in seconds."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock for deterministic expiry and timing."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CacheStore:
    """Create an unbounded cache store with a 60s default TTL."""
    return CacheStore(CacheConfig(default_ttl_seconds=60.0), clock=clock)


@pytest.fixture
def monitor(clock: FakeClock) -> PerformanceMonitor:
    """Create a performance monitor driven by the fake clock."""
    return PerformanceMonitor(MonitorConfig(buffer_size=100), clock=clock)


@pytest.fixture
def default_config() -> PerfEngineConfig:
    """Create default engine configuration."""
    return PerfEngineConfig()


@pytest.fixture
def sample_config_path() -> Path:
    """Path to sample configuration file."""
    return Path(__file__).parent / "fixtures" / "sample_config.yaml"


@pytest.fixture
def trades() -> List[dict]:
    """A journal's worth of lightweight trade records."""
    return [
        {"id": f"T{i:05d}", "symbol": "EURUSD" if i % 2 else "GBPUSD", "pnl": (i % 7) - 3}
        for i in range(1000)
    ]
