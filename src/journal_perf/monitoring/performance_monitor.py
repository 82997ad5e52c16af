"""
Performance Monitor - Duration Sampling with Rolling Statistics.

Provides:
    - start()/end() bracketing, measure() context manager, timed() decorator
    - Per-name bounded ring buffers of duration samples
    - Trailing-window statistics (count, avg, min, max, percentiles)
    - Structured slow_operation events for samples over a frame budget

Design Notes:
    - Observability only; never changes the behavior of what it measures
    - Ring buffers (deque with maxlen) bound memory per name
    - Injectable clock for deterministic tests
"""

from __future__ import annotations

import functools
import inspect
import logging
import math
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, TypeVar

import structlog

from journal_perf.errors import InvalidArgument

logger = logging.getLogger(__name__)
events = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# One frame at 60 fps
FRAME_BUDGET_SECONDS = 0.016


@dataclass
class MonitorConfig:
    """Configuration for the performance monitor."""

    # Samples retained per operation name
    buffer_size: int = 1000

    # Samples above this duration are flagged as slow
    slow_threshold_seconds: float = FRAME_BUDGET_SECONDS

    enabled: bool = True

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise InvalidArgument(f"buffer_size must be >= 1, got {self.buffer_size}")
        if self.slow_threshold_seconds < 0:
            raise InvalidArgument(
                f"slow_threshold_seconds must be >= 0, got {self.slow_threshold_seconds}"
            )


@dataclass(frozen=True)
class Sample:
    """One recorded duration."""

    name: str
    duration_seconds: float
    recorded_at: float


@dataclass(frozen=True)
class Statistics:
    """Aggregate over the samples of one name within a time window."""

    count: int
    avg: float
    min: float
    max: float
    total: float
    p50: float
    p90: float
    p95: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "count": self.count,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
            "total": self.total,
            "p50": self.p50,
            "p90": self.p90,
            "p95": self.p95,
        }


class PerformanceMonitor:
    """
    Lightweight duration sampler.

    Usage:
        monitor = PerformanceMonitor()

        monitor.start("window.compute")
        window = engine.compute(count, viewport, offset)
        monitor.end("window.compute")

        with monitor.measure("analytics.refresh"):
            refresh()

        stats = monitor.get_statistics("window.compute", window_seconds=60)
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """
        Initialize performance monitor.

        Args:
            config: Monitor configuration
            clock: Time source in seconds, also used to stamp samples
        """
        self.config = config or MonitorConfig()
        self._clock = clock
        self._samples: Dict[str, Deque[Sample]] = {}
        self._active: Dict[str, float] = {}
        self._slow_counts: Dict[str, int] = {}

    def start(self, name: str) -> None:
        """Begin timing an operation; restarting a running name restarts it."""
        if not self.config.enabled:
            return
        self._active[name] = self._clock()

    def end(self, name: str) -> Optional[float]:
        """
        Finish timing an operation and record its duration.

        Returns:
            Duration in seconds, or None if start(name) was never called
        """
        started = self._active.pop(name, None)
        if started is None:
            logger.debug(f"end({name!r}) without matching start, ignoring")
            return None

        duration = self._clock() - started
        self.record(name, duration)
        return duration

    def record(self, name: str, duration_seconds: float) -> None:
        """
        Record a duration measured elsewhere.

        Raises:
            InvalidArgument: If duration_seconds is negative
        """
        if not self.config.enabled:
            return
        if duration_seconds < 0:
            raise InvalidArgument(
                f"duration_seconds must be >= 0, got {duration_seconds}"
            )

        buffer = self._samples.get(name)
        if buffer is None:
            buffer = deque(maxlen=self.config.buffer_size)
            self._samples[name] = buffer
        buffer.append(Sample(name, duration_seconds, self._clock()))

        if duration_seconds > self.config.slow_threshold_seconds:
            self._slow_counts[name] = self._slow_counts.get(name, 0) + 1
            events.warning(
                "slow_operation",
                operation=name,
                duration_ms=round(duration_seconds * 1000, 3),
                threshold_ms=round(self.config.slow_threshold_seconds * 1000, 3),
            )

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Time the enclosed block, including blocks that raise."""
        started = self._clock()
        try:
            yield
        finally:
            self.record(name, self._clock() - started)

    def timed(self, name: Optional[str] = None) -> Callable[[F], F]:
        """
        Decorator recording each call's duration.

        Works for plain and coroutine functions. The default name is the
        function's qualified name.
        """

        def decorator(fn: F) -> F:
            metric = name or fn.__qualname__

            if inspect.iscoroutinefunction(fn):

                @functools.wraps(fn)
                async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                    with self.measure(metric):
                        return await fn(*args, **kwargs)

                return async_wrapper  # type: ignore[return-value]

            @functools.wraps(fn)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                with self.measure(metric):
                    return fn(*args, **kwargs)

            return wrapper  # type: ignore[return-value]

        return decorator

    def get_statistics(
        self,
        name: str,
        window_seconds: Optional[float] = None,
    ) -> Optional[Statistics]:
        """
        Aggregate the samples of one name.

        Args:
            name: Operation name
            window_seconds: Only samples recorded within this trailing
                window count; None uses every retained sample

        Returns:
            Statistics, or None if no sample falls in the window
        """
        values = [s.duration_seconds for s in self._window(name, window_seconds)]
        if not values:
            return None

        ordered = sorted(values)
        total = sum(ordered)
        return Statistics(
            count=len(ordered),
            avg=total / len(ordered),
            min=ordered[0],
            max=ordered[-1],
            total=total,
            p50=_percentile(ordered, 0.5),
            p90=_percentile(ordered, 0.9),
            p95=_percentile(ordered, 0.95),
        )

    def get_warnings(self, window_seconds: float = 60.0) -> List[str]:
        """Human-readable warnings for operations averaging over the threshold."""
        threshold = self.config.slow_threshold_seconds
        warnings = []
        for name in self.names():
            window = self._window(name, window_seconds)
            slow = [s for s in window if s.duration_seconds > threshold]
            if not slow:
                continue
            avg_ms = sum(s.duration_seconds for s in window) / len(window) * 1000
            warnings.append(
                f"{name}: {len(slow)}/{len(window)} samples over "
                f"{threshold * 1000:.1f}ms ({avg_ms:.2f}ms average)"
            )
        return warnings

    def get_report(self, window_seconds: float = 3600.0) -> Dict[str, Any]:
        """Summary of every operation name within the window."""
        operations = {}
        for name in self.names():
            stats = self.get_statistics(name, window_seconds)
            if stats is not None:
                operations[name] = stats.to_dict()

        return {
            "window_seconds": window_seconds,
            "slow_threshold_seconds": self.config.slow_threshold_seconds,
            "operations": operations,
            "slow_counts": dict(self._slow_counts),
            "warnings": self.get_warnings(window_seconds),
        }

    def slow_count(self, name: str) -> int:
        """Number of slow samples recorded for name since the last reset."""
        return self._slow_counts.get(name, 0)

    def names(self) -> List[str]:
        return sorted(self._samples)

    def reset(self, name: Optional[str] = None) -> None:
        """Drop samples and in-flight timers for one name, or for all."""
        if name is None:
            self._samples.clear()
            self._active.clear()
            self._slow_counts.clear()
            return
        self._samples.pop(name, None)
        self._active.pop(name, None)
        self._slow_counts.pop(name, None)

    def _window(self, name: str, window_seconds: Optional[float]) -> List[Sample]:
        buffer = self._samples.get(name)
        if not buffer:
            return []
        if window_seconds is None:
            return list(buffer)
        cutoff = self._clock() - window_seconds
        return [s for s in buffer if s.recorded_at >= cutoff]


def _percentile(ordered: List[float], q: float) -> float:
    index = min(len(ordered) - 1, math.floor(len(ordered) * q))
    return ordered[index]
