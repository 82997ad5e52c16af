"""
Monitoring Package - Duration Sampling and Slow-Operation Alerts.

    - PerformanceMonitor: start()/end(), measure(), timed(), rolling statistics
    - MonitorConfig: buffer size and slow threshold
    - Statistics: count, avg, min, max and percentiles for one operation

Slow samples are reported as structured structlog events.
"""

from journal_perf.monitoring.performance_monitor import (
    FRAME_BUDGET_SECONDS,
    MonitorConfig,
    PerformanceMonitor,
    Sample,
    Statistics,
)

__all__ = [
    "FRAME_BUDGET_SECONDS",
    "MonitorConfig",
    "PerformanceMonitor",
    "Sample",
    "Statistics",
]
