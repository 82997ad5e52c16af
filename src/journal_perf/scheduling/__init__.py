"""
Scheduling Package - When Recomputation Happens.

Timing primitives on the single-threaded asyncio event loop:
    - Debouncer / debounce: run once after a quiet period
    - Throttler / throttle / ThrottledValue: bounded rate, trailing value kept
    - UpdateBatcher / batch: coalesce queued updaters into one transition
    - UpdateCoalescer: keyed debounce delivering update events in batches
    - process_in_chunks / prewarm_cache: bulk work with inter-chunk yields

Design Principles:
    - One timer handle per wrapper instance
    - Explicit cancel()/flush()/dispose(), usable as context managers
    - Work enqueued after disposal is ignored, not an error
"""

from journal_perf.scheduling.batching import UpdateBatcher, batch
from journal_perf.scheduling.chunking import (
    ChunkResult,
    prewarm_cache,
    process_in_chunks,
)
from journal_perf.scheduling.coalescing import (
    CoalescerStats,
    UpdateCoalescer,
    UpdateEvent,
    UpdateEventType,
)
from journal_perf.scheduling.timers import (
    Debouncer,
    ThrottledValue,
    Throttler,
    TimerOwner,
    debounce,
    throttle,
)

__all__ = [
    "ChunkResult",
    "CoalescerStats",
    "Debouncer",
    "ThrottledValue",
    "Throttler",
    "TimerOwner",
    "UpdateBatcher",
    "UpdateCoalescer",
    "UpdateEvent",
    "UpdateEventType",
    "batch",
    "debounce",
    "prewarm_cache",
    "process_in_chunks",
    "throttle",
]
