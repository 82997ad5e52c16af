"""
Update Coalescing - Keyed, Debounced Delivery of Journal Update Events.

Provides:
    - UpdateEvent: one change notification (trade added, setup updated, ...)
    - UpdateCoalescer: groups events per key and hands each group to the
      handlers of its event type as one batch
    - CoalescerStats: pending events, active timers, registered handlers

Design Notes:
    - One Debouncer per group key; a group fires after its quiet period,
      or once max_wait has passed since its first event
    - Handlers receive the whole batch, oldest event first
    - A failing handler is logged and does not stop the others
    - Coroutine handlers are scheduled as tasks
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from journal_perf.errors import InvalidArgument
from journal_perf.scheduling.timers import Debouncer, invoke

logger = logging.getLogger(__name__)


class UpdateEventType(str, Enum):
    """Journal update kinds with tuned default timings."""

    TRADE_ADDED = "trade_added"
    TRADE_UPDATED = "trade_updated"
    TRADE_DELETED = "trade_deleted"
    TRADES_BULK_UPDATE = "trades_bulk_update"
    SETUP_UPDATED = "setup_updated"
    PATTERN_UPDATED = "pattern_updated"
    PARTIAL_CLOSE_ADDED = "partial_close_added"


# (delay_seconds, max_wait_seconds)
Timing = Tuple[float, Optional[float]]

DEFAULT_TIMINGS: Dict[str, Timing] = {
    UpdateEventType.TRADE_ADDED.value: (0.3, 1.0),
    UpdateEventType.TRADE_UPDATED.value: (0.5, 2.0),
    UpdateEventType.TRADE_DELETED.value: (0.2, 0.5),
    UpdateEventType.TRADES_BULK_UPDATE.value: (1.0, 3.0),
    UpdateEventType.SETUP_UPDATED.value: (0.4, 1.5),
    UpdateEventType.PATTERN_UPDATED.value: (0.4, 1.5),
    UpdateEventType.PARTIAL_CLOSE_ADDED.value: (0.3, 1.0),
}

UpdateHandler = Callable[[List["UpdateEvent"]], Any]


def _event_type_name(event_type: Any) -> str:
    return event_type.value if isinstance(event_type, Enum) else str(event_type)


@dataclass(frozen=True)
class UpdateEvent:
    """
    A change notification.

    Events with the same type and key share a group and are delivered
    together. key identifies the subject (trade id, setup type, ...);
    None groups every event of the type, as for bulk updates.
    """

    type: str
    key: Optional[str] = None
    data: Any = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", _event_type_name(self.type))

    @property
    def group(self) -> str:
        return self.type if self.key is None else f"{self.type}:{self.key}"


@dataclass
class CoalescerStats:
    """Snapshot of an UpdateCoalescer."""

    pending_events: int
    active_timers: int
    registered_handlers: int


class UpdateCoalescer:
    """
    Keyed debounce for update events.

    Usage:
        coalescer = UpdateCoalescer()
        unsubscribe = coalescer.on_update(
            UpdateEventType.TRADE_UPDATED,
            lambda events: cache.invalidate_pattern(f"trade:{events[0].key}:*"),
        )
        coalescer.emit(UpdateEvent(UpdateEventType.TRADE_UPDATED, key="T1"))
        coalescer.emit(UpdateEvent(UpdateEventType.TRADE_UPDATED, key="T1"))
        # 500 ms later the handler runs once with both events
    """

    def __init__(
        self,
        delay_seconds: float = 0.3,
        max_wait_seconds: Optional[float] = 1.0,
        timings: Optional[Mapping[Any, Timing]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Args:
            delay_seconds: Quiet period for event types without their own timing
            max_wait_seconds: Upper bound on holding a group for those types
            timings: Per event type (delay, max_wait); DEFAULT_TIMINGS if None
            loop: Event loop, resolved lazily if None
        """
        _check_timing(delay_seconds, max_wait_seconds)
        self.delay_seconds = delay_seconds
        self.max_wait_seconds = max_wait_seconds
        self._loop = loop
        self._timings: Dict[str, Timing] = {}
        for event_type, (delay, max_wait) in (
            DEFAULT_TIMINGS if timings is None else timings
        ).items():
            self.set_timing(event_type, delay, max_wait)

        self._handlers: Dict[str, List[UpdateHandler]] = {}
        self._pending: Dict[str, List[UpdateEvent]] = {}
        self._debouncers: Dict[str, Debouncer] = {}
        self._disposed = False
        self.delivered_batches = 0

    @property
    def disposed(self) -> bool:
        return self._disposed

    def set_timing(
        self,
        event_type: Any,
        delay_seconds: float,
        max_wait_seconds: Optional[float] = None,
    ) -> None:
        """Set the timing used by groups of event_type created from now on."""
        _check_timing(delay_seconds, max_wait_seconds)
        self._timings[_event_type_name(event_type)] = (delay_seconds, max_wait_seconds)

    def timing(self, event_type: Any) -> Timing:
        return self._timings.get(
            _event_type_name(event_type), (self.delay_seconds, self.max_wait_seconds)
        )

    def on_update(self, event_type: Any, handler: UpdateHandler) -> Callable[[], None]:
        """
        Register a handler for batches of event_type.

        Returns:
            A function that unregisters the handler; calling it twice is harmless
        """
        handlers = self._handlers.setdefault(_event_type_name(event_type), [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: UpdateEvent) -> None:
        """Queue event in its group and restart the group's quiet period."""
        if self._disposed:
            logger.debug(f"emit after dispose, ignoring {event.group}")
            return

        group = event.group
        self._pending.setdefault(group, []).append(event)

        debouncer = self._debouncers.get(group)
        if debouncer is None:
            delay, max_wait = self.timing(event.type)
            debouncer = Debouncer(
                functools.partial(self._deliver, group, event.type),
                delay,
                max_wait_seconds=max_wait,
                loop=self._loop,
            )
            debouncer.name = f"coalesce({group})"
            self._debouncers[group] = debouncer
        debouncer()

    def flush(self, group: Optional[str] = None) -> int:
        """
        Deliver pending groups now instead of waiting for their timers.

        Args:
            group: Only this group (see UpdateEvent.group); all if None

        Returns:
            Number of batches delivered
        """
        if group is not None:
            debouncer = self._debouncers.get(group)
            return 1 if debouncer is not None and debouncer.flush() else 0
        return sum(1 for d in list(self._debouncers.values()) if d.flush())

    def clear(self) -> None:
        """Drop every pending event and timer. Handlers stay registered."""
        for debouncer in self._debouncers.values():
            debouncer.dispose()
        self._debouncers.clear()
        self._pending.clear()

    def dispose(self) -> None:
        """Drop pending events and handlers; later emits are ignored. Idempotent."""
        if self._disposed:
            return
        self.clear()
        self._handlers.clear()
        self._disposed = True
        logger.debug("update coalescer disposed")

    def get_stats(self) -> CoalescerStats:
        return CoalescerStats(
            pending_events=sum(len(events) for events in self._pending.values()),
            active_timers=sum(1 for d in self._debouncers.values() if d.pending),
            registered_handlers=sum(len(h) for h in self._handlers.values()),
        )

    def __enter__(self) -> "UpdateCoalescer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _deliver(self, group: str, event_type: str) -> None:
        events = self._pending.pop(group, [])
        debouncer = self._debouncers.pop(group, None)
        if debouncer is not None:
            debouncer.dispose()
        if not events:
            return

        self.delivered_batches += 1
        handlers = list(self._handlers.get(event_type, ()))
        logger.debug(f"{group}: delivering {len(events)} events to {len(handlers)} handlers")
        for handler in handlers:
            try:
                invoke(f"update handler for {event_type}", handler, (events,))
            except Exception:
                logger.exception(f"update handler for {event_type} failed")


def _check_timing(delay_seconds: float, max_wait_seconds: Optional[float]) -> None:
    if delay_seconds < 0:
        raise InvalidArgument(f"delay_seconds must be >= 0, got {delay_seconds}")
    if max_wait_seconds is not None and max_wait_seconds < delay_seconds:
        raise InvalidArgument(
            f"max_wait_seconds ({max_wait_seconds}) must be >= delay_seconds ({delay_seconds})"
        )
