"""
Update Batching - Coalesce Queued State Updates into One Transition.

An UpdateBatcher holds a value and a queue of pure updater functions.
The first enqueue of a batch schedules a flush delay_seconds later; on
flush all updaters are applied in enqueue order and the result becomes
the new value in a single step.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, List, Optional, TypeVar

from journal_perf.errors import InvalidArgument
from journal_perf.scheduling.timers import TimerOwner

logger = logging.getLogger(__name__)

T = TypeVar("T")

Updater = Callable[[T], T]


class UpdateBatcher(TimerOwner, Generic[T]):
    """
    Batched state holder.

    Usage:
        with UpdateBatcher(0, delay_seconds=0.05) as counter:
            counter.enqueue(lambda n: n + 1)
            counter.enqueue(lambda n: n + 2)
            # counter.value == 0 until the flush fires, then 3
    """

    def __init__(
        self,
        initial_value: T,
        delay_seconds: float,
        on_flush: Optional[Callable[[T], Any]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if delay_seconds < 0:
            raise InvalidArgument(f"delay_seconds must be >= 0, got {delay_seconds}")
        super().__init__("batch", loop)
        self._value = initial_value
        self.delay_seconds = delay_seconds
        self._on_flush = on_flush
        self._queue: List[Updater[T]] = []
        self.flush_count = 0

    @property
    def value(self) -> T:
        """Current value; unchanged until a flush applies the queue."""
        return self._value

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def enqueue(self, updater: Updater[T]) -> None:
        """
        Queue an updater for the next flush.

        The flush is scheduled by the first enqueue of a batch; later
        enqueues join it without moving the deadline. Ignored after
        dispose().
        """
        if self._disposed:
            logger.debug("batch enqueue after dispose, ignoring")
            return

        self._queue.append(updater)
        if self._handle is None:
            self._handle = self._get_loop().call_later(self.delay_seconds, self._fire)

    def flush(self) -> bool:
        """
        Apply the queued updaters now.

        Returns:
            True if there was anything to apply

        Raises:
            Exception: Whatever an updater raised; the value is left unchanged.
                Whatever on_flush raised; the new value is already committed.
        """
        self._cancel_timer()
        return self._apply()

    def cancel(self) -> None:
        """Drop the queued updaters without applying them."""
        super().cancel()
        self._queue.clear()

    def _apply(self) -> bool:
        if not self._commit():
            return False
        if self._on_flush is not None:
            self._on_flush(self._value)
        return True

    def _commit(self) -> bool:
        if not self._queue:
            return False

        queue, self._queue = self._queue, []
        value = self._value
        for updater in queue:
            value = updater(value)

        self._value = value
        self.flush_count += 1
        logger.debug(f"batch flushed {len(queue)} updates")
        return True

    def _fire(self) -> None:
        self._handle = None
        try:
            committed = self._commit()
        except Exception:
            logger.exception("batch flush failed, discarding queued updates")
            return

        if committed and self._on_flush is not None:
            try:
                self._on_flush(self._value)
            except Exception:
                # The new value stays committed
                logger.exception("batch on_flush callback failed")


def batch(
    initial_value: T,
    delay_seconds: float,
    on_flush: Optional[Callable[[T], Any]] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> UpdateBatcher[T]:
    """
    Create an UpdateBatcher.

    The returned object plays both roles of the (current value, enqueue)
    pair: read batcher.value, call batcher.enqueue(updater).
    """
    return UpdateBatcher(initial_value, delay_seconds, on_flush, loop)
