"""
Timers - Debounce and Throttle on the asyncio Event Loop.

Provides:
    - Debouncer: collapse a burst of calls into one, after a quiet period
    - Throttler: at most one emission per interval, trailing value guaranteed
    - ThrottledValue: value-flavoured throttle (source value in, throttled value out)

Design Notes:
    - Each wrapper instance owns exactly one timer handle; nothing is shared
    - Deferred work runs via loop.call_later / loop.call_at, never threads
    - cancel()/flush()/dispose() make teardown explicit and testable
    - Calls after dispose() are ignored rather than raising
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from journal_perf.errors import InvalidArgument

logger = logging.getLogger(__name__)

T = TypeVar("T")

CallArgs = Tuple[Tuple[Any, ...], Dict[str, Any]]


def invoke(
    name: str,
    fn: Callable[..., Any],
    args: Tuple[Any, ...] = (),
    kwargs: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Call fn; if it returns an awaitable, schedule it as a task.

    Exceptions raised synchronously by fn propagate. Failures of the
    scheduled task are logged under name.

    Returns:
        fn's result, or the Task wrapping it when fn is a coroutine function
    """
    result = fn(*args, **(kwargs or {}))
    if inspect.isawaitable(result):
        task = asyncio.ensure_future(result)
        task.add_done_callback(functools.partial(_log_task_failure, name))
        return task
    return result


def _log_task_failure(name: str, task: "asyncio.Future[Any]") -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error(f"{name} coroutine failed", exc_info=task.exception())


class TimerOwner:
    """
    Base for objects that own a single event-loop timer.

    The loop is resolved lazily on first use, so instances can be created
    outside a running loop but must be driven from inside one.
    """

    def __init__(
        self,
        name: str,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.name = name
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._disposed = False

    @property
    def pending(self) -> bool:
        """True while a timer is scheduled."""
        return self._handle is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Cancel pending work; later calls become no-ops. Idempotent."""
        if self._disposed:
            return
        self.cancel()
        self._disposed = True
        logger.debug(f"{self.name} disposed")

    def cancel(self) -> None:
        """Drop the scheduled timer without running it."""
        self._cancel_timer()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run_callback(self, fn: Callable[..., Any], args: CallArgs) -> None:
        """Invoke fn from a timer; failures are logged, never leak into the loop."""
        try:
            invoke(self.name, fn, *args)
        except Exception:
            logger.exception(f"{self.name} callback failed")


class Debouncer(TimerOwner):
    """
    Debounced wrapper around a callable.

    Every call restarts the quiet period; when it elapses the wrapped
    function runs once with the arguments of the most recent call.
    With max_wait_seconds, a continuous burst still fires at least that
    often.

    Usage:
        save = Debouncer(store.save, delay_seconds=0.3)
        save(draft)   # restarts the 300 ms timer
        save(draft2)  # only draft2 is saved
        save.dispose()
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        delay_seconds: float,
        max_wait_seconds: Optional[float] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if delay_seconds < 0:
            raise InvalidArgument(f"delay_seconds must be >= 0, got {delay_seconds}")
        if max_wait_seconds is not None and max_wait_seconds < delay_seconds:
            raise InvalidArgument(
                f"max_wait_seconds ({max_wait_seconds}) must be >= delay_seconds ({delay_seconds})"
            )
        super().__init__(f"debounce({_callable_name(fn)})", loop)
        self._fn = fn
        self.delay_seconds = delay_seconds
        self.max_wait_seconds = max_wait_seconds
        self._pending_args: Optional[CallArgs] = None
        self._burst_started_at: Optional[float] = None
        self.last_invoked_at: Optional[float] = None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._disposed:
            logger.debug(f"{self.name} called after dispose, ignoring")
            return

        loop = self._get_loop()
        now = loop.time()
        self._pending_args = (args, kwargs)
        if self._burst_started_at is None:
            self._burst_started_at = now

        delay = self.delay_seconds
        if self.max_wait_seconds is not None:
            deadline = self._burst_started_at + self.max_wait_seconds
            delay = min(delay, max(0.0, deadline - now))

        self._cancel_timer()
        self._handle = loop.call_later(delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending call."""
        super().cancel()
        self._pending_args = None
        self._burst_started_at = None

    def flush(self) -> bool:
        """
        Run the pending call now.

        A coroutine function is scheduled as a task rather than awaited.

        Returns:
            True if a call was pending and ran

        Raises:
            Exception: Whatever a synchronous fn raised
        """
        if self._pending_args is None:
            return False
        self._cancel_timer()
        args = self._take_pending()
        invoke(self.name, self._fn, *args)
        return True

    def _take_pending(self) -> CallArgs:
        args = self._pending_args
        self._pending_args = None
        self._burst_started_at = None
        self.last_invoked_at = self._get_loop().time()
        return args  # type: ignore[return-value]

    def _fire(self) -> None:
        self._handle = None
        if self._pending_args is None:
            return
        self._run_callback(self._fn, self._take_pending())


class Throttler(TimerOwner):
    """
    Throttled wrapper around a callable.

    A call emits immediately if limit_seconds has passed since the last
    emission. Otherwise the latest arguments are kept and exactly one
    trailing emission is scheduled for the moment the interval ends, so
    the final value of a burst is always delivered.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        limit_seconds: float,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        if limit_seconds < 0:
            raise InvalidArgument(f"limit_seconds must be >= 0, got {limit_seconds}")
        super().__init__(f"throttle({_callable_name(fn)})", loop)
        self._fn = fn
        self.limit_seconds = limit_seconds
        self._pending_args: Optional[CallArgs] = None
        self.last_emitted_at: Optional[float] = None
        self.emit_count = 0

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._disposed:
            logger.debug(f"{self.name} called after dispose, ignoring")
            return

        loop = self._get_loop()
        now = loop.time()

        if self.last_emitted_at is None or now - self.last_emitted_at >= self.limit_seconds:
            self._cancel_timer()
            self._pending_args = None
            self._emit(now, (args, kwargs))
            return

        self._pending_args = (args, kwargs)
        if self._handle is None:
            self._handle = loop.call_at(
                self.last_emitted_at + self.limit_seconds, self._fire_trailing
            )

    def cancel(self) -> None:
        """Drop the pending trailing emission."""
        super().cancel()
        self._pending_args = None

    def flush(self) -> bool:
        """
        Deliver the pending trailing value now.

        A coroutine function is scheduled as a task rather than awaited.

        Returns:
            True if a value was pending and was emitted

        Raises:
            Exception: Whatever a synchronous fn raised
        """
        if self._pending_args is None:
            return False
        self._cancel_timer()
        args = self._pending_args
        self._pending_args = None
        self.last_emitted_at = self._get_loop().time()
        self.emit_count += 1
        invoke(self.name, self._fn, *args)
        return True

    def _emit(self, now: float, args: CallArgs) -> None:
        self.last_emitted_at = now
        self.emit_count += 1
        self._run_callback(self._fn, args)

    def _fire_trailing(self) -> None:
        self._handle = None
        if self._pending_args is None:
            return
        args = self._pending_args
        self._pending_args = None
        self._emit(self._get_loop().time(), args)


class ThrottledValue(Generic[T]):
    """
    A value that follows a rapidly changing source at a bounded rate.

    update() feeds the source value; value is the throttled view, which
    always catches up to the last update once the interval has passed.

    Usage:
        offset = ThrottledValue(0, limit_seconds=0.016)
        on_scroll = lambda px: offset.update(px)
        window = engine.compute(count, viewport, offset.value)
    """

    def __init__(
        self,
        initial: T,
        limit_seconds: float,
        on_change: Optional[Callable[[T], Any]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._value = initial
        self._on_change = on_change
        self._throttler = Throttler(self._set, limit_seconds, loop)

    @property
    def value(self) -> T:
        return self._value

    @property
    def pending(self) -> bool:
        return self._throttler.pending

    def update(self, value: T) -> None:
        """Feed a new source value."""
        self._throttler(value)

    def flush(self) -> bool:
        return self._throttler.flush()

    def cancel(self) -> None:
        self._throttler.cancel()

    def dispose(self) -> None:
        self._throttler.dispose()

    def __enter__(self) -> "ThrottledValue[T]":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def _set(self, value: T) -> None:
        self._value = value
        if self._on_change is not None:
            self._on_change(value)


def debounce(
    fn: Callable[..., Any],
    delay_seconds: float,
    max_wait_seconds: Optional[float] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Debouncer:
    """Wrap fn in a Debouncer."""
    return Debouncer(fn, delay_seconds, max_wait_seconds, loop)


def throttle(
    fn: Callable[..., Any],
    limit_seconds: float,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> Throttler:
    """Wrap fn in a Throttler."""
    return Throttler(fn, limit_seconds, loop)


def _callable_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or type(fn).__name__
