"""
Unit Tests for Debouncer, Throttler and ThrottledValue.

Test Aspects Covered:
    ✅ Business Logic: Latest-args debounce, leading + trailing throttle
    ✅ Time Logic: Quiet period restart, max_wait bound, trailing deadline
    ✅ State: cancel()/flush()/dispose(), no firing after disposal
    ✅ Error Handling: Invalid delays, timer callback failures logged, flush() failures raised
    ✅ Integration: Independent timer state per wrapper instance
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List

import pytest

from journal_perf.errors import InvalidArgument
from journal_perf.scheduling.timers import (
    Debouncer,
    ThrottledValue,
    Throttler,
    debounce,
    throttle,
)


class TestDebouncer:
    """Debounce behavior on a real event loop."""

    @pytest.mark.asyncio
    async def test_burst_invokes_once_with_latest_args(self) -> None:
        """
        SCENARIO: Calls a, b, c each well inside the 100ms quiet period
        EXPECTED: Exactly one invocation, with c
        """
        # Arrange
        calls: List[Any] = []
        debounced = debounce(calls.append, 0.1)

        # Act
        debounced("a")
        await asyncio.sleep(0.03)
        debounced("b")
        await asyncio.sleep(0.03)
        debounced("c")

        # Assert
        assert calls == []
        await asyncio.sleep(0.2)
        assert calls == ["c"]

    @pytest.mark.asyncio
    async def test_separate_quiet_periods_fire_separately(self) -> None:
        calls: List[Any] = []
        debounced = Debouncer(calls.append, 0.03)

        debounced(1)
        await asyncio.sleep(0.1)
        debounced(2)
        await asyncio.sleep(0.1)

        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_passes_kwargs(self) -> None:
        received = {}

        def save(trade_id: str, note: str = "") -> None:
            received[trade_id] = note

        debounced = Debouncer(save, 0.01)
        debounced("T1", note="first")
        debounced("T1", note="second")
        await asyncio.sleep(0.05)

        assert received == {"T1": "second"}

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_call(self) -> None:
        calls: List[Any] = []
        debounced = Debouncer(calls.append, 0.02)

        debounced("a")
        assert debounced.pending
        debounced.cancel()
        await asyncio.sleep(0.06)

        assert calls == []
        assert not debounced.pending

    @pytest.mark.asyncio
    async def test_dispose_prevents_later_firing(self) -> None:
        """
        SCENARIO: Pending call, then dispose(), then more calls
        EXPECTED: Nothing ever fires; later calls are silently ignored
        """
        # Arrange
        calls: List[Any] = []
        debounced = Debouncer(calls.append, 0.02)
        debounced("a")

        # Act
        debounced.dispose()
        debounced("b")
        await asyncio.sleep(0.06)

        # Assert
        assert calls == []
        assert debounced.disposed
        assert not debounced.pending

    @pytest.mark.asyncio
    async def test_context_manager_disposes(self) -> None:
        calls: List[Any] = []
        with Debouncer(calls.append, 0.02) as debounced:
            debounced("a")
        await asyncio.sleep(0.06)

        assert calls == []

    @pytest.mark.asyncio
    async def test_flush_runs_pending_now(self) -> None:
        calls: List[Any] = []
        debounced = Debouncer(calls.append, 10)

        debounced("a")
        assert debounced.flush() is True
        assert debounced.flush() is False

        assert calls == ["a"]
        assert debounced.last_invoked_at is not None

    @pytest.mark.asyncio
    async def test_max_wait_bounds_continuous_burst(self) -> None:
        """
        SCENARIO: Calls every 20ms for 200ms, delay 50ms, max_wait 80ms
        EXPECTED: Fires during the burst instead of waiting for it to end
        """
        calls: List[Any] = []
        debounced = Debouncer(calls.append, 0.05, max_wait_seconds=0.08)

        for i in range(10):
            debounced(i)
            await asyncio.sleep(0.02)

        assert len(calls) >= 1
        await asyncio.sleep(0.1)
        assert calls[-1] == 9

    @pytest.mark.asyncio
    async def test_instances_do_not_share_timers(self) -> None:
        """
        SCENARIO: Two debouncers for different keys; one is cancelled
        EXPECTED: The other still fires
        """
        first: List[Any] = []
        second: List[Any] = []
        a = Debouncer(first.append, 0.02)
        b = Debouncer(second.append, 0.02)

        a("x")
        b("y")
        a.cancel()
        await asyncio.sleep(0.06)

        assert first == []
        assert second == ["y"]

    @pytest.mark.asyncio
    async def test_failing_callback_is_logged(self, caplog) -> None:
        def boom(_: Any) -> None:
            raise RuntimeError("boom")

        debounced = Debouncer(boom, 0.01)
        with caplog.at_level(logging.ERROR, logger="journal_perf.scheduling.timers"):
            debounced("a")
            await asyncio.sleep(0.05)

        assert "callback failed" in caplog.text

    @pytest.mark.asyncio
    async def test_coroutine_function_is_scheduled(self) -> None:
        calls: List[Any] = []

        async def refresh(value: Any) -> None:
            calls.append(value)

        debounced = Debouncer(refresh, 0.01)
        debounced("a")
        await asyncio.sleep(0.05)

        assert calls == ["a"]

    @pytest.mark.asyncio
    async def test_flush_schedules_coroutine_function(self) -> None:
        """
        SCENARIO: Async save debounced with a long delay, then flushed
        EXPECTED: The save runs right away instead of being dropped
        """
        # Arrange
        calls: List[Any] = []

        async def save(draft: str) -> None:
            calls.append(draft)

        debounced = Debouncer(save, 10)
        debounced("draft")

        # Act
        flushed = debounced.flush()
        await asyncio.sleep(0.02)

        # Assert
        assert flushed is True
        assert calls == ["draft"]

    @pytest.mark.asyncio
    async def test_flush_propagates_sync_failure(self) -> None:
        def boom(_: Any) -> None:
            raise RuntimeError("boom")

        debounced = Debouncer(boom, 10)
        debounced("a")

        with pytest.raises(RuntimeError):
            debounced.flush()
        assert not debounced.pending

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(InvalidArgument):
            Debouncer(print, -0.1)

    def test_rejects_max_wait_below_delay(self) -> None:
        with pytest.raises(InvalidArgument):
            Debouncer(print, 0.5, max_wait_seconds=0.1)


class TestThrottler:
    """Throttle behavior on a real event loop."""

    @pytest.mark.asyncio
    async def test_first_call_emits_immediately(self) -> None:
        calls: List[Any] = []
        throttled = throttle(calls.append, 0.1)

        throttled("a")

        assert calls == ["a"]

    @pytest.mark.asyncio
    async def test_burst_delivers_final_value(self) -> None:
        """
        SCENARIO: a, b, c, d in quick succession with a 50ms limit
        EXPECTED: a immediately, intermediates dropped, d delivered once trailing
        """
        # Arrange
        calls: List[Any] = []
        throttled = Throttler(calls.append, 0.05)

        # Act
        for value in "abcd":
            throttled(value)

        # Assert
        assert calls == ["a"]
        assert throttled.pending
        await asyncio.sleep(0.12)
        assert calls == ["a", "d"]
        assert not throttled.pending

    @pytest.mark.asyncio
    async def test_only_one_trailing_timer(self) -> None:
        calls: List[Any] = []
        throttled = Throttler(calls.append, 0.05)

        throttled(1)
        throttled(2)
        handle = throttled._handle
        throttled(3)

        assert throttled._handle is handle

    @pytest.mark.asyncio
    async def test_emits_again_after_limit(self) -> None:
        calls: List[Any] = []
        throttled = Throttler(calls.append, 0.03)

        throttled(1)
        await asyncio.sleep(0.06)
        throttled(2)

        assert calls == [1, 2]
        assert throttled.emit_count == 2

    @pytest.mark.asyncio
    async def test_trailing_respects_interval(self) -> None:
        """
        SCENARIO: Trailing emission after a leading one
        EXPECTED: Emissions are at least limit_seconds apart
        """
        loop = asyncio.get_running_loop()
        stamps: List[float] = []
        throttled = Throttler(lambda _: stamps.append(loop.time()), 0.05)

        throttled(1)
        throttled(2)
        await asyncio.sleep(0.12)

        assert len(stamps) == 2
        assert stamps[1] - stamps[0] >= 0.045

    @pytest.mark.asyncio
    async def test_dispose_drops_trailing(self) -> None:
        calls: List[Any] = []
        throttled = Throttler(calls.append, 0.03)

        throttled(1)
        throttled(2)
        throttled.dispose()
        throttled(3)
        await asyncio.sleep(0.08)

        assert calls == [1]

    @pytest.mark.asyncio
    async def test_flush_delivers_trailing_now(self) -> None:
        calls: List[Any] = []
        throttled = Throttler(calls.append, 10)

        throttled(1)
        throttled(2)

        assert throttled.flush() is True
        assert calls == [1, 2]
        assert throttled.flush() is False

    @pytest.mark.asyncio
    async def test_flush_schedules_coroutine_function(self) -> None:
        """
        SCENARIO: Async emitter, leading call then a pending trailing one, flushed
        EXPECTED: Both emissions run
        """
        calls: List[Any] = []

        async def emit(value: int) -> None:
            calls.append(value)

        throttled = Throttler(emit, 10)
        throttled(1)
        throttled(2)

        assert throttled.flush() is True
        await asyncio.sleep(0.02)

        assert calls == [1, 2]
        assert throttled.emit_count == 2

    def test_rejects_negative_limit(self) -> None:
        with pytest.raises(InvalidArgument):
            Throttler(print, -1)


class TestThrottledValue:
    """Value-flavoured throttle."""

    @pytest.mark.asyncio
    async def test_value_catches_up_to_last_update(self) -> None:
        """
        SCENARIO: Scroll offsets 0..500 fed in one burst
        EXPECTED: value jumps to first update, then settles on the last
        """
        # Arrange
        changes: List[int] = []
        offset = ThrottledValue(0, 0.03, on_change=changes.append)

        # Act
        for px in range(0, 501, 50):
            offset.update(px)

        # Assert
        assert offset.value == 0
        await asyncio.sleep(0.08)
        assert offset.value == 500
        assert changes == [0, 500]

    @pytest.mark.asyncio
    async def test_dispose_freezes_value(self) -> None:
        with ThrottledValue(0, 0.03) as offset:
            offset.update(10)
            offset.update(20)
        await asyncio.sleep(0.08)

        assert offset.value == 10
