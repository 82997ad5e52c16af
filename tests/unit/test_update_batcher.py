"""
Unit Tests for UpdateBatcher.

Test Aspects Covered:
    ✅ Business Logic: Updaters applied in order, one transition per batch
    ✅ Time Logic: Value unchanged before the flush delay elapses
    ✅ State: flush()/cancel()/dispose(), enqueue ignored after disposal
    ✅ Error Handling: Failing updater leaves value unchanged, failing on_flush keeps it
"""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from journal_perf.errors import InvalidArgument
from journal_perf.scheduling.batching import UpdateBatcher, batch


class TestBatching:
    """Batch scheduling on a real event loop."""

    @pytest.mark.asyncio
    async def test_updates_applied_once_after_delay(self) -> None:
        """
        SCENARIO: batch(0, 50ms) with +1, +2, +3 enqueued synchronously
        EXPECTED: value 0 before the delay, 6 after, exactly one flush
        """
        # Arrange
        flushed: List[int] = []
        counter = batch(0, 0.05, on_flush=flushed.append)

        # Act
        counter.enqueue(lambda n: n + 1)
        counter.enqueue(lambda n: n + 2)
        counter.enqueue(lambda n: n + 3)

        # Assert
        assert counter.value == 0
        assert counter.pending_count == 3
        await asyncio.sleep(0.12)
        assert counter.value == 6
        assert counter.flush_count == 1
        assert flushed == [6]
        assert counter.pending_count == 0

    @pytest.mark.asyncio
    async def test_updaters_applied_in_enqueue_order(self) -> None:
        trail = batch([], 0.01)

        trail.enqueue(lambda xs: xs + ["a"])
        trail.enqueue(lambda xs: xs + ["b"])
        trail.enqueue(lambda xs: xs + ["c"])
        await asyncio.sleep(0.05)

        assert trail.value == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_later_enqueues_join_first_deadline(self) -> None:
        counter = UpdateBatcher(0, 0.05)

        counter.enqueue(lambda n: n + 1)
        handle = counter._handle
        await asyncio.sleep(0.02)
        counter.enqueue(lambda n: n + 1)

        assert counter._handle is handle

    @pytest.mark.asyncio
    async def test_separate_batches_flush_separately(self) -> None:
        counter = UpdateBatcher(0, 0.02)

        counter.enqueue(lambda n: n + 1)
        await asyncio.sleep(0.06)
        counter.enqueue(lambda n: n * 10)
        await asyncio.sleep(0.06)

        assert counter.value == 10
        assert counter.flush_count == 2

    @pytest.mark.asyncio
    async def test_flush_applies_now(self) -> None:
        counter = UpdateBatcher(0, 10)

        counter.enqueue(lambda n: n + 5)

        assert counter.flush() is True
        assert counter.value == 5
        assert not counter.pending
        assert counter.flush() is False

    @pytest.mark.asyncio
    async def test_cancel_drops_queue(self) -> None:
        counter = UpdateBatcher(0, 0.02)

        counter.enqueue(lambda n: n + 1)
        counter.cancel()
        await asyncio.sleep(0.06)

        assert counter.value == 0
        assert counter.flush_count == 0

    @pytest.mark.asyncio
    async def test_enqueue_after_dispose_ignored(self) -> None:
        """
        SCENARIO: Batcher disposed with updates queued, then enqueued again
        EXPECTED: Nothing is ever applied
        """
        # Arrange
        counter = UpdateBatcher(0, 0.02)
        counter.enqueue(lambda n: n + 1)

        # Act
        counter.dispose()
        counter.enqueue(lambda n: n + 1)
        await asyncio.sleep(0.06)

        # Assert
        assert counter.value == 0
        assert counter.pending_count == 0
        assert counter.disposed

    @pytest.mark.asyncio
    async def test_failing_updater_on_flush_propagates(self) -> None:
        counter = UpdateBatcher(1, 10)

        counter.enqueue(lambda n: n + 1)
        counter.enqueue(lambda n: n / 0)

        with pytest.raises(ZeroDivisionError):
            counter.flush()

        assert counter.value == 1
        assert counter.pending_count == 0

    @pytest.mark.asyncio
    async def test_failing_updater_on_timer_is_logged(self, caplog) -> None:
        counter = UpdateBatcher(1, 0.01)

        counter.enqueue(lambda n: n / 0)
        await asyncio.sleep(0.05)

        assert counter.value == 1
        assert "batch flush failed" in caplog.text

    @pytest.mark.asyncio
    async def test_failing_on_flush_on_timer_keeps_value(self, caplog) -> None:
        """
        SCENARIO: Updaters succeed, on_flush raises when the timer fires
        EXPECTED: New value committed, callback failure logged without
                  claiming the queue was discarded
        """
        # Arrange
        def listener(_: int) -> None:
            raise RuntimeError("listener down")

        counter = UpdateBatcher(1, 0.01, on_flush=listener)

        # Act
        counter.enqueue(lambda n: n + 1)
        await asyncio.sleep(0.05)

        # Assert
        assert counter.value == 2
        assert counter.flush_count == 1
        assert "batch on_flush callback failed" in caplog.text
        assert "discarding" not in caplog.text

    @pytest.mark.asyncio
    async def test_failing_on_flush_propagates_from_flush(self) -> None:
        def listener(_: int) -> None:
            raise RuntimeError("listener down")

        counter = UpdateBatcher(1, 10, on_flush=listener)
        counter.enqueue(lambda n: n + 1)

        with pytest.raises(RuntimeError):
            counter.flush()
        assert counter.value == 2

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(InvalidArgument):
            UpdateBatcher(0, -1)
