"""
Tests for the sequential command queue.

The queue must:
1. Run operations one at a time in FIFO order
2. Time out slow operations and signal their cancel event
3. Reject work beyond max_pending
4. Cancel pending (never running) operations on request
"""
import asyncio

import pytest

from director.core.command_queue import SequentialCommandQueue
from director.core.errors import CommandCancelledError, CommandTimeoutError, QueueFullError


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


class _Gate:
    """An operation that blocks until released."""

    def __init__(self, result="gated"):
        self.released = asyncio.Event()
        self.started = False
        self.result = result

    async def __call__(self, cancel_event):
        self.started = True
        await self.released.wait()
        return self.result


class TestOrdering:
    """FIFO, one at a time."""

    async def test_fifo(self):
        queue = SequentialCommandQueue()
        order = []

        def op(name, delay):
            async def run(cancel_event):
                await asyncio.sleep(delay)
                order.append(name)
                return name
            return run

        results = await asyncio.gather(
            queue.enqueue(op("a", 0.03), "a"),
            queue.enqueue(op("b", 0.0), "b"),
            queue.enqueue(op("c", 0.01), "c"),
        )

        assert results == ["a", "b", "c"]
        assert order == ["a", "b", "c"]

    async def test_never_concurrent(self):
        queue = SequentialCommandQueue()
        running = 0
        peak = 0

        async def op(cancel_event):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.005)
            running -= 1

        await asyncio.gather(*(queue.enqueue(op, f"op{i}") for i in range(5)))

        assert peak == 1
        assert queue.get_status().processed_count == 5

    async def test_failure_propagates_and_queue_continues(self):
        queue = SequentialCommandQueue()

        async def broken(cancel_event):
            raise ValueError("bad edit")

        async def fine(cancel_event):
            return "ok"

        with pytest.raises(ValueError, match="bad edit"):
            await queue.enqueue(broken, "broken")
        assert await queue.enqueue(fine, "fine") == "ok"


class TestTimeout:
    """Slow operations are stopped."""

    async def test_timeout_sets_cancel_event(self):
        queue = SequentialCommandQueue(timeout=0.05)
        seen = {}

        async def slow(cancel_event):
            seen["event"] = cancel_event
            await asyncio.sleep(1)

        with pytest.raises(CommandTimeoutError) as exc_info:
            await queue.enqueue(slow, "slow")

        assert exc_info.value.operation_name == "slow"
        assert "timeout after 0.05s" in str(exc_info.value)
        assert seen["event"].is_set()

    async def test_next_operation_runs_after_timeout(self):
        queue = SequentialCommandQueue(timeout=0.05)

        async def slow(cancel_event):
            await asyncio.sleep(1)

        async def fast(cancel_event):
            return 42

        slow_task = asyncio.ensure_future(queue.enqueue(slow, "slow"))
        await _settle()
        assert await queue.enqueue(fast, "fast") == 42
        with pytest.raises(CommandTimeoutError):
            await slow_task


class TestBackpressureAndCancellation:
    """max_pending, cancel_operation and clear."""

    async def test_queue_full(self):
        queue = SequentialCommandQueue(max_pending=1)
        gate = _Gate()
        running = asyncio.ensure_future(queue.enqueue(gate, "running"))
        await _settle()
        waiting = asyncio.ensure_future(queue.enqueue(_Gate("w"), "waiting"))
        await _settle()

        with pytest.raises(QueueFullError):
            await queue.enqueue(_Gate(), "rejected")

        queue.clear()
        gate.released.set()
        assert await running == "gated"
        with pytest.raises(CommandCancelledError):
            await waiting

    async def test_status(self):
        queue = SequentialCommandQueue()
        gate = _Gate()
        running = asyncio.ensure_future(queue.enqueue(gate, "render"))
        await _settle()
        later = asyncio.ensure_future(queue.enqueue(_Gate(), "export"))
        await _settle()

        status = queue.get_status()
        assert status.current_operation == "render"
        assert status.pending_operations == ["export"]
        assert status.total_count == 2
        assert status.is_processing
        assert queue.pending_count == 1

        queue.clear()
        gate.released.set()
        await running
        with pytest.raises(CommandCancelledError):
            await later

    async def test_cancel_pending_operation(self):
        queue = SequentialCommandQueue()
        gate = _Gate()
        running = asyncio.ensure_future(queue.enqueue(gate, "render"))
        await _settle()
        later_gate = _Gate()
        later = asyncio.ensure_future(queue.enqueue(later_gate, "export"))
        await _settle()

        assert queue.cancel_operation("export")
        assert not queue.cancel_operation("render")
        assert not queue.cancel_operation("missing")

        gate.released.set()
        await running
        with pytest.raises(CommandCancelledError, match="'export' was cancelled"):
            await later
        assert not later_gate.started

    async def test_clear_leaves_running_operation_alone(self):
        queue = SequentialCommandQueue()
        gate = _Gate()
        running = asyncio.ensure_future(queue.enqueue(gate, "render"))
        await _settle()
        pending = [asyncio.ensure_future(queue.enqueue(_Gate(), f"p{i}")) for i in range(3)]
        await _settle()

        queue.clear()

        assert queue.pending_count == 0
        gate.released.set()
        assert await running == "gated"
        for task in pending:
            with pytest.raises(CommandCancelledError):
                await task
