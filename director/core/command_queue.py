"""
Sequential command queue.

Operations run one at a time in FIFO order. Each receives an
``asyncio.Event`` that is set when the operation should stop (timeout,
cancellation, ``clear()``); cooperative operations watch it, others are
cancelled outright on timeout.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Optional

from director.config import settings
from director.core.errors import CommandCancelledError, CommandTimeoutError, QueueFullError

logger = logging.getLogger(__name__)

QueuedOperation = Callable[[asyncio.Event], Awaitable[Any]]


@dataclass
class _QueueItem:
    name: str
    operation: QueuedOperation
    future: asyncio.Future
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)


@dataclass(frozen=True)
class QueueStatus:
    current_operation: Optional[str]
    pending_operations: list[str]
    total_count: int
    is_processing: bool
    processed_count: int = 0


class SequentialCommandQueue:
    """
    FIFO executor with per-operation timeout and backpressure.

    Usage:
        queue = SequentialCommandQueue()
        result = await queue.enqueue(lambda cancel: apply_edit(cancel), "apply_edit")
    """

    def __init__(self, timeout: Optional[float] = None, max_pending: Optional[int] = None):
        self.timeout = timeout if timeout is not None else settings.command_queue_timeout_seconds
        self.max_pending = max_pending if max_pending is not None else settings.command_queue_max_pending
        self._pending: deque[_QueueItem] = deque()
        self._current: Optional[_QueueItem] = None
        self._worker: Optional[asyncio.Task] = None
        self._processed = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def is_processing(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def enqueue(self, operation: QueuedOperation, name: str = "operation") -> Any:
        """
        Run ``operation`` after everything queued before it.

        Raises:
            QueueFullError: ``max_pending`` operations are already waiting.
            CommandTimeoutError: the operation exceeded ``timeout``.
            CommandCancelledError: the operation was cancelled before it started.
        """
        if len(self._pending) >= self.max_pending:
            logger.warning(f"⚠️ Command queue full, rejecting {name}")
            raise QueueFullError(self.max_pending)

        loop = asyncio.get_running_loop()
        item = _QueueItem(name=name, operation=operation, future=loop.create_future())
        self._pending.append(item)
        logger.debug(f"📥 Queued {name} ({len(self._pending)} pending)")

        if not self.is_processing:
            self._worker = loop.create_task(self._process())
        return await item.future

    def get_status(self) -> QueueStatus:
        pending = [item.name for item in self._pending]
        current = self._current.name if self._current else None
        return QueueStatus(
            current_operation=current,
            pending_operations=pending,
            total_count=len(pending) + (1 if current else 0),
            is_processing=self.is_processing,
            processed_count=self._processed,
        )

    def cancel_operation(self, name: str) -> bool:
        """Cancel the first pending operation called ``name``. The running one is never cancelled."""
        for item in self._pending:
            if item.name == name:
                self._pending.remove(item)
                self._cancel(item)
                logger.info(f"🚫 Cancelled pending operation {name}")
                return True
        return False

    def clear(self) -> None:
        """Cancel every pending operation; the running one finishes normally."""
        if self._pending:
            logger.info(f"🧹 Clearing {len(self._pending)} pending operations")
        while self._pending:
            self._cancel(self._pending.popleft())

    @staticmethod
    def _cancel(item: _QueueItem) -> None:
        item.cancel_event.set()
        if not item.future.done():
            item.future.set_exception(CommandCancelledError(item.name))

    async def _process(self) -> None:
        while self._pending:
            item = self._pending.popleft()
            if item.future.done():
                continue
            self._current = item
            try:
                result = await self._run(item)
            except Exception as e:
                logger.warning(f"⚠️ Queued operation {item.name} failed: {e}")
                if not item.future.done():
                    item.future.set_exception(e)
            else:
                if not item.future.done():
                    item.future.set_result(result)
            finally:
                self._current = None
                self._processed += 1

    async def _run(self, item: _QueueItem) -> Any:
        try:
            return await asyncio.wait_for(item.operation(item.cancel_event), timeout=self.timeout)
        except asyncio.TimeoutError:
            item.cancel_event.set()
            raise CommandTimeoutError(item.name, self.timeout) from None
