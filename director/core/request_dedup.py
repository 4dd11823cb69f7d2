"""
Request deduplication.

Identical concurrent requests (same command, same payload) share one
execution. A finished entry lingers for a short debounce window so that a
burst of identical requests arriving right after completion reuses the
result instead of running again.
"""

from __future__ import annotations

import asyncio
import hashlib
import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from director.config import settings
from director.contracts.hash_utils import canonical_json

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry:
    id: int
    task: asyncio.Task
    completed: bool = False


class RequestDeduplicator:
    """
    Coalesces identical in-flight requests.

    Keys are ``command:<digest of payload>``. Payloads JSON cannot represent
    (circular structures, callables) are keyed by object identity instead:
    the same object deduplicates, equal-looking distinct objects do not.

    Usage:
        dedup = RequestDeduplicator()
        timeline = await dedup.execute("get_timeline", {"sequenceId": "seq-1"}, fetch_timeline)
    """

    def __init__(self, max_entries: Optional[int] = None, cleanup_delay: Optional[float] = None):
        self.max_entries = max_entries if max_entries is not None else settings.dedup_max_entries
        self.cleanup_delay = (
            cleanup_delay if cleanup_delay is not None else settings.dedup_cleanup_delay_seconds
        )
        self._entries: dict[str, _Entry] = {}
        self._ids = itertools.count(1)

    @property
    def in_flight_count(self) -> int:
        """Tracked entries, including completed ones still inside the debounce window."""
        return len(self._entries)

    async def execute(
        self,
        command: str,
        payload: Any,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        key = self._generate_key(command, payload)
        entry = self._entries.get(key)
        if entry is not None:
            logger.debug(f"♻️ Reusing in-flight request {command}")
            return await asyncio.shield(entry.task)

        self._evict_if_needed()
        entry = _Entry(id=next(self._ids), task=asyncio.ensure_future(operation()))
        self._entries[key] = entry
        entry.task.add_done_callback(lambda task: self._on_done(key, entry.id, task))
        return await asyncio.shield(entry.task)

    def clear(self) -> None:
        """Stop tracking everything; running operations still finish for their waiters."""
        self._entries.clear()

    def cleanup(self, key: str) -> None:
        self._entries.pop(key, None)

    def _generate_key(self, command: str, payload: Any) -> str:
        try:
            text = canonical_json(payload)
        except (TypeError, ValueError, RecursionError):
            return f"{command}:obj-{id(payload):x}"
        digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
        return f"{command}:{digest}"

    def _on_done(self, key: str, entry_id: int, task: asyncio.Task) -> None:
        if not task.cancelled():
            task.exception()  # mark retrieved; waiters see it through shield()
        entry = self._entries.get(key)
        if entry is not None and entry.id == entry_id:
            entry.completed = True
        asyncio.get_running_loop().call_later(self.cleanup_delay, self._cleanup_if_current, key, entry_id)

    def _cleanup_if_current(self, key: str, entry_id: int) -> None:
        """Only the entry that scheduled this cleanup may be removed."""
        entry = self._entries.get(key)
        if entry is not None and entry.id == entry_id:
            del self._entries[key]

    def _evict_if_needed(self) -> None:
        while self._entries and len(self._entries) >= self.max_entries:
            victim = next((k for k, e in self._entries.items() if e.completed), None)
            if victim is None:
                victim = next(iter(self._entries))
                logger.debug(f"Evicting in-flight request {victim} at capacity")
            del self._entries[victim]
