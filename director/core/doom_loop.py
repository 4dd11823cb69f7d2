"""Sliding-window detector for runaway repeated tool calls."""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from director.contracts.hash_utils import stable_hash
from director.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DOOM_LOOP_THRESHOLD = 3
MIN_DOOM_LOOP_THRESHOLD = 2


class DoomLoopDetector:
    """
    Flags when the last ``threshold`` calls are the same tool with
    hash-equal arguments.

    Argument hashing is insensitive to dict key order at every depth, so
    ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` count as the same call.
    Detection is advisory; the caller decides whether to stop.
    """

    def __init__(self, threshold: int = DEFAULT_DOOM_LOOP_THRESHOLD):
        if threshold < MIN_DOOM_LOOP_THRESHOLD:
            raise ConfigurationError(
                f"Doom loop threshold must be at least {MIN_DOOM_LOOP_THRESHOLD}, got {threshold}",
                context={"threshold": threshold},
            )
        self.threshold = threshold
        self._window: deque[tuple[str, str]] = deque(maxlen=threshold)
        self._call_count = 0

    @property
    def call_count(self) -> int:
        """Calls recorded since construction or the last ``reset()``."""
        return self._call_count

    def check(self, tool: str, args: Any) -> bool:
        """Record a call; True if the full window holds identical calls."""
        entry = (tool, stable_hash(args))
        self._window.append(entry)
        self._call_count += 1

        if len(self._window) < self.threshold:
            return False
        looping = all(e == entry for e in self._window)
        if looping:
            logger.warning(f"🔁 Doom loop: {tool} repeated {self.threshold}x with identical args")
        return looping

    def reset(self) -> None:
        self._window.clear()
        self._call_count = 0
