"""Stable hashing for tool-call arguments.

Rules:
  - Dict keys are sorted at every depth; list order is preserved.
  - Serialization is canonical: sorted keys, compact separators, json.dumps.
  - Values ``json`` cannot represent make ``canonical_json`` raise; callers
    that need a key for arbitrary input use ``stable_hash`` which falls back
    to ``str(value)``.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def sort_keys_deep(value: Any) -> Any:
    """Recursively sort dict keys. Lists keep their order; scalars pass through."""
    if isinstance(value, dict):
        return {k: sort_keys_deep(value[k]) for k in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [sort_keys_deep(item) for item in value]
    return value


def _refuse(value: object) -> Any:
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_json(value: Any) -> str:
    """Serialize ``value`` with sorted keys at every depth.

    Raises:
        TypeError: the value holds something JSON cannot represent.
        ValueError: the value is circular.
    """
    return json.dumps(
        sort_keys_deep(value),
        separators=(",", ":"),
        ensure_ascii=False,
        default=_refuse,
    )


def stable_hash(value: Any) -> str:
    """Order-insensitive digest of ``value``.

    ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` hash identically.
    Unserializable input falls back to ``str(value)``.
    """
    try:
        text = canonical_json(value)
    except (TypeError, ValueError, RecursionError):
        text = str(value)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]
