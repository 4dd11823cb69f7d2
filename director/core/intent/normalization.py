"""Text normalization helpers shared by the fast path, playbooks and planner."""

from __future__ import annotations

import re
from typing import Optional

_QUOTED_RE = re.compile(r"[\"']([^\"']+)[\"']")
_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Single spaces, no leading/trailing whitespace; case is preserved."""
    return _WS_RE.sub(" ", text).strip()


def extract_quoted(text: str) -> Optional[str]:
    """First single- or double-quoted span, stripped. ``None`` if absent or blank."""
    m = _QUOTED_RE.search(text)
    if not m:
        return None
    value = m.group(1).strip()
    return value or None
