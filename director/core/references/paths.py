"""Path lookup into prior step results (``data[0].id``, ``$.data.jobId``)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_TOKEN_RE = re.compile(r"\[([^\]]*)\]|([^.\[\]]+)")


@dataclass(frozen=True)
class PathLookup:
    """Discriminated lookup result: ``found`` is False when any segment is missing."""

    found: bool
    value: Any = None


NOT_FOUND = PathLookup(found=False)


def tokenize_path(path: str) -> list[str | int]:
    """Split a path into dict keys (str) and list indexes (int)."""
    text = path.strip()
    if text.startswith("$."):
        text = text[2:]
    elif text.startswith("$"):
        text = text[1:]

    tokens: list[str | int] = []
    for match in _TOKEN_RE.finditer(text):
        bracket, bare = match.group(1), match.group(2)
        if bracket is not None:
            inner = bracket.strip().strip("'\"")
            tokens.append(int(inner) if inner.isdigit() else inner)
        elif bare:
            tokens.append(bare)
    return tokens


def get_value_at_path(source: Any, path: str) -> PathLookup:
    """Walk ``source`` along ``path``. Never raises.

    Lists are bounds-checked; dicts must contain the key. An empty path
    returns the source itself.
    """
    current = source
    for token in tokenize_path(path):
        if isinstance(current, (list, tuple)):
            if isinstance(token, str):
                if not token.isdigit():
                    return NOT_FOUND
                token = int(token)
            if not 0 <= token < len(current):
                return NOT_FOUND
            current = current[token]
        elif isinstance(current, dict):
            key = token if isinstance(token, str) else str(token)
            if key not in current:
                return NOT_FOUND
            current = current[key]
        else:
            return NOT_FOUND
    return PathLookup(found=True, value=current)
