"""
Keyword patterns for the fast-path recognizers.

Word boundaries are ASCII-only (``re.ASCII``) so an English keyword followed
by a Hangul particle ("split을") still counts as a whole word.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_FLAGS = re.IGNORECASE | re.ASCII


@dataclass(frozen=True)
class Rule:
    """A keyword trigger for one fast-path strategy."""
    strategy: str
    tool: str
    pattern: re.Pattern[str]
    confidence: float

    def matches(self, text: str) -> bool:
        return bool(self.pattern.search(text))


SPLIT = Rule("split", "split_clip", re.compile(r"(\bsplit\b|\bcut\b(?!\s*out)|분할|쪼개)", _FLAGS), 0.97)
TRIM = Rule("trim", "trim_clip", re.compile(r"(\btrim\b|컷편집|트림|잘라|까지)", _FLAGS), 0.95)
MOVE = Rule("move", "move_clip", re.compile(r"(\bmove\b|\bshift\b|옮기|이동)", _FLAGS), 0.95)
CAPTION = Rule("add_caption", "add_caption", re.compile(r"(caption|subtitle|자막)", _FLAGS), 0.96)
DELETE_RANGE = Rule(
    "delete_range",
    "delete_clips_in_range",
    re.compile(r"(delete|remove|cut\s*out|삭제)", _FLAGS),
    0.94,
)

PLAYHEAD_RE = re.compile(r"(playhead|재생헤드|현재\s*위치)", _FLAGS)

RULES: list[Rule] = [SPLIT, TRIM, MOVE, CAPTION, DELETE_RANGE]
