"""Keyword groups for the orchestration playbooks (English and Korean)."""

from __future__ import annotations

import re

_FLAGS = re.IGNORECASE | re.ASCII


def _group(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, _FLAGS) for p in patterns)


BROLL_KEYWORDS = _group(
    r"\bb-?roll\b",
    r"\bcutaway\b",
    r"\binsert\s+shot\b",
    r"브롤",
    r"삽입\s*영상",
)

MUSIC_KEYWORDS = _group(
    r"\bmusic\b",
    r"\bbgm\b",
    r"background\s+music",
    r"배경\s*음악",
    r"음악\s*베드",
)

SUBTITLE_KEYWORDS = _group(r"\bsubtitle(s)?\b", r"\bcaption(s)?\b", r"자막")

GENERATE_KEYWORDS = _group(r"\bgenerate\b", r"\bcreate\b", r"생성", r"만들")

VIDEO_KEYWORDS = _group(
    r"\bvideo\b",
    r"\bclip\b",
    r"\bshorts?\b",
    r"\btext[-\s]?to[-\s]?video\b",
    r"영상",
    r"비디오",
    r"쇼츠",
)

PLACE_KEYWORDS = _group(
    r"\bplace\b",
    r"\binsert\b",
    r"timeline",
    r"타임라인",
    r"삽입",
    r"추가",
    r"배치",
)
