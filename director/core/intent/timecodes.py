"""Time-literal grammar for editing commands.

Accepted forms:
    timecodes           12:30, 01:02:03, 00:05.5
    seconds             5s, 5 sec, 2.5 seconds, 5초
    minutes             2m, 2 min, 1.5 minutes, 2분
    Korean composites   1분 30초, 5분30초, 3분

All parsed values are seconds (float).
"""

from __future__ import annotations

import math
import re
from typing import Optional

_TIMECODE = r"\d{1,2}:\d{1,2}(?::\d{1,2})?(?:\.\d+)?"
_UNIT = r"(?:s|sec|secs|seconds?|m|min|mins|minutes?|초|분)"
_TIME_TOKEN = rf"[0-9:.]+(?:\s*{_UNIT})?"

_TIMECODE_RE = re.compile(_TIMECODE)
_PURE_TIMECODE_RE = re.compile(rf"^{_TIMECODE}$")

# A Latin unit must not run into more letters ("5 sec" yes, "5 seasons" no).
_SECONDS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(seconds?|secs?|s|초)(?![a-z])", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(minutes?|mins?|m|분)(?![a-z])", re.IGNORECASE)
_KOREAN_COMPOSITE_RE = re.compile(r"(\d+)\s*분\s*(\d+(?:\.\d+)?)?\s*초?")

_MINUTE_VALUE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(m|min|mins|minute|minutes|분)$", re.IGNORECASE)
_SECOND_VALUE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(s|sec|secs|second|seconds|초)$", re.IGNORECASE)
_KOREAN_COMPOSITE_VALUE_RE = re.compile(r"^(\d+)\s*분\s*(\d+(?:\.\d+)?)?\s*초?$")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)")

_DIGIT_AHEAD_RE = re.compile(r"^\s*\d")
_MINUTE_BEHIND_RE = re.compile(r"\d\s*분\s*$")

_RANGE_RE = re.compile(
    rf"(?:from|between|구간|부터)?\s*({_TIME_TOKEN})\s*(?:to|and|~|-|까지)\s*({_TIME_TOKEN})",
    re.IGNORECASE,
)
_TRIM_TARGET_RE = re.compile(rf"({_TIME_TOKEN})\s*(?:까지|to)", re.IGNORECASE)


def parse_time_value(raw: str) -> Optional[float]:
    """Parse one time literal; bare numbers are seconds."""
    value = raw.strip().lower()
    if not value:
        return None

    if _PURE_TIMECODE_RE.match(value):
        parts = [float(p) for p in value.split(":")]
        if len(parts) == 2:
            return parts[0] * 60 + parts[1]
        return parts[0] * 3600 + parts[1] * 60 + parts[2]

    if m := _MINUTE_VALUE_RE.match(value):
        return float(m.group(1)) * 60

    if m := _SECOND_VALUE_RE.match(value):
        return float(m.group(1))

    if m := _KOREAN_COMPOSITE_VALUE_RE.match(value):
        seconds = float(m.group(2)) if m.group(2) else 0.0
        return float(m.group(1)) * 60 + seconds

    if m := _LEADING_NUMBER_RE.match(value):
        return float(m.group(0))

    return None


def parse_all_times(text: str) -> list[float]:
    """Every time literal in ``text``, in grammar order, deduplicated to 3 decimals.

    Timecodes come first, then seconds, then minutes, then Korean
    composites. Negative and non-finite values are dropped. ``N분`` directly
    followed by digits is the head of a composite, not a minute value; the
    seconds tail of such a composite is not a standalone value either.
    """
    values: list[float] = []
    seen: set[str] = set()

    def push(value: Optional[float]) -> None:
        if value is None or not math.isfinite(value) or value < 0:
            return
        key = f"{value:.3f}"
        if key in seen:
            return
        seen.add(key)
        values.append(value)

    for m in _TIMECODE_RE.finditer(text):
        push(parse_time_value(m.group(0)))

    for m in _SECONDS_RE.finditer(text):
        if _MINUTE_BEHIND_RE.search(text[:m.start()]):
            continue
        push(float(m.group(1)))

    for m in _MINUTES_RE.finditer(text):
        if m.group(2) == "분" and _DIGIT_AHEAD_RE.match(text[m.end():]):
            continue
        push(float(m.group(1)) * 60)

    for m in _KOREAN_COMPOSITE_RE.finditer(text):
        seconds = float(m.group(2)) if m.group(2) else 0.0
        push(float(m.group(1)) * 60 + seconds)

    return values


def parse_first_time(text: str) -> Optional[float]:
    values = parse_all_times(text)
    return values[0] if values else None


def parse_time_range(text: str) -> Optional[tuple[float, float]]:
    """``from A to B`` style range, else the first two distinct times."""
    m = _RANGE_RE.search(text)
    if m:
        start = parse_time_value(m.group(1))
        end = parse_time_value(m.group(2))
        if start is not None and end is not None:
            return start, end

    values = parse_all_times(text)
    if len(values) >= 2:
        return values[0], values[1]
    return None


def parse_trim_target_time(text: str) -> Optional[float]:
    """The time right before ``까지`` / ``to``, else the first time."""
    m = _TRIM_TARGET_RE.search(text)
    if m:
        value = parse_time_value(m.group(1))
        if value is not None:
            return value
    return parse_first_time(text)


def format_timecode(seconds: float) -> str:
    """Render seconds as ``HH:MM:SS.fff`` (parses back to the same value)."""
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"Cannot format {seconds!r} as a timecode")
    total_ms = round(seconds * 1000)
    hours, rem = divmod(total_ms, 3_600_000)
    if hours > 99:
        raise ValueError(f"{seconds!r}s exceeds the two-digit hour field")
    minutes, rem = divmod(rem, 60_000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


_DURATION_SECONDS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:sec|secs|second|seconds|s|초)(?![a-z])", re.IGNORECASE)
_DURATION_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:min|mins|minute|minutes|분)(?![a-z])", re.IGNORECASE)


def parse_duration_seconds(text: str) -> Optional[float]:
    """A requested length: the first seconds literal, else the first minutes literal."""
    if m := _DURATION_SECONDS_RE.search(text):
        return float(m.group(1))
    if m := _DURATION_MINUTES_RE.search(text):
        return float(m.group(1)) * 60
    return None
