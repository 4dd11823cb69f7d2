"""
Deterministic intent recognition for editing commands.

Public API:
    match_fast_path(command, context, tools) -> FastPathMatch | None
    parse_all_times / parse_time_range / parse_time_value / format_timecode
"""

from director.core.intent.fast_path import (
    FAST_PATH_STEP_DURATION_MS,
    RECOGNIZERS,
    FastPathMatch,
    Recognizer,
    match_fast_path,
)
from director.core.intent.normalization import collapse_whitespace, extract_quoted
from director.core.intent.patterns import RULES, Rule
from director.core.intent.timecodes import (
    format_timecode,
    parse_all_times,
    parse_duration_seconds,
    parse_first_time,
    parse_time_range,
    parse_time_value,
    parse_trim_target_time,
)

__all__ = [
    "FAST_PATH_STEP_DURATION_MS",
    "RECOGNIZERS",
    "RULES",
    "FastPathMatch",
    "Recognizer",
    "Rule",
    "collapse_whitespace",
    "extract_quoted",
    "format_timecode",
    "match_fast_path",
    "parse_all_times",
    "parse_duration_seconds",
    "parse_first_time",
    "parse_time_range",
    "parse_time_value",
    "parse_trim_target_time",
]
