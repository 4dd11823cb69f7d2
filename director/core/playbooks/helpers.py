"""Shared building blocks for playbook construction."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from typing import Optional

from director.core.intent.normalization import extract_quoted
from director.core.intent.timecodes import parse_duration_seconds
from director.core.plan_schemas.models import ContextSnapshot, PlanStep, Thought
from director.core.tools.metadata import ToolCapabilities

CAPTION_WINDOW_SECONDS = 3.0
CAPTION_MIN_WINDOW_SECONDS = 1.0

DEFAULT_GENERATION_SECONDS = 6.0
MIN_GENERATION_SECONDS = 5.0
MAX_GENERATION_SECONDS = 120.0


def build_search_text(thought: Thought) -> str:
    parts = [thought.understanding, thought.approach, *thought.requirements, *thought.uncertainties]
    return " ".join(p for p in parts if p.strip()).lower()


def matches_all(text: str, groups: Iterable[Sequence[re.Pattern[str]]]) -> bool:
    """Every group has at least one pattern that matches ``text``."""
    return all(any(p.search(text) for p in group) for group in groups)


def has_tools(tools: ToolCapabilities, names: Iterable[str]) -> bool:
    return all(tools.has_tool(name) for name in names)


def pick_track_id(context: ContextSnapshot, track_type: str) -> Optional[str]:
    """A selected track of ``track_type`` first, else the first available one."""
    for selected in context.selected_tracks:
        track = context.track(selected)
        if track is not None and track.type == track_type:
            return track.id
    first = next((t for t in context.available_tracks if t.type == track_type), None)
    return first.id if first else None


def pick_asset_id(context: ContextSnapshot, asset_type: str) -> Optional[str]:
    first = next((a for a in context.available_assets if a.type == asset_type), None)
    return first.id if first else None


def clamp_timeline_start(playhead: float, timeline_duration: float) -> float:
    if not math.isfinite(playhead) or playhead < 0:
        return 0.0
    if not math.isfinite(timeline_duration) or timeline_duration <= 0:
        return playhead
    return min(playhead, timeline_duration)


def create_caption_window(playhead: float, timeline_duration: float) -> tuple[float, float]:
    """
    A short caption window starting at the (clamped) playhead.

    Three seconds long, cut at the timeline end; when the cut would leave
    nothing, fall back to one second past the start.
    """
    start = clamp_timeline_start(playhead, timeline_duration)
    unconstrained_end = start + CAPTION_WINDOW_SECONDS
    if not math.isfinite(timeline_duration) or timeline_duration <= 0:
        return start, unconstrained_end

    capped_end = min(unconstrained_end, timeline_duration)
    if capped_end <= start:
        return start, start + CAPTION_MIN_WINDOW_SECONDS
    return start, capped_end


def clamp_generation_duration(seconds: float) -> float:
    if not math.isfinite(seconds):
        return DEFAULT_GENERATION_SECONDS
    return max(MIN_GENERATION_SECONDS, min(MAX_GENERATION_SECONDS, seconds))


def parse_generation_duration(text: str) -> float:
    """Requested clip length in [5, 120] seconds; 6 when the text names none."""
    requested = parse_duration_seconds(text)
    if requested is None:
        return DEFAULT_GENERATION_SECONDS
    return clamp_generation_duration(requested)


def extract_quoted_text(thought: Thought) -> Optional[str]:
    return extract_quoted(f"{thought.understanding} {thought.approach}")


def estimate_total_duration(steps: Iterable[PlanStep]) -> float:
    return sum(step.estimated_duration for step in steps)
