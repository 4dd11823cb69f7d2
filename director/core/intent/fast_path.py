"""
Deterministic fast path: common single-clip edits without a language model.

Five recognizers are tried in a fixed order (split, trim, move, caption,
delete range). The first one that recognizes the command, builds arguments
the tool schema accepts, and clears the confidence floor wins. Every match
is a one-step, low-risk plan that needs no approval.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from director.config import settings
from director.core.intent.normalization import extract_quoted
from director.core.intent.patterns import CAPTION, DELETE_RANGE, MOVE, PLAYHEAD_RE, SPLIT, TRIM, Rule
from director.core.intent.timecodes import parse_first_time, parse_time_range, parse_trim_target_time
from director.core.plan_schemas.models import ContextSnapshot, Plan, PlanStep, RiskLevel, Thought
from director.core.tools.metadata import ToolCapabilities

logger = logging.getLogger(__name__)

FAST_PATH_STEP_DURATION_MS = 150


@dataclass(frozen=True)
class FastPathMatch:
    """A recognized command and the single-step plan that carries it out."""
    strategy: str
    confidence: float
    thought: Thought
    plan: Plan

    @property
    def step(self) -> PlanStep:
        return self.plan.steps[0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "confidence": self.confidence,
            "thought": self.thought.model_dump(by_alias=True, mode="json"),
            "plan": self.plan.model_dump(by_alias=True, mode="json"),
        }


Recognizer = Callable[[str, ContextSnapshot, ToolCapabilities], Optional[FastPathMatch]]


def _single_selected_clip(context: ContextSnapshot) -> Optional[tuple[str, str]]:
    """(clip_id, track_id) when exactly one clip on exactly one track is selected."""
    if len(context.selected_clips) != 1 or len(context.selected_tracks) != 1:
        return None
    return context.selected_clips[0], context.selected_tracks[0]


def _label(strategy: str) -> str:
    return strategy.replace("_", " ", 1)


def _create_fast_path_match(
    rule: Rule,
    args: dict[str, Any],
    tools: ToolCapabilities,
) -> Optional[FastPathMatch]:
    if not tools.has_tool(rule.tool):
        return None
    validation = tools.validate_args(rule.tool, args)
    if not validation.valid:
        logger.debug(f"Fast path {rule.strategy} rejected by schema: {validation.error_message}")
        return None

    label = _label(rule.strategy)
    step = PlanStep(
        id=f"fastpath-{rule.strategy}",
        tool=rule.tool,
        args=args,
        description=f"Fast-path {label} action",
        risk_level=RiskLevel.LOW,
        estimated_duration=FAST_PATH_STEP_DURATION_MS,
    )
    return FastPathMatch(
        strategy=rule.strategy,
        confidence=rule.confidence,
        thought=Thought(
            understanding=f"Apply {label} through deterministic fast path",
            approach="Use deterministic fast path and execute schema-validated command directly",
        ),
        plan=Plan(
            goal=f"Execute {label}",
            steps=(step,),
            estimated_total_duration=step.estimated_duration,
            requires_approval=False,
            rollback_strategy="Use standard undo stack for this operation",
        ),
    )


# =============================================================================
# Recognizers
# =============================================================================

def recognize_split(text: str, context: ContextSnapshot, tools: ToolCapabilities) -> Optional[FastPathMatch]:
    if not SPLIT.matches(text):
        return None
    selected = _single_selected_clip(context)
    if selected is None:
        return None

    split_time = parse_first_time(text)
    if split_time is None and PLAYHEAD_RE.search(text):
        split_time = context.playhead_position
    if split_time is None:
        return None

    clip_id, track_id = selected
    args = {
        "sequenceId": context.sequence_id,
        "trackId": track_id,
        "clipId": clip_id,
        "splitTime": split_time,
    }
    return _create_fast_path_match(SPLIT, args, tools)


def recognize_trim(text: str, context: ContextSnapshot, tools: ToolCapabilities) -> Optional[FastPathMatch]:
    if not TRIM.matches(text):
        return None
    selected = _single_selected_clip(context)
    if selected is None:
        return None

    end_time = parse_trim_target_time(text)
    if end_time is None:
        return None

    clip_id, track_id = selected
    args = {
        "sequenceId": context.sequence_id,
        "trackId": track_id,
        "clipId": clip_id,
        "newSourceOut": end_time,
    }
    return _create_fast_path_match(TRIM, args, tools)


def recognize_move(text: str, context: ContextSnapshot, tools: ToolCapabilities) -> Optional[FastPathMatch]:
    if not MOVE.matches(text):
        return None
    selected = _single_selected_clip(context)
    if selected is None:
        return None

    new_timeline_in = parse_first_time(text)
    if new_timeline_in is None:
        return None

    clip_id, track_id = selected
    args = {
        "sequenceId": context.sequence_id,
        "trackId": track_id,
        "clipId": clip_id,
        "newTimelineIn": new_timeline_in,
    }
    return _create_fast_path_match(MOVE, args, tools)


def recognize_caption(text: str, context: ContextSnapshot, tools: ToolCapabilities) -> Optional[FastPathMatch]:
    if not CAPTION.matches(text):
        return None
    caption = extract_quoted(text)
    if not caption:
        return None

    time_range = parse_time_range(text)
    if time_range is None:
        return None
    start_time, end_time = time_range
    if end_time <= start_time:
        return None

    args = {
        "sequenceId": context.sequence_id,
        "text": caption,
        "startTime": start_time,
        "endTime": end_time,
    }
    return _create_fast_path_match(CAPTION, args, tools)


def recognize_delete_range(text: str, context: ContextSnapshot, tools: ToolCapabilities) -> Optional[FastPathMatch]:
    if not DELETE_RANGE.matches(text):
        return None
    time_range = parse_time_range(text)
    if time_range is None:
        return None
    start_time, end_time = time_range
    if end_time <= start_time:
        return None

    args: dict[str, Any] = {
        "sequenceId": context.sequence_id,
        "startTime": start_time,
        "endTime": end_time,
    }
    if len(context.selected_tracks) == 1:
        args["trackId"] = context.selected_tracks[0]
    return _create_fast_path_match(DELETE_RANGE, args, tools)


RECOGNIZERS: list[Recognizer] = [
    recognize_split,
    recognize_trim,
    recognize_move,
    recognize_caption,
    recognize_delete_range,
]


def match_fast_path(
    command: str,
    context: ContextSnapshot,
    tools: ToolCapabilities,
    min_confidence: Optional[float] = None,
) -> Optional[FastPathMatch]:
    """
    Try each recognizer in order; return the first match at or above
    ``min_confidence`` (default from settings, 0.85).

    Returns ``None`` for blank commands and when no sequence is active.
    """
    floor = settings.fast_path_min_confidence if min_confidence is None else min_confidence
    text = command.strip()
    if not text or not context.sequence_id:
        return None

    for recognize in RECOGNIZERS:
        candidate = recognize(text, context, tools)
        if candidate is None:
            continue
        if candidate.confidence >= floor:
            logger.info(f"⚡ Fast path matched {candidate.strategy} ({candidate.confidence:.2f})")
            return candidate
        logger.debug(f"Fast path {candidate.strategy} below floor ({candidate.confidence} < {floor})")
    return None
