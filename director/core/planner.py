"""
Planner: command text → plan, without a language model.

The fast path is tried first (single-step edits); when it declines, the
orchestration playbooks are tried against a Thought. Callers with their own
interpretation of the command may pass that Thought in; otherwise one is
built deterministically from the command text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Optional

from director.config import settings
from director.core.intent.fast_path import match_fast_path
from director.core.intent.normalization import collapse_whitespace
from director.core.intent.patterns import RULES
from director.core.plan_schemas.models import ContextSnapshot, Plan, Thought
from director.core.playbooks import build_orchestration_playbook
from director.core.playbooks.keywords import (
    BROLL_KEYWORDS,
    GENERATE_KEYWORDS,
    MUSIC_KEYWORDS,
    PLACE_KEYWORDS,
    SUBTITLE_KEYWORDS,
    VIDEO_KEYWORDS,
)
from director.core.tools.metadata import ToolCapabilities
from director.core.tracing import get_trace_context, log_plan_match, trace_span

logger = logging.getLogger(__name__)

PlanSource = Literal["fast_path", "playbook"]

_CAPABILITY_TAGS: list[tuple[str, tuple[re.Pattern[str], ...]]] = [
    ("broll", BROLL_KEYWORDS),
    ("music", MUSIC_KEYWORDS),
    ("subtitle", SUBTITLE_KEYWORDS),
    ("generate", GENERATE_KEYWORDS),
    ("video", VIDEO_KEYWORDS),
    ("place", PLACE_KEYWORDS),
    *((rule.strategy, (rule.pattern,)) for rule in RULES),
]


@dataclass(frozen=True)
class PlanMatch:
    """A plan and where it came from."""
    source: PlanSource
    id: str
    confidence: float
    plan: Plan
    thought: Thought

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "id": self.id,
            "confidence": self.confidence,
            "thought": self.thought.model_dump(by_alias=True, mode="json"),
            "plan": self.plan.model_dump(by_alias=True, mode="json"),
        }


def build_thought(command: str) -> Thought:
    """
    Deterministic interpretation of a command.

    ``requirements`` lists the capability tags whose keywords appear in the
    text, in a fixed order. A command with no recognizable capability is
    flagged as needing more information.
    """
    understanding = collapse_whitespace(command)
    tags = tuple(
        tag for tag, patterns in _CAPABILITY_TAGS
        if any(p.search(understanding) for p in patterns)
    )
    uncertainties = () if tags else ("No recognized editing capability in request",)
    return Thought(
        understanding=understanding,
        requirements=tags,
        uncertainties=uncertainties,
        approach="Match against deterministic recognizers, then orchestration playbooks",
        needs_more_info=not tags,
    )


def plan_command(
    command: str,
    context: ContextSnapshot,
    tools: ToolCapabilities,
    thought: Optional[Thought] = None,
    min_confidence: Optional[float] = None,
) -> Optional[PlanMatch]:
    """
    Plan one command.

    Returns ``None`` when neither the fast path nor any playbook applies;
    the caller then falls back to its general planner.
    """
    trace = get_trace_context()
    with trace_span(trace, "plan_command", {"command_length": len(command)}) as span:
        match = _plan(command, context, tools, thought, min_confidence)
        span.set_attribute("matched", match is not None)

    if match is None:
        logger.debug(f"[{trace.trace_id[:8]}] No deterministic plan for command")
        return None

    log_plan_match(
        trace.trace_id,
        source=match.source,
        match_id=match.id,
        confidence=match.confidence,
        step_count=len(match.plan.steps),
        requires_approval=match.plan.requires_approval,
    )
    return match


def _plan(
    command: str,
    context: ContextSnapshot,
    tools: ToolCapabilities,
    thought: Optional[Thought],
    min_confidence: Optional[float],
) -> Optional[PlanMatch]:
    fast = match_fast_path(command, context, tools, min_confidence=min_confidence)
    if fast is not None:
        return PlanMatch(
            source="fast_path",
            id=fast.strategy,
            confidence=fast.confidence,
            plan=fast.plan,
            thought=fast.thought,
        )

    if not settings.playbooks_enabled:
        return None

    thought = thought or build_thought(command)
    playbook = build_orchestration_playbook(thought, context, tools)
    if playbook is None:
        return None
    return PlanMatch(
        source="playbook",
        id=playbook.id.value,
        confidence=playbook.confidence,
        plan=playbook.plan,
        thought=thought,
    )
