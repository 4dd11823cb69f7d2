"""Generate a video asset, wait for it, place it on the timeline."""

from __future__ import annotations

from typing import Optional

from director.core.intent.normalization import collapse_whitespace
from director.core.playbooks.helpers import (
    clamp_timeline_start,
    estimate_total_duration,
    has_tools,
    matches_all,
    parse_generation_duration,
    pick_track_id,
)
from director.core.playbooks.keywords import GENERATE_KEYWORDS, PLACE_KEYWORDS, VIDEO_KEYWORDS
from director.core.playbooks.models import PlaybookContext, PlaybookId, PlaybookMatch
from director.core.plan_schemas.models import Plan, PlanStep, RiskLevel
from director.core.references import make_reference

GENERATE_REQUIRED_TOOLS = ("generate_video", "check_generation_status", "insert_clip")
DEFAULT_GENERATION_PROMPT = "Create a cinematic short clip"


def build_generate_and_place(pc: PlaybookContext) -> Optional[PlaybookMatch]:
    """Three chained steps; the generation call is high risk so the plan needs approval."""
    if not matches_all(pc.text, (GENERATE_KEYWORDS, VIDEO_KEYWORDS, PLACE_KEYWORDS)):
        return None
    if not has_tools(pc.tools, GENERATE_REQUIRED_TOOLS):
        return None

    ctx = pc.context
    sequence_id = ctx.sequence_id
    track_id = pick_track_id(ctx, "video")
    if not sequence_id or not track_id:
        return None

    prompt = collapse_whitespace(pc.thought.understanding) or DEFAULT_GENERATION_PROMPT

    steps = (
        PlanStep(
            id="playbook_generate_video",
            tool="generate_video",
            args={
                "prompt": prompt,
                "mode": "text_to_video",
                "quality": "pro",
                "durationSec": parse_generation_duration(pc.text),
            },
            description="Submit AI video generation job for requested shot",
            risk_level=RiskLevel.HIGH,
            estimated_duration=600,
        ),
        PlanStep(
            id="playbook_check_generation_status",
            tool="check_generation_status",
            args={"jobId": make_reference("playbook_generate_video", "data.jobId")},
            description="Fetch generation result and retrieve produced asset ID",
            risk_level=RiskLevel.MEDIUM,
            estimated_duration=200,
            depends_on=("playbook_generate_video",),
        ),
        PlanStep(
            id="playbook_insert_generated_clip",
            tool="insert_clip",
            args={
                "sequenceId": sequence_id,
                "trackId": track_id,
                "assetId": make_reference("playbook_check_generation_status", "data.assetId"),
                "timelineStart": clamp_timeline_start(ctx.playhead_position, ctx.timeline_duration),
            },
            description="Insert generated asset into the active timeline",
            risk_level=RiskLevel.LOW,
            estimated_duration=220,
            depends_on=("playbook_check_generation_status",),
        ),
    )

    return PlaybookMatch(
        id=PlaybookId.GENERATE_AND_PLACE,
        confidence=0.89,
        plan=Plan(
            goal="Generate a new video asset and place it on timeline",
            steps=steps,
            estimated_total_duration=estimate_total_duration(steps),
            requires_approval=True,
            rollback_strategy=(
                "Cancel generation if still running; "
                "if insertion already happened, undo inserted clip from timeline."
            ),
        ),
    )
