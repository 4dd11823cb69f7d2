"""B-roll + music bed + subtitle pass."""

from __future__ import annotations

from typing import Optional

from director.core.playbooks.helpers import (
    clamp_timeline_start,
    create_caption_window,
    estimate_total_duration,
    extract_quoted_text,
    has_tools,
    matches_all,
    pick_asset_id,
    pick_track_id,
)
from director.core.playbooks.keywords import BROLL_KEYWORDS, MUSIC_KEYWORDS, SUBTITLE_KEYWORDS
from director.core.playbooks.models import PlaybookContext, PlaybookId, PlaybookMatch
from director.core.plan_schemas.models import Plan, PlanStep, RiskLevel
from director.core.references import make_reference

BROLL_REQUIRED_TOOLS = ("get_unused_assets", "insert_clip", "add_caption")
MUSIC_BED_REQUIRED_TOOLS = ("get_unused_assets", "insert_clip", "adjust_volume")
MUSIC_BED_DUCK_VOLUME = 55
DEFAULT_SUBTITLE_TEXT = "Draft subtitle"


def build_broll_music_subtitles(pc: PlaybookContext) -> Optional[PlaybookMatch]:
    """
    Insert a B-roll clip at the playhead, optionally lay and duck a music
    bed under it, and add a subtitle placeholder over the segment.

    The music bed is included only when an audio track, an audio asset and
    ``adjust_volume`` are all available; otherwise the plan is video plus
    subtitle.
    """
    if not matches_all(pc.text, (BROLL_KEYWORDS, MUSIC_KEYWORDS, SUBTITLE_KEYWORDS)):
        return None
    if not has_tools(pc.tools, BROLL_REQUIRED_TOOLS):
        return None

    ctx = pc.context
    sequence_id = ctx.sequence_id
    video_track = pick_track_id(ctx, "video")
    fallback_video = pick_asset_id(ctx, "video")
    if not sequence_id or not video_track or not fallback_video:
        return None

    timeline_start = clamp_timeline_start(ctx.playhead_position, ctx.timeline_duration)

    steps: list[PlanStep] = [
        PlanStep(
            id="playbook_get_unused_video",
            tool="get_unused_assets",
            args={"kind": "video"},
            description="Discover candidate B-roll assets not used on timeline",
            risk_level=RiskLevel.LOW,
            estimated_duration=120,
        ),
        PlanStep(
            id="playbook_insert_broll_clip",
            tool="insert_clip",
            args={
                "sequenceId": sequence_id,
                "trackId": video_track,
                "assetId": make_reference("playbook_get_unused_video", "data[0].id", fallback_video),
                "timelineStart": timeline_start,
            },
            description="Insert the primary B-roll clip near the current playhead",
            risk_level=RiskLevel.LOW,
            estimated_duration=250,
            depends_on=("playbook_get_unused_video",),
        ),
    ]

    audio_track = pick_track_id(ctx, "audio")
    fallback_audio = pick_asset_id(ctx, "audio")
    if audio_track and fallback_audio and has_tools(pc.tools, MUSIC_BED_REQUIRED_TOOLS):
        steps += [
            PlanStep(
                id="playbook_get_unused_audio",
                tool="get_unused_assets",
                args={"kind": "audio"},
                description="Discover music bed candidates from unused audio assets",
                risk_level=RiskLevel.LOW,
                estimated_duration=120,
            ),
            PlanStep(
                id="playbook_insert_music_bed",
                tool="insert_clip",
                args={
                    "sequenceId": sequence_id,
                    "trackId": audio_track,
                    "assetId": make_reference("playbook_get_unused_audio", "data[0].id", fallback_audio),
                    "timelineStart": timeline_start,
                },
                description="Insert a music bed under the B-roll segment",
                risk_level=RiskLevel.LOW,
                estimated_duration=250,
                depends_on=("playbook_get_unused_audio",),
            ),
            PlanStep(
                id="playbook_duck_music_bed",
                tool="adjust_volume",
                args={
                    "sequenceId": sequence_id,
                    "trackId": audio_track,
                    "volume": MUSIC_BED_DUCK_VOLUME,
                },
                description="Lower music bed volume for dialog-safe mix",
                risk_level=RiskLevel.LOW,
                estimated_duration=120,
                depends_on=("playbook_insert_music_bed",),
            ),
        ]

    caption_start, caption_end = create_caption_window(ctx.playhead_position, ctx.timeline_duration)
    steps.append(
        PlanStep(
            id="playbook_add_supporting_subtitle",
            tool="add_caption",
            args={
                "sequenceId": sequence_id,
                "text": extract_quoted_text(pc.thought) or DEFAULT_SUBTITLE_TEXT,
                "startTime": caption_start,
                "endTime": caption_end,
            },
            description="Add a subtitle placeholder aligned with the inserted segment",
            risk_level=RiskLevel.LOW,
            estimated_duration=180,
            depends_on=("playbook_insert_broll_clip",),
        )
    )

    return PlaybookMatch(
        id=PlaybookId.BROLL_MUSIC_SUBTITLES,
        confidence=0.9,
        plan=Plan(
            goal="Orchestrate B-roll, music bed, and subtitle pass in one flow",
            steps=tuple(steps),
            estimated_total_duration=estimate_total_duration(steps),
            requires_approval=False,
            rollback_strategy=(
                "Undo inserted clips and caption in reverse order; "
                "restore previous audio mix level if changed."
            ),
        ),
    )
