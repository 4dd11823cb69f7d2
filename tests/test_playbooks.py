"""
Tests for orchestration playbooks.

Scenarios:
A. B-roll + music bed + subtitle pass (with and without an audio track)
B. Generate a video, wait for it, place it on the timeline
C. Caption windows near the end of the timeline
"""
import pytest

from director.core.executor import ToolRegistryAdapter
from director.core.plan_schemas.models import ContextSnapshot, RiskLevel, Thought, TrackSummary
from director.core.planner import build_thought
from director.core.playbooks import (
    PlaybookId,
    build_orchestration_playbook,
    clamp_timeline_start,
    create_caption_window,
    parse_generation_duration,
    pick_track_id,
)
from director.core.state_store import ProjectStateStore
from director.core.tools import create_editing_registry

BROLL_COMMAND = "Add b-roll with background music and subtitles"
GENERATE_COMMAND = "Generate a 10 second video and place it on the timeline"


def _step_ids(match):
    return [s.id for s in match.plan.steps]


class TestBrollMusicSubtitles:
    """Scenario A."""

    def test_full_plan(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(BROLL_COMMAND), snapshot, adapter)

        assert match.id == PlaybookId.BROLL_MUSIC_SUBTITLES
        assert match.confidence == 0.9
        assert _step_ids(match) == [
            "playbook_get_unused_video",
            "playbook_insert_broll_clip",
            "playbook_get_unused_audio",
            "playbook_insert_music_bed",
            "playbook_duck_music_bed",
            "playbook_add_supporting_subtitle",
        ]
        assert match.plan.requires_approval is False
        assert match.plan.estimated_total_duration == 1040

    def test_broll_insert_reads_first_unused_asset(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(BROLL_COMMAND), snapshot, adapter)
        insert = match.plan.get_step("playbook_insert_broll_clip")

        assert insert.args == {
            "sequenceId": "seq-1",
            "trackId": "v1",
            "assetId": {
                "$fromStep": "playbook_get_unused_video",
                "$path": "data[0].id",
                "$default": "a-interview",
            },
            "timelineStart": 4.0,
        }
        assert insert.depends_on == ("playbook_get_unused_video",)

    def test_music_bed_is_ducked(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(BROLL_COMMAND), snapshot, adapter)
        duck = match.plan.get_step("playbook_duck_music_bed")

        assert duck.tool == "adjust_volume"
        assert duck.args == {"sequenceId": "seq-1", "trackId": "a1", "volume": 55}
        assert duck.depends_on == ("playbook_insert_music_bed",)

    def test_subtitle_placeholder(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(BROLL_COMMAND), snapshot, adapter)
        subtitle = match.plan.get_step("playbook_add_supporting_subtitle")

        assert subtitle.args == {
            "sequenceId": "seq-1",
            "text": "Draft subtitle",
            "startTime": 4.0,
            "endTime": 7.0,
        }
        assert subtitle.depends_on == ("playbook_insert_broll_clip",)

    def test_quoted_subtitle_text(self, snapshot, adapter):
        thought = build_thought("Add b-roll with music and subtitle 'Welcome'")
        match = build_orchestration_playbook(thought, snapshot, adapter)
        assert match.plan.get_step("playbook_add_supporting_subtitle").args["text"] == "Welcome"

    def test_without_audio_track(self):
        """No audio track → video and subtitle only."""
        store = ProjectStateStore("p")
        store.load_project()
        store.create_sequence("Main", sequence_id="seq-1")
        store.create_track("seq-1", "V1", "video", track_id="v1")
        store.import_asset("a-beach", "beach.mp4", "video", duration=12.0)
        store.import_asset("a-music", "music.wav", "audio", duration=90.0)
        adapter = ToolRegistryAdapter(create_editing_registry(store), state=store)

        match = build_orchestration_playbook(build_thought(BROLL_COMMAND), store.context_snapshot(), adapter)

        assert _step_ids(match) == [
            "playbook_get_unused_video",
            "playbook_insert_broll_clip",
            "playbook_add_supporting_subtitle",
        ]

    def test_missing_caption_tool(self, store, snapshot):
        registry = create_editing_registry(store)
        registry.unregister("add_caption")
        adapter = ToolRegistryAdapter(registry, state=store)
        assert build_orchestration_playbook(build_thought(BROLL_COMMAND), snapshot, adapter) is None

    def test_all_keyword_groups_required(self, snapshot, adapter):
        assert build_orchestration_playbook(build_thought("Add b-roll with subtitles"), snapshot, adapter) is None

    def test_korean_keywords(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought("브롤 넣고 배경 음악 깔고 자막 달아줘"), snapshot, adapter)
        assert match.id == PlaybookId.BROLL_MUSIC_SUBTITLES


class TestGenerateAndPlace:
    """Scenario B."""

    def test_plan(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(GENERATE_COMMAND), snapshot, adapter)

        assert match.id == PlaybookId.GENERATE_AND_PLACE
        assert match.confidence == 0.89
        assert _step_ids(match) == [
            "playbook_generate_video",
            "playbook_check_generation_status",
            "playbook_insert_generated_clip",
        ]
        assert match.plan.requires_approval is True
        assert match.plan.max_risk() == RiskLevel.HIGH
        assert match.plan.estimated_total_duration == 1020

    def test_generation_args(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(GENERATE_COMMAND), snapshot, adapter)
        generate = match.plan.get_step("playbook_generate_video")

        assert generate.args == {
            "prompt": GENERATE_COMMAND,
            "mode": "text_to_video",
            "quality": "pro",
            "durationSec": 10.0,
        }

    def test_steps_chain_through_references(self, snapshot, adapter):
        match = build_orchestration_playbook(build_thought(GENERATE_COMMAND), snapshot, adapter)

        status = match.plan.get_step("playbook_check_generation_status")
        insert = match.plan.get_step("playbook_insert_generated_clip")
        assert status.args["jobId"] == {"$fromStep": "playbook_generate_video", "$path": "data.jobId"}
        assert insert.args["assetId"] == {
            "$fromStep": "playbook_check_generation_status",
            "$path": "data.assetId",
        }
        assert insert.args["timelineStart"] == 4.0

    def test_generation_wins_over_broll(self, snapshot, adapter):
        thought = build_thought(
            "generate a b-roll video with music and subtitles and insert it on the timeline"
        )
        match = build_orchestration_playbook(thought, snapshot, adapter)
        assert match.id == PlaybookId.GENERATE_AND_PLACE

    def test_requires_video_track(self, adapter):
        context = ContextSnapshot(
            sequence_id="seq-1",
            available_tracks=(TrackSummary(id="a1", type="audio"),),
        )
        assert build_orchestration_playbook(build_thought(GENERATE_COMMAND), context, adapter) is None

    def test_no_tracks_at_all(self, adapter):
        context = ContextSnapshot(sequence_id="seq-1", available_tracks=())
        thought = build_thought("Generate a video and insert it on timeline at playhead")

        assert build_orchestration_playbook(thought, context, adapter) is None

    @pytest.mark.parametrize("text,expected", [
        ("generate a 2 second clip", 5.0),
        ("generate a 3 minute clip", 120.0),
        ("generate a clip", 6.0),
        ("generate a 30s clip", 30.0),
    ])
    def test_duration_clamped(self, text, expected):
        assert parse_generation_duration(text) == expected


class TestCaptionWindow:
    """Scenario C."""

    def test_three_second_window(self):
        assert create_caption_window(4.0, 20.0) == (4.0, 7.0)

    def test_window_cut_at_timeline_end(self):
        assert create_caption_window(19.0, 20.0) == (19.0, 20.0)

    def test_playhead_past_end_gets_one_second(self):
        assert create_caption_window(25.0, 20.0) == (20.0, 21.0)

    def test_empty_timeline(self):
        assert create_caption_window(4.0, 0.0) == (4.0, 7.0)

    @pytest.mark.parametrize("playhead,duration,expected", [
        (-1.0, 10.0, 0.0),
        (float("nan"), 10.0, 0.0),
        (5.0, 0.0, 5.0),
        (30.0, 20.0, 20.0),
        (3.0, 20.0, 3.0),
    ])
    def test_clamp_timeline_start(self, playhead, duration, expected):
        assert clamp_timeline_start(playhead, duration) == expected


class TestPlaybookGuards:
    """Context requirements."""

    def test_no_active_sequence(self, adapter):
        assert build_orchestration_playbook(build_thought(BROLL_COMMAND), ContextSnapshot(), adapter) is None

    def test_unrelated_thought(self, snapshot, adapter):
        assert build_orchestration_playbook(Thought(understanding="make it pop"), snapshot, adapter) is None

    def test_pick_track_prefers_selected(self):
        context = ContextSnapshot(
            sequence_id="seq-1",
            available_tracks=(
                TrackSummary(id="a1", type="audio"),
                TrackSummary(id="a2", type="audio"),
            ),
            selected_tracks=("a2",),
        )
        assert pick_track_id(context, "audio") == "a2"
        assert pick_track_id(context, "video") is None
