"""Tests for failure classification and terminal-failure guidance."""
import pytest

from director.core.executor import (
    PlanRunResult,
    StepExecutionRecord,
    detect_immediate_terminal_failure,
    detect_repeated_terminal_failure,
    did_execution_mutate_state,
    is_precondition_failure,
    is_retryable_tool_failure,
    normalize_tool_failure,
)
from director.core.plan_schemas.models import ContextSnapshot, ToolExecutionResult, TrackSummary


def _record(tool, result):
    return StepExecutionRecord(step_id=f"{tool}-step", tool=tool, args={}, result=result, start_time=0.0, end_time=0.0)


def _failed_run(tool, error):
    return PlanRunResult(success=False, failed_steps=[_record(tool, ToolExecutionResult.failure(error))])


EMPTY_TIMELINE = ContextSnapshot(
    sequence_id="seq-1",
    available_tracks=(TrackSummary(id="v1", type="video", clip_count=0),),
)
BUSY_TIMELINE = ContextSnapshot(
    sequence_id="seq-1",
    available_tracks=(TrackSummary(id="v1", type="video", clip_count=3),),
)


class TestClassification:
    """Retryable vs terminal."""

    @pytest.mark.parametrize("error", [
        "Request timed out",
        "429 Too Many Requests",
        "ECONNRESET while talking to renderer",
        "Service temporarily unavailable",
        "please try again",
    ])
    def test_retryable(self, error):
        assert is_retryable_tool_failure(error)

    @pytest.mark.parametrize("error", [None, "", "Clip not found: c9", "Expected number, got str"])
    def test_not_retryable(self, error):
        assert not is_retryable_tool_failure(error)

    def test_normalize(self):
        assert normalize_tool_failure("Clip 'c1' not found at 12 seconds") == "clip <value> not found at <num> seconds"
        assert normalize_tool_failure("  ") == "unknown failure"

    def test_precondition_failure(self):
        assert is_precondition_failure("REV_CONFLICT: expected state version 3")
        assert is_precondition_failure("PRECONDITION_FAILED: clipId: ...")
        assert not is_precondition_failure("Clip not found: c9")


class TestMutationDetection:
    """Did a run change the project?"""

    def test_read_only_run(self):
        run = PlanRunResult(success=True, completed_steps=[
            _record("get_unused_assets", ToolExecutionResult(success=True, data=[])),
        ])
        assert not did_execution_mutate_state(run)

    def test_mutating_tool(self):
        run = PlanRunResult(success=True, completed_steps=[
            _record("split_clip", ToolExecutionResult(success=True)),
        ])
        assert did_execution_mutate_state(run)

    def test_failed_steps_do_not_count(self):
        assert not did_execution_mutate_state(_failed_run("split_clip", "Clip not found: c9"))


class TestImmediateTerminalFailure:
    """Failures no retry can fix."""

    def test_precondition(self):
        guidance = detect_immediate_terminal_failure(
            _failed_run("split_clip", "PRECONDITION_FAILED: clipId: 'c9' does not exist"), BUSY_TIMELINE,
        )
        assert guidance.failure_signature.startswith("precondition:")
        assert "Refresh timeline context" in guidance.suggested_action

    def test_missing_track(self):
        guidance = detect_immediate_terminal_failure(_failed_run("insert_clip", "Track 'v9' not found"), BUSY_TIMELINE)
        assert "target track does not exist" in guidance.reason

    def test_no_clips_on_timeline(self):
        guidance = detect_immediate_terminal_failure(_failed_run("split_clip", "Clip not found: c9"), EMPTY_TIMELINE)
        assert guidance.failure_signature == "precondition:no_timeline_clips"

    def test_clips_present(self):
        assert detect_immediate_terminal_failure(_failed_run("split_clip", "Clip not found: c9"), BUSY_TIMELINE) is None

    def test_transient_is_not_terminal(self):
        assert detect_immediate_terminal_failure(_failed_run("split_clip", "Request timed out"), EMPTY_TIMELINE) is None

    def test_mutated_run_is_not_terminal(self):
        run = _failed_run("split_clip", "Clip not found: c9")
        run.completed_steps.append(_record("move_clip", ToolExecutionResult(success=True)))
        assert detect_immediate_terminal_failure(run, EMPTY_TIMELINE) is None


class TestRepeatedTerminalFailure:
    """The same failure twice in a row."""

    def test_same_failure_twice(self):
        guidance = detect_repeated_terminal_failure(
            _failed_run("split_clip", "Clip not found: 'c1'"),
            _failed_run("split_clip", "Clip not found: 'c2'"),
        )
        assert guidance.failure_signature == "split_clip:clip not found: <value>"
        assert "target clip could not be resolved" in guidance.reason

    def test_different_failures(self):
        assert detect_repeated_terminal_failure(
            _failed_run("split_clip", "Clip not found: 'c1'"),
            _failed_run("trim_clip", "Source out 40s exceeds asset length"),
        ) is None

    def test_transient_failures_ignored(self):
        assert detect_repeated_terminal_failure(
            _failed_run("split_clip", "Request timed out"),
            _failed_run("split_clip", "Request timed out"),
        ) is None
