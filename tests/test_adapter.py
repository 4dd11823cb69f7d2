"""
Tests for the tool execution adapter.

The adapter is the only path from plan steps to side effects. It must:
1. Refuse mutating calls on a stale state version (REV_CONFLICT)
2. Refuse placeholder or unknown entity ids (PRECONDITION_FAILED)
3. Resolve step value references before anything else looks at the args
4. Forward selection and playhead only for the active sequence
5. Never raise for expected failures
"""
from unittest.mock import AsyncMock

import pytest

from director.core.executor import (
    REV_CONFLICT,
    BatchExecutionRequest,
    BatchMode,
    BatchToolCall,
    ToolRegistryAdapter,
)
from director.core.plan_schemas.models import ExecutionContext, RiskLevel, SideEffect, ToolExecutionResult
from director.core.references import make_reference
from director.core.tools import HandlerResult, ToolCategory, ToolDefinition, ToolRegistry


def _spy(result=None):
    return AsyncMock(return_value=HandlerResult(success=True, result=result if result is not None else {"ok": True}))


@pytest.fixture
def spies():
    return {"update_clip": _spy(), "get_clip_info": _spy({"clipId": "c1"}), "lookup_job": _spy()}


@pytest.fixture
def spy_adapter(store, spies):
    """Adapter over spy tools: one mutating clip tool, two read-only/analysis ones."""
    registry = ToolRegistry()
    registry.register(ToolDefinition(
        name="update_clip",
        description="Mutates a clip",
        category=ToolCategory.CLIP,
        handler=spies["update_clip"],
    ))
    registry.register(ToolDefinition(
        name="get_clip_info",
        description="Reads a clip",
        category=ToolCategory.ANALYSIS,
        handler=spies["get_clip_info"],
    ))
    registry.register(ToolDefinition(
        name="lookup_job",
        description="Mutating by name, takes a job id",
        category=ToolCategory.UTILITY,
        handler=spies["lookup_job"],
    ))
    return ToolRegistryAdapter(registry, state=store)


class TestConcurrencyGuard:
    """Optimistic concurrency on state_version."""

    async def test_stale_version_refuses_mutating_tool(self, store, spy_adapter, spies):
        context = ExecutionContext(sequence_id="seq-1", expected_state_version=store.version - 1)

        result = await spy_adapter.execute("update_clip", {"clipId": "c1"}, context)

        assert not result.success
        assert result.error.startswith(REV_CONFLICT)
        assert f"project is at {store.version}" in result.error
        spies["update_clip"].assert_not_called()

    async def test_stale_version_allows_read_only_tool(self, store, spy_adapter, spies):
        context = ExecutionContext(sequence_id="seq-1", expected_state_version=store.version - 1)

        result = await spy_adapter.execute("get_clip_info", {"clipId": "c1"}, context)

        assert result.success
        spies["get_clip_info"].assert_awaited_once()

    async def test_current_version_runs(self, store, spy_adapter, spies):
        context = ExecutionContext(sequence_id="seq-1", expected_state_version=store.version)

        result = await spy_adapter.execute("update_clip", {"clipId": "c1"}, context)

        assert result.success
        spies["update_clip"].assert_awaited_once()

    async def test_no_expected_version_skips_check(self, spy_adapter):
        result = await spy_adapter.execute("update_clip", {"clipId": "c1"}, ExecutionContext(sequence_id="seq-1"))
        assert result.success

    async def test_state_version_property(self, store, spy_adapter):
        assert spy_adapter.state_version == store.version
        store.set_playhead(9.0)
        assert spy_adapter.state_version == store.version


class TestEntityPreconditions:
    """Placeholder and unknown ids never reach the handler."""

    async def test_placeholder_refused(self, spy_adapter, spies):
        result = await spy_adapter.execute("update_clip", {"clipId": "<clip_id>"}, ExecutionContext())

        assert not result.success
        assert result.error.startswith("PRECONDITION_FAILED")
        spies["update_clip"].assert_not_called()

    async def test_unknown_id_refused(self, spy_adapter, spies):
        result = await spy_adapter.execute("update_clip", {"trackId": "v9"}, ExecutionContext())

        assert not result.success
        assert "does not exist" in result.error
        spies["update_clip"].assert_not_called()

    async def test_read_only_tool_not_checked(self, spy_adapter):
        result = await spy_adapter.execute("get_clip_info", {"clipId": "c404"}, ExecutionContext())
        assert result.success

    async def test_unloaded_project_skips_checks(self, spies):
        registry = ToolRegistry()
        registry.register(ToolDefinition(
            name="update_clip", description="", category=ToolCategory.CLIP, handler=spies["update_clip"],
        ))
        adapter = ToolRegistryAdapter(registry)

        result = await adapter.execute("update_clip", {"clipId": "c404"}, ExecutionContext(expected_state_version=0))

        assert result.success


class TestReferences:
    """Step value references are resolved before the guards and the handler."""

    async def test_resolved_args_reach_handler(self, spy_adapter, spies):
        prior = {"s1": ToolExecutionResult(success=True, data={"jobId": "job-1"})}

        result = await spy_adapter.execute(
            "lookup_job",
            {"jobId": make_reference("s1", "data.jobId")},
            ExecutionContext(),
            step_results=prior,
        )

        assert result.success
        args, _ = spies["lookup_job"].call_args.args
        assert args == {"jobId": "job-1"}

    async def test_unresolved_reference_fails(self, spy_adapter, spies):
        result = await spy_adapter.execute(
            "lookup_job", {"jobId": make_reference("s1", "data.jobId")}, ExecutionContext(),
        )

        assert not result.success
        assert result.error.startswith("Unresolved step reference")
        spies["lookup_job"].assert_not_called()

    async def test_resolved_ids_are_precondition_checked(self, spy_adapter, spies):
        prior = {"s1": ToolExecutionResult(success=True, data={"clipId": "c404"})}

        result = await spy_adapter.execute(
            "update_clip", {"clipId": make_reference("s1", "data.clipId")}, ExecutionContext(), step_results=prior,
        )

        assert not result.success
        assert "PRECONDITION_FAILED" in result.error


class TestHandlerContext:
    """Selection and playhead travel only with the active sequence."""

    async def test_active_sequence_gets_selection(self, spy_adapter, spies):
        await spy_adapter.execute("get_clip_info", {}, ExecutionContext(project_id="proj-1", sequence_id="seq-1"))

        _, context = spies["get_clip_info"].call_args.args
        assert context == {
            "projectId": "proj-1",
            "sequenceId": "seq-1",
            "selectedClips": ["c1"],
            "selectedTracks": ["v1"],
            "playheadPosition": 4.0,
        }

    async def test_other_sequence_gets_nothing(self, spy_adapter, spies):
        await spy_adapter.execute("get_clip_info", {}, ExecutionContext(sequence_id="seq-other"))

        _, context = spies["get_clip_info"].call_args.args
        assert context["selectedClips"] == []
        assert context["selectedTracks"] == []
        assert context["playheadPosition"] == 0.0


class TestResults:
    """Result shape and failure handling."""

    async def test_unknown_tool(self, spy_adapter):
        result = await spy_adapter.execute("nope", {}, ExecutionContext())

        assert not result.success
        assert result.error == "Tool 'nope' not found"

    async def test_handler_exception_is_a_failure(self, store):
        registry = ToolRegistry()
        registry.register(ToolDefinition(
            name="get_boom", description="", category=ToolCategory.ANALYSIS,
            handler=AsyncMock(side_effect=ValueError("boom")),
        ))
        result = await ToolRegistryAdapter(registry, state=store).execute("get_boom", {}, ExecutionContext())

        assert not result.success
        assert result.error == "boom"

    async def test_mutating_success_has_side_effects(self, spy_adapter):
        result = await spy_adapter.execute("update_clip", {"clipId": "c1"}, ExecutionContext(sequence_id="seq-1"))

        assert result.undoable
        assert result.side_effects == (SideEffect(type="modified", entity="sequence", entity_id="seq-1"),)
        assert result.duration >= 0

    async def test_read_only_success_has_no_side_effects(self, spy_adapter):
        result = await spy_adapter.execute("get_clip_info", {}, ExecutionContext())

        assert result.data == {"clipId": "c1"}
        assert result.side_effects is None
        assert not result.undoable

    async def test_real_split(self, adapter, store, exec_context):
        result = await adapter.execute(
            "split_clip",
            {"sequenceId": "seq-1", "trackId": "v1", "clipId": "c1", "splitTime": 5.0},
            exec_context,
        )

        assert result.success
        assert result.data["clipIds"][0] == "c1"
        assert len(store.view().tracks["v1"].clip_ids) == 2


class TestBatch:
    """Sequential and parallel batches."""

    def _request(self, mode, stop_on_error=False):
        return BatchExecutionRequest(
            tools=[
                BatchToolCall(name="get_clip_info", args={}),
                BatchToolCall(name="missing_tool", args={}),
                BatchToolCall(name="lookup_job", args={"jobId": "job-1"}),
            ],
            mode=mode,
            stop_on_error=stop_on_error,
        )

    async def test_sequential_stops_on_error(self, spy_adapter, spies):
        result = await spy_adapter.execute_batch(self._request(BatchMode.SEQUENTIAL, stop_on_error=True), ExecutionContext())

        assert not result.success
        assert [e.tool for e in result.results] == ["get_clip_info", "missing_tool"]
        assert result.success_count == 1
        assert result.failure_count == 1
        spies["lookup_job"].assert_not_called()

    async def test_first_failure_stops_sequential_batch(self, spy_adapter, spies):
        request = BatchExecutionRequest(
            tools=[
                BatchToolCall(name="missing_tool", args={}),
                BatchToolCall(name="get_clip_info", args={}),
            ],
            mode=BatchMode.SEQUENTIAL,
            stop_on_error=True,
        )

        result = await spy_adapter.execute_batch(request, ExecutionContext())

        assert len(result.results) == 1
        assert result.success is False
        spies["get_clip_info"].assert_not_called()

    async def test_failed_edit_blocks_the_next_edit(self, adapter, store, exec_context):
        request = BatchExecutionRequest(
            tools=[
                BatchToolCall(
                    name="split_clip",
                    args={"sequenceId": "seq-1", "trackId": "v1", "clipId": "nope", "splitTime": 5.0},
                ),
                BatchToolCall(
                    name="move_clip",
                    args={"sequenceId": "seq-1", "trackId": "v1", "clipId": "c1", "newTimelineIn": 8.0},
                ),
            ],
            mode=BatchMode.SEQUENTIAL,
            stop_on_error=True,
        )

        result = await adapter.execute_batch(request, exec_context)

        assert len(result.results) == 1
        assert result.success is False
        assert "PRECONDITION_FAILED" in result.results[0].result.error
        assert store.view().clips["c1"].timeline_in == 0.0

    async def test_sequential_continues(self, spy_adapter):
        result = await spy_adapter.execute_batch(self._request(BatchMode.SEQUENTIAL), ExecutionContext())

        assert len(result.results) == 3
        assert result.success_count == 2
        assert result.failure_count == 1

    async def test_parallel_settles_everything_in_order(self, spy_adapter):
        result = await spy_adapter.execute_batch(self._request(BatchMode.PARALLEL, stop_on_error=True), ExecutionContext())

        assert [e.tool for e in result.results] == ["get_clip_info", "missing_tool", "lookup_job"]
        assert [e.result.success for e in result.results] == [True, False, True]

    async def test_all_succeed(self, spy_adapter):
        request = BatchExecutionRequest(tools=[BatchToolCall(name="get_clip_info")])
        result = await spy_adapter.execute_batch(request, ExecutionContext())

        assert result.success
        assert result.total_duration >= 0


class TestIntrospection:
    """Pure queries over the registry."""

    def test_available_tools(self, adapter):
        assert len(adapter.get_available_tools()) == 10
        assert [t.name for t in adapter.get_available_tools("clip")] == [
            "split_clip", "trim_clip", "move_clip", "insert_clip",
        ]

    def test_tool_definition(self, adapter):
        info = adapter.get_tool_definition("split_clip")

        assert info.required == ("sequenceId", "trackId", "clipId", "splitTime")
        assert info.risk_level == RiskLevel.MEDIUM
        assert adapter.get_tool_definition("nope") is None

    def test_by_category(self, adapter):
        grouped = adapter.get_tools_by_category()
        assert list(grouped) == ["clip", "timeline", "analysis", "audio", "generation"]

    def test_by_risk(self, adapter):
        assert [t.name for t in adapter.get_tools_by_risk("low")] == ["get_unused_assets", "adjust_volume"]
        assert len(adapter.get_tools_by_risk(RiskLevel.HIGH)) == 10

    def test_validate_args(self, adapter):
        assert not adapter.validate_args("split_clip", {}).valid
        assert adapter.validate_args("get_unused_assets", {"kind": "audio"}).valid
        assert adapter.has_tool("trim_clip")
        assert not adapter.has_tool("nope")
