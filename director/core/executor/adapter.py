"""
Tool execution adapter: the single gateway from plan steps to side effects.

For each call, in order:
1. Unknown tool → failure, nothing runs.
2. Step value references in the arguments are resolved from prior results.
3. Optimistic concurrency: a stale ``expected_state_version`` refuses any
   tool that is not read-only (``REV_CONFLICT``).
4. Entity preconditions: placeholder or unknown ids refuse mutating tools
   (``PRECONDITION_FAILED``).
5. Selection and playhead are forwarded only when the caller's sequence is
   the active one.
6. The handler runs; its exceptions become failure results.

Nothing is raised out of ``execute`` / ``execute_batch`` for these cases.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Any, Optional, Protocol

from director.contracts.json_types import LegacyContextDict
from director.core.executor.models import (
    BatchEntry,
    BatchExecutionRequest,
    BatchExecutionResult,
    BatchMode,
)
from director.core.plan_schemas.models import (
    ExecutionContext,
    RiskLevel,
    SideEffect,
    ToolExecutionResult,
)
from director.core.references import (
    build_result_resolver,
    collect_step_value_references,
    resolve_step_value_references,
)
from director.core.state_store import ProjectView
from director.core.tool_validation import (
    PRECONDITION_FAILED,
    ValidationResult,
    check_entity_preconditions,
    validate_tool_args,
)
from director.core.tools.metadata import ToolCategory, ToolDefinition, ToolInfo, ToolSchemaInfo
from director.core.tools.registry import ToolRegistry
from director.core.tracing import get_trace_id, log_guard_rejection, log_tool_call

logger = logging.getLogger(__name__)

REV_CONFLICT = "REV_CONFLICT"

_SEQUENCE_CATEGORIES = frozenset({
    ToolCategory.TIMELINE,
    ToolCategory.CLIP,
    ToolCategory.TRACK,
    ToolCategory.EFFECT,
    ToolCategory.TRANSITION,
    ToolCategory.AUDIO,
})


class ProjectStateAccessor(Protocol):
    """Anything that can hand out an immutable project view."""

    def view(self) -> ProjectView: ...


class _UnloadedProject:
    def view(self) -> ProjectView:
        return ProjectView(is_loaded=False, project_id=None, state_version=0, active_sequence_id=None)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class ToolRegistryAdapter:
    """
    Executes tools from a ``ToolRegistry`` against live project state.

    Usage:
        adapter = ToolRegistryAdapter(registry, state=store)
        result = await adapter.execute(
            "split_clip",
            {"sequenceId": "seq-1", "trackId": "v1", "clipId": "c1", "splitTime": 5.0},
            ExecutionContext(project_id="p1", sequence_id="seq-1", expected_state_version=store.version),
        )
    """

    def __init__(self, registry: ToolRegistry, state: Optional[ProjectStateAccessor] = None):
        self._registry = registry
        self._state: ProjectStateAccessor = state or _UnloadedProject()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def state_version(self) -> int:
        """Live version of the project this adapter guards."""
        return self._state.view().state_version

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        tool_name: str,
        args: Mapping[str, Any],
        context: ExecutionContext,
        step_results: Optional[Mapping[str, ToolExecutionResult]] = None,
    ) -> ToolExecutionResult:
        """Execute one tool call. Never raises for expected failure categories."""
        start = time.perf_counter()
        trace_id = get_trace_id()

        tool = self._registry.get(tool_name)
        if tool is None:
            return self._fail(trace_id, tool_name, args, f"Tool '{tool_name}' not found", start)

        call_args = dict(args)
        if collect_step_value_references(call_args):
            resolution = resolve_step_value_references(call_args, build_result_resolver(step_results or {}))
            if not resolution.ok:
                return self._fail(
                    trace_id, tool_name, args,
                    f"Unresolved step reference: {resolution.error_message}", start,
                )
            call_args = resolution.value

        view = self._state.view()

        expected = context.expected_state_version
        if expected is not None and expected != view.state_version and not tool.is_read_only:
            detail = (
                f"{REV_CONFLICT}: expected state version {expected} but project is at "
                f"{view.state_version}; refresh context before running '{tool_name}'"
            )
            log_guard_rejection(trace_id, tool_name, REV_CONFLICT, detail)
            return self._fail(trace_id, tool_name, args, detail, start)

        if not tool.is_read_only:
            problems = check_entity_preconditions(call_args, view)
            if problems:
                detail = f"{PRECONDITION_FAILED}: " + "; ".join(str(p) for p in problems)
                log_guard_rejection(trace_id, tool_name, PRECONDITION_FAILED, detail)
                return self._fail(trace_id, tool_name, args, detail, start)

        handler_context = self._build_handler_context(context, view)
        outcome = await self._registry.execute(tool_name, call_args, handler_context)
        duration = _elapsed_ms(start)

        if not outcome.success:
            return self._fail(trace_id, tool_name, args, outcome.error or "Unknown error", start)

        log_tool_call(trace_id, tool_name, call_args, success=True, duration_ms=duration)
        return ToolExecutionResult(
            success=True,
            data=outcome.result,
            duration=duration,
            side_effects=self._infer_side_effects(tool, context),
            undoable=tool.is_undoable,
        )

    async def execute_batch(
        self,
        request: BatchExecutionRequest,
        context: ExecutionContext,
    ) -> BatchExecutionResult:
        """Run several calls sequentially or in parallel and aggregate the outcome."""
        start = time.perf_counter()
        entries: list[BatchEntry] = []

        if request.mode == BatchMode.PARALLEL:
            settled = await asyncio.gather(
                *(self.execute(call.name, call.args, context) for call in request.tools),
                return_exceptions=True,
            )
            for call, outcome in zip(request.tools, settled):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.error(f"❌ Parallel call {call.name} raised: {outcome}")
                    outcome = ToolExecutionResult.failure(str(outcome) or type(outcome).__name__)
                entries.append(BatchEntry(tool=call.name, result=outcome))
        else:
            for call in request.tools:
                result = await self.execute(call.name, call.args, context)
                entries.append(BatchEntry(tool=call.name, result=result))
                if not result.success and request.stop_on_error:
                    logger.info(f"⏹️ Batch stopped after {call.name} failed ({len(entries)}/{len(request.tools)})")
                    break

        success_count = sum(1 for e in entries if e.result.success)
        failure_count = len(entries) - success_count
        return BatchExecutionResult(
            success=failure_count == 0,
            results=entries,
            total_duration=_elapsed_ms(start),
            success_count=success_count,
            failure_count=failure_count,
        )

    # =========================================================================
    # Introspection (pure queries)
    # =========================================================================

    def get_available_tools(self, category: Optional[ToolCategory | str] = None) -> list[ToolInfo]:
        tools = self._registry.list_by_category(category) if category else self._registry.list_all()
        return [ToolInfo.from_definition(t) for t in tools]

    def get_tool_definition(self, name: str) -> Optional[ToolSchemaInfo]:
        tool = self._registry.get(name)
        return ToolSchemaInfo.from_definition(tool) if tool else None

    def validate_args(self, tool_name: str, args: Mapping[str, Any]) -> ValidationResult:
        return validate_tool_args(self._registry.get(tool_name), args, tool_name=tool_name)

    def has_tool(self, name: str) -> bool:
        return self._registry.has(name)

    def get_tools_by_category(self) -> dict[str, list[ToolInfo]]:
        return {
            category.value: [ToolInfo.from_definition(t) for t in self._registry.list_by_category(category)]
            for category in self._registry.list_categories()
        }

    def get_tools_by_risk(self, max_risk: RiskLevel | str) -> list[ToolInfo]:
        ceiling = RiskLevel(max_risk)
        return [info for info in self.get_available_tools() if info.risk_level.at_most(ceiling)]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _fail(
        self,
        trace_id: str,
        tool_name: str,
        args: Mapping[str, Any],
        error: str,
        start: float,
    ) -> ToolExecutionResult:
        duration = _elapsed_ms(start)
        log_tool_call(trace_id, tool_name, dict(args), success=False, error=error, duration_ms=duration)
        return ToolExecutionResult.failure(error, duration=duration)

    @staticmethod
    def _build_handler_context(context: ExecutionContext, view: ProjectView) -> LegacyContextDict:
        """Selection and playhead only travel with the active sequence."""
        same_sequence = (
            context.sequence_id is not None
            and context.sequence_id == view.active_sequence_id
        )
        return LegacyContextDict(
            projectId=context.project_id,
            sequenceId=context.sequence_id,
            selectedClips=list(view.selected_clips) if same_sequence else [],
            selectedTracks=list(view.selected_tracks) if same_sequence else [],
            playheadPosition=view.playhead_position if same_sequence else 0.0,
        )

    @staticmethod
    def _infer_side_effects(tool: ToolDefinition, context: ExecutionContext) -> Optional[tuple[SideEffect, ...]]:
        if tool.is_read_only:
            return None
        if tool.category in _SEQUENCE_CATEGORIES:
            return (SideEffect(type="modified", entity="sequence", entity_id=context.sequence_id or context.project_id),)
        if tool.category == ToolCategory.EXPORT:
            return (SideEffect(type="created", entity="export", entity_id=context.session_id),)
        if tool.category == ToolCategory.PROJECT:
            return (SideEffect(type="modified", entity="project", entity_id=context.project_id),)
        if tool.category == ToolCategory.GENERATION:
            return (SideEffect(type="created", entity="asset", entity_id=None),)
        return None
