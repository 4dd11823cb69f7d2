"""
Plan runner: the caller-side loop that drives a plan through the adapter.

Executes steps in plan order, skipping (as failed) any step whose
dependencies did not complete, feeding earlier results into step value
references, consulting the doom-loop detector before each call, and
applying a per-step timeout with retries limited to transient failures.

When the context carries an ``expected_state_version`` it is advanced after
each successful step, so the plan's own edits never trip the conflict check.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from director.config import settings
from director.core.doom_loop import DoomLoopDetector
from director.core.errors import DependencyError, DoomLoopError, StepTimeoutError
from director.core.executor.adapter import ToolRegistryAdapter
from director.core.executor.failures import is_retryable_tool_failure
from director.core.executor.models import PlanRunResult, StepExecutionRecord
from director.core.plan_schemas.models import ExecutionContext, Plan, PlanStep, ToolExecutionResult
from director.core.tracing import get_trace_context, log_plan_execution, trace_span

logger = logging.getLogger(__name__)


class PlanRunner:
    """
    Runs a validated plan step by step.

    Usage:
        runner = PlanRunner(adapter)
        result = await runner.run(match.plan, ExecutionContext(sequence_id="seq-1"))
        if not result.success:
            for record in result.failed_steps:
                print(record.step_id, record.result.error)
    """

    def __init__(
        self,
        tool_executor: ToolRegistryAdapter,
        step_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        stop_on_error: Optional[bool] = None,
        doom_loop_threshold: Optional[int] = None,
    ):
        self._executor = tool_executor
        self.step_timeout = step_timeout if step_timeout is not None else settings.step_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.step_max_retries
        self.stop_on_error = stop_on_error if stop_on_error is not None else settings.stop_on_error
        self._doom_loop = DoomLoopDetector(
            doom_loop_threshold if doom_loop_threshold is not None else settings.doom_loop_threshold
        )
        self._aborted = False

    def abort(self) -> None:
        """Stop before the next step (or retry) starts."""
        self._aborted = True

    async def run(self, plan: Plan, context: ExecutionContext) -> PlanRunResult:
        """
        Execute ``plan`` in order.

        Raises:
            DependencyError: a ``depends_on`` id is not in the plan.
            DoomLoopError: the same call repeated ``threshold`` times.
            StepTimeoutError: a step exceeded ``step_timeout``.
        """
        self._aborted = False
        self._doom_loop.reset()
        start = time.perf_counter()
        trace = get_trace_context()
        result = PlanRunResult(success=False)
        results_by_step: dict[str, ToolExecutionResult] = {}

        with trace_span(trace, "plan_run", {"goal": plan.goal, "steps": len(plan.steps)}):
            self._validate_dependencies(plan)
            completed: set[str] = set()

            for step in plan.steps:
                if self._aborted:
                    break

                missing = [d for d in step.depends_on or () if d not in completed]
                if missing:
                    skipped = ToolExecutionResult.failure(
                        f"Skipped: dependencies did not complete ({', '.join(missing)})"
                    )
                    now = time.perf_counter()
                    result.failed_steps.append(StepExecutionRecord(
                        step_id=step.id, tool=step.tool, args=dict(step.args),
                        result=skipped, start_time=now, end_time=now,
                    ))
                    results_by_step[step.id] = skipped
                    continue

                if self._doom_loop.check(step.tool, step.args):
                    raise DoomLoopError(step.tool, self._doom_loop.threshold)

                record = await self._execute_step(step, context, results_by_step)
                results_by_step[step.id] = record.result
                if record.result.success:
                    result.completed_steps.append(record)
                    completed.add(step.id)
                    context = self._advance_expected_version(context)
                else:
                    result.failed_steps.append(record)
                    logger.warning(f"⚠️ Step {step.id} ({step.tool}) failed: {record.result.error}")
                    if self.stop_on_error:
                        break

        result.aborted = self._aborted
        result.success = not result.failed_steps and not self._aborted
        result.total_duration = (time.perf_counter() - start) * 1000
        log_plan_execution(
            trace.trace_id,
            total_steps=len(plan.steps),
            successful_steps=len(result.completed_steps),
            failed_steps=len(result.failed_steps),
            duration_ms=result.total_duration,
        )
        return result

    def _advance_expected_version(self, context: ExecutionContext) -> ExecutionContext:
        """The plan's own writes are not a conflict; only writes from elsewhere are."""
        if context.expected_state_version is None:
            return context
        return context.model_copy(update={"expected_state_version": self._executor.state_version})

    @staticmethod
    def _validate_dependencies(plan: Plan) -> None:
        ids = set(plan.step_ids)
        for step in plan.steps:
            unknown = [d for d in step.depends_on or () if d not in ids]
            if unknown:
                raise DependencyError(step.id, unknown)

    async def _execute_step(
        self,
        step: PlanStep,
        context: ExecutionContext,
        results_by_step: dict[str, ToolExecutionResult],
    ) -> StepExecutionRecord:
        start = time.perf_counter()
        retry_count = 0
        result: Optional[ToolExecutionResult] = None

        while True:
            if self._aborted:
                result = ToolExecutionResult.failure("Execution aborted")
                break
            try:
                result = await asyncio.wait_for(
                    self._executor.execute(step.tool, step.args, context, step_results=results_by_step),
                    timeout=self.step_timeout,
                )
            except asyncio.TimeoutError:
                self._aborted = True
                raise StepTimeoutError(step.tool, self.step_timeout) from None

            if result.success or retry_count >= self.max_retries:
                break
            if not is_retryable_tool_failure(result.error):
                break
            retry_count += 1
            logger.info(f"🔄 Retrying {step.id} ({retry_count}/{self.max_retries}): {result.error}")

        return StepExecutionRecord(
            step_id=step.id,
            tool=step.tool,
            args=dict(step.args),
            result=result,
            start_time=start,
            end_time=time.perf_counter(),
            retry_count=retry_count,
        )
