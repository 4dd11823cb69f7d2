"""Batch and plan-run result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import Field

from director.core.plan_schemas.models import ToolExecutionResult
from director.models.base import CamelModel


class BatchMode(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class BatchToolCall(CamelModel):
    """One tool invocation inside a batch."""
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class BatchExecutionRequest(CamelModel):
    """
    Several tool calls executed together.

    Sequential mode preserves order and honours ``stop_on_error``; parallel
    mode launches every call and waits for all of them to settle.
    """
    tools: list[BatchToolCall]
    mode: BatchMode = BatchMode.SEQUENTIAL
    stop_on_error: bool = False


class BatchEntry(CamelModel):
    tool: str
    result: ToolExecutionResult


class BatchExecutionResult(CamelModel):
    success: bool
    results: list[BatchEntry] = Field(default_factory=list)
    total_duration: float = 0.0
    success_count: int = 0
    failure_count: int = 0


@dataclass
class StepExecutionRecord:
    """What happened to one plan step during a run."""
    step_id: str
    tool: str
    args: dict[str, Any]
    result: ToolExecutionResult
    start_time: float
    end_time: float
    retry_count: int = 0

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000


@dataclass
class PlanRunResult:
    """Outcome of running a whole plan."""
    success: bool
    completed_steps: list[StepExecutionRecord] = field(default_factory=list)
    failed_steps: list[StepExecutionRecord] = field(default_factory=list)
    total_duration: float = 0.0
    aborted: bool = False

    @property
    def completed_step_ids(self) -> list[str]:
        return [r.step_id for r in self.completed_steps]

    def results_by_step(self) -> dict[str, ToolExecutionResult]:
        return {r.step_id: r.result for r in self.completed_steps + self.failed_steps}
