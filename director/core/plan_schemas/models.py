"""Pydantic models for plans, context snapshots, and tool results."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator

from director.core.references.resolution import collect_step_value_references
from director.models.base import CamelModel, FrozenCamelModel

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    """Ordered risk tiers: low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return RISK_ORDER.index(self)

    def at_most(self, ceiling: "RiskLevel | str") -> bool:
        return self.rank <= RiskLevel(ceiling).rank


RISK_ORDER: tuple[RiskLevel, ...] = (
    RiskLevel.LOW,
    RiskLevel.MEDIUM,
    RiskLevel.HIGH,
    RiskLevel.CRITICAL,
)


def risk_rank(level: RiskLevel | str) -> int:
    """Position of ``level`` on the fixed ordering (0 = low)."""
    return RiskLevel(level).rank


# =============================================================================
# Context snapshot
# =============================================================================

class TrackSummary(FrozenCamelModel):
    """A track as seen at plan time."""
    id: str
    name: str = ""
    type: str = Field(..., description="video, audio, caption, ...")
    clip_count: int = Field(default=0, ge=0)


class AssetSummary(FrozenCamelModel):
    """A project asset as seen at plan time."""
    id: str
    name: str = ""
    type: str = Field(..., description="video, audio, image, ...")
    duration: Optional[float] = Field(default=None, ge=0)


class ContextSnapshot(FrozenCamelModel):
    """
    Immutable read of editing state at plan time.

    Produced from the project state store; consumed by both planners and
    the tool execution adapter. The core never mutates it.
    """
    sequence_id: Optional[str] = None
    playhead_position: float = 0.0
    timeline_duration: float = 0.0
    available_tracks: tuple[TrackSummary, ...] = ()
    available_assets: tuple[AssetSummary, ...] = ()
    selected_clips: tuple[str, ...] = ()
    selected_tracks: tuple[str, ...] = ()

    def track(self, track_id: str) -> Optional[TrackSummary]:
        return next((t for t in self.available_tracks if t.id == track_id), None)


# =============================================================================
# Thought and plan
# =============================================================================

class Thought(FrozenCamelModel):
    """The planner's interpretation of one command."""
    understanding: str
    requirements: tuple[str, ...] = ()
    uncertainties: tuple[str, ...] = ()
    approach: str = ""
    needs_more_info: bool = False


class PlanStep(FrozenCamelModel):
    """
    A single tool invocation inside a plan.

    ``args`` may hold step value references in place of literals.
    ``estimated_duration`` is in milliseconds.
    """
    id: str = Field(..., min_length=1)
    tool: str = Field(..., min_length=1)
    args: dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    risk_level: RiskLevel = RiskLevel.LOW
    estimated_duration: float = Field(default=0, ge=0)
    depends_on: Optional[tuple[str, ...]] = None

    @field_validator("depends_on")
    @classmethod
    def _no_empty_dependency_ids(cls, v: Optional[tuple[str, ...]]) -> Optional[tuple[str, ...]]:
        if v is not None and any(not dep for dep in v):
            raise ValueError("dependency ids must be non-empty")
        return v

    def referenced_step_ids(self) -> list[str]:
        """Step ids this step's arguments read from, in argument order."""
        seen: list[str] = []
        for collected in collect_step_value_references(self.args):
            if collected.reference.from_step not in seen:
                seen.append(collected.reference.from_step)
        return seen


class Plan(FrozenCamelModel):
    """
    An ordered, dependency-consistent list of steps for one command.

    Validation guarantees:
    - step ids are unique
    - every ``depends_on`` id names an earlier step
    - every step value reference names an earlier step
    """
    goal: str
    steps: tuple[PlanStep, ...] = ()
    estimated_total_duration: float = Field(default=0, ge=0)
    requires_approval: bool = False
    rollback_strategy: str = ""

    @model_validator(mode="after")
    def _check_step_ordering(self) -> "Plan":
        earlier: set[str] = set()
        for step in self.steps:
            if step.id in earlier:
                raise ValueError(f"Duplicate step id '{step.id}'")
            for dep in step.depends_on or ():
                if dep not in earlier:
                    raise ValueError(
                        f"Step '{step.id}' depends on '{dep}', which is not an earlier step"
                    )
            for collected in collect_step_value_references(step.args):
                source = collected.reference.from_step
                if source not in earlier:
                    raise ValueError(
                        f"Step '{step.id}' references '{source}' at {collected.location}, "
                        f"which is not an earlier step"
                    )
            earlier.add(step.id)
        return self

    @property
    def step_ids(self) -> list[str]:
        return [s.id for s in self.steps]

    def get_step(self, step_id: str) -> Optional[PlanStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def max_risk(self) -> RiskLevel:
        if not self.steps:
            return RiskLevel.LOW
        return max((s.risk_level for s in self.steps), key=lambda r: r.rank)


# =============================================================================
# Execution
# =============================================================================

class SideEffect(FrozenCamelModel):
    """Entity touched by a successful tool call."""
    type: Literal["created", "modified", "deleted"]
    entity: str
    entity_id: Optional[str] = None


class ToolExecutionResult(FrozenCamelModel):
    """Outcome of one tool call. ``duration`` is wall-clock milliseconds."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    duration: float = 0.0
    side_effects: Optional[tuple[SideEffect, ...]] = None
    undoable: bool = False

    @classmethod
    def failure(cls, error: str, duration: float = 0.0) -> "ToolExecutionResult":
        return cls(success=False, error=error, duration=duration, undoable=False)


class ExecutionContext(CamelModel):
    """
    Per-call execution context, built from current store state.

    ``expected_state_version`` enables the optimistic-concurrency check:
    when set and stale, mutating tools are refused.
    """
    project_id: Optional[str] = None
    sequence_id: Optional[str] = None
    session_id: Optional[str] = None
    expected_state_version: Optional[int] = None


class PlanValidationResult(CamelModel):
    """Result of validating a raw plan dict."""
    valid: bool
    plan: Optional[Plan] = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
