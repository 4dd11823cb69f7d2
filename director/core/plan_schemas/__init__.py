"""
Plan data model.

Shared vocabulary for every other component: context snapshot, thought,
plan, step, tool result, execution context. All models accept and emit
camelCase on the wire (``model_dump(by_alias=True)``).
"""
from __future__ import annotations

from director.core.plan_schemas.models import (
    RISK_ORDER,
    AssetSummary,
    ContextSnapshot,
    ExecutionContext,
    Plan,
    PlanStep,
    PlanValidationResult,
    RiskLevel,
    SideEffect,
    Thought,
    ToolExecutionResult,
    TrackSummary,
    risk_rank,
)
from director.core.plan_schemas.validation import validate_plan_json

__all__ = [
    "RISK_ORDER",
    "AssetSummary",
    "ContextSnapshot",
    "ExecutionContext",
    "Plan",
    "PlanStep",
    "PlanValidationResult",
    "RiskLevel",
    "SideEffect",
    "Thought",
    "ToolExecutionResult",
    "TrackSummary",
    "risk_rank",
    "validate_plan_json",
]
