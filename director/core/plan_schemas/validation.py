"""Plan validation from raw dicts (CLI input, stored plans, external planners)."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from director.core.plan_schemas.models import Plan, PlanValidationResult, RiskLevel

logger = logging.getLogger(__name__)


def validate_plan_json(raw_json: dict[str, Any]) -> PlanValidationResult:
    """Validate a raw JSON dict (camelCase or snake_case keys) as a Plan."""
    warnings: list[str] = []

    try:
        plan = Plan.model_validate(raw_json)
    except ValidationError as e:
        errors: list[str] = []
        for err in e.errors():
            loc = " → ".join(str(x) for x in err.get("loc", []))
            msg = err.get("msg", "Unknown error")
            errors.append(f"{loc}: {msg}" if loc else msg)
        logger.debug(f"Plan rejected with {len(errors)} error(s)")
        return PlanValidationResult(valid=False, plan=None, errors=errors, warnings=warnings)

    if not plan.steps:
        warnings.append("Plan is empty - no steps to execute")
    if plan.max_risk().rank >= RiskLevel.HIGH.rank and not plan.requires_approval:
        warnings.append("Plan contains high-risk steps but does not require approval")
    total = sum(s.estimated_duration for s in plan.steps)
    if plan.steps and abs(total - plan.estimated_total_duration) > 1e-6:
        warnings.append(
            f"estimatedTotalDuration {plan.estimated_total_duration:g} does not match step sum {total:g}"
        )

    return PlanValidationResult(valid=True, plan=plan, errors=[], warnings=warnings)
