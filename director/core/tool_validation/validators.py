"""Main validation entrypoint: validate_tool_args."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from director.core.references import normalize_args_for_validation
from director.core.tool_validation.models import ValidationError, ValidationResult
from director.core.tool_validation.schema import _validate_schema

if TYPE_CHECKING:
    from director.core.tools.metadata import ToolDefinition


def validate_tool_args(
    tool: "ToolDefinition | None",
    args: Mapping[str, Any],
    tool_name: str | None = None,
) -> ValidationResult:
    """
    Validate arguments against a tool's declared schema.

    Step value references are swapped for schema-safe placeholders first,
    so a step whose inputs come from an earlier step still validates.
    """
    name = tool.name if tool else (tool_name or "")
    if tool is None:
        return ValidationResult(
            valid=False,
            tool_name=name,
            errors=[ValidationError(
                field="tool_name",
                message=f"Tool '{name}' not found",
                code="TOOL_NOT_FOUND",
            )],
        )

    normalized = normalize_args_for_validation(dict(args), tool.properties)
    errors = _validate_schema(normalized, tool.parameters)
    return ValidationResult(valid=not errors, tool_name=name, errors=errors)
