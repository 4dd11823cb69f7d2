"""JSON schema validation for tool call arguments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from director.core.tool_validation.models import ValidationError

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    "string": str,
    "integer": (int, float),
    "number": (int, float),
    "boolean": bool,
    "array": (list, tuple),
    "object": dict,
}


def _validate_type(field: str, value: object, prop: Mapping[str, Any]) -> ValidationError | None:
    """Validate a value against a JSON-schema property (type, enum, numeric range)."""
    expected_type = prop.get("type")
    if isinstance(expected_type, list):
        if value is None and "null" in expected_type:
            return None
        expected_type = next((t for t in expected_type if t != "null"), None)

    if isinstance(expected_type, str):
        expected = _TYPE_MAP.get(expected_type)
        # bool is an int subclass; only "boolean" accepts it
        is_bool = isinstance(value, bool)
        mismatch = (
            expected is not None
            and (not isinstance(value, expected) or (is_bool and expected_type != "boolean"))
        )
        if not mismatch and expected_type == "integer" and isinstance(value, float):
            mismatch = not value.is_integer()
        if mismatch:
            return ValidationError(
                field=field,
                message=f"Expected {expected_type}, got {type(value).__name__}",
                code="TYPE_MISMATCH",
            )

    enum = prop.get("enum")
    if isinstance(enum, list) and value not in enum:
        return ValidationError(
            field=field,
            message=f"Must be one of: {', '.join(str(v) for v in enum)}",
            code="INVALID_ENUM",
        )

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        minimum, maximum = prop.get("minimum"), prop.get("maximum")
        if minimum is not None and value < minimum:
            return ValidationError(field=field, message=f"Must be >= {minimum}", code="OUT_OF_RANGE")
        if maximum is not None and value > maximum:
            return ValidationError(field=field, message=f"Must be <= {maximum}", code="OUT_OF_RANGE")
    return None


def _validate_schema(params: Mapping[str, Any], parameters: Mapping[str, Any]) -> list[ValidationError]:
    """Validate params against a tool's parameter schema (required fields + types).

    ``None`` counts as absent: a required field holding ``None`` is missing,
    an optional one is skipped.
    """
    errors: list[ValidationError] = []

    required_val = parameters.get("required")
    required = required_val if isinstance(required_val, list) else []
    properties_val = parameters.get("properties")
    properties = properties_val if isinstance(properties_val, dict) else {}

    for field_name in required:
        if params.get(field_name) is None:
            errors.append(ValidationError(
                field=field_name,
                message=f"Required field '{field_name}' is missing",
                code="MISSING_REQUIRED",
            ))

    for field_name, value in params.items():
        if value is None:
            continue
        prop = properties.get(field_name)
        if not isinstance(prop, dict):
            continue
        type_error = _validate_type(field_name, value, prop)
        if type_error:
            errors.append(type_error)

    return errors
