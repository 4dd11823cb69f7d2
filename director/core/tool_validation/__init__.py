"""
Tool argument validation.

Validates tool calls before execution:
1. JSON schema validation (required params, types, enums)
2. Entity existence / placeholder preconditions against the live project

Public API:
    validate_tool_args(tool, args) -> ValidationResult
    check_entity_preconditions(args, view) -> list[ValidationError]
"""

from director.core.tool_validation.entities import (
    ENTITY_LIST_FIELDS,
    ENTITY_REF_FIELDS,
    PRECONDITION_FAILED,
    check_entity_preconditions,
    is_placeholder_id,
)
from director.core.tool_validation.models import ValidationError, ValidationResult
from director.core.tool_validation.schema import _validate_schema, _validate_type
from director.core.tool_validation.validators import validate_tool_args

__all__ = [
    "ENTITY_LIST_FIELDS",
    "ENTITY_REF_FIELDS",
    "PRECONDITION_FAILED",
    "ValidationError",
    "ValidationResult",
    "_validate_schema",
    "_validate_type",
    "check_entity_preconditions",
    "is_placeholder_id",
    "validate_tool_args",
]
