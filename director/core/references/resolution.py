"""Walk argument trees: collect, normalize, and resolve step value references."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from director.core.references.models import (
    CollectedReference,
    ReferenceOutcome,
    ReferenceResolution,
    ReferenceResolutionError,
    StepValueReference,
)
from director.core.references.paths import get_value_at_path

if TYPE_CHECKING:
    from director.core.plan_schemas.models import ToolExecutionResult

logger = logging.getLogger(__name__)

ReferenceResolver = Callable[[StepValueReference], ReferenceOutcome]


def _child_location(parent: str, key: str | int) -> str:
    if isinstance(key, int):
        return f"{parent}[{key}]"
    return f"{parent}.{key}" if parent else key


def collect_step_value_references(tree: Any, location: str = "") -> list[CollectedReference]:
    """Every reference in ``tree`` with its dot/bracket location, in walk order."""
    ref = StepValueReference.from_value(tree)
    if ref is not None:
        return [CollectedReference(location=location, reference=ref)]

    found: list[CollectedReference] = []
    if isinstance(tree, dict):
        for key, value in tree.items():
            found.extend(collect_step_value_references(value, _child_location(location, str(key))))
    elif isinstance(tree, (list, tuple)):
        for index, value in enumerate(tree):
            found.extend(collect_step_value_references(value, _child_location(location, index)))
    return found


def _declared_type(schema: Mapping[str, Any] | None) -> str | None:
    if not schema:
        return None
    declared = schema.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    return declared if isinstance(declared, str) else None


def _placeholder_for(ref: StepValueReference, schema: Mapping[str, Any] | None) -> Any:
    match _declared_type(schema):
        case "number" | "integer":
            return 0
        case "boolean":
            return False
        case "array":
            return []
        case "object":
            return {}
        case _:
            return ref.describe()


def _normalize(tree: Any, schema: Mapping[str, Any] | None) -> Any:
    ref = StepValueReference.from_value(tree)
    if ref is not None:
        return _placeholder_for(ref, schema)

    if isinstance(tree, dict):
        props = (schema or {}).get("properties")
        props = props if isinstance(props, dict) else {}
        return {key: _normalize(value, props.get(key)) for key, value in tree.items()}
    if isinstance(tree, (list, tuple)):
        items = (schema or {}).get("items")
        items = items if isinstance(items, dict) else None
        return [_normalize(value, items) for value in tree]
    return tree


def normalize_args_for_validation(
    args: Any,
    properties: Mapping[str, Any] | None = None,
) -> Any:
    """Copy of ``args`` with each reference swapped for a schema-safe placeholder.

    ``properties`` is the tool's JSON-schema ``properties`` map. Numbers and
    integers become ``0``, booleans ``False``, arrays ``[]``, objects ``{}``;
    anything else (including undeclared fields) becomes ``"<ref:step.path>"``.
    """
    if isinstance(args, dict):
        return _normalize(args, {"type": "object", "properties": dict(properties or {})})
    return _normalize(args, None)


def resolve_step_value_references(tree: Any, resolver: ReferenceResolver) -> ReferenceResolution:
    """Replace every reference with the resolver's value.

    Failed references become ``None`` and are recorded in ``errors``; the
    walk never stops early.
    """
    resolution = ReferenceResolution(value=None)

    def _walk(node: Any, location: str) -> Any:
        ref = StepValueReference.from_value(node)
        if ref is not None:
            resolution.referenced_step_ids.add(ref.from_step)
            outcome = resolver(ref)
            if outcome.ok:
                return outcome.value
            resolution.errors.append(ReferenceResolutionError(
                location=location,
                step_id=ref.from_step,
                path=ref.path,
                reason=outcome.reason or "unresolved reference",
            ))
            return None
        if isinstance(node, dict):
            return {key: _walk(value, _child_location(location, str(key))) for key, value in node.items()}
        if isinstance(node, list):
            return [_walk(value, _child_location(location, index)) for index, value in enumerate(node)]
        if isinstance(node, tuple):
            return tuple(_walk(value, _child_location(location, index)) for index, value in enumerate(node))
        return node

    resolution.value = _walk(tree, "")
    if resolution.errors:
        logger.debug(f"⚠️ {len(resolution.errors)} unresolved step reference(s): {resolution.error_message}")
    return resolution


def _result_view(result: "ToolExecutionResult | Mapping[str, Any]") -> dict[str, Any]:
    if isinstance(result, Mapping):
        return {"success": result.get("success"), "data": result.get("data"), "error": result.get("error")}
    return {"success": result.success, "data": result.data, "error": result.error}


def build_result_resolver(
    results_by_step: Mapping[str, "ToolExecutionResult | Mapping[str, Any]"],
) -> ReferenceResolver:
    """Resolver that reads paths out of recorded step results.

    Paths are evaluated against ``{"success", "data", "error"}`` so
    ``data[0].id`` addresses the handler payload. A missing step or path
    falls back to the reference's default when it has one.
    """

    def _resolve(ref: StepValueReference) -> ReferenceOutcome:
        result = results_by_step.get(ref.from_step)
        if result is None:
            if ref.has_default:
                return ReferenceOutcome.resolved(ref.default)
            return ReferenceOutcome.failed(f"Step '{ref.from_step}' has not produced a result")

        lookup = get_value_at_path(_result_view(result), ref.path)
        if lookup.found:
            return ReferenceOutcome.resolved(lookup.value)
        if ref.has_default:
            return ReferenceOutcome.resolved(ref.default)
        return ReferenceOutcome.failed(
            f"Path '{ref.path}' not found in result of step '{ref.from_step}'"
        )

    return _resolve
