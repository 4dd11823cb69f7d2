"""Entity existence and placeholder checks against the live project view."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from director.core.state_store import ProjectView
from director.core.tool_validation.models import ValidationError

logger = logging.getLogger(__name__)

PRECONDITION_FAILED = "PRECONDITION_FAILED"

# argument name -> entity kind
ENTITY_REF_FIELDS: dict[str, str] = {
    "sequenceId": "sequence",
    "trackId": "track",
    "clipId": "clip",
    "assetId": "asset",
}

ENTITY_LIST_FIELDS: dict[str, str] = {
    "clipIds": "clip",
    "trackIds": "track",
    "assetIds": "asset",
}

_PLACEHOLDER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^<[^>]*>$"),
    re.compile(r"^\{\{?.*\}\}?$"),
    re.compile(r"\$\{"),
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"^(todo|tbd|unknown|none|null|undefined|n/?a|x{3,})$", re.IGNORECASE),
    re.compile(r"^(the[-_ ]?)?(sequence|track|clip|asset)[-_ ]?id$", re.IGNORECASE),
    re.compile(r"_id_from_|_from_(catalog|context|step|previous|result)", re.IGNORECASE),
    re.compile(r"^(your|some|example|sample|dummy|fake|mock)[-_ ]", re.IGNORECASE),
)


def is_placeholder_id(value: str) -> bool:
    """True for ids that were clearly invented rather than read from the project."""
    text = value.strip()
    if not text:
        return True
    return any(p.search(text) for p in _PLACEHOLDER_PATTERNS)


def _entity_exists(kind: str, entity_id: str, view: ProjectView) -> bool:
    match kind:
        case "sequence":
            return view.has_sequence(entity_id)
        case "track":
            return view.has_track(entity_id)
        case "clip":
            return view.has_clip(entity_id)
        case "asset":
            return view.has_asset(entity_id)
    return True


def _check_one(field: str, kind: str, value: Any, view: ProjectView) -> ValidationError | None:
    if not isinstance(value, str):
        return None
    if is_placeholder_id(value):
        return ValidationError(
            field=field,
            message=f"'{value}' is a placeholder, not a real {kind} id",
            code=PRECONDITION_FAILED,
        )
    if not _entity_exists(kind, value, view):
        return ValidationError(
            field=field,
            message=f"{kind} '{value}' does not exist in the current project (placeholder or stale id)",
            code=PRECONDITION_FAILED,
        )
    return None


def check_entity_preconditions(args: Mapping[str, Any], view: ProjectView) -> list[ValidationError]:
    """Every entity-reference argument that is a placeholder or unknown id.

    Only top-level arguments named in ``ENTITY_REF_FIELDS`` /
    ``ENTITY_LIST_FIELDS`` are checked. Returns no errors when no project
    is loaded.
    """
    if not view.is_loaded:
        return []

    errors: list[ValidationError] = []
    for field, kind in ENTITY_REF_FIELDS.items():
        if field in args:
            err = _check_one(field, kind, args[field], view)
            if err:
                errors.append(err)

    for field, kind in ENTITY_LIST_FIELDS.items():
        values = args.get(field)
        if not isinstance(values, (list, tuple)):
            continue
        for index, value in enumerate(values):
            err = _check_one(f"{field}[{index}]", kind, value, view)
            if err:
                errors.append(err)

    if errors:
        logger.debug(f"🚫 {len(errors)} entity precondition failure(s): {'; '.join(str(e) for e in errors)}")
    return errors
