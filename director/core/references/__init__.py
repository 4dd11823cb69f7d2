"""
Step value references.

A step's arguments may hold ``{"$fromStep": "...", "$path": "...", "$default"?: ...}``
in place of a literal. The reference means "take the value at ``$path`` in
that earlier step's result, else ``$default``, else fail".

Public API:
    is_step_value_reference(value) -> bool
    collect_step_value_references(tree) -> list[CollectedReference]
    normalize_args_for_validation(tree, properties) -> tree
    resolve_step_value_references(tree, resolver) -> ReferenceResolution
    get_value_at_path(source, path) -> PathLookup
"""

from director.core.references.models import (
    MISSING,
    CollectedReference,
    ReferenceOutcome,
    ReferenceResolution,
    ReferenceResolutionError,
    StepValueReference,
    is_step_value_reference,
    make_reference,
)
from director.core.references.paths import PathLookup, get_value_at_path, tokenize_path
from director.core.references.resolution import (
    ReferenceResolver,
    build_result_resolver,
    collect_step_value_references,
    normalize_args_for_validation,
    resolve_step_value_references,
)

__all__ = [
    "MISSING",
    "CollectedReference",
    "ReferenceOutcome",
    "ReferenceResolution",
    "ReferenceResolutionError",
    "ReferenceResolver",
    "StepValueReference",
    "PathLookup",
    "build_result_resolver",
    "collect_step_value_references",
    "get_value_at_path",
    "is_step_value_reference",
    "make_reference",
    "normalize_args_for_validation",
    "resolve_step_value_references",
    "tokenize_path",
]
