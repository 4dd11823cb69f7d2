"""Step value reference types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from director.contracts.json_types import (
    REF_DEFAULT_KEY,
    REF_FROM_STEP_KEY,
    REF_PATH_KEY,
    StepValueReferenceDict,
)


class _Missing:
    """Sentinel for "no default supplied" (``None`` is a legitimate default)."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def is_step_value_reference(value: object) -> bool:
    """True iff ``value`` is a mapping with non-empty string ``$fromStep`` and ``$path``."""
    if not isinstance(value, dict):
        return False
    from_step = value.get(REF_FROM_STEP_KEY)
    path = value.get(REF_PATH_KEY)
    return (
        isinstance(from_step, str) and from_step != ""
        and isinstance(path, str) and path != ""
    )


@dataclass(frozen=True)
class StepValueReference:
    """Parsed form of a ``{"$fromStep", "$path", "$default"?}`` object."""

    from_step: str
    path: str
    default: Any = MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @classmethod
    def from_value(cls, value: object) -> "StepValueReference | None":
        if not is_step_value_reference(value):
            return None
        assert isinstance(value, dict)
        return cls(
            from_step=value[REF_FROM_STEP_KEY],
            path=value[REF_PATH_KEY],
            default=value[REF_DEFAULT_KEY] if REF_DEFAULT_KEY in value else MISSING,
        )

    def to_dict(self) -> StepValueReferenceDict:
        ref: StepValueReferenceDict = {
            REF_FROM_STEP_KEY: self.from_step,
            REF_PATH_KEY: self.path,
        }
        if self.has_default:
            ref[REF_DEFAULT_KEY] = self.default
        return ref

    def describe(self) -> str:
        return f"<ref:{self.from_step}.{self.path}>"


def make_reference(from_step: str, path: str, default: Any = MISSING) -> StepValueReferenceDict:
    """Build the wire form of a reference for embedding in step arguments."""
    return StepValueReference(from_step=from_step, path=path, default=default).to_dict()


@dataclass(frozen=True)
class CollectedReference:
    """A reference found while walking an argument tree."""

    location: str
    reference: StepValueReference


@dataclass(frozen=True)
class ReferenceOutcome:
    """What a resolver callback returns for one reference."""

    ok: bool
    value: Any = None
    reason: str = ""

    @classmethod
    def resolved(cls, value: Any) -> "ReferenceOutcome":
        return cls(ok=True, value=value)

    @classmethod
    def failed(cls, reason: str) -> "ReferenceOutcome":
        return cls(ok=False, reason=reason)


@dataclass(frozen=True)
class ReferenceResolutionError:
    """A reference that could not be resolved."""

    location: str
    step_id: str
    path: str
    reason: str

    def __str__(self) -> str:
        where = self.location or "<root>"
        return f"{where}: {self.reason}"


@dataclass
class ReferenceResolution:
    """Best-effort resolved tree plus everything that went wrong.

    Failed references are replaced with ``None``. Callers must check
    ``errors`` before executing.
    """

    value: Any
    referenced_step_ids: set[str] = field(default_factory=set)
    errors: list[ReferenceResolutionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error_message(self) -> str:
        return "; ".join(str(e) for e in self.errors)
