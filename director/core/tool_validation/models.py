"""Dataclass models for tool argument validation results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ValidationError:
    """A single validation error."""

    field: str
    message: str
    code: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Result of validating one tool call's arguments."""

    valid: bool
    tool_name: str
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        if not self.errors:
            return ""
        return "; ".join(str(e) for e in self.errors)

    @property
    def messages(self) -> list[str]:
        return [str(e) for e in self.errors]
