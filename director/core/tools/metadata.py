"""Tool definition models, categories, and category-derived traits."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Protocol

from director.contracts.json_types import LegacyContextDict
from director.core.plan_schemas.models import RiskLevel

if TYPE_CHECKING:
    from director.core.tool_validation.models import ValidationResult


class ToolCategory(str, Enum):
    TIMELINE = "timeline"
    CLIP = "clip"
    TRACK = "track"
    EFFECT = "effect"
    TRANSITION = "transition"
    AUDIO = "audio"
    EXPORT = "export"
    PROJECT = "project"
    ANALYSIS = "analysis"
    UTILITY = "utility"
    GENERATION = "generation"


class DurationClass(str, Enum):
    INSTANT = "instant"
    FAST = "fast"
    SLOW = "slow"


CATEGORY_RISK_MAP: dict[ToolCategory, RiskLevel] = {
    ToolCategory.TIMELINE: RiskLevel.MEDIUM,
    ToolCategory.CLIP: RiskLevel.MEDIUM,
    ToolCategory.TRACK: RiskLevel.MEDIUM,
    ToolCategory.EFFECT: RiskLevel.LOW,
    ToolCategory.TRANSITION: RiskLevel.LOW,
    ToolCategory.AUDIO: RiskLevel.LOW,
    ToolCategory.EXPORT: RiskLevel.HIGH,
    ToolCategory.PROJECT: RiskLevel.HIGH,
    ToolCategory.ANALYSIS: RiskLevel.LOW,
    ToolCategory.UTILITY: RiskLevel.LOW,
    ToolCategory.GENERATION: RiskLevel.HIGH,
}

CATEGORY_DURATION_MAP: dict[ToolCategory, DurationClass] = {
    ToolCategory.TIMELINE: DurationClass.INSTANT,
    ToolCategory.CLIP: DurationClass.INSTANT,
    ToolCategory.TRACK: DurationClass.INSTANT,
    ToolCategory.EFFECT: DurationClass.FAST,
    ToolCategory.TRANSITION: DurationClass.FAST,
    ToolCategory.AUDIO: DurationClass.FAST,
    ToolCategory.EXPORT: DurationClass.SLOW,
    ToolCategory.PROJECT: DurationClass.FAST,
    ToolCategory.ANALYSIS: DurationClass.SLOW,
    ToolCategory.UTILITY: DurationClass.INSTANT,
    ToolCategory.GENERATION: DurationClass.SLOW,
}

UNDOABLE_CATEGORIES: frozenset[ToolCategory] = frozenset({
    ToolCategory.TIMELINE,
    ToolCategory.CLIP,
    ToolCategory.TRACK,
    ToolCategory.EFFECT,
    ToolCategory.TRANSITION,
    ToolCategory.AUDIO,
})

PARALLELIZABLE_CATEGORIES: frozenset[ToolCategory] = frozenset({
    ToolCategory.ANALYSIS,
    ToolCategory.UTILITY,
})

READ_ONLY_TOOL_PREFIXES: tuple[str, ...] = (
    "get_",
    "list_",
    "find_",
    "search_",
    "analyze_",
    "inspect_",
    "query_",
    "read_",
)


def is_read_only_name(tool_name: str) -> bool:
    """Heuristic classification of read-only tools by name prefix."""
    normalized = tool_name.strip().lower()
    return normalized.startswith(READ_ONLY_TOOL_PREFIXES)


@dataclass
class HandlerResult:
    """What a tool handler returns."""
    success: bool
    result: Any = None
    error: Optional[str] = None


ToolHandler = Callable[[dict[str, Any], LegacyContextDict], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class ToolDefinition:
    """
    A registered tool.

    ``parameters`` is a JSON schema object (``type``/``properties``/``required``).
    ``risk_level``, ``read_only`` and ``parallelizable`` override the values
    derived from the category and name.
    """
    name: str
    description: str
    category: ToolCategory
    handler: ToolHandler
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    risk_level: Optional[RiskLevel] = None
    read_only: Optional[bool] = None
    parallelizable: Optional[bool] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", ToolCategory(self.category))
        if self.risk_level is not None:
            object.__setattr__(self, "risk_level", RiskLevel(self.risk_level))

    @property
    def effective_risk(self) -> RiskLevel:
        if self.risk_level is not None:
            return self.risk_level
        return CATEGORY_RISK_MAP.get(self.category, RiskLevel.LOW)

    @property
    def is_read_only(self) -> bool:
        if self.read_only is not None:
            return self.read_only
        return is_read_only_name(self.name)

    @property
    def is_undoable(self) -> bool:
        return self.category in UNDOABLE_CATEGORIES

    @property
    def is_parallelizable(self) -> bool:
        if self.parallelizable is not None:
            return self.parallelizable
        return self.category in PARALLELIZABLE_CATEGORIES

    @property
    def duration_class(self) -> DurationClass:
        return CATEGORY_DURATION_MAP.get(self.category, DurationClass.FAST)

    @property
    def properties(self) -> dict[str, Any]:
        props = self.parameters.get("properties")
        return props if isinstance(props, dict) else {}

    @property
    def required(self) -> list[str]:
        req = self.parameters.get("required")
        return list(req) if isinstance(req, list) else []


@dataclass(frozen=True)
class ToolInfo:
    """Planner-facing summary of a tool."""
    name: str
    description: str
    category: ToolCategory
    risk_level: RiskLevel
    supports_undo: bool
    estimated_duration: DurationClass
    parallelizable: bool
    read_only: bool

    @classmethod
    def from_definition(cls, tool: ToolDefinition) -> "ToolInfo":
        return cls(
            name=tool.name,
            description=tool.description,
            category=tool.category,
            risk_level=tool.effective_risk,
            supports_undo=tool.is_undoable,
            estimated_duration=tool.duration_class,
            parallelizable=tool.is_parallelizable,
            read_only=tool.is_read_only,
        )


@dataclass(frozen=True)
class ToolSchemaInfo(ToolInfo):
    """ToolInfo plus the parameter schema."""
    parameters: dict[str, Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @classmethod
    def from_definition(cls, tool: ToolDefinition) -> "ToolSchemaInfo":
        info = ToolInfo.from_definition(tool)
        return cls(
            **info.__dict__,
            parameters=tool.parameters,
            required=tuple(tool.required),
        )


class ToolCapabilities(Protocol):
    """What planners need to know about the tool surface."""

    def has_tool(self, name: str) -> bool: ...

    def validate_args(self, tool_name: str, args: Mapping[str, Any]) -> "ValidationResult": ...
