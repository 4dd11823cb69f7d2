"""
Tool registry and tool metadata.

Public API:
    ToolRegistry            — register / look up / execute tools
    ToolDefinition          — name, category, JSON-schema parameters, async handler
    ToolInfo, ToolSchemaInfo — planner-facing summaries
    HandlerResult           — what handlers return
    create_editing_registry — built-in editing tools bound to a ProjectStateStore
    ToolCapabilities        — has_tool / validate_args, what planners consult
"""

from director.core.tools.metadata import (
    CATEGORY_DURATION_MAP,
    CATEGORY_RISK_MAP,
    PARALLELIZABLE_CATEGORIES,
    READ_ONLY_TOOL_PREFIXES,
    UNDOABLE_CATEGORIES,
    DurationClass,
    HandlerResult,
    ToolCapabilities,
    ToolCategory,
    ToolDefinition,
    ToolHandler,
    ToolInfo,
    ToolSchemaInfo,
    is_read_only_name,
)
from director.core.tools.editing import (
    EDITING_TOOL_SCHEMAS,
    EditingToolHandlers,
    build_editing_tools,
    create_editing_registry,
)
from director.core.tools.registry import ToolRegistry, empty_handler_context

__all__ = [
    "CATEGORY_DURATION_MAP",
    "CATEGORY_RISK_MAP",
    "EDITING_TOOL_SCHEMAS",
    "PARALLELIZABLE_CATEGORIES",
    "READ_ONLY_TOOL_PREFIXES",
    "UNDOABLE_CATEGORIES",
    "build_editing_tools",
    "create_editing_registry",
    "DurationClass",
    "EditingToolHandlers",
    "HandlerResult",
    "ToolCapabilities",
    "ToolCategory",
    "ToolDefinition",
    "ToolHandler",
    "ToolInfo",
    "ToolRegistry",
    "ToolSchemaInfo",
    "empty_handler_context",
    "is_read_only_name",
]
