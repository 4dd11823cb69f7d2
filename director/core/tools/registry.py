"""Tool registry: registration, lookup, schema export, and guarded handler calls."""

from __future__ import annotations

import logging
from typing import Any, Optional

from director.contracts.json_types import LegacyContextDict
from director.core.tool_validation.schema import _validate_schema
from director.core.tools.metadata import HandlerResult, ToolCategory, ToolDefinition

logger = logging.getLogger(__name__)


def empty_handler_context() -> LegacyContextDict:
    return LegacyContextDict(
        projectId=None,
        sequenceId=None,
        selectedClips=[],
        selectedTracks=[],
        playheadPosition=0.0,
    )


class ToolRegistry:
    """
    Name-keyed collection of tool definitions.

    Registration order is preserved for listings and schema export.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, tool: ToolDefinition) -> None:
        self._tools[tool.name] = tool
        logger.debug(f"Tool registered: {tool.name} ({tool.category.value})")

    def register_many(self, tools: list[ToolDefinition]) -> None:
        for tool in tools:
            self.register(tool)

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)
        logger.debug(f"Tool unregistered: {name}")

    def clear(self) -> None:
        self._tools.clear()

    # =========================================================================
    # Lookup
    # =========================================================================

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def list_all(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def list_by_category(self, category: ToolCategory | str) -> list[ToolDefinition]:
        wanted = ToolCategory(category)
        return [t for t in self._tools.values() if t.category == wanted]

    def list_categories(self) -> list[ToolCategory]:
        seen: list[ToolCategory] = []
        for tool in self._tools.values():
            if tool.category not in seen:
                seen.append(tool.category)
        return seen

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute(
        self,
        name: str,
        args: dict[str, Any],
        context: Optional[LegacyContextDict] = None,
    ) -> HandlerResult:
        """Validate ``args`` and call the tool's handler.

        Unknown tools, schema failures, and handler exceptions all come back
        as ``HandlerResult(success=False)``.
        """
        tool = self._tools.get(name)
        if tool is None:
            return HandlerResult(success=False, error=f"Tool '{name}' not found")

        errors = _validate_schema(args, tool.parameters)
        if errors:
            return HandlerResult(success=False, error="; ".join(str(e) for e in errors))

        try:
            result = await tool.handler(args, context if context is not None else empty_handler_context())
        except Exception as e:
            logger.error(f"❌ Tool {name} raised: {e}", exc_info=True)
            return HandlerResult(success=False, error=str(e) or type(e).__name__)

        if not isinstance(result, HandlerResult):
            # Handlers may return a bare payload
            result = HandlerResult(success=True, result=result)
        logger.debug(f"Tool executed: {name} (success={result.success})")
        return result

    # =========================================================================
    # Schema export
    # =========================================================================

    def function_schemas(self) -> list[dict[str, Any]]:
        """OpenAI-style function schemas for every registered tool."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in self._tools.values()
        ]
