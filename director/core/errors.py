"""Exception hierarchy for caller-side orchestration failures.

Expected tool failures (not found, REV_CONFLICT, PRECONDITION_FAILED,
handler exceptions) are never raised; they come back as failed
``ToolExecutionResult`` objects. The errors below are raised only by the
components that drive execution: the plan runner, the command queue, and
constructors given invalid configuration.
"""

from __future__ import annotations

from typing import Any


class DirectorError(Exception):
    """Base class for orchestration errors."""

    code: str = "DIRECTOR_ERROR"
    recoverable: bool = False

    def __init__(self, message: str, *, context: dict[str, Any] | None = None):
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": str(self),
            "recoverable": self.recoverable,
            "context": self.context,
        }


class ConfigurationError(DirectorError):
    """Raised when a component is constructed with invalid settings."""

    code = "CONFIG_ERROR"


class DependencyError(DirectorError):
    """Raised when a plan step depends on a step that is missing or did not complete."""

    code = "DEPENDENCY_ERROR"

    def __init__(self, step_id: str, missing: list[str]):
        self.step_id = step_id
        self.missing = missing
        super().__init__(
            f"Step '{step_id}' has unmet dependencies: {', '.join(missing)}",
            context={"step_id": step_id, "missing": missing},
        )


class DoomLoopError(DirectorError):
    """Raised by the plan runner when the same call repeats past the threshold."""

    code = "DOOM_LOOP_DETECTED"

    def __init__(self, tool_name: str, repeat_count: int):
        self.tool_name = tool_name
        self.repeat_count = repeat_count
        super().__init__(
            f"Doom loop detected: '{tool_name}' called {repeat_count} times with identical arguments",
            context={"tool": tool_name, "repeat_count": repeat_count},
        )


class StepTimeoutError(DirectorError):
    """Raised when a single step exceeds its time budget."""

    code = "EXECUTION_TIMEOUT"
    recoverable = True

    def __init__(self, tool_name: str, timeout_seconds: float):
        self.tool_name = tool_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Tool {tool_name} timed out after {timeout_seconds * 1000:.0f}ms",
            context={"tool": tool_name, "timeout_ms": timeout_seconds * 1000},
        )


class ToolExecutionError(DirectorError):
    """Wraps a step failure that aborted a plan run."""

    code = "TOOL_EXECUTION_FAILED"

    def __init__(self, step_id: str, tool_name: str, reason: str):
        self.step_id = step_id
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(
            f"Step '{step_id}' ({tool_name}) failed: {reason}",
            context={"step_id": step_id, "tool": tool_name},
        )


class QueueFullError(DirectorError):
    """Raised when the command queue is at its pending-operation cap."""

    code = "QUEUE_FULL"
    recoverable = True

    def __init__(self, max_pending: int):
        self.max_pending = max_pending
        super().__init__(
            f"Command queue is full ({max_pending} pending operations)",
            context={"max_pending": max_pending},
        )


class CommandTimeoutError(DirectorError):
    """Raised when a queued command exceeds the queue timeout."""

    code = "COMMAND_TIMEOUT"
    recoverable = True

    def __init__(self, operation_name: str, timeout_seconds: float):
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Operation '{operation_name}' timeout after {timeout_seconds:g}s",
            context={"operation": operation_name},
        )


class CommandCancelledError(DirectorError):
    """Raised for a queued command that was cancelled before it ran."""

    code = "COMMAND_CANCELLED"

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        super().__init__(
            f"Operation '{operation_name}' was cancelled",
            context={"operation": operation_name},
        )
