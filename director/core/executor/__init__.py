"""
Plan execution.

Public API:
    ToolRegistryAdapter     — single-call / batch execution with safety guards
    PlanRunner              — ordered plan execution with retries and loop guard
    BatchExecutionRequest / BatchExecutionResult
    PlanRunResult / StepExecutionRecord
"""

from director.core.executor.adapter import REV_CONFLICT, ProjectStateAccessor, ToolRegistryAdapter
from director.core.executor.failures import (
    TerminalFailureGuidance,
    detect_immediate_terminal_failure,
    detect_repeated_terminal_failure,
    did_execution_mutate_state,
    is_precondition_failure,
    is_read_only_tool,
    is_retryable_tool_failure,
    normalize_tool_failure,
)
from director.core.executor.models import (
    BatchEntry,
    BatchExecutionRequest,
    BatchExecutionResult,
    BatchMode,
    BatchToolCall,
    PlanRunResult,
    StepExecutionRecord,
)
from director.core.executor.runner import PlanRunner

__all__ = [
    "REV_CONFLICT",
    "BatchEntry",
    "BatchExecutionRequest",
    "BatchExecutionResult",
    "BatchMode",
    "BatchToolCall",
    "PlanRunResult",
    "PlanRunner",
    "ProjectStateAccessor",
    "StepExecutionRecord",
    "TerminalFailureGuidance",
    "ToolRegistryAdapter",
    "detect_immediate_terminal_failure",
    "detect_repeated_terminal_failure",
    "did_execution_mutate_state",
    "is_precondition_failure",
    "is_read_only_tool",
    "is_retryable_tool_failure",
    "normalize_tool_failure",
]
