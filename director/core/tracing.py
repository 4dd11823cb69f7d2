"""
Request tracing for the orchestration core.

Every command gets a trace_id that propagates through:
- Fast-path matching
- Playbook building
- Tool execution
- Plan runs

Usage:
    from director.core.tracing import get_trace_context, trace_span

    ctx = get_trace_context()
    with trace_span(ctx, "plan_command") as span:
        span.set_attribute("command_length", len(command))
        match = plan_command(command, snapshot, executor)
        span.set_attribute("source", match.source if match else None)
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generator, Optional

logger = logging.getLogger(__name__)


class SpanStatus(str, Enum):
    """Status of a trace span."""
    OK = "ok"
    ERROR = "error"


@dataclass
class Span:
    """A single traced operation."""
    name: str
    trace_id: str
    span_id: str
    parent_span_id: Optional[str]
    start_time: float
    end_time: Optional[float] = None
    status: SpanStatus = SpanStatus.OK
    attributes: dict[str, Any] = field(default_factory=dict)

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def set_error(self, error: BaseException) -> None:
        """Mark span as error."""
        self.status = SpanStatus.ERROR
        self.set_attribute("error.type", type(error).__name__)
        self.set_attribute("error.message", str(error))

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "duration_ms": self.duration_ms,
            "status": self.status.value,
            "attributes": self.attributes,
        }


@dataclass
class TraceContext:
    """Context for one traced command."""
    trace_id: str
    session_id: Optional[str] = None
    project_id: Optional[str] = None
    spans: list[Span] = field(default_factory=list)
    current_span: Optional[Span] = None
    _span_stack: list[Span] = field(default_factory=list)


_trace_context: ContextVar[Optional[TraceContext]] = ContextVar("director_trace_context", default=None)


def create_trace_context(
    session_id: Optional[str] = None,
    project_id: Optional[str] = None,
) -> TraceContext:
    """Create a new trace context and make it current."""
    ctx = TraceContext(
        trace_id=str(uuid.uuid4()),
        session_id=session_id,
        project_id=project_id,
    )
    _trace_context.set(ctx)
    return ctx


def get_trace_context() -> TraceContext:
    """Get current trace context, creating one if needed."""
    ctx = _trace_context.get()
    if ctx is None:
        ctx = create_trace_context()
    return ctx


def get_trace_id() -> str:
    return get_trace_context().trace_id


def clear_trace_context() -> None:
    """Clear trace context (for testing)."""
    _trace_context.set(None)


@contextmanager
def trace_span(
    ctx: TraceContext,
    name: str,
    attributes: Optional[dict[str, Any]] = None,
) -> Generator[Span, None, None]:
    """Context manager for tracing a span."""
    parent_span = ctx.current_span
    span = Span(
        name=name,
        trace_id=ctx.trace_id,
        span_id=str(uuid.uuid4())[:8],
        parent_span_id=parent_span.span_id if parent_span else None,
        start_time=time.perf_counter(),
        attributes=attributes or {},
    )

    ctx._span_stack.append(span)
    ctx.current_span = span
    ctx.spans.append(span)

    try:
        yield span
    except Exception as e:
        span.set_error(e)
        raise
    finally:
        span.end_time = time.perf_counter()
        ctx._span_stack.pop()
        ctx.current_span = ctx._span_stack[-1] if ctx._span_stack else None
        log_span(span)


def log_span(span: Span) -> None:
    """Log a completed span with structured data."""
    log_data = {
        "trace_id": span.trace_id,
        "span_id": span.span_id,
        "span_name": span.name,
        "duration_ms": span.duration_ms,
        "status": span.status.value,
    }
    log_data.update({f"attr.{k}": v for k, v in span.attributes.items()})

    if span.status == SpanStatus.ERROR:
        logger.error(f"[{span.trace_id[:8]}] ✗ {span.name}", extra=log_data)
    else:
        logger.debug(f"[{span.trace_id[:8]}] ✓ {span.name} ({span.duration_ms:.0f}ms)", extra=log_data)


# =============================================================================
# Structured Logging Helpers
# =============================================================================

def log_plan_match(
    trace_id: str,
    source: str,
    match_id: str,
    confidence: float,
    step_count: int,
    requires_approval: bool,
) -> None:
    """Log which planner produced a plan."""
    logger.info(
        f"[{trace_id[:8]}] 🎯 Plan: {source}/{match_id} ({confidence:.2f}, {step_count} steps)",
        extra={
            "trace_id": trace_id,
            "event": "plan_matched",
            "source": source,
            "match_id": match_id,
            "confidence": confidence,
            "step_count": step_count,
            "requires_approval": requires_approval,
        },
    )


def log_tool_call(
    trace_id: str,
    tool_name: str,
    params: dict[str, Any],
    success: bool,
    error: Optional[str] = None,
    duration_ms: Optional[float] = None,
) -> None:
    """Log tool call execution."""
    level = logging.INFO if success else logging.WARNING
    status = "✓" if success else "✗"

    logger.log(
        level,
        f"[{trace_id[:8]}] {status} Tool: {tool_name}",
        extra={
            "trace_id": trace_id,
            "event": "tool_call",
            "tool_name": tool_name,
            "success": success,
            "error": error,
            "duration_ms": duration_ms,
            "params_keys": list(params.keys()),
        },
    )


def log_plan_execution(
    trace_id: str,
    total_steps: int,
    successful_steps: int,
    failed_steps: int,
    duration_ms: float,
) -> None:
    """Log plan execution summary."""
    success = failed_steps == 0
    status = "✅" if success else "⚠️"

    logger.info(
        f"[{trace_id[:8]}] {status} Plan run: {successful_steps}/{total_steps} steps ({duration_ms:.0f}ms)",
        extra={
            "trace_id": trace_id,
            "event": "plan_execution",
            "total_steps": total_steps,
            "successful_steps": successful_steps,
            "failed_steps": failed_steps,
            "duration_ms": duration_ms,
            "success": success,
        },
    )


def log_guard_rejection(
    trace_id: str,
    tool_name: str,
    code: str,
    detail: str,
) -> None:
    """Log a call refused before its handler ran."""
    logger.warning(
        f"[{trace_id[:8]}] 🚫 {code}: {tool_name}",
        extra={
            "trace_id": trace_id,
            "event": "guard_rejection",
            "tool_name": tool_name,
            "code": code,
            "detail": detail,
        },
    )
