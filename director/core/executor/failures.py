"""Retry classification and loop-prevention heuristics for failed tool calls.

Retries are limited to failures that look transient. Deterministic failures
(not found, stale ids, invalid arguments) are never retried with the same
arguments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from director.core.executor.models import PlanRunResult
from director.core.plan_schemas.models import ContextSnapshot
from director.core.tools.metadata import is_read_only_name

_TRANSIENT_FAILURE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"timeout|timed out|deadline exceeded", re.IGNORECASE),
    re.compile(r"temporary|temporarily|transient", re.IGNORECASE),
    re.compile(r"try again", re.IGNORECASE),
    re.compile(r"rate limit|too many requests|\b429\b", re.IGNORECASE),
    re.compile(r"network|connection|econn|enet|eai_again|socket", re.IGNORECASE),
    re.compile(r"service unavailable|unavailable|server busy|busy", re.IGNORECASE),
)

_CLIP_NOT_FOUND_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"clip not found", re.IGNORECASE),
    re.compile(r"could not be found on the timeline", re.IGNORECASE),
    re.compile(r"no clips? (on|in) (the )?timeline", re.IGNORECASE),
    re.compile(r"timeline is empty", re.IGNORECASE),
)
_TRACK_NOT_FOUND_PATTERNS = (re.compile(r"track[^\n]*not found", re.IGNORECASE), re.compile(r"unknown track", re.IGNORECASE))
_SEQUENCE_NOT_FOUND_PATTERNS = (re.compile(r"sequence[^\n]*not found", re.IGNORECASE), re.compile(r"unknown sequence", re.IGNORECASE))
_ASSET_NOT_FOUND_PATTERNS = (re.compile(r"asset[^\n]*not found", re.IGNORECASE), re.compile(r"file not found", re.IGNORECASE))
_PRECONDITION_FAILURE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"precondition_failed", re.IGNORECASE),
    re.compile(r"preflight", re.IGNORECASE),
    re.compile(r"rev_conflict", re.IGNORECASE),
    re.compile(r"stale context", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"alias", re.IGNORECASE),
)

CLIP_EDIT_TOOL_NAMES: frozenset[str] = frozenset({
    "split_clip",
    "trim_clip",
    "move_clip",
    "delete_clip",
    "delete_clips_in_range",
})


@dataclass(frozen=True)
class TerminalFailureGuidance:
    """Why automatic retries should stop, and what the user can do."""
    reason: str
    suggested_action: str
    failure_signature: str


@dataclass(frozen=True)
class _FailureSignature:
    tool: str
    normalized_error: str

    @property
    def signature(self) -> str:
        return f"{self.tool.lower()}:{self.normalized_error}"


def _matches_any(value: Optional[str], patterns: tuple[re.Pattern[str], ...]) -> bool:
    if not value or not value.strip():
        return False
    return any(p.search(value) for p in patterns)


def normalize_tool_failure(error_message: Optional[str]) -> str:
    """Collapse quoted values and numbers so equivalent failures compare equal."""
    if not error_message or not error_message.strip():
        return "unknown failure"
    text = error_message.lower()
    text = re.sub(r"[\"'`][^\"'`]+[\"'`]", "<value>", text)
    text = re.sub(r"\b\d+(?:\.\d+)?\b", "<num>", text)
    return re.sub(r"\s+", " ", text).strip()


def is_retryable_tool_failure(error_message: Optional[str]) -> bool:
    """Whether a failed call is worth repeating with the same arguments."""
    if not error_message or not error_message.strip():
        return False
    normalized = normalize_tool_failure(error_message)
    return _matches_any(normalized, _TRANSIENT_FAILURE_PATTERNS)


def is_precondition_failure(error_message: Optional[str]) -> bool:
    return _matches_any(error_message, _PRECONDITION_FAILURE_PATTERNS)


def is_read_only_tool(tool_name: str) -> bool:
    return is_read_only_name(tool_name)


def did_execution_mutate_state(run: PlanRunResult) -> bool:
    """True if any completed step plausibly changed the project."""
    for record in run.completed_steps:
        if record.result.side_effects:
            return True
        if record.result.undoable:
            return True
        if not is_read_only_tool(record.tool):
            return True
    return False


def _describe_failure_reason(sig: _FailureSignature) -> str:
    if _matches_any(sig.normalized_error, _CLIP_NOT_FOUND_PATTERNS):
        return "Repeated retries were stopped because the target clip could not be resolved."
    if _matches_any(sig.normalized_error, _TRACK_NOT_FOUND_PATTERNS):
        return "Repeated retries were stopped because the target track does not exist."
    if _matches_any(sig.normalized_error, _SEQUENCE_NOT_FOUND_PATTERNS):
        return "Repeated retries were stopped because the target sequence does not exist."
    if _matches_any(sig.normalized_error, _ASSET_NOT_FOUND_PATTERNS):
        return "Repeated retries were stopped because the referenced asset is missing."
    return f"Repeated retries were stopped after the same terminal failure from '{sig.tool}'."


def _suggest_action(sig: _FailureSignature) -> str:
    if _matches_any(sig.normalized_error, _CLIP_NOT_FOUND_PATTERNS):
        return "Select the target clip on the timeline or insert media first, then retry."
    if _matches_any(sig.normalized_error, _TRACK_NOT_FOUND_PATTERNS):
        return "Choose an existing track (or create one) and retry the request."
    if _matches_any(sig.normalized_error, _SEQUENCE_NOT_FOUND_PATTERNS):
        return "Open the correct sequence before retrying this edit request."
    if _matches_any(sig.normalized_error, _ASSET_NOT_FOUND_PATTERNS):
        return "Import or relink the missing asset before retrying the operation."
    return "Provide additional targeting details (clip/track/sequence) before retrying."


def _guidance(sig: _FailureSignature, signature: Optional[str] = None) -> TerminalFailureGuidance:
    return TerminalFailureGuidance(
        reason=_describe_failure_reason(sig),
        suggested_action=_suggest_action(sig),
        failure_signature=signature or sig.signature,
    )


def detect_immediate_terminal_failure(
    run: PlanRunResult,
    context: ContextSnapshot,
) -> Optional[TerminalFailureGuidance]:
    """Failures that no retry can fix given the current project state."""
    if not run.failed_steps or did_execution_mutate_state(run):
        return None

    for record in run.failed_steps:
        if _matches_any(record.result.error, _PRECONDITION_FAILURE_PATTERNS):
            return TerminalFailureGuidance(
                reason="Execution stopped because plan arguments no longer match the current timeline state.",
                suggested_action="Refresh timeline context, re-run analysis tools, and retry with exact current IDs.",
                failure_signature=f"precondition:{normalize_tool_failure(record.result.error)}",
            )

    for record in run.failed_steps:
        if is_retryable_tool_failure(record.result.error):
            continue
        if (
            _matches_any(record.result.error, _TRACK_NOT_FOUND_PATTERNS)
            or _matches_any(record.result.error, _SEQUENCE_NOT_FOUND_PATTERNS)
            or _matches_any(record.result.error, _ASSET_NOT_FOUND_PATTERNS)
        ):
            sig = _FailureSignature(record.tool, normalize_tool_failure(record.result.error))
            return _guidance(sig, f"precondition:{sig.normalized_error}")

    clip_count = sum(max(0, t.clip_count) for t in context.available_tracks)
    clip_targeted = any(
        not is_retryable_tool_failure(r.result.error)
        and (r.tool.lower() in CLIP_EDIT_TOOL_NAMES or _matches_any(r.result.error, _CLIP_NOT_FOUND_PATTERNS))
        for r in run.failed_steps
    )
    if clip_count == 0 and clip_targeted:
        return TerminalFailureGuidance(
            reason="No clips are available on the timeline for clip-edit operations",
            suggested_action="Add a video clip to the timeline (or select an existing clip) before retrying this command.",
            failure_signature="precondition:no_timeline_clips",
        )
    return None


def _terminal_signatures(run: PlanRunResult) -> list[_FailureSignature]:
    seen: dict[str, _FailureSignature] = {}
    for record in run.failed_steps:
        if is_retryable_tool_failure(record.result.error):
            continue
        sig = _FailureSignature(record.tool, normalize_tool_failure(record.result.error))
        seen.setdefault(sig.signature, sig)
    return list(seen.values())


def detect_repeated_terminal_failure(
    previous: PlanRunResult,
    current: PlanRunResult,
) -> Optional[TerminalFailureGuidance]:
    """The same non-retryable failure in two consecutive runs with no mutation in between."""
    if did_execution_mutate_state(previous) or did_execution_mutate_state(current):
        return None

    baseline = {s.signature for s in _terminal_signatures(previous)}
    if not baseline:
        return None
    for candidate in _terminal_signatures(current):
        if candidate.signature in baseline:
            return _guidance(candidate)
    return None
