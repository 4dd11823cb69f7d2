"""Playbook match types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from director.core.plan_schemas.models import ContextSnapshot, Plan, Thought
from director.core.tools.metadata import ToolCapabilities


class PlaybookId(str, Enum):
    BROLL_MUSIC_SUBTITLES = "broll_music_subtitles"
    GENERATE_AND_PLACE = "generate_and_place"


@dataclass(frozen=True)
class PlaybookContext:
    """Everything a playbook builder reads."""
    text: str
    thought: Thought
    context: ContextSnapshot
    tools: ToolCapabilities


@dataclass(frozen=True)
class PlaybookMatch:
    """A multi-step plan produced by a named playbook."""
    id: PlaybookId
    confidence: float
    plan: Plan

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.value,
            "confidence": self.confidence,
            "plan": self.plan.model_dump(by_alias=True, mode="json"),
        }
