"""Entry point: pick the orchestration playbook for a thought, if any."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from director.core.playbooks.broll import build_broll_music_subtitles
from director.core.playbooks.generate import build_generate_and_place
from director.core.playbooks.helpers import build_search_text
from director.core.playbooks.models import PlaybookContext, PlaybookMatch
from director.core.plan_schemas.models import ContextSnapshot, Thought
from director.core.tools.metadata import ToolCapabilities

logger = logging.getLogger(__name__)

PlaybookBuilder = Callable[[PlaybookContext], Optional[PlaybookMatch]]

# Generation wins over the B-roll pass when both could apply.
PLAYBOOKS: list[PlaybookBuilder] = [
    build_generate_and_place,
    build_broll_music_subtitles,
]


def build_orchestration_playbook(
    thought: Thought,
    context: ContextSnapshot,
    tools: ToolCapabilities,
) -> Optional[PlaybookMatch]:
    """Return the first playbook whose keywords, tools and context requirements are met."""
    if not context.sequence_id:
        return None

    pc = PlaybookContext(
        text=build_search_text(thought),
        thought=thought,
        context=context,
        tools=tools,
    )
    for build in PLAYBOOKS:
        match = build(pc)
        if match is not None:
            logger.info(f"📋 Playbook {match.id.value} matched with {len(match.plan.steps)} steps")
            return match
    return None
