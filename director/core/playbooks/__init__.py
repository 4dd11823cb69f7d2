"""
Orchestration playbooks: fixed multi-step plans for recurring requests.

Public API:
    build_orchestration_playbook(thought, context, tools) -> PlaybookMatch | None
"""

from director.core.playbooks.builder import PLAYBOOKS, PlaybookBuilder, build_orchestration_playbook
from director.core.playbooks.helpers import (
    clamp_timeline_start,
    create_caption_window,
    parse_generation_duration,
    pick_asset_id,
    pick_track_id,
)
from director.core.playbooks.models import PlaybookContext, PlaybookId, PlaybookMatch

__all__ = [
    "PLAYBOOKS",
    "PlaybookBuilder",
    "PlaybookContext",
    "PlaybookId",
    "PlaybookMatch",
    "build_orchestration_playbook",
    "clamp_timeline_start",
    "create_caption_window",
    "parse_generation_duration",
    "pick_asset_id",
    "pick_track_id",
]
