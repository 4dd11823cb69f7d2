"""
Built-in editing tools backed by ``ProjectStateStore``.

The schemas are the contract planners validate against; the handlers apply
edits to the in-memory store. Generation jobs complete immediately: the
status check imports the produced asset.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from typing_extensions import TypedDict

from director.contracts.json_types import LegacyContextDict
from director.core.state_store import ProjectStateStore
from director.core.tools.metadata import HandlerResult, ToolCategory, ToolDefinition
from director.core.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_INSERT_DURATION = 5.0


class ToolSchemaDict(TypedDict):
    name: str
    description: str
    category: str
    parameters: dict[str, Any]


_SEQUENCE_ID = {"type": "string", "description": "Sequence ID (active sequence from the context)"}
_TRACK_ID = {"type": "string", "description": "Track ID"}
_CLIP_ID = {"type": "string", "description": "Clip ID"}
_SECONDS = {"type": "number", "minimum": 0}

EDITING_TOOL_SCHEMAS: list[ToolSchemaDict] = [
    {
        "name": "split_clip",
        "description": "Split a clip in two at a timeline position (seconds).",
        "category": "clip",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "trackId": _TRACK_ID,
                "clipId": _CLIP_ID,
                "splitTime": {**_SECONDS, "description": "Timeline position of the cut"},
            },
            "required": ["sequenceId", "trackId", "clipId", "splitTime"],
        },
    },
    {
        "name": "trim_clip",
        "description": "Move a clip's source out point; the clip keeps its start.",
        "category": "clip",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "trackId": _TRACK_ID,
                "clipId": _CLIP_ID,
                "newSourceOut": {**_SECONDS, "description": "New source out point"},
            },
            "required": ["sequenceId", "trackId", "clipId", "newSourceOut"],
        },
    },
    {
        "name": "move_clip",
        "description": "Move a clip to a new timeline start.",
        "category": "clip",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "trackId": _TRACK_ID,
                "clipId": _CLIP_ID,
                "newTimelineIn": {**_SECONDS, "description": "New timeline start"},
            },
            "required": ["sequenceId", "trackId", "clipId", "newTimelineIn"],
        },
    },
    {
        "name": "add_caption",
        "description": "Add a caption over a time range of the sequence.",
        "category": "timeline",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "text": {"type": "string", "description": "Caption text"},
                "startTime": _SECONDS,
                "endTime": _SECONDS,
            },
            "required": ["sequenceId", "text", "startTime", "endTime"],
        },
    },
    {
        "name": "delete_clips_in_range",
        "description": "Delete every clip lying entirely inside a time range, optionally on one track.",
        "category": "timeline",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "startTime": _SECONDS,
                "endTime": _SECONDS,
                "trackId": _TRACK_ID,
            },
            "required": ["sequenceId", "startTime", "endTime"],
        },
    },
    {
        "name": "get_unused_assets",
        "description": "List project assets not yet placed on any track.",
        "category": "analysis",
        "parameters": {
            "type": "object",
            "properties": {
                "kind": {"type": "string", "enum": ["video", "audio", "image"]},
            },
        },
    },
    {
        "name": "insert_clip",
        "description": "Place an asset on a track at a timeline position.",
        "category": "clip",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "trackId": _TRACK_ID,
                "assetId": {"type": "string", "description": "Asset ID (from get_unused_assets or a generation result)"},
                "timelineStart": _SECONDS,
                "duration": {**_SECONDS, "description": "Defaults to the asset duration"},
            },
            "required": ["sequenceId", "trackId", "assetId", "timelineStart"],
        },
    },
    {
        "name": "adjust_volume",
        "description": "Set a track's volume in percent (100 = unity).",
        "category": "audio",
        "parameters": {
            "type": "object",
            "properties": {
                "sequenceId": _SEQUENCE_ID,
                "trackId": _TRACK_ID,
                "volume": {"type": "number", "minimum": 0, "maximum": 200},
            },
            "required": ["sequenceId", "trackId", "volume"],
        },
    },
    {
        "name": "generate_video",
        "description": "Submit a text-to-video generation job.",
        "category": "generation",
        "parameters": {
            "type": "object",
            "properties": {
                "prompt": {"type": "string"},
                "mode": {"type": "string", "enum": ["text_to_video", "image_to_video"]},
                "quality": {"type": "string", "enum": ["draft", "standard", "pro"]},
                "durationSec": {"type": "number", "minimum": 0, "maximum": 120},
            },
            "required": ["prompt"],
        },
    },
    {
        "name": "check_generation_status",
        "description": "Fetch a generation job's status and the produced asset ID.",
        "category": "generation",
        "parameters": {
            "type": "object",
            "properties": {
                "jobId": {"type": "string"},
            },
            "required": ["jobId"],
        },
    },
]


class EditingToolHandlers:
    """Async handlers for ``EDITING_TOOL_SCHEMAS``, applying edits to one store."""

    def __init__(self, store: ProjectStateStore):
        self.store = store
        self._jobs: dict[str, dict[str, Any]] = {}

    def handler_for(self, name: str):
        return getattr(self, name)

    def _clip_on_track(self, args: dict[str, Any]) -> tuple[Optional[Any], Optional[str]]:
        clip = self.store.view().clips.get(args["clipId"])
        if clip is None:
            return None, f"Clip not found: {args['clipId']}"
        if clip.track_id != args["trackId"]:
            return None, f"Clip '{clip.id}' is not on track '{args['trackId']}'"
        return clip, None

    async def split_clip(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        clip, error = self._clip_on_track(args)
        if clip is None:
            return HandlerResult(success=False, error=error)
        at = float(args["splitTime"])
        if not clip.timeline_in < at < clip.timeline_out:
            return HandlerResult(success=False, error=f"Split time {at}s is outside clip '{clip.id}'")

        head = at - clip.timeline_in
        self.store.update_clip(clip.id, duration=head)
        tail_id = self.store.add_clip(
            clip.track_id,
            asset_id=clip.asset_id,
            timeline_in=at,
            duration=clip.duration - head,
            source_in=clip.source_in + head,
        )
        return HandlerResult(success=True, result={"clipIds": [clip.id, tail_id]})

    async def trim_clip(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        clip, error = self._clip_on_track(args)
        if clip is None:
            return HandlerResult(success=False, error=error)
        source_out = float(args["newSourceOut"])
        if source_out <= clip.source_in:
            return HandlerResult(success=False, error=f"Source out {source_out}s is before the clip's source in")
        asset = self.store.view().assets.get(clip.asset_id or "")
        if asset is not None and asset.duration is not None and source_out > asset.duration:
            return HandlerResult(success=False, error=f"Source out {source_out}s exceeds asset length")
        updated = self.store.update_clip(clip.id, duration=source_out - clip.source_in)
        return HandlerResult(success=True, result={"clipId": clip.id, "duration": updated.duration})

    async def move_clip(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        clip, error = self._clip_on_track(args)
        if clip is None:
            return HandlerResult(success=False, error=error)
        self.store.update_clip(clip.id, timeline_in=float(args["newTimelineIn"]))
        return HandlerResult(success=True, result={"clipId": clip.id, "timelineIn": float(args["newTimelineIn"])})

    async def add_caption(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        try:
            caption_id = self.store.add_caption(
                args["sequenceId"], args["text"], float(args["startTime"]), float(args["endTime"]),
            )
        except ValueError as e:
            return HandlerResult(success=False, error=str(e))
        return HandlerResult(success=True, result={"captionId": caption_id})

    async def delete_clips_in_range(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        start, end = float(args["startTime"]), float(args["endTime"])
        if end <= start:
            return HandlerResult(success=False, error="Range end must be after its start")
        view = self.store.view()
        track_ids = [args["trackId"]] if args.get("trackId") else list(view.active_track_ids())
        doomed = [
            clip.id for clip in view.clips.values()
            if clip.track_id in track_ids and clip.timeline_in >= start and clip.timeline_out <= end
        ]
        for clip_id in doomed:
            self.store.remove_clip(clip_id)
        return HandlerResult(success=True, result={"deletedClipIds": doomed})

    async def get_unused_assets(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        view = self.store.view()
        assets = [view.assets[a] for a in self.store.unused_asset_ids(args.get("kind"))]
        return HandlerResult(
            success=True,
            result=[{"id": a.id, "name": a.name, "type": a.type, "duration": a.duration} for a in assets],
        )

    async def insert_clip(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        asset = self.store.view().assets.get(args["assetId"])
        if asset is None:
            return HandlerResult(success=False, error=f"Asset not found: {args['assetId']}")
        duration = args.get("duration") or asset.duration or DEFAULT_INSERT_DURATION
        clip_id = self.store.add_clip(
            args["trackId"],
            asset_id=asset.id,
            timeline_in=float(args["timelineStart"]),
            duration=float(duration),
        )
        return HandlerResult(success=True, result={"clipId": clip_id})

    async def adjust_volume(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        self.store.set_track_volume(args["trackId"], float(args["volume"]))
        return HandlerResult(success=True, result={"trackId": args["trackId"], "volume": float(args["volume"])})

    async def generate_video(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        job_id = f"job-{uuid.uuid4().hex[:8]}"
        self._jobs[job_id] = {
            "prompt": args["prompt"],
            "durationSec": float(args.get("durationSec") or 6.0),
            "assetId": None,
        }
        logger.info(f"🎬 Generation job {job_id} submitted")
        return HandlerResult(success=True, result={"jobId": job_id, "status": "queued"})

    async def check_generation_status(self, args: dict[str, Any], context: LegacyContextDict) -> HandlerResult:
        job = self._jobs.get(args["jobId"])
        if job is None:
            return HandlerResult(success=False, error=f"Generation job not found: {args['jobId']}")
        if job["assetId"] is None:
            job["assetId"] = self.store.import_asset(
                f"asset-gen-{uuid.uuid4().hex[:8]}", job["prompt"][:60], "video", duration=job["durationSec"],
            )
        return HandlerResult(success=True, result={"status": "completed", "assetId": job["assetId"]})


def build_editing_tools(store: ProjectStateStore) -> list[ToolDefinition]:
    handlers = EditingToolHandlers(store)
    return [
        ToolDefinition(
            name=schema["name"],
            description=schema["description"],
            category=ToolCategory(schema["category"]),
            handler=handlers.handler_for(schema["name"]),
            parameters=schema["parameters"],
        )
        for schema in EDITING_TOOL_SCHEMAS
    ]


def create_editing_registry(store: ProjectStateStore) -> ToolRegistry:
    """A registry holding every built-in editing tool, bound to ``store``."""
    registry = ToolRegistry()
    registry.register_many(build_editing_tools(store))
    return registry
