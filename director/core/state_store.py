"""
Versioned project state for the editor session.

The store is the read-only source the orchestration core consults for:
- the context snapshot handed to planners
- the live ``state_version`` used by the optimistic-concurrency check
- the active sequence, selection, and playhead forwarded to handlers
- entity existence (assets, tracks, clips) for precondition checks

Key principles:
1. Every mutation bumps the version, so a caller holding an older version
   can be refused instead of merged.
2. The core only reads through ``view()`` / ``context_snapshot()``; mutators
   exist for tool handlers and for syncing from the editor.
3. Mutations are recorded as events for auditing.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from director.core.plan_schemas.models import AssetSummary, ContextSnapshot, TrackSummary

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of state mutation events."""
    PROJECT_LOADED = "project.loaded"
    PROJECT_CLOSED = "project.closed"
    SEQUENCE_CREATED = "sequence.created"
    SEQUENCE_ACTIVATED = "sequence.activated"
    TRACK_CREATED = "track.created"
    CLIP_ADDED = "clip.added"
    CLIP_REMOVED = "clip.removed"
    CLIP_UPDATED = "clip.updated"
    CAPTION_ADDED = "caption.added"
    TRACK_VOLUME_CHANGED = "track.volume_changed"
    ASSET_IMPORTED = "asset.imported"
    SELECTION_CHANGED = "selection.changed"
    PLAYHEAD_MOVED = "playhead.moved"


@dataclass(frozen=True)
class AssetRecord:
    id: str
    name: str
    type: str
    duration: Optional[float] = None


@dataclass(frozen=True)
class ClipRecord:
    id: str
    track_id: str
    asset_id: Optional[str] = None
    timeline_in: float = 0.0
    duration: float = 0.0
    source_in: float = 0.0

    @property
    def timeline_out(self) -> float:
        return self.timeline_in + self.duration


@dataclass(frozen=True)
class TrackRecord:
    id: str
    name: str
    type: str
    clip_ids: tuple[str, ...] = ()
    volume: float = 100.0


@dataclass(frozen=True)
class SequenceRecord:
    id: str
    name: str
    track_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class CaptionRecord:
    id: str
    sequence_id: str
    text: str
    start_time: float
    end_time: float


@dataclass
class StateEvent:
    """A single state mutation event."""
    id: str
    event_type: EventType
    entity_id: Optional[str]
    data: dict[str, Any]
    timestamp: datetime
    version: int


@dataclass(frozen=True)
class ProjectView:
    """
    Immutable read of the live project, taken at one version.

    This is what the tool execution adapter reads; it never holds the
    store itself.
    """
    is_loaded: bool
    project_id: Optional[str]
    state_version: int
    active_sequence_id: Optional[str]
    sequences: Mapping[str, SequenceRecord] = field(default_factory=dict)
    tracks: Mapping[str, TrackRecord] = field(default_factory=dict)
    clips: Mapping[str, ClipRecord] = field(default_factory=dict)
    assets: Mapping[str, AssetRecord] = field(default_factory=dict)
    captions: Mapping[str, CaptionRecord] = field(default_factory=dict)
    selected_clips: tuple[str, ...] = ()
    selected_tracks: tuple[str, ...] = ()
    playhead_position: float = 0.0

    def active_track_ids(self) -> tuple[str, ...]:
        seq = self.sequences.get(self.active_sequence_id or "")
        return seq.track_ids if seq else ()

    def has_sequence(self, sequence_id: str) -> bool:
        return sequence_id in self.sequences

    def has_asset(self, asset_id: str) -> bool:
        return asset_id in self.assets

    def has_track(self, track_id: str) -> bool:
        """True if the track belongs to the active sequence."""
        return track_id in self.active_track_ids()

    def has_clip(self, clip_id: str) -> bool:
        """True if the clip sits on a track of the active sequence."""
        clip = self.clips.get(clip_id)
        return clip is not None and clip.track_id in self.active_track_ids()


class ProjectStateStore:
    """
    In-memory, versioned project state.

    Usage:
        store = ProjectStateStore()
        store.load_project("proj-1")
        seq = store.create_sequence("Main", activate=True)
        track = store.create_track(seq, "V1", "video")
        store.import_asset("asset-1", "beach.mp4", "video", duration=12.0)
        snapshot = store.context_snapshot()
    """

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id
        self._loaded = False
        self._version: int = 0
        self._events: list[StateEvent] = []

        self._sequences: dict[str, SequenceRecord] = {}
        self._tracks: dict[str, TrackRecord] = {}
        self._clips: dict[str, ClipRecord] = {}
        self._assets: dict[str, AssetRecord] = {}
        self._captions: dict[str, CaptionRecord] = {}
        self._active_sequence_id: Optional[str] = None
        self._selected_clips: tuple[str, ...] = ()
        self._selected_tracks: tuple[str, ...] = ()
        self._playhead: float = 0.0

    # =========================================================================
    # Read API
    # =========================================================================

    @property
    def version(self) -> int:
        """Current state version (increments on every mutation)."""
        return self._version

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def active_sequence_id(self) -> Optional[str]:
        return self._active_sequence_id

    def view(self) -> ProjectView:
        return ProjectView(
            is_loaded=self._loaded,
            project_id=self.project_id,
            state_version=self._version,
            active_sequence_id=self._active_sequence_id,
            sequences=MappingProxyType(dict(self._sequences)),
            tracks=MappingProxyType(dict(self._tracks)),
            clips=MappingProxyType(dict(self._clips)),
            assets=MappingProxyType(dict(self._assets)),
            captions=MappingProxyType(dict(self._captions)),
            selected_clips=self._selected_clips,
            selected_tracks=self._selected_tracks,
            playhead_position=self._playhead,
        )

    def timeline_duration(self, sequence_id: Optional[str] = None) -> float:
        """End of the last clip on the sequence (active sequence by default)."""
        seq = self._sequences.get(sequence_id or self._active_sequence_id or "")
        if seq is None:
            return 0.0
        ends = [
            self._clips[clip_id].timeline_out
            for track_id in seq.track_ids
            for clip_id in self._tracks[track_id].clip_ids
        ]
        return max(ends, default=0.0)

    def context_snapshot(self) -> ContextSnapshot:
        """Build the planner-facing snapshot of the active sequence."""
        seq = self._sequences.get(self._active_sequence_id or "")
        tracks = [self._tracks[t] for t in seq.track_ids] if seq else []
        return ContextSnapshot(
            sequence_id=self._active_sequence_id,
            playhead_position=self._playhead,
            timeline_duration=self.timeline_duration(),
            available_tracks=tuple(
                TrackSummary(id=t.id, name=t.name, type=t.type, clip_count=len(t.clip_ids))
                for t in tracks
            ),
            available_assets=tuple(
                AssetSummary(id=a.id, name=a.name, type=a.type, duration=a.duration)
                for a in self._assets.values()
            ),
            selected_clips=self._selected_clips,
            selected_tracks=self._selected_tracks,
        )

    def get_events_since(self, version: int) -> list[StateEvent]:
        return [e for e in self._events if e.version > version]

    def unused_asset_ids(self, kind: Optional[str] = None) -> list[str]:
        """Assets no clip references, optionally filtered by type, in import order."""
        used = {c.asset_id for c in self._clips.values() if c.asset_id}
        return [
            a.id for a in self._assets.values()
            if a.id not in used and (kind is None or a.type == kind)
        ]

    # =========================================================================
    # Mutations (tool handlers and editor sync only)
    # =========================================================================

    def load_project(self, project_id: Optional[str] = None) -> None:
        self.project_id = project_id or self.project_id or str(uuid.uuid4())
        self._loaded = True
        self._append_event(EventType.PROJECT_LOADED, self.project_id, {})
        logger.debug(f"🏗️ Project loaded: {self.project_id}")

    def close_project(self) -> None:
        self._loaded = False
        self._sequences.clear()
        self._tracks.clear()
        self._clips.clear()
        self._assets.clear()
        self._captions.clear()
        self._active_sequence_id = None
        self._selected_clips = ()
        self._selected_tracks = ()
        self._playhead = 0.0
        self._append_event(EventType.PROJECT_CLOSED, self.project_id, {})

    def create_sequence(
        self,
        name: str,
        sequence_id: Optional[str] = None,
        activate: bool = False,
    ) -> str:
        seq_id = sequence_id or f"seq-{uuid.uuid4().hex[:8]}"
        self._sequences[seq_id] = SequenceRecord(id=seq_id, name=name)
        self._append_event(EventType.SEQUENCE_CREATED, seq_id, {"name": name})
        if activate or self._active_sequence_id is None:
            self.activate_sequence(seq_id)
        return seq_id

    def activate_sequence(self, sequence_id: str) -> None:
        if sequence_id not in self._sequences:
            raise KeyError(f"Sequence '{sequence_id}' not found")
        self._active_sequence_id = sequence_id
        self._append_event(EventType.SEQUENCE_ACTIVATED, sequence_id, {})

    def create_track(
        self,
        sequence_id: str,
        name: str,
        track_type: str,
        track_id: Optional[str] = None,
    ) -> str:
        seq = self._sequences.get(sequence_id)
        if seq is None:
            raise KeyError(f"Sequence '{sequence_id}' not found")
        tid = track_id or f"track-{uuid.uuid4().hex[:8]}"
        self._tracks[tid] = TrackRecord(id=tid, name=name, type=track_type)
        self._sequences[sequence_id] = replace(seq, track_ids=seq.track_ids + (tid,))
        self._append_event(EventType.TRACK_CREATED, tid, {"sequence_id": sequence_id, "type": track_type})
        return tid

    def import_asset(
        self,
        asset_id: str,
        name: str,
        asset_type: str,
        duration: Optional[float] = None,
    ) -> str:
        self._assets[asset_id] = AssetRecord(id=asset_id, name=name, type=asset_type, duration=duration)
        self._append_event(EventType.ASSET_IMPORTED, asset_id, {"type": asset_type})
        return asset_id

    def add_clip(
        self,
        track_id: str,
        asset_id: Optional[str] = None,
        timeline_in: float = 0.0,
        duration: float = 0.0,
        clip_id: Optional[str] = None,
        source_in: float = 0.0,
    ) -> str:
        track = self._tracks.get(track_id)
        if track is None:
            raise KeyError(f"Track '{track_id}' not found")
        if asset_id is not None and asset_id not in self._assets:
            raise KeyError(f"Asset '{asset_id}' not found")
        cid = clip_id or f"clip-{uuid.uuid4().hex[:8]}"
        self._clips[cid] = ClipRecord(
            id=cid, track_id=track_id, asset_id=asset_id,
            timeline_in=timeline_in, duration=duration, source_in=source_in,
        )
        self._tracks[track_id] = replace(track, clip_ids=track.clip_ids + (cid,))
        self._append_event(EventType.CLIP_ADDED, cid, {"track_id": track_id, "asset_id": asset_id})
        return cid

    def remove_clip(self, clip_id: str) -> None:
        clip = self._clips.pop(clip_id, None)
        if clip is None:
            raise KeyError(f"Clip '{clip_id}' not found")
        track = self._tracks[clip.track_id]
        self._tracks[track.id] = replace(track, clip_ids=tuple(c for c in track.clip_ids if c != clip_id))
        self._selected_clips = tuple(c for c in self._selected_clips if c != clip_id)
        self._append_event(EventType.CLIP_REMOVED, clip_id, {"track_id": clip.track_id})

    def update_clip(
        self,
        clip_id: str,
        *,
        timeline_in: Optional[float] = None,
        duration: Optional[float] = None,
        source_in: Optional[float] = None,
    ) -> ClipRecord:
        clip = self._clips.get(clip_id)
        if clip is None:
            raise KeyError(f"Clip '{clip_id}' not found")
        changes = {
            k: v for k, v in
            (("timeline_in", timeline_in), ("duration", duration), ("source_in", source_in))
            if v is not None
        }
        updated = replace(clip, **changes)
        self._clips[clip_id] = updated
        self._append_event(EventType.CLIP_UPDATED, clip_id, changes)
        return updated

    def add_caption(
        self,
        sequence_id: str,
        text: str,
        start_time: float,
        end_time: float,
        caption_id: Optional[str] = None,
    ) -> str:
        if sequence_id not in self._sequences:
            raise KeyError(f"Sequence '{sequence_id}' not found")
        if end_time <= start_time:
            raise ValueError("Caption must end after it starts")
        cap_id = caption_id or f"caption-{uuid.uuid4().hex[:8]}"
        self._captions[cap_id] = CaptionRecord(
            id=cap_id, sequence_id=sequence_id, text=text,
            start_time=start_time, end_time=end_time,
        )
        self._append_event(EventType.CAPTION_ADDED, cap_id, {"sequence_id": sequence_id})
        return cap_id

    def set_track_volume(self, track_id: str, volume: float) -> None:
        track = self._tracks.get(track_id)
        if track is None:
            raise KeyError(f"Track '{track_id}' not found")
        self._tracks[track_id] = replace(track, volume=float(volume))
        self._append_event(EventType.TRACK_VOLUME_CHANGED, track_id, {"volume": float(volume)})

    def set_selection(
        self,
        clip_ids: tuple[str, ...] | list[str] = (),
        track_ids: tuple[str, ...] | list[str] = (),
    ) -> None:
        self._selected_clips = tuple(clip_ids)
        self._selected_tracks = tuple(track_ids)
        self._append_event(
            EventType.SELECTION_CHANGED, None,
            {"clips": list(clip_ids), "tracks": list(track_ids)},
        )

    def set_playhead(self, position: float) -> None:
        self._playhead = max(0.0, float(position))
        self._append_event(EventType.PLAYHEAD_MOVED, None, {"position": self._playhead})

    def _append_event(self, event_type: EventType, entity_id: Optional[str], data: dict[str, Any]) -> StateEvent:
        self._version += 1
        event = StateEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            entity_id=entity_id,
            data=data,
            timestamp=datetime.now(timezone.utc),
            version=self._version,
        )
        self._events.append(event)
        return event
