"""Project document: the JSON shape the CLI loads into a ``ProjectStateStore``.

Example::

    {
      "projectId": "proj-1",
      "assets": [{"id": "a-beach", "name": "beach.mp4", "type": "video", "duration": 12}],
      "sequences": [{
        "id": "seq-1", "name": "Main",
        "tracks": [{"id": "v1", "name": "V1", "type": "video",
                    "clips": [{"id": "c1", "assetId": "a-beach", "timelineIn": 0, "duration": 12}]}]
      }],
      "activeSequenceId": "seq-1",
      "selectedClips": ["c1"], "selectedTracks": ["v1"],
      "playheadPosition": 4.0
    }
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field

from director.core.state_store import ProjectStateStore
from director.models.base import CamelModel


class ClipDocument(CamelModel):
    id: str
    asset_id: Optional[str] = None
    timeline_in: float = Field(default=0.0, ge=0)
    duration: float = Field(default=0.0, ge=0)
    source_in: float = Field(default=0.0, ge=0)


class TrackDocument(CamelModel):
    id: str
    name: str = ""
    type: str = "video"
    clips: list[ClipDocument] = Field(default_factory=list)


class SequenceDocument(CamelModel):
    id: str
    name: str = ""
    tracks: list[TrackDocument] = Field(default_factory=list)


class AssetDocument(CamelModel):
    id: str
    name: str = ""
    type: str
    duration: Optional[float] = Field(default=None, ge=0)


class ProjectDocument(CamelModel):
    """A whole project, as saved by the editor."""
    project_id: Optional[str] = None
    assets: list[AssetDocument] = Field(default_factory=list)
    sequences: list[SequenceDocument] = Field(default_factory=list)
    active_sequence_id: Optional[str] = None
    selected_clips: list[str] = Field(default_factory=list)
    selected_tracks: list[str] = Field(default_factory=list)
    playhead_position: float = Field(default=0.0, ge=0)

    def to_store(self) -> ProjectStateStore:
        """Build a loaded store holding this document's state."""
        store = ProjectStateStore(self.project_id)
        store.load_project(self.project_id)
        for asset in self.assets:
            store.import_asset(asset.id, asset.name or asset.id, asset.type, duration=asset.duration)
        for seq in self.sequences:
            store.create_sequence(seq.name or seq.id, sequence_id=seq.id)
            for track in seq.tracks:
                store.create_track(seq.id, track.name or track.id, track.type, track_id=track.id)
                for clip in track.clips:
                    store.add_clip(
                        track.id,
                        asset_id=clip.asset_id,
                        timeline_in=clip.timeline_in,
                        duration=clip.duration,
                        clip_id=clip.id,
                        source_in=clip.source_in,
                    )
        if self.active_sequence_id:
            store.activate_sequence(self.active_sequence_id)
        if self.selected_clips or self.selected_tracks:
            store.set_selection(self.selected_clips, self.selected_tracks)
        if self.playhead_position:
            store.set_playhead(self.playhead_position)
        return store


def demo_project() -> ProjectDocument:
    """One sequence with a video and an audio track and a few unused assets."""
    return ProjectDocument(
        project_id="demo",
        assets=[
            AssetDocument(id="asset-interview", name="interview.mp4", type="video", duration=60.0),
            AssetDocument(id="asset-beach", name="beach.mp4", type="video", duration=12.0),
            AssetDocument(id="asset-city", name="city.mp4", type="video", duration=8.0),
            AssetDocument(id="asset-ambient", name="ambient.wav", type="audio", duration=90.0),
        ],
        sequences=[
            SequenceDocument(
                id="seq-main",
                name="Main",
                tracks=[
                    TrackDocument(
                        id="track-v1",
                        name="V1",
                        type="video",
                        clips=[ClipDocument(id="clip-interview", asset_id="asset-interview", duration=60.0)],
                    ),
                    TrackDocument(id="track-a1", name="A1", type="audio"),
                ],
            )
        ],
        active_sequence_id="seq-main",
        selected_clips=["clip-interview"],
        selected_tracks=["track-v1"],
        playhead_position=10.0,
    )
