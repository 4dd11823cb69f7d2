"""Pytest configuration and fixtures."""
import pytest

from director.core.executor import ToolRegistryAdapter
from director.core.plan_schemas.models import ContextSnapshot, ExecutionContext
from director.core.state_store import ProjectStateStore
from director.core.tools import create_editing_registry
from director.core.tracing import clear_trace_context


def pytest_configure(config):
    """Ensure asyncio_mode is auto so async tests run when pyproject is not in cwd."""
    if hasattr(config.option, "asyncio_mode") and config.option.asyncio_mode is None:
        config.option.asyncio_mode = "auto"


@pytest.fixture(autouse=True)
def _reset_trace_context():
    """Each test starts with a fresh trace so span lists do not leak between tests."""
    clear_trace_context()
    yield
    clear_trace_context()


@pytest.fixture
def store() -> ProjectStateStore:
    """
    A loaded project: one sequence with a video and an audio track.

    c1 (a-interview, 0–20s) sits on v1 and is selected; a-beach, a-city and
    a-music are unused. Playhead at 4s.
    """
    s = ProjectStateStore("proj-1")
    s.load_project()
    s.create_sequence("Main", sequence_id="seq-1", activate=True)
    s.create_track("seq-1", "V1", "video", track_id="v1")
    s.create_track("seq-1", "A1", "audio", track_id="a1")
    s.import_asset("a-interview", "interview.mp4", "video", duration=30.0)
    s.import_asset("a-beach", "beach.mp4", "video", duration=12.0)
    s.import_asset("a-city", "city.mp4", "video", duration=8.0)
    s.import_asset("a-music", "music.wav", "audio", duration=90.0)
    s.add_clip("v1", asset_id="a-interview", timeline_in=0.0, duration=20.0, clip_id="c1")
    s.set_selection(["c1"], ["v1"])
    s.set_playhead(4.0)
    return s


@pytest.fixture
def registry(store):
    return create_editing_registry(store)


@pytest.fixture
def adapter(registry, store) -> ToolRegistryAdapter:
    return ToolRegistryAdapter(registry, state=store)


@pytest.fixture
def snapshot(store) -> ContextSnapshot:
    return store.context_snapshot()


@pytest.fixture
def exec_context(store) -> ExecutionContext:
    """Context pinned to the store's current version."""
    return ExecutionContext(
        project_id="proj-1",
        sequence_id="seq-1",
        expected_state_version=store.version,
    )
