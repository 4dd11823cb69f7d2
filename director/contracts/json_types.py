"""Canonical type definitions for JSON data shared by the planner and executor.

Use ``JSONValue`` / ``JSONObject`` only where the shape is genuinely unknown
(tool arguments before validation, handler payloads). For every known
structure, use the named TypedDict below.

Do **not** use ``JSONValue`` in Pydantic ``BaseModel`` fields: Pydantic v2
cannot resolve the recursive forward references. Pydantic models use
``dict[str, Any]`` for argument maps instead.

## Entity catalog

JSON primitives:
  JSONScalar            — str | int | float | bool | None
  JSONValue             — recursive JSON value
  JSONObject            — dict[str, JSONValue]

Plan wiring:
  StepValueReferenceDict — wire shape of a step value reference
  ToolCallDict           — one entry of a batch request {name, args}
  ResolutionErrorDict    — one failed reference during resolution

Handler context:
  LegacyContextDict      — selection/playhead forwarded to tool handlers
"""

from __future__ import annotations

from typing_extensions import NotRequired, TypedDict

JSONScalar = str | int | float | bool | None
"""A JSON leaf value with no recursive structure."""

JSONValue = str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
"""Recursive JSON value."""

JSONObject = dict[str, JSONValue]
"""A JSON object with unknown key set."""


# Wire keys of a step value reference. The ``$`` prefix keeps them apart
# from ordinary tool arguments such as ``path``.
REF_FROM_STEP_KEY = "$fromStep"
REF_PATH_KEY = "$path"
REF_DEFAULT_KEY = "$default"


StepValueReferenceDict = TypedDict(
    "StepValueReferenceDict",
    {
        "$fromStep": str,
        "$path": str,
        "$default": NotRequired[JSONValue],
    },
)
"""``{"$fromStep": "step-1", "$path": "data[0].id", "$default": "asset-1"}``"""


class ToolCallDict(TypedDict):
    """One tool invocation inside a batch request."""

    name: str
    args: dict[str, JSONValue]


class ResolutionErrorDict(TypedDict):
    """A reference that could not be resolved."""

    location: str
    step_id: str
    path: str
    reason: str


class LegacyContextDict(TypedDict):
    """Context handed to tool handlers alongside their arguments."""

    projectId: str | None
    sequenceId: str | None
    selectedClips: list[str]
    selectedTracks: list[str]
    playheadPosition: float
