"""
Tests for tool argument validation.

Tool validation ensures:
1. Required arguments are present
2. Arguments match declared types, enums and ranges
3. Step references validate against placeholders
4. Entity ids exist in the live project and are not placeholders
"""
import pytest

from director.core.references import make_reference
from director.core.state_store import ProjectStateStore
from director.core.tool_validation import (
    PRECONDITION_FAILED,
    ValidationError,
    ValidationResult,
    _validate_schema,
    _validate_type,
    check_entity_preconditions,
    is_placeholder_id,
    validate_tool_args,
)

SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "count": {"type": "integer", "minimum": 1, "maximum": 10},
        "ratio": {"type": "number"},
        "enabled": {"type": "boolean"},
        "mode": {"type": "string", "enum": ["fast", "slow"]},
    },
    "required": ["name"],
}


class TestSchemaValidation:
    """Required fields and types."""

    def test_valid(self):
        assert _validate_schema({"name": "x", "count": 3, "ratio": 0.5, "enabled": True}, SCHEMA) == []

    def test_missing_required(self):
        errors = _validate_schema({}, SCHEMA)

        assert len(errors) == 1
        assert errors[0].code == "MISSING_REQUIRED"
        assert errors[0].field == "name"

    def test_none_counts_as_missing(self):
        errors = _validate_schema({"name": None}, SCHEMA)
        assert [e.code for e in errors] == ["MISSING_REQUIRED"]

    def test_type_mismatch(self):
        errors = _validate_schema({"name": 5}, SCHEMA)
        assert errors[0].code == "TYPE_MISMATCH"
        assert errors[0].message == "Expected string, got int"

    def test_bool_is_not_a_number(self):
        errors = _validate_schema({"name": "x", "ratio": True}, SCHEMA)
        assert errors[0].code == "TYPE_MISMATCH"

    def test_integer_accepts_whole_floats(self):
        assert _validate_schema({"name": "x", "count": 2.0}, SCHEMA) == []
        assert _validate_schema({"name": "x", "count": 2.5}, SCHEMA)[0].code == "TYPE_MISMATCH"

    def test_enum(self):
        errors = _validate_schema({"name": "x", "mode": "medium"}, SCHEMA)
        assert errors[0].code == "INVALID_ENUM"
        assert errors[0].message == "Must be one of: fast, slow"

    @pytest.mark.parametrize("count,message", [(0, "Must be >= 1"), (11, "Must be <= 10")])
    def test_range(self, count, message):
        errors = _validate_schema({"name": "x", "count": count}, SCHEMA)
        assert errors[0].code == "OUT_OF_RANGE"
        assert errors[0].message == message

    def test_nullable_type(self):
        assert _validate_type("f", None, {"type": ["string", "null"]}) is None
        assert _validate_type("f", 3, {"type": ["string", "null"]}).code == "TYPE_MISMATCH"

    def test_undeclared_fields_ignored(self):
        assert _validate_schema({"name": "x", "other": object()}, SCHEMA) == []


class TestValidateToolArgs:
    """Entry point used by planners."""

    def test_unknown_tool(self):
        result = validate_tool_args(None, {}, tool_name="nope")

        assert not result.valid
        assert result.tool_name == "nope"
        assert result.errors[0].code == "TOOL_NOT_FOUND"

    def test_references_validate_as_placeholders(self, registry):
        args = {
            "sequenceId": "seq-1",
            "trackId": "v1",
            "assetId": make_reference("s1", "data[0].id"),
            "timelineStart": make_reference("s1", "data.start"),
        }
        assert validate_tool_args(registry.get("insert_clip"), args).valid

    def test_error_message(self, registry):
        result = validate_tool_args(registry.get("split_clip"), {"sequenceId": "seq-1"})

        assert not result.valid
        assert result.error_message == (
            "trackId: Required field 'trackId' is missing; "
            "clipId: Required field 'clipId' is missing; "
            "splitTime: Required field 'splitTime' is missing"
        )

    def test_result_messages(self):
        result = ValidationResult(
            valid=False,
            tool_name="t",
            errors=[ValidationError(field="a", message="bad", code="X")],
        )
        assert result.messages == ["a: bad"]
        assert ValidationResult(valid=True, tool_name="t").error_message == ""


class TestPlaceholderIds:
    """Invented ids are recognized."""

    @pytest.mark.parametrize("value", [
        "",
        "<clip_id>",
        "{{trackId}}",
        "${asset}",
        "placeholder-1",
        "TBD",
        "clip_id",
        "the-track-id",
        "asset_id_from_step",
        "your-track",
    ])
    def test_placeholders(self, value):
        assert is_placeholder_id(value)

    @pytest.mark.parametrize("value", ["c1", "a-beach", "track-v1", "seq-1", "asset-gen-1a2b3c4d"])
    def test_real_ids(self, value):
        assert not is_placeholder_id(value)


class TestEntityPreconditions:
    """Ids checked against the live project view."""

    def test_known_ids_pass(self, store):
        args = {"sequenceId": "seq-1", "trackId": "v1", "clipId": "c1", "assetId": "a-beach"}
        assert check_entity_preconditions(args, store.view()) == []

    def test_unknown_id(self, store):
        errors = check_entity_preconditions({"trackId": "v9"}, store.view())

        assert len(errors) == 1
        assert errors[0].code == PRECONDITION_FAILED
        assert "does not exist" in errors[0].message

    def test_placeholder_id(self, store):
        errors = check_entity_preconditions({"clipId": "<clip_id>"}, store.view())
        assert "placeholder" in errors[0].message

    def test_list_fields_report_index(self, store):
        errors = check_entity_preconditions({"clipIds": ["c1", "c9"]}, store.view())
        assert [e.field for e in errors] == ["clipIds[1]"]

    def test_track_in_inactive_sequence_is_unknown(self, store):
        store.create_sequence("Other", sequence_id="seq-2")
        store.create_track("seq-2", "V2", "video", track_id="v2")
        assert check_entity_preconditions({"trackId": "v2"}, store.view())

    def test_non_string_values_skipped(self, store):
        assert check_entity_preconditions({"trackId": 5}, store.view()) == []

    def test_unloaded_project_skips_checks(self):
        assert check_entity_preconditions({"trackId": "v9"}, ProjectStateStore().view()) == []
