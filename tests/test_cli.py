"""Tests for the director CLI."""
import json

import pytest
from typer.testing import CliRunner

from director.cli import ExitCode, app
from director.models.project import demo_project

runner = CliRunner()

GENERATE_COMMAND = "Generate a 10 second video and place it on the timeline"


@pytest.fixture
def project_file(tmp_path):
    path = tmp_path / "project.json"
    path.write_text(demo_project().model_dump_json(by_alias=True), encoding="utf-8")
    return path


class TestPlan:
    """director plan"""

    def test_fast_path(self):
        result = runner.invoke(app, ["plan", "split at 00:05"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "fast_path/split" in result.stdout
        assert "split_clip" in result.stdout

    def test_no_plan(self):
        result = runner.invoke(app, ["plan", "make it pop"])

        assert result.exit_code == ExitCode.NO_PLAN
        assert "No deterministic plan" in result.stdout

    def test_json(self):
        result = runner.invoke(app, ["plan", "split at 00:05", "--json"])

        payload = json.loads(result.stdout)
        assert payload["source"] == "fast_path"
        step = payload["plan"]["steps"][0]
        assert step["id"] == "fastpath-split"
        assert step["args"]["clipId"] == "clip-interview"
        assert step["args"]["splitTime"] == 5

    def test_playbook_requires_approval_flag(self):
        result = runner.invoke(app, ["plan", GENERATE_COMMAND])

        assert "playbook/generate_and_place" in result.stdout
        assert "Requires approval" in result.stdout

    def test_project_file(self, project_file):
        result = runner.invoke(app, ["plan", "split at 00:05", "--project", str(project_file)])
        assert result.exit_code == ExitCode.SUCCESS

    def test_invalid_project_file(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")

        result = runner.invoke(app, ["plan", "split at 00:05", "--project", str(bad)])

        assert result.exit_code == ExitCode.USER_ERROR

    def test_missing_project_file(self, tmp_path):
        result = runner.invoke(app, ["plan", "split at 00:05", "--project", str(tmp_path / "nope.json")])
        assert result.exit_code == ExitCode.USER_ERROR


class TestRun:
    """director run"""

    def test_fast_path_run(self):
        result = runner.invoke(app, ["run", "split at 00:05"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "✅ fastpath-split" in result.stdout

    def test_approval_declined(self):
        result = runner.invoke(app, ["run", GENERATE_COMMAND], input="n\n")

        assert result.exit_code == ExitCode.SUCCESS
        assert "Cancelled." in result.stdout
        assert "✅" not in result.stdout

    def test_approval_skipped_with_yes(self):
        result = runner.invoke(app, ["run", GENERATE_COMMAND, "--yes"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "✅ playbook_insert_generated_clip" in result.stdout

    def test_json_run_without_yes_does_not_prompt(self):
        result = runner.invoke(app, ["run", GENERATE_COMMAND, "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "Run this plan?" not in result.stdout
        payload = json.loads(result.stdout)
        assert payload["cancelled"] is True
        assert payload["match"]["id"] == "generate_and_place"

    def test_json_run_with_yes(self):
        result = runner.invoke(app, ["run", GENERATE_COMMAND, "--json", "--yes"])

        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert "cancelled" not in payload

    def test_json_run(self):
        result = runner.invoke(app, ["run", "add b-roll with background music and subtitles", "--json"])

        assert result.exit_code == ExitCode.SUCCESS
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert len(payload["completed"]) == 6
        assert payload["failed"] == []
        assert payload["match"]["id"] == "broll_music_subtitles"

    def test_no_plan(self):
        result = runner.invoke(app, ["run", "make it pop"])
        assert result.exit_code == ExitCode.NO_PLAN


class TestTools:
    """director tools"""

    def test_category_filter(self):
        result = runner.invoke(app, ["tools", "--category", "generation"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "generate_video" in result.stdout
        assert "check_generation_status" in result.stdout
        assert "split_clip" not in result.stdout

    def test_json(self):
        result = runner.invoke(app, ["tools", "--json"])

        tools = json.loads(result.stdout)
        assert len(tools) == 10
        unused = next(t for t in tools if t["name"] == "get_unused_assets")
        assert unused["readOnly"] is True
        assert unused["riskLevel"] == "low"


class TestTimes:
    """director times"""

    def test_range(self):
        result = runner.invoke(app, ["times", "from 00:02 to 00:04"])

        assert result.exit_code == ExitCode.SUCCESS
        assert "2s  00:00:02.000" in result.stdout
        assert "4s  00:00:04.000" in result.stdout
        assert "range: 2s → 4s" in result.stdout

    def test_korean(self):
        result = runner.invoke(app, ["times", "1분 30초"])
        assert "90s  00:01:30.000" in result.stdout

    def test_nothing_found(self):
        result = runner.invoke(app, ["times", "no numbers here"])
        assert "No time literals found." in result.stdout
