"""Director CLI — Typer application root.

Entry point for the ``director`` console script.

Plan a command against a project file (nothing is executed)::

    director plan "split at 00:05" --project project.json

Plan and execute against the in-memory project::

    director run "add b-roll with background music and subtitles" --project project.json

List the built-in editing tools::

    director tools --category clip

Show how time literals in a text are read::

    director times "from 1분 30초 to 2:00"

Without ``--project`` a small demo project is used.
"""
from __future__ import annotations

import asyncio
import enum
import json
import logging
import pathlib
from typing import Any, Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from director.config import settings
from director.core.errors import DirectorError
from director.core.executor import PlanRunner, ToolRegistryAdapter
from director.core.intent import format_timecode, parse_all_times, parse_time_range
from director.core.plan_schemas.models import ExecutionContext
from director.core.planner import PlanMatch, plan_command
from director.core.state_store import ProjectStateStore
from director.core.tools import ToolCategory, create_editing_registry
from director.models.project import ProjectDocument, demo_project

logger = logging.getLogger(__name__)


class ExitCode(enum.IntEnum):
    """CLI exit codes.

    0 — success
    1 — user error (bad arguments, unreadable project file)
    2 — no deterministic plan for the command
    3 — execution failed or internal error
    """

    SUCCESS = 0
    USER_ERROR = 1
    NO_PLAN = 2
    INTERNAL_ERROR = 3


app = typer.Typer(
    name="director",
    help="Director — deterministic planning and guarded execution of editing commands.",
    no_args_is_help=True,
)

ProjectOption = Annotated[
    Optional[pathlib.Path],
    typer.Option("--project", "-p", help="Project JSON file (defaults to a demo project)."),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Emit machine-readable JSON output.")]


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_store(project: Optional[pathlib.Path]) -> ProjectStateStore:
    if project is None:
        return demo_project().to_store()
    try:
        document = ProjectDocument.model_validate_json(project.read_text(encoding="utf-8"))
        return document.to_store()
    except OSError as exc:
        typer.echo(f"❌ Cannot read {project}: {exc}", err=True)
    except ValidationError as exc:
        typer.echo(f"❌ Invalid project file {project}:\n{exc}", err=True)
    except KeyError as exc:
        typer.echo(f"❌ Inconsistent project file {project}: {exc}", err=True)
    raise typer.Exit(code=ExitCode.USER_ERROR)


def _format_match(match: PlanMatch) -> str:
    lines = [
        f"🎯 {match.source}/{match.id} (confidence {match.confidence:.2f})",
        f"   Goal: {match.plan.goal}",
    ]
    for i, step in enumerate(match.plan.steps, 1):
        deps = f" after {', '.join(step.depends_on)}" if step.depends_on else ""
        lines.append(f"   {i}. {step.tool} [{step.risk_level.value}]{deps} — {step.description}")
    if match.plan.requires_approval:
        lines.append("   ⚠️ Requires approval")
    return "\n".join(lines)


@app.command("plan")
def plan_cmd(
    command: Annotated[str, typer.Argument(help="Natural-language editing command.")],
    project: ProjectOption = None,
    min_confidence: Annotated[
        Optional[float],
        typer.Option("--min-confidence", min=0.0, max=1.0, help="Fast-path confidence floor."),
    ] = None,
    as_json: JsonOption = False,
) -> None:
    """Plan COMMAND against the project without executing anything."""
    store = _load_store(project)
    adapter = ToolRegistryAdapter(create_editing_registry(store), state=store)
    match = plan_command(command, store.context_snapshot(), adapter, min_confidence=min_confidence)
    if match is None:
        typer.echo(json.dumps(None) if as_json else "No deterministic plan for this command.")
        raise typer.Exit(code=ExitCode.NO_PLAN)
    typer.echo(json.dumps(match.to_dict(), indent=2, ensure_ascii=False) if as_json else _format_match(match))


@app.command("run")
def run_cmd(
    command: Annotated[str, typer.Argument(help="Natural-language editing command.")],
    project: ProjectOption = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Approve plans that require approval.")] = False,
    as_json: JsonOption = False,
) -> None:
    """Plan COMMAND and execute it against the in-memory project."""
    store = _load_store(project)
    adapter = ToolRegistryAdapter(create_editing_registry(store), state=store)
    match = plan_command(command, store.context_snapshot(), adapter)
    if match is None:
        typer.echo("No deterministic plan for this command.")
        raise typer.Exit(code=ExitCode.NO_PLAN)

    if not as_json:
        typer.echo(_format_match(match))
    if match.plan.requires_approval and not yes:
        # No prompt in JSON mode: a missing --yes is a refusal
        if as_json:
            typer.echo(json.dumps({"match": match.to_dict(), "cancelled": True}, indent=2, ensure_ascii=False))
            raise typer.Exit(code=ExitCode.SUCCESS)
        if not typer.confirm("Run this plan?", default=False):
            typer.echo("Cancelled.")
            raise typer.Exit(code=ExitCode.SUCCESS)

    context = ExecutionContext(
        project_id=store.project_id,
        sequence_id=store.active_sequence_id,
        expected_state_version=store.version,
    )
    try:
        result = asyncio.run(PlanRunner(adapter).run(match.plan, context))
    except DirectorError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(code=ExitCode.INTERNAL_ERROR)

    if as_json:
        payload: dict[str, Any] = {
            "match": match.to_dict(),
            "success": result.success,
            "completed": result.completed_step_ids,
            "failed": [{"step": r.step_id, "error": r.result.error} for r in result.failed_steps],
            "stateVersion": store.version,
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for record in result.completed_steps:
            typer.echo(f"✅ {record.step_id} ({record.duration_ms:.1f}ms)")
        for record in result.failed_steps:
            typer.echo(f"❌ {record.step_id}: {record.result.error}")
    if not result.success:
        raise typer.Exit(code=ExitCode.INTERNAL_ERROR)


@app.command("tools")
def tools_cmd(
    category: Annotated[
        Optional[ToolCategory],
        typer.Option("--category", "-c", help="Only tools of this category."),
    ] = None,
    as_json: JsonOption = False,
) -> None:
    """List the built-in editing tools."""
    adapter = ToolRegistryAdapter(create_editing_registry(ProjectStateStore()))
    infos = adapter.get_available_tools(category)
    if as_json:
        typer.echo(json.dumps(
            [
                {
                    "name": i.name,
                    "category": i.category.value,
                    "riskLevel": i.risk_level.value,
                    "readOnly": i.read_only,
                    "supportsUndo": i.supports_undo,
                }
                for i in infos
            ],
            indent=2,
        ))
        return
    for info in infos:
        flags = " read-only" if info.read_only else ""
        typer.echo(f"{info.name:<24} {info.category.value:<11} {info.risk_level.value:<7}{flags}")


@app.command("times")
def times_cmd(
    text: Annotated[str, typer.Argument(help="Text containing time literals.")],
) -> None:
    """Show the time literals found in TEXT, in seconds and as timecodes."""
    values = parse_all_times(text)
    if not values:
        typer.echo("No time literals found.")
        return
    for value in values:
        typer.echo(f"{value:g}s  {format_timecode(value)}")
    time_range = parse_time_range(text)
    if time_range is not None:
        typer.echo(f"range: {time_range[0]:g}s → {time_range[1]:g}s")


if __name__ == "__main__":
    app()
