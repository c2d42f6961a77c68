"""
Planboard CLI - analytics commands.

Burndown, velocity and milestone health, all computed on the fly from the
document.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from planboard.cli.common import read_document
from planboard.cli.errors import ExitCode, print_sprint_not_found_error
from planboard.core.analytics.burndown import get_burndown
from planboard.core.analytics.milestones import (
    calculate_milestone_progress,
    calculate_milestone_status,
)
from planboard.core.analytics.points import calculate_velocity
from planboard.core.document.models import MilestoneStatus
from planboard.core.tasks.milestones import list_milestones

console = Console()

STATUS_STYLES = {
    MilestoneStatus.COMPLETE: "green",
    MilestoneStatus.ON_TRACK: "cyan",
    MilestoneStatus.AT_RISK: "yellow",
    MilestoneStatus.DELAYED: "red",
    MilestoneStatus.NOT_STARTED: "dim",
}


def _parse_today(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from None


def burndown(
    file: Annotated[Path, typer.Argument(help="Document file")],
    sprint_id: Annotated[str, typer.Argument(help="Sprint to chart")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    today: Annotated[
        str | None,
        typer.Option("--today", help="Evaluate as of this date (YYYY-MM-DD)"),
    ] = None,
) -> None:
    """
    Show a sprint's ideal and actual burndown, day by day.

    Examples:
        planboard burndown plan.json sprint_abc
        planboard burndown plan.json sprint_abc --json
    """
    as_of = _parse_today(today)
    doc = read_document(file)
    data = get_burndown(doc, sprint_id, as_of)
    if data is None:
        print_sprint_not_found_error(sprint_id)
        raise typer.Exit(ExitCode.USER_ERROR)

    if json_output:
        typer.echo(json.dumps(data.to_dict(), indent=2))
        return

    console.print(
        f"[bold]{data.sprint_name}[/bold]  {data.start_date} → {data.end_date}  "
        f"({data.remaining_points:g}/{data.total_points:g} pts, "
        f"{data.remaining_tasks}/{data.total_tasks} tasks remaining)"
    )
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Date")
    table.add_column("Ideal", justify="right")
    table.add_column("Actual", justify="right")
    actual = {p.date: p for p in data.actual}
    for point in data.ideal:
        remaining = actual.get(point.date)
        table.add_row(
            point.date.isoformat(),
            f"{point.points:g}",
            f"{remaining.remaining_points:g}" if remaining else "",
        )
    console.print(table)


def velocity(
    file: Annotated[Path, typer.Argument(help="Document file")],
) -> None:
    """Show points delivered by each completed sprint and the average."""
    doc = read_document(file)
    result = calculate_velocity(doc)

    if not result.sprints:
        console.print("[dim]No completed sprints yet[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Sprint")
    table.add_column("Points", justify="right")
    for sprint in result.sprints:
        table.add_row(sprint.name or sprint.id, f"{sprint.points:g}")
    console.print(table)
    console.print(f"Average velocity: [bold]{result.average}[/bold] pts")


def milestones(
    file: Annotated[Path, typer.Argument(help="Document file")],
    today: Annotated[
        str | None,
        typer.Option("--today", help="Evaluate as of this date (YYYY-MM-DD)"),
    ] = None,
) -> None:
    """Show every milestone with its deadline, progress and status."""
    as_of = _parse_today(today)
    doc = read_document(file)
    items = list_milestones(doc)

    if not items:
        console.print("[dim]No milestones[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Milestone", overflow="fold")
    table.add_column("Deadline")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    for milestone in items:
        progress = calculate_milestone_progress(milestone, doc)
        status = calculate_milestone_status(milestone, doc, as_of)
        style = STATUS_STYLES[status]
        table.add_row(
            milestone.id,
            milestone.name,
            milestone.milestone_deadline.isoformat() if milestone.milestone_deadline else "-",
            f"{progress.percent}% ({progress.completed}/{progress.total})",
            f"[{style}]{status.value}[/{style}]",
        )
    console.print(table)
