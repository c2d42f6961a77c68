"""
Planboard CLI - dependency commands.

Add, remove and inspect task dependencies. Edits are rejected (and the
document left untouched) when they would create a cycle.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from planboard.cli.common import open_service, read_document
from planboard.cli.errors import ExitCode, print_error, print_task_not_found_error
from planboard.core.tasks.dependencies import (
    DependencyResult,
    add_dependency,
    remove_dependency,
)
from planboard.core.tasks.graph import DependencyGraph

app = typer.Typer(
    name="deps",
    help="Manage task dependencies",
    no_args_is_help=True,
)

console = Console()

_REJECTIONS = {
    DependencyResult.SELF_DEPENDENCY: "a task cannot depend on itself",
    DependencyResult.DUPLICATE: "the dependency already exists",
    DependencyResult.UNKNOWN_TASK: "one of the tasks does not exist",
    DependencyResult.CYCLE: "it would create a dependency cycle",
}


@app.command("add")
def add(
    file: Annotated[Path, typer.Argument(help="Document file")],
    task_id: Annotated[str, typer.Argument(help="Task that waits")],
    depends_on: Annotated[str, typer.Argument(help="Task it waits for")],
) -> None:
    """
    Make TASK_ID depend on DEPENDS_ON.

    Example:
        planboard deps add plan.json task_3 task_1
    """
    service = open_service(file)
    result = service.apply(lambda doc: add_dependency(doc, depends_on, task_id))
    if not result.ok:
        print_error(
            f"Cannot add dependency {depends_on} → {task_id}",
            reason=_REJECTIONS.get(result),
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    console.print(f"[green]✓[/green] {task_id} now depends on {depends_on}")


@app.command("remove")
def remove(
    file: Annotated[Path, typer.Argument(help="Document file")],
    task_id: Annotated[str, typer.Argument(help="Task that waits")],
    depends_on: Annotated[str, typer.Argument(help="Task it waits for")],
) -> None:
    """Remove the dependency of TASK_ID on DEPENDS_ON."""
    service = open_service(file)
    if not service.apply(lambda doc: remove_dependency(doc, depends_on, task_id)):
        print_error(f"{task_id} does not depend on {depends_on}")
        raise typer.Exit(ExitCode.USER_ERROR)
    console.print(f"[green]✓[/green] Removed {depends_on} → {task_id}")


@app.command("show")
def show(
    file: Annotated[Path, typer.Argument(help="Document file")],
    task_id: Annotated[
        str | None,
        typer.Argument(help="Show one task's predecessors and successors"),
    ] = None,
) -> None:
    """
    Show the dependency graph, or one task's neighbourhood.

    Examples:
        planboard deps show plan.json
        planboard deps show plan.json task_3
    """
    doc = read_document(file)
    graph = DependencyGraph(doc.tasks)

    if task_id is None:
        stats = graph.stats
        console.print(
            f"{stats['node_count']} tasks, {stats['edge_count']} dependencies, "
            f"longest chain {stats['max_chain_depth']}"
        )
        if graph.has_cycle():
            console.print("[red]✗[/red] The graph contains a cycle")
        for blocker, count in graph.root_blockers():
            console.print(f"  [yellow]{blocker}[/yellow] blocks {count} task(s)")
        for chain in graph.chains(limit=5):
            console.print("  " + " → ".join(chain))
        return

    task = doc.get_task(task_id)
    if task is None:
        print_task_not_found_error(task_id)
        raise typer.Exit(ExitCode.USER_ERROR)

    table = Table(show_header=True, header_style="bold cyan", title=f"{task.id} {task.name}")
    table.add_column("Relation")
    table.add_column("Tasks", overflow="fold")
    table.add_row("Waits for", ", ".join(graph.predecessors(task_id)) or "-")
    table.add_row("Blocks", ", ".join(graph.direct_successors(task_id)) or "-")
    table.add_row("Upstream", ", ".join(sorted(graph.transitive_predecessors(task_id))) or "-")
    table.add_row("Downstream", ", ".join(sorted(graph.transitive_successors(task_id))) or "-")
    table.add_row("Unblocks on completion", ", ".join(graph.would_become_ready(task_id)) or "-")
    console.print(table)
