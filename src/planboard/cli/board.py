"""
Planboard CLI - board command.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from planboard.cli.common import read_document
from planboard.core.tasks.board import column_tasks, wip_exceeded

console = Console()


def board(
    file: Annotated[
        Path | None,
        typer.Argument(help="Document file (defaults to the configured document)"),
    ] = None,
    show_tasks: Annotated[
        bool,
        typer.Option("--tasks", "-t", help="List the tasks in each column"),
    ] = False,
) -> None:
    """
    Show the board columns with their task counts.

    Examples:
        planboard board plan.json
        planboard board plan.json --tasks
    """
    doc = read_document(file)

    table = Table(show_header=True, header_style="bold cyan", title=doc.project.title)
    table.add_column("Column")
    table.add_column("Tasks", justify="right")
    table.add_column("WIP", justify="right")
    if show_tasks:
        table.add_column("Items", overflow="fold")

    for column in doc.workflow.ordered():
        tasks = column_tasks(doc, column.id)
        count = str(len(tasks))
        if wip_exceeded(doc, column.id):
            count = f"[red]{count}[/red]"
        row = [
            column.name,
            count,
            str(column.wip_limit) if column.wip_limit else "-",
        ]
        if show_tasks:
            row.append("\n".join(f"{t.id}  {t.name}" for t in tasks))
        table.add_row(*row)

    console.print(table)
