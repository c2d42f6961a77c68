"""
Standardized error handling and exit codes for the planboard CLI.

Consistent error messages with actionable guidance and standard exit
codes across all commands.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for planboard CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or a check that found problems."""

    USER_ERROR = 2
    """Bad input the user can fix (missing file, unknown id, malformed document)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Document not found: plan.json",
        ...     solution="planboard migrate old.json --output plan.json",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_document_not_found_error(path: str) -> None:
    print_error(
        f"Document not found: {path}",
        reason="Pass the path of a project JSON file, or configure storage.directory",
    )


def print_task_not_found_error(task_id: str) -> None:
    """Print error when a task id does not resolve."""
    print_error(
        f"Task not found: {task_id}",
        reason="The task ID may be incorrect or the task may have been deleted",
        solution="planboard board FILE  # to see tasks by column",
    )


def print_sprint_not_found_error(sprint_id: str) -> None:
    print_error(
        f"Sprint not found: {sprint_id}",
        solution="planboard velocity FILE  # lists completed sprints",
    )
