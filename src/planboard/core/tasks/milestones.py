"""
Milestone edits.

A milestone is a Task with ``is_milestone=True``. Its
``milestone_dependencies`` form an unordered completion set over the task
id space; unlike scheduling dependencies they are not checked for cycles.
"""

from __future__ import annotations

from datetime import date

from planboard.core.document.models import (
    BACKLOG,
    BoardPlacement,
    Document,
    MilestoneStatus,
    Task,
    generate_id,
)

from .board import next_position


def get_milestone(doc: Document, milestone_id: str) -> Task | None:
    task = doc.get_task(milestone_id)
    if task is None or not task.is_milestone:
        return None
    return task


def list_milestones(doc: Document) -> list[Task]:
    """Milestones sorted by deadline; undated milestones come last."""
    return sorted(
        (t for t in doc.tasks if t.is_milestone),
        key=lambda t: (t.milestone_deadline is None, t.milestone_deadline or date.max),
    )


def create_milestone(
    doc: Document,
    name: str = "New Milestone",
    deadline: date | None = None,
    dependencies: list[str] | None = None,
    notes: str = "",
) -> Task:
    """
    Create a milestone task in the backlog.

    Dependency ids that do not resolve to a task are dropped.
    """
    known = doc.task_ids()
    milestone = Task(
        id=generate_id("task"),
        name=name or "New Milestone",
        category=next(iter(doc.categories), "General"),
        is_milestone=True,
        board=BoardPlacement(column_id=BACKLOG, position=next_position(doc, BACKLOG)),
        backlog_position=sum(1 for t in doc.tasks if t.sprint_id is None),
        milestone_deadline=deadline,
        milestone_dependencies=[d for d in dict.fromkeys(dependencies or []) if d in known],
        milestone_notes=notes,
    )
    doc.tasks.append(milestone)
    return milestone


def convert_task_to_milestone(doc: Document, task_id: str) -> Task | None:
    task = doc.get_task(task_id)
    if task is None:
        return None
    task.is_milestone = True
    return task


def demote_milestone(doc: Document, milestone_id: str) -> bool:
    """Turn a milestone back into an ordinary task, clearing milestone fields."""
    milestone = get_milestone(doc, milestone_id)
    if milestone is None:
        return False
    milestone.is_milestone = False
    milestone.milestone_deadline = None
    milestone.milestone_dependencies = []
    milestone.milestone_progress_override = None
    milestone.milestone_status_override = None
    milestone.milestone_notes = ""
    return True


def add_milestone_dependency(doc: Document, milestone_id: str, task_id: str) -> bool:
    """
    Track *task_id* as part of a milestone.

    Returns:
        False when the milestone or task is unknown, or the task is the
        milestone itself
    """
    milestone = get_milestone(doc, milestone_id)
    if milestone is None or task_id == milestone_id or doc.get_task(task_id) is None:
        return False
    if task_id not in milestone.milestone_dependencies:
        milestone.milestone_dependencies.append(task_id)
    return True


def remove_milestone_dependency(doc: Document, milestone_id: str, task_id: str) -> bool:
    milestone = get_milestone(doc, milestone_id)
    if milestone is None or task_id not in milestone.milestone_dependencies:
        return False
    milestone.milestone_dependencies = [
        d for d in milestone.milestone_dependencies if d != task_id
    ]
    return True


def set_milestone_dependencies(doc: Document, milestone_id: str, task_ids: list[str]) -> bool:
    """Replace the completion set; unknown ids and the milestone itself are skipped."""
    milestone = get_milestone(doc, milestone_id)
    if milestone is None:
        return False
    known = doc.task_ids() - {milestone_id}
    milestone.milestone_dependencies = [t for t in dict.fromkeys(task_ids) if t in known]
    return True


def set_milestone_deadline(doc: Document, milestone_id: str, deadline: date | None) -> bool:
    milestone = get_milestone(doc, milestone_id)
    if milestone is None:
        return False
    milestone.milestone_deadline = deadline
    return True


def set_progress_override(doc: Document, milestone_id: str, percent: int | None) -> bool:
    """Pin the reported progress (0-100), or clear the pin with None."""
    milestone = get_milestone(doc, milestone_id)
    if milestone is None:
        return False
    if percent is not None and not 0 <= percent <= 100:
        return False
    milestone.milestone_progress_override = percent
    return True


def set_status_override(
    doc: Document, milestone_id: str, status: MilestoneStatus | None
) -> bool:
    """Pin the reported status, or clear the pin with None."""
    milestone = get_milestone(doc, milestone_id)
    if milestone is None:
        return False
    milestone.milestone_status_override = status
    return True
