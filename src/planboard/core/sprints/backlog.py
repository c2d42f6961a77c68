"""
Sprint planning: sprint CRUD and backlog/sprint ordering.

``backlog_position`` orders tasks within their group: the product backlog
(``sprint_id is None``) or one sprint. Each group is kept dense (0..n-1)
independently of the others.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from planboard.core.document.models import Document, Sprint, SprintStatus, Task, generate_id
from planboard.core.tasks.timeline import sprint_weeks

logger = logging.getLogger(__name__)

# Length of a sprint created without an end date
DEFAULT_SPRINT_DAYS = 14


def product_backlog(doc: Document) -> list[Task]:
    """Tasks not assigned to any sprint, in backlog order."""
    return sorted((t for t in doc.tasks if t.sprint_id is None), key=lambda t: t.backlog_position)


def sprint_tasks(doc: Document, sprint_id: str) -> list[Task]:
    return sorted((t for t in doc.tasks if t.sprint_id == sprint_id), key=lambda t: t.backlog_position)


def _group(doc: Document, sprint_id: str | None) -> list[Task]:
    return product_backlog(doc) if sprint_id is None else sprint_tasks(doc, sprint_id)


def renumber_group(doc: Document, sprint_id: str | None) -> None:
    """Make one group's positions dense, keeping their relative order."""
    for index, task in enumerate(_group(doc, sprint_id)):
        task.backlog_position = index


def normalize_backlog(doc: Document) -> None:
    """Renumber the product backlog and every sprint group."""
    for sprint_id in {t.sprint_id for t in doc.tasks}:
        renumber_group(doc, sprint_id)


def _place(doc: Document, task: Task, sprint_id: str | None, position: int | None) -> None:
    """Insert *task* into a group at *position* (end when None) and renumber."""
    source = task.sprint_id
    task.sprint_id = sprint_id

    members = [t for t in _group(doc, sprint_id) if t.id != task.id]
    index = len(members) if position is None else max(0, min(position, len(members)))
    members.insert(index, task)
    for i, t in enumerate(members):
        t.backlog_position = i

    if source != sprint_id:
        renumber_group(doc, source)


# ----------------------------------------------------------------------
# Sprint CRUD
# ----------------------------------------------------------------------


def create_sprint(
    doc: Document,
    name: str | None = None,
    goal: str = "",
    start_date: date | None = None,
    end_date: date | None = None,
    status: SprintStatus = SprintStatus.PLANNING,
    today: date | None = None,
) -> Sprint:
    """
    Create a sprint.

    Without dates the sprint starts *today* and runs two weeks.

    Args:
        doc: Document to mutate
        name: Sprint name (defaults to "Sprint N")
        goal: Sprint goal
        start_date: First day of the sprint
        end_date: Last day of the sprint
        status: Initial status
        today: Reference date for defaults

    Returns:
        The created Sprint
    """
    start = start_date or today or date.today()
    end = end_date or start + timedelta(days=DEFAULT_SPRINT_DAYS - 1)
    sprint = Sprint(
        id=generate_id("sprint"),
        name=(name or "").strip() or f"Sprint {len(doc.sprints) + 1}",
        goal=goal,
        start_date=start,
        end_date=end,
        status=status,
    )
    doc.sprints.append(sprint)
    return sprint


def update_sprint(
    doc: Document,
    sprint_id: str,
    name: str | None = None,
    goal: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    status: SprintStatus | None = None,
) -> bool:
    sprint = doc.get_sprint(sprint_id)
    if sprint is None:
        return False
    if name is not None and name.strip():
        sprint.name = name.strip()
    if goal is not None:
        sprint.goal = goal
    if start_date is not None:
        sprint.start_date = start_date
    if end_date is not None:
        sprint.end_date = end_date
    if status is not None:
        sprint.status = status
    return True


def delete_sprint(doc: Document, sprint_id: str) -> bool:
    """Delete a sprint; its tasks return to the end of the product backlog."""
    if doc.get_sprint(sprint_id) is None:
        return False

    for task in sprint_tasks(doc, sprint_id):
        _place(doc, task, None, None)
    for retro in doc.retrospectives:
        if retro.sprint_id == sprint_id:
            retro.sprint_id = None

    doc.sprints = [s for s in doc.sprints if s.id != sprint_id]
    return True


# ----------------------------------------------------------------------
# Task movement
# ----------------------------------------------------------------------


def move_task_to_sprint(
    doc: Document, task_id: str, sprint_id: str, position: int | None = 0
) -> bool:
    """
    Assign a task to a sprint at *position*.

    A task with no planned weeks gets the weeks the sprint spans.
    """
    task = doc.get_task(task_id)
    sprint = doc.get_sprint(sprint_id)
    if task is None or sprint is None:
        return False

    _place(doc, task, sprint_id, position)
    if not task.planned:
        task.planned = sprint_weeks(sprint, doc.project)
    return True


def move_task_to_backlog(doc: Document, task_id: str, position: int | None = None) -> bool:
    """Return a task to the product backlog (at the end unless *position* is given)."""
    task = doc.get_task(task_id)
    if task is None:
        return False
    _place(doc, task, None, position)
    return True


def reorder_backlog_item(doc: Document, task_id: str, new_position: int) -> bool:
    task = doc.get_task(task_id)
    if task is None or task.sprint_id is not None:
        return False
    _place(doc, task, None, new_position)
    return True


def reorder_sprint_item(doc: Document, task_id: str, new_position: int) -> bool:
    task = doc.get_task(task_id)
    if task is None or task.sprint_id is None:
        return False
    _place(doc, task, task.sprint_id, new_position)
    return True


def active_sprint(doc: Document) -> Sprint | None:
    return next((s for s in doc.sprints if s.status == SprintStatus.ACTIVE), None)
