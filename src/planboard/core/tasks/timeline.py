"""
Timeline edits and week arithmetic.

Weeks are numbered from 1, starting on the project's start date. Every
edit here changes ``planned`` or ``reality`` and then recomputes the board
column, which is the only direction the timeline syncs in.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Literal

from planboard.core.document.models import Document, Project, Sprint, Task

from .board import next_position, reposition_column
from .sync import sync_gantt_to_kanban

WeekKind = Literal["planned", "reality"]


# ----------------------------------------------------------------------
# Week arithmetic
# ----------------------------------------------------------------------


def current_week(project: Project, today: date | None = None) -> int | None:
    """
    Week number containing *today*, or None outside the project range.

    Example:
        >>> project = Project(start_date=date(2026, 3, 2), total_weeks=13)
        >>> current_week(project, date(2026, 3, 9))
        2
    """
    today = today or date.today()
    week = (today - project.start_date).days // 7 + 1
    if 1 <= week <= project.total_weeks:
        return week
    return None


def weeks_between(start: date, end: date) -> int:
    """Number of (possibly partial) weeks covering start..end inclusive."""
    days = (end - start).days + 1
    return max(0, math.ceil(days / 7))


def week_start_date(project: Project, week: int) -> date:
    return project.start_date + timedelta(weeks=week - 1)


def week_end_date(project: Project, week: int) -> date:
    return week_start_date(project, week) + timedelta(days=6)


def sprint_week_number(sprint: Sprint, project: Project) -> int:
    """Project week in which a sprint starts (1 if the sprint has no date)."""
    if sprint.start_date is None:
        return 1
    return (sprint.start_date - project.start_date).days // 7 + 1


def sprint_weeks(sprint: Sprint, project: Project) -> list[int]:
    """Project weeks a sprint spans, clipped to week 1 and later."""
    if sprint.start_date is None or sprint.end_date is None:
        return []
    first = sprint_week_number(sprint, project)
    last = (sprint.end_date - project.start_date).days // 7 + 1
    return [w for w in range(first, last + 1) if w >= 1]


def set_project_dates(doc: Document, start: date, end: date) -> bool:
    """Set the project range; total weeks are derived from the dates."""
    if end < start:
        return False
    doc.project.start_date = start
    doc.project.end_date = end
    doc.project.total_weeks = weeks_between(start, end)
    return True


# ----------------------------------------------------------------------
# Edits
# ----------------------------------------------------------------------


def _after_progress_edit(doc: Document, task: Task, now: datetime | None) -> None:
    old_column = task.board.column_id
    if sync_gantt_to_kanban(task, now=now):
        task.board.position = next_position(doc, task.board.column_id) - 1
        reposition_column(doc, old_column)
        reposition_column(doc, task.board.column_id)


def toggle_week(
    doc: Document,
    task_id: str,
    week: int,
    kind: WeekKind,
    now: datetime | None = None,
) -> bool | None:
    """
    Add or remove one week from a task's planned or reality weeks.

    Returns:
        True if the week is now set, False if it was cleared, None if the
        task does not exist
    """
    task = doc.get_task(task_id)
    if task is None:
        return None

    weeks: list[int] = getattr(task, kind)
    if week in weeks:
        setattr(task, kind, [w for w in weeks if w != week])
        active = False
    else:
        setattr(task, kind, sorted([*weeks, week]))
        active = True

    _after_progress_edit(doc, task, now)
    return active


def fill_week_range(
    doc: Document,
    task_id: str,
    start_week: int,
    end_week: int,
    kind: WeekKind,
    adding: bool,
    now: datetime | None = None,
) -> bool:
    """Set or clear every week between two weeks (either order)."""
    task = doc.get_task(task_id)
    if task is None:
        return False

    low, high = sorted((start_week, end_week))
    span = set(range(low, high + 1))
    weeks = set(getattr(task, kind))
    weeks = weeks | span if adding else weeks - span
    setattr(task, kind, sorted(weeks))

    _after_progress_edit(doc, task, now)
    return True


def set_week_range(
    doc: Document,
    task_id: str,
    start_week: int,
    end_week: int,
    now: datetime | None = None,
) -> bool:
    """
    Replace a task's plan with a contiguous week range.

    Rejects ranges that start before week 1, run backwards or end after
    the project's last week.
    """
    task = doc.get_task(task_id)
    if task is None:
        return False
    if start_week < 1 or end_week < start_week or end_week > doc.project.total_weeks:
        return False

    task.planned = list(range(start_week, end_week + 1))
    _after_progress_edit(doc, task, now)
    return True


def copy_planned_to_reality(doc: Document, task_id: str, now: datetime | None = None) -> bool:
    """Mark every planned week as worked; False when nothing is planned."""
    task = doc.get_task(task_id)
    if task is None or not task.planned:
        return False

    task.reality = list(task.planned)
    _after_progress_edit(doc, task, now)
    return True
