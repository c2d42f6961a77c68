"""
Board placement: task create/move/delete and workflow column management.

Every operation leaves ``board.position`` dense (0..n-1) within each
column. Moves between columns go through the sync engine so completion
stamps and ``reality`` seeding follow the board rules.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime
from enum import Enum
from typing import Any

from planboard.core.document.models import (
    BACKLOG,
    DONE,
    BoardPlacement,
    Document,
    Task,
    WorkflowColumn,
    generate_id,
    is_default_column,
)

from .sync import derive_column_from_progress, sync_kanban_to_gantt

logger = logging.getLogger(__name__)

# Fields update_task may change directly
EDITABLE_FIELDS = frozenset(
    {"name", "category", "assignee", "assignee_id", "priority", "notes", "story_points"}
)


class ColumnResult(str, Enum):
    """Outcome of a workflow column change."""

    OK = "ok"
    NOT_FOUND = "not-found"
    PROTECTED = "protected"

    @property
    def ok(self) -> bool:
        return self is ColumnResult.OK


# ----------------------------------------------------------------------
# Position bookkeeping
# ----------------------------------------------------------------------


def column_tasks(doc: Document, column_id: str) -> list[Task]:
    """Tasks in a column, ordered by board position."""
    return sorted(
        (t for t in doc.tasks if t.board.column_id == column_id),
        key=lambda t: t.board.position,
    )


def reposition_column(doc: Document, column_id: str) -> None:
    """Renumber a column's positions densely, keeping their relative order."""
    for index, task in enumerate(column_tasks(doc, column_id)):
        task.board.position = index


def normalize_board(doc: Document) -> None:
    """
    Restore board invariants across the whole document.

    Tasks pointing at a column the workflow no longer has are appended to
    the backlog; then every column is renumbered.
    """
    known = {c.id for c in doc.workflow.columns}
    orphans = [t for t in doc.tasks if t.board.column_id not in known]
    if orphans:
        end = len(column_tasks(doc, BACKLOG))
        for offset, task in enumerate(orphans):
            logger.info(
                "Task %s referenced unknown column %s, moved to backlog",
                task.id,
                task.board.column_id,
            )
            task.board = BoardPlacement(column_id=BACKLOG, position=end + offset)

    for column_id in {t.board.column_id for t in doc.tasks}:
        reposition_column(doc, column_id)


def next_position(doc: Document, column_id: str) -> int:
    return sum(1 for t in doc.tasks if t.board.column_id == column_id)


def _next_backlog_position(doc: Document, sprint_id: str | None) -> int:
    return sum(1 for t in doc.tasks if t.sprint_id == sprint_id)


# ----------------------------------------------------------------------
# Task CRUD
# ----------------------------------------------------------------------


def add_task(
    doc: Document,
    name: str,
    category: str | None = None,
    column_id: str = BACKLOG,
    planned: list[int] | None = None,
    **fields: Any,
) -> Task | None:
    """
    Create a task at the end of a column and of the product backlog.

    Args:
        doc: Document to mutate
        name: Task name (blank names are rejected)
        category: Category name (defaults to the first category)
        column_id: Board column to place the task in
        planned: Planned week numbers
        **fields: Extra task fields (assignee, priority, notes, ...)

    Returns:
        The new Task, or None if the name is blank or the column unknown
    """
    if not name or not name.strip():
        return None
    if doc.workflow.get_column(column_id) is None:
        return None

    task = Task(
        id=generate_id("task"),
        name=name.strip(),
        category=category or next(iter(doc.categories), "General"),
        planned=sorted(set(planned or [])),
        board=BoardPlacement(column_id=column_id, position=next_position(doc, column_id)),
        backlog_position=_next_backlog_position(doc, None),
        **fields,
    )
    doc.tasks.append(task)
    return task


def update_task(doc: Document, task_id: str, **updates: Any) -> bool:
    """Set simple task fields; unknown field names are ignored."""
    task = doc.get_task(task_id)
    if task is None:
        return False
    for name, value in updates.items():
        if name in EDITABLE_FIELDS:
            setattr(task, name, value)
    return True


def delete_task(doc: Document, task_id: str) -> bool:
    """
    Remove a task and every reference to it.

    The source column and backlog group are renumbered, and the id is
    pruned from other tasks' dependency lists.
    """
    task = doc.get_task(task_id)
    if task is None:
        return False

    doc.tasks = [t for t in doc.tasks if t.id != task_id]
    for other in doc.tasks:
        if task_id in other.dependencies:
            other.dependencies = [d for d in other.dependencies if d != task_id]
        if task_id in other.milestone_dependencies:
            other.milestone_dependencies = [
                d for d in other.milestone_dependencies if d != task_id
            ]
    for entry in doc.time_entries:
        if entry.task_id == task_id:
            entry.task_id = None

    reposition_column(doc, task.board.column_id)
    _renumber_backlog_group(doc, task.sprint_id)
    return True


def duplicate_task(doc: Document, task_id: str) -> Task | None:
    """
    Copy a task with its plan but no progress.

    The copy gets a new id, an empty ``reality``, the column derived from
    its progress, and goes to the end of the product backlog.
    """
    source = doc.get_task(task_id)
    if source is None:
        return None

    clone = copy.deepcopy(source)
    clone.id = generate_id("task")
    clone.name = f"{source.name} (copy)"
    clone.reality = []
    clone.completed_at = None
    clone.sprint_id = None
    clone.backlog_position = _next_backlog_position(doc, None)
    column_id = derive_column_from_progress(clone)
    clone.board = BoardPlacement(column_id=column_id, position=next_position(doc, column_id))

    index = doc.tasks.index(source)
    doc.tasks.insert(index + 1, clone)
    return clone


def move_task(
    doc: Document,
    task_id: str,
    column_id: str,
    position: int,
    current_week: int | None,
    now: datetime | None = None,
) -> bool:
    """
    Move a task to a column and position on the board.

    Applies the board-origin sync rules, then makes room at ``position``
    in the target column (clamped to its bounds) and renumbers the source
    column.

    Returns:
        False if the task or column does not exist
    """
    task = doc.get_task(task_id)
    if task is None or doc.workflow.get_column(column_id) is None:
        return False

    source_column = task.board.column_id
    sync_kanban_to_gantt(task, column_id, current_week, now=now)

    others = [t for t in column_tasks(doc, column_id) if t.id != task_id]
    position = max(0, min(position, len(others)))
    others.insert(position, task)
    for index, t in enumerate(others):
        t.board.position = index

    if source_column != column_id:
        reposition_column(doc, source_column)
    return True


def _renumber_backlog_group(doc: Document, sprint_id: str | None) -> None:
    group = sorted(
        (t for t in doc.tasks if t.sprint_id == sprint_id),
        key=lambda t: t.backlog_position,
    )
    for index, task in enumerate(group):
        task.backlog_position = index


# ----------------------------------------------------------------------
# Workflow columns
# ----------------------------------------------------------------------


def _renumber_columns(doc: Document) -> None:
    """Number columns in list order; callers set the list in the order they want."""
    for index, column in enumerate(doc.workflow.columns):
        column.position = index


def add_column(doc: Document, name: str, color: str = "#7c7c8a") -> WorkflowColumn | None:
    """
    Add a custom column just before ``done``.

    Returns:
        The new column, or None if the name is blank
    """
    if not name or not name.strip():
        return None

    ordered = doc.workflow.ordered()
    done_index = next((i for i, c in enumerate(ordered) if c.id == DONE), len(ordered))
    column = WorkflowColumn(id=generate_id("col"), name=name.strip(), color=color)
    ordered.insert(done_index, column)
    doc.workflow.columns = ordered
    _renumber_columns(doc)
    return column


def update_column(
    doc: Document,
    column_id: str,
    name: str | None = None,
    color: str | None = None,
    wip_limit: int | None = None,
) -> bool:
    column = doc.workflow.get_column(column_id)
    if column is None:
        return False
    if name is not None and name.strip():
        column.name = name.strip()
    if color is not None:
        column.color = color
    if wip_limit is not None:
        # 0 clears the limit
        column.wip_limit = wip_limit or None
    return True


def delete_column(doc: Document, column_id: str) -> ColumnResult:
    """
    Delete a custom column.

    Protected columns are rejected without change. Tasks in the deleted
    column are appended to the backlog in their board order.
    """
    if is_default_column(column_id):
        return ColumnResult.PROTECTED
    if doc.workflow.get_column(column_id) is None:
        return ColumnResult.NOT_FOUND

    displaced = column_tasks(doc, column_id)
    start = next_position(doc, BACKLOG)
    for offset, task in enumerate(displaced):
        task.board = BoardPlacement(column_id=BACKLOG, position=start + offset)

    doc.workflow.columns = [c for c in doc.workflow.ordered() if c.id != column_id]
    _renumber_columns(doc)
    logger.debug("Deleted column %s, moved %d task(s) to backlog", column_id, len(displaced))
    return ColumnResult.OK


def reorder_column(doc: Document, column_id: str, new_position: int) -> bool:
    """Move a column to a new position in the workflow order."""
    ordered = doc.workflow.ordered()
    column = doc.workflow.get_column(column_id)
    if column is None:
        return False
    ordered.remove(column)
    ordered.insert(max(0, min(new_position, len(ordered))), column)
    doc.workflow.columns = ordered
    _renumber_columns(doc)
    return True


def wip_exceeded(doc: Document, column_id: str) -> bool:
    """True when WIP limits are enabled and the column is over its limit."""
    column = doc.workflow.get_column(column_id)
    if column is None or not doc.workflow.enable_wip_limits or not column.wip_limit:
        return False
    return len(column_tasks(doc, column_id)) > column.wip_limit
