"""
Progress/board sync engine.

The timeline view edits ``planned``/``reality`` (week numbers); the board
view edits ``board.column_id``. The two directions are deliberately not
inverses of each other:

* Timeline edits always recompute the column from progress.
* Board moves record completion time and may seed ``reality``, but never
  fill it in; a task can be done in fewer (or other) weeks than planned.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from planboard.core.document.models import DONE, IN_PROGRESS, Task, derive_column

logger = logging.getLogger(__name__)


class TimelineStatus(str, Enum):
    """Per-task schedule status as shown on the timeline."""

    COMPLETE = "complete"
    AHEAD = "ahead"
    ON_TRACK = "on-track"
    BEHIND = "behind"
    NOT_STARTED = "not-started"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_column_from_progress(task: Task) -> str:
    """
    Derive the board column from a task's progress.

    Depends on ``planned`` and ``reality`` only.

    Example:
        >>> derive_column_from_progress(Task(planned=[1, 2, 3], reality=[1, 2, 3]))
        'done'
        >>> derive_column_from_progress(Task(planned=[1, 2, 3], reality=[1, 2]))
        'in-progress'
    """
    return derive_column(task.planned, task.reality)


def sync_gantt_to_kanban(task: Task, now: datetime | None = None) -> bool:
    """
    Apply a timeline-origin edit to the board.

    Recomputes the column from progress. Entering ``done`` stamps
    ``completed_at``; leaving it clears the stamp.

    Args:
        task: Task whose planned/reality just changed
        now: Completion instant to record (defaults to the current UTC time)

    Returns:
        True if the column changed
    """
    old_column = task.board.column_id
    new_column = derive_column_from_progress(task)
    if old_column == new_column:
        return False

    task.board.column_id = new_column
    if new_column == DONE:
        task.completed_at = now or _utcnow()
        logger.debug("Synced task %s to done, set completedAt", task.id)
    elif old_column == DONE:
        task.completed_at = None
        logger.debug("Synced task %s out of done, cleared completedAt", task.id)
    else:
        logger.debug("Synced task %s to column %s", task.id, new_column)
    return True


def sync_kanban_to_gantt(
    task: Task,
    new_column_id: str,
    current_week: int | None,
    now: datetime | None = None,
) -> None:
    """
    Apply a board move to the task's progress fields.

    * Into ``done``: stamp ``completed_at``; ``reality`` is left alone.
    * Out of ``done``: clear ``completed_at``.
    * Into ``in-progress`` from a column other than ``done`` with nothing
      worked yet: seed ``reality`` with the current week.
    * Any other move touches neither ``planned`` nor ``reality``.

    Sets ``board.column_id``; position bookkeeping is the caller's job.
    """
    old_column = task.board.column_id

    if new_column_id == DONE and old_column != DONE:
        task.completed_at = now or _utcnow()
        logger.debug("Moved task %s to done at %s", task.id, task.completed_at)

    if new_column_id != DONE and old_column == DONE:
        task.completed_at = None
        logger.debug("Moved task %s out of done, cleared completedAt", task.id)

    if (
        new_column_id == IN_PROGRESS
        and old_column not in (IN_PROGRESS, DONE)
        and not task.reality
        and current_week
    ):
        task.reality = [current_week]
        logger.debug("Started task %s in week %d", task.id, current_week)

    task.board.column_id = new_column_id


def derive_timeline_status(task: Task, current_week: int | None) -> TimelineStatus:
    """
    Schedule status of a task relative to the current week.

    Compares the weeks worked so far with the weeks planned so far.
    """
    if not current_week or not task.planned:
        return TimelineStatus.NOT_STARTED

    if all(week in task.reality for week in task.planned):
        return TimelineStatus.COMPLETE

    planned_so_far = [w for w in task.planned if w <= current_week]
    worked_so_far = [w for w in task.reality if w <= current_week]

    if len(worked_so_far) > len(planned_so_far):
        return TimelineStatus.AHEAD
    if planned_so_far and len(worked_so_far) >= len(planned_so_far):
        return TimelineStatus.ON_TRACK
    if current_week < min(task.planned):
        return TimelineStatus.NOT_STARTED
    if planned_so_far:
        return TimelineStatus.BEHIND
    return TimelineStatus.NOT_STARTED
