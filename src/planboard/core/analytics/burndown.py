"""
Sprint burndown.

The actual line is rebuilt from each task's ``completed_at`` timestamp, so
no per-day snapshots are kept in the document. A task is remaining on day
D unless it was completed by 23:59:59.999 UTC that day.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

from planboard.core.document.models import Document, Sprint, Task

from .points import calculate_sprint_points

DEFAULT_SPRINT_DAYS = 14
END_OF_DAY = time(23, 59, 59, 999000, tzinfo=timezone.utc)


@dataclass
class IdealPoint:
    date: date
    points: float
    tasks: float


@dataclass
class ActualPoint:
    date: date
    remaining_points: float
    remaining_tasks: int


@dataclass
class BurndownData:
    sprint_id: str
    sprint_name: str
    start_date: date
    end_date: date
    total_points: float
    total_tasks: int
    remaining_points: float
    remaining_tasks: int
    days_elapsed: int
    days_remaining: int
    total_days: int
    ideal: list[IdealPoint] = field(default_factory=list)
    actual: list[ActualPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("start_date", "end_date"):
            data[key] = data[key].isoformat()
        for point in data["ideal"] + data["actual"]:
            point["date"] = point["date"].isoformat()
        return data


def sprint_range(sprint: Sprint, today: date | None = None) -> tuple[date, date]:
    """First and last day of a sprint; a missing end means two weeks from start."""
    start = sprint.start_date or today or date.today()
    end = sprint.end_date or start + timedelta(days=DEFAULT_SPRINT_DAYS - 1)
    return start, end


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_remaining(task: Task, day: date) -> bool:
    if task.completed_at is None:
        return True
    return _as_utc(task.completed_at) > datetime.combine(day, END_OF_DAY)


def calculate_ideal_burndown(
    start: date, end: date, total_points: float, total_tasks: int
) -> list[IdealPoint]:
    """
    Straight line from the totals on the first day to zero on the last.

    Example:
        >>> [p.points for p in calculate_ideal_burndown(date(2026, 3, 2), date(2026, 3, 4), 5, 2)]
        [5.0, 2.5, 0.0]
    """
    days = (end - start).days + 1
    if days <= 0:
        return []

    ideal = []
    for i in range(days):
        remaining = 1 - i / (days - 1) if days > 1 else 0.0
        ideal.append(
            IdealPoint(
                date=start + timedelta(days=i),
                points=round(total_points * remaining, 1),
                tasks=round(total_tasks * remaining, 1),
            )
        )
    return ideal


def calculate_actual_burndown(
    tasks: list[Task], start: date, end: date, today: date | None = None
) -> list[ActualPoint]:
    """Remaining work per day from *start* through the earlier of *end* and *today*."""
    last = min(end, today or date.today())
    actual = []
    day = start
    while day <= last:
        remaining = [t for t in tasks if is_remaining(t, day)]
        actual.append(
            ActualPoint(
                date=day,
                remaining_points=sum(t.story_points or 0 for t in remaining),
                remaining_tasks=len(remaining),
            )
        )
        day += timedelta(days=1)
    return actual


def get_burndown(doc: Document, sprint_id: str, today: date | None = None) -> BurndownData | None:
    """
    Everything a burndown chart needs for one sprint.

    Returns:
        BurndownData, or None if the sprint does not exist
    """
    sprint = doc.get_sprint(sprint_id)
    if sprint is None:
        return None

    today = today or date.today()
    start, end = sprint_range(sprint, today)
    tasks = [t for t in doc.tasks if t.sprint_id == sprint_id]
    open_tasks = [t for t in tasks if not t.is_done]
    totals = calculate_sprint_points(tasks)

    return BurndownData(
        sprint_id=sprint.id,
        sprint_name=sprint.name,
        start_date=start,
        end_date=end,
        total_points=totals.total,
        total_tasks=len(tasks),
        remaining_points=calculate_sprint_points(open_tasks).total,
        remaining_tasks=len(open_tasks),
        days_elapsed=max(0, (today - start).days),
        days_remaining=max(0, (end - today).days + 1),
        total_days=(end - start).days + 1,
        ideal=calculate_ideal_burndown(start, end, totals.total, len(tasks)),
        actual=calculate_actual_burndown(tasks, start, end, today),
    )
