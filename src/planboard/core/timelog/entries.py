"""
Time log: entry CRUD, duration derivation and summaries.

Times are ``HH:MM`` strings. ``duration_minutes`` is derived from the two
times and stored; an end time earlier than the start wraps past midnight.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from planboard.core.document.models import Document, Task, TimeEntry, generate_id

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

UNCATEGORIZED = "Uncategorized"
UNCATEGORIZED_COLOR = "#7c7c8a"


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class TaskTimeGroup:
    """Entries logged against one task (``task`` is None for unlinked entries)."""

    task: Task | None
    total_minutes: int = 0
    entries: list[TimeEntry] = field(default_factory=list)


@dataclass
class CategoryTimeGroup:
    category: str
    color: str
    total_minutes: int = 0
    entries: list[TimeEntry] = field(default_factory=list)


def calculate_duration(start_time: str, end_time: str) -> int:
    """
    Minutes between two ``HH:MM`` times, wrapping overnight.

    Example:
        >>> calculate_duration("22:30", "01:00")
        150
    """
    if not start_time or not end_time:
        return 0
    start_hour, start_min = (int(p) for p in start_time.split(":"))
    end_hour, end_min = (int(p) for p in end_time.split(":"))
    start = start_hour * 60 + start_min
    end = end_hour * 60 + end_min
    if end < start:
        end += 24 * 60
    return end - start


def _is_iso_date(value: str) -> bool:
    if not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_time_entry(
    entry_date: date | str | None,
    start_time: str | None,
    end_time: str | None,
) -> ValidationResult:
    """Check required fields and their formats."""
    result = ValidationResult()

    if not entry_date:
        result.errors.append("Date is required")
    elif isinstance(entry_date, str) and not _is_iso_date(entry_date):
        result.errors.append("Invalid date format")

    if not start_time:
        result.errors.append("Start time is required")
    elif not TIME_PATTERN.match(start_time):
        result.errors.append("Invalid start time format")

    if not end_time:
        result.errors.append("End time is required")
    elif not TIME_PATTERN.match(end_time):
        result.errors.append("Invalid end time format")

    return result


def add_time_entry(
    doc: Document,
    entry_date: date | str,
    start_time: str,
    end_time: str,
    task_id: str | None = None,
    notes: str = "",
    billable: bool = False,
) -> TimeEntry | None:
    """
    Log a time entry.

    Returns:
        The new entry, or None when validation fails or the task is unknown
    """
    validation = validate_time_entry(entry_date, start_time, end_time)
    if not validation.valid:
        logger.debug("Rejected time entry: %s", "; ".join(validation.errors))
        return None
    if task_id and doc.get_task(task_id) is None:
        return None

    entry = TimeEntry(
        id=generate_id("time"),
        task_id=task_id or None,
        date=entry_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=calculate_duration(start_time, end_time),
        notes=notes,
        billable=billable,
    )
    doc.time_entries.append(entry)
    return entry


def get_time_entry(doc: Document, entry_id: str) -> TimeEntry | None:
    return next((e for e in doc.time_entries if e.id == entry_id), None)


def update_time_entry(doc: Document, entry_id: str, **updates: Any) -> bool:
    """
    Update an entry; duration is recomputed when either time changes.

    Accepts ``task_id``, ``date``, ``start_time``, ``end_time``, ``notes``
    and ``billable``. The result must still validate, otherwise nothing
    is changed.
    """
    entry = get_time_entry(doc, entry_id)
    if entry is None:
        return False

    start_time = updates.get("start_time", entry.start_time)
    end_time = updates.get("end_time", entry.end_time)
    entry_date = updates.get("date", entry.date)
    if not validate_time_entry(entry_date, start_time, end_time).valid:
        return False

    if "task_id" in updates:
        entry.task_id = updates["task_id"] or None
    if "date" in updates:
        entry.date = date.fromisoformat(entry_date) if isinstance(entry_date, str) else entry_date
    for name in ("notes", "billable"):
        if name in updates:
            setattr(entry, name, updates[name])
    if "start_time" in updates or "end_time" in updates:
        entry.start_time = start_time
        entry.end_time = end_time
        entry.duration_minutes = calculate_duration(start_time, end_time)
    return True


def delete_time_entry(doc: Document, entry_id: str) -> bool:
    if get_time_entry(doc, entry_id) is None:
        return False
    doc.time_entries = [e for e in doc.time_entries if e.id != entry_id]
    return True


# ----------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------


def entries_for_date(doc: Document, day: date) -> list[TimeEntry]:
    """Entries on one day, by start time."""
    return sorted((e for e in doc.time_entries if e.date == day), key=lambda e: e.start_time)


def entries_for_range(doc: Document, start: date, end: date) -> list[TimeEntry]:
    """Entries between two dates inclusive, by date then start time."""
    return sorted(
        (e for e in doc.time_entries if start <= e.date <= end),
        key=lambda e: (e.date, e.start_time),
    )


def entries_for_task(doc: Document, task_id: str) -> list[TimeEntry]:
    return sorted((e for e in doc.time_entries if e.task_id == task_id), key=lambda e: e.date)


def total_minutes(entries: list[TimeEntry]) -> int:
    return sum(e.duration_minutes for e in entries)


def format_duration(minutes: int) -> str:
    """
    Format minutes as ``"2h 30m"``, ``"2h"`` or ``"45m"``.

    Example:
        >>> format_duration(150)
        '2h 30m'
    """
    if minutes == 0:
        return "0m"
    hours, rest = divmod(minutes, 60)
    if hours == 0:
        return f"{rest}m"
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def group_entries_by_task(doc: Document, entries: list[TimeEntry]) -> list[TaskTimeGroup]:
    """Per-task totals, largest first."""
    groups: dict[str | None, TaskTimeGroup] = {}
    for entry in entries:
        group = groups.get(entry.task_id)
        if group is None:
            task = doc.get_task(entry.task_id) if entry.task_id else None
            group = groups[entry.task_id] = TaskTimeGroup(task=task)
        group.total_minutes += entry.duration_minutes
        group.entries.append(entry)
    return sorted(groups.values(), key=lambda g: g.total_minutes, reverse=True)


def group_entries_by_category(
    doc: Document, entries: list[TimeEntry]
) -> list[CategoryTimeGroup]:
    """Per-category totals (via each entry's task), largest first."""
    groups: dict[str, CategoryTimeGroup] = {}
    for entry in entries:
        category, color = UNCATEGORIZED, UNCATEGORIZED_COLOR
        task = doc.get_task(entry.task_id) if entry.task_id else None
        if task is not None and task.category:
            category = task.category
            color = doc.categories.get(category, UNCATEGORIZED_COLOR)

        group = groups.get(category)
        if group is None:
            group = groups[category] = CategoryTimeGroup(category=category, color=color)
        group.total_minutes += entry.duration_minutes
        group.entries.append(entry)
    return sorted(groups.values(), key=lambda g: g.total_minutes, reverse=True)
