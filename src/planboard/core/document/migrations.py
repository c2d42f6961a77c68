"""
Schema migration chain for the project document.

Each step upgrades a raw document (the parsed JSON dict) from version N-1
to version N. Steps are registered against their target version with the
``@migration`` decorator and chained by ``migrate_to_latest``:

    v3  legacy timeline (months, startWeek/endWeek)
    v4  week-based timeline (planned/reality)
    v5  board placement
    v6  sprints and backlog ordering
    v7  time log
    v8  sprint burndown snapshots (removed again at v10)
    v9  team members as objects, calendar settings
    v10 sprint calendar dates, assignee links
    v11 retrospectives

Steps work on plain dicts rather than models because their input is by
definition not the current shape. Every step tolerates missing or
malformed fields and only touches the fields it introduces.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

from .exceptions import MigrationGapError
from .models import (
    DONE,
    SCHEMA_VERSION,
    default_columns,
    derive_column,
    generate_id,
)

logger = logging.getLogger(__name__)

CURRENT_VERSION = SCHEMA_VERSION

# Oldest shape the chain understands
OLDEST_SUPPORTED_VERSION = 3

MigrationStep = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass(frozen=True)
class Migration:
    """A registered upgrade step to ``target`` from ``target - 1``."""

    target: int
    description: str
    func: MigrationStep

    def apply(self, data: dict[str, Any]) -> dict[str, Any]:
        return self.func(data)


# Registry of migration steps keyed by target version
_migrations: dict[int, Migration] = {}


def migration(target: int, description: str) -> Callable[[MigrationStep], MigrationStep]:
    """
    Decorator to register a migration step.

    Usage:
        @migration(7, "Add time log")
        def _add_time_entries(data):
            ...

    Args:
        target: Version the step produces
        description: Short human-readable summary

    Returns:
        Decorator function
    """

    def decorator(func: MigrationStep) -> MigrationStep:
        _migrations[target] = Migration(target=target, description=description, func=func)
        return func

    return decorator


def get_migrations() -> dict[int, Migration]:
    """Return a copy of the registered steps keyed by target version."""
    return dict(_migrations)


@dataclass
class MigrationResult:
    """
    Outcome of running the migration chain.

    Attributes:
        data: The (deep-copied) migrated document
        from_version: Version detected before migrating
        version: Version reached
        applied: Target versions of the steps that ran, in order
        gap: Set when a required step was missing
    """

    data: dict[str, Any]
    from_version: int
    version: int
    applied: list[int] = field(default_factory=list)
    gap: MigrationGapError | None = None

    @property
    def migrated(self) -> bool:
        return bool(self.applied)

    @property
    def complete(self) -> bool:
        return self.gap is None and self.version >= CURRENT_VERSION


def detect_version(data: Mapping[str, Any]) -> int:
    """
    Determine the schema version of a raw document.

    Documents written before versioning carry no ``version`` key. They are
    treated as v4 unless they still carry pre-v4 shapes (a ``months``
    array, or tasks with ``startWeek``/``endWeek`` and no ``planned``),
    in which case they are v3.

    Args:
        data: Raw document

    Returns:
        Detected version number
    """
    version = data.get("version")
    if isinstance(version, int) and not isinstance(version, bool):
        return version
    if isinstance(version, str) and version.strip().isdigit():
        return int(version.strip())

    if data.get("months"):
        return 3
    for task in _task_list(data):
        if "planned" not in task and ("startWeek" in task or "endWeek" in task):
            return 3
    return 4


def migrate_to_latest(
    data: Mapping[str, Any],
    registry: Mapping[int, Migration] | None = None,
) -> MigrationResult:
    """
    Upgrade a raw document to the current schema version.

    The input is never mutated. The chain runs while the version is below
    CURRENT_VERSION; a missing step halts it and the result carries a
    MigrationGapError describing where it stopped. A document already at
    (or above) the current version is returned unchanged.

    Args:
        data: Raw document at any historical version
        registry: Steps to use (defaults to the registered chain)

    Returns:
        MigrationResult with the migrated document

    Example:
        >>> result = migrate_to_latest({"project": {}, "tasks": [], "categories": {}})
        >>> result.version
        11
    """
    steps = _migrations if registry is None else registry
    doc = copy.deepcopy(dict(data))
    from_version = detect_version(doc)
    version = from_version
    result = MigrationResult(data=doc, from_version=from_version, version=version)

    while version < CURRENT_VERSION:
        target = version + 1
        step = steps.get(target)
        if step is None:
            result.gap = MigrationGapError(
                from_version=from_version,
                reached_version=version,
                missing_version=target,
            )
            logger.warning("Migration halted: %s", result.gap)
            break

        logger.info("Migrating v%d -> v%d: %s", version, target, step.description)
        doc = step.apply(doc)
        doc["version"] = target
        version = target
        result.applied.append(target)

    if not result.applied and result.gap is None:
        # Leave current documents byte-for-byte as they came in
        return result

    result.data = doc
    result.version = version
    if result.gap is not None:
        doc["version"] = version
    return result


# ----------------------------------------------------------------------
# Helpers shared by the steps
# ----------------------------------------------------------------------


def _task_list(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    tasks = data.get("tasks")
    if not isinstance(tasks, list):
        return []
    return [t for t in tasks if isinstance(t, dict)]


def _project(data: dict[str, Any]) -> dict[str, Any]:
    project = data.get("project")
    if not isinstance(project, dict):
        project = {}
        data["project"] = project
    return project


def _parse_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _is_key(value: Any) -> bool:
    """True for values usable as an id: non-empty strings and plain ints."""
    if isinstance(value, str):
        return bool(value)
    return isinstance(value, int) and not isinstance(value, bool)


def _normalize_project_span(data: dict[str, Any]) -> None:
    """
    Fold legacy ``months`` into ``totalWeeks`` and derive ``endDate``.

    Runs at v4 and again at v5, since unversioned documents enter the
    chain at v4 and skip the first step.
    """
    project = _project(data)
    start = _parse_date(project.get("startDate"))

    months = data.pop("months", None)
    if isinstance(months, list) and months:
        weeks = sum(
            _as_int(m.get("weeks")) or 0 for m in months if isinstance(m, dict)
        )
        if not project.get("totalWeeks"):
            project["totalWeeks"] = weeks
        if not project.get("endDate") and start is not None and weeks:
            project["endDate"] = (start + timedelta(days=weeks * 7 - 1)).isoformat()

    total_weeks = _as_int(project.get("totalWeeks"))
    if not project.get("endDate") and total_weeks and start is not None:
        project["endDate"] = (start + timedelta(days=total_weeks * 7 - 1)).isoformat()


def _backfill_completed_at(tasks: list[dict[str, Any]]) -> None:
    """Stamp ``completedAt`` on tasks sitting in ``done`` without one."""
    for task in tasks:
        board = task.get("board")
        if isinstance(board, dict) and board.get("columnId") == DONE and not task.get(
            "completedAt"
        ):
            task["completedAt"] = _now_iso()
            logger.info("Set completedAt for completed task: %s", task.get("name", task.get("id")))


# Default team member colors, assigned round-robin
TEAM_COLORS = (
    "#a78bfa",
    "#f472b6",
    "#38bdf8",
    "#4ade80",
    "#fbbf24",
    "#fb923c",
    "#f87171",
    "#a3e635",
)


# ----------------------------------------------------------------------
# Steps
# ----------------------------------------------------------------------


@migration(4, "Week-based timeline: planned/reality arrays and project end date")
def _migrate_to_v4(data: dict[str, Any]) -> dict[str, Any]:
    _normalize_project_span(data)

    if not isinstance(data.get("team"), list):
        data["team"] = []

    tasks = _task_list(data)
    for task in tasks:
        if not isinstance(task.get("planned"), list):
            start_week = _as_int(task.get("startWeek"))
            end_week = _as_int(task.get("endWeek"))
            if start_week and end_week and start_week <= end_week:
                task["planned"] = list(range(start_week, end_week + 1))
            else:
                task["planned"] = []
        if not isinstance(task.get("reality"), list):
            task["reality"] = []
        task.setdefault("assignee", "")
        task.setdefault("priority", "")
        task.setdefault("notes", "")
        task.setdefault("isMilestone", False)
    data["tasks"] = tasks
    return data


@migration(5, "Board: string task ids, default workflow, board placement")
def _migrate_to_v5(data: dict[str, Any]) -> dict[str, Any]:
    _normalize_project_span(data)
    tasks = _task_list(data)

    renamed: dict[Any, str] = {}
    for task in tasks:
        task_id = task.get("id")
        number = _as_int(task_id)
        if number is not None:
            task["id"] = f"task_{number}"
            renamed[task_id] = task["id"]
        elif not isinstance(task_id, str) or not task_id:
            task["id"] = generate_id("task")

    for task in tasks:
        deps = task.get("dependencies")
        if not isinstance(deps, list):
            task["dependencies"] = []
            continue
        # Numeric references that match no task are kept as ids and pruned on load
        task["dependencies"] = [str(renamed.get(d, d)) for d in deps if _is_key(d)]

    workflow = data.get("workflow")
    if not isinstance(workflow, dict) or not isinstance(workflow.get("columns"), list):
        data["workflow"] = {"columns": [c.to_json_dict() for c in default_columns()]}
        logger.info("Added default workflow configuration")

    next_position: dict[str, int] = {}
    for task in tasks:
        board = task.get("board")
        if not isinstance(board, dict) or not isinstance(board.get("columnId"), str):
            planned = task.get("planned") if isinstance(task.get("planned"), list) else []
            reality = task.get("reality") if isinstance(task.get("reality"), list) else []
            board = {"columnId": derive_column(planned, reality)}
            task["board"] = board
        column_id = board["columnId"]
        board["position"] = next_position.get(column_id, 0)
        next_position[column_id] = board["position"] + 1

    data["tasks"] = tasks
    return data


@migration(6, "Sprints: story points, sprint membership, backlog order, completion stamps")
def _migrate_to_v6(data: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(data.get("sprints"), list):
        data["sprints"] = []

    tasks = _task_list(data)
    groups: dict[Any, list[tuple[float, int, dict[str, Any]]]] = {}
    for index, task in enumerate(tasks):
        task.setdefault("storyPoints", None)
        if not isinstance(task.get("sprintId"), str) or not task["sprintId"]:
            task["sprintId"] = None
        position = task.get("backlogPosition")
        key = position if isinstance(position, (int, float)) and not isinstance(
            position, bool
        ) else float(index)
        groups.setdefault(task["sprintId"], []).append((key, index, task))
    _backfill_completed_at(tasks)

    for members in groups.values():
        members.sort(key=lambda m: (m[0], m[1]))
        for position, (_, _, task) in enumerate(members):
            task["backlogPosition"] = position

    data["tasks"] = tasks
    return data


@migration(7, "Time log")
def _migrate_to_v7(data: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(data.get("timeEntries"), list):
        data["timeEntries"] = []
    return data


@migration(8, "Sprint burndown snapshots")
def _migrate_to_v8(data: dict[str, Any]) -> dict[str, Any]:
    sprints = data.get("sprints")
    if isinstance(sprints, list):
        for sprint in sprints:
            if isinstance(sprint, dict) and not isinstance(sprint.get("burndown"), list):
                sprint["burndown"] = []
    return data


def _member_from(value: Any, index: int) -> dict[str, Any]:
    color = TEAM_COLORS[index % len(TEAM_COLORS)]
    if isinstance(value, str):
        return {
            "id": generate_id("member"),
            "name": value,
            "role": "",
            "color": color,
            "hoursPerWeek": 40,
            "availability": [],
        }
    member = dict(value)
    for name, default in (("id", ""), ("name", ""), ("role", ""), ("color", color)):
        if not isinstance(member.get(name), str) or not member[name]:
            member[name] = default
    member["id"] = member["id"] or generate_id("member")
    hours = member.get("hoursPerWeek")
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours <= 0:
        member["hoursPerWeek"] = 40
    if not isinstance(member.get("availability"), list):
        member["availability"] = []
    return member


@migration(9, "Team members as objects, calendar settings, completion stamps")
def _migrate_to_v9(data: dict[str, Any]) -> dict[str, Any]:
    team = data.get("team")
    if isinstance(team, list):
        data["team"] = [
            _member_from(member, index)
            for index, member in enumerate(team)
            if isinstance(member, (str, dict))
        ]
    else:
        data["team"] = []

    if not isinstance(data.get("calendarSettings"), dict):
        data["calendarSettings"] = {"workDays": [1, 2, 3, 4, 5], "hoursPerDay": 8}

    _backfill_completed_at(_task_list(data))
    return data


@migration(10, "Sprint calendar dates, assignee links")
def _migrate_to_v10(data: dict[str, Any]) -> dict[str, Any]:
    project_start = _parse_date(_project(data).get("startDate"))

    sprints = data.get("sprints")
    for sprint in sprints if isinstance(sprints, list) else []:
        if not isinstance(sprint, dict):
            continue
        start_week = _as_int(sprint.get("startWeek"))
        end_week = _as_int(sprint.get("endWeek"))
        if not sprint.get("startDate") and start_week and project_start is not None:
            sprint["startDate"] = (project_start + timedelta(weeks=start_week - 1)).isoformat()
        if not sprint.get("endDate") and end_week and project_start is not None:
            sprint["endDate"] = (project_start + timedelta(days=end_week * 7 - 1)).isoformat()
        sprint.pop("startWeek", None)
        sprint.pop("endWeek", None)
        sprint.pop("burndown", None)

    team = data.get("team")
    members_by_name = {
        m["name"]: m.get("id")
        for m in (team if isinstance(team, list) else [])
        if isinstance(m, dict) and isinstance(m.get("name"), str) and m["name"]
    }
    for task in _task_list(data):
        assignee = task.get("assignee")
        if isinstance(assignee, str) and assignee and not task.get("assigneeId"):
            member_id = members_by_name.get(assignee)
            if member_id:
                task["assigneeId"] = member_id
    return data


def _normalize_retro_items(items: Any) -> list[dict[str, Any]]:
    if isinstance(items, list):
        return [i for i in items if isinstance(i, dict)]
    if not isinstance(items, dict):
        return []

    # Legacy shape: {"went-well": [...], "to-improve": [...], ...}
    normalized: list[dict[str, Any]] = []
    for column, column_items in items.items():
        if not isinstance(column_items, list):
            continue
        for position, item in enumerate(i for i in column_items if isinstance(i, dict)):
            item = dict(item)
            item.setdefault("column", column)
            item.setdefault("position", position)
            normalized.append(item)
    return normalized


@migration(11, "Retrospectives")
def _migrate_to_v11(data: dict[str, Any]) -> dict[str, Any]:
    retros = data.get("retrospectives")
    if not isinstance(retros, list):
        data["retrospectives"] = []
        return data

    for retro in retros:
        if isinstance(retro, dict):
            retro["items"] = _normalize_retro_items(retro.get("items"))
    data["retrospectives"] = [r for r in retros if isinstance(r, dict)]
    return data
