"""
Project document data models for planboard.

Defines the Pydantic models for the single project document shared by the
timeline, board, backlog, time log, retrospective and dependency views.
JSON keys are camelCase on disk; attributes are snake_case in Python.
Unknown keys are kept on every entity so an exported document round-trips
without losing data written by other views.
"""

from __future__ import annotations

import datetime as dt
import secrets
import string
import time
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Current schema version of the project document
SCHEMA_VERSION = 11

# Protected workflow columns (cannot be deleted)
BACKLOG = "backlog"
TODO = "todo"
IN_PROGRESS = "in-progress"
DONE = "done"
DEFAULT_COLUMN_IDS = (BACKLOG, TODO, IN_PROGRESS, DONE)

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_id(prefix: str) -> str:
    """
    Generate a unique entity ID.

    Format: <prefix>_<base36 millis><5 random chars> (e.g., 'task_m1x2y3abcde')

    Args:
        prefix: Entity prefix such as 'task', 'sprint', 'col', 'time'

    Returns:
        Unique ID string
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}_{_to_base36(millis)}{suffix}"


def is_default_column(column_id: str) -> bool:
    """Check if a column is one of the protected default columns."""
    return column_id in DEFAULT_COLUMN_IDS


def derive_column(planned: list[Any], reality: list[Any]) -> str:
    """
    Column implied by a task's progress arrays.

    Every planned week worked means done; any week worked means in
    progress; planned but untouched means to-do; otherwise backlog.
    """
    if planned and all(week in reality for week in planned):
        return DONE
    if reality:
        return IN_PROGRESS
    if planned:
        return TODO
    return BACKLOG


class CamelModel(BaseModel):
    """Base model: camelCase aliases, snake_case attributes, extra keys kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with on-disk (camelCase) keys."""
        return self.model_dump(by_alias=True, mode="json")


class SprintStatus(str, Enum):
    """Sprint lifecycle status."""

    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"


class MilestoneStatus(str, Enum):
    """Milestone health as reported by the milestone tracker."""

    COMPLETE = "complete"
    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    DELAYED = "delayed"
    NOT_STARTED = "not-started"


class Project(CamelModel):
    """Project header; its start date is the origin of week numbering."""

    title: str = "New Project"
    start_date: date = Field(default_factory=date.today)
    end_date: date | None = None
    total_weeks: int = Field(default=13, ge=0)


class TeamMember(CamelModel):
    id: str = Field(default_factory=lambda: generate_id("member"))
    name: str = ""
    role: str = ""
    color: str = "#a78bfa"
    hours_per_week: float = 40
    availability: list[dict[str, Any]] = Field(default_factory=list)


class CalendarSettings(CamelModel):
    work_days: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])
    hours_per_day: float = 8


class WorkflowColumn(CamelModel):
    """A board column; ids in DEFAULT_COLUMN_IDS are protected."""

    id: str
    name: str
    color: str = "#7c7c8a"
    position: int = 0
    wip_limit: int | None = None


def default_columns() -> list[WorkflowColumn]:
    """Return a fresh copy of the default four-column workflow."""
    return [
        WorkflowColumn(id=BACKLOG, name="Backlog", color="#6366f1", position=0),
        WorkflowColumn(id=TODO, name="To Do", color="#a78bfa", position=1),
        WorkflowColumn(id=IN_PROGRESS, name="In Progress", color="#fbbf24", position=2),
        WorkflowColumn(id=DONE, name="Done", color="#22c55e", position=3),
    ]


class Workflow(CamelModel):
    columns: list[WorkflowColumn] = Field(default_factory=default_columns)
    enable_wip_limits: bool = False

    def get_column(self, column_id: str) -> WorkflowColumn | None:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def ordered(self) -> list[WorkflowColumn]:
        return sorted(self.columns, key=lambda c: c.position)


class BoardPlacement(CamelModel):
    """Where a task sits on the board."""

    column_id: str = BACKLOG
    position: int = 0


class Task(CamelModel):
    """
    A work item shared by every view.

    A milestone is a Task with ``is_milestone=True``; it lives in the same
    id space so a work item can be promoted or demoted.

    Example:
        >>> task = Task(id="task_1", name="Mood boards", planned=[1, 2])
        >>> task.board.column_id
        'backlog'
    """

    id: str = Field(default_factory=lambda: generate_id("task"))
    name: str = ""
    category: str = ""
    planned: list[int] = Field(default_factory=list, description="Committed week numbers")
    reality: list[int] = Field(default_factory=list, description="Weeks actually worked")
    board: BoardPlacement = Field(default_factory=BoardPlacement)
    assignee: str = ""
    assignee_id: str | None = None
    priority: str = ""
    notes: str = ""
    story_points: int | float | None = None
    sprint_id: str | None = None
    backlog_position: int = 0
    dependencies: list[str] = Field(default_factory=list, description="Predecessor task IDs")
    completed_at: datetime | None = None

    # Milestone-only fields
    is_milestone: bool = False
    milestone_deadline: date | None = None
    milestone_dependencies: list[str] = Field(default_factory=list)
    milestone_progress_override: int | None = None
    milestone_status_override: MilestoneStatus | None = None
    milestone_notes: str = ""

    @property
    def column_id(self) -> str:
        return self.board.column_id

    @property
    def is_done(self) -> bool:
        return self.board.column_id == DONE


class Sprint(CamelModel):
    """A sprint; calendar dates are authoritative from schema v10 on."""

    id: str = Field(default_factory=lambda: generate_id("sprint"))
    name: str = ""
    goal: str = ""
    start_date: date | None = None
    end_date: date | None = None
    status: SprintStatus = SprintStatus.PLANNING


class TimeEntry(CamelModel):
    id: str = Field(default_factory=lambda: generate_id("time"))
    task_id: str | None = None
    date: dt.date
    start_time: str
    end_time: str
    duration_minutes: int = 0
    notes: str = ""
    billable: bool = False


class RetroItem(CamelModel):
    """A retrospective card; children point at their parent via group_id."""

    id: str = Field(default_factory=lambda: generate_id("item"))
    column: str = "went-well"
    text: str = ""
    author: str | None = None
    votes: int = 0
    group_id: str | None = None
    position: int = 0
    created_at: datetime | None = None


class Retrospective(CamelModel):
    id: str = Field(default_factory=lambda: generate_id("retro"))
    name: str = "New Retrospective"
    sprint_id: str | None = None
    is_anonymous: bool = True
    created_at: datetime | None = None
    items: list[RetroItem] = Field(default_factory=list)

    def get_item(self, item_id: str) -> RetroItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class Document(CamelModel):
    """
    The project document: the unit of persistence and of migration.

    Components never hold on to a Document between calls; it is passed in
    explicitly and mutated in place.
    """

    version: int = SCHEMA_VERSION
    project: Project = Field(default_factory=Project)
    team: list[TeamMember] = Field(default_factory=list)
    categories: dict[str, str] = Field(default_factory=lambda: {"General": "#a78bfa"})
    workflow: Workflow = Field(default_factory=Workflow)
    calendar_settings: CalendarSettings = Field(default_factory=CalendarSettings)
    sprints: list[Sprint] = Field(default_factory=list)
    time_entries: list[TimeEntry] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    retrospectives: list[Retrospective] = Field(default_factory=list)

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def get_sprint(self, sprint_id: str) -> Sprint | None:
        for sprint in self.sprints:
            if sprint.id == sprint_id:
                return sprint
        return None

    def get_retrospective(self, retro_id: str) -> Retrospective | None:
        for retro in self.retrospectives:
            if retro.id == retro_id:
                return retro
        return None

    def task_ids(self) -> set[str]:
        return {task.id for task in self.tasks}


def default_document(today: date | None = None) -> Document:
    """
    Build the first-run document used when nothing is stored yet.

    Args:
        today: Project start date (defaults to today)

    Returns:
        A fresh Document at the current schema version
    """
    start = today or date.today()
    return Document(
        project=Project(
            title="New Project",
            start_date=start,
            end_date=date.fromordinal(start.toordinal() + 90),
            total_weeks=13,
        ),
    )
