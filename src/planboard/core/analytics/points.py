"""
Story point and schedule summaries.

Everything here is derived on demand from the document and never stored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date

from planboard.core.document.models import Document, Project, SprintStatus, Task
from planboard.core.tasks.timeline import current_week


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


@dataclass
class SprintPoints:
    total: float = 0
    estimated: int = 0
    unestimated: int = 0


@dataclass
class SprintVelocity:
    id: str
    name: str
    points: float


@dataclass
class Velocity:
    average: int = 0
    sprints: list[SprintVelocity] = field(default_factory=list)


@dataclass
class Variance:
    total_planned: int
    total_reality: int

    @property
    def diff(self) -> int:
        return self.total_reality - self.total_planned


@dataclass
class ProjectProgress:
    current_week: int
    total_weeks: int
    percent: int


def calculate_sprint_points(tasks: list[Task]) -> SprintPoints:
    """Sum story points; tasks without an estimate are only counted."""
    result = SprintPoints()
    for task in tasks:
        if task.story_points is None:
            result.unestimated += 1
        else:
            result.total += task.story_points
            result.estimated += 1
    return result


def calculate_velocity(doc: Document) -> Velocity:
    """
    Points delivered per completed sprint, and their average.

    A task counts towards a sprint when it belongs to that sprint and sits
    in the ``done`` column.
    """
    velocity = Velocity()
    for sprint in doc.sprints:
        if sprint.status != SprintStatus.COMPLETED:
            continue
        points = sum(
            t.story_points or 0 for t in doc.tasks if t.sprint_id == sprint.id and t.is_done
        )
        velocity.sprints.append(SprintVelocity(id=sprint.id, name=sprint.name, points=points))

    if velocity.sprints:
        total = sum(s.points for s in velocity.sprints)
        velocity.average = round_half_up(total / len(velocity.sprints))
    return velocity


def calculate_variance(tasks: list[Task]) -> Variance:
    """Planned weeks against worked weeks across *tasks*."""
    return Variance(
        total_planned=sum(len(t.planned) for t in tasks),
        total_reality=sum(len(t.reality) for t in tasks),
    )


def calculate_progress(project: Project, today: date | None = None) -> ProjectProgress:
    """How far through the project timeline *today* is, by week."""
    week = current_week(project, today) or 0
    total = project.total_weeks
    percent = round_half_up(week / total * 100) if total else 0
    return ProjectProgress(current_week=week, total_weeks=total, percent=percent)
