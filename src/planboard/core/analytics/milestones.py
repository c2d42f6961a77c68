"""Milestone progress and health."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from planboard.core.document.models import Document, MilestoneStatus, Task

from .points import round_half_up

# Thresholds, in percentage points behind the expected progress
AT_RISK_LAG = 10
DELAYED_LAG = 25
# A deadline this close (in days) puts a milestone at risk
DEADLINE_WARNING_DAYS = 7


@dataclass
class MilestoneProgress:
    percent: int
    completed: int
    total: int


def milestone_dependencies(milestone: Task, doc: Document) -> list[Task]:
    """Tasks tracked by a milestone; ids that no longer resolve are skipped."""
    return [t for t in (doc.get_task(i) for i in milestone.milestone_dependencies) if t]


def calculate_milestone_progress(milestone: Task, doc: Document) -> MilestoneProgress:
    """
    Share of tracked tasks sitting in ``done``.

    A progress override replaces the percentage; the counts are still
    reported.
    """
    deps = milestone_dependencies(milestone, doc)
    completed = sum(1 for t in deps if t.is_done)

    if milestone.milestone_progress_override is not None:
        percent = milestone.milestone_progress_override
    elif deps:
        percent = round_half_up(completed / len(deps) * 100)
    else:
        percent = 0
    return MilestoneProgress(percent=percent, completed=completed, total=len(deps))


def expected_progress(deadline: date, project_start: date, today: date) -> int:
    """Progress a milestone should show by *today*, linear from project start."""
    total_days = (deadline - project_start).days
    if total_days <= 0:
        return 100
    elapsed = (today - project_start).days
    return min(100, round_half_up(elapsed / total_days * 100))


def calculate_milestone_status(
    milestone: Task, doc: Document, today: date | None = None
) -> MilestoneStatus:
    """
    Classify a milestone.

    Checked in order:
        1. a status override wins;
        2. every tracked task done -> complete;
        3. nothing tracked or nothing done -> not-started;
        4. no deadline -> on-track from 50% progress, at-risk below;
        5. otherwise progress is compared with the expected progress for
           today. A passed deadline or a lag over 25 points is delayed; a
           lag over 10 points or a deadline within a week is at-risk.
    """
    if milestone.milestone_status_override is not None:
        return milestone.milestone_status_override

    progress = calculate_milestone_progress(milestone, doc)
    if progress.total > 0 and progress.completed == progress.total:
        return MilestoneStatus.COMPLETE
    if progress.total == 0 or progress.completed == 0:
        return MilestoneStatus.NOT_STARTED

    deadline = milestone.milestone_deadline
    if deadline is None:
        return MilestoneStatus.ON_TRACK if progress.percent >= 50 else MilestoneStatus.AT_RISK

    today = today or date.today()
    days_until = (deadline - today).days
    expected = expected_progress(deadline, doc.project.start_date, today)

    if days_until < 0:
        return MilestoneStatus.DELAYED
    if progress.percent < expected - DELAYED_LAG:
        return MilestoneStatus.DELAYED
    if progress.percent < expected - AT_RISK_LAG or 0 < days_until <= DEADLINE_WARNING_DAYS:
        return MilestoneStatus.AT_RISK
    return MilestoneStatus.ON_TRACK
