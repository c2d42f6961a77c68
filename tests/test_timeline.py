"""Tests for week arithmetic and timeline edits."""

from __future__ import annotations

from datetime import date, datetime, timezone

from planboard.core.document.models import Project, Sprint
from planboard.core.tasks.board import column_tasks
from planboard.core.tasks.timeline import (
    copy_planned_to_reality,
    current_week,
    fill_week_range,
    set_project_dates,
    set_week_range,
    sprint_week_number,
    sprint_weeks,
    toggle_week,
    week_end_date,
    week_start_date,
    weeks_between,
)

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
PROJECT = Project(start_date=date(2026, 3, 2), total_weeks=13)


# ==============================================================================
# Week arithmetic
# ==============================================================================


class TestCurrentWeek:
    def test_first_day(self) -> None:
        assert current_week(PROJECT, date(2026, 3, 2)) == 1

    def test_second_week(self) -> None:
        assert current_week(PROJECT, date(2026, 3, 9)) == 2

    def test_last_week(self) -> None:
        assert current_week(PROJECT, date(2026, 5, 31)) == 13

    def test_before_start(self) -> None:
        assert current_week(PROJECT, date(2026, 3, 1)) is None

    def test_after_end(self) -> None:
        assert current_week(PROJECT, date(2026, 6, 1)) is None


class TestWeekDates:
    def test_weeks_between(self) -> None:
        assert weeks_between(date(2026, 3, 2), date(2026, 3, 15)) == 2
        assert weeks_between(date(2026, 3, 2), date(2026, 3, 16)) == 3
        assert weeks_between(date(2026, 3, 2), date(2026, 3, 2)) == 1

    def test_weeks_between_reversed(self) -> None:
        assert weeks_between(date(2026, 3, 10), date(2026, 3, 2)) == 0

    def test_week_bounds(self) -> None:
        assert week_start_date(PROJECT, 3) == date(2026, 3, 16)
        assert week_end_date(PROJECT, 3) == date(2026, 3, 22)

    def test_sprint_weeks(self) -> None:
        sprint = Sprint(start_date=date(2026, 3, 9), end_date=date(2026, 3, 22))
        assert sprint_week_number(sprint, PROJECT) == 2
        assert sprint_weeks(sprint, PROJECT) == [2, 3]

    def test_sprint_weeks_clipped_to_project_start(self) -> None:
        sprint = Sprint(start_date=date(2026, 2, 23), end_date=date(2026, 3, 8))
        assert sprint_weeks(sprint, PROJECT) == [1]

    def test_undated_sprint(self) -> None:
        sprint = Sprint()
        assert sprint_week_number(sprint, PROJECT) == 1
        assert sprint_weeks(sprint, PROJECT) == []

    def test_set_project_dates(self, empty_doc) -> None:
        assert set_project_dates(empty_doc, date(2026, 3, 2), date(2026, 3, 29))
        assert empty_doc.project.total_weeks == 4
        assert not set_project_dates(empty_doc, date(2026, 3, 29), date(2026, 3, 2))
        assert empty_doc.project.end_date == date(2026, 3, 29)


# ==============================================================================
# Edits
# ==============================================================================


class TestToggleWeek:
    def test_first_reality_week_starts_task(self, sample_doc) -> None:
        assert toggle_week(sample_doc, "task_1", 1, "reality", now=NOW) is True
        task = sample_doc.get_task("task_1")
        assert task.reality == [1]
        assert task.board.column_id == "in-progress"
        assert [t.id for t in column_tasks(sample_doc, "todo")] == ["task_2"]
        assert sample_doc.get_task("task_2").board.position == 0

    def test_completing_plan_moves_to_done(self, sample_doc) -> None:
        toggle_week(sample_doc, "task_1", 1, "reality", now=NOW)
        toggle_week(sample_doc, "task_1", 2, "reality", now=NOW)
        task = sample_doc.get_task("task_1")
        assert task.board.column_id == "done"
        assert task.completed_at == NOW
        positions = sorted(t.board.position for t in column_tasks(sample_doc, "done"))
        assert positions == [0, 1]

    def test_clearing_week_leaves_done(self, sample_doc) -> None:
        assert toggle_week(sample_doc, "task_4", 1, "reality") is False
        task = sample_doc.get_task("task_4")
        assert task.reality == []
        assert task.board.column_id == "todo"
        assert task.completed_at is None

    def test_planned_weeks_stay_sorted(self, sample_doc) -> None:
        toggle_week(sample_doc, "task_1", 5, "planned")
        toggle_week(sample_doc, "task_1", 3, "planned")
        assert sample_doc.get_task("task_1").planned == [1, 2, 3, 5]

    def test_unknown_task(self, sample_doc) -> None:
        assert toggle_week(sample_doc, "ghost", 1, "planned") is None


class TestRanges:
    def test_fill_range_either_direction(self, sample_doc) -> None:
        assert fill_week_range(sample_doc, "task_3", 3, 1, "planned", adding=True)
        task = sample_doc.get_task("task_3")
        assert task.planned == [1, 2, 3]
        assert task.board.column_id == "todo"

    def test_clear_range(self, sample_doc) -> None:
        fill_week_range(sample_doc, "task_3", 1, 3, "planned", adding=True)
        fill_week_range(sample_doc, "task_3", 2, 3, "planned", adding=False)
        assert sample_doc.get_task("task_3").planned == [1]

    def test_set_week_range(self, sample_doc) -> None:
        assert set_week_range(sample_doc, "task_3", 2, 4)
        assert sample_doc.get_task("task_3").planned == [2, 3, 4]

    def test_set_week_range_rejects_bad_ranges(self, sample_doc) -> None:
        assert not set_week_range(sample_doc, "task_3", 0, 2)
        assert not set_week_range(sample_doc, "task_3", 3, 2)
        assert not set_week_range(sample_doc, "task_3", 12, 14)
        assert sample_doc.get_task("task_3").planned == []

    def test_copy_planned_to_reality(self, sample_doc) -> None:
        assert copy_planned_to_reality(sample_doc, "task_1", now=NOW)
        task = sample_doc.get_task("task_1")
        assert task.reality == [1, 2]
        assert task.board.column_id == "done"
        assert task.completed_at == NOW

    def test_copy_requires_plan(self, sample_doc) -> None:
        assert not copy_planned_to_reality(sample_doc, "task_3")
