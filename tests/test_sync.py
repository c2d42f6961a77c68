"""Tests for the progress/board sync engine."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from planboard.core.document.models import BoardPlacement, Task
from planboard.core.tasks.sync import (
    TimelineStatus,
    derive_column_from_progress,
    derive_timeline_status,
    sync_gantt_to_kanban,
    sync_kanban_to_gantt,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)


def _task(column: str = "todo", planned=None, reality=None, **fields) -> Task:
    return Task(
        id="task_1",
        planned=planned or [],
        reality=reality or [],
        board=BoardPlacement(column_id=column),
        **fields,
    )


class TestDeriveColumn:
    @pytest.mark.parametrize(
        ("planned", "reality", "expected"),
        [
            ([], [], "backlog"),
            ([1, 2], [], "todo"),
            ([1, 2], [1], "in-progress"),
            ([], [4], "in-progress"),
            ([1, 2], [1, 2], "done"),
            ([1, 2], [1, 2, 3], "done"),
            ([1, 2], [2, 3], "in-progress"),
        ],
    )
    def test_derivation(self, planned, reality, expected) -> None:
        assert derive_column_from_progress(_task(planned=planned, reality=reality)) == expected


class TestGanttToKanban:
    def test_completing_plan_moves_to_done(self) -> None:
        task = _task("in-progress", planned=[1, 2], reality=[1, 2])
        assert sync_gantt_to_kanban(task, now=NOW) is True
        assert task.board.column_id == "done"
        assert task.completed_at == NOW

    def test_leaving_done_clears_stamp(self) -> None:
        task = _task("done", planned=[1, 2], reality=[1], completed_at=NOW)
        assert sync_gantt_to_kanban(task) is True
        assert task.board.column_id == "in-progress"
        assert task.completed_at is None

    def test_no_change(self) -> None:
        task = _task("todo", planned=[1])
        assert sync_gantt_to_kanban(task) is False
        assert task.board.column_id == "todo"

    def test_custom_column_recomputed(self) -> None:
        """Timeline edits always land the task in a derived column."""
        task = _task("col_review", planned=[1], reality=[1])
        sync_gantt_to_kanban(task, now=NOW)
        assert task.board.column_id == "done"


class TestKanbanToGantt:
    def test_into_done_stamps_but_keeps_reality(self) -> None:
        task = _task("in-progress", planned=[1, 2, 3], reality=[1])
        sync_kanban_to_gantt(task, "done", current_week=2, now=NOW)
        assert task.board.column_id == "done"
        assert task.completed_at == NOW
        assert task.reality == [1]

    def test_out_of_done_clears_stamp(self) -> None:
        task = _task("done", planned=[1], reality=[1], completed_at=NOW)
        sync_kanban_to_gantt(task, "todo", current_week=2)
        assert task.completed_at is None
        assert task.reality == [1]

    def test_starting_work_seeds_current_week(self) -> None:
        task = _task("todo", planned=[3, 4])
        sync_kanban_to_gantt(task, "in-progress", current_week=3)
        assert task.reality == [3]
        assert task.planned == [3, 4]

    def test_no_seed_when_already_worked(self) -> None:
        task = _task("todo", planned=[3, 4], reality=[2])
        sync_kanban_to_gantt(task, "in-progress", current_week=3)
        assert task.reality == [2]

    def test_no_seed_from_done(self) -> None:
        task = _task("done", planned=[1], completed_at=NOW)
        sync_kanban_to_gantt(task, "in-progress", current_week=3)
        assert task.reality == []
        assert task.completed_at is None

    def test_no_seed_outside_project_range(self) -> None:
        task = _task("todo", planned=[1])
        sync_kanban_to_gantt(task, "in-progress", current_week=None)
        assert task.reality == []

    def test_other_moves_leave_progress_alone(self) -> None:
        task = _task("todo", planned=[1, 2], reality=[])
        sync_kanban_to_gantt(task, "backlog", current_week=1)
        assert task.board.column_id == "backlog"
        assert task.planned == [1, 2]
        assert task.reality == []
        assert task.completed_at is None


class TestTimelineStatus:
    def test_no_plan(self) -> None:
        assert derive_timeline_status(_task(), 3) is TimelineStatus.NOT_STARTED

    def test_complete(self) -> None:
        task = _task(planned=[2, 3], reality=[2, 3])
        assert derive_timeline_status(task, 1) is TimelineStatus.COMPLETE

    def test_before_plan_starts(self) -> None:
        assert derive_timeline_status(_task(planned=[2, 3]), 1) is TimelineStatus.NOT_STARTED

    def test_behind(self) -> None:
        task = _task(planned=[2, 3], reality=[2])
        assert derive_timeline_status(task, 3) is TimelineStatus.BEHIND

    def test_on_track(self) -> None:
        task = _task(planned=[2, 3], reality=[2])
        assert derive_timeline_status(task, 2) is TimelineStatus.ON_TRACK

    def test_ahead(self) -> None:
        task = _task(planned=[2, 3], reality=[1, 2])
        assert derive_timeline_status(task, 2) is TimelineStatus.AHEAD
