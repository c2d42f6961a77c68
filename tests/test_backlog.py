"""Tests for sprint CRUD and backlog ordering."""

from __future__ import annotations

from datetime import date

from planboard.core.document.models import Retrospective, SprintStatus
from planboard.core.sprints.backlog import (
    active_sprint,
    create_sprint,
    delete_sprint,
    move_task_to_backlog,
    move_task_to_sprint,
    normalize_backlog,
    product_backlog,
    reorder_backlog_item,
    reorder_sprint_item,
    sprint_tasks,
    update_sprint,
)


def _backlog_ids(doc) -> list[str]:
    return [t.id for t in product_backlog(doc)]


def _sprint_ids(doc, sprint_id: str) -> list[str]:
    return [t.id for t in sprint_tasks(doc, sprint_id)]


class TestSprintCrud:
    def test_create_defaults(self, sample_doc) -> None:
        sprint = create_sprint(sample_doc, today=date(2026, 3, 16))
        assert sprint.name == "Sprint 2"
        assert sprint.start_date == date(2026, 3, 16)
        assert sprint.end_date == date(2026, 3, 29)
        assert sprint.status is SprintStatus.PLANNING
        assert sample_doc.get_sprint(sprint.id) is sprint

    def test_create_with_dates(self, empty_doc) -> None:
        sprint = create_sprint(
            empty_doc,
            name="Launch",
            goal="Ship it",
            start_date=date(2026, 4, 1),
            end_date=date(2026, 4, 7),
        )
        assert sprint.name == "Launch"
        assert sprint.end_date == date(2026, 4, 7)

    def test_update(self, sample_doc) -> None:
        assert update_sprint(sample_doc, "sprint_1", name="  ", goal="Focus", status=SprintStatus.COMPLETED)
        sprint = sample_doc.get_sprint("sprint_1")
        assert sprint.name == "Sprint 1"
        assert sprint.goal == "Focus"
        assert sprint.status is SprintStatus.COMPLETED
        assert not update_sprint(sample_doc, "ghost", name="x")

    def test_delete_returns_tasks_to_backlog(self, sample_doc) -> None:
        sample_doc.retrospectives = [Retrospective(id="retro_1", sprint_id="sprint_1")]

        assert delete_sprint(sample_doc, "sprint_1")

        assert sample_doc.sprints == []
        task = sample_doc.get_task("task_4")
        assert task.sprint_id is None
        assert _backlog_ids(sample_doc) == ["task_1", "task_2", "task_3", "task_4"]
        assert task.backlog_position == 3
        assert sample_doc.retrospectives[0].sprint_id is None

    def test_delete_unknown(self, sample_doc) -> None:
        assert not delete_sprint(sample_doc, "ghost")

    def test_active_sprint(self, sample_doc) -> None:
        assert active_sprint(sample_doc).id == "sprint_1"
        sample_doc.sprints[0].status = SprintStatus.COMPLETED
        assert active_sprint(sample_doc) is None


class TestMovement:
    def test_move_into_sprint(self, sample_doc) -> None:
        assert move_task_to_sprint(sample_doc, "task_3", "sprint_1", 0)
        assert _sprint_ids(sample_doc, "sprint_1") == ["task_3", "task_4"]
        assert [t.backlog_position for t in sprint_tasks(sample_doc, "sprint_1")] == [0, 1]
        assert _backlog_ids(sample_doc) == ["task_1", "task_2"]
        assert [t.backlog_position for t in product_backlog(sample_doc)] == [0, 1]

    def test_unplanned_task_gets_sprint_weeks(self, sample_doc) -> None:
        move_task_to_sprint(sample_doc, "task_3", "sprint_1")
        assert sample_doc.get_task("task_3").planned == [1, 2]

    def test_planned_task_keeps_plan(self, sample_doc) -> None:
        move_task_to_sprint(sample_doc, "task_2", "sprint_1")
        assert sample_doc.get_task("task_2").planned == [3]

    def test_move_to_backlog_appends(self, sample_doc) -> None:
        assert move_task_to_backlog(sample_doc, "task_4")
        assert _backlog_ids(sample_doc)[-1] == "task_4"
        assert sprint_tasks(sample_doc, "sprint_1") == []

    def test_move_to_backlog_at_position(self, sample_doc) -> None:
        move_task_to_backlog(sample_doc, "task_4", 1)
        assert _backlog_ids(sample_doc) == ["task_1", "task_4", "task_2", "task_3"]

    def test_unknown_ids(self, sample_doc) -> None:
        assert not move_task_to_sprint(sample_doc, "ghost", "sprint_1")
        assert not move_task_to_sprint(sample_doc, "task_1", "ghost")
        assert not move_task_to_backlog(sample_doc, "ghost")


class TestReorder:
    def test_reorder_backlog(self, sample_doc) -> None:
        assert reorder_backlog_item(sample_doc, "task_3", 0)
        assert _backlog_ids(sample_doc) == ["task_3", "task_1", "task_2"]
        assert [t.backlog_position for t in product_backlog(sample_doc)] == [0, 1, 2]

    def test_reorder_backlog_rejects_sprint_task(self, sample_doc) -> None:
        assert not reorder_backlog_item(sample_doc, "task_4", 0)

    def test_reorder_sprint(self, sample_doc) -> None:
        move_task_to_sprint(sample_doc, "task_1", "sprint_1", 1)
        assert reorder_sprint_item(sample_doc, "task_1", 0)
        assert _sprint_ids(sample_doc, "sprint_1") == ["task_1", "task_4"]

    def test_reorder_sprint_rejects_backlog_task(self, sample_doc) -> None:
        assert not reorder_sprint_item(sample_doc, "task_1", 0)

    def test_groups_independent(self, sample_doc) -> None:
        """Sprint and backlog positions are numbered separately."""
        assert sample_doc.get_task("task_4").backlog_position == 0
        assert sample_doc.get_task("task_1").backlog_position == 0

    def test_normalize_closes_gaps(self, sample_doc) -> None:
        sample_doc.get_task("task_2").backlog_position = 10
        sample_doc.get_task("task_3").backlog_position = 4
        normalize_backlog(sample_doc)
        assert _backlog_ids(sample_doc) == ["task_1", "task_3", "task_2"]
        assert [t.backlog_position for t in product_backlog(sample_doc)] == [0, 1, 2]
