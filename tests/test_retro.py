"""Tests for retrospective boards."""

from __future__ import annotations

import pytest

from planboard.core.retro import service as retro
from planboard.core.retro.service import (
    ACTION_ITEMS,
    TO_IMPROVE,
    WENT_WELL,
    action_items,
    add_item,
    child_items,
    column_items,
    create_retrospective,
    delete_item,
    delete_retrospective,
    format_action_items,
    group_items,
    move_item,
    total_votes,
    ungroup_item,
    update_item,
    update_retrospective,
    vote_item,
)


@pytest.fixture
def board(sample_doc):
    """A named retrospective with two went-well items and one to-improve item."""
    r = create_retrospective(sample_doc, "Sprint 1 retro", sprint_id="sprint_1", is_anonymous=False)
    first = add_item(sample_doc, r.id, "Pairing", WENT_WELL, author="Ana")
    second = add_item(sample_doc, r.id, "Demos", WENT_WELL, author="Bo")
    third = add_item(sample_doc, r.id, "Flaky CI", TO_IMPROVE)
    return sample_doc, r, first, second, third


def _texts(r, column: str) -> list[str]:
    return [i.text for i in column_items(r, column)]


class TestRetrospectiveCrud:
    def test_create_defaults(self, sample_doc) -> None:
        r = create_retrospective(sample_doc)
        assert r.name == "New Retrospective"
        assert r.is_anonymous
        assert r.sprint_id is None
        assert r.created_at is not None

    def test_unknown_sprint_dropped(self, sample_doc) -> None:
        assert create_retrospective(sample_doc, sprint_id="ghost").sprint_id is None

    def test_update_and_delete(self, board) -> None:
        doc, r, *_ = board
        update_retrospective(doc, r.id, name="Renamed", is_anonymous=True)
        assert r.name == "Renamed"
        assert r.is_anonymous
        assert delete_retrospective(doc, r.id)
        assert not delete_retrospective(doc, r.id)
        assert update_retrospective(doc, r.id, name="x") is None


class TestItems:
    def test_positions_per_column(self, board) -> None:
        _, r, first, second, third = board
        assert (first.position, second.position, third.position) == (0, 1, 0)

    def test_author_kept_when_named(self, board) -> None:
        _, _, first, _, _ = board
        assert first.author == "Ana"

    def test_anonymous_drops_author(self, sample_doc) -> None:
        r = create_retrospective(sample_doc)
        item = add_item(sample_doc, r.id, "Quiet win", author="Ana")
        assert item.author is None

    def test_unknown_retro(self, sample_doc) -> None:
        assert add_item(sample_doc, "ghost", "x") is None

    def test_update(self, board) -> None:
        doc, r, first, *_ = board
        update_item(doc, r.id, first.id, text="Mob programming", author="")
        assert first.text == "Mob programming"
        assert first.author is None

    def test_votes(self, board) -> None:
        doc, r, first, second, _ = board
        vote_item(doc, r.id, first.id)
        vote_item(doc, r.id, first.id)
        vote_item(doc, r.id, second.id)
        group_items(doc, r.id, first.id, second.id)
        assert total_votes(r, first.id) == 3
        assert vote_item(doc, r.id, "ghost") is None


class TestGrouping:
    def test_group_moves_source_under_target(self, board) -> None:
        doc, r, first, _, third = board
        assert group_items(doc, r.id, first.id, third.id)
        assert third.group_id == first.id
        assert third.column == WENT_WELL
        assert third.position == 0
        assert column_items(r, TO_IMPROVE) == []
        assert [i.id for i in child_items(r, first.id)] == [third.id]

    def test_group_renumbers_source_column(self, board) -> None:
        doc, r, first, second, _ = board
        group_items(doc, r.id, second.id, first.id)
        assert _texts(r, WENT_WELL) == ["Demos"]
        assert second.position == 0

    def test_rejects_self(self, board) -> None:
        doc, r, first, *_ = board
        assert not group_items(doc, r.id, first.id, first.id)

    def test_rejects_child_target(self, board) -> None:
        doc, r, first, second, third = board
        group_items(doc, r.id, first.id, second.id)
        assert not group_items(doc, r.id, second.id, third.id)
        assert third.group_id is None

    def test_rejects_source_with_children(self, board) -> None:
        doc, r, first, second, third = board
        group_items(doc, r.id, first.id, second.id)
        assert not group_items(doc, r.id, third.id, first.id)
        assert first.group_id is None

    def test_rejects_unknown(self, board) -> None:
        doc, r, first, *_ = board
        assert not group_items(doc, r.id, first.id, "ghost")
        assert not group_items(doc, "ghost", first.id, first.id)

    def test_ungroup_appends_to_column(self, board) -> None:
        doc, r, first, second, third = board
        group_items(doc, r.id, third.id, first.id)
        assert ungroup_item(doc, r.id, first.id)
        assert first.group_id is None
        assert first.column == TO_IMPROVE
        assert _texts(r, TO_IMPROVE) == ["Flaky CI", "Pairing"]
        assert not ungroup_item(doc, r.id, first.id)

    def test_delete_parent_promotes_children(self, board) -> None:
        doc, r, first, second, third = board
        group_items(doc, r.id, first.id, third.id)
        assert delete_item(doc, r.id, first.id)
        assert third.group_id is None
        assert _texts(r, WENT_WELL) == ["Demos", "Flaky CI"]
        assert [i.position for i in column_items(r, WENT_WELL)] == [0, 1]


class TestMoveItem:
    def test_move_between_columns(self, board) -> None:
        doc, r, first, *_ = board
        assert move_item(doc, r.id, first.id, TO_IMPROVE, 0)
        assert _texts(r, TO_IMPROVE) == ["Pairing", "Flaky CI"]
        assert _texts(r, WENT_WELL) == ["Demos"]
        assert column_items(r, WENT_WELL)[0].position == 0

    def test_children_follow_parent(self, board) -> None:
        doc, r, first, second, _ = board
        group_items(doc, r.id, first.id, second.id)
        move_item(doc, r.id, first.id, ACTION_ITEMS, 0)
        assert second.column == ACTION_ITEMS
        assert second.group_id == first.id

    def test_moving_child_ungroups_it(self, board) -> None:
        doc, r, first, second, _ = board
        group_items(doc, r.id, first.id, second.id)
        move_item(doc, r.id, second.id, WENT_WELL, 0)
        assert second.group_id is None
        assert _texts(r, WENT_WELL) == ["Demos", "Pairing"]

    def test_position_clamped(self, board) -> None:
        doc, r, first, *_ = board
        move_item(doc, r.id, first.id, TO_IMPROVE, 50)
        assert _texts(r, TO_IMPROVE) == ["Flaky CI", "Pairing"]


class TestActionItems:
    def test_sorted_by_votes(self, board) -> None:
        doc, r, *_ = board
        low = add_item(doc, r.id, "Write runbook", ACTION_ITEMS)
        high = add_item(doc, r.id, "Fix CI", ACTION_ITEMS)
        vote_item(doc, r.id, high.id)
        assert [i.id for i in action_items(r)] == [high.id, low.id]

    def test_format(self, board) -> None:
        doc, r, *_ = board
        item = add_item(doc, r.id, "Fix CI", ACTION_ITEMS)
        vote_item(doc, r.id, item.id)
        text = format_action_items(r)
        assert text.startswith("ACTION ITEMS - Sprint 1 retro")
        assert "1. Fix CI" in text
        assert "Votes: 1" in text

    def test_format_empty(self, board) -> None:
        _, r, *_ = board
        assert format_action_items(r) == "No action items"

    def test_module_columns(self) -> None:
        assert retro.RETRO_COLUMNS == (WENT_WELL, TO_IMPROVE, ACTION_ITEMS)
