"""Tests for the time log."""

from __future__ import annotations

from datetime import date

import pytest

from planboard.core.timelog.entries import (
    UNCATEGORIZED,
    UNCATEGORIZED_COLOR,
    add_time_entry,
    calculate_duration,
    delete_time_entry,
    entries_for_date,
    entries_for_range,
    entries_for_task,
    format_duration,
    get_time_entry,
    group_entries_by_category,
    group_entries_by_task,
    total_minutes,
    update_time_entry,
    validate_time_entry,
)

DAY = date(2026, 3, 3)


class TestDuration:
    @pytest.mark.parametrize(
        ("start", "end", "minutes"),
        [
            ("09:00", "10:30", 90),
            ("22:30", "01:00", 150),
            ("08:15", "08:15", 0),
            ("9:05", "17:00", 475),
        ],
    )
    def test_calculate(self, start, end, minutes) -> None:
        assert calculate_duration(start, end) == minutes

    def test_missing_time(self) -> None:
        assert calculate_duration("", "10:00") == 0

    @pytest.mark.parametrize(
        ("minutes", "text"),
        [(150, "2h 30m"), (120, "2h"), (45, "45m"), (0, "0m")],
    )
    def test_format(self, minutes, text) -> None:
        assert format_duration(minutes) == text


class TestValidation:
    def test_valid(self) -> None:
        assert validate_time_entry(DAY, "09:00", "10:00").valid

    def test_all_missing(self) -> None:
        result = validate_time_entry(None, None, None)
        assert not result.valid
        assert result.errors == [
            "Date is required",
            "Start time is required",
            "End time is required",
        ]

    def test_bad_formats(self) -> None:
        result = validate_time_entry("2026-02-30", "24:00", "9:5")
        assert result.errors == [
            "Invalid date format",
            "Invalid start time format",
            "Invalid end time format",
        ]

    def test_iso_string_date(self) -> None:
        assert validate_time_entry("2026-03-03", "09:00", "10:00").valid


class TestEntryCrud:
    def test_add_derives_duration(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, DAY, "22:30", "01:00", task_id="task_1", notes="Late fix")
        assert entry is not None
        assert entry.duration_minutes == 150
        assert entry.task_id == "task_1"
        assert get_time_entry(sample_doc, entry.id) is entry

    def test_add_with_string_date(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, "2026-03-03", "09:00", "10:00")
        assert entry.date == DAY
        assert entry.task_id is None

    def test_add_rejects_invalid(self, sample_doc) -> None:
        assert add_time_entry(sample_doc, DAY, "09:00", "25:00") is None
        assert add_time_entry(sample_doc, DAY, "09:00", "10:00", task_id="ghost") is None
        assert sample_doc.time_entries == []

    def test_update_recomputes_duration(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, DAY, "09:00", "10:00")
        assert update_time_entry(sample_doc, entry.id, end_time="11:30", billable=True)
        assert entry.duration_minutes == 150
        assert entry.billable is True

    def test_update_rejects_invalid(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, DAY, "09:00", "10:00")
        assert not update_time_entry(sample_doc, entry.id, start_time="nine")
        assert entry.start_time == "09:00"
        assert entry.duration_minutes == 60

    def test_update_unlinks_task(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, DAY, "09:00", "10:00", task_id="task_1")
        update_time_entry(sample_doc, entry.id, task_id="", date="2026-03-04")
        assert entry.task_id is None
        assert entry.date == date(2026, 3, 4)

    def test_delete(self, sample_doc) -> None:
        entry = add_time_entry(sample_doc, DAY, "09:00", "10:00")
        assert delete_time_entry(sample_doc, entry.id)
        assert not delete_time_entry(sample_doc, entry.id)
        assert not update_time_entry(sample_doc, entry.id, notes="x")


class TestQueries:
    @pytest.fixture
    def doc(self, sample_doc):
        add_time_entry(sample_doc, DAY, "13:00", "14:00", task_id="task_1")
        add_time_entry(sample_doc, DAY, "09:00", "11:00", task_id="task_3")
        add_time_entry(sample_doc, date(2026, 3, 5), "09:00", "09:30", task_id="task_1")
        add_time_entry(sample_doc, date(2026, 3, 9), "10:00", "10:45")
        return sample_doc

    def test_for_date_sorted_by_start(self, doc) -> None:
        assert [e.start_time for e in entries_for_date(doc, DAY)] == ["09:00", "13:00"]

    def test_for_range_inclusive(self, doc) -> None:
        entries = entries_for_range(doc, DAY, date(2026, 3, 5))
        assert [(e.date.day, e.start_time) for e in entries] == [(3, "09:00"), (3, "13:00"), (5, "09:00")]

    def test_for_task(self, doc) -> None:
        assert total_minutes(entries_for_task(doc, "task_1")) == 90

    def test_group_by_task(self, doc) -> None:
        groups = group_entries_by_task(doc, doc.time_entries)
        assert [(g.task.id if g.task else None, g.total_minutes) for g in groups] == [
            ("task_3", 120),
            ("task_1", 90),
            (None, 45),
        ]

    def test_group_by_category(self, doc) -> None:
        groups = group_entries_by_category(doc, doc.time_entries)
        summary = [(g.category, g.color, g.total_minutes) for g in groups]
        assert summary == [
            ("Build", "#38bdf8", 120),
            ("Design", "#a78bfa", 90),
            (UNCATEGORIZED, UNCATEGORIZED_COLOR, 45),
        ]
