"""
Pytest configuration and shared fixtures.

Provides fixtures for fresh and populated project documents, raw legacy
documents at older schema versions, and an isolated config environment.
"""

import json
import os
from datetime import date, datetime, timezone
from typing import Any

import pytest

from planboard.core.document.models import (
    BoardPlacement,
    Document,
    Project,
    Sprint,
    SprintStatus,
    Task,
)

PROJECT_START = date(2026, 3, 2)


# ==============================================================================
# Document Fixtures
# ==============================================================================


def _make_task(
    task_id: str,
    column: str = "backlog",
    position: int = 0,
    **fields: Any,
) -> Task:
    """Shorthand for a Task placed on the board."""
    fields.setdefault("name", f"Task {task_id}")
    return Task(id=task_id, board=BoardPlacement(column_id=column, position=position), **fields)


@pytest.fixture
def make_task():
    """Factory for tasks placed on the board: make_task(id, column, position, **fields)."""
    return _make_task


@pytest.fixture
def empty_doc():
    """A current-version document with no tasks (project starts 2026-03-02)."""
    return Document(
        project=Project(
            title="Brand refresh",
            start_date=PROJECT_START,
            end_date=date(2026, 5, 31),
            total_weeks=13,
        ),
        categories={"Design": "#a78bfa", "Build": "#38bdf8"},
    )


@pytest.fixture
def sample_doc(empty_doc):
    """
    A document with a small dependency chain and one sprint.

    task_1 <- task_2 <- task_3, task_4 independent and done.
    """
    doc = empty_doc
    doc.sprints = [
        Sprint(
            id="sprint_1",
            name="Sprint 1",
            start_date=PROJECT_START,
            end_date=date(2026, 3, 15),
            status=SprintStatus.ACTIVE,
        )
    ]
    doc.tasks = [
        _make_task("task_1", "todo", 0, category="Design", planned=[1, 2], backlog_position=0),
        _make_task(
            "task_2", "todo", 1, category="Design", planned=[3], dependencies=["task_1"],
            backlog_position=1,
        ),
        _make_task(
            "task_3", "backlog", 0, category="Build", dependencies=["task_2"], backlog_position=2,
        ),
        _make_task(
            "task_4", "done", 0, category="Build", planned=[1], reality=[1],
            sprint_id="sprint_1", story_points=3, backlog_position=0,
            completed_at=datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc),
        ),
    ]
    return doc


# ==============================================================================
# Legacy Document Fixtures
# ==============================================================================


@pytest.fixture
def v3_data():
    """A pre-versioning document with months and start/end weeks."""
    return {
        "project": {"title": "Legacy", "startDate": "2026-01-05"},
        "months": [{"name": "January", "weeks": 4}, {"name": "February", "weeks": 4}],
        "categories": {"Design": "#a78bfa"},
        "tasks": [
            {"id": 1, "name": "Research", "category": "Design", "startWeek": 1, "endWeek": 2},
            {
                "id": 2,
                "name": "Sketches",
                "category": "Design",
                "startWeek": 3,
                "endWeek": 3,
                "dependencies": [1],
            },
        ],
    }


@pytest.fixture
def v4_data():
    """An unversioned week-based document (treated as v4)."""
    return {
        "project": {"title": "Week based", "startDate": "2026-01-05", "totalWeeks": 8},
        "team": ["Ana", "Bo"],
        "categories": {"Design": "#a78bfa"},
        "tasks": [
            {
                "id": 1,
                "name": "Research",
                "category": "Design",
                "planned": [1, 2],
                "reality": [1, 2],
                "assignee": "Ana",
            },
            {"id": 2, "name": "Sketches", "category": "Design", "planned": [3], "reality": [3]},
            {"id": 3, "name": "Review", "category": "Design", "planned": [4], "reality": []},
        ],
    }


@pytest.fixture
def v8_data():
    """A v8 document with week-based sprints and burndown snapshots."""
    return {
        "version": 8,
        "project": {"title": "Sprints", "startDate": "2026-01-05", "totalWeeks": 8},
        "team": ["Ana"],
        "categories": {"Build": "#38bdf8"},
        "workflow": {
            "columns": [
                {"id": "backlog", "name": "Backlog", "color": "#6366f1", "position": 0},
                {"id": "todo", "name": "To Do", "color": "#a78bfa", "position": 1},
                {"id": "in-progress", "name": "In Progress", "color": "#fbbf24", "position": 2},
                {"id": "done", "name": "Done", "color": "#22c55e", "position": 3},
            ]
        },
        "sprints": [
            {
                "id": "sprint_a",
                "name": "Sprint A",
                "startWeek": 2,
                "endWeek": 3,
                "status": "completed",
                "burndown": [{"date": "2026-01-12", "remaining": 5}],
            }
        ],
        "timeEntries": [],
        "tasks": [
            {
                "id": "task_1",
                "name": "API",
                "category": "Build",
                "planned": [2],
                "reality": [2],
                "board": {"columnId": "done", "position": 0},
                "assignee": "Ana",
                "storyPoints": 5,
                "sprintId": "sprint_a",
                "backlogPosition": 0,
                "completedAt": "2026-01-14T12:00:00Z",
                "customField": "kept",
            }
        ],
    }


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture
def clean_env(monkeypatch):
    """Remove PLANBOARD_* env vars so tests don't inherit configuration."""
    for key in list(os.environ.keys()):
        if key.startswith("PLANBOARD_"):
            monkeypatch.delenv(key, raising=False)
    yield monkeypatch
    # load_env_files writes os.environ directly
    for key in list(os.environ.keys()):
        if key.startswith("PLANBOARD_"):
            del os.environ[key]


@pytest.fixture
def isolated_config(clean_env, tmp_path, monkeypatch):
    """
    Provide completely isolated config environment.

    Points XDG_CONFIG_HOME at a temp directory, runs from a temp project
    directory and clears the config cache.
    """
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))

    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)

    from planboard.core.config import clear_cache

    clear_cache()
    yield config_home
    clear_cache()


@pytest.fixture
def doc_file(tmp_path, sample_doc):
    """Write sample_doc to plan.json and return its path."""
    path = tmp_path / "plan.json"
    path.write_text(json.dumps(sample_doc.to_json_dict(), indent=2))
    return path
