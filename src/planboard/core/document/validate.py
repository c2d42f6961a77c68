"""
Document validation.

Two levels:

- ``missing_fields`` / ``require_fields`` look at raw parsed JSON before
  anything else happens to it. A document without ``project``, ``tasks``
  or ``categories`` is not a migration case.
- ``check_invariants`` inspects a loaded Document and reports every
  consistency rule it breaks. It never mutates.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from planboard.core.graph import find_cycle

from .exceptions import MalformedDocumentError
from .models import SCHEMA_VERSION, Document

REQUIRED_FIELDS = ("project", "tasks", "categories")


@dataclass(frozen=True)
class Violation:
    """One broken consistency rule."""

    code: str
    message: str
    subject: str | None = None

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


def missing_fields(data: Any) -> list[str]:
    if not isinstance(data, Mapping):
        return list(REQUIRED_FIELDS)
    return [name for name in REQUIRED_FIELDS if name not in data]


def require_fields(data: Any) -> None:
    """
    Raise MalformedDocumentError unless the required top-level fields exist.

    Raises:
        MalformedDocumentError: With ``missing`` in its context
    """
    missing = missing_fields(data)
    if missing:
        raise MalformedDocumentError(
            f"Document is missing required fields: {', '.join(missing)}",
            missing=missing,
        )


def _dense(positions: list[int]) -> bool:
    return sorted(positions) == list(range(len(positions)))


def check_invariants(doc: Document) -> list[Violation]:
    """Return every invariant the document breaks (empty when consistent)."""
    violations: list[Violation] = []

    if doc.version != SCHEMA_VERSION:
        violations.append(
            Violation("version", f"Document version {doc.version} is not {SCHEMA_VERSION}")
        )

    counts = Counter(t.id for t in doc.tasks)
    for task_id, count in counts.items():
        if count > 1:
            violations.append(
                Violation("duplicate-id", f"Task id {task_id} is used {count} times", task_id)
            )

    known = set(counts)
    for task in doc.tasks:
        for dep in task.dependencies:
            if dep not in known:
                violations.append(
                    Violation("dangling-dependency", f"{task.id} depends on unknown {dep}", task.id)
                )
        for dep in task.milestone_dependencies:
            if dep not in known:
                violations.append(
                    Violation(
                        "dangling-milestone-dependency",
                        f"Milestone {task.id} tracks unknown {dep}",
                        task.id,
                    )
                )

    cycle = find_cycle({t.id: [d for d in t.dependencies if d in known] for t in doc.tasks})
    if cycle:
        violations.append(Violation("cycle", "Dependency cycle: " + " -> ".join(cycle)))

    columns = {c.id for c in doc.workflow.columns}
    by_column: dict[str, list[int]] = defaultdict(list)
    by_group: dict[str | None, list[int]] = defaultdict(list)
    for task in doc.tasks:
        if task.board.column_id not in columns:
            violations.append(
                Violation(
                    "unknown-column",
                    f"{task.id} sits in unknown column {task.board.column_id}",
                    task.id,
                )
            )
        by_column[task.board.column_id].append(task.board.position)
        by_group[task.sprint_id].append(task.backlog_position)

    for column_id, positions in by_column.items():
        if not _dense(positions):
            violations.append(
                Violation("board-position", f"Positions in column {column_id} are not dense", column_id)
            )
    for sprint_id, positions in by_group.items():
        if not _dense(positions):
            group = "the product backlog" if sprint_id is None else f"sprint {sprint_id}"
            violations.append(
                Violation("backlog-position", f"Positions in {group} are not dense", sprint_id)
            )

    for retro in doc.retrospectives:
        parents = {i.id: i.group_id for i in retro.items}
        for item in retro.items:
            if item.group_id and parents.get(item.group_id):
                violations.append(
                    Violation(
                        "retro-nesting",
                        f"Item {item.id} is grouped under a child item",
                        item.id,
                    )
                )

    return violations
