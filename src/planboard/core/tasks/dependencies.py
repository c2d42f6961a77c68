"""
Dependency edits with cycle prevention.

An edge ``from_id -> to_id`` records ``from_id`` in the ``dependencies``
list of ``to_id``: *from* must finish before *to*. The relation over task
ids is kept acyclic after every call. Rejections are returned, never
raised, and leave the document untouched.

Milestone dependencies (``milestone_dependencies``) live in the same id
space but are a plain completion set; see ``planboard.core.tasks.milestones``.
"""

from __future__ import annotations

import logging
from enum import Enum

from planboard.core.document.models import Document, Task
from planboard.core.graph import find_cycle, invert, path_exists, reachable

logger = logging.getLogger(__name__)


class DependencyResult(str, Enum):
    """Outcome of ``add_dependency``."""

    ADDED = "added"
    SELF_DEPENDENCY = "self-dependency"
    DUPLICATE = "duplicate"
    UNKNOWN_TASK = "unknown-task"
    CYCLE = "cycle"

    @property
    def ok(self) -> bool:
        return self is DependencyResult.ADDED


def predecessor_map(doc: Document) -> dict[str, set[str]]:
    """Map each task id to the set of ids it depends on."""
    return {task.id: set(task.dependencies) for task in doc.tasks}


def would_create_cycle(doc: Document, from_id: str, to_id: str) -> bool:
    """
    Check whether adding ``from_id -> to_id`` would close a cycle.

    Walks successor edges from ``to_id``; reaching ``from_id`` means a path
    ``to_id -> ... -> from_id`` already exists.
    """
    if from_id == to_id:
        return True
    successors = invert(predecessor_map(doc))
    return path_exists(successors, to_id, from_id)


def add_dependency(doc: Document, from_id: str, to_id: str) -> DependencyResult:
    """
    Make ``from_id`` a predecessor of ``to_id``.

    Args:
        doc: Document to mutate
        from_id: Predecessor task ID
        to_id: Successor task ID

    Returns:
        DependencyResult.ADDED on success, otherwise the rejection reason
    """
    if from_id == to_id:
        return DependencyResult.SELF_DEPENDENCY

    target = doc.get_task(to_id)
    if target is None or doc.get_task(from_id) is None:
        return DependencyResult.UNKNOWN_TASK

    if from_id in target.dependencies:
        return DependencyResult.DUPLICATE

    if would_create_cycle(doc, from_id, to_id):
        logger.debug("Rejected dependency %s -> %s: would create a cycle", from_id, to_id)
        return DependencyResult.CYCLE

    target.dependencies.append(from_id)
    return DependencyResult.ADDED


def remove_dependency(doc: Document, from_id: str, to_id: str) -> bool:
    """Remove the edge ``from_id -> to_id``; False if it did not exist."""
    target = doc.get_task(to_id)
    if target is None or from_id not in target.dependencies:
        return False
    target.dependencies = [d for d in target.dependencies if d != from_id]
    return True


def validate_dependencies(doc: Document) -> int:
    """
    Prune dependency ids that no longer resolve to a task.

    Applies to both ``dependencies`` and ``milestone_dependencies``. Used
    after import, since imported documents are untrusted.

    Returns:
        Number of ids removed
    """
    task_ids = doc.task_ids()
    removed = 0

    for task in doc.tasks:
        kept = [d for d in task.dependencies if d in task_ids]
        kept_milestone = [d for d in task.milestone_dependencies if d in task_ids]
        removed += len(task.dependencies) - len(kept)
        removed += len(task.milestone_dependencies) - len(kept_milestone)
        task.dependencies = kept
        task.milestone_dependencies = kept_milestone

    if removed:
        logger.info("Pruned %d dangling dependency reference(s)", removed)
    return removed


def break_cycles(doc: Document) -> int:
    """
    Remove edges until the dependency relation is acyclic.

    For each cycle found, the edge closing it is dropped. Only needed for
    untrusted input; documents edited through ``add_dependency`` never
    contain cycles.

    Returns:
        Number of edges removed
    """
    removed = 0
    while True:
        cycle = find_cycle(predecessor_map(doc))
        if cycle is None:
            break
        # cycle[i] depends on cycle[i + 1]; drop the last edge of the loop
        task_id, dep_id = cycle[-2], cycle[-1]
        task = doc.get_task(task_id)
        if task is None:
            break
        task.dependencies = [d for d in task.dependencies if d != dep_id]
        logger.info("Broke dependency cycle by removing %s -> %s", dep_id, task_id)
        removed += 1
    return removed


def potential_predecessors(doc: Document, task_id: str) -> list[Task]:
    """
    Tasks that could be added as a predecessor of *task_id*.

    Excludes the task itself, its current predecessors and any task whose
    addition would create a cycle.
    """
    task = doc.get_task(task_id)
    if task is None:
        return []

    successors = invert(predecessor_map(doc))
    downstream = reachable(successors, task_id) | {task_id}
    current = set(task.dependencies)
    return [t for t in doc.tasks if t.id not in downstream and t.id not in current]


def predecessors_of(doc: Document, task_id: str) -> list[Task]:
    task = doc.get_task(task_id)
    if task is None:
        return []
    return [t for t in (doc.get_task(d) for d in task.dependencies) if t is not None]


def successors_of(doc: Document, task_id: str) -> list[Task]:
    return [t for t in doc.tasks if task_id in t.dependencies]
