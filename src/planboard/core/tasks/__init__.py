"""
Task-level operations: board placement, timeline edits, dependencies,
milestones and the progress/board sync rules.
"""

from .board import ColumnResult, add_task, delete_task, move_task
from .dependencies import DependencyResult, add_dependency, remove_dependency
from .graph import DependencyGraph
from .sync import derive_column_from_progress, sync_gantt_to_kanban, sync_kanban_to_gantt

__all__ = [
    "ColumnResult",
    "DependencyGraph",
    "DependencyResult",
    "add_dependency",
    "add_task",
    "delete_task",
    "derive_column_from_progress",
    "move_task",
    "remove_dependency",
    "sync_gantt_to_kanban",
    "sync_kanban_to_gantt",
]
