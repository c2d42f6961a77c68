"""
Retrospective boards.

Provides operations for:
- Creating retrospectives, optionally linked to a sprint
- Adding, voting on and moving items between columns
- Grouping related items under a parent item
"""

from planboard.core.retro.service import (
    action_items,
    add_item,
    create_retrospective,
    group_items,
    move_item,
)

__all__ = [
    "action_items",
    "add_item",
    "create_retrospective",
    "group_items",
    "move_item",
]
