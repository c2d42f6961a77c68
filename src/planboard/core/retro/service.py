"""
Retrospective boards.

Items sit in columns (``went-well``, ``to-improve``, ``action-items`` ...).
An item can be grouped under another item of the same retrospective by
setting its ``group_id``. Grouping is two levels deep at most: a parent
is never a child, and a child never has children of its own. Positions
are dense among the top-level items of each column.
"""

from __future__ import annotations

from datetime import datetime, timezone

from planboard.core.document.models import (
    Document,
    RetroItem,
    Retrospective,
    generate_id,
)

WENT_WELL = "went-well"
TO_IMPROVE = "to-improve"
ACTION_ITEMS = "action-items"
RETRO_COLUMNS = (WENT_WELL, TO_IMPROVE, ACTION_ITEMS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ----------------------------------------------------------------------
# Retrospective CRUD
# ----------------------------------------------------------------------


def create_retrospective(
    doc: Document,
    name: str = "New Retrospective",
    sprint_id: str | None = None,
    is_anonymous: bool = True,
) -> Retrospective:
    retro = Retrospective(
        id=generate_id("retro"),
        name=name or "New Retrospective",
        sprint_id=sprint_id if sprint_id and doc.get_sprint(sprint_id) else None,
        is_anonymous=is_anonymous,
        created_at=_utcnow(),
    )
    doc.retrospectives.append(retro)
    return retro


def update_retrospective(
    doc: Document,
    retro_id: str,
    name: str | None = None,
    sprint_id: str | None = None,
    is_anonymous: bool | None = None,
) -> Retrospective | None:
    retro = doc.get_retrospective(retro_id)
    if retro is None:
        return None
    if name is not None:
        retro.name = name
    if sprint_id is not None:
        retro.sprint_id = sprint_id or None
    if is_anonymous is not None:
        retro.is_anonymous = is_anonymous
    return retro


def delete_retrospective(doc: Document, retro_id: str) -> bool:
    if doc.get_retrospective(retro_id) is None:
        return False
    doc.retrospectives = [r for r in doc.retrospectives if r.id != retro_id]
    return True


# ----------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------


def column_items(retro: Retrospective, column: str) -> list[RetroItem]:
    """Top-level items of a column, by position."""
    return sorted(
        (i for i in retro.items if i.column == column and not i.group_id),
        key=lambda i: i.position,
    )


def child_items(retro: Retrospective, parent_id: str) -> list[RetroItem]:
    return sorted((i for i in retro.items if i.group_id == parent_id), key=lambda i: i.position)


def total_votes(retro: Retrospective, item_id: str) -> int:
    """Votes on an item plus the votes on its children."""
    item = retro.get_item(item_id)
    if item is None:
        return 0
    return item.votes + sum(child.votes for child in child_items(retro, item_id))


def action_items(retro: Retrospective) -> list[RetroItem]:
    """Action items, most voted first."""
    return sorted(
        (i for i in retro.items if i.column == ACTION_ITEMS),
        key=lambda i: i.votes,
        reverse=True,
    )


def format_action_items(retro: Retrospective) -> str:
    """Plain-text list of action items for sharing."""
    items = action_items(retro)
    if not items:
        return "No action items"

    lines = [f"ACTION ITEMS - {retro.name}", "=" * 40, ""]
    for index, item in enumerate(items, start=1):
        lines.append(f"{index}. {item.text}")
        if item.votes > 0:
            lines.append(f"   Votes: {item.votes}")
        lines.append("")
    return "\n".join(lines)


def reposition_items(retro: Retrospective, column: str) -> None:
    for index, item in enumerate(column_items(retro, column)):
        item.position = index


# ----------------------------------------------------------------------
# Item edits
# ----------------------------------------------------------------------


def add_item(
    doc: Document,
    retro_id: str,
    text: str,
    column: str = WENT_WELL,
    author: str | None = None,
) -> RetroItem | None:
    """Append an item to the end of a column."""
    retro = doc.get_retrospective(retro_id)
    if retro is None:
        return None

    item = RetroItem(
        id=generate_id("item"),
        column=column or WENT_WELL,
        text=text,
        author=None if retro.is_anonymous else author,
        position=len(column_items(retro, column or WENT_WELL)),
        created_at=_utcnow(),
    )
    retro.items.append(item)
    return item


def update_item(
    doc: Document,
    retro_id: str,
    item_id: str,
    text: str | None = None,
    author: str | None = None,
) -> RetroItem | None:
    retro = doc.get_retrospective(retro_id)
    item = retro.get_item(item_id) if retro else None
    if item is None:
        return None
    if text is not None:
        item.text = text
    if author is not None:
        item.author = author or None
    return item


def delete_item(doc: Document, retro_id: str, item_id: str) -> bool:
    """Delete an item; its children become top-level items at the column end."""
    retro = doc.get_retrospective(retro_id)
    item = retro.get_item(item_id) if retro else None
    if retro is None or item is None:
        return False

    retro.items = [i for i in retro.items if i.id != item_id]
    end = len(column_items(retro, item.column))
    for offset, child in enumerate(i for i in retro.items if i.group_id == item_id):
        child.group_id = None
        child.position = end + offset
    reposition_items(retro, item.column)
    return True


def vote_item(doc: Document, retro_id: str, item_id: str) -> RetroItem | None:
    retro = doc.get_retrospective(retro_id)
    item = retro.get_item(item_id) if retro else None
    if item is None:
        return None
    item.votes += 1
    return item


def group_items(doc: Document, retro_id: str, target_id: str, source_id: str) -> bool:
    """
    Group *source* under *target*.

    Rejected when the two are the same item, the target is itself a child,
    or the source already has children. The source moves to the target's
    column.
    """
    retro = doc.get_retrospective(retro_id)
    if retro is None or target_id == source_id:
        return False
    target = retro.get_item(target_id)
    source = retro.get_item(source_id)
    if target is None or source is None:
        return False
    if target.group_id:
        return False
    if any(i.group_id == source_id for i in retro.items):
        return False

    old_column = source.column
    source.column = target.column
    source.group_id = target_id
    source.position = len(child_items(retro, target_id)) - 1
    reposition_items(retro, old_column)
    return True


def ungroup_item(doc: Document, retro_id: str, item_id: str) -> bool:
    """Make a child a top-level item at the end of its column."""
    retro = doc.get_retrospective(retro_id)
    item = retro.get_item(item_id) if retro else None
    if retro is None or item is None or not item.group_id:
        return False

    parent_id = item.group_id
    item.group_id = None
    item.position = len(column_items(retro, item.column)) - 1
    for index, child in enumerate(child_items(retro, parent_id)):
        child.position = index
    return True


def move_item(
    doc: Document,
    retro_id: str,
    item_id: str,
    column: str,
    position: int,
) -> bool:
    """
    Move an item to a column and position.

    A child is ungrouped first; a parent takes its children along.
    """
    retro = doc.get_retrospective(retro_id)
    item = retro.get_item(item_id) if retro else None
    if retro is None or item is None:
        return False

    old_column = item.column
    item.group_id = None
    for child in child_items(retro, item_id):
        child.column = column
    item.column = column

    others = [i for i in column_items(retro, column) if i.id != item_id]
    others.insert(max(0, min(position, len(others))), item)
    for index, i in enumerate(others):
        i.position = index

    if old_column != column:
        reposition_items(retro, old_column)
    return True
