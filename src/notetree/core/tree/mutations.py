"""Tree mutation engine: move, insert, content edits, and flag writes.

These functions are the only writers of ``parent_id`` and ``order_key``. They
do not open or commit transactions; :class:`notetree.store.NoteStore` wraps
each call in one.
"""

import sqlite3

from loguru import logger

from notetree.core.database.queries import parent_clause, require_node
from notetree.core.tree.guard import is_safe_reparent
from notetree.core.tree.ordering import (
    active_sibling_ids,
    allocate_key,
    has_headroom,
    resequence_group,
    write_sequence,
)
from notetree.errors import StorageError, StructuralConflictError
from notetree.models.node import Node

SIBLING_TITLE = "New Note"
CHILD_TITLE = "New Child"


def _insert_node(
    conn: sqlite3.Connection,
    *,
    parent_id: int | None,
    title: str,
    order_key: float,
    now: int,
) -> Node:
    cursor = conn.execute(
        """INSERT INTO notes
           (parent_id, title, content, order_key, is_open, is_deleted, created_at, updated_at)
           VALUES (?, ?, '', ?, 0, 0, ?, ?)""",
        (parent_id, title, order_key, now, now),
    )
    node_id = cursor.lastrowid
    if node_id is None:
        msg = "Insert did not return a row id"
        raise StorageError(msg)
    logger.debug("Inserted note {} under {} at key {}", node_id, parent_id, order_key)
    return require_node(conn, node_id)


def _next_sibling_key(
    conn: sqlite3.Connection, parent_id: int | None, node_id: int, order_key: float
) -> float | None:
    where, params = parent_clause(parent_id)
    row = conn.execute(
        f"SELECT MIN(order_key) FROM notes "
        f"WHERE {where} AND is_deleted = 0 AND id != ? AND order_key > ?",
        (*params, node_id, order_key),
    ).fetchone()
    return row[0]


def insert_sibling(
    conn: sqlite3.Connection, *, reference_id: int, now: int, title: str = SIBLING_TITLE
) -> Node:
    """Create a note right after ``reference_id``, sharing its parent."""
    reference = require_node(conn, reference_id)
    parent_id = reference.parent_id
    before = reference.order_key
    after = _next_sibling_key(conn, parent_id, reference_id, before)

    if not has_headroom(before, after):
        # A trashed reference keeps its place in the sequence.
        resequence_group(conn, parent_id, include=reference_id)
        before = require_node(conn, reference_id).order_key
        after = _next_sibling_key(conn, parent_id, reference_id, before)

    return _insert_node(
        conn,
        parent_id=parent_id,
        title=title,
        order_key=allocate_key(before, after),
        now=now,
    )


def insert_child(
    conn: sqlite3.Connection, *, parent_id: int | None, now: int, title: str = CHILD_TITLE
) -> Node:
    """Create a note as the last child of ``parent_id`` (or last root)."""
    if parent_id is not None:
        require_node(conn, parent_id, role="Parent note")
    where, params = parent_clause(parent_id)
    max_key = conn.execute(
        f"SELECT MAX(order_key) FROM notes WHERE {where} AND is_deleted = 0", params
    ).fetchone()[0]
    return _insert_node(
        conn,
        parent_id=parent_id,
        title=title,
        order_key=allocate_key(max_key, None),
        now=now,
    )


def move_node(
    conn: sqlite3.Connection,
    *,
    node_id: int,
    new_parent_id: int | None,
    after_id: int | None = None,
    before_id: int | None = None,
    now: int,
) -> dict[int, float]:
    """Move ``node_id`` under ``new_parent_id`` and resequence the destination group.

    The node lands right after ``after_id``; failing that, in the slot of
    ``before_id`` (which moves down one place); failing both, at the end.
    Neighbours that are not active children of the new parent are ignored.

    Returns the rewritten keys of the destination group.

    Raises:
        NotFoundError: The node or the new parent does not exist.
        StructuralConflictError: The new parent is the node or a descendant of it.
    """
    require_node(conn, node_id)
    if new_parent_id == node_id:
        msg = f"Cannot move note {node_id} into itself"
        raise StructuralConflictError(msg, details={"id": node_id})
    if new_parent_id is not None:
        require_node(conn, new_parent_id, role="Parent note")
    if not is_safe_reparent(conn, node_id, new_parent_id):
        msg = f"Cannot move note {node_id} into its own descendant {new_parent_id}"
        raise StructuralConflictError(msg, details={"id": node_id, "parent_id": new_parent_id})

    siblings = active_sibling_ids(conn, new_parent_id, exclude=node_id)
    if after_id is not None and after_id in siblings:
        position = siblings.index(after_id) + 1
    elif before_id is not None and before_id in siblings:
        position = siblings.index(before_id)
    else:
        position = len(siblings)
    siblings.insert(position, node_id)

    keys = write_sequence(conn, siblings)
    conn.execute(
        "UPDATE notes SET parent_id = ?, updated_at = ? WHERE id = ?",
        (new_parent_id, now, node_id),
    )
    logger.debug("Moved note {} under {} at position {}", node_id, new_parent_id, position)
    return keys


def update_content(
    conn: sqlite3.Connection,
    *,
    node_id: int,
    title: str | None = None,
    content: str | None = None,
    now: int,
) -> int:
    """Change title and/or content; returns the new ``updated_at``."""
    require_node(conn, node_id)
    assignments: list[str] = []
    params: list[str | int] = []
    if title is not None:
        assignments.append("title = ?")
        params.append(title)
    if content is not None:
        assignments.append("content = ?")
        params.append(content)
    if not assignments:
        return now

    assignments.append("updated_at = ?")
    params.extend([now, node_id])
    conn.execute(f"UPDATE notes SET {', '.join(assignments)} WHERE id = ?", params)
    logger.debug("Updated content of note {}", node_id)
    return now


def toggle_pinned(conn: sqlite3.Connection, *, node_id: int) -> bool:
    """Flip ``is_pinned``; returns the new state. Does not touch ``updated_at``."""
    pinned = not require_node(conn, node_id).is_pinned
    conn.execute("UPDATE notes SET is_pinned = ? WHERE id = ?", (int(pinned), node_id))
    return pinned


def toggle_markdown_view(conn: sqlite3.Connection, *, node_id: int) -> bool:
    """Flip ``is_markdown_view``; returns the new state."""
    enabled = not require_node(conn, node_id).is_markdown_view
    conn.execute(
        "UPDATE notes SET is_markdown_view = ? WHERE id = ?", (int(enabled), node_id)
    )
    return enabled
