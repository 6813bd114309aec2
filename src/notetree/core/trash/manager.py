"""Soft delete, trash listing, restore, and recursive hard delete."""

import sqlite3

from loguru import logger

from notetree.core.database.queries import parent_clause, require_node
from notetree.core.tree.guard import descendant_closure
from notetree.core.tree.ordering import resequence_group
from notetree.models.node import DeletedNote, HardDeleteStats


def soft_delete(conn: sqlite3.Connection, *, node_id: int, now: int) -> None:
    """Mark a note deleted. Descendants keep their rows and links untouched."""
    require_node(conn, node_id)
    conn.execute(
        "UPDATE notes SET is_deleted = 1, updated_at = ? WHERE id = ?",
        (now, node_id),
    )
    logger.debug("Soft-deleted note {}", node_id)


def list_deleted(conn: sqlite3.Connection) -> list[DeletedNote]:
    """All soft-deleted notes, most recently touched first."""
    rows = conn.execute(
        "SELECT id, title, updated_at FROM notes WHERE is_deleted = 1 "
        "ORDER BY updated_at DESC, id DESC"
    ).fetchall()
    return [DeletedNote(id=r[0], title=r[1], deleted_at=r[2]) for r in rows]


def restore(conn: sqlite3.Connection, *, node_id: int, now: int) -> None:
    """Clear the deleted flag on one note.

    Neither ancestors nor descendants are restored. A note whose ancestor is
    still deleted stays out of the tree view until that ancestor is restored
    as well. If the note's key collides with an active sibling, the sibling
    group is resequenced to keep a strict order.
    """
    node = require_node(conn, node_id)
    conn.execute(
        "UPDATE notes SET is_deleted = 0, updated_at = ? WHERE id = ?",
        (now, node_id),
    )
    where, params = parent_clause(node.parent_id)
    collision = conn.execute(
        f"SELECT 1 FROM notes WHERE {where} AND is_deleted = 0 AND id != ? AND order_key = ?",
        (*params, node_id, node.order_key),
    ).fetchone()
    if collision:
        resequence_group(conn, node.parent_id)
    logger.debug("Restored note {}", node_id)


def hard_delete(conn: sqlite3.Connection, *, node_id: int) -> HardDeleteStats:
    """Permanently remove a note and its full descendant closure.

    Index entries go with the rows through the FTS delete trigger.
    """
    require_node(conn, node_id)
    closure = descendant_closure(conn, node_id)
    # Leaves first, so no surviving row ever points at a removed parent.
    doomed = [(i,) for i in reversed(closure)]
    conn.executemany("DELETE FROM open_state WHERE note_id = ?", doomed)
    conn.executemany("DELETE FROM notes WHERE id = ?", doomed)
    logger.info("Hard-deleted note {} with {} descendants", node_id, len(closure) - 1)
    return HardDeleteStats(root_id=node_id, deleted_ids=tuple(closure))
