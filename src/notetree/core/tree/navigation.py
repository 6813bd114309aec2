"""Tree navigation: breadcrumbs and children."""

import sqlite3

from notetree.core.database.queries import NODE_COLUMNS, parent_clause, row_to_node
from notetree.core.tree.guard import ancestor_ids
from notetree.models.node import Breadcrumb, Node


def get_breadcrumbs(conn: sqlite3.Connection, *, node_id: int) -> tuple[Breadcrumb, ...]:
    """Get ancestor breadcrumbs for a node.

    Returns breadcrumbs in order from root to immediate parent (excludes the node itself).
    """
    ancestors = list(reversed(ancestor_ids(conn, node_id)))
    if not ancestors:
        return ()

    placeholders = ",".join("?" * len(ancestors))
    titles = dict(
        conn.execute(
            f"SELECT id, title FROM notes WHERE id IN ({placeholders})", ancestors
        ).fetchall()
    )
    return tuple(
        Breadcrumb(node_id=a, title=titles[a], depth=depth) for depth, a in enumerate(ancestors)
    )


def get_children(
    conn: sqlite3.Connection,
    *,
    parent_id: int | None,
    limit: int = 50,
) -> tuple[Node, ...]:
    """Get active direct children of a node (or the roots), in sibling order."""
    where, params = parent_clause(parent_id)
    rows = conn.execute(
        f"SELECT {NODE_COLUMNS} FROM notes WHERE {where} AND is_deleted = 0 "
        "ORDER BY order_key, id LIMIT ?",
        (*params, limit),
    ).fetchall()
    return tuple(row_to_node(r) for r in rows)
