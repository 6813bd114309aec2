"""Row access helpers shared by the tree, trash, and search modules."""

import sqlite3

from notetree.errors import NotFoundError
from notetree.models.node import Node

NODE_COLUMNS = (
    "id, parent_id, title, content, order_key, is_open, is_pinned, is_deleted, "
    "created_at, updated_at, is_markdown_view"
)


def row_to_node(row: sqlite3.Row | tuple) -> Node:
    return Node(
        id=row[0],
        parent_id=row[1],
        title=row[2],
        content=row[3],
        order_key=row[4],
        is_open=bool(row[5]),
        is_pinned=bool(row[6]),
        is_deleted=bool(row[7]),
        created_at=row[8],
        updated_at=row[9],
        is_markdown_view=bool(row[10]),
    )


def fetch_node(conn: sqlite3.Connection, node_id: int) -> Node | None:
    """Return the node with ``node_id`` (deleted or not), or None."""
    row = conn.execute(
        f"SELECT {NODE_COLUMNS} FROM notes WHERE id = ?", (node_id,)
    ).fetchone()
    return row_to_node(row) if row else None


def require_node(conn: sqlite3.Connection, node_id: int, *, role: str = "Note") -> Node:
    """Return the node with ``node_id`` or raise :class:`NotFoundError`."""
    node = fetch_node(conn, node_id)
    if node is None:
        raise NotFoundError(node_id, role=role)
    return node


def node_exists(conn: sqlite3.Connection, node_id: int) -> bool:
    return conn.execute("SELECT 1 FROM notes WHERE id = ?", (node_id,)).fetchone() is not None


def parent_clause(parent_id: int | None) -> tuple[str, tuple[int, ...]]:
    """SQL condition and params selecting rows whose parent is ``parent_id``.

    ``parent_id = NULL`` never matches in SQL, so roots need ``IS NULL``.
    """
    if parent_id is None:
        return "parent_id IS NULL", ()
    return "parent_id = ?", (parent_id,)
