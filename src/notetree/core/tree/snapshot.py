"""Snapshot reader: the flat list of visible nodes the client assembles into a tree."""

import sqlite3

from notetree.models.node import TreeNode

# Visible = non-deleted roots plus, recursively, non-deleted children of visible nodes.
VISIBLE_CTE = """\
WITH RECURSIVE visible(id) AS (
    SELECT id FROM notes WHERE parent_id IS NULL AND is_deleted = 0
    UNION
    SELECT c.id FROM notes c JOIN visible v ON c.parent_id = v.id
    WHERE c.is_deleted = 0
)
"""


def get_tree_snapshot(conn: sqlite3.Connection) -> list[TreeNode]:
    """Return every visible node, pinned first, then grouped by parent, then by key."""
    rows = conn.execute(
        VISIBLE_CTE
        + """\
SELECT n.id, n.parent_id, n.title, n.content, n.order_key, n.is_open, n.is_pinned,
       n.is_markdown_view, n.created_at, n.updated_at,
       EXISTS(SELECT 1 FROM notes c WHERE c.parent_id = n.id AND c.is_deleted = 0)
FROM notes n JOIN visible v ON v.id = n.id
ORDER BY n.is_pinned DESC, n.parent_id, n.order_key, n.id
"""
    ).fetchall()
    return [
        TreeNode(
            id=r[0],
            parent_id=r[1],
            title=r[2],
            content=r[3],
            order_key=r[4],
            is_open=bool(r[5]),
            is_pinned=bool(r[6]),
            is_markdown_view=bool(r[7]),
            created_at=r[8],
            updated_at=r[9],
            has_children=bool(r[10]),
        )
        for r in rows
    ]


def visible_ids(conn: sqlite3.Connection) -> set[int]:
    return {r[0] for r in conn.execute(VISIBLE_CTE + "SELECT id FROM visible").fetchall()}
