"""Cycle guard and ancestor/descendant walks over stored parent links.

Walks follow ``parent_id`` through deleted nodes too. A reference to an id that
no longer resolves ends the walk as if a root had been reached.
"""

import sqlite3
from collections import deque


def _parent_of(conn: sqlite3.Connection, node_id: int) -> tuple[bool, int | None]:
    row = conn.execute("SELECT parent_id FROM notes WHERE id = ?", (node_id,)).fetchone()
    if row is None:
        return False, None
    return True, row[0]


def ancestor_ids(conn: sqlite3.Connection, node_id: int) -> list[int]:
    """Ancestors of ``node_id`` from its parent up to the root.

    Stops at a missing id or, should the stored graph ever contain one,
    at a revisited node.
    """
    ancestors: list[int] = []
    seen = {node_id}
    found, current = _parent_of(conn, node_id)
    while found and current is not None and current not in seen:
        ancestors.append(current)
        seen.add(current)
        found, current = _parent_of(conn, current)
    return ancestors


def is_safe_reparent(
    conn: sqlite3.Connection, node_id: int, candidate_parent: int | None
) -> bool:
    """Return False if ``candidate_parent`` is ``node_id`` or one of its descendants.

    Moving to the root level is always safe. Fails closed: a cycle already
    present in the stored links is reported as unsafe.
    """
    if candidate_parent is None:
        return True
    if candidate_parent == node_id:
        return False

    seen: set[int] = set()
    current: int | None = candidate_parent
    while current is not None:
        if current == node_id or current in seen:
            return False
        seen.add(current)
        found, current = _parent_of(conn, current)
        if not found:
            return True
    return True


def descendant_closure(conn: sqlite3.Connection, root_id: int) -> list[int]:
    """Breadth-first closure of ``root_id`` over ``parent_id`` links.

    Includes ``root_id`` itself and deleted descendants, in BFS order.
    """
    order: list[int] = [root_id]
    visited = {root_id}
    queue = deque([root_id])
    while queue:
        current = queue.popleft()
        rows = conn.execute(
            "SELECT id FROM notes WHERE parent_id = ? ORDER BY order_key, id", (current,)
        ).fetchall()
        for (child_id,) in rows:
            if child_id in visited:
                continue
            visited.add(child_id)
            order.append(child_id)
            queue.append(child_id)
    return order
