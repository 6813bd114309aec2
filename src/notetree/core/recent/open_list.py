"""Recently opened notes (open flag plus last-opened timestamps)."""

import sqlite3

from notetree.core.database.queries import require_node


def mark_open(conn: sqlite3.Connection, *, node_id: int, is_open: bool, now: int) -> None:
    """Set the open flag and add or drop the note's open-state entry."""
    require_node(conn, node_id)
    conn.execute("UPDATE notes SET is_open = ? WHERE id = ?", (int(is_open), node_id))
    if is_open:
        conn.execute(
            "INSERT OR REPLACE INTO open_state (note_id, last_opened_at) VALUES (?, ?)",
            (node_id, now),
        )
    else:
        conn.execute("DELETE FROM open_state WHERE note_id = ?", (node_id,))


def touch_open(conn: sqlite3.Connection, *, node_id: int, now: int) -> None:
    """Record an access: refresh the timestamp and make sure the note is open."""
    require_node(conn, node_id)
    conn.execute(
        "INSERT OR REPLACE INTO open_state (note_id, last_opened_at) VALUES (?, ?)",
        (node_id, now),
    )
    conn.execute("UPDATE notes SET is_open = 1 WHERE id = ?", (node_id,))


def get_open_list(conn: sqlite3.Connection, *, limit: int) -> list[int]:
    """Ids of open notes, most recently opened first. Soft-deleted notes are skipped."""
    rows = conn.execute(
        "SELECT o.note_id FROM open_state o JOIN notes n ON n.id = o.note_id "
        "WHERE n.is_deleted = 0 ORDER BY o.last_opened_at DESC, o.note_id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [r[0] for r in rows]
