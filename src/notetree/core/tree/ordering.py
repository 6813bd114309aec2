"""Sibling order keys: allocation between neighbours and full resequencing.

Keys are REAL values compared within one ``(parent_id, is_deleted = 0)``
group. Inserts bisect between neighbours; moves rewrite the whole destination
group as ``index * STEP``. When two neighbours are too close to bisect, the
group is resequenced before allocating.
"""

import sqlite3

from loguru import logger

from notetree.core.database.queries import parent_clause

GAP = 1024.0
STEP = 1000.0
MIN_GAP = 1e-6


def allocate_key(before: float | None, after: float | None) -> float:
    """Return a key placing a node between ``before`` and ``after``.

    Either neighbour may be missing: no neighbours yields the base key ``GAP``.
    """
    if before is not None and after is not None:
        return (before + after) / 2
    if before is not None:
        return before + GAP
    if after is not None:
        return after - GAP
    return GAP


def has_headroom(before: float | None, after: float | None) -> bool:
    """True if a bisected key would land strictly between the two neighbours."""
    if before is None or after is None:
        return True
    if after - before < MIN_GAP:
        return False
    mid = (before + after) / 2
    return before < mid < after


def resequence_keys(count: int) -> list[float]:
    """Evenly spaced keys for ``count`` siblings."""
    return [index * STEP for index in range(count)]


def active_sibling_ids(
    conn: sqlite3.Connection,
    parent_id: int | None,
    *,
    exclude: int | None = None,
    include: int | None = None,
) -> list[int]:
    """Ids of the non-deleted children of ``parent_id`` in sibling order.

    ``include`` keeps one extra child in the list even if it is deleted.
    """
    where, params = parent_clause(parent_id)
    rows = conn.execute(
        f"SELECT id FROM notes WHERE {where} AND (is_deleted = 0 OR id = ?) "
        "ORDER BY order_key, id",
        (*params, include),
    ).fetchall()
    return [r[0] for r in rows if r[0] != exclude]


def write_sequence(conn: sqlite3.Connection, ordered_ids: list[int]) -> dict[int, float]:
    """Rewrite the order keys of ``ordered_ids`` to an evenly spaced sequence."""
    keys = dict(zip(ordered_ids, resequence_keys(len(ordered_ids)), strict=True))
    conn.executemany(
        "UPDATE notes SET order_key = ? WHERE id = ?",
        [(key, node_id) for node_id, key in keys.items()],
    )
    return keys


def resequence_group(
    conn: sqlite3.Connection, parent_id: int | None, *, include: int | None = None
) -> dict[int, float]:
    """Resequence the active children of ``parent_id`` (plus ``include``) in their current order."""
    keys = write_sequence(conn, active_sibling_ids(conn, parent_id, include=include))
    logger.debug("Resequenced {} siblings under {}", len(keys), parent_id)
    return keys
