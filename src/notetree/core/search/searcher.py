"""FTS5 search over note titles and content."""

import re
import sqlite3

from loguru import logger

from notetree.core.tree.snapshot import VISIBLE_CTE
from notetree.errors import ValidationError
from notetree.models.node import SearchResult


def _sanitize_fts_token(token: str) -> str:
    """Remove FTS5 special characters (whitelist approach)."""
    return re.sub(r"[^\w]", "", token, flags=re.UNICODE)


def _prepare_fts_query(query: str) -> str:
    """Convert user query to FTS5 query with prefix matching.

    - 3+ char words get * suffix for prefix matching
    - Quoted phrases are preserved as-is
    - FTS5 operators AND, OR, NOT are preserved
    """
    if not query.strip():
        return ""

    tokens: list[str] = []
    i = 0
    while i < len(query):
        if query[i] == '"':
            end = query.find('"', i + 1)
            if end == -1:
                end = len(query)
            phrase = query[i + 1 : end].replace('"', "")
            if phrase.strip():
                tokens.append(f'"{phrase}"')
            i = end + 1
        elif query[i].isspace():
            i += 1
        else:
            end = i
            while end < len(query) and not query[end].isspace() and query[end] != '"':
                end += 1
            word = query[i:end]
            i = end

            if word.upper() in ("AND", "OR", "NOT"):
                tokens.append(word.upper())
                continue

            sanitized = _sanitize_fts_token(word)
            if not sanitized:
                continue
            if len(sanitized) >= 3:
                tokens.append(f"{sanitized}*")
            else:
                tokens.append(sanitized)

    # A dangling operator is a syntax error in FTS5.
    while tokens and tokens[0] in ("AND", "OR", "NOT"):
        tokens.pop(0)
    while tokens and tokens[-1] in ("AND", "OR", "NOT"):
        tokens.pop()
    return " ".join(tokens)


def search_notes(
    conn: sqlite3.Connection,
    *,
    query: str,
    limit: int = 20,
    include_deleted: bool = False,
) -> list[SearchResult]:
    """Search notes using FTS5.

    Args:
        conn: Database connection.
        query: Search query text.
        limit: Max results to return.
        include_deleted: Also return notes hidden by a soft delete
            (their own or an ancestor's).

    Returns:
        Results ordered by relevance (best first), then id.
    """
    fts_query = _prepare_fts_query(query)
    if not fts_query:
        return []

    visibility = "" if include_deleted else "AND n.id IN (SELECT id FROM visible)"
    sql = (
        (VISIBLE_CTE if not include_deleted else "")
        + f"""\
SELECT n.id, n.title,
       snippet(notes_fts, -1, '<b>', '</b>', '...', 32) AS snippet,
       bm25(notes_fts) AS score
FROM notes_fts
JOIN notes n ON n.id = notes_fts.rowid
WHERE notes_fts MATCH ? {visibility}
ORDER BY score, n.id
LIMIT ?
"""
    )
    try:
        rows = conn.execute(sql, (fts_query, limit)).fetchall()
    except sqlite3.OperationalError as e:
        msg = f"Invalid search query {query!r}: {e}"
        raise ValidationError(msg, details={"query": query}) from e

    logger.debug("Search {!r} -> {} results", fts_query, len(rows))
    return [SearchResult(id=r[0], title=r[1], snippet=r[2], rank=r[3]) for r in rows]


def rebuild_index(conn: sqlite3.Connection) -> None:
    """Rebuild the derived index from the notes table."""
    conn.execute("INSERT INTO notes_fts(notes_fts) VALUES ('rebuild')")
    logger.info("Rebuilt full-text index")
