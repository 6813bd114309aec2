"""SQLite schema creation and migration for the note tree."""

import sqlite3

from loguru import logger

SCHEMA_VERSION = 2

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_id INTEGER NULL,
    title TEXT NOT NULL,
    content TEXT NOT NULL DEFAULT '',
    order_key REAL NOT NULL,
    is_open INTEGER NOT NULL DEFAULT 0,
    is_deleted INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL,
    is_pinned INTEGER NOT NULL DEFAULT 0,
    is_markdown_view INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (parent_id) REFERENCES notes(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_notes_parent_order ON notes(parent_id, order_key);
CREATE INDEX IF NOT EXISTS idx_notes_updated ON notes(updated_at);
CREATE INDEX IF NOT EXISTS idx_notes_open ON notes(is_open, updated_at);

CREATE VIRTUAL TABLE IF NOT EXISTS notes_fts USING fts5(
    title, content,
    content='notes',
    content_rowid='id',
    tokenize='porter unicode61'
);

CREATE TABLE IF NOT EXISTS open_state (
    note_id INTEGER PRIMARY KEY,
    last_opened_at INTEGER NOT NULL,
    FOREIGN KEY (note_id) REFERENCES notes(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

_FTS_TRIGGERS_SQL = """\
CREATE TRIGGER IF NOT EXISTS notes_ai AFTER INSERT ON notes BEGIN
    INSERT INTO notes_fts(rowid, title, content)
    VALUES (new.id, new.title, new.content);
END;

CREATE TRIGGER IF NOT EXISTS notes_ad AFTER DELETE ON notes BEGIN
    INSERT INTO notes_fts(notes_fts, rowid, title, content)
    VALUES ('delete', old.id, old.title, old.content);
END;

CREATE TRIGGER IF NOT EXISTS notes_au AFTER UPDATE OF title, content ON notes BEGIN
    INSERT INTO notes_fts(notes_fts, rowid, title, content)
    VALUES ('delete', old.id, old.title, old.content);
    INSERT INTO notes_fts(rowid, title, content)
    VALUES (new.id, new.title, new.content);
END;
"""

# Columns added after the first schema version, with their DDL.
_ADDED_COLUMNS = {
    "is_pinned": "ALTER TABLE notes ADD COLUMN is_pinned INTEGER NOT NULL DEFAULT 0",
    "is_markdown_view": "ALTER TABLE notes ADD COLUMN is_markdown_view INTEGER NOT NULL DEFAULT 0",
}

WELCOME_TITLE = "Welcome to notetree"

WELCOME_CONTENT = """\
# Welcome to notetree

Notes live in a tree: every note can have children, and siblings keep the
order you give them.

## Basics
- Create a child under any note, or a sibling right after it.
- Move notes anywhere, as long as a note never ends up inside itself.
- Deleted notes go to the trash and can be restored or purged.
- Full-text search covers titles and content.
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables, indexes, and triggers."""
    conn.executescript(_SCHEMA_SQL)
    _add_missing_columns(conn)
    conn.executescript(_FTS_TRIGGERS_SQL)
    set_metadata(conn, "schema_version", str(SCHEMA_VERSION))
    conn.commit()
    logger.info("Created schema version {}", SCHEMA_VERSION)


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the current schema version, or None if metadata table doesn't exist."""
    try:
        row = conn.execute(
            "SELECT value FROM metadata WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None


def get_metadata(conn: sqlite3.Connection, key: str) -> str | None:
    """Return a metadata value, or None if unset."""
    row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
    return row[0] if row else None


def set_metadata(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or replace a metadata value."""
    conn.execute(
        "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
        (key, value),
    )


def _table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def _add_missing_columns(conn: sqlite3.Connection) -> None:
    columns = _table_columns(conn, "notes")
    for name, ddl in _ADDED_COLUMNS.items():
        if name not in columns:
            conn.execute(ddl)
            logger.info("Added column notes.{}", name)


def migrate_schema(conn: sqlite3.Connection) -> None:
    """Create or migrate the database schema to the latest version."""
    version = get_schema_version(conn)
    if version is None:
        create_schema(conn)
        return
    if version < SCHEMA_VERSION:
        _add_missing_columns(conn)
        # IF NOT EXISTS makes this safe for tables and triggers already present.
        conn.executescript(_SCHEMA_SQL)
        conn.executescript(_FTS_TRIGGERS_SQL)
        conn.execute("INSERT INTO notes_fts(notes_fts) VALUES ('rebuild')")
        set_metadata(conn, "schema_version", str(SCHEMA_VERSION))
        conn.commit()
        logger.info("Migrated schema from version {} to {}", version, SCHEMA_VERSION)


def seed_welcome_note(conn: sqlite3.Connection, *, now: int, order_key: float) -> int | None:
    """Insert the welcome note if the notes table is empty.

    Returns the new note id, or None when notes already exist.
    """
    count = conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]
    if count:
        return None
    cursor = conn.execute(
        """INSERT INTO notes
           (title, content, order_key, is_open, is_deleted, created_at, updated_at)
           VALUES (?, ?, ?, 1, 0, ?, ?)""",
        (WELCOME_TITLE, WELCOME_CONTENT, order_key, now, now),
    )
    note_id = cursor.lastrowid
    conn.execute(
        "INSERT INTO open_state (note_id, last_opened_at) VALUES (?, ?)",
        (note_id, now),
    )
    logger.info("Seeded welcome note {}", note_id)
    return note_id
