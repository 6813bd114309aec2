"""Connection setup and the transaction boundary shared by every operation."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from notetree.errors import NoteTreeError, StorageError

_PRAGMAS_SQL = """\
PRAGMA journal_mode = WAL;
PRAGMA synchronous = NORMAL;
PRAGMA temp_store = MEMORY;
PRAGMA foreign_keys = ON;
"""


def open_connection(path: Path | str) -> sqlite3.Connection:
    """Open a connection in autocommit mode with the store's pragmas applied.

    Transactions are opened explicitly by :func:`transaction`; the connection
    may be used from any thread as long as callers serialize access.
    """
    conn = sqlite3.connect(str(path), isolation_level=None, check_same_thread=False)
    conn.executescript(_PRAGMAS_SQL)
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed block in one write transaction.

    Commits on success. On any exception the transaction is rolled back;
    ``sqlite3.Error`` is re-raised as :class:`StorageError`, domain errors
    propagate unchanged.
    """
    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error as e:
        raise StorageError(f"Could not begin transaction: {e}") from e

    try:
        yield conn
    except NoteTreeError as e:
        conn.execute("ROLLBACK")
        logger.debug("Rolled back: {}", e.message)
        raise
    except sqlite3.Error as e:
        conn.execute("ROLLBACK")
        logger.warning("Rolled back after storage failure: {}", e)
        raise StorageError(str(e)) from e
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            raise StorageError(f"Commit failed: {e}") from e
