"""Tests for the transaction boundary."""

import sqlite3

import pytest

from notetree.core.database.connection import open_connection, transaction
from notetree.core.database.schema import create_schema
from notetree.errors import NotFoundError, StorageError


def _fresh_conn() -> sqlite3.Connection:
    conn = open_connection(":memory:")
    create_schema(conn)
    return conn


def _count(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM notes").fetchone()[0]


def _insert(conn: sqlite3.Connection) -> None:
    conn.execute(
        "INSERT INTO notes (title, order_key, created_at, updated_at) VALUES ('x', 1, 1, 1)"
    )


def test_transaction_commits_on_success() -> None:
    conn = _fresh_conn()
    with transaction(conn) as c:
        _insert(c)
    assert _count(conn) == 1
    assert not conn.in_transaction


def test_storage_failure_rolls_back_and_raises_storage_error() -> None:
    conn = _fresh_conn()
    with pytest.raises(StorageError) as exc_info:
        with transaction(conn) as c:
            _insert(c)
            c.execute("INSERT INTO no_such_table VALUES (1)")
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)
    assert _count(conn) == 0
    assert not conn.in_transaction


def test_domain_error_rolls_back_and_propagates_unchanged() -> None:
    conn = _fresh_conn()
    with pytest.raises(NotFoundError):
        with transaction(conn) as c:
            _insert(c)
            raise NotFoundError(42)
    assert _count(conn) == 0


def test_foreign_keys_are_enforced() -> None:
    conn = _fresh_conn()
    with pytest.raises(StorageError):
        with transaction(conn) as c:
            c.execute(
                "INSERT INTO notes (parent_id, title, order_key, created_at, updated_at) "
                "VALUES (999, 'orphan', 1, 1, 1)"
            )
    assert _count(conn) == 0
