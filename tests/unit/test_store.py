"""Tests for the single-writer store: transactions, lock, and the open list."""

import threading
from pathlib import Path

import pytest

from notetree.core.tree.guard import ancestor_ids
from notetree.errors import NotFoundError, StructuralConflictError
from notetree.store import NoteStore
from tests.unit.fakes import FakeClock


def _assert_acyclic(store: NoteStore) -> None:
    rows = store.connection.execute("SELECT id, parent_id FROM notes").fetchall()
    parents = dict(rows)
    for node_id in parents:
        seen = {node_id}
        current = parents[node_id]
        while current is not None:
            assert current not in seen, f"cycle through {node_id}"
            seen.add(current)
            current = parents.get(current)


def test_open_creates_file_database(tmp_path: Path) -> None:
    db = tmp_path / "notes.db"
    with NoteStore.open(db, clock=FakeClock()) as store:
        node = store.create_child(None)
        store.rename_note(node.id, "Persisted")

    with NoteStore.open(db) as reopened:
        assert reopened.get_note(node.id).title == "Persisted"


def test_seed_welcome_only_on_empty_table(tmp_path: Path) -> None:
    db = tmp_path / "notes.db"
    with NoteStore.open(db, seed_welcome=True) as store:
        nodes = store.get_tree_snapshot()
        assert [n.title for n in nodes] == ["Welcome to notetree"]
        assert store.get_open_list(10) == [nodes[0].id]

    with NoteStore.open(db, seed_welcome=True) as store:
        assert len(store.get_tree_snapshot()) == 1


def test_update_without_changes_does_not_write(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    before = store.get_note(tree_ids["rust"])
    store.update_note(tree_ids["rust"])
    assert store.get_note(tree_ids["rust"]) == before


def test_failed_operation_leaves_store_usable(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    with pytest.raises(StructuralConflictError):
        store.move_note(tree_ids["projects"], tree_ids["fastapi"])

    store.move_note(tree_ids["rust"], None)
    assert store.get_note(tree_ids["rust"]).parent_id is None


def test_open_list_most_recent_first(store: NoteStore, tree_ids: dict[str, int]) -> None:
    store.touch_open(tree_ids["rust"])
    store.touch_open(tree_ids["recipes"])
    store.touch_open(tree_ids["rust"])

    assert store.get_open_list(10) == [tree_ids["rust"], tree_ids["recipes"]]
    assert store.get_open_list(1) == [tree_ids["rust"]]
    assert store.get_note(tree_ids["rust"]).is_open


def test_mark_closed_removes_from_open_list(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    store.mark_open(tree_ids["rust"], True)
    store.mark_open(tree_ids["rust"], False)

    assert store.get_open_list(10) == []
    assert not store.get_note(tree_ids["rust"]).is_open


def test_open_list_skips_deleted(store: NoteStore, tree_ids: dict[str, int]) -> None:
    store.touch_open(tree_ids["rust"])
    store.soft_delete_note(tree_ids["rust"])
    assert store.get_open_list(10) == []


def test_open_unknown_note(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.touch_open(42)


def test_concurrent_moves_never_create_cycles(store: NoteStore) -> None:
    a = store.create_child(None)
    b = store.create_child(a.id)
    barrier = threading.Barrier(2)
    outcomes: list[str] = []

    def move(node_id: int, parent_id: int) -> None:
        barrier.wait()
        for _ in range(20):
            try:
                store.move_note(node_id, parent_id)
                outcomes.append("moved")
            except StructuralConflictError:
                outcomes.append("rejected")
            store.move_note(node_id, None)

    threads = [
        threading.Thread(target=move, args=(a.id, b.id)),
        threading.Thread(target=move, args=(b.id, a.id)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(outcomes) == 40
    _assert_acyclic(store)
    for node_id in (a.id, b.id):
        assert node_id not in ancestor_ids(store.connection, node_id)
