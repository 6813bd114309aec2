"""Tests for the tree mutation engine."""

import pytest

from notetree.core.tree.guard import ancestor_ids
from notetree.errors import NotFoundError, StructuralConflictError
from notetree.store import NoteStore
from tests.unit.fakes import FakeClock


def _child_ids(store: NoteStore, parent_id: int | None) -> list[int]:
    return [c.id for c in store.get_children(parent_id)]


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


def _three_roots(store: NoteStore) -> tuple[int, int, int]:
    """Roots A, B, C with keys 0, 1000, 2000."""
    ids = tuple(store.create_child(None).id for _ in range(3))
    for key, node_id in zip((0.0, 1000.0, 2000.0), ids, strict=True):
        store.connection.execute("UPDATE notes SET order_key = ? WHERE id = ?", (key, node_id))
    return ids  # type: ignore[return-value]


def test_move_after_sibling_scenario(store: NoteStore) -> None:
    a, b, c = _three_roots(store)

    store.move_note(c, None, after_id=a)

    assert _child_ids(store, None) == [a, c, b]
    keys = [n.order_key for n in store.get_children(None)]
    assert keys == [0.0, 1000.0, 2000.0]


def test_move_before_sibling_takes_its_slot(store: NoteStore) -> None:
    a, b, c = _three_roots(store)
    store.move_note(c, None, before_id=a)
    assert _child_ids(store, None) == [c, a, b]


def test_move_appends_when_neighbour_missing_or_foreign(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    store.move_note(tree_ids["python"], tree_ids["recipes"], after_id=tree_ids["rust"])
    assert _child_ids(store, tree_ids["recipes"]) == [tree_ids["python"]]

    store.move_note(tree_ids["rust"], tree_ids["recipes"])
    assert _child_ids(store, tree_ids["recipes"]) == [tree_ids["python"], tree_ids["rust"]]


def test_move_reparents_and_keeps_subtree(store: NoteStore, tree_ids: dict[str, int]) -> None:
    store.move_note(tree_ids["python"], tree_ids["recipes"])

    assert store.get_note(tree_ids["python"]).parent_id == tree_ids["recipes"]
    assert store.get_note(tree_ids["fastapi"]).parent_id == tree_ids["python"]
    assert _child_ids(store, tree_ids["projects"]) == [tree_ids["rust"]]
    _assert_acyclic(store)


def test_move_into_itself_is_rejected(store: NoteStore, tree_ids: dict[str, int]) -> None:
    with pytest.raises(StructuralConflictError, match="into itself"):
        store.move_note(tree_ids["python"], tree_ids["python"])


@pytest.mark.parametrize("target", ["python", "fastapi"])
def test_move_into_descendant_is_rejected_without_writes(
    store: NoteStore, tree_ids: dict[str, int], target: str
) -> None:
    before = store.get_tree_snapshot()

    with pytest.raises(StructuralConflictError, match="descendant"):
        store.move_note(tree_ids["projects"], tree_ids[target])

    assert store.get_tree_snapshot() == before
    _assert_acyclic(store)


def test_move_to_unknown_parent_is_not_found(store: NoteStore, tree_ids: dict[str, int]) -> None:
    with pytest.raises(NotFoundError, match="Parent note 999"):
        store.move_note(tree_ids["python"], 999)


def test_move_unknown_note_is_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.move_note(12345, None)


def test_move_ignores_deleted_siblings(store: NoteStore, tree_ids: dict[str, int]) -> None:
    store.soft_delete_note(tree_ids["rust"])
    store.move_note(tree_ids["fastapi"], tree_ids["projects"], after_id=tree_ids["rust"])

    keys = {c.id: c.order_key for c in store.get_children(tree_ids["projects"])}
    assert list(keys) == [tree_ids["python"], tree_ids["fastapi"]]
    assert keys[tree_ids["python"]] == 0.0
    assert keys[tree_ids["fastapi"]] == 1000.0


def test_move_bumps_updated_at(store: NoteStore, tree_ids: dict[str, int]) -> None:
    before = store.get_note(tree_ids["rust"]).updated_at
    store.move_note(tree_ids["rust"], None)
    assert store.get_note(tree_ids["rust"]).updated_at > before


def test_many_moves_keep_tree_acyclic_and_ordered(store: NoteStore) -> None:
    ids = [store.create_child(None).id for _ in range(8)]
    moves = [(1, 0), (2, 1), (3, 2), (0, 3), (4, 0), (5, 4), (0, 5), (6, 7), (7, 6)]
    for node, parent in moves:
        try:
            store.move_note(ids[node], ids[parent])
        except StructuralConflictError:
            assert ids[parent] in [ids[node], *_descendants(store, ids[node])]
        else:
            assert store.get_note(ids[node]).parent_id == ids[parent]
        _assert_acyclic(store)
        for node_id in ids:
            keys = [c.order_key for c in store.get_children(node_id)]
            assert keys == sorted(set(keys))


def _descendants(store: NoteStore, node_id: int) -> list[int]:
    rows = store.connection.execute("SELECT id FROM notes").fetchall()
    return [
        r[0] for r in rows if node_id in ancestor_ids(store.connection, r[0])
    ]


def test_create_sibling_shares_parent_and_follows_reference(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    sibling = store.create_sibling(tree_ids["python"])

    assert sibling.parent_id == tree_ids["projects"]
    assert sibling.title == "New Note"
    assert sibling.content == ""
    assert _child_ids(store, tree_ids["projects"]) == [
        tree_ids["python"],
        sibling.id,
        tree_ids["rust"],
    ]


def test_create_sibling_of_last_adds_gap(store: NoteStore, tree_ids: dict[str, int]) -> None:
    rust = store.get_note(tree_ids["rust"])
    sibling = store.create_sibling(rust.id)
    assert sibling.order_key == rust.order_key + 1024.0


def test_create_under_unknown_parent_is_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.create_child(77)
    with pytest.raises(NotFoundError):
        store.create_sibling(77)
    assert store.get_tree_snapshot() == []


def test_update_note_changes_fields_and_timestamp(
    store: NoteStore, tree_ids: dict[str, int]
) -> None:
    updated_at = store.update_note(tree_ids["rust"], content="Rust is very fast")
    note = store.get_note(tree_ids["rust"])
    assert note.title == "Rust"
    assert note.content == "Rust is very fast"
    assert note.updated_at == updated_at


def test_update_note_without_fields_is_noop(
    store: NoteStore, tree_ids: dict[str, int], clock: FakeClock
) -> None:
    before = store.get_note(tree_ids["rust"])
    returned = store.update_note(tree_ids["rust"])
    assert returned == clock.now
    assert store.get_note(tree_ids["rust"]) == before


def test_update_unknown_note_is_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.rename_note(404, "nope")


def test_flag_toggles_do_not_bump_updated_at(store: NoteStore, tree_ids: dict[str, int]) -> None:
    before = store.get_note(tree_ids["recipes"]).updated_at

    assert store.toggle_pin_note(tree_ids["recipes"]) is True
    assert store.toggle_markdown_view(tree_ids["recipes"]) is True
    store.mark_open(tree_ids["recipes"], True)

    note = store.get_note(tree_ids["recipes"])
    assert note.is_pinned and note.is_markdown_view and note.is_open
    assert note.updated_at == before
    assert store.toggle_pin_note(tree_ids["recipes"]) is False


def test_update_unknown_note_without_fields_is_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.update_note(999)


def test_create_with_title_in_one_step(store: NoteStore, tree_ids: dict[str, int]) -> None:
    child = store.create_child(tree_ids["rust"], title="Ownership")
    sibling = store.create_sibling(child.id, title="Lifetimes")

    assert store.get_note(child.id).title == "Ownership"
    assert store.get_note(sibling.id).title == "Lifetimes"
    assert [r.id for r in store.search_notes("lifetimes", 5)] == [sibling.id]
