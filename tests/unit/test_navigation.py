"""Tests for tree navigation (breadcrumbs, children)."""

import pytest

from notetree.errors import NotFoundError
from notetree.models.node import Breadcrumb
from notetree.store import NoteStore


def test_breadcrumbs_for_nested_node(store: NoteStore, tree_ids: dict[str, int]) -> None:
    breadcrumbs = store.get_breadcrumbs(tree_ids["fastapi"])
    assert breadcrumbs == (
        Breadcrumb(node_id=tree_ids["projects"], title="Projects", depth=0),
        Breadcrumb(node_id=tree_ids["python"], title="Python notes", depth=1),
    )


def test_breadcrumbs_for_root_are_empty(store: NoteStore, tree_ids: dict[str, int]) -> None:
    assert store.get_breadcrumbs(tree_ids["recipes"]) == ()


def test_children_in_sibling_order(store: NoteStore, tree_ids: dict[str, int]) -> None:
    children = store.get_children(tree_ids["projects"])
    assert [c.title for c in children] == ["Python notes", "Rust"]
    assert [c.title for c in store.get_children(None)] == ["Projects", "Recipes"]


def test_children_of_unknown_node(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.get_children(5)
