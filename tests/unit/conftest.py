"""Shared test fixtures."""

from collections.abc import Iterator

import pytest

from tests.unit.fakes import FakeClock
from notetree.store import NoteStore


def build_tree(store: NoteStore) -> dict[str, int]:
    """Create a small tree and return its ids by name.

    Projects                 "python and rust"
        Python notes         "Python is great for scripting"
            FastAPI          "FastAPI for web services"
        Rust                 "Rust is fast"
    Recipes                  "Chocolate cake"
    """
    layout = [
        ("projects", None, "Projects", "python and rust"),
        ("python", "projects", "Python notes", "Python is great for scripting"),
        ("fastapi", "python", "FastAPI", "FastAPI for web services"),
        ("rust", "projects", "Rust", "Rust is fast"),
        ("recipes", None, "Recipes", "Chocolate cake"),
    ]
    ids: dict[str, int] = {}
    for name, parent, title, content in layout:
        node = store.create_child(ids[parent] if parent else None)
        store.update_note(node.id, title=title, content=content)
        ids[name] = node.id
    return ids


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> Iterator[NoteStore]:
    """Return an empty in-memory store."""
    s = NoteStore.open(":memory:", clock=clock)
    yield s
    s.close()


@pytest.fixture
def tree_ids(store: NoteStore) -> dict[str, int]:
    """Populate ``store`` with the tree from :func:`build_tree`."""
    return build_tree(store)
