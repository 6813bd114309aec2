"""The single-writer note store.

One connection, one lock. Every public method takes the lock, opens one
transaction, does all of its reads and writes, and commits or rolls back
before the lock is released, so no caller ever observes another's partial
state.
"""

import sqlite3
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType

from loguru import logger

from notetree.core.database.connection import open_connection, transaction
from notetree.core.database.queries import require_node
from notetree.core.database.schema import migrate_schema, seed_welcome_note
from notetree.core.recent import open_list
from notetree.core.search import searcher
from notetree.core.trash import manager as trash
from notetree.core.tree import mutations, navigation, snapshot
from notetree.core.tree.ordering import GAP
from notetree.models.node import (
    Breadcrumb,
    DeletedNote,
    HardDeleteStats,
    Node,
    SearchResult,
    TreeNode,
)


def now_ms() -> int:
    return int(time.time() * 1000)


class NoteStore:
    """Ordered tree of notes backed by one SQLite database."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        self._clock = clock

    @classmethod
    def open(
        cls,
        path: Path | str,
        *,
        seed_welcome: bool = False,
        clock: Callable[[], int] = now_ms,
    ) -> "NoteStore":
        """Open (creating or migrating as needed) the database at ``path``."""
        conn = open_connection(path)
        migrate_schema(conn)
        store = cls(conn, clock=clock)
        if seed_welcome:
            with store._locked() as c:
                seed_welcome_note(c, now=clock(), order_key=GAP)
        logger.debug("Opened note store at {}", path)
        return store

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "NoteStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        """The underlying connection, for read-only inspection."""
        return self._conn

    @contextmanager
    def _locked(self) -> Iterator[sqlite3.Connection]:
        with self._lock, transaction(self._conn) as conn:
            yield conn

    # --- Reads ---

    def get_tree_snapshot(self) -> list[TreeNode]:
        with self._locked() as conn:
            return snapshot.get_tree_snapshot(conn)

    def get_note(self, node_id: int) -> Node:
        with self._locked() as conn:
            return require_node(conn, node_id)

    def get_children(self, parent_id: int | None, *, limit: int = 50) -> tuple[Node, ...]:
        with self._locked() as conn:
            if parent_id is not None:
                require_node(conn, parent_id)
            return navigation.get_children(conn, parent_id=parent_id, limit=limit)

    def get_breadcrumbs(self, node_id: int) -> tuple[Breadcrumb, ...]:
        with self._locked() as conn:
            require_node(conn, node_id)
            return navigation.get_breadcrumbs(conn, node_id=node_id)

    def search_notes(
        self,
        query: str,
        limit: int = 20,
        *,
        include_deleted: bool = False,
        include_breadcrumbs: bool = False,
    ) -> list[SearchResult]:
        with self._locked() as conn:
            results = searcher.search_notes(
                conn, query=query, limit=limit, include_deleted=include_deleted
            )
            if include_breadcrumbs:
                results = [
                    SearchResult(
                        id=r.id,
                        title=r.title,
                        snippet=r.snippet,
                        rank=r.rank,
                        breadcrumbs=navigation.get_breadcrumbs(conn, node_id=r.id),
                    )
                    for r in results
                ]
            return results

    def get_deleted_notes(self) -> list[DeletedNote]:
        with self._locked() as conn:
            return trash.list_deleted(conn)

    def get_open_list(self, limit: int) -> list[int]:
        with self._locked() as conn:
            return open_list.get_open_list(conn, limit=limit)

    # --- Content and flags ---

    def update_note(
        self, node_id: int, *, title: str | None = None, content: str | None = None
    ) -> int:
        now = self._clock()
        with self._locked() as conn:
            return mutations.update_content(
                conn, node_id=node_id, title=title, content=content, now=now
            )

    def rename_note(self, node_id: int, new_title: str) -> int:
        return self.update_note(node_id, title=new_title)

    def toggle_pin_note(self, node_id: int) -> bool:
        with self._locked() as conn:
            return mutations.toggle_pinned(conn, node_id=node_id)

    def toggle_markdown_view(self, node_id: int) -> bool:
        with self._locked() as conn:
            return mutations.toggle_markdown_view(conn, node_id=node_id)

    def mark_open(self, node_id: int, is_open: bool) -> None:
        with self._locked() as conn:
            open_list.mark_open(conn, node_id=node_id, is_open=is_open, now=self._clock())

    def touch_open(self, node_id: int) -> None:
        with self._locked() as conn:
            open_list.touch_open(conn, node_id=node_id, now=self._clock())

    # --- Structure ---

    def create_sibling(self, reference_id: int, *, title: str = mutations.SIBLING_TITLE) -> Node:
        with self._locked() as conn:
            return mutations.insert_sibling(
                conn, reference_id=reference_id, now=self._clock(), title=title
            )

    def create_child(
        self, parent_id: int | None = None, *, title: str = mutations.CHILD_TITLE
    ) -> Node:
        with self._locked() as conn:
            return mutations.insert_child(
                conn, parent_id=parent_id, now=self._clock(), title=title
            )

    def move_note(
        self,
        node_id: int,
        new_parent_id: int | None = None,
        *,
        after_id: int | None = None,
        before_id: int | None = None,
    ) -> None:
        with self._locked() as conn:
            mutations.move_node(
                conn,
                node_id=node_id,
                new_parent_id=new_parent_id,
                after_id=after_id,
                before_id=before_id,
                now=self._clock(),
            )

    # --- Trash ---

    def soft_delete_note(self, node_id: int) -> None:
        with self._locked() as conn:
            trash.soft_delete(conn, node_id=node_id, now=self._clock())

    def restore_note(self, node_id: int) -> None:
        with self._locked() as conn:
            trash.restore(conn, node_id=node_id, now=self._clock())

    def hard_delete_note(self, node_id: int) -> HardDeleteStats:
        with self._locked() as conn:
            return trash.hard_delete(conn, node_id=node_id)

    # --- Maintenance ---

    def rebuild_index(self) -> None:
        with self._locked() as conn:
            searcher.rebuild_index(conn)
