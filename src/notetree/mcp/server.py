"""MCP server exposing the note tree command surface as tools."""

import os
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from notetree import commands
from notetree.config import DATA_DIR_ENV, DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT, database_path
from notetree.errors import NoteTreeError
from notetree.store import NoteStore

# --- Core functions (testable without MCP context) ---


def _guarded(action: Callable[[], Any], key: str | None = None) -> dict[str, Any]:
    """Run a command, turning domain errors into an error dict."""
    try:
        result = action()
    except NoteTreeError as e:
        logger.debug("Tool call failed: {}", e.message)
        return e.to_dict()
    if key is None:
        return {"success": True}
    return {key: result}


def notes_get_tree(store: NoteStore) -> dict[str, Any]:
    """Return all visible notes as a flat list with parent ids and order keys."""
    nodes = commands.get_tree_snapshot(store)
    return {"nodes": nodes, "count": len(nodes)}


def notes_get_note(store: NoteStore, *, id: str) -> dict[str, Any]:
    return _guarded(lambda: commands.get_note(store, id), key="note")


def notes_update_note(
    store: NoteStore, *, id: str, title: str | None = None, content: str | None = None
) -> dict[str, Any]:
    return _guarded(lambda: commands.update_note(store, id, title, content), key="updated_at")


def notes_create(
    store: NoteStore,
    *,
    parent_id: str | None = None,
    after_id: str | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Create a note after a sibling (``after_id``) or as the last child of ``parent_id``."""
    if after_id is not None:
        return _guarded(lambda: commands.create_sibling(store, after_id, title), key="note")
    return _guarded(lambda: commands.create_child(store, parent_id, title), key="note")


def notes_move(
    store: NoteStore,
    *,
    id: str,
    new_parent_id: str | None = None,
    after_id: str | None = None,
    before_id: str | None = None,
) -> dict[str, Any]:
    return _guarded(
        lambda: commands.move_note(store, id, new_parent_id, after_id, before_id)
    )


def notes_search(
    store: NoteStore,
    *,
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
    include_deleted: bool = False,
    include_breadcrumbs: bool = True,
) -> dict[str, Any]:
    """Search notes by title and content.

    Query syntax: Words are ANDed. Use "quoted phrases" for exact matches.
    Prefix matching is automatic for 3+ char words.
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0}
    limit = max(1, min(limit, MAX_SEARCH_LIMIT))
    response = _guarded(
        lambda: commands.search_notes(
            store,
            query,
            limit,
            include_deleted=include_deleted,
            include_breadcrumbs=include_breadcrumbs,
        ),
        key="results",
    )
    if "results" in response:
        response["count"] = len(response["results"])
    return response


def notes_list_trash(store: NoteStore) -> dict[str, Any]:
    deleted = commands.get_deleted_notes(store)
    return {"notes": deleted, "count": len(deleted)}


def notes_trash_action(store: NoteStore, *, id: str, action: str) -> dict[str, Any]:
    """Apply ``delete``, ``restore`` or ``purge`` to one note."""
    handlers: dict[str, Callable[[NoteStore, str], None]] = {
        "delete": commands.soft_delete_note,
        "restore": commands.restore_note,
        "purge": commands.hard_delete_note,
    }
    handler = handlers.get(action)
    if handler is None:
        return {"error": f"Unknown action '{action}'. Expected delete, restore or purge."}
    return _guarded(lambda: handler(store, id))


def notes_toggle_pin(store: NoteStore, *, id: str) -> dict[str, Any]:
    return _guarded(lambda: commands.toggle_pin_note(store, id), key="is_pinned")


def notes_toggle_markdown_view(store: NoteStore, *, id: str) -> dict[str, Any]:
    return _guarded(
        lambda: commands.toggle_markdown_view(store, id), key="is_markdown_view"
    )


def notes_mark_open(store: NoteStore, *, id: str, is_open: bool) -> dict[str, Any]:
    """Open or close a note. Closing drops it from the recent list."""
    return _guarded(lambda: commands.mark_open(store, id, is_open))


def notes_touch_open(store: NoteStore, *, id: str) -> dict[str, Any]:
    return _guarded(lambda: commands.touch_open(store, id))


def notes_recent(store: NoteStore, *, limit: int = 10) -> dict[str, Any]:
    ids = commands.get_open_list(store, max(1, limit))
    return {"ids": ids, "count": len(ids)}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    store: NoteStore
    db_path: Path


def _resolve_db_path() -> Path:
    data_dir_env = os.environ.get(DATA_DIR_ENV)
    return database_path(Path(data_dir_env).expanduser() if data_dir_env else None)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open the store on startup, close on shutdown."""
    db_path = _resolve_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    store = NoteStore.open(db_path, seed_welcome=True)
    try:
        yield ServerContext(store=store, db_path=db_path)
    finally:
        store.close()


mcp_server = FastMCP(
    "notetree",
    instructions="""\
notetree keeps notes in an ordered tree. Every note has an id, an optional
parent id, and a position among its siblings.

- notes_get_tree_tool returns the whole visible tree as a flat list; build the
  hierarchy by matching parent_id, and order siblings by order_key.
- Search results only contain the matched note; read it with notes_get_note_tool.
- Deleting moves a note to the trash; its children stay attached but hidden.
""",
    lifespan=server_lifespan,
)


def _store(mcp_ctx: Context) -> NoteStore:
    ctx: ServerContext = mcp_ctx.request_context.lifespan_context  # type: ignore[assignment]
    return ctx.store


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def notes_get_tree_tool(ctx: Context) -> dict[str, Any]:
    """List every visible note (pinned first, then grouped by parent, then by order)."""
    return notes_get_tree(_store(ctx))


@mcp_server.tool()
async def notes_get_note_tool(ctx: Context, id: str) -> dict[str, Any]:
    """Read one note's title and content.

    Args:
        id: Note id.
    """
    return notes_get_note(_store(ctx), id=id)


@mcp_server.tool()
async def notes_update_note_tool(
    ctx: Context, id: str, title: str | None = None, content: str | None = None
) -> dict[str, Any]:
    """Change a note's title and/or content.

    Args:
        id: Note id.
        title: New title.
        content: New content.
    """
    return notes_update_note(_store(ctx), id=id, title=title, content=content)


@mcp_server.tool()
async def notes_create_tool(
    ctx: Context,
    parent_id: str | None = None,
    after_id: str | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Create a note.

    Pass after_id to create a sibling right after that note, otherwise the
    note becomes the last child of parent_id (or the last root note).

    Args:
        parent_id: Parent note id (omit for root level).
        after_id: Existing note to create a sibling after.
        title: Title of the new note (defaults to "New Note" or "New Child").
    """
    return notes_create(_store(ctx), parent_id=parent_id, after_id=after_id, title=title)


@mcp_server.tool()
async def notes_move_tool(
    ctx: Context,
    id: str,
    new_parent_id: str | None = None,
    after_id: str | None = None,
    before_id: str | None = None,
) -> dict[str, Any]:
    """Move a note under a new parent (omit for root level).

    The note lands right after after_id, or in place of before_id, or at the
    end. Moving a note into itself or one of its descendants is rejected.

    Args:
        id: Note to move.
        new_parent_id: Destination parent id.
        after_id: Sibling to place the note after.
        before_id: Sibling to place the note before.
    """
    return notes_move(
        _store(ctx), id=id, new_parent_id=new_parent_id, after_id=after_id, before_id=before_id
    )


@mcp_server.tool()
async def notes_search_tool(
    ctx: Context,
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
    include_deleted: bool = False,
    include_breadcrumbs: bool = True,
) -> dict[str, Any]:
    """Full-text search over note titles and content.

    Query syntax: Words are ANDed. Use "quoted phrases" for exact matches.
    Prefix matching is automatic for 3+ char words.

    Args:
        query: Search text.
        limit: Max results (1-100, default 20).
        include_deleted: Include notes hidden by a delete.
        include_breadcrumbs: Include ancestor chain in results.
    """
    return notes_search(
        _store(ctx),
        query=query,
        limit=limit,
        include_deleted=include_deleted,
        include_breadcrumbs=include_breadcrumbs,
    )


@mcp_server.tool()
async def notes_list_trash_tool(ctx: Context) -> dict[str, Any]:
    """List deleted notes, most recently deleted first."""
    return notes_list_trash(_store(ctx))


@mcp_server.tool()
async def notes_trash_action_tool(ctx: Context, id: str, action: str) -> dict[str, Any]:
    """Delete, restore, or permanently purge a note.

    Args:
        id: Note id.
        action: "delete" (to trash), "restore" (from trash), or "purge"
            (permanent, removes all descendants too).
    """
    return notes_trash_action(_store(ctx), id=id, action=action)


@mcp_server.tool()
async def notes_toggle_pin_tool(ctx: Context, id: str) -> dict[str, Any]:
    """Pin or unpin a note. Pinned notes are listed first.

    Args:
        id: Note id.
    """
    return notes_toggle_pin(_store(ctx), id=id)


@mcp_server.tool()
async def notes_toggle_markdown_view_tool(ctx: Context, id: str) -> dict[str, Any]:
    """Switch a note between rendered markdown and raw text display.

    Args:
        id: Note id.
    """
    return notes_toggle_markdown_view(_store(ctx), id=id)


@mcp_server.tool()
async def notes_mark_open_tool(ctx: Context, id: str, is_open: bool) -> dict[str, Any]:
    """Mark a note open or closed. Closed notes leave the recent list.

    Args:
        id: Note id.
        is_open: True to open, False to close.
    """
    return notes_mark_open(_store(ctx), id=id, is_open=is_open)


@mcp_server.tool()
async def notes_touch_open_tool(ctx: Context, id: str) -> dict[str, Any]:
    """Record that a note was just opened, moving it to the top of the recent list.

    Args:
        id: Note id.
    """
    return notes_touch_open(_store(ctx), id=id)


@mcp_server.tool()
async def notes_recent_tool(ctx: Context, limit: int = 10) -> dict[str, Any]:
    """Ids of recently opened notes, most recent first.

    Args:
        limit: Max ids.
    """
    return notes_recent(_store(ctx), limit=limit)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from notetree.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
