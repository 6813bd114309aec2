"""CLI for notetree (tree editing, trash, search, MCP server)."""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from notetree import commands
from notetree.config import DEFAULT_OPEN_LIST_LIMIT, DEFAULT_SEARCH_LIMIT, database_path
from notetree.core.tree.markdown import render_outline
from notetree.errors import NoteTreeError
from notetree.logging_config import configure_logging
from notetree.store import NoteStore

app = typer.Typer(help="notetree: an ordered tree of notes with trash and full-text search.")

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Database directory"),
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


@contextmanager
def _session(data_dir: Path | None) -> Iterator[NoteStore]:
    """Open the store, report domain errors as a message and exit code 1."""
    db_path = database_path(data_dir)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    store = NoteStore.open(db_path, seed_welcome=True)
    try:
        yield store
    except NoteTreeError as e:
        logger.debug("Command failed: {}", e.kind.value)
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(1) from e
    finally:
        store.close()


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _fmt_ms(ms: int) -> str:
    return f"{datetime.fromtimestamp(ms / 1000, tz=UTC):%Y-%m-%d %H:%M}"


@app.command()
def tree(
    root: Annotated[
        str | None, typer.Option("--root", "-r", help="Show only this note's subtree")
    ] = None,
    max_depth: Annotated[
        int | None, typer.Option("--max-depth", "-m", help="Max depth levels to render")
    ] = None,
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show the visible tree as an outline."""
    with _session(data_dir) as store:
        if output_json:
            _echo_json(commands.get_tree_snapshot(store))
            return
        root_id = commands.parse_optional_id(root, field="root")
        md = render_outline(store.get_tree_snapshot(), root_id=root_id, max_depth=max_depth)
        typer.echo(md.rstrip("\n") if md else "(empty)")


@app.command()
def show(
    note_id: str = typer.Argument(..., help="Note id"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Print a note's title and content."""
    with _session(data_dir) as store:
        note = commands.get_note(store, note_id)
        commands.touch_open(store, note_id)
        if output_json:
            _echo_json(note)
            return
        crumbs = store.get_breadcrumbs(commands.parse_id(note_id))
        if crumbs:
            typer.echo(" > ".join(c.title for c in crumbs))
        typer.echo(f"# {note['title']}  (id={note['id']}, updated {_fmt_ms(note['updated_at'])})")
        typer.echo()
        typer.echo(note["content"])


@app.command()
def new(
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="Create as last child of this note")
    ] = None,
    after: Annotated[
        str | None, typer.Option("--after", "-a", help="Create as sibling right after this note")
    ] = None,
    title: Annotated[str | None, typer.Option("--title", "-t", help="Title")] = None,
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Create a note."""
    with _session(data_dir) as store:
        if after is not None:
            node = commands.create_sibling(store, after, title)
        else:
            node = commands.create_child(store, parent, title)
        if output_json:
            _echo_json(node)
        else:
            typer.echo(f"Created note {node['id']}: {node['title']}")


@app.command()
def rename(
    note_id: str = typer.Argument(..., help="Note id"),
    title: str = typer.Argument(..., help="New title"),
    data_dir: DataDirOption = None,
) -> None:
    """Rename a note."""
    with _session(data_dir) as store:
        commands.rename_note(store, note_id, title)
        typer.echo(f"Renamed note {note_id}")


@app.command()
def edit(
    note_id: str = typer.Argument(..., help="Note id"),
    content: Annotated[str | None, typer.Option("--content", "-c", help="New content")] = None,
    content_file: Annotated[
        Path | None, typer.Option("--file", "-f", help="Read new content from a file")
    ] = None,
    title: Annotated[str | None, typer.Option("--title", "-t", help="New title")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Replace a note's content and/or title."""
    if content_file is not None:
        content = content_file.read_text(encoding="utf-8")
    with _session(data_dir) as store:
        updated_at = commands.update_note(store, note_id, title, content)
        typer.echo(f"Updated note {note_id} at {_fmt_ms(updated_at)}")


@app.command()
def move(
    note_id: str = typer.Argument(..., help="Note id"),
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="New parent (omit for root level)")
    ] = None,
    after: Annotated[
        str | None, typer.Option("--after", "-a", help="Place right after this sibling")
    ] = None,
    before: Annotated[
        str | None, typer.Option("--before", "-b", help="Place right before this sibling")
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Move a note to a new parent and position."""
    with _session(data_dir) as store:
        commands.move_note(store, note_id, parent, after, before)
        typer.echo(f"Moved note {note_id}")


@app.command()
def delete(
    note_id: str = typer.Argument(..., help="Note id"),
    data_dir: DataDirOption = None,
) -> None:
    """Move a note to the trash."""
    with _session(data_dir) as store:
        commands.soft_delete_note(store, note_id)
        typer.echo(f"Moved note {note_id} to trash")


@app.command()
def trash(
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """List notes in the trash."""
    with _session(data_dir) as store:
        deleted = commands.get_deleted_notes(store)
        if output_json:
            _echo_json({"notes": deleted, "count": len(deleted)})
            return
        typer.echo(f"{len(deleted)} notes in trash:\n")
        for d in deleted:
            typer.echo(f"  {d['title']}  [id={d['id']}, deleted {_fmt_ms(d['deleted_at'])}]")


@app.command()
def restore(
    note_id: str = typer.Argument(..., help="Note id"),
    data_dir: DataDirOption = None,
) -> None:
    """Restore a note from the trash."""
    with _session(data_dir) as store:
        commands.restore_note(store, note_id)
        typer.echo(f"Restored note {note_id}")


@app.command()
def purge(
    note_id: str = typer.Argument(..., help="Note id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    data_dir: DataDirOption = None,
) -> None:
    """Permanently delete a note and all of its descendants."""
    if not yes:
        typer.confirm(f"Permanently delete note {note_id} and its descendants?", abort=True)
    with _session(data_dir) as store:
        stats = store.hard_delete_note(commands.parse_id(note_id))
        typer.echo(f"Purged {stats.count} notes")


@app.command()
def pin(
    note_id: str = typer.Argument(..., help="Note id"),
    data_dir: DataDirOption = None,
) -> None:
    """Toggle a note's pinned state."""
    with _session(data_dir) as store:
        pinned = commands.toggle_pin_note(store, note_id)
        typer.echo(f"Note {note_id} {'pinned' if pinned else 'unpinned'}")


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(DEFAULT_SEARCH_LIMIT, "--limit", "-n", help="Max results"),
    include_deleted: bool = typer.Option(
        False, "--include-deleted", help="Include notes hidden by a delete"
    ),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Search for notes matching a query."""
    with _session(data_dir) as store:
        results = commands.search_notes(
            store, query, limit, include_deleted=include_deleted, include_breadcrumbs=True
        )
        if output_json:
            _echo_json({"results": results, "count": len(results)})
            return
        typer.echo(f"Found {len(results)} results:\n")
        for r in results:
            typer.echo(f"  {r['title']}  [id={r['id']}]")
            if r["breadcrumbs"]:
                typer.echo(f"    in: {r['breadcrumbs']}")
            typer.echo(f"    {r['snippet']}")
            typer.echo()


@app.command()
def recent(
    limit: int = typer.Option(DEFAULT_OPEN_LIST_LIMIT, "--limit", "-n", help="Max results"),
    data_dir: DataDirOption = None,
    output_json: JsonOption = False,
) -> None:
    """Show recently opened notes."""
    with _session(data_dir) as store:
        ids = commands.get_open_list(store, limit)
        if output_json:
            _echo_json({"ids": ids, "count": len(ids)})
            return
        for note_id in ids:
            note = commands.get_note(store, note_id)
            typer.echo(f"  {note['title']}  [id={note_id}]")


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from notetree.mcp.server import run_mcp_server

    run_mcp_server()
