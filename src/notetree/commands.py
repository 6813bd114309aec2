"""Client command surface over a :class:`NoteStore`.

Identifiers cross this boundary as strings of decimal integers; results are
JSON-ready dicts with string ids. Parsing and formatting happen here and
nowhere else.
"""

import re
from dataclasses import asdict
from typing import Any

from notetree.errors import ValidationError
from notetree.models.node import Node, TreeNode
from notetree.store import NoteStore

_ID_PATTERN = re.compile(r"[0-9]+")


def parse_id(value: str | int, *, field: str = "id") -> int:
    """Parse a client-supplied identifier, raising :class:`ValidationError`."""
    if isinstance(value, bool):
        msg = f"Invalid {field}: {value!r}"
        raise ValidationError(msg, details={"field": field})
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not _ID_PATTERN.fullmatch(text):
        msg = f"Invalid {field}: {value!r}"
        raise ValidationError(msg, details={"field": field})
    return int(text)


def parse_optional_id(value: str | int | None, *, field: str) -> int | None:
    if value is None or value == "":
        return None
    return parse_id(value, field=field)


def format_id(value: int | None) -> str | None:
    return None if value is None else str(value)


def _tree_node_dict(node: TreeNode | Node) -> dict[str, Any]:
    data = asdict(node)
    data["id"] = format_id(node.id)
    data["parent_id"] = format_id(node.parent_id)
    data.pop("is_deleted", None)
    return data


def get_tree_snapshot(store: NoteStore) -> list[dict[str, Any]]:
    return [_tree_node_dict(n) for n in store.get_tree_snapshot()]


def get_note(store: NoteStore, id: str) -> dict[str, Any]:
    node = store.get_note(parse_id(id))
    return {
        "id": format_id(node.id),
        "title": node.title,
        "content": node.content,
        "updated_at": node.updated_at,
    }


def update_note(
    store: NoteStore, id: str, title: str | None = None, content: str | None = None
) -> int:
    return store.update_note(parse_id(id), title=title, content=content)


def create_sibling(
    store: NoteStore, reference_id: str, title: str | None = None
) -> dict[str, Any]:
    ref = parse_id(reference_id, field="reference_id")
    node = store.create_sibling(ref) if title is None else store.create_sibling(ref, title=title)
    return _tree_node_dict(node) | {"has_children": False}


def create_child(
    store: NoteStore, parent_id: str | None = None, title: str | None = None
) -> dict[str, Any]:
    parent = parse_optional_id(parent_id, field="parent_id")
    node = store.create_child(parent) if title is None else store.create_child(parent, title=title)
    return _tree_node_dict(node) | {"has_children": False}


def rename_note(store: NoteStore, id: str, new_title: str) -> int:
    return store.rename_note(parse_id(id), new_title)


def move_note(
    store: NoteStore,
    id: str,
    new_parent_id: str | None = None,
    after_id: str | None = None,
    before_id: str | None = None,
) -> None:
    store.move_note(
        parse_id(id),
        parse_optional_id(new_parent_id, field="new_parent_id"),
        after_id=parse_optional_id(after_id, field="after_id"),
        before_id=parse_optional_id(before_id, field="before_id"),
    )


def soft_delete_note(store: NoteStore, id: str) -> None:
    store.soft_delete_note(parse_id(id))


def toggle_pin_note(store: NoteStore, id: str) -> bool:
    return store.toggle_pin_note(parse_id(id))


def toggle_markdown_view(store: NoteStore, id: str) -> bool:
    return store.toggle_markdown_view(parse_id(id))


def search_notes(
    store: NoteStore,
    query: str,
    limit: int,
    *,
    include_deleted: bool = False,
    include_breadcrumbs: bool = False,
) -> list[dict[str, Any]]:
    if limit < 1:
        msg = f"Invalid limit: {limit!r}"
        raise ValidationError(msg, details={"field": "limit"})
    results = store.search_notes(
        query,
        limit,
        include_deleted=include_deleted,
        include_breadcrumbs=include_breadcrumbs,
    )
    serialized = []
    for r in results:
        entry: dict[str, Any] = {
            "id": format_id(r.id),
            "title": r.title,
            "snippet": r.snippet,
            "rank": r.rank,
        }
        if include_breadcrumbs:
            entry["breadcrumbs"] = " > ".join(c.title[:40] for c in r.breadcrumbs)
        serialized.append(entry)
    return serialized


def mark_open(store: NoteStore, id: str, is_open: bool) -> None:
    store.mark_open(parse_id(id), is_open)


def touch_open(store: NoteStore, id: str) -> None:
    store.touch_open(parse_id(id))


def get_open_list(store: NoteStore, limit: int) -> list[str]:
    return [str(i) for i in store.get_open_list(limit)]


def get_deleted_notes(store: NoteStore) -> list[dict[str, Any]]:
    return [
        {"id": format_id(d.id), "title": d.title, "deleted_at": d.deleted_at}
        for d in store.get_deleted_notes()
    ]


def restore_note(store: NoteStore, id: str) -> None:
    store.restore_note(parse_id(id))


def hard_delete_note(store: NoteStore, id: str) -> None:
    store.hard_delete_note(parse_id(id))
