"""Domain models for the note tree."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Node:
    """A single note row, including soft-deleted ones."""

    id: int
    parent_id: int | None
    title: str
    content: str
    order_key: float
    is_open: bool
    is_pinned: bool
    is_deleted: bool
    created_at: int
    updated_at: int
    is_markdown_view: bool = False


@dataclass(frozen=True)
class TreeNode:
    """A visible node as returned by the snapshot reader."""

    id: int
    parent_id: int | None
    title: str
    content: str
    order_key: float
    is_open: bool
    is_pinned: bool
    is_markdown_view: bool
    created_at: int
    updated_at: int
    has_children: bool = False


@dataclass(frozen=True)
class DeletedNote:
    """A soft-deleted note as listed in the trash."""

    id: int
    title: str
    deleted_at: int


@dataclass(frozen=True)
class Breadcrumb:
    """A single ancestor in a breadcrumb trail."""

    node_id: int
    title: str
    depth: int


@dataclass(frozen=True)
class SearchResult:
    """A search hit with context."""

    id: int
    title: str
    snippet: str
    rank: float
    breadcrumbs: tuple[Breadcrumb, ...] = ()


@dataclass(frozen=True)
class HardDeleteStats:
    """Summary of a hard delete."""

    root_id: int
    deleted_ids: tuple[int, ...]

    @property
    def count(self) -> int:
        return len(self.deleted_ids)
