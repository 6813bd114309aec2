"""Render snapshot rows as a markdown outline."""

import io
from collections import defaultdict
from collections.abc import Iterable

from notetree.models.node import TreeNode


def render_outline(
    nodes: Iterable[TreeNode],
    *,
    root_id: int | None = None,
    max_depth: int | None = None,
    include_content: bool = False,
) -> str:
    """Render visible nodes as an indented markdown bullet list.

    Args:
        nodes: Snapshot rows, in snapshot order.
        root_id: Render only this node's subtree (None = the whole tree).
        max_depth: Max levels below the start to include (None = unlimited).
        include_content: Quote each note's content under its title.

    Returns:
        Markdown string with bullet-list hierarchy.
    """
    by_id: dict[int, TreeNode] = {}
    children: dict[int | None, list[TreeNode]] = defaultdict(list)
    for node in nodes:
        by_id[node.id] = node
        children[node.parent_id].append(node)
    for siblings in children.values():
        siblings.sort(key=lambda n: (n.order_key, n.id))
    # Pinned roots lead the top level.
    children[None].sort(key=lambda n: not n.is_pinned)

    if root_id is not None:
        if root_id not in by_id:
            return ""
        start = [by_id[root_id]]
    else:
        start = children[None]

    out = io.StringIO()

    def _write(node: TreeNode, depth: int) -> None:
        indent = "    " * depth
        marker = "📌 " if node.is_pinned else ""
        out.write(f"{indent}- {marker}{node.title}\n")
        if include_content and node.content:
            for line in node.content.split("\n"):
                out.write(f"{indent}  > {line}\n")

        kids = children.get(node.id, [])
        if max_depth is not None and depth >= max_depth:
            if kids:
                noun = "child" if len(kids) == 1 else "children"
                out.write(f"{indent}    - ... ({len(kids)} more {noun}, id={node.id})\n")
            return
        for kid in kids:
            _write(kid, depth + 1)

    for node in start:
        _write(node, 0)
    return out.getvalue()
