"""
Outline rendering for the description tree.

Turns the flat set of registered nodes into the bullet list handed to the
host:

    - Piano
      - Key C4, pressed
      - Key D4

Nodes are grouped by parent and each group is sorted by id, so the same node
set always renders the same text whatever order the wrappers mounted in.
A node without content prints nothing but its children are still one level
deeper than it. Nodes whose parent is gone are never reached from the roots
and do not render.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .config import get_config

if TYPE_CHECKING:
    from .tree import DescribeNode

BULLET = "- "


def group_by_parent(nodes: Iterable[DescribeNode]) -> dict[str | None, list[DescribeNode]]:
    """Index nodes by parent id (None for roots), each group sorted by id."""
    by_parent: dict[str | None, list[DescribeNode]] = defaultdict(list)
    for node in nodes:
        by_parent[node.parent_id].append(node)
    for group in by_parent.values():
        group.sort(key=lambda n: n.id)
    return by_parent


def outline_lines(nodes: Iterable[DescribeNode], indent: str | None = None) -> list[str]:
    """Depth-first outline lines, one per node with non-blank content."""
    if indent is None:
        indent = get_config().registry.indent

    by_parent = group_by_parent(nodes)
    lines: list[str] = []

    # Explicit stack instead of recursion: wrapper nesting has no depth limit
    stack: list[tuple[DescribeNode, int]] = [(n, 0) for n in reversed(by_parent.get(None, []))]
    while stack:
        node, depth = stack.pop()
        if node.content and node.content.strip():
            lines.append(f"{indent * depth}{BULLET}{node.content.strip()}")
        children = by_parent.get(node.id, [])
        stack.extend((child, depth + 1) for child in reversed(children))

    return lines


def render_outline(nodes: Iterable[DescribeNode], indent: str | None = None) -> str:
    """Render nodes as a newline-joined bullet outline ("" when nothing to say)."""
    return "\n".join(outline_lines(nodes, indent))
