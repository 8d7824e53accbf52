"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets several commands reuse the same trees and panels.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from core.domain.errors import ApiError
from core.domain.models import HierarchyNode

_SEVERITY_STYLES = {
    "error": "red",
    "warning": "yellow",
    "info": "cyan",
}


def entity_label(node: HierarchyNode[Any]) -> str:
    """`code  name` for accounts and categories; falls back to the id."""

    entity = node.entity
    if isinstance(entity, Mapping):
        code = entity.get("code")
        name = entity.get("name")
    else:
        code = getattr(entity, "code", None)
        name = getattr(entity, "name", None)
    parts = [str(p) for p in (code, name) if p]
    return "  ".join(parts) if parts else node.id


def build_hierarchy_tree(forest: Iterable[HierarchyNode[Any]], *, title: str = "Hierarchy") -> Tree:
    """Rich tree for a forest; depth is shown dimmed next to each label."""

    tree = Tree(Text(title, style="bold cyan"))
    stack: list[tuple[Tree, HierarchyNode[Any]]] = [(tree, root) for root in reversed(list(forest))]
    while stack:
        branch, node = stack.pop()
        label = Text(entity_label(node))
        label.append(f"  [{node.depth}]", style="dim")
        sub = branch.add(label)
        stack.extend((sub, child) for child in reversed(node.children))
    return tree


def build_error_panel(error: ApiError) -> Panel:
    """Panel presenting a terminal `ApiError`."""

    severity = error.severity()
    style = _SEVERITY_STYLES[severity]
    body = Text()
    body.append(error.user_message() + "\n")
    meta = [f"kind: {error.kind.value}"]
    if error.status is not None:
        meta.append(f"status: {error.status}")
    if error.code:
        meta.append(f"code: {error.code}")
    body.append(" • ".join(meta), style="dim")
    return Panel(body, title=Text(severity.capitalize(), style=f"bold {style}"), border_style=style)
