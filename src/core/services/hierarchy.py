"""Flat list to forest assembly for self-referencing entities.

Ledger accounts and item categories arrive as flat lists where each entity
names its parent. `build_hierarchy` turns such a list into a forest of
`HierarchyNode`s. It never raises on malformed input:

- duplicate ids: the last entity with a given id wins and takes the position
  of that last occurrence;
- a parent id that is missing, unknown, or the entity's own id makes the
  entity a root;
- entities whose parent chain loops back to themselves are made roots, so the
  loop is broken at every member;
- siblings and roots keep the input order.

The input is never mutated; a fresh forest is built on every call.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Callable, TypeVar

from core.domain.models import HierarchyNode

T = TypeVar("T")

_VISITING = 1
_DONE = 2


def _read(entity: Any, *names: str) -> Any:
    for name in names:
        if isinstance(entity, Mapping):
            value = entity.get(name)
        else:
            value = getattr(entity, name, None)
        if value is not None:
            return value
    return None


def default_id(entity: Any) -> Any:
    return _read(entity, "id")


def default_parent_id(entity: Any) -> Any:
    return _read(entity, "parentId", "parent_id")


def _as_key(value: Any) -> str | None:
    if value is None:
        return None
    key = str(value)
    return key or None


def _cycle_members(parents: Mapping[str, str | None]) -> set[str]:
    """Ids lying on a parent loop; each id is visited once."""

    state: dict[str, int] = {}
    members: set[str] = set()
    for start in parents:
        if start in state:
            continue
        path: list[str] = []
        position: dict[str, int] = {}
        node: str | None = start
        while node is not None and node not in state:
            state[node] = _VISITING
            position[node] = len(path)
            path.append(node)
            node = parents[node]
        if node is not None and state[node] == _VISITING:
            members.update(path[position[node]:])
        for visited in path:
            state[visited] = _DONE
    return members


def build_hierarchy(
    items: Iterable[T],
    *,
    id_of: Callable[[T], Any] | None = None,
    parent_of: Callable[[T], Any] | None = None,
) -> list[HierarchyNode[T]]:
    """Build a forest from a flat, parent-referencing list.

    Args:
        items: Source entities (mappings or objects).
        id_of: Reads an entity's id. Defaults to the `id` key/attribute.
        parent_of: Reads an entity's parent id. Defaults to `parentId`, then
            `parent_id`.

    Returns:
        Root nodes in input order. Entities without an id are skipped.
    """

    read_id = id_of or default_id
    read_parent = parent_of or default_parent_id

    index: dict[str, T] = {}
    for entity in items:
        key = _as_key(read_id(entity))
        if key is None:
            continue
        # Re-insert so the survivor sits at its last position.
        index.pop(key, None)
        index[key] = entity

    parents: dict[str, str | None] = {}
    for key, entity in index.items():
        parent = _as_key(read_parent(entity))
        parents[key] = parent if parent in index and parent != key else None

    for key in _cycle_members(parents):
        parents[key] = None

    children: dict[str, list[str]] = {key: [] for key in index}
    for key, parent in parents.items():
        if parent is not None:
            children[parent].append(key)

    # With every cycle member demoted, each entity is reachable from a root.
    roots = [key for key in index if parents[key] is None]
    depth: dict[str, int] = {key: 0 for key in roots}
    order: list[str] = []
    queue = deque(roots)
    while queue:
        current = queue.popleft()
        order.append(current)
        for child in children[current]:
            depth[child] = depth[current] + 1
            queue.append(child)

    nodes: dict[str, HierarchyNode[T]] = {}
    for key in reversed(order):
        nodes[key] = HierarchyNode(
            entity=index[key],
            id=key,
            parent_id=parents[key],
            children=tuple(nodes[child] for child in children[key]),
            depth=depth[key],
        )

    return [nodes[key] for key in roots]


def walk(forest: Iterable[HierarchyNode[T]]) -> Iterator[HierarchyNode[T]]:
    """Depth-first pre-order traversal (the order of an indented table)."""

    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def forest_size(forest: Iterable[HierarchyNode[Any]]) -> int:
    return sum(1 for _ in walk(forest))
