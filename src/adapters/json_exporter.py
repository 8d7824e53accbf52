"""JSON export of a built forest.

Why JSON:
- Interoperates with other tools (spreadsheets, scripts, diffing).
- Persists the reconstructed tree without depending on the rich rendering.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.domain.models import HierarchyNode


def node_to_dict(node: HierarchyNode[Any]) -> dict[str, Any]:
    entity = node.entity
    if hasattr(entity, "model_dump"):
        entity = entity.model_dump(mode="json")
    return {
        "id": node.id,
        "parentId": node.parent_id,
        "depth": node.depth,
        "entity": entity,
        "children": [node_to_dict(child) for child in node.children],
    }


def export_forest_json(*, forest: list[HierarchyNode[Any]], output_path: Path) -> Path:
    """Export a forest as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [node_to_dict(root) for root in forest]
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True, default=str) + "\n",
        encoding="utf-8",
    )
    return output_path
