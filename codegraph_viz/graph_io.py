"""Read graph documents (``{"nodes": [...], "edges": [...]}``) for the CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .models import Edge, Node
from .transform import transform_edges, transform_nodes


class GraphFormatError(ValueError):
    """Raised when a graph document cannot be understood."""


def parse_document(document: Any) -> Tuple[List[Node], List[Edge]]:
    if not isinstance(document, dict):
        raise GraphFormatError("Graph document must be a JSON object with 'nodes' and 'edges'.")
    node_rows = document.get("nodes", [])
    edge_rows = document.get("edges", [])
    if not isinstance(node_rows, list) or not isinstance(edge_rows, list):
        raise GraphFormatError("'nodes' and 'edges' must be lists.")

    for i, row in enumerate(node_rows):
        if not isinstance(row, dict) or "id" not in row:
            raise GraphFormatError(f"Node #{i} must be an object with an 'id'.")
    for i, row in enumerate(edge_rows):
        if not isinstance(row, dict):
            raise GraphFormatError(f"Edge #{i} must be an object.")
        has_source = "source" in row or "source_node_id" in row
        has_target = "target" in row or "target_node_id" in row
        if not (has_source and has_target):
            raise GraphFormatError(f"Edge #{i} needs a source and a target.")

    try:
        return transform_nodes(node_rows, edge_rows), transform_edges(edge_rows)
    except ValueError as exc:
        raise GraphFormatError(str(exc)) from exc


def load_graph(path: Path) -> Tuple[List[Node], List[Edge]]:
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise GraphFormatError(f"{path} is not valid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise GraphFormatError(f"{path} is not UTF-8 text: {exc}") from exc
    return parse_document(document)


def node_to_dict(node: Node) -> Dict[str, Any]:
    """Compact view of a laid-out node for terminal output."""
    data = node.data
    return {
        "id": node.id,
        "name": data.name,
        "node_type": data.node_type.value,
        "cluster": data.cluster.value,
        "file_path": data.file_path,
        "position": None if node.position is None else {"x": node.position.x, "y": node.position.y},
    }
