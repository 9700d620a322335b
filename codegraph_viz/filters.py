"""Inclusion filtering and search highlighting over graph collections."""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from .models import Edge, FilterResult, FilterState, Node


def apply(nodes: Sequence[Node], edges: Sequence[Edge], state: Optional[FilterState] = None) -> FilterResult:
    """Narrow ``nodes``/``edges`` to what ``state`` allows.

    Highlighting is computed over the filtered nodes only and never removes
    anything from the result.
    """
    state = state or FilterState()
    filtered_nodes = filter_nodes(nodes, state)
    return FilterResult(
        filtered_nodes=filtered_nodes,
        filtered_edges=filter_edges(edges, filtered_nodes, state),
        highlighted_node_ids=highlight(filtered_nodes, state.search_query),
    )


def filter_nodes(nodes: Sequence[Node], state: FilterState) -> List[Node]:
    result = []
    for node in nodes:
        data = node.data
        if data.node_type not in state.node_types:
            continue
        if data.cluster not in state.clusters:
            continue
        if state.file_path and state.file_path not in (data.file_path or ""):
            continue
        result.append(node)
    return result


def filter_edges(edges: Sequence[Edge], visible: Sequence[Node], state: FilterState) -> List[Edge]:
    visible_ids = {node.id for node in visible}
    return [
        edge
        for edge in edges
        if edge.source in visible_ids
        and edge.target in visible_ids
        and edge.edge_type in state.edge_types
    ]


def highlight(nodes: Sequence[Node], query: str) -> Set[str]:
    """Ids of nodes whose name, qualified name or file path contains ``query``."""
    query = query or ""
    if not query.strip():
        return set()
    query = query.lower()
    matches = set()
    for node in nodes:
        data = node.data
        fields = (data.name, data.qualified_name, data.file_path)
        if any(query in value.lower() for value in fields if value):
            matches.add(node.id)
    return matches
