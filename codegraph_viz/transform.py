"""Turn raw code-graph rows into engine Nodes and Edges, plus a demo graph."""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .clusters import classify
from .models import Edge, EdgeType, Node, NodeData, NodeType, Position, Size

INITIAL_RADIUS = 300.0


def edge_endpoints(row: Mapping[str, Any]) -> Tuple[str, str]:
    """Source and target ids of an edge row (either naming convention)."""
    source = row.get("source", row.get("source_node_id"))
    target = row.get("target", row.get("target_node_id"))
    return str(source), str(target)


def transform_nodes(rows: Sequence[Mapping[str, Any]], edge_rows: Sequence[Mapping[str, Any]]) -> List[Node]:
    """Build Nodes with cluster, connection counts and a circular seed layout.

    Raises:
        ValueError: if a row holds a value that cannot be converted; the
            message names the offending row.
    """
    incoming: Counter = Counter()
    outgoing: Counter = Counter()
    for edge in edge_rows:
        source, target = edge_endpoints(edge)
        outgoing[source] += 1
        incoming[target] += 1

    nodes = []
    total = len(rows)
    for index, row in enumerate(rows):
        try:
            node = _node_from_row(row, index, total, incoming, outgoing)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Node #{index}: {exc}") from exc
        nodes.append(node)
    return nodes


def _node_from_row(row: Mapping[str, Any], index: int, total: int, incoming: Counter, outgoing: Counter) -> Node:
    node_id = str(row["id"])
    file_path = str(row.get("file_path") or "")
    summary = row.get("summary")
    data = NodeData(
        node_type=NodeType(row.get("node_type") or "other"),
        file_path=file_path,
        name=str(row.get("name") or node_id),
        qualified_name=row.get("qualified_name"),
        summary=None if summary is None else str(summary),
        cluster=classify(file_path),
        language=row.get("language"),
        start_line=int(row.get("start_line") or 0),
        end_line=int(row.get("end_line") or 0),
        signature=row.get("signature"),
        connection_count=incoming[node_id] + outgoing[node_id],
        incoming_count=incoming[node_id],
        outgoing_count=outgoing[node_id],
        metadata=dict(row.get("metadata") or {}),
    )
    angle = index / total * 2 * math.pi
    measured = row.get("measured")
    return Node(
        id=node_id,
        data=data,
        position=Position(math.cos(angle) * INITIAL_RADIUS, math.sin(angle) * INITIAL_RADIUS),
        measured=Size(float(measured["width"]), float(measured["height"])) if measured else None,
    )


def transform_edges(rows: Sequence[Mapping[str, Any]]) -> List[Edge]:
    edges = []
    for index, row in enumerate(rows):
        try:
            source, target = edge_endpoints(row)
            edge = Edge(
                id=str(row.get("id") or f"e{index + 1}"),
                source=source,
                target=target,
                edge_type=EdgeType(row.get("edge_type") or "other"),
                weight=float(row.get("weight") or 1),
                metadata=dict(row.get("metadata") or {}),
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Edge #{index}: {exc}") from exc
        edges.append(edge)
    return edges


DEMO_NODE_ROWS: List[Dict[str, Any]] = [
    # Frontend
    {"id": "1", "name": "App", "node_type": "component", "file_path": "src/app/page.tsx", "start_line": 1, "end_line": 50,
     "summary": "Main application entry point that renders the page layout with header and sidebar"},
    {"id": "2", "name": "Header", "node_type": "component", "file_path": "src/components/Header.tsx", "start_line": 1, "end_line": 30,
     "summary": "Navigation header with logo, search bar, and user menu"},
    {"id": "3", "name": "Sidebar", "node_type": "component", "file_path": "src/components/Sidebar.tsx", "start_line": 1, "end_line": 45,
     "summary": "Collapsible sidebar with navigation links and user settings"},
    {"id": "4", "name": "useAuth", "node_type": "hook", "file_path": "src/hooks/useAuth.ts", "start_line": 1, "end_line": 25,
     "summary": "Authentication hook that manages user session and login state"},
    {"id": "5", "name": "Button", "node_type": "component", "file_path": "src/ui/Button.tsx", "start_line": 1, "end_line": 20,
     "summary": "Reusable button component with variants and loading states"},
    # Backend
    {"id": "6", "name": "getUsers", "node_type": "endpoint", "file_path": "src/api/users/route.ts", "start_line": 10, "end_line": 35,
     "summary": "GET endpoint that returns paginated list of users with filtering"},
    {"id": "7", "name": "createUser", "node_type": "endpoint", "file_path": "src/api/users/route.ts", "start_line": 40, "end_line": 70,
     "summary": "POST endpoint that creates a new user with validation"},
    {"id": "8", "name": "authMiddleware", "node_type": "middleware", "file_path": "src/api/middleware/auth.ts", "start_line": 1, "end_line": 30,
     "summary": "Middleware that verifies JWT tokens and attaches user to request"},
    {"id": "9", "name": "UserService", "node_type": "class", "file_path": "src/services/UserService.ts", "start_line": 1, "end_line": 100,
     "summary": "Service class handling all user-related business logic"},
    {"id": "10", "name": "validateUser", "node_type": "function", "file_path": "src/services/UserService.ts", "start_line": 50, "end_line": 70,
     "summary": "Validates user data against schema before database operations"},
    # Shared
    {"id": "11", "name": "User", "node_type": "type", "file_path": "src/types/user.ts", "start_line": 1, "end_line": 15,
     "summary": "TypeScript interface defining the User object shape"},
    {"id": "12", "name": "formatDate", "node_type": "function", "file_path": "src/utils/date.ts", "start_line": 1, "end_line": 10,
     "summary": "Utility function to format dates in human-readable format"},
    {"id": "13", "name": "API_URL", "node_type": "constant", "file_path": "src/constants/config.ts", "start_line": 1, "end_line": 5,
     "summary": "API base URL configuration constant"},
]

DEMO_EDGE_ROWS: List[Dict[str, Any]] = [
    {"id": "e1", "source_node_id": "1", "target_node_id": "2", "edge_type": "imports"},
    {"id": "e2", "source_node_id": "1", "target_node_id": "3", "edge_type": "imports"},
    {"id": "e3", "source_node_id": "1", "target_node_id": "4", "edge_type": "uses"},
    {"id": "e4", "source_node_id": "2", "target_node_id": "5", "edge_type": "imports"},
    {"id": "e5", "source_node_id": "3", "target_node_id": "5", "edge_type": "imports"},
    {"id": "e6", "source_node_id": "4", "target_node_id": "6", "edge_type": "calls"},
    {"id": "e7", "source_node_id": "6", "target_node_id": "8", "edge_type": "depends_on"},
    {"id": "e8", "source_node_id": "7", "target_node_id": "8", "edge_type": "depends_on"},
    {"id": "e9", "source_node_id": "6", "target_node_id": "9", "edge_type": "calls"},
    {"id": "e10", "source_node_id": "7", "target_node_id": "9", "edge_type": "calls"},
    {"id": "e11", "source_node_id": "9", "target_node_id": "10", "edge_type": "calls"},
    {"id": "e12", "source_node_id": "9", "target_node_id": "11", "edge_type": "uses"},
    {"id": "e13", "source_node_id": "6", "target_node_id": "11", "edge_type": "uses"},
    {"id": "e14", "source_node_id": "7", "target_node_id": "11", "edge_type": "uses"},
    {"id": "e15", "source_node_id": "2", "target_node_id": "12", "edge_type": "imports"},
    {"id": "e16", "source_node_id": "4", "target_node_id": "13", "edge_type": "imports"},
]


def demo_document() -> Dict[str, List[Dict[str, Any]]]:
    """Raw rows of the demo application graph, with qualified names filled in."""
    nodes = [
        {**row, "qualified_name": row["name"], "language": "typescript", "signature": f"{row['node_type']} {row['name']}"}
        for row in DEMO_NODE_ROWS
    ]
    edges = [{**row, "weight": 1} for row in DEMO_EDGE_ROWS]
    return {"nodes": nodes, "edges": edges}


def demo_graph() -> Tuple[List[Node], List[Edge]]:
    document = demo_document()
    return transform_nodes(document["nodes"], document["edges"]), transform_edges(document["edges"])
