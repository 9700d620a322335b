"""Display hints handed to the renderer alongside positions."""

from __future__ import annotations

from typing import Dict

from .models import ClusterType, EdgeType, NodeType

NODE_TYPE_COLORS: Dict[NodeType, str] = {
    NodeType.FUNCTION: "#3b82f6",
    NodeType.METHOD: "#3b82f6",
    NodeType.CLASS: "#8b5cf6",
    NodeType.COMPONENT: "#ec4899",
    NodeType.ENDPOINT: "#10b981",
    NodeType.HANDLER: "#f59e0b",
    NodeType.MIDDLEWARE: "#f59e0b",
    NodeType.HOOK: "#06b6d4",
    NodeType.MODULE: "#6366f1",
    NodeType.VARIABLE: "#64748b",
    NodeType.TYPE: "#6b7280",
    NodeType.INTERFACE: "#6b7280",
    NodeType.CONSTANT: "#64748b",
    NodeType.TEST: "#84cc16",
    NodeType.OTHER: "#9ca3af",
}

# Lucide icon names
NODE_TYPE_ICONS: Dict[NodeType, str] = {
    NodeType.FUNCTION: "Function",
    NodeType.METHOD: "Workflow",
    NodeType.CLASS: "Box",
    NodeType.COMPONENT: "Component",
    NodeType.ENDPOINT: "Globe",
    NodeType.HANDLER: "Zap",
    NodeType.MIDDLEWARE: "Layers",
    NodeType.HOOK: "Anchor",
    NodeType.MODULE: "Package",
    NodeType.VARIABLE: "Variable",
    NodeType.TYPE: "Type",
    NodeType.INTERFACE: "FileType",
    NodeType.CONSTANT: "Hash",
    NodeType.TEST: "FlaskConical",
    NodeType.OTHER: "Code",
}

EDGE_TYPE_COLORS: Dict[EdgeType, str] = {
    EdgeType.CALLS: "#3b82f6",
    EdgeType.IMPORTS: "#6b7280",
    EdgeType.EXPORTS: "#8b5cf6",
    EdgeType.EXTENDS: "#ec4899",
    EdgeType.IMPLEMENTS: "#ec4899",
    EdgeType.ROUTES_TO: "#10b981",
    EdgeType.DEPENDS_ON: "#f59e0b",
    EdgeType.USES: "#64748b",
    EdgeType.DEFINES: "#06b6d4",
    EdgeType.REFERENCES: "#9ca3af",
    EdgeType.OTHER: "#9ca3af",
}

CLUSTER_COLORS: Dict[ClusterType, str] = {
    ClusterType.FRONTEND: "#ec4899",
    ClusterType.BACKEND: "#10b981",
    ClusterType.SHARED: "#8b5cf6",
    ClusterType.UNKNOWN: "#6b7280",
}


def node_color(node_type: NodeType | str) -> str:
    return NODE_TYPE_COLORS[NodeType(node_type)]


def node_icon(node_type: NodeType | str) -> str:
    return NODE_TYPE_ICONS[NodeType(node_type)]


def edge_color(edge_type: EdgeType | str) -> str:
    return EDGE_TYPE_COLORS[EdgeType(edge_type)]


def edge_stroke_width(weight: float) -> float:
    """Stroke width grows with edge weight, capped at 3."""
    return min(weight or 1, 3)


def cluster_color(cluster: ClusterType | str) -> str:
    return CLUSTER_COLORS[ClusterType(cluster)]
