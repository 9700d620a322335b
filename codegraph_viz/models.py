"""Core data models shared by the classifier, filter, sizing and layout engines."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set


class _TolerantEnum(str, Enum):
    """String enum that maps unknown or differently-cased values to a fallback."""

    @classmethod
    def _missing_(cls, value: object) -> "_TolerantEnum":
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls._fallback()

    @classmethod
    def _fallback(cls) -> "_TolerantEnum":
        """Member returned for unrecognised values; every subclass must override this."""
        raise NotImplementedError

    def __str__(self) -> str:
        return self.value


class NodeType(_TolerantEnum):
    FUNCTION = "function"
    CLASS = "class"
    METHOD = "method"
    ENDPOINT = "endpoint"
    HANDLER = "handler"
    MIDDLEWARE = "middleware"
    HOOK = "hook"
    COMPONENT = "component"
    MODULE = "module"
    VARIABLE = "variable"
    TYPE = "type"
    INTERFACE = "interface"
    CONSTANT = "constant"
    TEST = "test"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "NodeType":
        return cls.OTHER


class EdgeType(_TolerantEnum):
    CALLS = "calls"
    IMPORTS = "imports"
    EXPORTS = "exports"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"
    ROUTES_TO = "routes_to"
    DEPENDS_ON = "depends_on"
    USES = "uses"
    DEFINES = "defines"
    REFERENCES = "references"
    OTHER = "other"

    @classmethod
    def _fallback(cls) -> "EdgeType":
        return cls.OTHER


class ClusterType(_TolerantEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    SHARED = "shared"
    UNKNOWN = "unknown"

    @classmethod
    def _fallback(cls) -> "ClusterType":
        return cls.UNKNOWN


ALL_NODE_TYPES: FrozenSet[NodeType] = frozenset(NodeType)
ALL_EDGE_TYPES: FrozenSet[EdgeType] = frozenset(EdgeType)
ALL_CLUSTERS: FrozenSet[ClusterType] = frozenset(ClusterType)


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass
class NodeData:
    """Descriptive payload of a graph node."""
    node_type: NodeType
    file_path: str
    name: str
    qualified_name: Optional[str] = None
    summary: Optional[str] = None
    cluster: ClusterType = ClusterType.UNKNOWN
    language: Optional[str] = None
    start_line: int = 0
    end_line: int = 0
    signature: Optional[str] = None
    connection_count: int = 0
    incoming_count: int = 0
    outgoing_count: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.node_type = NodeType(self.node_type)
        self.cluster = ClusterType(self.cluster)


@dataclass
class Node:
    id: str
    data: NodeData
    position: Optional[Position] = None
    measured: Optional[Size] = None

    def with_position(self, x: float, y: float) -> "Node":
        """Return a copy of this node placed at ``(x, y)``."""
        return replace(self, position=Position(x, y))


@dataclass
class Edge:
    id: str
    source: str
    target: str
    edge_type: EdgeType = EdgeType.OTHER
    weight: float = 1.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.edge_type = EdgeType(self.edge_type)


@dataclass
class LayoutConfig:
    """Tunables for the force simulation."""
    cluster_strength: float = 0.4
    link_distance: float = 180.0
    charge_strength: float = -500.0
    center_strength: float = 0.08
    collision_radius: float = 80.0

    def merged(self, **overrides: Any) -> "LayoutConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


DEFAULT_LAYOUT_CONFIG = LayoutConfig()


@dataclass
class OrphanGridConfig:
    """Packing constants for nodes without edges."""
    offset: float = 100.0
    cluster_size: int = 4
    cluster_columns: int = 2
    clusters_per_row: int = 4
    node_gap: float = 40.0
    cluster_gap: float = 120.0


@dataclass
class HierarchicalConfig:
    direction: str = "TB"
    rank_sep: float = 180.0
    node_sep: float = 100.0
    margin: float = 50.0
    crossing_sweeps: int = 8
    orphans: OrphanGridConfig = field(default_factory=OrphanGridConfig)


@dataclass
class FilterState:
    """User-controlled filter selections; read-only to the filter engine."""
    node_types: Set[NodeType] = field(default_factory=lambda: set(ALL_NODE_TYPES))
    edge_types: Set[EdgeType] = field(default_factory=lambda: set(ALL_EDGE_TYPES))
    clusters: Set[ClusterType] = field(default_factory=lambda: set(ALL_CLUSTERS))
    file_path: Optional[str] = None
    search_query: str = ""

    def __post_init__(self):
        self.node_types = {NodeType(t) for t in self.node_types}
        self.edge_types = {EdgeType(t) for t in self.edge_types}
        self.clusters = {ClusterType(c) for c in self.clusters}

    def toggle_node_type(self, node_type: NodeType | str) -> None:
        _toggle(self.node_types, NodeType(node_type))

    def toggle_edge_type(self, edge_type: EdgeType | str) -> None:
        _toggle(self.edge_types, EdgeType(edge_type))

    def toggle_cluster(self, cluster: ClusterType | str) -> None:
        _toggle(self.clusters, ClusterType(cluster))

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    def set_file_path(self, path: Optional[str]) -> None:
        self.file_path = path or None

    def reset(self) -> None:
        """Restore the allow-everything defaults."""
        self.node_types = set(ALL_NODE_TYPES)
        self.edge_types = set(ALL_EDGE_TYPES)
        self.clusters = set(ALL_CLUSTERS)
        self.file_path = None
        self.search_query = ""


def _toggle(selection: Set[Any], value: Any) -> None:
    if value in selection:
        selection.discard(value)
    else:
        selection.add(value)


@dataclass
class FilterResult:
    filtered_nodes: List[Node]
    filtered_edges: List[Edge]
    highlighted_node_ids: Set[str]


def node_ids(nodes: Iterable[Node]) -> Set[str]:
    return {node.id for node in nodes}


def valid_edges(nodes: Iterable[Node], edges: Iterable[Edge]) -> List[Edge]:
    """Edges whose endpoints both exist in ``nodes``; dangling edges are dropped."""
    known = node_ids(nodes)
    return [e for e in edges if e.source in known and e.target in known]
