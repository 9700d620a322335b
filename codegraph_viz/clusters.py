"""Path-based cluster detection (frontend / backend / shared / unknown)."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from .models import ClusterType, Node, Position

# Anchor points the force layout pulls each cluster toward
CLUSTER_POSITIONS: Dict[ClusterType, Position] = {
    ClusterType.FRONTEND: Position(-200.0, 0.0),
    ClusterType.BACKEND: Position(200.0, 0.0),
    ClusterType.SHARED: Position(0.0, -150.0),
    ClusterType.UNKNOWN: Position(0.0, 150.0),
}

FRONTEND_DIRS = ("/components/", "/pages/", "/hooks/", "/ui/", "/views/")
FRONTEND_EXTENSIONS = (".tsx", ".jsx", ".vue", ".svelte")
BACKEND_DIRS = (
    "/api/", "/server/", "/services/", "/controllers/",
    "/routes/", "/middleware/", "/db/", "/database/",
)
SHARED_DIRS = ("/types/", "/schemas/", "/constants/", "/utils/", "/lib/", "/shared/", "/common/")


def normalize_path(file_path: Optional[str]) -> str:
    """Lowercase ``file_path`` and make it start with exactly one ``/``."""
    return "/" + (file_path or "").strip().replace("\\", "/").lower().lstrip("/")


def classify(file_path: Optional[str]) -> ClusterType:
    """Map a source file path to its semantic cluster.

    Rules are checked in order and the first match wins. API routes are
    always backend, even when they live under a frontend-looking directory
    such as ``app/`` or end in ``.tsx``.
    """
    path = normalize_path(file_path)

    if "/api/" in path:
        return ClusterType.BACKEND
    if any(d in path for d in FRONTEND_DIRS) or path.endswith(FRONTEND_EXTENSIONS):
        return ClusterType.FRONTEND
    if "/app/" in path:
        return ClusterType.FRONTEND
    if any(d in path for d in BACKEND_DIRS):
        return ClusterType.BACKEND
    if any(d in path for d in SHARED_DIRS):
        return ClusterType.SHARED
    return ClusterType.UNKNOWN


def cluster_anchor(cluster: ClusterType | str) -> Position:
    return CLUSTER_POSITIONS[ClusterType(cluster)]


def cluster_stats(nodes: Iterable[Node]) -> Dict[ClusterType, int]:
    """Count nodes per cluster; every cluster is present in the result."""
    stats = {cluster: 0 for cluster in ClusterType}
    for node in nodes:
        stats[node.data.cluster] += 1
    return stats
