"""Deterministic top-down ranked layout for dependency graphs.

Connected nodes go through a Sugiyama-style pipeline:

1. Cycle removal (greedy feedback-arc-set ordering, back-edges reversed)
2. Rank assignment (longest path, sources tightened toward their children)
3. Dummy nodes for edges spanning more than one rank
4. Crossing minimization (alternating barycenter sweeps, best ordering kept)
5. Coordinate assignment (packed ranks, then neighbors-mean alignment
   solved as an isotonic regression so order and spacing are preserved)

Nodes with no edges are kept out of the ranked solver and packed into a grid
underneath the main graph.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

import networkx as nx

from .models import Edge, HierarchicalConfig, Node, OrphanGridConfig, Position, Size, valid_edges
from .sizing import estimate_all

logger = logging.getLogger(__name__)

DIRECTIONS = ("TB", "BT", "LR", "RL")
ALIGN_PASSES = 4


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y


ORIGIN_BOX = BoundingBox(0.0, 0.0, 0.0, 0.0)


def layout(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    direction: Optional[str] = None,
    rank_sep: Optional[float] = None,
    node_sep: Optional[float] = None,
    config: Optional[HierarchicalConfig] = None,
) -> List[Node]:
    """Assign positions to every node and return new Node objects.

    ``direction``, ``rank_sep`` and ``node_sep`` override the matching
    fields of ``config`` when given. Input nodes are never modified.
    """
    cfg = config or HierarchicalConfig()
    overrides = {"direction": direction, "rank_sep": rank_sep, "node_sep": node_sep}
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    cfg = replace(cfg, direction=cfg.direction.upper())
    if cfg.direction not in DIRECTIONS:
        raise ValueError(f"Unknown layout direction '{cfg.direction}'. Expected one of {DIRECTIONS}.")

    if not nodes:
        return []

    usable = valid_edges(nodes, edges)
    if len(usable) < len(edges):
        logger.debug("Ignoring %d dangling edge(s)", len(edges) - len(usable))

    touched = {e.source for e in usable} | {e.target for e in usable}
    connected = [n for n in nodes if n.id in touched]
    orphans = [n for n in nodes if n.id not in touched]
    sizes = estimate_all(nodes)

    placed: Dict[str, Position] = {}
    for node_id, (cx, cy) in ranked_centers(connected, usable, sizes, cfg).items():
        size = sizes[node_id]
        placed[node_id] = Position(cx - size.width / 2, cy - size.height / 2)

    box = bounding_box(placed, sizes)
    placed.update(pack_orphans(orphans, sizes, box, cfg.orphans))

    logger.debug(
        "Hierarchical layout: %d connected, %d orphan node(s), box=%s",
        len(connected), len(orphans), box,
    )
    return [replace(n, position=placed[n.id]) for n in nodes]


def bounding_box(placed: Dict[str, Position], sizes: Dict[str, Size]) -> BoundingBox:
    """Extent of positioned nodes including their footprints; origin when empty."""
    if not placed:
        return ORIGIN_BOX
    return BoundingBox(
        min_x=min(p.x for p in placed.values()),
        min_y=min(p.y for p in placed.values()),
        max_x=max(p.x + sizes[i].width for i, p in placed.items()),
        max_y=max(p.y + sizes[i].height for i, p in placed.items()),
    )


def pack_orphans(
    orphans: Sequence[Node],
    sizes: Dict[str, Size],
    box: BoundingBox,
    grid: Optional[OrphanGridConfig] = None,
) -> Dict[str, Position]:
    """Place edgeless nodes below ``box`` in small sub-grids.

    Orphans fill sub-grids of ``cluster_size`` cells laid out left-to-right,
    ``cluster_columns`` wide; sub-grids wrap after ``clusters_per_row``.
    Every cell is as large as the largest orphan so nothing overlaps.
    """
    grid = grid or OrphanGridConfig()
    if not orphans:
        return {}

    per_cluster = max(1, grid.cluster_size)
    columns = max(1, min(grid.cluster_columns, per_cluster))
    rows = math.ceil(per_cluster / columns)
    per_row = max(1, grid.clusters_per_row)

    cell_w = max(sizes[n.id].width for n in orphans)
    cell_h = max(sizes[n.id].height for n in orphans)
    cluster_w = columns * cell_w + (columns - 1) * grid.node_gap
    cluster_h = rows * cell_h + (rows - 1) * grid.node_gap

    start_x = box.min_x
    start_y = box.max_y + grid.offset

    positions: Dict[str, Position] = {}
    for index, node in enumerate(orphans):
        cluster, slot = divmod(index, per_cluster)
        cluster_row, cluster_col = divmod(cluster, per_row)
        local_row, local_col = divmod(slot, columns)
        positions[node.id] = Position(
            start_x + cluster_col * (cluster_w + grid.cluster_gap) + local_col * (cell_w + grid.node_gap),
            start_y + cluster_row * (cluster_h + grid.cluster_gap) + local_row * (cell_h + grid.node_gap),
        )
    return positions


# ---------------------------------------------------------------------------
# Ranked layout
# ---------------------------------------------------------------------------

def ranked_centers(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    sizes: Dict[str, Size],
    cfg: HierarchicalConfig,
) -> Dict[str, Tuple[float, float]]:
    """Center coordinates of every node in ``nodes`` (which must all have edges)."""
    if not nodes:
        return {}

    graph = nx.DiGraph()
    graph.add_nodes_from(n.id for n in nodes)
    graph.add_edges_from((e.source, e.target) for e in edges if e.source != e.target)

    order = greedy_fas_order(graph)
    dag = _acyclic_copy(graph, order)
    ranks = assign_ranks(dag, order)
    layered, layers = _insert_dummies(dag, ranks, order)
    layers = minimize_crossings(layered, layers, cfg.crossing_sweeps)

    vertical = cfg.direction in ("TB", "BT")

    def along(key: Hashable) -> float:
        # extent in the direction nodes are spread within a rank
        if key not in sizes:
            return 0.0
        return sizes[key].width if vertical else sizes[key].height

    def across(key: Hashable) -> float:
        if key not in sizes:
            return 0.0
        return sizes[key].height if vertical else sizes[key].width

    rank_pos = _rank_coordinates(layers, across, cfg.rank_sep)
    order_pos = _order_coordinates(layered, layers, along, cfg.node_sep)

    centers: Dict[str, Tuple[float, float]] = {}
    for rank, layer in enumerate(layers):
        for key in layer:
            if key in sizes:
                centers[key] = (order_pos[key], rank_pos[rank]) if vertical else (rank_pos[rank], order_pos[key])

    if cfg.direction == "BT":
        centers = {k: (x, -y) for k, (x, y) in centers.items()}
    elif cfg.direction == "RL":
        centers = {k: (-x, y) for k, (x, y) in centers.items()}

    return _normalize(centers, sizes, cfg.margin)


def greedy_fas_order(graph: nx.DiGraph) -> List[str]:
    """Node ordering that keeps most edges pointing forward (Eades-Lin-Smyth).

    Ties are broken by insertion order, so the result is deterministic.
    """
    active: Dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg = {n: graph.out_degree(n) for n in graph.nodes}
    in_deg = {n: graph.in_degree(n) for n in graph.nodes}
    head: List[str] = []
    tail: List[str] = []

    def retire(node: str) -> None:
        del active[node]
        for succ in graph.successors(node):
            if succ in active:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in active:
                out_deg[pred] -= 1

    while active:
        changed = True
        while changed:
            changed = False
            for node in [n for n in active if out_deg[n] == 0]:
                retire(node)
                tail.append(node)
                changed = True
            for node in [n for n in active if in_deg[n] == 0]:
                retire(node)
                head.append(node)
                changed = True
        if active:
            best = max(active, key=lambda n: out_deg[n] - in_deg[n])
            retire(best)
            head.append(best)

    tail.reverse()
    return head + tail


def _acyclic_copy(graph: nx.DiGraph, order: List[str]) -> nx.DiGraph:
    position = {node: i for i, node in enumerate(order)}
    dag = nx.DiGraph()
    dag.add_nodes_from(order)
    reversed_count = 0
    for src, tgt in graph.edges():
        if position[src] < position[tgt]:
            dag.add_edge(src, tgt)
        else:
            dag.add_edge(tgt, src)
            reversed_count += 1
    if reversed_count:
        logger.debug("Reversed %d edge(s) to break cycles", reversed_count)
    return dag


def assign_ranks(dag: nx.DiGraph, order: List[str]) -> Dict[str, int]:
    """Longest-path ranks; every edge's target lands strictly below its source.

    ``order`` must be a topological order of ``dag``. Sources are then pulled
    down to sit one rank above their nearest child so roots do not drag long
    edges across the whole drawing.
    """
    ranks: Dict[str, int] = {}
    for node in order:
        preds = list(dag.predecessors(node))
        ranks[node] = max((ranks[p] + 1 for p in preds), default=0)

    for node in reversed(order):
        succs = list(dag.successors(node))
        if succs and dag.in_degree(node) == 0:
            ranks[node] = min(ranks[s] for s in succs) - 1

    lowest = min(ranks.values(), default=0)
    return {node: rank - lowest for node, rank in ranks.items()}


def _insert_dummies(
    dag: nx.DiGraph, ranks: Dict[str, int], order: List[str]
) -> Tuple[nx.DiGraph, List[List[Hashable]]]:
    layered = nx.DiGraph()
    layered.add_nodes_from(order)
    dummy_ranks: Dict[Hashable, int] = {}
    dummies = 0
    for src, tgt in dag.edges():
        prev: Hashable = src
        for rank in range(ranks[src] + 1, ranks[tgt]):
            key = ("dummy", dummies)
            dummies += 1
            dummy_ranks[key] = rank
            layered.add_edge(prev, key)
            prev = key
        layered.add_edge(prev, tgt)

    all_ranks: Dict[Hashable, int] = {**ranks, **dummy_ranks}
    layers: List[List[Hashable]] = [[] for _ in range(max(all_ranks.values()) + 1)]

    # initial order: depth-first from each node in rank order
    visited = set()
    for start in sorted(order, key=lambda n: ranks[n]):
        stack = [start]
        while stack:
            key = stack.pop()
            if key in visited:
                continue
            visited.add(key)
            layers[all_ranks[key]].append(key)
            stack.extend(reversed(list(layered.successors(key))))

    if dummies:
        logger.debug("Inserted %d dummy node(s) for long edges", dummies)
    return layered, layers


def count_crossings(layered: nx.DiGraph, layers: List[List[Hashable]]) -> int:
    """Number of edge crossings between every pair of adjacent ranks."""
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        lower_index = {key: i for i, key in enumerate(lower)}
        pairs = sorted(
            (i, lower_index[succ])
            for i, key in enumerate(upper)
            for succ in layered.successors(key)
            if succ in lower_index
        )
        for a in range(len(pairs)):
            for b in range(a + 1, len(pairs)):
                if pairs[a][0] < pairs[b][0] and pairs[a][1] > pairs[b][1]:
                    total += 1
    return total


def minimize_crossings(
    layered: nx.DiGraph, layers: List[List[Hashable]], sweeps: int
) -> List[List[Hashable]]:
    """Alternate down/up barycenter sweeps, keeping the best ordering seen."""
    best = [list(layer) for layer in layers]
    best_crossings = count_crossings(layered, best)
    current = [list(layer) for layer in layers]

    for sweep in range(sweeps):
        if best_crossings == 0:
            break
        if sweep % 2 == 0:
            for rank in range(1, len(current)):
                current[rank] = _barycenter_sort(current[rank], current[rank - 1], layered.predecessors)
        else:
            for rank in range(len(current) - 2, -1, -1):
                current[rank] = _barycenter_sort(current[rank], current[rank + 1], layered.successors)
        crossings = count_crossings(layered, current)
        if crossings < best_crossings:
            best = [list(layer) for layer in current]
            best_crossings = crossings

    logger.debug("Crossing minimization finished with %d crossing(s)", best_crossings)
    return best


def _barycenter_sort(layer, fixed, neighbors) -> List[Hashable]:
    fixed_index = {key: i for i, key in enumerate(fixed)}
    weights = {}
    for i, key in enumerate(layer):
        positions = [fixed_index[n] for n in neighbors(key) if n in fixed_index]
        weights[key] = sum(positions) / len(positions) if positions else float(i)
    return sorted(layer, key=lambda k: weights[k])


def _rank_coordinates(layers, across, rank_sep: float) -> List[float]:
    centers: List[float] = []
    cursor = 0.0
    for layer in layers:
        extent = max((across(k) for k in layer), default=0.0)
        centers.append(cursor + extent / 2)
        cursor += extent + rank_sep
    return centers


def _order_coordinates(layered: nx.DiGraph, layers, along, node_sep: float) -> Dict[Hashable, float]:
    coords: Dict[Hashable, float] = {}
    for layer in layers:
        cursor = 0.0
        for i, key in enumerate(layer):
            if i:
                cursor += _gap(layer[i - 1], key, along, node_sep)
            coords[key] = cursor

    for step in range(ALIGN_PASSES):
        downward = step % 2 == 0
        ranks = range(1, len(layers)) if downward else range(len(layers) - 2, -1, -1)
        neighbors = layered.predecessors if downward else layered.successors
        for rank in ranks:
            layer = layers[rank]
            desired = []
            for key in layer:
                linked = [coords[n] for n in neighbors(key)]
                desired.append(sum(linked) / len(linked) if linked else coords[key])
            gaps = [_gap(a, b, along, node_sep) for a, b in zip(layer, layer[1:])]
            for key, value in zip(layer, _separated_fit(desired, gaps)):
                coords[key] = value
    return coords


def _gap(left: Hashable, right: Hashable, along, node_sep: float) -> float:
    return along(left) / 2 + node_sep + along(right) / 2


def _separated_fit(desired: List[float], gaps: List[float]) -> List[float]:
    """Closest positions to ``desired`` (least squares) with ``x[i+1] - x[i] >= gaps[i]``.

    Shifting by the cumulative gaps turns this into isotonic regression,
    solved with pool-adjacent-violators.
    """
    offsets = [0.0]
    for gap in gaps:
        offsets.append(offsets[-1] + gap)
    targets = [d - o for d, o in zip(desired, offsets)]

    blocks: List[List[float]] = []  # [mean, count]
    for value in targets:
        blocks.append([value, 1])
        while len(blocks) > 1 and blocks[-2][0] > blocks[-1][0]:
            mean, count = blocks.pop()
            prev_mean, prev_count = blocks[-1]
            total = prev_count + count
            blocks[-1] = [(prev_mean * prev_count + mean * count) / total, total]

    fitted: List[float] = []
    for mean, count in blocks:
        fitted.extend([mean] * int(count))
    return [f + o for f, o in zip(fitted, offsets)]


def _normalize(
    centers: Dict[str, Tuple[float, float]], sizes: Dict[str, Size], margin: float
) -> Dict[str, Tuple[float, float]]:
    if not centers:
        return centers
    left = min(x - sizes[k].width / 2 for k, (x, _) in centers.items())
    top = min(y - sizes[k].height / 2 for k, (_, y) in centers.items())
    dx, dy = margin - left, margin - top
    return {k: (x + dx, y + dy) for k, (x, y) in centers.items()}
