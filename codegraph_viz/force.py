"""Force-directed layout with cluster attraction.

The simulation follows the classic velocity-Verlet scheme used by d3-force:
every tick cools ``alpha``, lets each force nudge node velocities, then
applies velocity decay and moves the nodes. Forces, in order:

- link:     springs along edges toward ``link_distance``
- charge:   all-pairs repulsion (``charge_strength``, negative repels)
- center:   weak pull toward the origin
- collide:  size-aware overlap removal, relaxed several times per tick
- clusterX / clusterY: pull toward the anchor of each node's cluster

``solve`` runs a fixed number of ticks synchronously. ``animate`` steps on a
background thread and returns a :class:`SimulationHandle` that must be
stopped by its owner before another run touches the same nodes.
"""

from __future__ import annotations

import hashlib
import logging
import math
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .clusters import cluster_anchor
from .models import DEFAULT_LAYOUT_CONFIG, ClusterType, Edge, LayoutConfig, Node, Size, valid_edges
from .sizing import estimate

logger = logging.getLogger(__name__)

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
LINK_STRENGTH = 0.5
COLLIDE_BUFFER = 10.0
COLLIDE_ITERATIONS = 3
DISTANCE_MIN2 = 1.0
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
DEFAULT_INTERVAL = 1 / 60

NodesCallback = Callable[[List[Node]], None]


def _jiggle(key: str) -> float:
    """Tiny reproducible offset used to separate coincident points."""
    digest = hashlib.md5(key.encode("utf-8")).hexdigest()
    return (int(digest[:8], 16) / 0xFFFFFFFF - 0.5) * 1e-6


@dataclass
class _Body:
    id: str
    cluster: ClusterType
    x: float
    y: float
    radius: float
    vx: float = 0.0
    vy: float = 0.0


class ForceSimulation:
    """Mutable simulation state over private copies of the node positions."""

    def __init__(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        config: Optional[LayoutConfig] = None,
        sizes: Optional[Mapping[str, Size]] = None,
    ):
        self.config = config or DEFAULT_LAYOUT_CONFIG
        self._nodes = list(nodes)
        self.alpha = 1.0
        self.ticks = 0

        self.bodies: List[_Body] = []
        for i, node in enumerate(self._nodes):
            if node.position is not None:
                x, y = node.position.x, node.position.y
            else:
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                x, y = radius * math.cos(angle), radius * math.sin(angle)
            self.bodies.append(_Body(node.id, node.data.cluster, x, y, self._radius(node, sizes)))

        index = {body.id: i for i, body in enumerate(self.bodies)}
        usable = valid_edges(self._nodes, edges)
        if len(usable) < len(edges):
            logger.debug("Ignoring %d dangling edge(s)", len(edges) - len(usable))
        self.links: List[Tuple[int, int]] = [
            (index[e.source], index[e.target]) for e in usable if e.source != e.target
        ]
        degree = [0] * len(self.bodies)
        for s, t in self.links:
            degree[s] += 1
            degree[t] += 1
        self._bias = [degree[s] / (degree[s] + degree[t]) for s, t in self.links]

    def _radius(self, node: Node, sizes: Optional[Mapping[str, Size]]) -> float:
        if sizes is None:
            size: Optional[Size] = estimate(node)
        else:
            size = sizes.get(node.id)
        if size is None:
            return self.config.collision_radius
        return math.hypot(size.width, size.height) / 2 + COLLIDE_BUFFER

    @property
    def converged(self) -> bool:
        return self.alpha < ALPHA_MIN or not self.bodies

    def tick(self) -> None:
        """Advance the simulation by one step."""
        self.alpha += (0.0 - self.alpha) * ALPHA_DECAY
        self._apply_link()
        self._apply_charge()
        self._apply_center()
        self._apply_collide()
        self._apply_cluster()
        for body in self.bodies:
            body.vx *= 1 - VELOCITY_DECAY
            body.vy *= 1 - VELOCITY_DECAY
            body.x += body.vx
            body.y += body.vy
        self.ticks += 1

    def _apply_link(self) -> None:
        distance = self.config.link_distance
        for (s, t), bias in zip(self.links, self._bias):
            source, target = self.bodies[s], self.bodies[t]
            x = target.x + target.vx - source.x - source.vx
            y = target.y + target.vy - source.y - source.vy
            if x == 0:
                x = _jiggle(f"{source.id}->{target.id}:x")
            if y == 0:
                y = _jiggle(f"{source.id}->{target.id}:y")
            length = math.hypot(x, y)
            length = (length - distance) / length * self.alpha * LINK_STRENGTH
            x *= length
            y *= length
            target.vx -= x * bias
            target.vy -= y * bias
            source.vx += x * (1 - bias)
            source.vy += y * (1 - bias)

    def _apply_charge(self) -> None:
        strength = self.config.charge_strength * self.alpha
        bodies = self.bodies
        for i, body in enumerate(bodies):
            for j, other in enumerate(bodies):
                if i == j:
                    continue
                x = other.x - body.x
                y = other.y - body.y
                if x == 0 and y == 0:
                    x = _jiggle(f"{body.id}|{other.id}:x")
                    y = _jiggle(f"{body.id}|{other.id}:y")
                l2 = x * x + y * y
                if l2 < DISTANCE_MIN2:
                    l2 = math.sqrt(DISTANCE_MIN2 * l2)
                body.vx += x * strength / l2
                body.vy += y * strength / l2

    def _apply_center(self) -> None:
        k = self.config.center_strength * self.alpha
        for body in self.bodies:
            body.vx -= body.x * k
            body.vy -= body.y * k

    def _apply_collide(self) -> None:
        bodies = self.bodies
        for _ in range(COLLIDE_ITERATIONS):
            for i, body in enumerate(bodies):
                xi = body.x + body.vx
                yi = body.y + body.vy
                ri = body.radius
                ri2 = ri * ri
                for other in bodies[i + 1:]:
                    r = ri + other.radius
                    x = xi - other.x - other.vx
                    y = yi - other.y - other.vy
                    l2 = x * x + y * y
                    if l2 >= r * r:
                        continue
                    if x == 0:
                        x = _jiggle(f"{body.id}#{other.id}:x")
                        l2 += x * x
                    if y == 0:
                        y = _jiggle(f"{body.id}#{other.id}:y")
                        l2 += y * y
                    length = math.sqrt(l2)
                    length = (r - length) / length
                    x *= length
                    y *= length
                    rj2 = other.radius * other.radius
                    share = rj2 / (ri2 + rj2)
                    body.vx += x * share
                    body.vy += y * share
                    other.vx -= x * (1 - share)
                    other.vy -= y * (1 - share)

    def _apply_cluster(self) -> None:
        k = self.config.cluster_strength * self.alpha
        for body in self.bodies:
            anchor = cluster_anchor(body.cluster)
            body.vx += (anchor.x - body.x) * k
            body.vy += (anchor.y - body.y) * k

    def snapshot(self) -> List[Node]:
        """New Node objects carrying the current positions."""
        return [
            node.with_position(body.x, body.y)
            for node, body in zip(self._nodes, self.bodies)
        ]


def solve(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    config: Optional[LayoutConfig] = None,
    iterations: int = 300,
    sizes: Optional[Mapping[str, Size]] = None,
) -> List[Node]:
    """Run ``iterations`` ticks synchronously and return the final positions."""
    if not nodes:
        return []
    simulation = ForceSimulation(nodes, edges, config, sizes)
    for _ in range(max(0, iterations)):
        simulation.tick()
    logger.debug("Force layout solved %d node(s) in %d tick(s)", len(nodes), simulation.ticks)
    return simulation.snapshot()


class SimulationHandle:
    """Owned, cancellable animated simulation.

    Ticks run on a daemon thread, one per ``interval`` seconds, until alpha
    cools below its minimum or :meth:`stop` is called. Each tick runs under a
    lock so a stopped simulation always holds the state of its last
    completed tick.
    """

    def __init__(
        self,
        simulation: ForceSimulation,
        on_tick: Optional[NodesCallback] = None,
        on_end: Optional[NodesCallback] = None,
        interval: float = DEFAULT_INTERVAL,
    ):
        self._simulation = simulation
        self._on_tick = on_tick
        self._on_end = on_end
        self._interval = interval
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._finished = threading.Event()
        self._thread = threading.Thread(target=self._run, name="force-simulation", daemon=True)

    def start(self) -> "SimulationHandle":
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            while not self._stopped.is_set():
                with self._lock:
                    self._simulation.tick()
                    snapshot = self._simulation.snapshot()
                    done = self._simulation.converged
                callback = self._on_tick
                if callback is not None and not self._stopped.is_set():
                    callback(snapshot)
                if done:
                    callback = self._on_end
                    if callback is not None and not self._stopped.is_set():
                        callback(snapshot)
                    logger.debug("Force simulation converged after %d tick(s)", self._simulation.ticks)
                    break
                self._stopped.wait(self._interval)
        finally:
            self._finished.set()

    def stop(self) -> None:
        """Stop stepping and release the tick/end callbacks."""
        self._stopped.set()
        self._on_tick = None
        self._on_end = None
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join()
        logger.debug("Force simulation stopped after %d tick(s)", self._simulation.ticks)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the run ends; returns False on timeout."""
        return self._finished.wait(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._finished.is_set()

    @property
    def ticks(self) -> int:
        return self._simulation.ticks

    @property
    def alpha(self) -> float:
        return self._simulation.alpha

    def nodes(self) -> List[Node]:
        """Consistent snapshot of the latest completed tick."""
        with self._lock:
            return self._simulation.snapshot()


def animate(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    config: Optional[LayoutConfig] = None,
    on_tick: Optional[NodesCallback] = None,
    on_end: Optional[NodesCallback] = None,
    interval: float = DEFAULT_INTERVAL,
    previous: Optional[SimulationHandle] = None,
    sizes: Optional[Mapping[str, Size]] = None,
) -> SimulationHandle:
    """Start an animated simulation, stopping ``previous`` first if given."""
    if previous is not None:
        previous.stop()
    simulation = ForceSimulation(nodes, edges, config, sizes)
    return SimulationHandle(simulation, on_tick, on_end, interval).start()


def radii(nodes: Sequence[Node], config: Optional[LayoutConfig] = None) -> Dict[str, float]:
    """Collision radius the simulation would use for each node."""
    simulation = ForceSimulation(nodes, [], config)
    return {body.id: body.radius for body in simulation.bodies}
