"""Layout session: the single owner of a graph's positions and its animated run."""

from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional, Sequence

from . import force, hierarchical
from .models import DEFAULT_LAYOUT_CONFIG, Edge, HierarchicalConfig, LayoutConfig, Node

logger = logging.getLogger(__name__)

LAYOUT_TYPES = ("hierarchical", "force")


class LayoutSession:
    """Keep the current layout of one visualization and at most one running simulation.

    Every relayout stops the previous simulation before anything else touches
    the nodes, and :meth:`close` (or leaving the ``with`` block) releases it.
    """

    def __init__(
        self,
        nodes: Sequence[Node],
        edges: Sequence[Edge],
        layout_type: str = "hierarchical",
        config: Optional[LayoutConfig] = None,
        hierarchical_config: Optional[HierarchicalConfig] = None,
        animate: bool = True,
        interval: float = force.DEFAULT_INTERVAL,
    ):
        if layout_type not in LAYOUT_TYPES:
            raise ValueError(f"Unknown layout type '{layout_type}'. Expected one of {LAYOUT_TYPES}.")
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.layout_type = layout_type
        self.config = config or DEFAULT_LAYOUT_CONFIG
        self.hierarchical_config = hierarchical_config or HierarchicalConfig()
        self.animate = animate
        self.interval = interval

        self._lock = threading.Lock()
        self._layout_nodes: List[Node] = list(nodes)
        self._handle: Optional[force.SimulationHandle] = None

    def __enter__(self) -> "LayoutSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def layout_nodes(self) -> List[Node]:
        with self._lock:
            return list(self._layout_nodes)

    @property
    def is_simulating(self) -> bool:
        return self._handle is not None and self._handle.is_running

    @property
    def handle(self) -> Optional[force.SimulationHandle]:
        return self._handle

    def set_graph(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        """Swap in new data; any running simulation on the old data is stopped."""
        self.stop()
        self.nodes = list(nodes)
        self.edges = list(edges)
        self._set_layout(list(nodes))

    def update_config(self, **overrides: Any) -> LayoutConfig:
        self.config = self.config.merged(**overrides)
        return self.config

    def relayout(self) -> List[Node]:
        """Recompute positions; returns the nodes available right away."""
        self.stop()
        if not self.nodes:
            self._set_layout([])
            return []

        if self.layout_type == "hierarchical":
            self._set_layout(hierarchical.layout(self.nodes, self.edges, config=self.hierarchical_config))
        elif self.animate:
            self._handle = force.animate(
                self.nodes,
                self.edges,
                self.config,
                on_tick=self._set_layout,
                on_end=self._set_layout,
                interval=self.interval,
            )
        else:
            self._set_layout(force.solve(self.nodes, self.edges, self.config))
        return self.layout_nodes

    def wait(self, timeout: Optional[float] = None) -> bool:
        handle = self._handle
        return True if handle is None else handle.wait(timeout)

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.stop()
            self._set_layout(handle.nodes())
            logger.debug("Stopped running simulation at tick %d", handle.ticks)

    def close(self) -> None:
        self.stop()

    def _set_layout(self, nodes: List[Node]) -> None:
        with self._lock:
            self._layout_nodes = nodes
