"""Pytest configuration and fixtures for CodeGraph Viz tests."""

import json
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Tuple

import pytest

from codegraph_viz.clusters import classify
from codegraph_viz.models import Edge, Node, NodeData, Position
from codegraph_viz.transform import demo_document, demo_graph


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_config_file(temp_dir: Path, monkeypatch) -> Path:
    """Point the config layer at a throwaway config.toml."""
    config_file = temp_dir / "config.toml"
    monkeypatch.setattr("codegraph_viz.config.BASE_DIR", temp_dir)
    monkeypatch.setattr("codegraph_viz.config.CONFIG_FILE", config_file)
    return config_file


@pytest.fixture
def make_node() -> Callable[..., Node]:
    """Factory for nodes with sensible defaults; cluster follows the file path."""

    def _make(node_id: str, node_type: str = "function", file_path: str = "src/lib/util.ts",
              name: str = "", summary=None, position=None, **extra) -> Node:
        data = NodeData(
            node_type=node_type,
            file_path=file_path,
            name=name or f"node{node_id}",
            summary=summary,
            cluster=extra.pop("cluster", classify(file_path)),
            **extra,
        )
        if position is not None and not isinstance(position, Position):
            position = Position(*position)
        return Node(id=node_id, data=data, position=position)

    return _make


@pytest.fixture
def make_edge() -> Callable[..., Edge]:
    counter = {"n": 0}

    def _make(source: str, target: str, edge_type: str = "calls") -> Edge:
        counter["n"] += 1
        return Edge(id=f"e{counter['n']}", source=source, target=target, edge_type=edge_type)

    return _make


@pytest.fixture
def demo() -> Tuple[List[Node], List[Edge]]:
    return demo_graph()


@pytest.fixture
def demo_file(temp_dir: Path) -> Path:
    """Demo graph written as a JSON document."""
    path = temp_dir / "graph.json"
    path.write_text(json.dumps(demo_document()), encoding="utf-8")
    return path
