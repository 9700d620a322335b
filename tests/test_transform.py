"""Tests for row transformation, graph documents and display hints."""

import json
import math

import pytest

from codegraph_viz import styles
from codegraph_viz.graph_io import GraphFormatError, load_graph, node_to_dict, parse_document
from codegraph_viz.models import ClusterType, EdgeType, NodeType, Size
from codegraph_viz.transform import (
    INITIAL_RADIUS,
    demo_document,
    demo_graph,
    edge_endpoints,
    transform_edges,
    transform_nodes,
)


class TestTransform:
    """Tests for transform_nodes() and transform_edges()."""

    def test_connection_counts(self):
        rows = [{"id": "a", "file_path": "src/api/a.ts"}, {"id": "b"}, {"id": "c"}]
        edges = [{"source": "a", "target": "b"}, {"source": "a", "target": "c"}, {"source": "c", "target": "a"}]
        nodes = {n.id: n for n in transform_nodes(rows, edges)}
        assert nodes["a"].data.outgoing_count == 2
        assert nodes["a"].data.incoming_count == 1
        assert nodes["a"].data.connection_count == 3
        assert nodes["b"].data.connection_count == 1

    def test_cluster_and_defaults(self):
        node = transform_nodes([{"id": 7, "file_path": "src/components/Nav.tsx"}], [])[0]
        assert node.id == "7"
        assert node.data.cluster == ClusterType.FRONTEND
        assert node.data.node_type == NodeType.OTHER
        assert node.data.name == "7"

    def test_unknown_node_type_falls_back(self):
        node = transform_nodes([{"id": "x", "node_type": "Widget"}], [])[0]
        assert node.data.node_type == NodeType.OTHER

    def test_seed_positions_on_circle(self):
        nodes = transform_nodes([{"id": str(i)} for i in range(4)], [])
        for node in nodes:
            assert math.hypot(node.position.x, node.position.y) == pytest.approx(INITIAL_RADIUS)
        assert nodes[0].position.x == pytest.approx(INITIAL_RADIUS)
        assert nodes[1].position.y == pytest.approx(INITIAL_RADIUS)

    def test_measured_size(self):
        node = transform_nodes([{"id": "m", "measured": {"width": 210, "height": 90}}], [])[0]
        assert node.measured == Size(210.0, 90.0)

    def test_edge_defaults(self):
        edges = transform_edges([{"source_node_id": "1", "target_node_id": "2", "edge_type": "CALLS"}])
        assert edges[0].id == "e1"
        assert edges[0].weight == 1.0
        assert edges[0].edge_type == EdgeType.CALLS

    def test_edge_endpoint_conventions(self):
        assert edge_endpoints({"source": 1, "target": 2}) == ("1", "2")
        assert edge_endpoints({"source_node_id": "a", "target_node_id": "b"}) == ("a", "b")

    def test_demo_graph(self):
        nodes, edges = demo_graph()
        assert len(nodes) == 13
        assert len(edges) == 16
        clusters = {n.data.name: n.data.cluster for n in nodes}
        assert clusters["App"] == ClusterType.FRONTEND
        assert clusters["getUsers"] == ClusterType.BACKEND
        assert clusters["User"] == ClusterType.SHARED

    def test_demo_document_is_json(self):
        document = json.loads(json.dumps(demo_document()))
        assert document["nodes"][0]["qualified_name"] == "App"


class TestGraphIO:
    """Tests for reading graph documents."""

    def test_load_graph(self, demo_file):
        nodes, edges = load_graph(demo_file)
        assert len(nodes) == 13
        assert len(edges) == 16

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{nodes: ", encoding="utf-8")
        with pytest.raises(GraphFormatError):
            load_graph(path)

    @pytest.mark.parametrize(
        "document",
        [
            [],
            {"nodes": {}},
            {"nodes": [{"name": "no id"}]},
            {"nodes": [{"id": "a"}], "edges": [{"source": "a"}]},
            {"nodes": [], "edges": ["a->b"]},
        ],
    )
    def test_rejects_malformed_documents(self, document):
        with pytest.raises(GraphFormatError):
            parse_document(document)

    @pytest.mark.parametrize(
        "document,where",
        [
            ({"nodes": [{"id": "a"}, {"id": "b", "end_line": "x"}]}, "Node #1"),
            ({"nodes": [{"id": "a", "measured": {"width": 10}}]}, "Node #0"),
            ({"nodes": [{"id": "a", "measured": "big"}]}, "Node #0"),
            ({"nodes": [{"id": "a", "metadata": 3}]}, "Node #0"),
            ({"edges": [{"source": "a", "target": "b", "weight": [2]}]}, "Edge #0"),
        ],
    )
    def test_rejects_unconvertible_values(self, document, where):
        with pytest.raises(GraphFormatError, match=where):
            parse_document(document)

    def test_missing_sections_are_empty(self):
        assert parse_document({}) == ([], [])

    def test_node_to_dict(self, make_node):
        data = node_to_dict(make_node("a", position=(1.5, 2.0)))
        assert data["position"] == {"x": 1.5, "y": 2.0}
        assert data["cluster"] == "shared"
        assert node_to_dict(make_node("b"))["position"] is None


class TestStyles:
    """Tests for colors, icons and stroke widths."""

    def test_every_type_has_color_and_icon(self):
        assert set(styles.NODE_TYPE_COLORS) == set(NodeType)
        assert set(styles.NODE_TYPE_ICONS) == set(NodeType)
        assert set(styles.EDGE_TYPE_COLORS) == set(EdgeType)
        assert set(styles.CLUSTER_COLORS) == set(ClusterType)

    def test_unknown_values_fall_back(self):
        assert styles.node_color("gizmo") == styles.NODE_TYPE_COLORS[NodeType.OTHER]
        assert styles.node_icon("gizmo") == "Code"
        assert styles.edge_color("teleports") == styles.EDGE_TYPE_COLORS[EdgeType.OTHER]
        assert styles.cluster_color("nowhere") == styles.CLUSTER_COLORS[ClusterType.UNKNOWN]

    def test_lookup_by_string(self):
        assert styles.node_color("component") == "#ec4899"
        assert styles.edge_color("calls") == "#3b82f6"

    @pytest.mark.parametrize("weight,expected", [(0, 1), (1, 1), (2.5, 2.5), (7, 3)])
    def test_edge_stroke_width(self, weight, expected):
        assert styles.edge_stroke_width(weight) == expected
