"""Tests for graph filtering and search highlighting."""

from codegraph_viz import filters
from codegraph_viz.models import (
    ALL_CLUSTERS,
    ALL_EDGE_TYPES,
    ALL_NODE_TYPES,
    ClusterType,
    EdgeType,
    FilterState,
    NodeType,
)


class TestApply:
    """Tests for filters.apply()."""

    def test_node_type_filter_drops_edges(self, make_node, make_edge):
        fn = make_node("f", node_type="function")
        comp = make_node("c", node_type="component", file_path="src/components/C.tsx")
        edges = [make_edge("f", "c"), make_edge("c", "f")]
        result = filters.apply([fn, comp], edges, FilterState(node_types={"function"}))
        assert [n.id for n in result.filtered_nodes] == ["f"]
        assert result.filtered_edges == []

    def test_default_state_keeps_everything(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges)
        assert result.filtered_nodes == nodes
        assert result.filtered_edges == edges
        assert result.highlighted_node_ids == set()

    def test_cluster_filter(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges, FilterState(clusters={ClusterType.BACKEND}))
        assert {n.data.cluster for n in result.filtered_nodes} == {ClusterType.BACKEND}

    def test_file_path_substring(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges, FilterState(file_path="src/api/"))
        assert {n.data.name for n in result.filtered_nodes} == {"getUsers", "createUser", "authMiddleware"}

    def test_edge_type_filter(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges, FilterState(edge_types={EdgeType.CALLS}))
        assert result.filtered_nodes == nodes
        assert result.filtered_edges
        assert all(e.edge_type == EdgeType.CALLS for e in result.filtered_edges)

    def test_dangling_edges_never_escape(self, make_node, make_edge):
        nodes = [make_node("a"), make_node("b")]
        edges = [make_edge("a", "b"), make_edge("a", "ghost"), make_edge("ghost", "b")]
        result = filters.apply(nodes, edges)
        visible = {n.id for n in result.filtered_nodes}
        assert len(result.filtered_edges) == 1
        for edge in result.filtered_edges:
            assert edge.source in visible and edge.target in visible

    def test_filtered_edge_endpoints_subset_of_nodes(self, demo):
        nodes, edges = demo
        state = FilterState(node_types={"component", "endpoint", "class"}, clusters={"frontend", "backend"})
        result = filters.apply(nodes, edges, state)
        visible = {n.id for n in result.filtered_nodes}
        for edge in result.filtered_edges:
            assert {edge.source, edge.target} <= visible

    def test_inputs_untouched(self, demo):
        nodes, edges = demo
        before = (list(nodes), list(edges))
        filters.apply(nodes, edges, FilterState(node_types=set()))
        assert (nodes, edges) == before


class TestHighlight:
    """Tests for search highlighting."""

    def test_case_insensitive_name_match(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges, FilterState(search_query="USER"))
        names = {n.data.name for n in result.filtered_nodes if n.id in result.highlighted_node_ids}
        assert {"getUsers", "createUser", "UserService", "validateUser", "User"} <= names
        # highlighting never removes nodes
        assert len(result.filtered_nodes) == len(nodes)

    def test_file_path_match(self, demo):
        nodes, edges = demo
        result = filters.apply(nodes, edges, FilterState(search_query="hooks/"))
        assert result.highlighted_node_ids == {"4"}

    def test_qualified_name_match(self, make_node):
        node = make_node("q", name="run", qualified_name="jobs.Scheduler.run")
        assert filters.highlight([node], "scheduler") == {"q"}

    def test_blank_query_highlights_nothing(self, demo):
        nodes, _ = demo
        assert filters.highlight(nodes, "   ") == set()

    def test_query_whitespace_is_significant(self, make_node):
        node = make_node("a", name="useAuthX", file_path="src/hooks/useAuthX.ts")
        assert filters.apply([node], [], FilterState(search_query="auth ")).highlighted_node_ids == set()
        assert filters.highlight([node], "authx") == {"a"}

    def test_only_filtered_nodes_highlighted(self, demo):
        nodes, edges = demo
        state = FilterState(clusters={ClusterType.FRONTEND}, search_query="user")
        result = filters.apply(nodes, edges, state)
        visible = {n.id for n in result.filtered_nodes}
        assert result.highlighted_node_ids <= visible
        assert "6" not in result.highlighted_node_ids


class TestFilterState:
    """Tests for filter state toggles."""

    def test_defaults_allow_everything(self):
        state = FilterState()
        assert state.node_types == set(ALL_NODE_TYPES)
        assert state.edge_types == set(ALL_EDGE_TYPES)
        assert state.clusters == set(ALL_CLUSTERS)

    def test_toggle_node_type(self):
        state = FilterState()
        state.toggle_node_type("test")
        assert NodeType.TEST not in state.node_types
        state.toggle_node_type(NodeType.TEST)
        assert NodeType.TEST in state.node_types

    def test_toggle_edge_type_and_cluster(self):
        state = FilterState()
        state.toggle_edge_type("imports")
        state.toggle_cluster("shared")
        assert EdgeType.IMPORTS not in state.edge_types
        assert ClusterType.SHARED not in state.clusters

    def test_reset(self):
        state = FilterState(node_types={"function"}, file_path="src", search_query="x")
        state.reset()
        assert state == FilterState()

    def test_set_file_path_blank_clears(self):
        state = FilterState()
        state.set_file_path("src/api")
        assert state.file_path == "src/api"
        state.set_file_path("")
        assert state.file_path is None

    def test_unknown_values_coerce(self):
        state = FilterState(node_types={"widget"}, clusters={"mystery"})
        assert state.node_types == {NodeType.OTHER}
        assert state.clusters == {ClusterType.UNKNOWN}

    def test_set_search_query_drives_highlight(self, demo):
        nodes, edges = demo
        state = FilterState()
        state.set_search_query("formatdate")
        assert filters.apply(nodes, edges, state).highlighted_node_ids == {"12"}
