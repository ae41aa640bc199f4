"""Unit tests for graph algorithms."""

import pytest

from dotwalk.core.exceptions import StartNodeNotFoundError
from dotwalk.core.graph import DotGraph, bfs, dfs, extract_subgraph, traverse
from dotwalk.core.graph.analysis import get_hubs, get_sinks, get_sources, graph_stats
from dotwalk.core.graph.pathfinding import root_path
from dotwalk.core.graph.resolve import find_nodes, resolve_start
from dotwalk.core.models import Algorithm, Direction, EdgeMode, EdgeType


def make_graph(
    edges: list[tuple[str, str]], labels: dict[str, str] | None = None
) -> DotGraph:
    """Create a test graph from (source, target) identifier pairs."""
    graph = DotGraph()
    for source, target in edges:
        graph.add_edge(graph.ensure_node(source), graph.ensure_node(target), EdgeType.FINETUNE)
    for identifier, label in (labels or {}).items():
        graph.set_label(graph.ensure_node(identifier), label)
    return graph


def names(graph: DotGraph, handles: list[int]) -> list[str]:
    return [graph.identifier(h) for h in handles]


def levels_by_name(graph: DotGraph, levels: dict[int, int]) -> dict[str, int]:
    return {graph.identifier(h): level for h, level in levels.items()}


@pytest.fixture
def linear_graph() -> DotGraph:
    """Create a linear graph: A -> B -> C -> D."""
    return make_graph([("A", "B"), ("B", "C"), ("C", "D")])


@pytest.fixture
def diamond_graph() -> DotGraph:
    """Create a diamond: A -> B -> D, A -> C -> D."""
    return make_graph([("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")])


@pytest.fixture
def cyclic_graph() -> DotGraph:
    """Create a graph with a cycle: A -> B -> C -> A."""
    return make_graph([("A", "B"), ("B", "C"), ("C", "A")])


class TestDotGraph:
    """Tests for the DotGraph class."""

    def test_handles_are_dense(self) -> None:
        graph = DotGraph()
        assert graph.ensure_node("a") == 0
        assert graph.ensure_node("b") == 1
        assert graph.ensure_node("a") == 0
        assert graph.identifiers == ["a", "b"]
        assert len(graph) == 2

    def test_add_edge(self) -> None:
        graph = make_graph([("A", "B")])
        a, b = graph.handle("A"), graph.handle("B")

        assert graph.successors(a) == [b]
        assert graph.predecessors(b) == [a]
        assert graph.has_edge(a, b)
        assert not graph.has_edge(b, a)
        assert graph.num_edges == 1

    def test_self_loop_dropped(self) -> None:
        graph = DotGraph()
        a = graph.ensure_node("a")
        assert graph.add_edge(a, a) is False
        assert graph.num_edges == 0
        assert graph.successors(a) == []

    def test_duplicate_edges_kept(self) -> None:
        graph = make_graph([("A", "B"), ("A", "B")])
        assert graph.num_edges == 2
        assert graph.out_degree(graph.handle("A")) == 2

    def test_first_label_wins(self) -> None:
        graph = DotGraph()
        a = graph.ensure_node("a")
        graph.set_label(a, None)
        graph.set_label(a, "First")
        graph.set_label(a, "Second")
        assert graph.label(a) == "First"
        assert graph.labels == {"a": "First"}

    def test_display_label_falls_back_to_identifier(self) -> None:
        graph = DotGraph()
        a = graph.ensure_node("a")
        assert graph.label(a) is None
        assert graph.display_label(a) == "a"

    def test_edge_type_lookup(self) -> None:
        graph = DotGraph()
        a, b = graph.ensure_node("a"), graph.ensure_node("b")
        graph.add_edge(a, b, EdgeType.MERGE)
        assert graph.edge_type(a, b) is EdgeType.MERGE
        assert graph.edge_type(b, a) is None

    def test_contains(self, linear_graph: DotGraph) -> None:
        assert "A" in linear_graph
        assert "Z" not in linear_graph
        assert repr(linear_graph) == "DotGraph(nodes=4, edges=3)"


class TestBFS:
    """Tests for frontier search."""

    def test_levels_linear(self, linear_graph: DotGraph) -> None:
        record = bfs(linear_graph, linear_graph.handle("A"), Direction.DOWNSTREAM, 5)
        assert levels_by_name(linear_graph, record.levels) == {"A": 0, "B": 1, "C": 2, "D": 3}
        assert names(linear_graph, record.order) == ["A", "B", "C", "D"]
        assert record.max_level == 3

    def test_levels_are_shortest(self) -> None:
        graph = make_graph([("A", "B"), ("B", "C"), ("A", "C")])
        record = bfs(graph, graph.handle("A"), Direction.DOWNSTREAM, 5)
        assert record.levels[graph.handle("C")] == 1

    def test_depth_cutoff(self, linear_graph: DotGraph) -> None:
        record = bfs(linear_graph, linear_graph.handle("A"), Direction.DOWNSTREAM, 2)
        assert names(linear_graph, record.order) == ["A", "B", "C"]
        assert not record.is_visited(linear_graph.handle("D"))
        # The boundary edge is still scanned
        assert (linear_graph.handle("C"), linear_graph.handle("D")) in {
            (e.source, e.target) for e in record.edges
        }

    def test_first_discovery_sets_parent(self, diamond_graph: DotGraph) -> None:
        record = bfs(diamond_graph, diamond_graph.handle("A"), Direction.DOWNSTREAM, 5)
        d = diamond_graph.handle("D")
        assert record.levels[d] == 2
        assert record.parent[d] == diamond_graph.handle("B")

    def test_upstream(self, linear_graph: DotGraph) -> None:
        record = bfs(linear_graph, linear_graph.handle("D"), Direction.UPSTREAM, 5)
        assert levels_by_name(linear_graph, record.levels) == {"D": 0, "C": 1, "B": 2, "A": 3}

    def test_cycle_terminates(self, cyclic_graph: DotGraph) -> None:
        record = bfs(cyclic_graph, cyclic_graph.handle("A"), Direction.DOWNSTREAM, 50)
        assert len(record) == 3
        assert record.max_level == 2

    def test_isolated_start(self) -> None:
        graph = DotGraph()
        a = graph.ensure_node("a")
        record = bfs(graph, a, Direction.DOWNSTREAM, 5)
        assert record.order == [a]
        assert record.edges == []
        assert record.max_level == 0


class TestDFS:
    """Tests for iterative deep search."""

    def test_declaration_order(self, diamond_graph: DotGraph) -> None:
        record = dfs(diamond_graph, diamond_graph.handle("A"), Direction.DOWNSTREAM, 5)
        assert names(diamond_graph, record.order) == ["A", "B", "D", "C"]

    def test_level_fixed_at_first_pop(self) -> None:
        """DFS levels are discovery depths, not shortest distances."""
        graph = make_graph([("A", "B"), ("B", "C"), ("A", "C")])
        record = dfs(graph, graph.handle("A"), Direction.DOWNSTREAM, 5)
        assert names(graph, record.order) == ["A", "B", "C"]
        assert record.levels[graph.handle("C")] == 2
        assert record.parent[graph.handle("C")] == graph.handle("B")

    def test_depth_cutoff(self, linear_graph: DotGraph) -> None:
        record = dfs(linear_graph, linear_graph.handle("A"), Direction.DOWNSTREAM, 1)
        assert names(linear_graph, record.order) == ["A", "B"]

    def test_visits_same_set_as_bfs(self, diamond_graph: DotGraph) -> None:
        start = diamond_graph.handle("A")
        by_bfs = traverse(diamond_graph, start, Direction.DOWNSTREAM, Algorithm.BFS, 5)
        by_dfs = traverse(diamond_graph, start, Direction.DOWNSTREAM, Algorithm.DFS, 5)
        assert set(by_bfs.order) == set(by_dfs.order)
        assert by_dfs.algorithm is Algorithm.DFS


class TestUpstreamEdgeTypes:
    """Upstream traversal reports the type of the declared edge."""

    def test_declared_type_is_used(self) -> None:
        graph = DotGraph()
        a, b, c = (graph.ensure_node(x) for x in "abc")
        graph.add_edge(a, b, EdgeType.MERGE)
        graph.add_edge(b, c, EdgeType.QUANTIZED)

        record = traverse(graph, c, Direction.UPSTREAM)
        by_pair = {(e.source, e.target): e.edge_type for e in record.edges}

        assert by_pair[(c, b)] is EdgeType.QUANTIZED
        assert by_pair[(b, a)] is EdgeType.MERGE


class TestExtraction:
    """Tests for subgraph extraction."""

    def test_filters_unvisited_endpoints(self, linear_graph: DotGraph) -> None:
        record = traverse(linear_graph, linear_graph.handle("A"), max_depth=2)
        subgraph = extract_subgraph(linear_graph, record)

        assert [n.identifier for n in subgraph.nodes] == ["A", "B", "C"]
        assert [(e.source_id, e.target_id) for e in subgraph.edges] == [("A", "B"), ("B", "C")]

    def test_deduplicates_edges(self) -> None:
        graph = make_graph([("A", "B"), ("A", "B"), ("B", "C")])
        subgraph = extract_subgraph(graph, traverse(graph, graph.handle("A")))
        assert len(subgraph.edges) == 2

    def test_edge_levels(self, linear_graph: DotGraph) -> None:
        subgraph = extract_subgraph(linear_graph, traverse(linear_graph, linear_graph.handle("A")))
        assert [e.level for e in subgraph.edges] == [1, 2, 3]
        assert all(e.abbr == "FT" for e in subgraph.edges)

    def test_cross_edges_kept_in_all_mode(self, diamond_graph: DotGraph) -> None:
        subgraph = extract_subgraph(
            diamond_graph, traverse(diamond_graph, diamond_graph.handle("A"))
        )
        assert len(subgraph.edges) == 4

    def test_tree_mode(self, diamond_graph: DotGraph) -> None:
        record = traverse(diamond_graph, diamond_graph.handle("A"))
        subgraph = extract_subgraph(diamond_graph, record, EdgeMode.TREE)
        assert [(e.source_id, e.target_id) for e in subgraph.edges] == [
            ("A", "B"),
            ("A", "C"),
            ("B", "D"),
        ]

    def test_extremal_and_steps(self, diamond_graph: DotGraph) -> None:
        subgraph = extract_subgraph(
            diamond_graph, traverse(diamond_graph, diamond_graph.handle("A"))
        )
        extremal = subgraph.extremal
        assert [n.identifier for n in extremal] == ["D"]
        assert extremal[0].steps == 2
        assert extremal[0].is_sink
        assert subgraph.nodes[0].steps is None

    def test_extremal_is_max_level_not_sink(self, cyclic_graph: DotGraph) -> None:
        subgraph = extract_subgraph(cyclic_graph, traverse(cyclic_graph, cyclic_graph.handle("A")))
        c = next(n for n in subgraph.nodes if n.identifier == "C")
        assert c.is_extremal
        assert not c.is_sink

    def test_levels_grouping(self, diamond_graph: DotGraph) -> None:
        subgraph = extract_subgraph(
            diamond_graph, traverse(diamond_graph, diamond_graph.handle("A"))
        )
        groups = subgraph.levels()
        assert [n.identifier for n in groups[1]] == ["B", "C"]
        assert subgraph.max_level == 2

    def test_label_defaults_to_identifier(self) -> None:
        graph = make_graph([("A", "B")], labels={"A": "Alpha"})
        subgraph = extract_subgraph(graph, traverse(graph, graph.handle("A")))
        assert [n.label for n in subgraph.nodes] == ["Alpha", "B"]


class TestRootPath:
    """Tests for root path reconstruction."""

    def test_path_to_start(self, diamond_graph: DotGraph) -> None:
        record = traverse(diamond_graph, diamond_graph.handle("A"))
        path = root_path(record, diamond_graph.handle("D"))
        assert names(diamond_graph, path) == ["A", "B", "D"]

    def test_start_path(self, diamond_graph: DotGraph) -> None:
        record = traverse(diamond_graph, diamond_graph.handle("A"))
        assert names(diamond_graph, root_path(record, record.start)) == ["A"]

    def test_unvisited(self, linear_graph: DotGraph) -> None:
        record = traverse(linear_graph, linear_graph.handle("C"))
        assert root_path(record, linear_graph.handle("A")) == []


@pytest.fixture
def model_graph() -> DotGraph:
    """A small lineage graph with labels."""
    return make_graph(
        [
            ("meta-llama/Llama-2-7b", "TheBloke/Llama-2-7B-GGUF"),
            ("meta-llama/Llama-2-13b", "org/llama-13b-merge"),
            ("m1", "org/zephyr-ft"),
        ],
        labels={"m1": "Zephyr Beta", "meta-llama/Llama-2-13b": "Llama 2 13B"},
    )


class TestResolveStart:
    """Tests for start-node resolution."""

    def test_exact_identifier(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "meta-llama/Llama-2-7b")
        assert model_graph.identifier(h) == "meta-llama/Llama-2-7b"

    def test_exact_label(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "Llama 2 13B")
        assert model_graph.identifier(h) == "meta-llama/Llama-2-13b"

    def test_case_insensitive_identifier(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "META-LLAMA/LLAMA-2-13B")
        assert model_graph.identifier(h) == "meta-llama/Llama-2-13b"

    def test_prefix(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "thebloke/")
        assert model_graph.identifier(h) == "TheBloke/Llama-2-7B-GGUF"

    def test_substring(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "13b-merge")
        assert model_graph.identifier(h) == "org/llama-13b-merge"

    def test_label_substring(self, model_graph: DotGraph) -> None:
        h = resolve_start(model_graph, "zephyr beta")
        assert model_graph.identifier(h) == "m1"

    def test_strips_whitespace(self, model_graph: DotGraph) -> None:
        assert resolve_start(model_graph, "  m1  ") == model_graph.handle("m1")

    def test_quoted_edge_target(self) -> None:
        graph = make_graph([("a", "x")])
        assert resolve_start(graph, '"x"') == graph.handle("x")

    def test_quoted_source_only_node_not_found(self) -> None:
        graph = make_graph([("a", "x")])
        with pytest.raises(StartNodeNotFoundError):
            resolve_start(graph, '"a"')

    def test_not_found(self, model_graph: DotGraph) -> None:
        with pytest.raises(StartNodeNotFoundError) as exc_info:
            resolve_start(model_graph, "zzz-does-not-exist")
        assert exc_info.value.query == "zzz-does-not-exist"
        assert str(exc_info.value) == 'Start node "zzz-does-not-exist" not found'

    def test_blank_query(self, model_graph: DotGraph) -> None:
        with pytest.raises(StartNodeNotFoundError):
            resolve_start(model_graph, "   ")


class TestFindNodes:
    """Tests for candidate search."""

    def test_prefix_before_substring(self, model_graph: DotGraph) -> None:
        found = names(model_graph, find_nodes(model_graph, "org/"))
        assert found == ["org/llama-13b-merge", "org/zephyr-ft"]

        # "Llama 2 13B" is a label prefix match; the rest only contain the text
        found = names(model_graph, find_nodes(model_graph, "llama"))
        assert found == [
            "meta-llama/Llama-2-13b",
            "meta-llama/Llama-2-7b",
            "TheBloke/Llama-2-7B-GGUF",
            "org/llama-13b-merge",
        ]

    def test_matches_labels(self, model_graph: DotGraph) -> None:
        assert names(model_graph, find_nodes(model_graph, "zephyr b")) == ["m1"]

    def test_limit(self, model_graph: DotGraph) -> None:
        assert len(find_nodes(model_graph, "a", limit=2)) == 2

    def test_empty_query(self, model_graph: DotGraph) -> None:
        assert find_nodes(model_graph, "  ") == []


class TestAnalysis:
    """Tests for whole-graph statistics."""

    def test_sources_and_sinks(self, diamond_graph: DotGraph) -> None:
        assert names(diamond_graph, get_sources(diamond_graph)) == ["A"]
        assert names(diamond_graph, get_sinks(diamond_graph)) == ["D"]

    def test_hubs_respects_limit(self, linear_graph: DotGraph) -> None:
        assert len(get_hubs(linear_graph, top_k=2)) == 2

    def test_graph_stats(self, linear_graph: DotGraph) -> None:
        stats = graph_stats(linear_graph)
        assert stats.to_dict() == {
            "nodes": 4,
            "edges": 3,
            "labeled": 0,
            "sources": 1,
            "sinks": 1,
            "sample": ["A", "B", "C", "D"],
        }
