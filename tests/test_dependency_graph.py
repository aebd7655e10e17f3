"""Tests for DependencyGraph and graph algorithms."""

import random

import pytest

from calq import CycleError
from calq._graph import DependencyGraph, find_resolve_order, topological_sort


def _random_dag(seed: int, size: int = 12) -> dict[str, set[str]]:
    rng = random.Random(seed)
    names = [f"v{i}" for i in range(size)]
    rng.shuffle(names)
    # Each variable may only depend on variables earlier in the shuffled list
    return {name: set(rng.sample(names[:i], k=rng.randint(0, min(i, 3)))) for i, name in enumerate(names)}


class TestTopologicalSort:
    """Tests for the topological_sort algorithm."""

    def test_empty_graph(self) -> None:
        """Test sorting an empty graph."""
        result = topological_sort({})
        assert result == []

    def test_single_node(self) -> None:
        """Test sorting a single node."""
        result = topological_sort({"a": []})
        assert result == ["a"]

    def test_linear_chain(self) -> None:
        """Test sorting a linear chain."""
        # a -> b -> c (c depends on b, b depends on a)
        result = topological_sort({"a": ["b"], "b": ["c"], "c": []})
        assert result == ["a", "b", "c"]

    def test_diamond_dependency(self) -> None:
        """Test sorting a diamond-shaped graph."""
        # a -> b, a -> c, b -> d, c -> d
        result = topological_sort({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})
        assert result == ["a", "b", "c", "d"]

    def test_multiple_roots_keep_discovery_order(self) -> None:
        """Test that independent roots stay in insertion order."""
        assert topological_sort({"a": ["c"], "b": ["c"], "c": []}) == ["a", "b", "c"]
        assert topological_sort({"b": ["c"], "a": ["c"], "c": []}) == ["b", "a", "c"]

    def test_cycle_detection(self) -> None:
        """Test that a two-node cycle raises CycleError."""
        with pytest.raises(CycleError, match="Cycle"):
            topological_sort({"a": ["b"], "b": ["a"]})

    def test_cycle_error_is_value_error(self) -> None:
        """Test that CycleError can be caught as ValueError."""
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["b"], "b": ["a"]})

    def test_self_loop_detection(self) -> None:
        """Test that a self loop raises CycleError."""
        with pytest.raises(CycleError, match="Cycle"):
            topological_sort({"a": ["a"]})

    def test_longer_cycle_reports_unresolved_nodes(self) -> None:
        """Test that the error lists the nodes left on the cycle."""
        with pytest.raises(CycleError) as exc_info:
            topological_sort({"root": ["a"], "a": ["b"], "b": ["c"], "c": ["a"]})
        assert exc_info.value.unresolved == frozenset({"a", "b", "c"})

    def test_works_with_integers(self) -> None:
        """Test sorting with integer nodes."""
        result = topological_sort({1: [2], 2: [3], 3: []})
        assert result == [1, 2, 3]

    def test_works_with_tuples(self) -> None:
        """Test sorting with tuple nodes."""
        result = topological_sort({("a", 1): [("b", 2)], ("b", 2): []})
        assert result == [("a", 1), ("b", 2)]


class TestDependencyGraphConstruction:
    """Tests for DependencyGraph construction."""

    def test_empty_graph(self) -> None:
        """Test building a graph from an empty map."""
        graph = DependencyGraph.from_dependency_map({})
        assert graph.nodes == frozenset()
        assert len(graph) == 0

    def test_from_dependency_map(self) -> None:
        """Test that edges point from dependencies to dependents."""
        graph = DependencyGraph.from_dependency_map({"total": {"price", "qty"}, "price": set()})
        assert graph.nodes == frozenset({"total", "price", "qty"})
        assert graph.predecessors("total") == frozenset({"price", "qty"})
        assert graph.successors("qty") == frozenset({"total"})
        assert len(graph) == 3

    def test_leaf_dependencies_are_nodes(self) -> None:
        """Test that dependencies missing from the keys still become nodes."""
        graph = DependencyGraph.from_dependency_map({"a": {"external"}})
        assert "external" in graph
        assert graph.predecessors("external") == frozenset()

    def test_contains(self) -> None:
        """Test membership checks."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        assert "a" in graph
        assert "b" in graph
        assert "c" not in graph

    def test_works_with_integers(self) -> None:
        """Test that nodes need not be strings."""
        graph = DependencyGraph.from_dependency_map({10: {2, 1}, 2: {1}})
        assert graph.topological_order() == [1, 2, 10]


class TestDependencyGraphQueries:
    """Tests for DependencyGraph query methods."""

    def test_predecessors_simple(self) -> None:
        """Test direct dependencies of a node."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        assert graph.predecessors("b") == frozenset({"a"})
        assert graph.predecessors("a") == frozenset()

    def test_predecessors_nonexistent_node(self) -> None:
        """Test that an unknown node has no dependencies."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        assert graph.predecessors("nonexistent") == frozenset()

    def test_successors_multiple(self) -> None:
        """Test that a shared dependency lists every dependent."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}, "c": {"a"}})
        assert graph.successors("a") == frozenset({"b", "c"})

    def test_successors_nonexistent_node(self) -> None:
        """Test that an unknown node has no dependents."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        assert graph.successors("nonexistent") == frozenset()


class TestDependencyGraphTopologicalOrder:
    """Tests for topological ordering of the graph."""

    def test_topological_order_linear(self) -> None:
        """Test ordering a chain."""
        graph = DependencyGraph.from_dependency_map({"c": {"b"}, "b": {"a"}})
        assert graph.topological_order() == ["a", "b", "c"]

    def test_topological_order_cycle(self) -> None:
        """Test that ordering a cyclic graph raises CycleError."""
        graph = DependencyGraph.from_dependency_map({"a": {"b"}, "b": {"a"}})
        with pytest.raises(CycleError) as exc_info:
            graph.topological_order()
        assert exc_info.value.unresolved == frozenset({"a", "b"})


class TestFindResolveOrder:
    """Tests for ordering a dependency map."""

    def test_dependencies_come_first(self) -> None:
        """Test that a dependency is ordered before its dependent."""
        order = find_resolve_order({"a": {"b"}, "b": set()})
        assert order == ["b", "a"]

    def test_sibling_dependencies_sorted(self) -> None:
        """Test that dependencies taken from a set are ordered by name."""
        order = find_resolve_order({"total": {"tax", "net", "fee"}})
        assert order == ["fee", "net", "tax", "total"]

    def test_same_map_always_yields_same_order(self) -> None:
        """Test that ordering is reproducible."""
        dependencies = {"x": {"c", "b"}, "y": {"a", "x"}, "a": set(), "b": set(), "c": {"a"}}
        orders = {tuple(find_resolve_order(dict(dependencies))) for _ in range(10)}
        assert len(orders) == 1

    @pytest.mark.parametrize("seed", range(20))
    def test_every_dependency_precedes_its_dependent(self, seed: int) -> None:
        """Test the ordering invariant on random acyclic maps."""
        dependencies = _random_dag(seed)
        order = find_resolve_order(dependencies)
        position = {name: i for i, name in enumerate(order)}
        assert set(order) == set(dependencies)
        for name, deps in dependencies.items():
            for dep in deps:
                assert position[dep] < position[name]

    def test_cycle_raises_without_partial_order(self) -> None:
        """Test that a cycle fails the whole map."""
        with pytest.raises(CycleError):
            find_resolve_order({"a": {"b"}, "b": {"c"}, "c": {"a"}, "d": set()})

    def test_self_dependency_is_a_cycle(self) -> None:
        """Test that a variable depending on itself is a cycle."""
        with pytest.raises(CycleError):
            find_resolve_order({"a": {"a"}})


class TestDependencyGraphImmutability:
    """Tests ensuring the graph is immutable."""

    def test_nodes_returns_frozenset(self) -> None:
        """Test that nodes is a frozenset."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        assert isinstance(graph.nodes, frozenset)

    def test_frozen(self) -> None:
        """Test that attributes cannot be reassigned."""
        graph = DependencyGraph.from_dependency_map({"b": {"a"}})
        with pytest.raises(AttributeError):
            graph._predecessors = {}  # type: ignore[misc]  # noqa: SLF001
