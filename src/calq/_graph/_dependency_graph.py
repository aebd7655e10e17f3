"""Generic dependency graph abstraction."""

from __future__ import annotations

from collections.abc import Collection, Hashable, Mapping
from dataclasses import dataclass, field

from ._algorithms import topological_sort


def _sort_key(node: object) -> tuple[str, str]:
    return (type(node).__name__, str(node))


@dataclass(frozen=True, slots=True)
class DependencyGraph[T: Hashable]:
    """A directed graph representing dependencies between nodes.

    This is a pure, immutable data structure with query methods.
    It is generic over the node type T (e.g., str, int).

    The graph represents "depends on" relationships:
    - predecessors[b] = (a,) means "b depends on a"
    - successors[a] = (b,) means "a is depended on by b"

    Edges are kept as tuples in discovery order so that
    ``topological_order`` is reproducible.

    Attributes:
        _predecessors: Mapping from node to its direct dependencies.
        _successors: Mapping from node to nodes that depend on it.

    """

    _predecessors: dict[T, tuple[T, ...]] = field(default_factory=dict)
    _successors: dict[T, tuple[T, ...]] = field(default_factory=dict)

    @classmethod
    def from_dependency_map(cls, dependencies: Mapping[T, Collection[T]]) -> DependencyGraph[T]:
        """Build a graph from a mapping of node to the nodes it depends on.

        Nodes are discovered in the mapping's order; each node's
        dependencies are visited in sorted order, since they usually come
        from unordered sets.

        Example:
            >>> graph = DependencyGraph.from_dependency_map({"total": {"a", "b"}, "a": set()})
            >>> graph.topological_order()
            ['a', 'b', 'total']

        """
        predecessors: dict[T, list[T]] = {}
        successors: dict[T, list[T]] = {}
        for node, deps in dependencies.items():
            ordered = sorted(deps, key=_sort_key)
            for member in (*ordered, node):
                predecessors.setdefault(member, [])
                successors.setdefault(member, [])
            for dep in ordered:
                if dep not in predecessors[node]:
                    predecessors[node].append(dep)
                    successors[dep].append(node)

        return cls(
            _predecessors={k: tuple(v) for k, v in predecessors.items()},
            _successors={k: tuple(v) for k, v in successors.items()},
        )

    @property
    def nodes(self) -> frozenset[T]:
        """All nodes in the graph."""
        return frozenset(self._predecessors.keys()) | frozenset(self._successors.keys())

    def predecessors(self, node: T) -> frozenset[T]:
        """Get direct dependencies of a node (nodes it depends on).

        Args:
            node: The node to query.

        Returns:
            Set of nodes that this node directly depends on.

        """
        return frozenset(self._predecessors.get(node, ()))

    def successors(self, node: T) -> frozenset[T]:
        """Get direct dependents of a node (nodes that depend on it).

        Args:
            node: The node to query.

        Returns:
            Set of nodes that directly depend on this node.

        """
        return frozenset(self._successors.get(node, ()))

    def topological_order(self) -> list[T]:
        """Return nodes in topological order (dependencies before dependents).

        Returns:
            List of nodes where each node appears before all nodes that depend on it.

        Raises:
            CycleError: If the graph contains a cycle.

        """
        return topological_sort(self._successors)

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes)

    def __contains__(self, node: object) -> bool:
        """Check if a node is in the graph."""
        return node in self._predecessors or node in self._successors


def find_resolve_order[T: Hashable](dependencies: Mapping[T, Collection[T]]) -> list[T]:
    """Order variables so every dependency precedes its dependents.

    Args:
        dependencies: Mapping from variable to the variables it depends on.
            Dependencies that are not keys are included in the order as leaves.

    Returns:
        List of variables in evaluation order.

    Raises:
        CycleError: If no such order exists.

    """
    return DependencyGraph.from_dependency_map(dependencies).topological_order()
