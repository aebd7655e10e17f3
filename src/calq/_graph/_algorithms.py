"""Graph algorithms for dependency graph operations."""

from collections import deque
from collections.abc import Hashable, Mapping, Sequence

from calq._errors import CycleError


def topological_sort[T: Hashable](successors: Mapping[T, Sequence[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Given a graph represented as a mapping from nodes to their successors
    (nodes that depend on them), return nodes in an order where each node
    appears before all nodes that depend on it.

    Ties are broken by discovery order: nodes are first seen in the mapping's
    iteration order, then in the order successor sequences list them. The
    same input therefore always yields the same order.

    Args:
        successors: Mapping from node to sequence of nodes that depend on it.
            An edge (a -> b) means "b depends on a".

    Returns:
        List of nodes in topological order.

    Raises:
        CycleError: If the graph contains a cycle.

    Example:
        >>> # a -> b -> c means c depends on b, b depends on a
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    # Calculate in-degree for each node, remembering discovery order
    indegree: dict[T, int] = {}
    for node, deps in successors.items():
        indegree.setdefault(node, 0)
        for dep in deps:
            indegree[dep] = indegree.get(dep, 0) + 1

    # Start with nodes that have no predecessors (in-degree 0)
    queue = deque([node for node, deg in indegree.items() if deg == 0])
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, ()):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    if len(order) != len(indegree):
        placed = set(order)
        unresolved = [node for node in indegree if node not in placed]
        msg = f"Cycle detected in graph involving: {', '.join(map(str, unresolved))}"
        raise CycleError(msg, unresolved)

    return order
