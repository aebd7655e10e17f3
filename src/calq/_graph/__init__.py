"""Graph module providing dependency graph abstractions.

This module contains:
- DependencyGraph[T]: A generic, immutable directed graph
- topological_sort: Algorithm for ordering nodes by dependencies
- find_resolve_order: Evaluation order for a variable dependency map
"""

from ._algorithms import topological_sort
from ._dependency_graph import DependencyGraph, find_resolve_order

__all__ = ["DependencyGraph", "find_resolve_order", "topological_sort"]
