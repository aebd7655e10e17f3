"""Bulk solver module for calq.

This module resolves a batch of named expressions in dependency order.

Key types:
- SolveOptions: Hooks and flags for a solve
- BulkSolver: Orders, evaluates and collects a batch
- ResolveOrderCache: Injectable memo of resolve orders
- build_dependency_map: Dependency map of a batch, including stored formulas
"""

from ._bulk import BulkSolver, SolveOptions, raise_exception_handler, return_undefined_handler
from ._dependencies import build_dependency_map
from ._order_cache import DEFAULT_ORDER_CACHE, ResolveOrderCache, cache_key, resolve_order

__all__ = [
    "DEFAULT_ORDER_CACHE",
    "BulkSolver",
    "ResolveOrderCache",
    "SolveOptions",
    "build_dependency_map",
    "cache_key",
    "raise_exception_handler",
    "resolve_order",
    "return_undefined_handler",
]
