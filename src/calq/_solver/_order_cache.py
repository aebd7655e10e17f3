"""Memoization of resolve orders keyed by a batch's variable names."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from calq._store import canonical_name

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping

    type DependencyMap = dict[str, set[str]]
    type Resolver = Callable[[Mapping[str, Collection[str]]], list[str]]

logger = logging.getLogger(__name__)


def cache_key(names: Iterable[object]) -> str:
    """Build the cache key for a batch: sorted canonical names joined by ``|``."""
    return "|".join(sorted(canonical_name(name) for name in names))


class ResolveOrderCache:
    """Cache of resolve orders.

    The key covers only the batch's variable names, not its expressions.
    Two batches with the same names share an entry even when their
    dependencies differ, so redefining a batch's expressions under the same
    names can serve a stale order. Call ``clear`` after such a redefinition.

    Population is lock-protected; one instance can be shared between threads.
    """

    __slots__ = ("_entries", "_lock", "hits", "misses")

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> tuple[str, ...] | None:
        with self._lock:
            order = self._entries.get(key)
            if order is None:
                self.misses += 1
            else:
                self.hits += 1
            return order

    def put(self, key: str, order: Iterable[str]) -> None:
        with self._lock:
            self._entries[key] = tuple(order)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide instance used by calculators that are not given their own
DEFAULT_ORDER_CACHE = ResolveOrderCache()


def resolve_order(
    names: Iterable[object],
    build_dependency_map: Callable[[], DependencyMap],
    *,
    cache: ResolveOrderCache,
    resolver: Resolver,
    enabled: bool,
) -> tuple[str, ...]:
    """Return the evaluation order for a batch, consulting the cache.

    Args:
        names: The batch's variable names. Only these form the cache key.
        build_dependency_map: Called on a miss to produce the dependency map.
        cache: Where orders are looked up and stored.
        resolver: Turns a dependency map into an order; raises ``CycleError``.
        enabled: When false the cache is neither read nor written.

    """
    key = cache_key(names)
    if enabled:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Resolve order cache hit for %r", key)
            return cached

    order = tuple(resolver(build_dependency_map()))
    logger.debug("Resolved order for %r: %s", key, order)
    if enabled:
        cache.put(key, order)
    return order
