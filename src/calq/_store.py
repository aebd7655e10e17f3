"""Variable store with transactional scoping."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from calq._ast import Formula

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

logger = logging.getLogger(__name__)


def canonical_name(name: object) -> str:
    """Return the canonical (lower-case) form of a variable name."""
    return str(name).lower()


class ScopedStore:
    """Mutable mapping of variable name to value or ``Formula``.

    Every key is stored in canonical form. ``overlay`` brackets an operation
    with a temporary set of bindings and always restores the previous mapping
    afterwards, so evaluations never leak bindings into the store.

    The overlay bracket holds a re-entrant lock; sharing one store between
    threads serializes overlays instead of interleaving them.
    """

    __slots__ = ("_bindings", "_lock")

    def __init__(self, bindings: Mapping[Any, Any] | None = None) -> None:
        self._bindings: dict[str, Any] = {}
        self._lock = threading.RLock()
        if bindings:
            self.bind_many(bindings)

    def bind(self, name: object, value: Any) -> None:
        with self._lock:
            self._bindings[canonical_name(name)] = value

    def bind_many(self, bindings: Mapping[Any, Any]) -> None:
        with self._lock:
            for name, value in bindings.items():
                self._bindings[canonical_name(name)] = value

    @contextmanager
    def overlay(self, bindings: Mapping[Any, Any] | None = None) -> Iterator[Mapping[str, Any]]:
        """Temporarily merge ``bindings`` over the store.

        Yields a read-only view of the merged bindings. On exit, normal or
        exceptional, the mapping in place before the overlay is restored.
        """
        with self._lock:
            restore = self._bindings
            self._bindings = dict(restore)
            try:
                if bindings:
                    self.bind_many(bindings)
                yield MappingProxyType(self._bindings)
            finally:
                self._bindings = restore

    def get(self, name: object, default: Any = None) -> Any:
        return self._bindings.get(canonical_name(name), default)

    def has_value(self, name: object) -> bool:
        """Check whether ``name`` is bound to something other than ``None``."""
        return self._bindings.get(canonical_name(name)) is not None

    def is_formula(self, name: object) -> bool:
        return isinstance(self._bindings.get(canonical_name(name)), Formula)

    def snapshot(self) -> dict[str, Any]:
        """Return a shallow copy of the current bindings."""
        with self._lock:
            return dict(self._bindings)

    def view(self) -> Mapping[str, Any]:
        """Return a read-only live view of the current bindings."""
        return MappingProxyType(self._bindings)

    def clear(self) -> None:
        with self._lock:
            self._bindings = {}

    def is_empty(self) -> bool:
        return not self._bindings

    def __contains__(self, name: object) -> bool:
        return canonical_name(name) in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"ScopedStore({self._bindings!r})"
