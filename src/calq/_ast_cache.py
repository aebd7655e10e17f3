"""Memoized expression text to syntax tree map."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from calq._ast import Node

logger = logging.getLogger(__name__)


class AstCache:
    """Per-calculator cache of parsed expressions.

    Entries are keyed by raw expression text and never evicted. Whether a
    freshly built tree is stored is decided per call, so the process-wide
    ``cache_ast`` toggle can change between calls.
    """

    __slots__ = ("_entries", "_lock")

    def __init__(self) -> None:
        self._entries: dict[str, Node] = {}
        self._lock = threading.Lock()

    def fetch(self, text: str, build: Callable[[str], Node], *, store: bool) -> Node:
        """Return the cached tree for ``text``, building it on a miss.

        Args:
            text: Expression text.
            build: Parser used on a miss.
            store: Whether to keep a freshly built tree.

        """
        node = self._entries.get(text)
        if node is not None:
            return node
        node = build(text)
        if store:
            with self._lock:
                self._entries.setdefault(text, node)
            logger.debug("Cached AST for %r", text)
        return node

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __len__(self) -> int:
        return len(self._entries)
