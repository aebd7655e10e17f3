"""Runtime configuration toggles."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from ._context import get_active_config, reset_active_config, set_active_config

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(slots=True, frozen=True)
class CalqConfig:
    """Feature toggles for the caches.

    Attributes:
        cache_ast: Keep parsed expressions in each calculator's AST cache.
            When off, every call re-parses its expression text.
        cache_dependency_order: Memoize resolve orders in the order cache,
            keyed by the batch's variable-name set.

    """

    cache_ast: bool = False
    cache_dependency_order: bool = False


@contextmanager
def configured(**overrides: bool) -> Iterator[CalqConfig]:
    """Context manager to override the active configuration.

    Example:
        with configured(cache_dependency_order=True):
            calculator.solve({"a": "b + 1", "b": "2"})

    """
    config = replace(get_active_config(), **overrides)
    token = set_active_config(config)
    try:
        yield config
    finally:
        reset_active_config(token)
