"""Context variables for calq.

This module contains context variables used across the library.
It is kept separate to avoid circular imports.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextvars import Token

    from ._config import CalqConfig

# Process-wide cache toggles. Calculators without an explicit config read
# this at call time, so toggling it affects existing calculators too.
_active_config_var: ContextVar[CalqConfig | None] = ContextVar("active_config", default=None)


def get_active_config() -> CalqConfig:
    """Get the active configuration, falling back to the defaults."""
    config = _active_config_var.get()
    if config is None:
        from ._config import CalqConfig  # noqa: PLC0415

        return CalqConfig()
    return config


def set_active_config(config: CalqConfig | None) -> Token[CalqConfig | None]:
    """Set the active configuration.

    Returns a token that can be used to reset the value.
    """
    return _active_config_var.set(config)


def reset_active_config(token: Token[CalqConfig | None]) -> None:
    """Reset the active configuration using a token from set_active_config."""
    _active_config_var.reset(token)
