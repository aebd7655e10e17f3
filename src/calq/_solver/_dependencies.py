"""Dependency map construction for a batch of named expressions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from calq._ast import Formula, node_dependencies
from calq._errors import CycleError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from calq._calculator import Calculator

logger = logging.getLogger(__name__)


def build_dependency_map(
    expressions: Mapping[str, str],
    calculator: Calculator,
    *,
    force_ignore_memory: bool = False,
    ignore_errors: bool = False,
    on_drop: Callable[[str, Exception], None] | None = None,
) -> dict[str, set[str]]:
    """Map each batch variable to the variables it depends on.

    Variables referenced by the batch but not part of it are looked up in the
    calculator's memory. Stored formulas are expanded transitively so they
    get ordered relative to the batch entries that read them; anything else
    becomes a leaf with no dependencies.

    Args:
        expressions: Canonical variable name to expression text.
        calculator: Source of parsed expressions and stored bindings.
        force_ignore_memory: Report every free variable, even ones that already
            hold a value in memory.
        ignore_errors: Drop a variable whose dependencies cannot be computed
            instead of raising. Cycles through stored formulas always raise.
        on_drop: Called with the variable name and the error for each dropped
            variable.

    Returns:
        Mapping from variable name to its set of dependencies.

    """
    dependencies: dict[str, set[str]] = {}
    for name, expression in expressions.items():
        try:
            dependencies[name] = calculator.dependencies(expression, ignore_memory=force_ignore_memory)
        except CycleError:
            raise
        except Exception as e:
            if not ignore_errors:
                raise
            logger.debug("Dropping '%s' from the batch: %s", name, e)
            if on_drop is not None:
                on_drop(name, e)

    # Work list over references outside the batch
    pending = [dep for deps in dependencies.values() for dep in sorted(deps) if dep not in dependencies]
    while pending:
        name = pending.pop()
        if name in dependencies:
            continue
        bound = calculator.memory.get(name)
        if isinstance(bound, Formula):
            formula_deps = node_dependencies(bound)
            logger.debug("Expanding stored formula '%s': %s", name, sorted(formula_deps))
            dependencies[name] = formula_deps
            pending.extend(dep for dep in sorted(formula_deps) if dep not in dependencies)
        else:
            dependencies[name] = set()

    return dependencies
