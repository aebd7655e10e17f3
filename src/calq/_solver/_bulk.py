"""Bulk solving of interdependent named expressions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Never

from calq._ast import Formula
from calq._errors import CycleError, DivideByZeroError, FormulaError, UnboundVariableError
from calq._graph import find_resolve_order
from calq._store import canonical_name
from calq._values import UNDEFINED, Undefined

from ._dependencies import build_dependency_map
from ._order_cache import resolve_order

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from calq._calculator import Calculator

    from ._order_cache import ResolveOrderCache, Resolver

    type ErrorHandler = Callable[[FormulaError], Any]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SolveOptions:
    """Hooks and flags controlling a bulk solve.

    Every hook receives the variable's expression text (``None`` when the
    variable is not a batch entry, e.g. a stored formula pulled in as a
    dependency) and its canonical name.

    Attributes:
        evaluate_if: ``(expression, name) -> bool``. Returning false skips the
            variable; it is left unset and reported as ``None``.
        before_evaluation: ``(expression, name)``. Called right before the
            value is computed.
        after_evaluation: ``(expression, name, value)``. Called with the final
            value just before it is recorded.
        convert_value: ``(expression, name, value) -> value``. Replaces the
            computed value before ``after_evaluation`` runs.
        always_evaluate: Re-evaluate batch expressions even when memory already
            holds a value for the variable, and schedule such variables as
            real dependencies.
        ignore_errors: Skip variables whose dependencies or value cannot be
            computed, for any error. Skipped variables are reported as ``None``.

    """

    evaluate_if: Callable[[str | None, str], bool] | None = None
    before_evaluation: Callable[[str | None, str], object] | None = None
    after_evaluation: Callable[[str | None, str, Any], object] | None = None
    convert_value: Callable[[str | None, str, Any], Any] | None = None
    always_evaluate: bool = False
    ignore_errors: bool = False


def return_undefined_handler(_error: FormulaError) -> Undefined:
    """Error handler recording the undefined sentinel and carrying on."""
    return UNDEFINED


def raise_exception_handler(error: FormulaError) -> Never:
    """Error handler aborting the batch with the tagged error."""
    raise error


def _tag(error: Exception, name: str) -> FormulaError:
    if isinstance(error, FormulaError):
        tagged = error
    else:
        tagged = DivideByZeroError(str(error) or "Division by zero")
        tagged.__cause__ = error
    tagged.recipient_variable = name
    return tagged


class BulkSolver:
    """Resolve a batch of named expressions in dependency order.

    Example:
        >>> calculator = Calculator()
        >>> BulkSolver({"total": "price * qty", "price": "2", "qty": "3"}, calculator).solve()
        {'total': 6, 'price': 2, 'qty': 3}

    """

    def __init__(
        self,
        expressions: Mapping[Any, str],
        calculator: Calculator,
        options: SolveOptions | None = None,
        *,
        order_cache: ResolveOrderCache | None = None,
        resolver: Resolver = find_resolve_order,
    ) -> None:
        self.expression_hash = expressions
        self.calculator = calculator
        self.options = options or SolveOptions()
        self.order_cache = order_cache if order_cache is not None else calculator.order_cache
        self.resolver = resolver
        self.expressions: dict[str, str] = {canonical_name(k): v for k, v in expressions.items()}
        # Canonical name -> key as the caller spelled it, for error tagging
        self._caller_keys: dict[str, str] = {canonical_name(k): str(k) for k in expressions}
        self._dropped: set[str] = set()
        self._order: tuple[str, ...] | None = None

    def solve_strict(self) -> dict[Any, Any]:
        """Solve the batch, raising the first unbound-variable or division error.

        Raises:
            UnboundVariableError: Tagged with ``recipient_variable``.
            DivideByZeroError: Tagged with ``recipient_variable``.

        """
        return self.solve(raise_exception_handler)

    def solve(self, error_handler: ErrorHandler | None = None) -> dict[Any, Any]:
        """Solve the batch.

        Args:
            error_handler: Receives each tagged unbound-variable or division
                error; its return value is recorded for the variable. Defaults
                to recording ``UNDEFINED``.

        Returns:
            Mapping with exactly the caller's keys, in the caller's order.
            Variables that were never recorded map to ``None``.

        """
        handler = error_handler or return_undefined_handler
        results = self._load_results(handler)
        return {key: results.get(canonical_name(key)) for key in self.expression_hash}

    def variables_in_resolve_order(self) -> tuple[str, ...]:
        if self._order is None:
            self._order = resolve_order(
                self.expressions,
                self._expression_dependencies,
                cache=self.order_cache,
                resolver=self.resolver,
                enabled=self.calculator.config.cache_dependency_order,
            )
        return self._order

    def _expression_dependencies(self) -> dict[str, set[str]]:
        return build_dependency_map(
            self.expressions,
            self.calculator,
            force_ignore_memory=self.options.always_evaluate,
            ignore_errors=self.options.ignore_errors,
            on_drop=lambda name, _error: self._dropped.add(name),
        )

    def _batch_expression(self, name: str) -> str | None:
        if name in self._dropped:
            return None
        return self.expressions.get(name)

    def _load_results(self, handler: ErrorHandler) -> dict[str, Any]:
        options = self.options
        results: dict[str, Any] = {}

        for name in self.variables_in_resolve_order():
            expression = self._batch_expression(name)
            try:
                if name not in self.calculator.memory and expression is None:
                    logger.debug("Skipping '%s': no value and no expression", name)
                    continue

                if options.evaluate_if is not None and not options.evaluate_if(expression, name):
                    logger.debug("Skipping '%s': evaluate_if returned false", name)
                    continue

                if options.before_evaluation is not None:
                    options.before_evaluation(expression, name)

                try:
                    value = self._compute(name, expression, results)
                except CycleError:
                    raise
                except Exception:
                    if options.ignore_errors:
                        logger.debug("Ignoring error while evaluating '%s'", name, exc_info=True)
                        continue
                    raise

                if options.convert_value is not None:
                    value = options.convert_value(expression, name, value)

                if options.after_evaluation is not None:
                    options.after_evaluation(expression, name, value)
                results[name] = value
            except (UnboundVariableError, ZeroDivisionError) as e:
                tagged = _tag(e, self._caller_keys.get(name, name))
                logger.debug("Error while solving '%s': %s", name, tagged)
                results[name] = handler(tagged)

        return results

    def _compute(self, name: str, expression: str | None, results: dict[str, Any]) -> Any:
        stored = self.calculator.memory.get(name)
        has_stored = stored is not None and not isinstance(stored, Undefined)

        if has_stored and (not self.options.always_evaluate or expression is None):
            logger.debug("Reusing stored value for '%s'", name)
            if isinstance(stored, Formula):
                return self.calculator.evaluate_strict(stored, results)
            return stored

        if expression is None:
            return None

        logger.debug("Evaluating '%s' = %r", name, expression)
        return self.calculator.evaluate_strict(expression, {**self.expressions, **results})
