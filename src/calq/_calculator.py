"""Calculator: variable memory, parsing and evaluation entry points."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Self

from ._ast import BinaryOp, Formula, FunctionCall, FunctionRegistry, Identifier, Literal, UnaryOp
from ._ast import default_parser, evaluate_node, node_dependencies
from ._ast_cache import AstCache
from ._context import get_active_config
from ._errors import FormulaArgumentError, UnboundVariableError
from ._solver import DEFAULT_ORDER_CACHE, BulkSolver, SolveOptions
from ._store import ScopedStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from lark import Token

    from ._ast import FormulaParser, Node
    from ._config import CalqConfig
    from ._solver import ResolveOrderCache
    from ._values import Value

logger = logging.getLogger(__name__)

_NODE_TYPES = (Literal, Identifier, UnaryOp, BinaryOp, FunctionCall, Formula)

class Calculator:
    """Evaluate formulas against a variable memory.

    Example:
        >>> calc = Calculator()
        >>> calc.bind("price", 2).evaluate_strict("price * qty", {"qty": 3})
        6
        >>> calc.solve({"total": "price * 2", "tax": "total / 10"})
        {'total': 4, 'tax': 0.4}

    Args:
        config: Cache toggles for this calculator. When ``None`` the active
            process-wide configuration is read on every call.
        order_cache: Where resolve orders are memoized. Defaults to the
            process-wide cache.
        functions: Extra ``(name, callable)`` pairs callable from formulas.
        parser: Parser to use. Defaults to one shared by all calculators.

    """

    def __init__(
        self,
        config: CalqConfig | None = None,
        *,
        order_cache: ResolveOrderCache | None = None,
        functions: Iterable[tuple[str, Callable[..., Any]]] = (),
        parser: FormulaParser | None = None,
    ) -> None:
        self._config = config
        self._store = ScopedStore()
        self._ast_cache = AstCache()
        self.order_cache = order_cache if order_cache is not None else DEFAULT_ORDER_CACHE
        self.functions = FunctionRegistry(functions)
        self.parser = parser or default_parser()

    @property
    def config(self) -> CalqConfig:
        if self._config is None:
            return get_active_config()
        return self._config

    @property
    def memory(self) -> Mapping[str, Any]:
        """Read-only view of the current bindings."""
        return self._store.view()

    @property
    def ast_cache(self) -> AstCache:
        return self._ast_cache

    # -- functions ---------------------------------------------------------

    def add_function(self, name: str, func: Callable[..., Any]) -> Self:
        self.functions.register(name, func)
        return self

    def add_functions(self, functions: Iterable[tuple[str, Callable[..., Any]]]) -> Self:
        for name, func in functions:
            self.add_function(name, func)
        return self

    # -- memory ------------------------------------------------------------

    def bind(self, key_or_mapping: Any, value: Any = None) -> Self:
        """Bind one variable, or every pair of a mapping when ``value`` is omitted.

        Names are stored lower case; existing bindings are overwritten.
        """
        if value is None and isinstance(key_or_mapping, Mapping):
            self._store.bind_many(key_or_mapping)
        else:
            self._store.bind(key_or_mapping, value)
        return self

    store = bind

    def store_formula(self, name: str, formula: str) -> Self:
        """Bind ``name`` to a parsed formula so it is derived on read."""
        self._store.bind(name, Formula(formula, self.ast(formula)))
        return self

    def is_formula(self, name: str) -> bool:
        return self._store.is_formula(name)

    def clear(self) -> Self:
        self._store.clear()
        return self

    def is_empty(self) -> bool:
        return self._store.is_empty()

    # -- parsing -----------------------------------------------------------

    def tokenize(self, expression: str) -> list[Token]:
        return self.parser.tokenize(expression)

    def ast(self, expression: str | Node | Value) -> Node:
        """Return the syntax tree for an expression.

        Text goes through the AST cache; nodes are returned unchanged and
        plain values become literals.
        """
        if isinstance(expression, str):
            return self._ast_cache.fetch(expression, self.parser.parse, store=self.config.cache_ast)
        if isinstance(expression, _NODE_TYPES):
            return expression
        return Literal(expression)

    def dependencies(self, expression: str | Node, *, ignore_memory: bool = False) -> set[str]:
        """Return the variables an expression needs that are not yet known.

        Args:
            expression: Expression text or node.
            ignore_memory: Report every free variable, including ones memory
                already holds a value for.

        """
        node = self.ast(expression)
        if ignore_memory:
            return node_dependencies(node)
        return node_dependencies(node, self._store.view())

    # -- evaluation --------------------------------------------------------

    def evaluate_strict(self, expression: str | Node | Value, data: Mapping[Any, Any] | None = None) -> Value:
        """Evaluate an expression with ``data`` temporarily merged into memory.

        Memory is restored afterwards whether evaluation succeeds or raises.

        Raises:
            FormulaSyntaxError: If the expression cannot be parsed.
            UnboundVariableError: If a referenced variable has no value.
            DivideByZeroError: On division by zero.
            FormulaArgumentError: On bad operands or function arguments.

        """
        with self._store.overlay(data) as bindings:
            node = self.ast(expression)
            return evaluate_node(node, bindings, self.functions)

    def evaluate(
        self,
        expression: str | Node | Value,
        data: Mapping[Any, Any] | None = None,
        on_error: Callable[[Any], Any] | None = None,
    ) -> Any:
        """Evaluate like ``evaluate_strict`` but absorb unbound-variable and argument errors.

        On such an error, returns ``on_error(expression)`` if given, else ``None``.
        """
        try:
            return self.evaluate_strict(expression, data)
        except (UnboundVariableError, FormulaArgumentError) as e:
            logger.debug("Evaluation of %r failed: %s", expression, e)
            if on_error is not None:
                return on_error(expression)
            return None

    # -- bulk solving ------------------------------------------------------

    def solve(
        self,
        expressions: Mapping[Any, str],
        options: SolveOptions | None = None,
        *,
        error_handler: Callable[[Any], Any] | None = None,
        order_cache: ResolveOrderCache | None = None,
        **hooks: Any,
    ) -> dict[Any, Any]:
        """Solve a batch, recording ``UNDEFINED`` for unbound or division errors.

        Hooks may be passed as a ``SolveOptions`` or as keyword arguments
        named after its fields.
        """
        solver = BulkSolver(expressions, self, _solve_options(options, hooks), order_cache=order_cache)
        return solver.solve(error_handler)

    def solve_strict(
        self,
        expressions: Mapping[Any, str],
        options: SolveOptions | None = None,
        *,
        order_cache: ResolveOrderCache | None = None,
        **hooks: Any,
    ) -> dict[Any, Any]:
        """Solve a batch, raising the first unbound-variable or division error."""
        solver = BulkSolver(expressions, self, _solve_options(options, hooks), order_cache=order_cache)
        return solver.solve_strict()


def _solve_options(options: SolveOptions | None, hooks: dict[str, Any]) -> SolveOptions:
    if options is not None and hooks:
        msg = "Pass hooks either as SolveOptions or as keyword arguments, not both"
        raise TypeError(msg)
    return options or SolveOptions(**hooks)
