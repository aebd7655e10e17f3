"""Registry of functions callable from formulas.

Only a handful of functions ship by default. Hosts register their own with
``Calculator.add_function``. ``if`` is not a registered function: its
branches are evaluated lazily by the evaluator.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from calq._errors import FormulaArgumentError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from calq._values import Value


def _numeric_args(name: str, args: tuple[Any, ...]) -> tuple[int | float, ...]:
    if not args:
        msg = f"{name.upper()}() requires at least one argument"
        raise FormulaArgumentError(msg)
    for arg in args:
        if isinstance(arg, bool) or not isinstance(arg, int | float):
            msg = f"{name.upper()}() expects numeric arguments, got {arg!r}"
            raise FormulaArgumentError(msg)
    return args


def _fn_min(*args: Any) -> int | float:
    return min(_numeric_args("min", args))


def _fn_max(*args: Any) -> int | float:
    return max(_numeric_args("max", args))


def _fn_abs(value: Any) -> int | float:
    (number,) = _numeric_args("abs", (value,))
    return abs(number)


def _fn_round(value: Any, digits: Any = 0) -> int | float:
    number, places = _numeric_args("round", (value, digits))
    # Half away from zero, not Python's banker's rounding
    factor = 10 ** int(places)
    rounded = math.floor(abs(number) * factor + 0.5) / factor
    rounded = math.copysign(rounded, number)
    if int(places) <= 0:
        return int(rounded)
    return rounded


_BUILTINS: dict[str, Callable[..., Any]] = {
    "min": _fn_min,
    "max": _fn_max,
    "abs": _fn_abs,
    "round": _fn_round,
}


class FunctionRegistry:
    """Case-insensitive mapping of function name to implementation.

    Starts with the builtins and can be extended with custom functions.
    """

    __slots__ = ("_functions",)

    def __init__(self, functions: Iterable[tuple[str, Callable[..., Any]]] = ()) -> None:
        self._functions: dict[str, Callable[..., Any]] = dict(_BUILTINS)
        for name, func in functions:
            self.register(name, func)

    def register(self, name: str, func: Callable[..., Any]) -> None:
        key = name.lower()
        if key == "if":
            msg = "'if' is reserved and cannot be redefined"
            raise FormulaArgumentError(msg)
        self._functions[key] = func

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._functions.get(name.lower())

    def has(self, name: str) -> bool:
        return name.lower() in self._functions

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys()) | {"if"}

    def call(self, name: str, args: list[Value]) -> Value:
        """Call a registered function.

        Raises:
            FormulaArgumentError: If the function is unknown or rejects its arguments.

        """
        func = self.get(name)
        if func is None:
            msg = f"Undefined function {name.upper()}()"
            raise FormulaArgumentError(msg)
        try:
            return func(*args)
        except TypeError as e:
            msg = f"Wrong arguments for {name.upper()}(): {e}"
            raise FormulaArgumentError(msg) from e
