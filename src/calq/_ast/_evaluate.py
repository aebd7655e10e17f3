"""Evaluation and free-variable extraction over syntax trees."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any

from calq._errors import CycleError, DivideByZeroError, FormulaArgumentError, UnboundVariableError
from calq._values import Undefined

from ._nodes import BinaryOp, Formula, FunctionCall, Identifier, Literal, UnaryOp

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from calq._values import Value

    from ._functions import FunctionRegistry
    from ._nodes import Node

_ARITHMETIC: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "^": operator.pow,
}

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _require_numbers(op: str, *values: object) -> None:
    for value in values:
        if not _is_number(value):
            msg = f"Operator '{op}' expects numeric operands, got {value!r}"
            raise FormulaArgumentError(msg)


def _to_text(value: Value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _divide(left: int | float, right: int | float) -> int | float:
    if right == 0:
        msg = f"Division by zero: {left!r} / {right!r}"
        raise DivideByZeroError(msg)
    if isinstance(left, int) and isinstance(right, int) and left % right == 0:
        return left // right
    return left / right


def _modulo(left: int | float, right: int | float) -> int | float:
    if right == 0:
        msg = f"Division by zero: {left!r} % {right!r}"
        raise DivideByZeroError(msg)
    return left % right


def _formula_cycle(path: tuple[str, ...], name: str) -> CycleError:
    cycle = (*path[path.index(name) :], name)
    msg = f"Cycle detected in stored formulas: {' -> '.join(cycle)}"
    return CycleError(msg, cycle)


def _lookup(
    name: str,
    bindings: Mapping[str, Any],
    functions: FunctionRegistry,
    resolving: tuple[str, ...],
) -> Value:
    value = bindings.get(name)
    if value is None or isinstance(value, Undefined):
        raise UnboundVariableError(name)
    if isinstance(value, Formula):
        if name in resolving:
            raise _formula_cycle(resolving, name)
        return _evaluate(value, bindings, functions, (*resolving, name))
    return value


def _apply_binary(op: str, left: Value, right: Value) -> Value:  # noqa: PLR0911
    match op:
        case "=":
            return left == right
        case "!=":
            return left != right
        case "&":
            return _to_text(left) + _to_text(right)
        case "/":
            _require_numbers(op, left, right)
            return _divide(left, right)  # type: ignore[arg-type]
        case "%":
            _require_numbers(op, left, right)
            return _modulo(left, right)  # type: ignore[arg-type]
        case _ if op in _ARITHMETIC:
            _require_numbers(op, left, right)
            try:
                result = _ARITHMETIC[op](left, right)
            except ZeroDivisionError as e:
                # 0 ^ -1
                msg = f"Division by zero: {left!r} {op} {right!r}"
                raise DivideByZeroError(msg) from e
            except OverflowError as e:
                msg = f"Numeric overflow: {left!r} {op} {right!r}"
                raise FormulaArgumentError(msg) from e
            if isinstance(result, complex):
                msg = f"Result of {left!r} {op} {right!r} is not a real number"
                raise FormulaArgumentError(msg)
            return result
        case _ if op in _ORDERING:
            try:
                return _ORDERING[op](left, right)
            except TypeError as e:
                msg = f"Cannot compare {left!r} {op} {right!r}"
                raise FormulaArgumentError(msg) from e
        case _:
            msg = f"Unknown operator '{op}'"
            raise FormulaArgumentError(msg)


def evaluate_node(node: Node, bindings: Mapping[str, Any], functions: FunctionRegistry) -> Value:
    """Evaluate a syntax tree against variable bindings.

    Args:
        node: The tree to evaluate.
        bindings: Canonical variable name to value or ``Formula``.
        functions: Registry used to resolve function calls.

    Returns:
        The computed value.

    Raises:
        UnboundVariableError: If a referenced variable has no usable value.
        DivideByZeroError: On division or modulo by zero.
        FormulaArgumentError: On operand type mismatches or bad function calls.
        CycleError: If a bound formula refers back to itself, directly or
            through other bound formulas.

    """
    return _evaluate(node, bindings, functions, ())


def _evaluate(
    node: Node,
    bindings: Mapping[str, Any],
    functions: FunctionRegistry,
    resolving: tuple[str, ...],
) -> Value:
    # resolving: names of the bound formulas currently being expanded, outermost first
    match node:
        case Literal(value):
            return value
        case Identifier(name):
            return _lookup(name, bindings, functions, resolving)
        case Formula(node=inner):
            return _evaluate(inner, bindings, functions, resolving)
        case UnaryOp("not", operand):
            return not _evaluate(operand, bindings, functions, resolving)
        case UnaryOp(op, operand):
            value = _evaluate(operand, bindings, functions, resolving)
            _require_numbers(op, value)
            return -value if op == "-" else value
        case BinaryOp("and", left, right):
            return bool(_evaluate(left, bindings, functions, resolving)) and bool(
                _evaluate(right, bindings, functions, resolving),
            )
        case BinaryOp("or", left, right):
            return bool(_evaluate(left, bindings, functions, resolving)) or bool(
                _evaluate(right, bindings, functions, resolving),
            )
        case BinaryOp(op, left, right):
            return _apply_binary(
                op,
                _evaluate(left, bindings, functions, resolving),
                _evaluate(right, bindings, functions, resolving),
            )
        case FunctionCall("if", arguments):
            if len(arguments) != 3:  # noqa: PLR2004
                msg = f"IF() expects 3 arguments, got {len(arguments)}"
                raise FormulaArgumentError(msg)
            condition, when_true, when_false = arguments
            branch = when_true if _evaluate(condition, bindings, functions, resolving) else when_false
            return _evaluate(branch, bindings, functions, resolving)
        case FunctionCall(name, arguments):
            args = [_evaluate(arg, bindings, functions, resolving) for arg in arguments]
            return functions.call(name, args)
        case _:
            msg = f"Unknown node type: {type(node)}"
            raise TypeError(msg)


# Stack marker: the formula bound to this name has been fully expanded
type _Leave = tuple[str]


def node_dependencies(node: Node, bindings: Mapping[str, Any] | None = None) -> set[str]:
    """Return the free variables of a syntax tree.

    Args:
        node: The tree to inspect.
        bindings: When given, variables bound to plain values are treated as
            known and left out, and variables bound to a ``Formula`` contribute
            that formula's own dependencies instead of themselves.

    Returns:
        Set of canonical variable names.

    Raises:
        CycleError: If a bound formula reaches itself again while it is
            still being expanded. A formula reached twice along separate
            branches is not a cycle.

    """
    found: set[str] = set()
    # Formulas on the current expansion path, outermost first
    path: dict[str, None] = {}
    expanded: set[str] = set()
    stack: list[Node | _Leave] = [node]
    while stack:
        current = stack.pop()
        match current:
            case (str() as leaving,):
                del path[leaving]
                expanded.add(leaving)
            case Literal():
                pass
            case Identifier(name):
                bound = None if bindings is None else bindings.get(name)
                if isinstance(bound, Formula):
                    if name in path:
                        raise _formula_cycle(tuple(path), name)
                    if name not in expanded:
                        path[name] = None
                        stack.extend(((name,), bound))
                elif bound is None or isinstance(bound, Undefined):
                    found.add(name)
            case Formula(node=inner):
                stack.append(inner)
            case UnaryOp(operand=operand):
                stack.append(operand)
            case BinaryOp(left=left, right=right):
                stack.extend((right, left))
            case FunctionCall(arguments=arguments):
                stack.extend(reversed(arguments))
            case _:
                msg = f"Unknown node type: {type(current)}"
                raise TypeError(msg)
    return found
