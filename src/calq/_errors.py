"""Exception hierarchy for calq."""

from __future__ import annotations

from collections.abc import Iterable


class FormulaError(Exception):
    """Base class for all formula errors.

    Attributes:
        recipient_variable: Name of the batch variable being solved when the
            error was raised. Set by the bulk solver before the error reaches
            an error handler; ``None`` outside of a solve.

    """

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self.recipient_variable: str | None = None


class FormulaSyntaxError(FormulaError):
    """Malformed expression text."""

    def __init__(self, msg: str, expression: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(msg)
        self.expression = expression
        self.line = line
        self.column = column


class UnboundVariableError(FormulaError):
    """A referenced variable has no value and no way to derive one."""

    def __init__(self, variable: str, unbound_variables: Iterable[str] | None = None) -> None:
        self.variable = variable
        self.unbound_variables = sorted(set(unbound_variables or ()) | {variable})
        super().__init__(f"No value provided for variable '{variable}'")


class DivideByZeroError(FormulaError, ZeroDivisionError):
    """Division or modulo by zero."""


class CycleError(FormulaError, ValueError):
    """No evaluation order exists because the dependencies form a cycle."""

    def __init__(self, msg: str, unresolved: Iterable[object] = ()) -> None:
        super().__init__(msg)
        self.unresolved = frozenset(unresolved)


class FormulaArgumentError(FormulaError, ValueError):
    """Bad arguments to a function or operator."""
