"""Node types of the formula syntax tree."""

from __future__ import annotations

from dataclasses import dataclass

from calq._values import Value


@dataclass(frozen=True, slots=True)
class Literal:
    """A number, string or boolean written directly in the formula."""

    value: Value


@dataclass(frozen=True, slots=True)
class Identifier:
    """A variable reference. ``name`` is always lower case."""

    name: str


@dataclass(frozen=True, slots=True)
class UnaryOp:
    """Prefix operator: ``-``, ``+`` or ``not``."""

    operator: str
    operand: Node


@dataclass(frozen=True, slots=True)
class BinaryOp:
    """Infix operator.

    ``operator`` is one of ``+ - * / % ^ & = != < > <= >= and or``.
    ``<>`` is normalized to ``!=`` by the parser.
    """

    operator: str
    left: Node
    right: Node


@dataclass(frozen=True, slots=True)
class FunctionCall:
    """A call to a registered function. ``name`` is always lower case."""

    name: str
    arguments: tuple[Node, ...]


@dataclass(frozen=True, slots=True)
class Formula:
    """A parsed expression stored in place of a value.

    Binding a ``Formula`` to a variable makes it a derived variable: reading
    it evaluates ``node`` against the current bindings, and it contributes
    the variables of ``node`` to the dependencies of anything that reads it.
    """

    source: str
    node: Node


type Node = Literal | Identifier | UnaryOp | BinaryOp | FunctionCall | Formula
