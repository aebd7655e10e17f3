"""Formula tokenizer and parser.

Parses formula strings into syntax trees using the Lark LALR parser.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput

from calq._errors import FormulaSyntaxError

from ._grammar import FORMULA_GRAMMAR
from ._nodes import BinaryOp, FunctionCall, Identifier, Literal, UnaryOp

if TYPE_CHECKING:
    from ._nodes import Node

logger = logging.getLogger(__name__)


class _NodeTransformer(Transformer):
    """Transform the Lark parse tree into syntax tree nodes."""

    @v_args(inline=True)
    def number(self, token: Token) -> Literal:
        text = str(token)
        if any(c in text for c in ".eE"):
            return Literal(float(text))
        return Literal(int(text))

    @v_args(inline=True)
    def string(self, token: Token) -> Literal:
        return Literal(str(token)[1:-1])

    def true(self, _items: list[Token]) -> Literal:
        return Literal(True)  # noqa: FBT003

    def false(self, _items: list[Token]) -> Literal:
        return Literal(False)  # noqa: FBT003

    @v_args(inline=True)
    def identifier(self, token: Token) -> Identifier:
        return Identifier(str(token).lower())

    def function_call(self, items: list) -> FunctionCall:
        name, arguments = items
        return FunctionCall(str(name).lower(), tuple(arguments or ()))

    def arguments(self, items: list) -> list:
        return list(items)

    @v_args(inline=True)
    def add(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("+", left, right)

    @v_args(inline=True)
    def sub(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("-", left, right)

    @v_args(inline=True)
    def mul(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("*", left, right)

    @v_args(inline=True)
    def div(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("/", left, right)

    @v_args(inline=True)
    def mod(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("%", left, right)

    @v_args(inline=True)
    def pow(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("^", left, right)

    @v_args(inline=True)
    def string_concat(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("&", left, right)

    @v_args(inline=True)
    def eq(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("=", left, right)

    @v_args(inline=True)
    def ne(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("!=", left, right)

    @v_args(inline=True)
    def lt(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("<", left, right)

    @v_args(inline=True)
    def gt(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp(">", left, right)

    @v_args(inline=True)
    def le(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("<=", left, right)

    @v_args(inline=True)
    def ge(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp(">=", left, right)

    @v_args(inline=True)
    def and_op(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("and", left, right)

    @v_args(inline=True)
    def or_op(self, left: Node, right: Node) -> BinaryOp:
        return BinaryOp("or", left, right)

    @v_args(inline=True)
    def not_op(self, operand: Node) -> UnaryOp:
        return UnaryOp("not", operand)

    @v_args(inline=True)
    def neg(self, operand: Node) -> UnaryOp:
        return UnaryOp("-", operand)

    @v_args(inline=True)
    def pos(self, operand: Node) -> UnaryOp:
        return UnaryOp("+", operand)


class FormulaParser:
    """Parser for calq formulas.

    A single instance is safe to share: Lark's LALR parser keeps no state
    between calls.
    """

    def __init__(self) -> None:
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=_NodeTransformer(),
        )
        self._lexer = Lark(FORMULA_GRAMMAR, parser="lalr", lexer="basic")

    def tokenize(self, text: str) -> list[Token]:
        """Split formula text into tokens.

        Raises:
            FormulaSyntaxError: If the text contains a character no token matches.

        """
        try:
            return list(self._lexer.lex(text))
        except UnexpectedInput as e:
            raise _syntax_error(text, e) from e

    def parse(self, text: str) -> Node:
        """Parse formula text into a syntax tree.

        Raises:
            FormulaSyntaxError: If the text is not a valid formula.

        """
        if not text or not text.strip():
            msg = "Empty expression"
            raise FormulaSyntaxError(msg, text)
        try:
            node = self._parser.parse(text)
        except UnexpectedInput as e:
            raise _syntax_error(text, e) from e
        logger.debug("Parsed %r -> %r", text, node)
        return node


def _syntax_error(text: str, error: UnexpectedInput) -> FormulaSyntaxError:
    line = getattr(error, "line", None)
    column = getattr(error, "column", None)
    msg = f"Invalid formula syntax in {text!r}: {error}"
    return FormulaSyntaxError(msg, text, line=line, column=column)


_shared_parser: FormulaParser | None = None


def default_parser() -> FormulaParser:
    """Return the parser shared by module-level helpers and calculators."""
    global _shared_parser  # noqa: PLW0603
    if _shared_parser is None:
        _shared_parser = FormulaParser()
    return _shared_parser


def tokenize(text: str) -> list[Token]:
    """Tokenize formula text with the shared parser."""
    return default_parser().tokenize(text)


def parse(text: str) -> Node:
    """Parse formula text with the shared parser."""
    return default_parser().parse(text)
