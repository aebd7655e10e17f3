"""Syntax tree module for calq formulas.

This module turns formula text into a closed set of immutable nodes and
provides the two operations every node supports.

Key types:
- Node: Union of Literal, Identifier, UnaryOp, BinaryOp, FunctionCall, Formula
- FormulaParser: Lark-based tokenizer and parser
- default_parser: The lazily built parser shared across the process
- FunctionRegistry: Functions callable from formulas
- evaluate_node: Compute a node's value against bindings
- node_dependencies: Extract a node's free variables
"""

from ._evaluate import evaluate_node, node_dependencies
from ._functions import FunctionRegistry
from ._nodes import BinaryOp, Formula, FunctionCall, Identifier, Literal, Node, UnaryOp
from ._parser import FormulaParser, default_parser, parse, tokenize

__all__ = [
    "BinaryOp",
    "Formula",
    "FormulaParser",
    "FunctionCall",
    "FunctionRegistry",
    "Identifier",
    "Literal",
    "Node",
    "UnaryOp",
    "default_parser",
    "evaluate_node",
    "node_dependencies",
    "parse",
    "tokenize",
]
