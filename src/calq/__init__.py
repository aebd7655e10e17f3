"""Embeddable formula evaluation and dependency-ordered bulk solving."""

__all__ = [
    "DEFAULT_ORDER_CACHE",
    "UNDEFINED",
    "AstCache",
    "BatchFile",
    "BatchFileError",
    "BulkSolver",
    "CalqConfig",
    "Calculator",
    "CycleError",
    "DependencyGraph",
    "DivideByZeroError",
    "Formula",
    "FormulaArgumentError",
    "FormulaError",
    "FormulaParser",
    "FormulaSyntaxError",
    "FunctionRegistry",
    "ResolveOrderCache",
    "ScopedStore",
    "SolveOptions",
    "UnboundVariableError",
    "Undefined",
    "build_dependency_map",
    "configured",
    "export_results",
    "find_resolve_order",
    "get_active_config",
    "load_batch_file",
    "parse",
    "raise_exception_handler",
    "return_undefined_handler",
    "set_active_config",
    "tokenize",
    "topological_sort",
]

from ._ast import Formula, FormulaParser, FunctionRegistry, parse, tokenize
from ._ast_cache import AstCache
from ._calculator import Calculator
from ._config import CalqConfig, configured
from ._context import get_active_config, set_active_config
from ._errors import (
    CycleError,
    DivideByZeroError,
    FormulaArgumentError,
    FormulaError,
    FormulaSyntaxError,
    UnboundVariableError,
)
from ._graph import DependencyGraph, find_resolve_order, topological_sort
from ._io import BatchFile, BatchFileError, export_results, load_batch_file
from ._solver import (
    DEFAULT_ORDER_CACHE,
    BulkSolver,
    ResolveOrderCache,
    SolveOptions,
    build_dependency_map,
    raise_exception_handler,
    return_undefined_handler,
)
from ._store import ScopedStore
from ._values import UNDEFINED, Undefined
