from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ._solver import SolveOptions
from ._values import Undefined

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ._calculator import Calculator

logger = logging.getLogger(__name__)

LiteralValue = int | float | bool | str


class BatchFileError(Exception):
    """Error loading a batch file."""


class BatchOptions(BaseModel):
    """The ``[options]`` table of a batch file."""

    model_config = ConfigDict(extra="forbid")

    always_evaluate: bool = False
    ignore_errors: bool = False


class BatchFile(BaseModel):
    """A batch of formulas to solve, as stored in TOML.

    Example:
        [data]
        price = 2

        [formulas]
        subtotal = "price * qty"

        [solve]
        qty = "3"
        total = "subtotal * 1.1"

        [options]
        ignore_errors = true

    """

    model_config = ConfigDict(extra="forbid")

    data: dict[str, LiteralValue] = Field(default_factory=dict)
    formulas: dict[str, str] = Field(default_factory=dict)
    solve: dict[str, LiteralValue] = Field(default_factory=dict)
    options: BatchOptions = Field(default_factory=BatchOptions)

    def apply_to(self, calculator: Calculator) -> Calculator:
        """Bind ``data`` and install ``formulas`` into a calculator."""
        calculator.bind(self.data)
        for name, formula in self.formulas.items():
            calculator.store_formula(name, formula)
        return calculator

    def solve_options(self, **overrides: bool) -> SolveOptions:
        """Build solve options from ``[options]``, with truthy overrides winning."""
        return SolveOptions(
            always_evaluate=overrides.get("always_evaluate", False) or self.options.always_evaluate,
            ignore_errors=overrides.get("ignore_errors", False) or self.options.ignore_errors,
        )


def load_batch_file(input_path: Path | str) -> BatchFile:
    """Load and validate a batch file.

    Raises:
        BatchFileError: If the file is not valid TOML or does not match the batch schema.

    """
    input_path = Path(input_path)
    try:
        with input_path.open("rb") as f:
            toml_contents = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {input_path}: {e}"
        raise BatchFileError(msg) from e

    try:
        batch = BatchFile.model_validate(toml_contents)
    except ValidationError as e:
        msg = f"Invalid batch file {input_path}: {e}"
        raise BatchFileError(msg) from e

    logger.debug(f"Loaded batch of {len(batch.solve)} expressions from {input_path}")
    return batch


def _is_unresolved(value: Any) -> bool:
    return value is None or isinstance(value, Undefined)


def results_to_dict(results: Mapping[Any, Any]) -> dict[str, Any]:
    """Convert solve results to a TOML-compatible dictionary.

    TOML cannot represent ``None`` or ``UNDEFINED``; such variables are
    listed under ``unresolved`` instead of ``results``.

    Returns:
        ``{"results": {name: value, ...}, "unresolved": [name, ...]}``

    """
    resolved = {str(k): v for k, v in results.items() if not _is_unresolved(v)}
    unresolved = [str(k) for k, v in results.items() if _is_unresolved(v)]
    return {"results": resolved, "unresolved": unresolved}


def export_results(results: Mapping[Any, Any], output_path: Path | str) -> None:
    """Export solve results to a TOML file."""
    toml_data = results_to_dict(results)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("wb") as f:
        tomli_w.dump(toml_data, f)

    logger.debug(f"Exported results to {output_path}")
