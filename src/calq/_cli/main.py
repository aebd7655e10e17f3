import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from calq._calculator import Calculator
from calq._errors import FormulaError
from calq._io import BatchFileError, export_results, load_batch_file
from calq._values import Undefined

from .config import CliConfig, ConfigError, get_config

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Calq CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _parse_literal(text: str) -> Any:
    """Parse a command-line value: int, float, true/false, else the raw string."""
    lowered = text.strip().lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


def _parse_bindings(pairs: list[str]) -> dict[str, Any]:
    bindings: dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            msg = f"Invalid variable '{pair}'. Expected format: name=value"
            raise typer.BadParameter(msg)
        name, value = pair.split("=", 1)
        bindings[name.strip()] = _parse_literal(value)
    return bindings


def _format_value(value: Any) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if isinstance(value, Undefined):
        return "[yellow]undefined[/yellow]"
    return escape(repr(value) if isinstance(value, str) else str(value))


def _get_cli_config() -> CliConfig:
    try:
        return get_config()
    except ConfigError as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _load_calculator() -> Calculator:
    return Calculator(config=_get_cli_config().calq)


def _report_formula_error(error: FormulaError) -> None:
    where = f" (variable '{error.recipient_variable}')" if error.recipient_variable else ""
    err_console.print(f"[red]✗ {type(error).__name__}{escape(where)}: {escape(str(error))}[/red]")


@app.command("eval")
def eval_(
    expression: Annotated[str, typer.Argument(help="Formula to evaluate")],
    *,
    var: Annotated[
        list[str] | None,
        typer.Option("-v", "--var", help="Variable binding as name=value (repeatable)"),
    ] = None,
) -> None:
    """Evaluate a single formula."""
    calculator = _load_calculator()
    bindings = _parse_bindings(var or [])

    try:
        value = calculator.evaluate_strict(expression, bindings)
    except FormulaError as e:
        _report_formula_error(e)
        raise typer.Exit(code=1) from e

    out_console.print(_format_value(value))


@app.command()
def deps(
    expression: Annotated[str, typer.Argument(help="Formula to inspect")],
    *,
    var: Annotated[
        list[str] | None,
        typer.Option("-v", "--var", help="Variable binding as name=value (repeatable)"),
    ] = None,
    all_: Annotated[
        bool,
        typer.Option("--all", help="Include variables that already have a value"),
    ] = False,
) -> None:
    """List the variables a formula depends on."""
    calculator = _load_calculator()
    calculator.bind(_parse_bindings(var or []))

    try:
        names = calculator.dependencies(expression, ignore_memory=all_)
    except FormulaError as e:
        _report_formula_error(e)
        raise typer.Exit(code=1) from e

    for name in sorted(names):
        out_console.print(escape(name))


@app.command()
def solve(  # noqa: PLR0913
    input: Annotated[  # noqa: A002
        Path | None,
        typer.Argument(help="Path to batch TOML file (defaults to the configured input)"),
    ] = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Path to output TOML file"),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Stop at the first unbound variable or division by zero"),
    ] = False,
    always_evaluate: Annotated[
        bool,
        typer.Option("--always-evaluate", help="Re-evaluate expressions even when a value is bound"),
    ] = False,
    ignore_errors: Annotated[
        bool,
        typer.Option("--ignore-errors", help="Skip variables that fail to evaluate"),
    ] = False,
) -> None:
    """Solve a batch of interdependent formulas."""
    err_console.print()

    cli_config = _get_cli_config()

    input_path = input or cli_config.input
    if input_path is None:
        err_console.print("[red]Error: No batch file given and no \\[tool.calq].input configured[/red]")
        raise typer.Exit(code=1)
    output_path = output or cli_config.output

    err_console.print(f"[cyan]Loading batch from:[/cyan] {input_path}")
    try:
        batch = load_batch_file(input_path)
    except (OSError, BatchFileError) as e:
        err_console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e

    calculator = Calculator(config=cli_config.calq)
    options = batch.solve_options(always_evaluate=always_evaluate, ignore_errors=ignore_errors)

    err_console.print(f"[cyan]Solving {len(batch.solve)} expressions...[/cyan]")
    try:
        batch.apply_to(calculator)
        if strict:
            results = calculator.solve_strict(batch.solve, options)
        else:
            results = calculator.solve(batch.solve, options)
    except FormulaError as e:
        _report_formula_error(e)
        raise typer.Exit(code=1) from e
    err_console.print()

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Variable", style="bold")
    table.add_column("Expression", style="dim")
    table.add_column("Value", justify="right")
    for name, value in results.items():
        table.add_row(escape(name), escape(str(batch.solve[name])), _format_value(value))
    out_console.print(Panel(table, title="[bold]Results[/bold]", border_style="cyan"))

    unresolved = [name for name, value in results.items() if value is None or isinstance(value, Undefined)]
    if unresolved:
        err_console.print(f"[yellow]⚠ {len(unresolved)} unresolved: {escape(', '.join(unresolved))}[/yellow]")

    if output_path is not None:
        err_console.print(f"[cyan]Exporting results to:[/cyan] {output_path}")
        export_results(results, output_path)

    err_console.print()
    err_console.print("[green]✓ Solve complete[/green]")
    err_console.print()


def main() -> None:
    app()
