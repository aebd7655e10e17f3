"""Tests for syntax tree evaluation and free-variable extraction."""

from typing import Any

import pytest

from calq import UNDEFINED, CycleError, DivideByZeroError, FormulaArgumentError, UnboundVariableError
from calq._ast import Formula, FunctionRegistry, evaluate_node, node_dependencies, parse


def _eval(text: str, bindings: dict[str, Any] | None = None, functions: FunctionRegistry | None = None) -> Any:
    return evaluate_node(parse(text), bindings or {}, functions or FunctionRegistry())


def _formula(text: str) -> Formula:
    return Formula(text, parse(text))


class TestArithmetic:
    """Tests for numeric operators."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("10 - 4 - 3", 3),
            ("2 ^ 3 ^ 2", 512),
            ("7 % 3", 1),
            ("-2 + 5", 3),
            ("+4", 4),
            ("1.5 * 2", 3.0),
        ],
    )
    def test_operators(self, text: str, expected: float) -> None:
        """Test precedence and associativity of arithmetic operators."""
        assert _eval(text) == expected

    def test_exact_integer_division_stays_integer(self) -> None:
        """Test that dividing integers evenly yields an int."""
        result = _eval("6 / 3")
        assert result == 2
        assert isinstance(result, int)

    def test_inexact_division_is_float(self) -> None:
        """Test that an uneven integer division yields a float."""
        assert _eval("1 / 4") == 0.25

    @pytest.mark.parametrize("text", ["1 / 0", "1 % 0", "1.5 / 0.0", "0 ^ -1"])
    def test_division_by_zero(self, text: str) -> None:
        """Test that every zero divisor raises DivideByZeroError."""
        with pytest.raises(DivideByZeroError):
            _eval(text)

    def test_division_by_zero_is_zero_division_error(self) -> None:
        """Test that DivideByZeroError can be caught as ZeroDivisionError."""
        with pytest.raises(ZeroDivisionError):
            _eval("x / 0", {"x": 1})

    def test_non_numeric_operand(self) -> None:
        """Test that text operands are rejected by arithmetic."""
        with pytest.raises(FormulaArgumentError, match="numeric"):
            _eval("'a' + 1")

    def test_boolean_is_not_numeric(self) -> None:
        """Test that booleans are not treated as 0 or 1."""
        with pytest.raises(FormulaArgumentError):
            _eval("true * 2")

    def test_complex_result_rejected(self) -> None:
        """Test that a fractional power of a negative number is rejected."""
        with pytest.raises(FormulaArgumentError, match="real number"):
            _eval("(-8) ^ 0.5")


class TestComparisonAndLogic:
    """Tests for comparison and boolean operators."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("1 < 2", True),
            ("2 <= 1", False),
            ("3 >= 3", True),
            ("1 = 1", True),
            ("1 <> 2", True),
            ("'a' = 'a'", True),
            ("'a' != 1", True),
            ("true and false", False),
            ("true or false", True),
            ("not false", True),
        ],
    )
    def test_operators(self, text: str, expected: bool) -> None:  # noqa: FBT001
        """Test that comparisons and logic produce booleans."""
        assert _eval(text) is expected

    def test_mixed_type_ordering(self) -> None:
        """Test that ordering text against a number is an argument error."""
        with pytest.raises(FormulaArgumentError, match="Cannot compare"):
            _eval("'a' < 1")

    def test_and_short_circuits(self) -> None:
        """Test that 'and' skips its right side when the left is false."""
        assert _eval("false and missing") is False

    def test_or_short_circuits(self) -> None:
        """Test that 'or' skips its right side when the left is true."""
        assert _eval("true or missing") is True


class TestConcatenation:
    """Tests for the '&' operator."""

    def test_concatenates_text(self) -> None:
        """Test that numbers are rendered into the joined text."""
        assert _eval("'total: ' & 5") == "total: 5"

    def test_booleans_render_lower_case(self) -> None:
        """Test that booleans render as 'true' and 'false'."""
        assert _eval("'flag=' & true") == "flag=true"


class TestVariables:
    """Tests for variable lookup."""

    def test_lookup(self) -> None:
        """Test that identifiers read their bound values."""
        assert _eval("price * qty", {"price": 2, "qty": 3}) == 6

    def test_unbound_variable(self) -> None:
        """Test the error raised for a variable with no binding."""
        with pytest.raises(UnboundVariableError) as exc_info:
            _eval("price * qty", {"price": 2})
        assert exc_info.value.variable == "qty"
        assert exc_info.value.unbound_variables == ["qty"]
        assert str(exc_info.value) == "No value provided for variable 'qty'"

    @pytest.mark.parametrize("value", [None, UNDEFINED])
    def test_none_and_undefined_are_unbound(self, value: Any) -> None:
        """Test that None and UNDEFINED count as missing values."""
        with pytest.raises(UnboundVariableError):
            _eval("a + 1", {"a": value})

    def test_formula_binding_is_evaluated(self) -> None:
        """Test that a variable bound to a formula yields the formula's value."""
        bindings = {"a": 1, "b": 2, "total": _formula("a + b")}
        assert _eval("total * 2", bindings) == 6

    def test_nested_formula_bindings(self) -> None:
        """Test that formulas may refer to other formulas."""
        bindings = {"a": 1, "double": _formula("a * 2"), "quad": _formula("double * 2")}
        assert _eval("quad", bindings) == 4

    def test_shared_formula_is_not_a_cycle(self) -> None:
        """Test that two branches reading the same formula evaluate normally."""
        bindings = {"x": 3, "base": _formula("x * 2"), "left": _formula("base + 1"), "right": _formula("base - 1")}
        assert _eval("left * right", bindings) == 35

    def test_self_referencing_formula_raises_cycle_error(self) -> None:
        """Test that a formula reading itself raises CycleError instead of recursing forever."""
        with pytest.raises(CycleError, match="loop -> loop") as exc_info:
            _eval("loop", {"loop": _formula("loop + 1")})
        assert exc_info.value.unresolved == {"loop"}

    def test_mutually_referencing_formulas_raise_cycle_error(self) -> None:
        """Test that a cycle spanning two formulas raises CycleError."""
        bindings = {"a": _formula("b + 1"), "b": _formula("a + 1")}
        with pytest.raises(CycleError, match="a -> b -> a") as exc_info:
            _eval("a * 2", bindings)
        assert exc_info.value.unresolved == {"a", "b"}


class TestFunctions:
    """Tests for built-in and registered functions."""

    def test_builtins(self) -> None:
        """Test min, max and abs."""
        assert _eval("min(3, 1, 2)") == 1
        assert _eval("max(3, 1, 2)") == 3
        assert _eval("abs(-4)") == 4

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("round(2.5)", 3),
            ("round(-2.5)", -3),
            ("round(1.25, 1)", 1.3),
            ("round(1234, -2)", 1200),
        ],
    )
    def test_round_half_away_from_zero(self, text: str, expected: float) -> None:
        """Test that round() moves halves away from zero."""
        assert _eval(text) == expected

    def test_if_evaluates_only_the_taken_branch(self) -> None:
        """Test that the branch not taken is never evaluated."""
        assert _eval("if(x > 0, 'pos', 1 / 0)", {"x": 1}) == "pos"
        assert _eval("if(x > 0, missing, 'neg')", {"x": -1}) == "neg"

    def test_if_requires_three_arguments(self) -> None:
        """Test that if() rejects any other argument count."""
        with pytest.raises(FormulaArgumentError, match="3 arguments"):
            _eval("if(true, 1)")

    def test_unknown_function(self) -> None:
        """Test that calling an unregistered function fails."""
        with pytest.raises(FormulaArgumentError, match="Undefined function"):
            _eval("nope(1)")

    def test_wrong_argument_count(self) -> None:
        """Test that a function called with the wrong arity fails."""
        with pytest.raises(FormulaArgumentError, match="Wrong arguments"):
            _eval("abs(1, 2)")

    def test_non_numeric_argument(self) -> None:
        """Test that numeric built-ins reject text arguments."""
        with pytest.raises(FormulaArgumentError, match="numeric"):
            _eval("max(1, 'a')")

    def test_custom_function_is_case_insensitive(self) -> None:
        """Test that registered functions resolve regardless of case."""
        functions = FunctionRegistry([("Double", lambda x: x * 2)])
        assert _eval("DOUBLE(21)", functions=functions) == 42
        assert functions.has("double")
        assert "if" in functions.supported_functions

    def test_if_cannot_be_registered(self) -> None:
        """Test that the lazy if() cannot be overridden."""
        with pytest.raises(FormulaArgumentError, match="reserved"):
            FunctionRegistry([("IF", lambda *args: args)])


class TestNodeDependencies:
    """Tests for node_dependencies()."""

    def test_free_variables(self) -> None:
        """Test that every referenced variable is reported."""
        assert node_dependencies(parse("a + b * max(c, 1)")) == {"a", "b", "c"}

    def test_literals_have_none(self) -> None:
        """Test that a literal-only expression has no dependencies."""
        assert node_dependencies(parse("1 + 'x'")) == set()

    def test_bound_values_are_excluded(self) -> None:
        """Test that variables holding values are left out."""
        assert node_dependencies(parse("a + b"), {"a": 1}) == {"b"}

    @pytest.mark.parametrize("value", [None, UNDEFINED])
    def test_unset_values_are_free(self, value: Any) -> None:
        """Test that None and UNDEFINED bindings stay dependencies."""
        assert node_dependencies(parse("a + b"), {"a": value, "b": 2}) == {"a"}

    def test_formula_bindings_contribute_their_dependencies(self) -> None:
        """Test that a bound formula is replaced by its own free variables."""
        bindings = {"total": _formula("net + tax"), "net": 10}
        assert node_dependencies(parse("total * 2"), bindings) == {"tax"}

    def test_shared_formula_is_not_a_cycle(self) -> None:
        """Test that a formula reached along two branches is expanded without error."""
        bindings = {"base": _formula("x + y"), "left": _formula("base * 2"), "right": _formula("base + z")}
        assert node_dependencies(parse("left + right + base"), bindings) == {"x", "y", "z"}

    def test_self_referencing_formula_raises_cycle_error(self) -> None:
        """Test that a formula reading itself is reported as a cycle."""
        with pytest.raises(CycleError, match="a -> a") as exc_info:
            node_dependencies(parse("a"), {"a": _formula("a + b")})
        assert exc_info.value.unresolved == {"a"}

    def test_cycle_through_several_formulas(self) -> None:
        """Test that the cycle path lists only the formulas on the loop."""
        bindings = {"top": _formula("a"), "a": _formula("b + 1"), "b": _formula("c"), "c": _formula("a * 2")}
        with pytest.raises(CycleError, match="a -> b -> c -> a") as exc_info:
            node_dependencies(parse("top"), bindings)
        assert exc_info.value.unresolved == {"a", "b", "c"}

    def test_without_bindings_formulas_are_not_expanded(self) -> None:
        """Test that without bindings every identifier is reported as is."""
        assert node_dependencies(parse("total")) == {"total"}
