"""
Tests for the formula evaluator (expression.py).

Tests:
1-4.  Arithmetic — precedence, associativity, parentheses, unary minus
5-7.  Variables — whole-token resolution, unknown names
8-9.  Leniency — division by zero, sanitizing
10-11. Unicode and hyphenated names, unlisted identifiers
12-13. Malformed input
"""

import pytest

from budget_engine.exceptions import FormulaEvaluationError
from budget_engine.expression import evaluate, sanitize


def test_operator_precedence():
    assert evaluate("2 + 3 * 4", {}) == 14


def test_left_to_right_same_precedence():
    assert evaluate("20 - 5 - 3", {}) == 12
    assert evaluate("100 / 10 / 2", {}) == 5


def test_parentheses():
    assert evaluate("(2 + 3) * 4", {}) == 20


def test_unary_minus_and_decimals():
    assert evaluate("-2.5 * -(1 + 1)", {}) == 5.0
    assert evaluate(".5 + 1.", {}) == 1.5


def test_variables_substituted():
    result = evaluate("quantidade_horas * valor_por_hora", {
        "quantidade_horas": 10, "valor_por_hora": 50,
    })
    assert result == 500


def test_overlapping_names_resolve_as_whole_tokens():
    """`horas` must not be substituted inside `quantidade_horas`."""
    result = evaluate("quantidade_horas + horas", {"horas": 1, "quantidade_horas": 10})
    assert result == 11


def test_unknown_variable_raises():
    with pytest.raises(FormulaEvaluationError):
        evaluate("a * b", {"a": 2})


def test_division_by_zero_yields_zero():
    assert evaluate("10 / 0", {}) == 0
    assert evaluate("5 + 10 / (2 - 2)", {}) == 5


def test_foreign_characters_are_dropped():
    assert sanitize("10 $* 2;") == "10 * 2"
    assert evaluate("10 $* 2;", {}) == 20


def test_accented_and_hyphenated_names_are_whole_tokens():
    assert evaluate("preço * 2", {"preço": 10}) == 20
    assert evaluate("custo-base * 2", {"custo-base": 10}) == 20
    assert evaluate("Mão_de_Obra + 1", {"mão_de_obra": 4}) == 5
    # The longer name wins over a shorter one it contains
    assert evaluate("custo-base - custo", {"custo-base": 10, "custo": 3}) == 7


def test_unlisted_identifier_fails_the_whole_formula():
    with pytest.raises(FormulaEvaluationError):
        evaluate("10 * 2 unidades", {})
    with pytest.raises(FormulaEvaluationError):
        evaluate("preço * 2", {"custo": 1})


def test_malformed_formulas_raise():
    for formula in ["2 +", "(1 + 2", "1 2", "1.2.3", ")"]:
        with pytest.raises(FormulaEvaluationError):
            evaluate(formula, {})


def test_deep_nesting_is_an_evaluation_error():
    formula = "(" * 5000 + "1" + ")" * 5000
    with pytest.raises(FormulaEvaluationError):
        evaluate(formula, {})
