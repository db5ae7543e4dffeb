import math
import pytest
from fincalc.catalog import Catalog
from fincalc.safe_eval import safe_eval, expr_names, ExpressionError
from fincalc.verify import check_catalog, check_formula, residual

def test_packaged_catalog_is_consistent():
    assert check_catalog(Catalog.default()) == {}

def test_residual_of_consistent_values_is_zero():
    f = Catalog.default().get(21)
    assert residual(f, f.sample) == pytest.approx(0, abs=1e-9)

def test_wrong_branch_is_reported():
    text = """
categories:
  - name: "T"
    formulas:
      - id: 1
        name: "Sum"
        eq: "a = b + c"
        variables:
          - { name: a, label: "A" }
          - { name: b, label: "B" }
          - { name: c, label: "C" }
        branches:
          - { target: a, expr: "b + c" }
          - { target: b, expr: "a + c" }
          - { target: c, expr: "a - b" }
        sample: { a: 3, b: 1, c: 2 }
"""
    failures = check_catalog(Catalog.from_yaml_text(text))
    assert [c.target for c in failures[1]] == ["b"]
    assert [c.passed for c in check_formula(Catalog.from_yaml_text(text).get(1))] == [True, False, True]

def test_safe_eval_arithmetic_and_zero_division():
    assert safe_eval("(a - b) / c * 100", {"a": 3, "b": 1, "c": 4}) == 50
    assert safe_eval("-a / b", {"a": 1, "b": 0}) == -math.inf
    assert math.isnan(safe_eval("a / b", {"a": 0, "b": 0}))

def test_safe_eval_rejects_everything_else():
    for expr in ("a ** 2", "abs(a)", "a.real", "a[0]", "lambda: 1", "a if a else b"):
        with pytest.raises(ExpressionError):
            safe_eval(expr, {"a": 1, "b": 2})

def test_expr_names():
    assert expr_names("revenue - (variableCosts + fixedCosts)") == {"revenue", "variableCosts", "fixedCosts"}
