import pytest
from fincalc.catalog import Catalog
from fincalc.solver import Solver, validate_and_solve, get_formula
from fincalc.validator import (
    InsufficientInputs, Unsolvable, NonFiniteResult, InvalidFieldValue,
    UnknownVariable, WrongFormulaKind, InputError, parse_fields, pick_target,
)

ONE_BRANCH = """
categories:
  - name: "Test"
    formulas:
      - id: 99
        name: "Half-solvable"
        eq: "a = b + c"
        variables:
          - { name: a, label: "A" }
          - { name: b, label: "B" }
          - { name: c, label: "C" }
        branches:
          - { target: a, expr: "b + c" }
"""

def test_single_blank_field_is_solved():
    out = validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": "10", "salesVolume": 5})
    assert out == ("revenue", 50)

def test_all_fields_filled_is_nothing_to_compute():
    out = validate_and_solve(get_formula(1), {"revenue": 50, "salesPrice": 10, "salesVolume": 5})
    assert out is None

def test_two_blank_fields_are_insufficient():
    with pytest.raises(InsufficientInputs) as exc:
        validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": None, "salesVolume": 5})
    assert exc.value.missing == ["revenue", "salesPrice"]
    assert "all but one field" in str(exc.value)
    assert exc.value.kind == "insufficient_inputs"

def test_absent_fields_count_as_blank():
    with pytest.raises(InsufficientInputs):
        validate_and_solve(get_formula(1), {"salesVolume": 5})

def test_empty_solver_result_is_unsolvable():
    f = Catalog.from_yaml_text(ONE_BRANCH).get(99)
    with pytest.raises(Unsolvable) as exc:
        validate_and_solve(f, {"a": 3, "b": None, "c": 1})
    assert exc.value.target == "b"
    assert "Could not calculate" in str(exc.value)

def test_division_by_zero_is_non_finite_result():
    with pytest.raises(NonFiniteResult) as exc:
        validate_and_solve(get_formula(14), {"operatingLeverage": "", "contribution": 50, "operatingProfit": 0})
    assert exc.value.target == "operatingLeverage"

def test_garbage_field_value_is_rejected():
    with pytest.raises(InvalidFieldValue):
        validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": "ten", "salesVolume": 5})
    with pytest.raises(InvalidFieldValue):
        validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": "nan", "salesVolume": 5})
    with pytest.raises(InvalidFieldValue):
        validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": True, "salesVolume": 5})

def test_undeclared_field_is_rejected():
    with pytest.raises(UnknownVariable):
        validate_and_solve(get_formula(1), {"revenue": "", "salesPrice": 1, "salesVolume": 5, "margin": 3})

def test_decision_formula_cannot_be_solved():
    with pytest.raises(WrongFormulaKind):
        validate_and_solve(get_formula(22), {"marketPrice": 10})

def test_all_validation_errors_share_a_base():
    for cls in (InsufficientInputs, Unsolvable, NonFiniteResult, InvalidFieldValue, UnknownVariable, WrongFormulaKind):
        assert issubclass(cls, InputError)

def test_parse_fields_and_pick_target():
    f = get_formula(8)
    a = parse_fields(f, {"operatingProfitMargin": "  ", "operatingProfit": " 50 ", "revenue": 200})
    assert a == {"operatingProfitMargin": None, "operatingProfit": 50.0, "revenue": 200.0}
    assert pick_target(f, a) == "operatingProfitMargin"

def test_integer_beyond_float_range_is_rejected():
    with pytest.raises(InvalidFieldValue):
        validate_and_solve(get_formula(1), {"revenue": None, "salesPrice": 10**400, "salesVolume": 5})
    res = Solver(Catalog.default()).run(1, {"revenue": None, "salesPrice": 10**400, "salesVolume": 5})
    assert res.ok is False and res.error_kind == "invalid_value"
