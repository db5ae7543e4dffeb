import pytest
from fincalc.catalog import Catalog, CatalogError, FormulaNotFound
from fincalc.types import DECISION, SELECT

def _one(formula_yaml: str) -> str:
    return "categories:\n  - name: \"T\"\n    formulas:\n" + formula_yaml

GOOD = """      - id: 1
        name: "Sum"
        eq: "a = b + c"
        variables:
          - { name: a, label: "A" }
          - { name: b, label: "B" }
          - { name: c, label: "C" }
        branches:
          - { target: a, expr: "b + c" }
"""

def test_default_catalog_shape():
    cat = Catalog.default()
    assert len(cat.formulas) == 24
    assert cat.categories() == [
        "I. Basic Profitability & Cost Structure",
        "II. Profitability Ratios & Advanced Financial Metrics",
        "III. Sensitivity & Decision Analysis",
        "IV. Cost Allocation & Asset Valuation",
        "V. Internal Pricing",
        "VI. Specific Project/Decision Evaluation",
    ]
    assert len({f.id for f in cat.formulas}) == 24

def test_lookup_by_id():
    cat = Catalog.default()
    assert cat.get(16).name == "Break-Even Units"
    with pytest.raises(FormulaNotFound):
        cat.get(999)
    with pytest.raises(LookupError):
        cat.get(0)

def test_variable_names_are_distinct_and_branches_cover_them():
    for f in Catalog.default().formulas:
        names = f.variable_names
        assert len(set(names)) == len(names)
        if f.is_numeric:
            assert [b.target for b in f.branches] and set(b.target for b in f.branches) == set(names)

def test_percentage_flags_are_declared():
    cat = Catalog.default()
    assert cat.get(8).variable("operatingProfitMargin").is_percentage
    assert cat.get(13).variable("coic").is_percentage
    assert cat.get(17).variable("volumeIncreaseNeeded").is_percentage
    assert not cat.get(8).variable("revenue").is_percentage
    assert not cat.get(14).variable("operatingLeverage").is_percentage

def test_transfer_pricing_is_a_decision_formula():
    f = Catalog.default().get(22)
    assert f.kind == DECISION
    scenario = f.variable("scenario")
    assert scenario.kind == SELECT
    assert scenario.options[0] == "Scenario 1: NO available capacity"

def test_default_requires_is_every_other_variable():
    f = Catalog.from_yaml_text(_one(GOOD)).get(1)
    assert f.branches[0].requires == ("b", "c")

def test_formulas_are_immutable():
    f = Catalog.default().get(1)
    with pytest.raises(AttributeError):
        f.name = "changed"

def test_duplicate_variable_names_rejected():
    bad = GOOD.replace("{ name: c, label: \"C\" }", "{ name: b, label: \"C\" }")
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(bad))

def test_duplicate_ids_rejected():
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(GOOD + GOOD))

def test_branch_reading_outside_requires_rejected():
    bad = GOOD.replace('{ target: a, expr: "b + c" }', '{ target: a, requires: [b], expr: "b + c" }')
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(bad))

def test_branch_expression_with_calls_rejected():
    bad = GOOD.replace('expr: "b + c"', 'expr: "__import__(b)"')
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(bad))

def test_branch_target_must_be_a_variable():
    bad = GOOD.replace("target: a", "target: z")
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(bad))

def test_sample_must_cover_all_variables():
    bad = GOOD + "        sample: { a: 3, b: 1 }\n"
    with pytest.raises(CatalogError):
        Catalog.from_yaml_text(_one(bad))

def test_sample_values_are_read_only():
    f = Catalog.default().get(1)
    with pytest.raises(TypeError):
        f.sample["revenue"] = 999
    assert Catalog.default().get(1).sample["revenue"] == 50
