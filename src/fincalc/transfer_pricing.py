# -----------------------------------------------------------------------------
# Transfer-pricing decision helper
# Purpose: Pick the optimal internal transfer price for one of two mutually
# exclusive capacity scenarios. Unlike the numeric solver there is no
# "missing variable": the output is a structured recommendation computed from
# the selected scenario's own fields.
# -----------------------------------------------------------------------------

from __future__ import annotations
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from .types import Recommendation, FIXED_PRICE, PRICE_RANGE, RANGE_INVALID
from .validator import InvalidFieldValue, parse_value

class Scenario(str, Enum):
    NO_CAPACITY = "Scenario 1: NO available capacity"
    HAS_CAPACITY = "Scenario 2: HAS available capacity"

# Fields each scenario reads; the other scenario's fields are ignored
REQUIRED_FIELDS = {
    Scenario.NO_CAPACITY: ("marketPrice",),
    Scenario.HAS_CAPACITY: ("supplierVariableCost", "buyerExternalPrice"),
}

FIXED_PRICE_NOTE = (
    "When there is NO available capacity, the supplier should charge the "
    "external market price to internal customers."
)
RANGE_NOTE = (
    "When there IS available capacity, any price in this range creates value "
    "for the company. The lower bound represents the supplier's variable cost, "
    "while the upper bound is the external price the buyer would otherwise pay."
)
RANGE_WARNING = (
    "The supplier's variable cost exceeds the buyer's external price. "
    "Internal transfer is not economically beneficial in this case."
)

def as_scenario(value: Any) -> Scenario:
    """Accept a Scenario or one of its option strings."""
    try:
        return Scenario(value)
    except ValueError:
        raise InvalidFieldValue("scenario", value) from None

def required_fields(scenario: Any) -> Tuple[str, ...]:
    return REQUIRED_FIELDS[as_scenario(scenario)]

def evaluate_transfer_pricing(scenario: Any, fields: Mapping[str, Any]) -> Optional[Recommendation]:
    """
    Recommend a transfer price for `scenario` from raw `fields`.
    Returns None while any field the scenario requires is still blank.
    """
    sc = as_scenario(scenario)
    vals = {name: parse_value(name, fields.get(name)) for name in REQUIRED_FIELDS[sc]}
    if any(v is None for v in vals.values()):
        return None

    if sc is Scenario.NO_CAPACITY:
        return Recommendation(kind=FIXED_PRICE, scenario=sc.value,
                              value=vals["marketPrice"], note=FIXED_PRICE_NOTE)

    low, high = vals["supplierVariableCost"], vals["buyerExternalPrice"]
    if low <= high:
        return Recommendation(kind=PRICE_RANGE, scenario=sc.value, low=low, high=high,
                              midpoint=(low + high) / 2, note=RANGE_NOTE)
    return Recommendation(kind=RANGE_INVALID, scenario=sc.value, low=low, high=high,
                          note=RANGE_NOTE, warning=RANGE_WARNING)
