# -----------------------------------------------------------------------------
# Types module: Shared dataclasses for the formula calculator
# Purpose:
#   Define structured representations for formulas, variables, intermediates
#   and inverse branches used across the catalog, solver, validator and the
#   transfer-pricing decision helper.
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

# Capability tags for a formula
NUMERIC = "numeric"     # solve-for-the-missing-variable formula
DECISION = "decision"   # scenario rule selector (transfer pricing)

# Transfer-pricing recommendation kinds
FIXED_PRICE = "fixed_price"
PRICE_RANGE = "range"
RANGE_INVALID = "range_invalid"

# Variable kinds
NUMBER = "number"
SELECT = "select"

# A partial assignment: variable name -> known value, or None when unknown
Assignment = Dict[str, Optional[float]]

@dataclass(frozen=True)
class VariableSpec:
    """
    Metadata for a variable in a formula.
    - label: display string, may encode a unit (e.g., 'Revenue ($)')
    - computed: hint that the UI may pre-mark this field as the output;
      any variable can end up being the solved one
    - is_percentage: value is a whole-number percent (12.5 means 12.5%)
    - kind: 'number' for plain numeric fields, 'select' for enumerations
    - options: ordered legal values of a 'select' variable
    """
    name: str
    label: str
    computed: bool = False
    is_percentage: bool = False
    kind: str = NUMBER
    options: Tuple[str, ...] = ()

@dataclass(frozen=True)
class Intermediate:
    """
    A quantity derived from raw variables and reused by several branches.
    Example: operatingCosts = variableCosts + fixedCosts
    It exists only when every name in `requires` is known.
    """
    name: str
    requires: Tuple[str, ...]
    expr: str

@dataclass(frozen=True)
class Branch:
    """
    One inverse relation: produce `target` from `requires` with `expr`.
    `requires` may name raw variables or intermediates.
    """
    target: str
    requires: Tuple[str, ...]
    expr: str

@dataclass(frozen=True)
class Formula:
    """
    Represents a single financial relation in the catalogue.
    Example:
        id: 1
        name: "Revenue"
        eq: "revenue = salesPrice * salesVolume"
        branches: revenue <- salesPrice*salesVolume, salesPrice <- ..., ...
    Attributes:
        - variables: ordered variable specs (order is display order)
        - kind: NUMERIC or DECISION capability tag
        - eq: canonical equation, used by the self-check only
        - intermediates / branches: the explicit inverse table
        - sample: consistent values satisfying `eq` (read-only mapping)
    """
    id: int
    name: str
    description: str
    category: str
    variables: Tuple[VariableSpec, ...]
    kind: str = NUMERIC
    eq: str = ""
    intermediates: Tuple[Intermediate, ...] = ()
    branches: Tuple[Branch, ...] = ()
    sample: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}), compare=False, hash=False)

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return tuple(v.name for v in self.variables)

    def variable(self, name: str) -> VariableSpec:
        for v in self.variables:
            if v.name == name:
                return v
        raise KeyError(name)

    @property
    def is_numeric(self) -> bool:
        return self.kind == NUMERIC

@dataclass(frozen=True)
class Recommendation:
    """
    Outcome of the transfer-pricing decision helper.
    kind:
      - FIXED_PRICE:   transfer price is `value`
      - PRICE_RANGE:   any price in [low, high]; `midpoint` recommended
      - RANGE_INVALID: low > high, internal transfer not beneficial
    """
    kind: str
    scenario: str
    value: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None
    midpoint: Optional[float] = None
    note: str = ""
    warning: Optional[str] = None
