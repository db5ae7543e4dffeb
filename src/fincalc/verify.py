# -----------------------------------------------------------------------------
# Catalogue self-check
# Purpose:
#   Every branch in the catalogue is hand-written. Check each one against the
#   formula's canonical equation: hold a consistent sample fixed, blank one
#   variable at a time, solve, and measure how far the result lands from the
#   sample value and from satisfying `eq`.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .catalog import Catalog, CatalogError
from .safe_eval import safe_eval
from .solver import solve
from .types import Formula

TOL = 1e-9

@dataclass
class BranchCheck:
    formula_id: int
    target: str
    expected: float
    got: Optional[float]
    residual: float

    @property
    def passed(self) -> bool:
        return self.got is not None and _close(self.got, self.expected) and abs(self.residual) <= TOL * _scale(self.expected)

def _scale(x: float) -> float:
    return max(1.0, abs(x))

def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=TOL, abs_tol=TOL)

def residual(formula: Formula, values: Mapping[str, float]) -> float:
    """lhs - rhs of the formula's canonical equation for a full assignment."""
    m = re.match(r"\s*([A-Za-z_]\w*)\s*=\s*(.+)$", formula.eq)
    if not m:
        raise CatalogError(f"Formula {formula.id}: eq format error; expected '<variable> = <expr>'")
    lhs, expr = m.group(1), m.group(2)
    return float(values[lhs]) - safe_eval(expr, dict(values))

def check_formula(formula: Formula, sample: Optional[Mapping[str, float]] = None) -> List[BranchCheck]:
    """Solve for each variable in turn from `sample` (default: formula.sample)."""
    sample = dict(sample or formula.sample)
    if not sample:
        raise CatalogError(f"Formula {formula.id}: no sample values to check against")
    out: List[BranchCheck] = []
    for name in formula.variable_names:
        assignment = {**sample, name: None}
        got = solve(formula, assignment).get(name)
        res = residual(formula, {**sample, name: got}) if got is not None else math.inf
        out.append(BranchCheck(formula.id, name, sample[name], got, res))
    return out

def check_catalog(catalog: Catalog) -> Dict[int, List[BranchCheck]]:
    """Failing branch checks per formula id; empty when the catalogue is consistent."""
    failures: Dict[int, List[BranchCheck]] = {}
    for f in catalog.formulas:
        if not f.is_numeric:
            continue
        bad = [c for c in check_formula(f) if not c.passed]
        if bad:
            failures[f.id] = bad
    return failures
