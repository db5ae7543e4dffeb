# -----------------------------------------------------------------------------
# Session: caller-owned calculator state
# Purpose:
#   Hold the active formula and its raw field values for one user. Created
#   fresh on select(), reset on clear(). Computed values are written back as
#   known fields so the caller can run further what-if queries.
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from .catalog import Catalog
from .solver import validate_and_solve
from .transfer_pricing import evaluate_transfer_pricing
from .types import Formula, Recommendation, SELECT
from .validator import UnknownVariable, WrongFormulaKind

class Session:
    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        self.formula: Optional[Formula] = None
        self.fields: Dict[str, Any] = {}
        self.computed: Optional[str] = None  # name of the last solved field

    def _blank_fields(self) -> Dict[str, Any]:
        # Select variables start on their first option; numbers start blank
        return {v.name: (v.options[0] if v.kind == SELECT else None)
                for v in self.formula.variables}

    def select(self, formula_id: int) -> Formula:
        self.formula = self.catalog.get(formula_id)
        self.fields = self._blank_fields()
        self.computed = None
        return self.formula

    def _require_formula(self) -> Formula:
        if self.formula is None:
            raise LookupError("No formula selected.")
        return self.formula

    def set_field(self, name: str, raw: Any) -> None:
        formula = self._require_formula()
        if name not in formula.variable_names:
            raise UnknownVariable(formula.id, [name])
        self.fields[name] = raw

    def clear(self) -> None:
        self._require_formula()
        self.fields = self._blank_fields()
        self.computed = None

    def compute(self) -> Optional[Tuple[str, float]]:
        """
        Solve the single blank field and store the value back into the
        session. Returns None when every field is already filled.
        """
        formula = self._require_formula()
        solved = validate_and_solve(formula, self.fields)
        if solved is not None:
            name, value = solved
            self.fields[name] = value
            self.computed = name
        return solved

    def recommend(self) -> Optional[Recommendation]:
        formula = self._require_formula()
        if formula.is_numeric:
            raise WrongFormulaKind(formula)
        fields = dict(self.fields)
        return evaluate_transfer_pricing(fields.pop("scenario"), fields)

    def blanks(self) -> List[str]:
        formula = self._require_formula()
        return [v.name for v in formula.variables
                if v.kind != SELECT and self.fields.get(v.name) in (None, "")]
