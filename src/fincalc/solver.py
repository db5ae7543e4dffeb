# -----------------------------------------------------------------------------
# Solver: solve-for-whichever-is-missing engine
# Responsibilities:
#   • Form intermediates (e.g. operatingCosts) when all their inputs are known
#   • Walk the formula's ordered branch table; first eligible branch wins
#   • Return only newly derived values, never mutating the caller's assignment
#   • Validate raw field values (blank count, parse errors) before solving
#   • Service facade (Solver) that funnels errors into a SolverResult payload
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .catalog import Catalog
from .formatters import format_answer, recommendation_lines
from .safe_eval import safe_eval
from .tracer import Tracer
from .transfer_pricing import evaluate_transfer_pricing
from .types import Formula, Assignment, Recommendation
from .validator import (
    InputError, WrongFormulaKind,
    parse_fields, pick_target, check_result,
)


# ---------------- functional interface ----------------

def list_formulas(catalog: Optional[Catalog] = None) -> List[Tuple[str, Formula]]:
    return (catalog or Catalog.default()).list_formulas()

def get_formula(formula_id: int, catalog: Optional[Catalog] = None) -> Formula:
    """Raises FormulaNotFound for an unknown id."""
    return (catalog or Catalog.default()).get(formula_id)

def _known(values: Mapping[str, Optional[float]], names) -> bool:
    return all(values.get(n) is not None for n in names)

def solve(formula: Formula, assignment: Mapping[str, Optional[float]],
          trace: Optional[Tracer] = None) -> Dict[str, float]:
    """
    Derive the single missing variable of `formula`.

    `assignment` maps variable names to numbers, or None for "unknown";
    a declared name missing from the mapping counts as unknown.
    Returns {target: value} for the first branch whose target is unknown and
    whose required inputs are all known, else {} (nothing new derived).
    Never raises for arithmetic: division by zero gives a non-finite value.
    """
    # Only declared names are read; extras in the mapping are ignored.
    values: Dict[str, Optional[float]] = {n: assignment.get(n) for n in formula.variable_names}

    # Intermediates first; each exists only if fully defined
    for inter in formula.intermediates:
        if _known(values, inter.requires):
            values[inter.name] = safe_eval(inter.expr, {n: values[n] for n in inter.requires})
            if trace:
                trace.add("intermediate", {"name": inter.name, "value": values[inter.name]})
        else:
            values[inter.name] = None
            if trace:
                trace.add("intermediate_unavailable", {"name": inter.name, "requires": list(inter.requires)})

    for branch in formula.branches:
        if values.get(branch.target) is not None:
            continue
        if not _known(values, branch.requires):
            if trace:
                missing = [n for n in branch.requires if values.get(n) is None]
                trace.add("branch_skipped", {"target": branch.target, "missing": missing})
            continue
        result = safe_eval(branch.expr, {n: values[n] for n in branch.requires})
        if trace:
            trace.add("branch_selected", {"target": branch.target, "expr": branch.expr, "value": result})
        return {branch.target: result}

    return {}

def validate_and_solve(formula: Formula, raw: Mapping[str, Any],
                       trace: Optional[Tracer] = None) -> Optional[Tuple[str, float]]:
    """
    Compose validation and solving for raw UI field values.
      - no blank field     -> None (nothing to compute)
      - two or more blanks -> InsufficientInputs
      - empty solver output-> Unsolvable
      - nan / inf result   -> NonFiniteResult
    """
    if not formula.is_numeric:
        raise WrongFormulaKind(formula)
    assignment = parse_fields(formula, raw)
    if trace:
        trace.add("inputs", {"formula": formula.id, "assignment": dict(assignment)})
    target = pick_target(formula, assignment)
    if target is None:
        if trace:
            trace.add("nothing_to_compute", {"formula": formula.id})
        return None
    if trace:
        trace.add("target", {"symbol": target})
    result = solve(formula, assignment, trace)
    return target, check_result(target, result)


# ---------------- service facade ----------------

@dataclass
class SolverResult:
    # Structured response used by the API layer
    ok: bool
    formula: Dict[str, Any]
    inputs: Dict[str, Any]
    answer: Dict[str, Any] | None
    display: str | None
    full_trace: List[Dict[str, Any]] = field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None


class Solver:
    def __init__(self, catalog: Catalog):
        # Inject the read-only catalogue; the solver keeps no per-call state
        self.catalog = catalog

    @staticmethod
    def _formula_view(f: Formula) -> Dict[str, Any]:
        return {"id": f.id, "name": f.name, "description": f.description,
                "category": f.category, "kind": f.kind}

    def run(self, formula_id: int, fields: Mapping[str, Any]) -> SolverResult:
        """
        Validate raw fields and solve the single blank one.
        FormulaNotFound propagates; every InputError becomes ok=False with
        its error_kind and the trace collected so far.
        """
        formula = self.catalog.get(formula_id)
        trace = Tracer()
        view = self._formula_view(formula)
        try:
            solved = validate_and_solve(formula, fields, trace)
        except InputError as e:
            trace.add("error", {"kind": e.kind, "message": str(e)})
            return SolverResult(
                ok=False, formula=view, inputs=dict(fields), answer=None,
                display=None, full_trace=trace.steps(),
                error=str(e), error_kind=e.kind,
            )

        if solved is None:
            # All fields filled: not an error, just nothing to show
            return SolverResult(ok=True, formula=view, inputs=dict(fields),
                                answer=None, display=None, full_trace=trace.steps())

        target, value = solved
        spec = formula.variable(target)
        trace.add("result", {"symbol": target, "value": value})
        return SolverResult(
            ok=True,
            formula=view,
            inputs=dict(fields),
            answer={"symbol": target, "value": value, "label": spec.label,
                    "is_percentage": spec.is_percentage},
            display=format_answer(spec, value),
            full_trace=trace.steps(),
        )

    def recommend(self, scenario: str, fields: Mapping[str, Any]) -> Tuple[Recommendation | None, List[str]]:
        """Transfer-pricing decision helper plus its display lines."""
        rec = evaluate_transfer_pricing(scenario, fields)
        return rec, recommendation_lines(rec) if rec else []
