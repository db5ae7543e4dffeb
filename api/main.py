# --- Financial Formula Calculator API (FastAPI) -------------------------------
# Purpose: Thin HTTP surface over the formula engine: list the catalogue,
# solve the single blank field of a formula, and evaluate the transfer-pricing
# decision helper. Every response carries plain JSON; solve failures are
# reported in-band (ok=false + error_kind) with the solver trace.
# ------------------------------------------------------------------------------

from __future__ import annotations
import os
from dataclasses import asdict
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List
from fincalc.catalog import Catalog, FormulaNotFound
from fincalc.solver import Solver
from fincalc.transfer_pricing import Scenario, required_fields
from fincalc.types import Formula
from fincalc.validator import InputError

# Load .env for external configuration (catalogue override)
load_dotenv()
CATALOG_PATH = os.getenv("CATALOG_PATH")

# FastAPI app with catalogue, solve and transfer-pricing endpoints
app = FastAPI(title="Financial Formula Calculator API")

# Initialize catalogue + solver once; both are read-only afterwards
_catalog = Catalog.from_file(CATALOG_PATH) if CATALOG_PATH else Catalog.default()
_solver = Solver(_catalog)

# ----------------------------- Schemas ----------------------------------------
class SolveRequest(BaseModel):
    # Raw field values keyed by variable name; null or "" marks the blank field.
    # Values stay raw here; fincalc.validator classifies them.
    formula_id: int
    values: Dict[str, Any] = Field(default_factory=dict)

class TransferPricingRequest(BaseModel):
    scenario: Scenario
    values: Dict[str, Any] = Field(default_factory=dict)

class VariableOut(BaseModel):
    name: str
    label: str
    computed: bool
    is_percentage: bool
    kind: str
    options: List[str]

class FormulaOut(BaseModel):
    id: int
    name: str
    description: str
    category: str
    kind: str
    variables: List[VariableOut]

def _formula_out(f: Formula) -> FormulaOut:
    return FormulaOut(
        id=f.id, name=f.name, description=f.description, category=f.category, kind=f.kind,
        variables=[VariableOut(name=v.name, label=v.label, computed=v.computed,
                               is_percentage=v.is_percentage, kind=v.kind,
                               options=list(v.options)) for v in f.variables],
    )

def _get_or_404(formula_id: int) -> Formula:
    try:
        return _catalog.get(formula_id)
    except FormulaNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

# ----------------------------- Routes -----------------------------------------
@app.get("/health")
def health(): return {"ok": True}

@app.get("/catalog")
def list_catalog():
    """
    Catalogue listing in category order, for the UI's sidebar and search.
    """
    return {
        "count": len(_catalog.formulas),
        "categories": _catalog.categories(),
        "items": _catalog.summaries(),
    }

@app.get("/formulas/{formula_id}", response_model=FormulaOut)
def get_formula(formula_id: int):
    return _formula_out(_get_or_404(formula_id))

@app.post("/solve")
def solve(req: SolveRequest):
    """
    Solve the single blank field of a numeric formula.
    - 404 for an unknown formula id.
    - Validation failures come back as ok=false with error_kind:
      insufficient_inputs | unsolvable | non_finite_result | invalid_value |
      unknown_variable | wrong_formula_kind
    - All fields filled: ok=true with answer=null.
    """
    _get_or_404(req.formula_id)
    res = _solver.run(req.formula_id, req.values)
    payload = {
        "ok": res.ok,
        "formula": res.formula,
        "inputs": res.inputs,
        "answer": res.answer,
        "display": res.display,
        "trace": res.full_trace,
    }
    if not res.ok:
        payload["error"] = res.error
        payload["error_kind"] = res.error_kind
    return payload

@app.post("/transfer-pricing")
def transfer_pricing(req: TransferPricingRequest):
    """
    Decision helper for formula 22. Returns the fields the scenario uses and,
    once they are all filled, the recommendation with its display lines.
    """
    try:
        rec, lines = _solver.recommend(req.scenario, req.values)
    except InputError as e:
        return {"ok": False, "error": str(e), "error_kind": e.kind,
                "required_fields": list(required_fields(req.scenario))}
    return {
        "ok": True,
        "required_fields": list(required_fields(req.scenario)),
        "recommendation": asdict(rec) if rec else None,
        "display": lines,
    }
