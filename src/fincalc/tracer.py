# -----------------------------------------------------------------------------
# Tracing utility
# Purpose:
#   Append-only collector of structured solve steps (inputs, intermediates
#   formed, branches skipped or selected, result, errors). Produces a
#   JSON-friendly list returned with every SolverResult and API response.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import List, Dict, Any

@dataclass
class TraceStep:
    # One trace record with a short 'kind' label and free-form structured detail.
    kind: str
    detail: Dict[str, Any]

def _jsonable(value: Any) -> Any:
    # JSON has no inf/nan; export them as "inf", "-inf", "nan"
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value

class Tracer:
    def __init__(self): self._steps: List[TraceStep] = []
    def add(self, kind: str, detail: Dict[str, Any]): self._steps.append(TraceStep(kind, detail))

    def steps(self) -> List[Dict[str, Any]]:
        # Export in plain dict form for easy JSON serialization.
        return [{"kind": s.kind, "detail": _jsonable(s.detail)} for s in self._steps]
