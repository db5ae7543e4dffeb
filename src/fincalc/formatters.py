from __future__ import annotations
from typing import List

from .types import VariableSpec, Recommendation, FIXED_PRICE

DECIMALS = 2

def format_value(spec: VariableSpec, value: float) -> str:
    text = f"{value:.{DECIMALS}f}"
    return text + "%" if spec.is_percentage else text

def format_answer(spec: VariableSpec, value: float) -> str:
    return f"{spec.label}: {format_value(spec, value)}"

def recommendation_lines(rec: Recommendation) -> List[str]:
    if rec.kind == FIXED_PRICE:
        return [
            f"In Scenario 1 (NO available capacity), the optimal internal transfer price is: {rec.value:.{DECIMALS}f}",
            rec.note,
        ]
    lines = [
        f"In Scenario 2 (HAS available capacity), the optimal internal transfer price should be between: "
        f"{rec.low:.{DECIMALS}f} and {rec.high:.{DECIMALS}f}",
        rec.note,
    ]
    if rec.midpoint is not None:
        lines.append(f"Recommendation: A balanced approach would be to set the price at the midpoint: {rec.midpoint:.{DECIMALS}f}")
    if rec.warning:
        lines.append(f"Warning: {rec.warning}")
    return lines
