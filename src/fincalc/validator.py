# -----------------------------------------------------------------------------
# Unknown-count validator
# Purpose:
#   Turn raw per-field UI values into a solver assignment, count the blanks,
#   and classify every user-facing failure. This is the single place where an
#   empty or non-finite solver result becomes a reported error.
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional
from .types import Formula, Assignment

class InputError(Exception):
    """Base class for recoverable, user-visible input problems."""
    kind = "input_error"

class InsufficientInputs(InputError):
    kind = "insufficient_inputs"
    def __init__(self, missing: List[str]):
        super().__init__("Please fill in all but one field to calculate.")
        self.missing = missing

class Unsolvable(InputError):
    kind = "unsolvable"
    def __init__(self, target: str):
        super().__init__("Could not calculate with the given inputs. Please check your values.")
        self.target = target

class NonFiniteResult(InputError):
    kind = "non_finite_result"
    def __init__(self, target: str, value: float):
        super().__init__(f"The result for '{target}' is not a finite number (division by zero?).")
        self.target = target
        self.value = value

class InvalidFieldValue(InputError):
    kind = "invalid_value"
    def __init__(self, name: str, raw: Any):
        super().__init__(f"Field '{name}' is not a number: {raw!r}")
        self.name = name
        self.raw = raw

class UnknownVariable(InputError):
    kind = "unknown_variable"
    def __init__(self, formula_id: int, names: List[str]):
        super().__init__(f"Formula {formula_id} has no variable(s) {', '.join(names)}")
        self.names = names

class WrongFormulaKind(InputError):
    kind = "wrong_formula_kind"
    def __init__(self, formula: Formula):
        super().__init__(f"Formula {formula.id} ({formula.name}) is a {formula.kind} formula; this operation does not apply.")

def parse_value(name: str, raw: Any) -> Optional[float]:
    """None / '' / whitespace -> unknown; numbers and numeric strings -> float."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidFieldValue(name, raw)
    if isinstance(raw, Real):
        try:
            value = float(raw)
        except OverflowError:
            raise InvalidFieldValue(name, raw) from None
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            raise InvalidFieldValue(name, raw) from None
    else:
        raise InvalidFieldValue(name, raw)
    # 'nan' and 'inf' parse as floats but are not usable inputs
    if not math.isfinite(value):
        raise InvalidFieldValue(name, raw)
    return value

def parse_fields(formula: Formula, raw: Mapping[str, Any]) -> Assignment:
    """
    Build a complete assignment for `formula` from raw field values.
    Every declared variable gets an entry; absent fields are unknown.
    """
    extra = [k for k in raw if k not in formula.variable_names]
    if extra:
        raise UnknownVariable(formula.id, extra)
    return {v.name: parse_value(v.name, raw.get(v.name)) for v in formula.variables}

def unknowns(assignment: Mapping[str, Optional[float]], formula: Formula) -> List[str]:
    """Declared variables without a value, in declaration order."""
    return [n for n in formula.variable_names if assignment.get(n) is None]

def pick_target(formula: Formula, assignment: Assignment) -> Optional[str]:
    """
    0 blanks -> None (nothing to compute), 1 blank -> its name,
    2+ blanks -> InsufficientInputs.
    """
    missing = unknowns(assignment, formula)
    if not missing:
        return None
    if len(missing) > 1:
        raise InsufficientInputs(missing)
    return missing[0]

def check_result(target: str, result: Dict[str, float]) -> float:
    """Classify the solver's output for the single blank field."""
    if target not in result:
        raise Unsolvable(target)
    value = result[target]
    if not math.isfinite(value):
        raise NonFiniteResult(target, value)
    return value
