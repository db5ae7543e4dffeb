# -----------------------------------------------------------------------------
# Safe expression evaluator (controlled environment)
# Purpose:
#   Evaluate a catalogue expression such as "revenue / salesVolume" against
#   caller-supplied numeric variables, using a whitelisted AST walk.
# Safety:
#   - Only numbers, names, + - * /, unary +/- and parentheses are accepted.
#   - No calls, attributes, subscripts or builtins.
# Arithmetic:
#   - Division by zero does not raise; it yields +inf, -inf or nan the way
#     IEEE floats do, so non-finite results can be classified by the caller.
# -----------------------------------------------------------------------------

from __future__ import annotations
import ast
import math
from functools import lru_cache
from typing import Dict, FrozenSet

class ExpressionError(ValueError): pass

_ALLOWED_BINOPS = (ast.Add, ast.Sub, ast.Mult, ast.Div)
_ALLOWED_UNARYOPS = (ast.UAdd, ast.USub)

@lru_cache(maxsize=None)
def parse_expr(expr: str) -> ast.Expression:
    """Parse once, validate the node whitelist, and cache the tree."""
    try:
        tree = ast.parse(expr.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(f"Cannot parse expression {expr!r}: {e.msg}") from e
    for node in ast.walk(tree):
        if isinstance(node, (ast.Expression, ast.Name, ast.Load)):
            continue
        if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
                and not isinstance(node.value, bool):
            continue
        if isinstance(node, ast.BinOp) and isinstance(node.op, _ALLOWED_BINOPS):
            continue
        if isinstance(node, ast.UnaryOp) and isinstance(node.op, _ALLOWED_UNARYOPS):
            continue
        if isinstance(node, _ALLOWED_BINOPS + _ALLOWED_UNARYOPS):
            continue
        raise ExpressionError(f"Unsupported syntax in {expr!r}: {type(node).__name__}")
    return tree

def expr_names(expr: str) -> FrozenSet[str]:
    """Variable names an expression reads."""
    return frozenset(n.id for n in ast.walk(parse_expr(expr)) if isinstance(n, ast.Name))

def _divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        # sign of zero matters: 1 / -0.0 is -inf
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right

def _eval(node: ast.AST, vars: Dict[str, float]) -> float:
    if isinstance(node, ast.Expression):
        return _eval(node.body, vars)
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        if node.id not in vars:
            raise ExpressionError(f"Unknown name: {node.id}")
        return float(vars[node.id])
    if isinstance(node, ast.UnaryOp):
        val = _eval(node.operand, vars)
        return +val if isinstance(node.op, ast.UAdd) else -val
    if isinstance(node, ast.BinOp):
        left = _eval(node.left, vars)
        right = _eval(node.right, vars)
        if isinstance(node.op, ast.Add):  return left + right
        if isinstance(node.op, ast.Sub):  return left - right
        if isinstance(node.op, ast.Mult): return left * right
        return _divide(left, right)
    raise ExpressionError("Unsupported syntax.")

def safe_eval(expr: str, vars: Dict[str, float]) -> float:
    """
    Evaluate a numeric expression safely with restricted environment.

    Parameters
    ----------
    expr : str
        An arithmetic expression, e.g. "(operatingProfit / revenue) * 100"
    vars : Dict[str, float]
        Values for every name the expression reads.

    Returns
    -------
    float
        The evaluated result; may be non-finite after a division by zero.
    """
    return _eval(parse_expr(expr), vars)
