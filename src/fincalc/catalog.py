# -----------------------------------------------------------------------------
# Catalog loader & accessor
# Purpose: Parse the hierarchical YAML catalogue (categories → formulas) into
# immutable, strongly-typed objects used by the solver pipeline.
# - Depends on .types (Formula, VariableSpec, Intermediate, Branch).
# - The default catalogue ships next to this module (catalog.yaml).
# -----------------------------------------------------------------------------

from __future__ import annotations
import yaml
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Any, Tuple
from .types import (
    Formula, VariableSpec, Intermediate, Branch,
    NUMERIC, DECISION, NUMBER, SELECT,
)
from .safe_eval import expr_names, ExpressionError

DEFAULT_CATALOG_PATH = Path(__file__).with_name("catalog.yaml")

# Domain-specific error to signal malformed catalog inputs, missing fields, etc.
class CatalogError(Exception): pass

class FormulaNotFound(CatalogError, LookupError):
    def __init__(self, formula_id: Any):
        super().__init__(f"Formula {formula_id!r} not found.")
        self.formula_id = formula_id

def _parse_variable(fid: int, vd: Dict[str, Any]) -> VariableSpec:
    kind = str(vd.get("kind", NUMBER))
    if kind not in (NUMBER, SELECT):
        raise CatalogError(f"Formula {fid}: variable {vd.get('name')!r} has unknown kind {kind!r}")
    options = tuple(str(o) for o in (vd.get("options") or []))
    if kind == SELECT and not options:
        raise CatalogError(f"Formula {fid}: select variable {vd.get('name')!r} has no options")
    return VariableSpec(
        name=str(vd["name"]),
        label=str(vd.get("label", vd["name"])),
        computed=bool(vd.get("computed", False)),
        is_percentage=bool(vd.get("percent", False)),
        kind=kind,
        options=options,
    )

def _check_expr(fid: int, owner: str, expr: str, allowed: Tuple[str, ...]) -> None:
    # An expression may only read the names its entry declares in `requires`
    try:
        used = expr_names(expr)
    except ExpressionError as e:
        raise CatalogError(f"Formula {fid}: {owner}: {e}") from e
    extra = used - set(allowed)
    if extra:
        raise CatalogError(f"Formula {fid}: {owner} reads {sorted(extra)} outside its requires")

def _parse_formula(fd: Dict[str, Any], category: str) -> Formula:
    try:
        fid = int(fd["id"])
        name = str(fd["name"])
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"Formula entry in {category!r} lacks a valid id/name: {e}") from e

    variables = tuple(_parse_variable(fid, vd) for vd in (fd.get("variables") or []))
    names = [v.name for v in variables]
    if len(set(names)) != len(names):
        raise CatalogError(f"Formula {fid}: duplicate variable names {names}")
    declared = set(names)

    kind = str(fd.get("kind", NUMERIC))
    if kind not in (NUMERIC, DECISION):
        raise CatalogError(f"Formula {fid}: unknown kind {kind!r}")

    # ---- Intermediates: may only read declared variables ------------------
    inters: List[Intermediate] = []
    for idef in (fd.get("intermediates") or []):
        reqs = tuple(idef.get("requires") or [])
        iname = str(idef["name"])
        if iname in declared:
            raise CatalogError(f"Formula {fid}: intermediate {iname!r} shadows a variable")
        if not set(reqs) <= declared:
            raise CatalogError(f"Formula {fid}: intermediate {iname!r} requires undeclared {sorted(set(reqs) - declared)}")
        _check_expr(fid, f"intermediate {iname!r}", str(idef["expr"]), reqs)
        inters.append(Intermediate(name=iname, requires=reqs, expr=str(idef["expr"])))
    inter_names = {i.name for i in inters}

    # ---- Branches: `requires` defaults to every other variable ------------
    branches: List[Branch] = []
    for bd in (fd.get("branches") or []):
        target = str(bd["target"])
        if target not in declared:
            raise CatalogError(f"Formula {fid}: branch target {target!r} is not a variable")
        if "requires" in bd:
            reqs = tuple(bd["requires"])
        else:
            reqs = tuple(n for n in names if n != target)
        if target in reqs:
            raise CatalogError(f"Formula {fid}: branch for {target!r} requires itself")
        unknown = set(reqs) - declared - inter_names
        if unknown:
            raise CatalogError(f"Formula {fid}: branch for {target!r} requires undeclared {sorted(unknown)}")
        _check_expr(fid, f"branch for {target!r}", str(bd["expr"]), reqs)
        branches.append(Branch(target=target, requires=reqs, expr=str(bd["expr"])))

    if kind == NUMERIC and not branches:
        raise CatalogError(f"Formula {fid}: numeric formula without branches")
    if kind == DECISION and branches:
        raise CatalogError(f"Formula {fid}: decision formula cannot declare branches")

    sample = {str(k): float(v) for k, v in (fd.get("sample") or {}).items()}
    if sample and set(sample) != declared:
        raise CatalogError(f"Formula {fid}: sample must cover exactly the variables {names}")

    return Formula(
        id=fid, name=name, description=str(fd.get("description", "")),
        category=category, variables=variables, kind=kind,
        eq=str(fd.get("eq", "")), intermediates=tuple(inters),
        branches=tuple(branches), sample=MappingProxyType(sample),
    )

@dataclass(frozen=True)
class Catalog:
    # Ordered category names (insertion order of the YAML file)
    category_names: Tuple[str, ...]
    # Flattened list of all formulas, in category order
    formulas: Tuple[Formula, ...]

    @staticmethod
    def from_yaml_dict(d: Dict[str, Any]) -> "Catalog":
        """
        Build a Catalog from a pre-parsed YAML dictionary.
        Expected YAML high-level shape:
          categories:
            - name: "I. Basic Profitability & Cost Structure"
              formulas:
                - id: 1
                  name: "Revenue"
                  description: "..."
                  eq: "revenue = salesPrice * salesVolume"
                  variables:
                    - { name: revenue, label: "Revenue ($)", computed: true }
                  intermediates:
                    - { name: ..., requires: [...], expr: "..." }
                  branches:
                    - { target: revenue, requires: [...], expr: "..." }
                  sample: { revenue: 50, ... }
        """
        if not isinstance(d, dict):
            raise CatalogError("Catalog root must be a mapping.")
        cats: List[str] = []
        forms: List[Formula] = []
        seen_ids = set()
        # ---- Drill into categories → formulas -----------------------------
        for cd in (d.get("categories") or []):
            cat_name = str(cd["name"])
            if cat_name in cats:
                raise CatalogError(f"Duplicate category {cat_name!r}")
            cats.append(cat_name)
            for fd in (cd.get("formulas") or []):
                f = _parse_formula(fd, cat_name)
                if f.id in seen_ids:
                    raise CatalogError(f"Duplicate formula id {f.id}")
                seen_ids.add(f.id)
                forms.append(f)
        return Catalog(category_names=tuple(cats), formulas=tuple(forms))

    @staticmethod
    def from_yaml_text(text: str) -> "Catalog":
        """
        Convenience: parse raw YAML string into a Catalog.
        Uses yaml.safe_load for security (no arbitrary object constructors).
        """
        return Catalog.from_yaml_dict(yaml.safe_load(text))

    @staticmethod
    def from_file(path: str | Path) -> "Catalog":
        """
        Convenience: open a YAML file from disk and parse into a Catalog.
        UTF-8 is enforced to avoid cross-platform encoding issues.
        """
        with open(path, "r", encoding="utf-8") as f:
            return Catalog.from_yaml_text(f.read())

    @staticmethod
    @lru_cache(maxsize=1)
    def default() -> "Catalog":
        """The packaged catalogue, parsed once per process."""
        return Catalog.from_file(DEFAULT_CATALOG_PATH)

    def get(self, formula_id: int) -> Formula:
        for f in self.formulas:
            if f.id == formula_id:
                return f
        raise FormulaNotFound(formula_id)

    def categories(self) -> List[str]:
        return list(self.category_names)

    def list_formulas(self) -> List[Tuple[str, Formula]]:
        """(category, formula) pairs in catalogue order, for listing/search."""
        return [(f.category, f) for f in self.formulas]

    def summaries(self) -> List[Dict[str, Any]]:
        """
        Flattened, UI-friendly listing of formulas across the catalog
        (id, name, description, category, kind, variable names).
        """
        out = []
        for f in self.formulas:
            out.append({
                "id": f.id, "name": f.name, "description": f.description,
                "category": f.category, "kind": f.kind,
                "variables": list(f.variable_names),
            })
        return out
