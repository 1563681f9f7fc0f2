"""
Matching planned requirements against the pantry inventory.

Two matchers serve different consumers:

* ``find_exact_match`` (trimmed, case-insensitive equality) drives the
  shopping list, where a wrong match would hide something that must be bought.
* ``matches_loosely`` also accepts a naive singular fold and substring
  containment in either direction.  It powers the "can I roughly cook this"
  availability score and is never used for quantities.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace

from rapidfuzz import fuzz

from mealplan.aggregator import aggregate_requirements
from mealplan.models import MealSlot, PantryItem, RequiredIngredient, WeekPlan, normalize_name
from mealplan.units import same_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PantryResolution:
    available: list[RequiredIngredient] = field(default_factory=list)
    missing: list[RequiredIngredient] = field(default_factory=list)


@dataclass(frozen=True)
class PlanValidation:
    """Weekly "what am I missing" view."""
    required: list[RequiredIngredient] = field(default_factory=list)
    available: list[RequiredIngredient] = field(default_factory=list)
    missing: list[RequiredIngredient] = field(default_factory=list)


def find_exact_match(name: str, pantry: Iterable[PantryItem]) -> PantryItem | None:
    """First pantry item whose trimmed, lowercased name equals *name*'s."""
    key = normalize_name(name)
    if not key:
        return None
    return next((item for item in pantry if normalize_name(item.name) == key), None)


def singular(name: str) -> str:
    """Naive plural fold: drop one trailing 's'."""
    return name[:-1] if name.endswith("s") else name


def pantry_name_index(pantry: Iterable[PantryItem]) -> set[str]:
    """Normalised pantry names plus their singular forms."""
    names: set[str] = set()
    for item in pantry:
        key = normalize_name(item.name)
        if not key:
            continue
        names.add(key)
        folded = singular(key).strip()
        if folded:
            names.add(folded)
    return names


def _contains_either_way(a: str, b: str) -> bool:
    # partial_ratio aligns the shorter string inside the longer one; a perfect
    # score means it occurs there verbatim.
    return fuzz.partial_ratio(a, b, score_cutoff=100) == 100


def matches_loosely(ingredient_name: str, pantry_names: set[str]) -> bool:
    """Permissive pantry lookup for availability scoring.

    *pantry_names* comes from pantry_name_index.
    """
    name = normalize_name(ingredient_name)
    if not name:
        return False
    if name in pantry_names or singular(name) in pantry_names:
        return True
    return any(_contains_either_way(name, pantry_name) for pantry_name in pantry_names)


def resolve_against_pantry(
    required: Iterable[RequiredIngredient],
    pantry: Iterable[PantryItem],
) -> PantryResolution:
    """Split requirements into fully covered and still missing.

    A partially covered requirement is reported as missing with only the
    uncovered remainder.  Units are not reconciled: quantities are compared
    as if the units were compatible.
    """
    pantry = list(pantry)
    available: list[RequiredIngredient] = []
    missing: list[RequiredIngredient] = []

    for req in required:
        item = find_exact_match(req.key or req.name, pantry)
        if item is None:
            missing.append(req)
            continue

        if not same_unit(item.unit, req.unit):
            logger.debug(
                "Pantry unit differs from requirement, comparing as-is",
                extra={"ingredient": req.name, "pantry_unit": item.unit, "required_unit": req.unit},
            )

        if item.quantity >= req.quantity:
            available.append(req)
        else:
            missing.append(replace(req, quantity=req.quantity - item.quantity))

    logger.debug(
        "Requirements resolved against pantry",
        extra={"available": len(available), "missing": len(missing)},
    )
    return PantryResolution(available=available, missing=missing)


def check_plan_against_pantry(
    plan: WeekPlan | Iterable[MealSlot] | None,
    pantry: Iterable[PantryItem],
) -> PlanValidation:
    """Aggregate the plan's requirements and resolve them in one pass."""
    if plan is None:
        return PlanValidation()
    required = aggregate_requirements(plan)
    resolution = resolve_against_pantry(required, pantry)
    return PlanValidation(
        required=required,
        available=resolution.available,
        missing=resolution.missing,
    )
