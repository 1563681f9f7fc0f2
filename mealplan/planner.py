"""
Week plan lifecycle.

A WeekPlan is an immutable value: every operation here returns a new plan and
leaves its input untouched.  Slots are addressed by ``(date, meal_type)``.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any

from mealplan import config
from mealplan.dates import (
    date_for_day_index,
    day_index_for_date,
    normalize_meal_type,
    slot_day_index,
    validate_range_days,
    week_anchor_for,
)
from mealplan.models import MealSlot, Recipe, WeekPlan

logger = logging.getLogger(__name__)

PlanProducer = Callable[[], list[dict[str, Any]]]


@dataclass(frozen=True)
class WeekSummary:
    total_meals: int
    unique_recipes: int
    total_servings: float
    completion_percentage: int


@dataclass(frozen=True)
class PlanApplication:
    """Outcome of applying a generated plan; *plan* is unchanged when error is set."""
    plan: WeekPlan
    applied: int = 0
    skipped: int = 0
    error: str | None = None
    skipped_entries: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


def initialize_week(anchor: date | datetime | str, range_days: int = config.DEFAULT_RANGE_DAYS) -> WeekPlan:
    """Empty plan with one slot per day and meal type.

    *anchor* may be any day of the first week; the plan starts on its Monday.
    """
    validate_range_days(range_days)
    monday = week_anchor_for(anchor)
    slots = tuple(
        MealSlot(date=date_for_day_index(monday, day), meal_type=meal_type)
        for day in range(range_days)
        for meal_type in config.MEAL_TYPES
    )
    logger.debug("Week initialised", extra={"anchor": monday.isoformat(), "slots": len(slots)})
    return WeekPlan(anchor=monday, range_days=range_days, slots=slots)


def find_slot(plan: WeekPlan, day: str, meal_type: str) -> MealSlot | None:
    meal_type = normalize_meal_type(meal_type)
    return next((s for s in plan.slots if s.date == day and s.meal_type == meal_type), None)


def _replace_slots(plan: WeekPlan, updates: Mapping[str, MealSlot]) -> WeekPlan:
    """New plan with the slots whose slot_id is in *updates* swapped in."""
    if not updates:
        return plan
    return replace(plan, slots=tuple(updates.get(s.slot_id, s) for s in plan.slots))


def _update_slot(plan: WeekPlan, day: str, meal_type: str, **changes) -> WeekPlan:
    slot = find_slot(plan, day, meal_type)
    if slot is None:
        logger.debug("Slot not in plan", extra={"date": day, "meal_type": meal_type})
        return plan
    return _replace_slots(plan, {slot.slot_id: replace(slot, **changes)})


def assign_recipe(
    plan: WeekPlan,
    day: str,
    meal_type: str,
    recipe: Recipe,
    servings: float | None = None,
) -> WeekPlan:
    if servings is not None and servings <= 0:
        raise ValueError("servings must be a positive number")
    return _update_slot(plan, day, meal_type, recipe=recipe, servings=servings)


def clear_slot(plan: WeekPlan, day: str, meal_type: str) -> WeekPlan:
    return _update_slot(plan, day, meal_type, recipe=None, servings=None)


def set_servings(plan: WeekPlan, day: str, meal_type: str, servings: float) -> WeekPlan:
    if servings is None or servings <= 0:
        raise ValueError("servings must be a positive number")
    return _update_slot(plan, day, meal_type, servings=servings)


def toggle_lock(plan: WeekPlan, day: str, meal_type: str) -> WeekPlan:
    slot = find_slot(plan, day, meal_type)
    if slot is None:
        return plan
    return _replace_slots(plan, {slot.slot_id: replace(slot, locked=not slot.locked)})


def move_meal(
    plan: WeekPlan,
    source: tuple[str, str],
    target: tuple[str, str],
) -> WeekPlan:
    """Swap the meals of two slots.  Locks stay with their slot."""
    source_slot = find_slot(plan, *source)
    target_slot = find_slot(plan, *target)
    if source_slot is None or target_slot is None or source_slot == target_slot:
        return plan

    return _replace_slots(plan, {
        target_slot.slot_id: replace(target_slot, recipe=source_slot.recipe, servings=source_slot.servings),
        source_slot.slot_id: replace(source_slot, recipe=target_slot.recipe, servings=target_slot.servings),
    })


def clear_week(plan: WeekPlan) -> WeekPlan:
    """Empty every unlocked slot."""
    return replace(plan, slots=tuple(
        s if s.locked else replace(s, recipe=None, servings=None)
        for s in plan.slots
    ))


def duplicate_week(plan: WeekPlan, target_anchor: date | datetime | str) -> WeekPlan:
    """Copy every slot to the same day offset in the week of *target_anchor*."""
    monday = week_anchor_for(target_anchor)
    slots = []
    for slot in plan.slots:
        index = day_index_for_date(plan.anchor, slot.date)
        if index is None:
            continue
        slots.append(replace(slot, date=date_for_day_index(monday, index)))
    return WeekPlan(anchor=monday, range_days=plan.range_days, slots=tuple(slots))


def week_summary(plan: WeekPlan | None) -> WeekSummary:
    if plan is None or not plan.slots:
        return WeekSummary(total_meals=0, unique_recipes=0, total_servings=0, completion_percentage=0)

    filled = plan.filled_slots
    return WeekSummary(
        total_meals=len(filled),
        unique_recipes=len({s.recipe.id for s in filled}),
        total_servings=sum(s.actual_servings for s in filled),
        completion_percentage=round(len(filled) / len(plan.slots) * 100),
    )


def _entry_field(entry: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if entry.get(name) is not None:
            return entry[name]
    return None


def _resolve_recipe(ref: Any, recipes_by_id: Mapping[str, Recipe]) -> Recipe | None:
    if isinstance(ref, Recipe):
        return ref
    if isinstance(ref, Mapping):
        ref = ref.get("id")
    if ref is None:
        return None
    return recipes_by_id.get(str(ref))


def apply_generated_plan(
    plan: WeekPlan,
    entries: Iterable[Any],
    recipes: Iterable[Recipe],
    excluded_dates: Iterable[str] = (),
    allowed_meal_types: Iterable[str] | None = None,
) -> PlanApplication:
    """Merge a generated week into *plan*, one slot at a time.

    Each entry is ``{date, mealType, recipeRef, servings?}`` (``meal_type``
    and ``recipe_id`` spellings also accepted).  Malformed entries, unknown
    recipes and dates outside the plan are skipped without affecting the
    others.  Slots on excluded dates or of a meal type that is not allowed
    are cleared.  Locked slots are never touched.
    """
    recipes_by_id = {r.id: r for r in recipes}
    excluded = set(excluded_dates)
    allowed = None
    if allowed_meal_types is not None:
        allowed = {normalize_meal_type(m) for m in allowed_meal_types} - {None}

    updates: dict[str, MealSlot] = {}
    for slot in plan.slots:
        if slot.locked:
            continue
        if slot.date in excluded or (allowed is not None and slot.meal_type not in allowed):
            updates[slot.slot_id] = replace(slot, recipe=None, servings=None)

    applied = 0
    skipped: list[Any] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            skipped.append(entry)
            continue

        day = _entry_field(entry, "date")
        meal_type = normalize_meal_type(_entry_field(entry, "mealType", "meal_type"))
        recipe = _resolve_recipe(_entry_field(entry, "recipeRef", "recipe_id", "recipeId", "recipe"), recipes_by_id)
        index = slot_day_index(plan.anchor, day, plan.range_days) if isinstance(day, str) else None
        if index is None or meal_type is None or recipe is None:
            skipped.append(entry)
            continue

        slot = find_slot(plan, date_for_day_index(plan.anchor, index), meal_type)
        if (
            slot is None
            or slot.locked
            or slot.date in excluded
            or (allowed is not None and meal_type not in allowed)
        ):
            skipped.append(entry)
            continue

        servings = _entry_field(entry, "servings")
        if not isinstance(servings, (int, float)) or isinstance(servings, bool) or servings <= 0:
            servings = None
        updates[slot.slot_id] = replace(slot, recipe=recipe, servings=servings)
        applied += 1

    if skipped:
        logger.warning("Generated plan entries skipped", extra={"skipped": len(skipped)})
    logger.info("Generated plan applied", extra={"applied": applied, "anchor": plan.anchor.isoformat()})
    return PlanApplication(
        plan=_replace_slots(plan, updates),
        applied=applied,
        skipped=len(skipped),
        skipped_entries=skipped,
    )


def generate_and_apply(
    plan: WeekPlan,
    producer: PlanProducer,
    recipes: Iterable[Recipe],
    excluded_dates: Iterable[str] = (),
    allowed_meal_types: Iterable[str] | None = None,
) -> PlanApplication:
    """Call *producer* once and apply its result.

    Any producer failure leaves the plan untouched and is reported on the
    returned PlanApplication instead of being raised.
    """
    try:
        entries = producer()
    except Exception as e:
        logger.exception("Plan generation failed, keeping current plan")
        return PlanApplication(plan=plan, error=str(e) or e.__class__.__name__)

    if not isinstance(entries, list):
        return PlanApplication(plan=plan, error="Generated plan is not a list of meals")

    return apply_generated_plan(
        plan,
        entries,
        recipes,
        excluded_dates=excluded_dates,
        allowed_meal_types=allowed_meal_types,
    )
