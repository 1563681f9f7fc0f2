import logging
from collections.abc import Iterable

from mealplan.categories import resolve_category
from mealplan.models import MealSlot, RequiredIngredient, WeekPlan, normalize_name
from mealplan.units import classify_unit

logger = logging.getLogger(__name__)


def scale_factor(slot: MealSlot) -> float:
    """Ratio between the servings planned for *slot* and the recipe's base servings."""
    if slot.recipe is None:
        return 0.0
    return slot.actual_servings / slot.recipe.base_servings


def aggregate_requirements(slots: WeekPlan | Iterable[MealSlot]) -> list[RequiredIngredient]:
    """Sum scaled ingredient quantities across every planned slot.

    Entries are keyed by normalised name.  Quantities are only added together
    when the units match; the same ingredient in another unit becomes its own
    entry with the unit appended to the display name (no unit conversion).
    Output keeps first-seen order.
    """
    if isinstance(slots, WeekPlan):
        slots = slots.slots

    # (normalised name, unit key) -> [display name, quantity, unit, category]
    table: dict[tuple[str, str], list] = {}
    seen_names: set[str] = set()
    planned = 0

    for slot in slots:
        if slot.recipe is None or not slot.recipe.ingredients:
            continue
        planned += 1
        factor = scale_factor(slot)

        for ingredient in slot.recipe.ingredients:
            key = normalize_name(ingredient.name)
            if not key:
                continue
            unit = classify_unit(ingredient.unit)
            scaled = (ingredient.quantity or 0.0) * factor

            entry = table.get((key, unit.key))
            if entry is not None:
                entry[1] += scaled
                continue

            display = ingredient.name.strip()
            if key in seen_names:
                # Same ingredient already listed under another unit
                display = f"{display} ({unit.symbol})"
            seen_names.add(key)
            table[(key, unit.key)] = [
                display,
                scaled,
                unit.symbol,
                resolve_category(ingredient.name, ingredient.category),
            ]

    required = [
        RequiredIngredient(name=display, quantity=quantity, unit=unit, category=category, key=key)
        for (key, _symbol), (display, quantity, unit, category) in table.items()
    ]
    logger.debug(
        "Requirements aggregated",
        extra={"planned_slots": planned, "ingredient_count": len(required)},
    )
    return required
