import logging
import unicodedata
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from mealplan.categories import fold_accents, resolve_category
from mealplan.models import (
    MealSlot,
    PantryItem,
    RequiredIngredient,
    ShoppingEntry,
    WeekPlan,
    normalize_name,
)
from mealplan.pantry import check_plan_against_pantry
from mealplan.units import classify_unit

logger = logging.getLogger(__name__)

# Display-only scaling for large metric quantities
_LARGE_UNITS: dict[str, str] = {"g": "kg", "ml": "L"}

# "~" sorts after every lowercase letter, so "ñ" follows "nz"
_ENYE_KEY = "n~"


@dataclass
class ShoppingList:
    items: list[ShoppingEntry]

    @property
    def items_by_category(self) -> dict[str, list[ShoppingEntry]]:
        """Group items by category."""
        grouped = defaultdict(list)
        for item in self.items:
            grouped[item.category].append(item)
        return dict(grouped)


def _capitalize(name: str) -> str:
    name = name.strip()
    return name[:1].upper() + name[1:]


def consolidate(missing: Iterable[RequiredIngredient | ShoppingEntry]) -> list[ShoppingEntry]:
    """Merge missing entries into one line per (name, unit) pair.

    Quantities with the same normalised name and unit are summed.  The same
    name in a different unit gets its own line with the unit appended to the
    display name.  The display name is fixed by the first entry of a group,
    with its first letter uppercased.  Insertion order is kept.
    """
    groups: dict[tuple[str, str], list] = {}
    seen_names: set[str] = set()

    for entry in missing:
        key = entry.key or normalize_name(entry.name)
        if not key:
            continue
        unit = classify_unit(entry.unit)

        group = groups.get((key, unit.key))
        if group is not None:
            group[1] += entry.quantity
            continue

        display = _capitalize(entry.name)
        suffix = f"({unit.symbol})"
        if key in seen_names and not display.endswith(suffix):
            display = f"{display} {suffix}"
        seen_names.add(key)
        category = getattr(entry, "category", None) or resolve_category(entry.name)
        groups[(key, unit.key)] = [display, entry.quantity, unit.symbol, category]

    return [
        ShoppingEntry(name=display, quantity=quantity, unit=unit, category=category, key=key)
        for (key, _unit), (display, quantity, unit, category) in groups.items()
    ]


def collation_key(name: str) -> tuple[str, str]:
    """Spanish-style sort key: accents and case ignored, ñ its own letter after n."""
    text = unicodedata.normalize("NFC", name).casefold().replace("ñ", _ENYE_KEY)
    return fold_accents(text), name


def sort_for_display(entries: Iterable[ShoppingEntry]) -> list[ShoppingEntry]:
    return sorted(entries, key=lambda e: collation_key(e.name))


def format_quantity(quantity: float, unit: str) -> str:
    """Render a quantity for a printed list: 1500 g -> '1.5 kg', 3.0 u -> '3 u'."""
    if unit in _LARGE_UNITS and quantity >= 1000:
        quantity, unit = quantity / 1000, _LARGE_UNITS[unit]
    if float(quantity).is_integer():
        text = str(int(quantity))
    else:
        text = f"{quantity:.1f}"
    return f"{text} {unit}"


def build_shopping_list(
    plan: WeekPlan | Iterable[MealSlot],
    pantry: Iterable[PantryItem],
) -> ShoppingList:
    """Shopping list for a plan: requirements minus pantry coverage, consolidated."""
    validation = check_plan_against_pantry(plan, pantry)
    items = sort_for_display(consolidate(validation.missing))
    logger.info(
        "Shopping list generated",
        extra={
            "item_count": len(items),
            "covered_count": len(validation.available),
            "category_count": len({i.category for i in items}),
        },
    )
    return ShoppingList(items=items)
