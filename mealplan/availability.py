import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from mealplan import config
from mealplan.models import PantryItem, Recipe
from mealplan.pantry import matches_loosely, pantry_name_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeAvailability:
    recipe: Recipe
    matched: int
    total: int
    percentage: int
    missing_names: list[str] = field(default_factory=list)


def _percentage(matched: int, total: int) -> int:
    """Whole percentage, halves rounded up (7 of 8 -> 88)."""
    if total == 0:
        return 0
    return math.floor(matched / total * 100 + 0.5)


def _score(recipe: Recipe, pantry_names: set[str]) -> RecipeAvailability:
    total = len(recipe.ingredients)
    if total == 0:
        # An empty recipe must never look fully available
        return RecipeAvailability(recipe=recipe, matched=0, total=0, percentage=0)

    matched = 0
    missing_names: list[str] = []
    for ingredient in recipe.ingredients:
        if matches_loosely(ingredient.name, pantry_names):
            matched += 1
        else:
            missing_names.append(ingredient.name)

    return RecipeAvailability(
        recipe=recipe,
        matched=matched,
        total=total,
        percentage=_percentage(matched, total),
        missing_names=missing_names,
    )


def score_recipe(recipe: Recipe, pantry: Iterable[PantryItem]) -> RecipeAvailability:
    """Share of *recipe*'s ingredients found (approximately) in the pantry."""
    return _score(recipe, pantry_name_index(pantry))


def score_recipes(recipes: Iterable[Recipe], pantry: Iterable[PantryItem]) -> list[RecipeAvailability]:
    pantry_names = pantry_name_index(pantry)
    return [_score(recipe, pantry_names) for recipe in recipes]


def rank_recipes(recipes: Iterable[Recipe], pantry: Iterable[PantryItem]) -> list[RecipeAvailability]:
    """All recipes by descending availability; ties keep catalog order."""
    return sorted(score_recipes(recipes, pantry), key=lambda a: a.percentage, reverse=True)


def can_cook_now(
    recipes: Iterable[Recipe],
    pantry: Iterable[PantryItem],
    threshold: int = config.CAN_COOK_THRESHOLD,
) -> list[RecipeAvailability]:
    """Recipes whose availability reaches *threshold*, best first."""
    ranked = [a for a in rank_recipes(recipes, pantry) if a.percentage >= threshold]
    logger.debug("Can-cook-now recipes", extra={"count": len(ranked), "threshold": threshold})
    return ranked
