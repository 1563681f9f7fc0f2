"""Pytest configuration and fixtures."""

from mealplan.models import Ingredient, PantryItem, Recipe


def create_test_recipe(
    recipe_id: str,
    name: str,
    servings: float = 4,
    ingredients: list | None = None,
    tags: list | None = None,
) -> Recipe:
    """Helper to create a test Recipe from (name, quantity, unit) tuples or dicts."""
    parsed = []
    for ing in ingredients or []:
        if isinstance(ing, dict):
            parsed.append(Ingredient.from_dict(ing))
        elif isinstance(ing, Ingredient):
            parsed.append(ing)
        else:
            parsed.append(Ingredient(*ing))
    return Recipe(
        id=recipe_id,
        name=name,
        servings=servings,
        ingredients=tuple(parsed),
        tags=tuple(tags or []),
    )


def create_pantry(*items) -> list[PantryItem]:
    """Helper to create a pantry from (name, quantity, unit) tuples."""
    return [PantryItem(*item) for item in items]
