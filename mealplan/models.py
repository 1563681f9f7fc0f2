import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from mealplan import config

logger = logging.getLogger(__name__)


class RecipeLoadError(Exception):
    """Raised when recipes cannot be loaded from file."""
    pass


class PantryLoadError(Exception):
    """Raised when the pantry snapshot cannot be loaded from file."""
    pass


def normalize_name(name: str | None) -> str:
    """Grouping key for ingredient and pantry names: trimmed and lowercased."""
    return (name or "").strip().lower()


def _to_quantity(value: Any) -> float:
    """Coerce a raw quantity to float; missing or invalid values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class Ingredient:
    name: str
    quantity: float = 0.0
    unit: str = config.DEFAULT_UNIT
    category: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ingredient":
        """Accepts both ``name``/``quantity`` and ``item``/``amount`` spellings."""
        return cls(
            name=str(data.get("name") or data.get("item") or ""),
            quantity=_to_quantity(data.get("quantity", data.get("amount"))),
            unit=data.get("unit") or config.DEFAULT_UNIT,
            category=data.get("category"),
        )


@dataclass(frozen=True)
class Recipe:
    id: str
    name: str
    servings: float = config.DEFAULT_RECIPE_SERVINGS
    ingredients: tuple[Ingredient, ...] = ()
    nutrition: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    tags: tuple[str, ...] = ()

    @property
    def base_servings(self) -> float:
        """Servings the ingredient quantities are written for."""
        if not self.servings or self.servings <= 0:
            return config.DEFAULT_RECIPE_SERVINGS
        return self.servings

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recipe":
        basic_required = ["id", "name"]
        missing = [f for f in basic_required if f not in data]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        servings = _to_quantity(data.get("servings")) or config.DEFAULT_RECIPE_SERVINGS
        return cls(
            id=str(data["id"]),
            name=data["name"],
            servings=servings,
            ingredients=tuple(Ingredient.from_dict(i) for i in data.get("ingredients") or []),
            nutrition=dict(data.get("nutrition") or data.get("nutrition_per_serving") or {}),
            tags=tuple(data.get("tags") or []),
        )


@dataclass(frozen=True)
class PantryItem:
    name: str
    quantity: float = 0.0
    unit: str = config.DEFAULT_UNIT
    expiration_date: date | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PantryItem":
        expiration = data.get("expiration_date") or data.get("expirationDate")
        if isinstance(expiration, str):
            try:
                expiration = date.fromisoformat(expiration[:10])
            except ValueError:
                logger.warning("Ignoring unparseable pantry expiration date %r", expiration)
                expiration = None
        return cls(
            name=str(data.get("name") or data.get("ingredient_name") or ""),
            quantity=_to_quantity(data.get("quantity")),
            unit=data.get("unit") or config.DEFAULT_UNIT,
            expiration_date=expiration,
        )


@dataclass(frozen=True)
class MealSlot:
    date: str  # YYYY-MM-DD
    meal_type: str
    recipe: Recipe | None = None
    servings: float | None = None
    locked: bool = False

    @property
    def slot_id(self) -> str:
        return f"{self.date}:{self.meal_type}"

    @property
    def is_empty(self) -> bool:
        return self.recipe is None

    @property
    def actual_servings(self) -> float | None:
        """Servings to cook: the slot override, else the recipe's base servings."""
        if self.recipe is None:
            return None
        if self.servings and self.servings > 0:
            return self.servings
        return self.recipe.base_servings


@dataclass(frozen=True)
class WeekPlan:
    anchor: date  # Monday of the first week
    range_days: int = config.DEFAULT_RANGE_DAYS
    slots: tuple[MealSlot, ...] = ()

    @property
    def filled_slots(self) -> list[MealSlot]:
        return [s for s in self.slots if s.recipe is not None]


@dataclass(frozen=True)
class RequiredIngredient:
    name: str
    quantity: float
    unit: str
    category: str
    key: str = ""

    def __post_init__(self):
        if not self.key:
            object.__setattr__(self, "key", normalize_name(self.name))


@dataclass(frozen=True)
class ShoppingEntry:
    name: str
    quantity: float
    unit: str
    category: str = "other"
    key: str = ""


def load_recipes(file_path: Path | str) -> list[Recipe]:
    file_path = Path(file_path)

    if not file_path.exists():
        raise RecipeLoadError(f"Recipe file not found: {file_path}")

    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise RecipeLoadError(f"Invalid JSON in recipe file: {e}")

    if "recipes" not in data:
        raise RecipeLoadError("Recipe file must contain a 'recipes' key")

    try:
        return [Recipe.from_dict(r) for r in data["recipes"]]
    except ValueError as e:
        raise RecipeLoadError(f"Invalid recipe in {file_path}: {e}")


def load_pantry(file_path: Path | str) -> list[PantryItem]:
    """Load the read-only pantry snapshot. A missing file is an empty pantry."""
    file_path = Path(file_path)

    if not file_path.exists():
        logger.info("Pantry file not found, using empty pantry", extra={"path": str(file_path)})
        return []

    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise PantryLoadError(f"Invalid JSON in pantry file: {e}")

    if "items" not in data:
        raise PantryLoadError("Pantry file must contain an 'items' key")

    return [PantryItem.from_dict(item) for item in data["items"]]
