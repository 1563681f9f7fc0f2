import pytest

from mealplan.models import MealSlot, RequiredIngredient, ShoppingEntry
from mealplan.planner import assign_recipe, initialize_week
from mealplan.shopping_list import (
    ShoppingList,
    build_shopping_list,
    consolidate,
    format_quantity,
    sort_for_display,
)
from tests.conftest import create_pantry, create_test_recipe


def required(name, quantity, unit="u", category="other", key=""):
    return RequiredIngredient(name=name, quantity=quantity, unit=unit, category=category, key=key)


class TestConsolidate:
    def test_sums_same_name_and_unit(self):
        items = consolidate([
            required("tomate", 2, "u", "produce"),
            required("Tomate ", 3, "unidades", "produce"),
        ])
        assert items == [ShoppingEntry(name="Tomate", quantity=5, unit="u", category="produce", key="tomate")]

    def test_capitalizes_first_letter_only(self):
        items = consolidate([required("pan rallado", 100, "g", "pantry")])
        assert items[0].name == "Pan rallado"

    def test_different_unit_gets_suffix(self):
        items = consolidate([
            required("leche", 500, "ml", "dairy"),
            ShoppingEntry(name="leche", quantity=1, unit="L", category="dairy"),
        ])
        assert [(i.name, i.quantity, i.unit) for i in items] == [
            ("Leche", 500, "ml"),
            ("Leche (L)", 1, "L"),
        ]

    def test_existing_suffix_is_not_repeated(self):
        items = consolidate([
            required("leche", 500, "ml", "dairy"),
            required("Leche (L)", 1, "L", "dairy", key="leche"),
        ])
        assert items[1].name == "Leche (L)"

    def test_consolidating_twice_changes_nothing(self):
        once = consolidate([
            required("leche", 500, "ml", "dairy"),
            required("Leche", 250, "ml", "dairy"),
            required("Leche (L)", 1, "L", "dairy", key="leche"),
            required("ajo", 2, "dientes", "produce"),
        ])
        assert consolidate(once) == once

    def test_missing_category_is_inferred(self):
        items = consolidate([ShoppingEntry(name="zanahoria", quantity=2, unit="u", category="")])
        assert items[0].category == "produce"

    def test_blank_names_are_dropped(self):
        assert consolidate([required("  ", 1)]) == []


def test_sort_for_display_ignores_accents_and_case():
    entries = [
        ShoppingEntry(name=name, quantity=1, unit="u")
        for name in ["Zanahoria", "ñoquis", "Ajo", "Ácido cítrico"]
    ]
    assert [e.name for e in sort_for_display(entries)] == ["Ácido cítrico", "Ajo", "ñoquis", "Zanahoria"]



def test_sort_for_display_puts_enye_after_n():
    entries = [ShoppingEntry(name=name, quantity=1, unit="u") for name in ["Ñoquis", "Oliva", "Nuez", "nabo"]]
    assert [e.name for e in sort_for_display(entries)] == ["nabo", "Nuez", "Ñoquis", "Oliva"]


@pytest.mark.parametrize("quantity,unit,expected", [
    (1500, "g", "1.5 kg"),
    (999, "g", "999 g"),
    (2000, "ml", "2 L"),
    (3.0, "u", "3 u"),
    (2.5, "tbsp", "2.5 tbsp"),
])
def test_format_quantity(quantity, unit, expected):
    assert format_quantity(quantity, unit) == expected


class TestBuildShoppingList:
    @pytest.fixture
    def plan(self):
        milanesas = create_test_recipe(
            "milanesas",
            "Milanesas",
            servings=4,
            ingredients=[("carne", 800, "g"), ("pan rallado", 200, "g"), ("huevos", 2, "u")],
        )
        plan = initialize_week("2024-12-30")
        return assign_recipe(plan, "2024-12-31", "dinner", milanesas, servings=2)

    def test_lists_only_what_is_missing(self, plan):
        pantry = create_pantry(("Carne", 100, "g"), ("Huevos", 10, "u"))
        shopping_list = build_shopping_list(plan, pantry)

        assert [(i.name, i.quantity, i.unit) for i in shopping_list.items] == [
            ("Carne", 300, "g"),
            ("Pan rallado", 100, "g"),
        ]

    def test_items_by_category(self, plan):
        shopping_list = build_shopping_list(plan, create_pantry(("huevos", 12, "u")))
        grouped = shopping_list.items_by_category

        assert set(grouped) == {"meat", "pantry"}
        assert [i.name for i in grouped["meat"]] == ["Carne"]

    def test_fully_stocked_pantry(self, plan):
        pantry = create_pantry(("carne", 1000, "g"), ("pan rallado", 500, "g"), ("huevos", 6, "u"))
        assert build_shopping_list(plan, pantry).items == []

    def test_accepts_slot_list(self):
        recipe = create_test_recipe("r", "R", ingredients=[("arroz", 200, "g")])
        slots = [MealSlot(date="2024-12-30", meal_type="lunch", recipe=recipe)]
        assert build_shopping_list(slots, []).items[0].name == "Arroz"


def test_empty_shopping_list_groups():
    assert ShoppingList(items=[]).items_by_category == {}
