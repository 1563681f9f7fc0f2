from datetime import date, datetime

import pytest

from mealplan.dates import (
    date_for_day_index,
    day_index_for_date,
    grid_dates,
    map_slots_to_grid,
    normalize_meal_type,
    parse_date,
    slot_day_index,
    week_anchor_for,
)
from mealplan.models import MealSlot
from tests.conftest import create_test_recipe


class TestDayIndexForDate:
    def test_day_after_anchor_is_index_one(self):
        assert day_index_for_date(date(2024, 12, 30), "2024-12-31") == 1

    def test_anchor_is_index_zero(self):
        assert day_index_for_date("2024-12-30", "2024-12-30") == 0

    def test_crosses_year_boundary(self):
        assert day_index_for_date("2024-12-30", "2025-01-05") == 6

    def test_accepts_datetime_anchor_ignoring_time(self):
        anchor = datetime(2024, 12, 30, 23, 59)
        assert day_index_for_date(anchor, "2024-12-31") == 1

    def test_dates_before_anchor_are_negative(self):
        assert day_index_for_date("2024-12-30", "2024-12-29") == -1

    def test_unparseable_date_returns_none(self):
        assert day_index_for_date("2024-12-30", "not-a-date") is None
        assert day_index_for_date("2024-12-30", "2024-02-30") is None

    def test_dst_transition_week_is_not_shifted(self):
        # Week containing the March DST switch in many zones
        assert day_index_for_date("2024-03-04", "2024-03-10") == 6
        assert day_index_for_date("2024-10-28", "2024-11-03") == 6


class TestDateForDayIndex:
    def test_inverse_of_day_index(self):
        assert date_for_day_index(date(2024, 12, 30), 1) == "2024-12-31"
        assert date_for_day_index("2024-12-30", 13) == "2025-01-12"

    @pytest.mark.parametrize("range_days", [7, 14, 28])
    def test_round_trip_over_range(self, range_days):
        anchor = date(2024, 12, 30)
        for index in range(range_days):
            assert day_index_for_date(anchor, date_for_day_index(anchor, index)) == index

    def test_round_trip_from_date_string(self):
        anchor = "2024-02-26"
        for day in ["2024-02-26", "2024-02-29", "2024-03-01", "2024-03-10"]:
            assert date_for_day_index(anchor, day_index_for_date(anchor, day)) == day

    @pytest.mark.parametrize("day", ["2024-12-31 ", " 2024-12-31", "2024-1-2", "2024-12-31T10:00"])
    def test_non_canonical_date_strings_are_unparseable(self, day):
        assert day_index_for_date("2024-12-30", day) is None
        assert slot_day_index("2024-12-30", day) is None

    def test_invalid_anchor_raises(self):
        with pytest.raises(ValueError):
            date_for_day_index("garbage", 0)


class TestSlotDayIndex:
    def test_in_range(self):
        assert slot_day_index("2024-12-30", "2025-01-05", 7) == 6

    def test_beyond_range_is_dropped_not_clamped(self):
        assert slot_day_index("2024-12-30", "2025-01-06", 7) is None
        assert slot_day_index("2024-12-30", "2025-01-06", 14) == 7

    def test_before_anchor_is_dropped(self):
        assert slot_day_index("2024-12-30", "2024-12-29", 28) is None


class TestWeekAnchor:
    def test_monday_of_week(self):
        assert week_anchor_for("2025-01-02") == date(2024, 12, 30)

    def test_monday_is_its_own_anchor(self):
        assert week_anchor_for(date(2024, 12, 30)) == date(2024, 12, 30)

    def test_sunday_belongs_to_previous_monday(self):
        assert week_anchor_for("2025-01-05") == date(2024, 12, 30)

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            week_anchor_for("nope")


class TestHelpers:
    def test_parse_date(self):
        assert parse_date("2024-12-31") == date(2024, 12, 31)
        assert parse_date(" 2024-12-31 ") is None
        assert parse_date("2024-1-2") is None
        assert parse_date("31/12/2024") is None
        assert parse_date(None) is None

    def test_grid_dates(self):
        dates = grid_dates("2024-12-30", 7)
        assert dates[0] == "2024-12-30"
        assert dates[-1] == "2025-01-05"
        assert len(dates) == 7

    def test_grid_dates_rejects_unsupported_range(self):
        with pytest.raises(ValueError):
            grid_dates("2024-12-30", 10)

    def test_normalize_meal_type(self):
        assert normalize_meal_type("Dinner") == "dinner"
        assert normalize_meal_type("cena") == "dinner"
        assert normalize_meal_type("merienda") == "snack"
        assert normalize_meal_type("brunch") is None
        assert normalize_meal_type(None) is None


class TestMapSlotsToGrid:
    def test_grid_has_every_day_and_meal_type(self):
        grid = map_slots_to_grid([], "2024-12-30", 14)
        assert sorted(grid.keys()) == list(range(14))
        for meals in grid.values():
            assert list(meals.keys()) == ["breakfast", "lunch", "snack", "dinner"]
            assert all(slot is None for slot in meals.values())

    def test_places_slot_by_date(self):
        recipe = create_test_recipe("r1", "Milanesas")
        slot = MealSlot(date="2024-12-31", meal_type="dinner", recipe=recipe)
        grid = map_slots_to_grid([slot], date(2024, 12, 30))
        assert grid[1]["dinner"] is slot

    def test_out_of_range_and_unparseable_slots_are_excluded(self):
        slots = [
            MealSlot(date="2025-01-06", meal_type="dinner"),
            MealSlot(date="2024-12-29", meal_type="lunch"),
            MealSlot(date="bad", meal_type="lunch"),
            MealSlot(date="2024-12-30", meal_type="brunch"),
        ]
        grid = map_slots_to_grid(slots, "2024-12-30", 7)
        assert all(slot is None for meals in grid.values() for slot in meals.values())

    def test_rejects_unsupported_range(self):
        with pytest.raises(ValueError):
            map_slots_to_grid([], "2024-12-30", 30)
