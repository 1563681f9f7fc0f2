"""
Date/slot mapping between calendar date strings and grid day indices.

Slot dates are plain ``YYYY-MM-DD`` strings.  They are always interpreted at
local midnight (a synthetic ``T00:00:00`` time is appended before parsing) and
never as UTC, so a date can't slide into the previous day for zones west of
UTC.  Day indices are counted from the week anchor, which is the Monday the
grid starts on.
"""

import logging
import re
from datetime import date, datetime, timedelta

from mealplan import config
from mealplan.models import MealSlot

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400
_DATE_FORMAT = "%Y-%m-%d"
# Zero-padded YYYY-MM-DD only; strptime alone also accepts "2024-1-2"
_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _local_midnight(value: date | datetime | str) -> datetime | None:
    """Return *value* as a naive datetime at local midnight, or None."""
    if isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not _ISO_DATE.fullmatch(value):
        return None
    try:
        return datetime.strptime(f"{value}T00:00:00", f"{_DATE_FORMAT}T%H:%M:%S")
    except ValueError:
        return None


def parse_date(value: date | datetime | str) -> date | None:
    """Parse a calendar date string; None when it can't be parsed."""
    midnight = _local_midnight(value)
    return midnight.date() if midnight is not None else None


def week_anchor_for(day: date | datetime | str) -> date:
    """Monday (ISO week start) of the week containing *day*."""
    parsed = parse_date(day)
    if parsed is None:
        raise ValueError(f"Invalid date: {day!r}")
    return parsed - timedelta(days=parsed.weekday())


def validate_range_days(range_days: int) -> int:
    if range_days not in config.SUPPORTED_RANGE_DAYS:
        raise ValueError(
            f"range_days must be one of {config.SUPPORTED_RANGE_DAYS}, got {range_days}"
        )
    return range_days


def day_index_for_date(week_anchor: date | datetime | str, day: str) -> int | None:
    """Zero-based day offset of *day* from *week_anchor*.

    Returns None when either date can't be parsed.  The result is not range
    checked; see slot_day_index for that.
    """
    anchor = _local_midnight(week_anchor)
    target = _local_midnight(day)
    if anchor is None or target is None:
        return None
    return round((target - anchor).total_seconds() / _SECONDS_PER_DAY)


def date_for_day_index(week_anchor: date | datetime | str, index: int) -> str:
    """Inverse of day_index_for_date: the ``YYYY-MM-DD`` string for *index*."""
    anchor = _local_midnight(week_anchor)
    if anchor is None:
        raise ValueError(f"Invalid week anchor: {week_anchor!r}")
    return (anchor + timedelta(days=index)).strftime(_DATE_FORMAT)


def slot_day_index(
    week_anchor: date | datetime | str,
    day: str,
    range_days: int = config.DEFAULT_RANGE_DAYS,
) -> int | None:
    """Day index of *day* inside the grid, or None when it doesn't belong to it."""
    index = day_index_for_date(week_anchor, day)
    if index is None or index < 0 or index >= range_days:
        return None
    return index


def grid_dates(week_anchor: date | datetime | str, range_days: int = config.DEFAULT_RANGE_DAYS) -> list[str]:
    return [date_for_day_index(week_anchor, i) for i in range(validate_range_days(range_days))]


def normalize_meal_type(meal_type: str | None) -> str | None:
    """Canonical meal type for *meal_type* (Spanish aliases accepted), else None."""
    if not meal_type or not isinstance(meal_type, str):
        return None
    key = meal_type.strip().lower()
    key = config.MEAL_TYPE_ALIASES.get(key, key)
    return key if key in config.MEAL_TYPES else None


def map_slots_to_grid(
    slots: list[MealSlot] | tuple[MealSlot, ...],
    week_anchor: date | datetime | str,
    range_days: int = config.DEFAULT_RANGE_DAYS,
) -> dict[int, dict[str, MealSlot | None]]:
    """Place slots on a {day_index: {meal_type: slot}} grid.

    Every day and meal type is present; cells without a slot hold None.
    Slots with an unparseable date, a date outside the range or an unknown
    meal type are left off the grid.
    """
    validate_range_days(range_days)
    grid: dict[int, dict[str, MealSlot | None]] = {
        day: dict.fromkeys(config.MEAL_TYPES) for day in range(range_days)
    }

    dropped = 0
    for slot in slots:
        index = slot_day_index(week_anchor, slot.date, range_days)
        meal_type = normalize_meal_type(slot.meal_type)
        if index is None or meal_type is None:
            dropped += 1
            continue
        grid[index][meal_type] = slot

    if dropped:
        logger.debug(
            "Slots left off the grid",
            extra={"dropped": dropped, "range_days": range_days},
        )
    return grid
