"""
Unit classification for ingredient quantities (English and Spanish).

Units are tagged with the family they measure so callers branch on a typed
value instead of comparing raw strings.  No conversion between units is ever
performed: two quantities are only combined when their canonical symbols are
identical.
"""

from dataclasses import dataclass
from enum import Enum

from mealplan import config


class UnitKind(Enum):
    MASS = "mass"
    VOLUME = "volume"
    COUNT = "count"
    UNKNOWN = "unknown"


# alias -> (canonical symbol, kind)
UNIT_MAPPING: dict[str, tuple[str, UnitKind]] = {
    # Mass - English
    'g': ('g', UnitKind.MASS), 'gr': ('g', UnitKind.MASS),
    'gram': ('g', UnitKind.MASS), 'grams': ('g', UnitKind.MASS),
    'kg': ('kg', UnitKind.MASS), 'kilo': ('kg', UnitKind.MASS), 'kilos': ('kg', UnitKind.MASS),
    'kilogram': ('kg', UnitKind.MASS), 'kilograms': ('kg', UnitKind.MASS),
    'oz': ('oz', UnitKind.MASS), 'ounce': ('oz', UnitKind.MASS), 'ounces': ('oz', UnitKind.MASS),
    'lb': ('lb', UnitKind.MASS), 'lbs': ('lb', UnitKind.MASS),
    'pound': ('lb', UnitKind.MASS), 'pounds': ('lb', UnitKind.MASS),

    # Mass - Spanish
    'gramo': ('g', UnitKind.MASS), 'gramos': ('g', UnitKind.MASS),
    'kilogramo': ('kg', UnitKind.MASS), 'kilogramos': ('kg', UnitKind.MASS),

    # Volume - English
    'ml': ('ml', UnitKind.VOLUME), 'milliliter': ('ml', UnitKind.VOLUME),
    'milliliters': ('ml', UnitKind.VOLUME),
    'l': ('L', UnitKind.VOLUME), 'liter': ('L', UnitKind.VOLUME), 'liters': ('L', UnitKind.VOLUME),
    'cup': ('cup', UnitKind.VOLUME), 'cups': ('cup', UnitKind.VOLUME),
    'tbsp': ('tbsp', UnitKind.VOLUME), 'tablespoon': ('tbsp', UnitKind.VOLUME),
    'tablespoons': ('tbsp', UnitKind.VOLUME),
    'tsp': ('tsp', UnitKind.VOLUME), 'teaspoon': ('tsp', UnitKind.VOLUME),
    'teaspoons': ('tsp', UnitKind.VOLUME),

    # Volume - Spanish
    'mililitro': ('ml', UnitKind.VOLUME), 'mililitros': ('ml', UnitKind.VOLUME),
    'litro': ('L', UnitKind.VOLUME), 'litros': ('L', UnitKind.VOLUME),
    'taza': ('cup', UnitKind.VOLUME), 'tazas': ('cup', UnitKind.VOLUME),
    'cda': ('tbsp', UnitKind.VOLUME), 'cucharada': ('tbsp', UnitKind.VOLUME),
    'cucharadas': ('tbsp', UnitKind.VOLUME),
    'cdta': ('tsp', UnitKind.VOLUME), 'cucharadita': ('tsp', UnitKind.VOLUME),
    'cucharaditas': ('tsp', UnitKind.VOLUME),

    # Count
    'u': ('u', UnitKind.COUNT), 'un': ('u', UnitKind.COUNT),
    'unit': ('u', UnitKind.COUNT), 'units': ('u', UnitKind.COUNT),
    'unidad': ('u', UnitKind.COUNT), 'unidades': ('u', UnitKind.COUNT),
    'piece': ('u', UnitKind.COUNT), 'pieces': ('u', UnitKind.COUNT),
    'whole': ('u', UnitKind.COUNT), 'pieza': ('u', UnitKind.COUNT), 'piezas': ('u', UnitKind.COUNT),
    'clove': ('clove', UnitKind.COUNT), 'cloves': ('clove', UnitKind.COUNT),
    'diente': ('clove', UnitKind.COUNT), 'dientes': ('clove', UnitKind.COUNT),
    'slice': ('slice', UnitKind.COUNT), 'slices': ('slice', UnitKind.COUNT),
    'feta': ('slice', UnitKind.COUNT), 'fetas': ('slice', UnitKind.COUNT),
    'can': ('can', UnitKind.COUNT), 'cans': ('can', UnitKind.COUNT),
    'lata': ('can', UnitKind.COUNT), 'latas': ('can', UnitKind.COUNT),
    'package': ('package', UnitKind.COUNT), 'packages': ('package', UnitKind.COUNT),
    'paquete': ('package', UnitKind.COUNT), 'paquetes': ('package', UnitKind.COUNT),
    'bunch': ('bunch', UnitKind.COUNT), 'atado': ('bunch', UnitKind.COUNT),
}


@dataclass(frozen=True)
class Unit:
    symbol: str
    kind: UnitKind

    @property
    def key(self) -> str:
        """Grouping key: canonical symbol, case-insensitive for unknown units."""
        if self.kind is UnitKind.UNKNOWN:
            return self.symbol.lower()
        return self.symbol

    def __str__(self) -> str:
        return self.symbol


def classify_unit(raw: str | None) -> Unit:
    """Return the canonical Unit for *raw*.

    Missing units fall back to the default count unit.  Unrecognised units
    keep their original spelling (trimmed) and are tagged UNKNOWN.
    """
    if raw is None or not str(raw).strip():
        return Unit(config.DEFAULT_UNIT, UnitKind.COUNT)

    stripped = str(raw).strip()
    unit_lower = stripped.lower().rstrip('.')

    if unit_lower in UNIT_MAPPING:
        symbol, kind = UNIT_MAPPING[unit_lower]
        return Unit(symbol, kind)

    # Handle plural forms not in mapping
    if unit_lower.endswith('s') and unit_lower[:-1] in UNIT_MAPPING:
        symbol, kind = UNIT_MAPPING[unit_lower[:-1]]
        return Unit(symbol, kind)

    return Unit(stripped, UnitKind.UNKNOWN)


def standardize_unit(raw: str | None) -> str:
    return classify_unit(raw).symbol


def same_unit(a: str | Unit | None, b: str | Unit | None) -> bool:
    """True only when both units canonicalise to the same symbol.

    Units of the same family (g and kg) are still a mismatch: quantities are
    never converted.
    """
    unit_a = a if isinstance(a, Unit) else classify_unit(a)
    unit_b = b if isinstance(b, Unit) else classify_unit(b)
    return unit_a.key == unit_b.key
