"""Quantity and unit helpers shared by the grocery pipeline."""

from __future__ import annotations

import math
from typing import Optional

# Practical cooking fractions; a remainder within FRACTION_TOLERANCE snaps to one of these.
FRACTION_MAP: tuple[tuple[float, str], ...] = (
    (0.125, "1/8"),
    (0.25, "1/4"),
    (0.333, "1/3"),
    (0.375, "3/8"),
    (0.5, "1/2"),
    (0.625, "5/8"),
    (0.667, "2/3"),
    (0.75, "3/4"),
    (0.875, "7/8"),
)
FRACTION_TOLERANCE = 0.02

IMPERIAL_UNITS = frozenset({"tsp", "tbsp", "cup", "oz", "lb"})
METRIC_UNITS = frozenset({"g", "kg", "ml", "liter"})

UNIT_MAP: dict[str, str] = {
    "cups": "cup",
    "c": "cup",
    "tablespoons": "tbsp",
    "tablespoon": "tbsp",
    "tbs": "tbsp",
    "tbsps": "tbsp",
    "teaspoons": "tsp",
    "teaspoon": "tsp",
    "tsps": "tsp",
    "ounces": "oz",
    "ounce": "oz",
    "pounds": "lb",
    "pound": "lb",
    "lbs": "lb",
    "cloves": "clove",
    "slices": "slice",
    "pieces": "piece",
    "cans": "can",
    "bottles": "bottle",
    "bunches": "bunch",
    "heads": "head",
    "stalks": "stalk",
    "ribs": "rib",
    "strips": "strip",
    "ears": "ear",
    "sprigs": "sprig",
    "pinches": "pinch",
    "dashes": "dash",
    "liters": "liter",
    "litre": "liter",
    "litres": "liter",
    "l": "liter",
    "milliliters": "ml",
    "milliliter": "ml",
    "millilitres": "ml",
    "grams": "g",
    "gram": "g",
    "kilograms": "kg",
    "kilogram": "kg",
}


def decimal_to_fraction(value: float) -> str:
    """Render ``value`` as a cooking fraction such as ``"1/2"`` or ``"1 1/3"``.

    The fractional remainder snaps to the nearest eighth, quarter, third or half when it is
    within :data:`FRACTION_TOLERANCE`; whole values render as integers and anything else falls
    back to at most two decimal places.
    """

    if not math.isfinite(value):
        raise ValueError(f"Cannot render non-finite quantity {value!r}")
    if value < 0:
        raise ValueError(f"Cannot render negative quantity {value!r}")
    if float(value).is_integer():
        return str(int(value))

    whole = math.floor(value)
    remainder = value - whole

    for target, fraction in FRACTION_MAP:
        if abs(remainder - target) < FRACTION_TOLERANCE:
            return f"{whole} {fraction}" if whole > 0 else fraction

    rendered = f"{value:.2f}".rstrip("0").rstrip(".")
    return rendered


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Return the canonical spelling for ``unit`` or ``None`` when no unit is given."""

    if unit is None:
        return None
    lowered = unit.strip().lower()
    if not lowered:
        return None
    return UNIT_MAP.get(lowered, lowered)


__all__ = [
    "FRACTION_MAP",
    "IMPERIAL_UNITS",
    "METRIC_UNITS",
    "UNIT_MAP",
    "decimal_to_fraction",
    "normalize_unit",
]
