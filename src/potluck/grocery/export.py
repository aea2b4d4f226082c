"""Human-readable rendering and CSV export of grocery lists."""

from __future__ import annotations

import csv
import io
import re
from typing import Mapping, Sequence, Union

from potluck.grocery.categories import display_name
from potluck.grocery.quantity import decimal_to_fraction
from potluck.models.grocery import CombinedGroceryItem, GroceryCategory, SmartGroceryItem

GroceryItem = Union[CombinedGroceryItem, SmartGroceryItem]

CSV_HEADER = ("Category", "Item", "Quantity", "Unit", "Recipes")

NAIVE_MISSING_QUANTITY = "to taste"
MERGED_MISSING_QUANTITY = "-"

ABBREVIATION_UNITS = frozenset({"tsp", "tbsp", "oz", "lb", "g", "kg", "ml"})

# Units naming a part of the ingredient read after it: "3 garlic cloves", "2 celery stalks".
NAME_FIRST_UNITS = frozenset(
    {"stalk", "strip", "ear", "clove", "head", "bunch", "sprig", "piece", "slice", "rib"}
)

MASS_NOUNS = frozenset(
    {
        "flour", "sugar", "salt", "rice", "water", "milk", "butter", "oil", "garlic", "ginger",
        "chicken", "beef", "pork", "lamb", "turkey", "fish", "salmon", "tuna", "shrimp", "pasta",
        "spaghetti", "bread", "cheese", "cream", "honey", "mustard", "vinegar", "broth", "stock",
        "cornstarch", "cilantro", "parsley", "basil", "oregano", "thyme", "rosemary", "dill",
        "cinnamon", "paprika", "cumin", "turmeric", "nutmeg", "lettuce", "spinach", "kale",
        "cabbage", "celery", "broccoli", "cauliflower", "corn", "bacon", "sausage", "chocolate",
        "cocoa", "coffee", "tea", "juice", "wine", "beer", "mayonnaise", "ketchup", "tahini",
        "yogurt", "tofu", "tempeh", "quinoa", "couscous", "powder", "sauce", "paste", "mint",
        "breadcrumbs", "flakes", "buttermilk", "extract", "vanilla", "ghee", "pepper", "molasses",
    }
)

_O_ES_WORDS = frozenset({"potato", "tomato", "hero"})
_SLUG_RE = re.compile(r"\s+")


def _pluralize(word: str) -> str:
    if word.endswith("leaf"):
        return word[:-4] + "leaves"
    if word.endswith(("s", "sh", "ch")):
        return word + "es"
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith("o"):
        last = word.split(" ")[-1]
        return word + "es" if last in _O_ES_WORDS else word + "s"
    return word + "s"


def _unit_label(unit: str, quantity: float | None) -> str:
    if quantity is None or quantity <= 1 or unit in ABBREVIATION_UNITS:
        return unit
    return _pluralize(unit)


def format_quantity(item: GroceryItem) -> str:
    """Fraction-encoded quantity, or the placeholder for a missing one."""

    if item.total_quantity is not None:
        return decimal_to_fraction(item.total_quantity)
    if isinstance(item, SmartGroceryItem):
        return MERGED_MISSING_QUANTITY
    return NAIVE_MISSING_QUANTITY


def format_grocery_item(item: GroceryItem) -> str:
    """Render an item as a shopping-list line, e.g. ``"1 1/2 cups flour"``."""

    quantity = item.total_quantity
    unit = item.unit
    if quantity is None:
        if not unit:
            label = item.name
        elif unit in NAME_FIRST_UNITS:
            label = f"{item.name} {unit}"
        else:
            label = f"{unit} {item.name}"
        return f"{label} ({format_quantity(item)})"

    parts = [decimal_to_fraction(quantity)]
    if unit and unit in NAME_FIRST_UNITS:
        parts.extend([item.name, _unit_label(unit, quantity)])
        return " ".join(parts)

    if unit:
        parts.append(_unit_label(unit, quantity))
    base_word = item.name.split(" ")[-1]
    countable = base_word not in MASS_NOUNS
    if countable and (quantity > 1 or unit):
        parts.append(_pluralize(item.name))
    else:
        parts.append(item.name)
    return " ".join(parts)


def generate_csv(grouped: Mapping[GroceryCategory, Sequence[GroceryItem]]) -> str:
    """Serialize category-grouped items to CSV text (one row per item)."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for category, items in grouped.items():
        category_label = display_name(category)
        for item in items:
            quantity = (
                decimal_to_fraction(item.total_quantity) if item.total_quantity is not None else ""
            )
            writer.writerow(
                [
                    category_label,
                    item.name,
                    quantity,
                    item.unit or "",
                    "; ".join(item.source_recipes),
                ]
            )
    return buffer.getvalue()


def csv_filename(event_name: str) -> str:
    """Download filename for an event's grocery list."""

    slug = _SLUG_RE.sub("-", event_name.strip().lower()) or "event"
    return f"grocery-list-{slug}.csv"


__all__ = [
    "CSV_HEADER",
    "format_grocery_item",
    "format_quantity",
    "generate_csv",
    "csv_filename",
]
