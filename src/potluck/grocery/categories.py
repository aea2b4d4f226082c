"""Grocery category taxonomy."""

from __future__ import annotations

from potluck.models.grocery import GroceryCategory

GROCERY_CATEGORIES: dict[GroceryCategory, str] = {
    GroceryCategory.PRODUCE: "Produce",
    GroceryCategory.MEAT_SEAFOOD: "Protein",
    GroceryCategory.DAIRY: "Dairy",
    GroceryCategory.PANTRY: "Pantry",
    GroceryCategory.SPICES: "Spices",
    GroceryCategory.FROZEN: "Frozen",
    GroceryCategory.BAKERY: "Bakery",
    GroceryCategory.BEVERAGES: "Beverages",
    GroceryCategory.CONDIMENTS: "Condiments",
    GroceryCategory.OTHER: "Other",
}

CATEGORY_ORDER: tuple[GroceryCategory, ...] = (
    GroceryCategory.PRODUCE,
    GroceryCategory.MEAT_SEAFOOD,
    GroceryCategory.DAIRY,
    GroceryCategory.PANTRY,
    GroceryCategory.SPICES,
    GroceryCategory.FROZEN,
    GroceryCategory.BAKERY,
    GroceryCategory.BEVERAGES,
    GroceryCategory.CONDIMENTS,
    GroceryCategory.OTHER,
)


def display_name(category: GroceryCategory | str) -> str:
    """Return the human label for ``category`` (``meat_seafood`` -> ``"Protein"``)."""

    return GROCERY_CATEGORIES[GroceryCategory(category)]


__all__ = ["GROCERY_CATEGORIES", "CATEGORY_ORDER", "display_name"]
