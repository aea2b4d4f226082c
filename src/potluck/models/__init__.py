"""Pydantic models defining shared data contracts."""

from potluck.models.grocery import (
    CombinedGroceryItem,
    GroceryCacheEntry,
    GroceryCategory,
    PreCombinedItem,
    RecipeIngredient,
    SmartGroceryItem,
)
from potluck.models.pantry import PantryItem

__all__ = [
    "CombinedGroceryItem",
    "GroceryCacheEntry",
    "GroceryCategory",
    "PreCombinedItem",
    "RecipeIngredient",
    "SmartGroceryItem",
    "PantryItem",
]
