"""Grocery aggregation pipeline."""

from potluck.grocery.categories import CATEGORY_ORDER, GROCERY_CATEGORIES, display_name
from potluck.grocery.combiner import UnknownRecipeError, combine_ingredients, normalize_name_key
from potluck.grocery.export import csv_filename, format_grocery_item, generate_csv
from potluck.grocery.grouping import group_by_category
from potluck.grocery.interface import (
    MERGE_SKIPPED,
    GroceryCache,
    InMemoryGroceryCache,
    SemanticMerger,
)
from potluck.grocery.pantry import PantryFilterResult, filter_pantry_items
from potluck.grocery.quantity import decimal_to_fraction, normalize_unit
from potluck.grocery.smart_combine import SmartCombineResult, SmartCombiner, is_cache_fresh

__all__ = [
    "CATEGORY_ORDER",
    "GROCERY_CATEGORIES",
    "display_name",
    "UnknownRecipeError",
    "combine_ingredients",
    "normalize_name_key",
    "csv_filename",
    "format_grocery_item",
    "generate_csv",
    "group_by_category",
    "MERGE_SKIPPED",
    "GroceryCache",
    "InMemoryGroceryCache",
    "SemanticMerger",
    "PantryFilterResult",
    "filter_pantry_items",
    "decimal_to_fraction",
    "normalize_unit",
    "SmartCombineResult",
    "SmartCombiner",
    "is_cache_fresh",
]
