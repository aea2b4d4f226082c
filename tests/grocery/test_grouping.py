"""Tests for category grouping and display names."""

from __future__ import annotations

from potluck.grocery.categories import CATEGORY_ORDER, GROCERY_CATEGORIES, display_name
from potluck.grocery.grouping import group_by_category
from potluck.models.grocery import CombinedGroceryItem, GroceryCategory


def _item(name: str, category: GroceryCategory) -> CombinedGroceryItem:
    return CombinedGroceryItem(name=name, total_quantity=1.0, category=category)


def test_groups_follow_aisle_order_and_omit_empty_categories():
    items = [
        _item("ice cream", GroceryCategory.FROZEN),
        _item("basil", GroceryCategory.PRODUCE),
        _item("chicken", GroceryCategory.MEAT_SEAFOOD),
        _item("tomato", GroceryCategory.PRODUCE),
    ]

    grouped = group_by_category(items)

    assert list(grouped) == [
        GroceryCategory.PRODUCE,
        GroceryCategory.MEAT_SEAFOOD,
        GroceryCategory.FROZEN,
    ]
    assert [item.name for item in grouped[GroceryCategory.PRODUCE]] == ["basil", "tomato"]


def test_grouping_keeps_every_item(sample_ingredients, recipe_names):
    from potluck.grocery.combiner import combine_ingredients

    items = combine_ingredients(sample_ingredients, recipe_names)
    grouped = group_by_category(items)

    assert sum(len(bucket) for bucket in grouped.values()) == len(items)


def test_display_names_cover_every_category():
    assert set(GROCERY_CATEGORIES) == set(GroceryCategory)
    assert set(CATEGORY_ORDER) == set(GroceryCategory)
    assert display_name(GroceryCategory.MEAT_SEAFOOD) == "Protein"
    assert display_name("produce") == "Produce"
