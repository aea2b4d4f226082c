"""Category grouping for display and export."""

from __future__ import annotations

from typing import Sequence, TypeVar

from potluck.grocery.categories import CATEGORY_ORDER
from potluck.models.grocery import CombinedGroceryItem, GroceryCategory, SmartGroceryItem

ItemT = TypeVar("ItemT", CombinedGroceryItem, SmartGroceryItem)


def group_by_category(items: Sequence[ItemT]) -> dict[GroceryCategory, list[ItemT]]:
    """Partition ``items`` into category buckets ordered by :data:`CATEGORY_ORDER`.

    Empty categories are omitted and items keep their relative input order.
    """

    buckets: dict[GroceryCategory, list[ItemT]] = {}
    for item in items:
        buckets.setdefault(GroceryCategory(item.category), []).append(item)
    return {category: buckets[category] for category in CATEGORY_ORDER if category in buckets}


__all__ = ["group_by_category"]
