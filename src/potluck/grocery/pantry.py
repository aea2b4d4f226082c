"""Pantry-based exclusion of grocery items."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Sequence, TypeVar

from potluck.grocery.combiner import normalize_name_key
from potluck.models.grocery import CombinedGroceryItem, SmartGroceryItem

ItemT = TypeVar("ItemT", CombinedGroceryItem, SmartGroceryItem)


@dataclass(frozen=True)
class PantryFilterResult(Generic[ItemT]):
    """Surviving items plus how many were dropped for UI messaging."""

    items: list[ItemT]
    removed_count: int


def filter_pantry_items(
    items: Sequence[ItemT],
    pantry_names: Iterable[str],
) -> PantryFilterResult[ItemT]:
    """Drop items whose name exactly matches a pantry name (case-insensitive, trimmed).

    Matching is whole-name only: a pantry entry ``garlic`` removes ``garlic`` but leaves
    ``garlic powder`` on the list.
    """

    pantry = {normalize_name_key(name) for name in pantry_names if name and name.strip()}
    if not pantry:
        return PantryFilterResult(items=list(items), removed_count=0)

    kept = [item for item in items if normalize_name_key(item.name) not in pantry]
    return PantryFilterResult(items=kept, removed_count=len(items) - len(kept))


__all__ = ["PantryFilterResult", "filter_pantry_items"]
