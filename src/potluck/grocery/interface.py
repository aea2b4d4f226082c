"""Ports used by the smart-combine pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence, Union

from potluck.models.grocery import GroceryCacheEntry, PreCombinedItem, SmartGroceryItem


class MergeSkipped:
    """Sentinel returned when the semantic merge authority is not configured."""

    _instance: Optional["MergeSkipped"] = None

    def __new__(cls) -> "MergeSkipped":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MERGE_SKIPPED"

    def __bool__(self) -> bool:
        return False


MERGE_SKIPPED = MergeSkipped()

MergeResult = Union[list[SmartGroceryItem], MergeSkipped]


class SemanticMerger(Protocol):
    """Protocol for semantic merge backends."""

    def merge(self, pre_combined: Sequence[PreCombinedItem]) -> MergeResult:
        """Return merged items, or :data:`MERGE_SKIPPED` when merging is unavailable.

        Implementations raise :class:`potluck.merge.errors.MergeError` subclasses on failure.
        """


class GroceryCache(Protocol):
    """Protocol for per-event merged-result storage."""

    def load(self, event_id: str) -> Optional[GroceryCacheEntry]:
        """Return the stored entry for ``event_id`` or ``None``."""

    def save(
        self,
        event_id: str,
        items: Sequence[SmartGroceryItem],
        recipe_ids: Sequence[str],
    ) -> None:
        """Upsert the entry for ``event_id`` (recipe ids stored sorted)."""

    def delete(self, event_id: str) -> None:
        """Drop the entry for ``event_id`` if present."""


class InMemoryGroceryCache:
    """Dictionary-backed cache for development and tests."""

    def __init__(self) -> None:
        self._entries: dict[str, GroceryCacheEntry] = {}

    def load(self, event_id: str) -> Optional[GroceryCacheEntry]:
        return self._entries.get(event_id)

    def save(
        self,
        event_id: str,
        items: Sequence[SmartGroceryItem],
        recipe_ids: Sequence[str],
    ) -> None:
        self._entries[event_id] = GroceryCacheEntry(
            event_id=event_id,
            items=list(items),
            recipe_ids=sorted(set(recipe_ids)),
            updated_at=datetime.now(timezone.utc),
        )

    def delete(self, event_id: str) -> None:
        self._entries.pop(event_id, None)


__all__ = [
    "GroceryCache",
    "InMemoryGroceryCache",
    "MERGE_SKIPPED",
    "MergeResult",
    "MergeSkipped",
    "SemanticMerger",
]
