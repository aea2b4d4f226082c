"""End-to-end grocery pipeline: naive combine, cache check, semantic merge."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Mapping, Optional, Sequence, Union

from potluck import metrics
from potluck.grocery.combiner import combine_ingredients
from potluck.grocery.interface import MERGE_SKIPPED, GroceryCache, SemanticMerger
from potluck.grocery.quantity import decimal_to_fraction
from potluck.merge.errors import (
    MalformedMergeResponseError,
    MergeServiceError,
    MergeTransportError,
)
from potluck.models.grocery import (
    CombinedGroceryItem,
    GroceryCacheEntry,
    PreCombinedItem,
    RecipeIngredient,
    SmartGroceryItem,
)

logger = logging.getLogger(__name__)

CombineStatus = Literal["cached", "merged", "fallback"]
FallbackReason = Literal["skipped", "error", "empty"]


@dataclass(frozen=True)
class SmartCombineResult:
    """Outcome of :meth:`SmartCombiner.smart_combine`.

    ``items`` holds merged :class:`SmartGroceryItem` entries for ``cached``/``merged`` results
    and the naive :class:`CombinedGroceryItem` entries for ``fallback`` results.
    """

    status: CombineStatus
    items: Sequence[Union[SmartGroceryItem, CombinedGroceryItem]]
    naive_items: list[CombinedGroceryItem] = field(default_factory=list)
    recipe_ids: list[str] = field(default_factory=list)
    fallback_reason: Optional[FallbackReason] = None
    error: Optional[str] = None

    @property
    def is_merged(self) -> bool:
        return self.status in ("cached", "merged")


def encode_pre_combined(items: Iterable[CombinedGroceryItem]) -> list[PreCombinedItem]:
    """Convert naive results to the merge request shape with fraction-string quantities."""

    return [
        PreCombinedItem(
            name=item.name,
            quantity=(
                decimal_to_fraction(item.total_quantity)
                if item.total_quantity is not None
                else None
            ),
            unit=item.unit,
            category=item.category,
            source_recipes=list(item.source_recipes),
        )
        for item in items
    ]


def contributing_recipe_ids(ingredients: Iterable[RecipeIngredient]) -> list[str]:
    """Sorted, de-duplicated recipe ids of the supplied ingredients."""

    return sorted({ingredient.recipe_id for ingredient in ingredients})


def is_cache_fresh(entry: GroceryCacheEntry, recipe_ids: Iterable[str]) -> bool:
    """True when ``entry`` was produced from exactly ``recipe_ids`` (order-insensitive)."""

    return sorted(entry.recipe_ids) == sorted(set(recipe_ids))


class SmartCombiner:
    """Compose naive combining, the grocery cache and the semantic merge service.

    Only successful merges are cached. Skipped or failed merges fall back to the naive result
    for that call so a transient outage never becomes a durable cache entry.
    """

    def __init__(self, *, cache: GroceryCache, merger: SemanticMerger) -> None:
        self._cache = cache
        self._merger = merger

    def smart_combine(
        self,
        event_id: str,
        ingredients: Iterable[RecipeIngredient],
        recipe_names: Mapping[str, str],
    ) -> SmartCombineResult:
        ingredient_list = list(ingredients)
        naive = combine_ingredients(ingredient_list, recipe_names)
        recipe_ids = contributing_recipe_ids(ingredient_list)
        log_extra = {"event_id": event_id}

        if not naive:
            return SmartCombineResult(
                status="fallback",
                items=naive,
                naive_items=naive,
                recipe_ids=recipe_ids,
                fallback_reason="empty",
            )

        pre_combined = encode_pre_combined(naive)

        cached = self._load_cached(event_id)
        if cached is not None:
            if is_cache_fresh(cached, recipe_ids):
                metrics.CACHE_LOOKUPS.labels(result="hit").inc()
                logger.debug("Grocery cache hit for event %s", event_id, extra=log_extra)
                return SmartCombineResult(
                    status="cached",
                    items=list(cached.items),
                    naive_items=naive,
                    recipe_ids=recipe_ids,
                )
            metrics.CACHE_LOOKUPS.labels(result="stale").inc()
            logger.info(
                "Grocery cache stale for event %s cached=%s current=%s",
                event_id,
                cached.recipe_ids,
                recipe_ids,
                extra=log_extra,
            )
        else:
            metrics.CACHE_LOOKUPS.labels(result="miss").inc()

        def _fallback(reason: FallbackReason, error: Optional[str] = None) -> SmartCombineResult:
            return SmartCombineResult(
                status="fallback",
                items=naive,
                naive_items=naive,
                recipe_ids=recipe_ids,
                fallback_reason=reason,
                error=error,
            )

        try:
            merged = self._merger.merge(pre_combined)
        except MergeTransportError as exc:
            metrics.MERGE_CALLS.labels(outcome="transport_error").inc()
            logger.warning(
                "Semantic merge unreachable for event %s, using naive combine: %s",
                event_id,
                exc,
                extra=log_extra,
            )
            return _fallback("error", str(exc))
        except MalformedMergeResponseError as exc:
            metrics.MERGE_CALLS.labels(outcome="malformed").inc()
            logger.error(
                "Semantic merge returned malformed response for event %s: %s",
                event_id,
                exc,
                extra=log_extra,
            )
            return _fallback("error", str(exc))
        except MergeServiceError as exc:
            metrics.MERGE_CALLS.labels(outcome="service_error").inc()
            logger.error(
                "Semantic merge service failed for event %s: %s",
                event_id,
                exc,
                extra=log_extra,
            )
            return _fallback("error", str(exc))

        if merged is MERGE_SKIPPED:
            metrics.MERGE_CALLS.labels(outcome="skipped").inc()
            logger.info(
                "Semantic merge not configured; showing naive combine for event %s",
                event_id,
                extra=log_extra,
            )
            return _fallback("skipped")

        if not merged:
            # A non-empty list never merges down to nothing.
            metrics.MERGE_CALLS.labels(outcome="malformed").inc()
            message = f"Semantic merge returned no items for {len(naive)} naive item(s)"
            logger.error("%s for event %s", message, event_id, extra=log_extra)
            return _fallback("error", message)

        metrics.MERGE_CALLS.labels(outcome="merged").inc()
        logger.info(
            "Semantic merge reduced %s item(s) to %s for event %s",
            len(naive),
            len(merged),
            event_id,
            extra=log_extra,
        )
        self._save_cached(event_id, merged, recipe_ids)
        return SmartCombineResult(
            status="merged",
            items=list(merged),
            naive_items=naive,
            recipe_ids=recipe_ids,
        )

    def invalidate(self, event_id: str) -> None:
        """Eagerly drop the cached merge for ``event_id``."""

        try:
            self._cache.delete(event_id)
        except Exception as exc:  # cache backends are best effort
            logger.warning(
                "Grocery cache delete failed for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )

    def _load_cached(self, event_id: str) -> Optional[GroceryCacheEntry]:
        try:
            return self._cache.load(event_id)
        except Exception as exc:  # cache backends are best effort
            metrics.CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning(
                "Grocery cache read failed for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )
            return None

    def _save_cached(
        self,
        event_id: str,
        items: Sequence[SmartGroceryItem],
        recipe_ids: Sequence[str],
    ) -> None:
        try:
            self._cache.save(event_id, items, recipe_ids)
        except Exception as exc:  # cache backends are best effort
            logger.warning(
                "Grocery cache write failed for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )


__all__ = [
    "SmartCombineResult",
    "SmartCombiner",
    "contributing_recipe_ids",
    "encode_pre_combined",
    "is_cache_fresh",
]
