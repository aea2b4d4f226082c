"""Per-event persistence of semantic merge results."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from potluck.models.grocery import GroceryCacheEntry, SmartGroceryItem

from .models import GroceryCacheORM
from .repository import session_scope

logger = logging.getLogger(__name__)


class SqlGroceryCache:
    """Grocery cache stored in the ``event_grocery_cache`` table.

    Backend failures are logged and reported as a miss (``load``) or ignored (``save`` and
    ``delete``); callers always get a usable answer.
    """

    def load(self, event_id: str) -> Optional[GroceryCacheEntry]:
        try:
            with session_scope() as session:
                row = session.get(GroceryCacheORM, event_id)
                if row is None:
                    return None
                return GroceryCacheEntry.model_validate(
                    {
                        "event_id": row.event_id,
                        "items": row.items,
                        "recipe_ids": row.recipe_ids,
                        "updated_at": row.updated_at,
                    }
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "Error loading grocery cache for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )
        except ValidationError as exc:
            logger.warning(
                "Discarding corrupt grocery cache for event %s: %s",
                event_id,
                exc.errors(include_url=False),
                extra={"event_id": event_id},
            )
        return None

    def save(
        self,
        event_id: str,
        items: Sequence[SmartGroceryItem],
        recipe_ids: Sequence[str],
    ) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in items]
        sorted_ids = sorted(set(recipe_ids))
        statement = sqlite_insert(GroceryCacheORM).values(
            event_id=event_id,
            items=payload,
            recipe_ids=sorted_ids,
            updated_at=datetime.now(timezone.utc),
        )
        statement = statement.on_conflict_do_update(
            index_elements=[GroceryCacheORM.event_id],
            set_={
                "items": statement.excluded["items"],
                "recipe_ids": statement.excluded["recipe_ids"],
                "updated_at": statement.excluded["updated_at"],
            },
        )
        try:
            with session_scope() as session:
                session.execute(statement)
        except SQLAlchemyError as exc:
            logger.warning(
                "Error saving grocery cache for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )
            return
        logger.debug(
            "Saved grocery cache for event %s items=%s recipes=%s",
            event_id,
            len(payload),
            sorted_ids,
            extra={"event_id": event_id},
        )

    def delete(self, event_id: str) -> None:
        try:
            with session_scope() as session:
                session.execute(
                    delete(GroceryCacheORM).where(GroceryCacheORM.event_id == event_id)
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "Error deleting grocery cache for event %s: %s",
                event_id,
                exc,
                extra={"event_id": event_id},
            )


__all__ = ["SqlGroceryCache"]
