"""Pantry persistence helpers."""

from __future__ import annotations

import logging
from typing import Iterable, List

from sqlalchemy import select

from potluck.config import get_settings
from potluck.models.pantry import PantryItem

from .models import PantryItemORM
from .repository import session_scope

logger = logging.getLogger(__name__)


def _normalize(name: str) -> str:
    return name.strip().lower()


def _to_model(row: PantryItemORM) -> PantryItem:
    return PantryItem.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "name": row.name,
            "created_at": row.created_at,
        }
    )


def list_pantry_items(user_id: str) -> List[PantryItem]:
    """Return the user's pantry entries ordered by name."""

    with session_scope() as session:
        rows = (
            session.execute(
                select(PantryItemORM)
                .where(PantryItemORM.user_id == user_id)
                .order_by(PantryItemORM.name.asc())
            )
            .scalars()
            .all()
        )
        return [_to_model(row) for row in rows]


def pantry_names(user_id: str) -> List[str]:
    return [item.name for item in list_pantry_items(user_id)]


def add_pantry_item(user_id: str, name: str) -> PantryItem:
    """Add ``name`` to the pantry; adding an existing name returns the stored entry."""

    normalized = _normalize(name)
    if not normalized:
        raise ValueError("Pantry item name must not be blank")

    with session_scope() as session:
        existing = session.execute(
            select(PantryItemORM).where(
                PantryItemORM.user_id == user_id,
                PantryItemORM.name == normalized,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return _to_model(existing)

        row = PantryItemORM(user_id=user_id, name=normalized)
        session.add(row)
        session.flush()
        session.refresh(row)
        logger.debug("Added pantry item %s for user %s", normalized, user_id)
        return _to_model(row)


def remove_pantry_item(user_id: str, item_id: int) -> None:
    with session_scope() as session:
        row = session.get(PantryItemORM, item_id)
        if row is None or row.user_id != user_id:
            raise ValueError(f"Pantry item {item_id} not found")
        session.delete(row)


def ensure_default_pantry_items(user_id: str, defaults: Iterable[str] | None = None) -> List[PantryItem]:
    """Seed the configured default pantry names for ``user_id`` (no-op for existing names)."""

    names = defaults if defaults is not None else get_settings().default_pantry_items
    for name in names:
        if _normalize(name):
            add_pantry_item(user_id, name)
    return list_pantry_items(user_id)


__all__ = [
    "list_pantry_items",
    "pantry_names",
    "add_pantry_item",
    "remove_pantry_item",
    "ensure_default_pantry_items",
]
