"""Pantry models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PantryItem(BaseModel):
    """Ingredient name a user already keeps at home."""

    id: int
    user_id: str
    name: str
    created_at: datetime

    model_config = ConfigDict(frozen=True)


__all__ = ["PantryItem"]
