"""Grocery aggregation data contracts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class GroceryCategory(str, Enum):
    """Grocery-store aisle used for display grouping."""

    PRODUCE = "produce"
    MEAT_SEAFOOD = "meat_seafood"
    DAIRY = "dairy"
    PANTRY = "pantry"
    SPICES = "spices"
    FROZEN = "frozen"
    BAKERY = "bakery"
    BEVERAGES = "beverages"
    CONDIMENTS = "condiments"
    OTHER = "other"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class _WireModel(BaseModel):
    """Base model serialising to the camelCase wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class RecipeIngredient(_WireModel):
    """One parsed ingredient line belonging to a single recipe."""

    id: str
    recipe_id: str
    name: str = Field(min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    category: GroceryCategory = GroceryCategory.OTHER
    raw_text: str = ""
    sort_order: int = 0

    @field_validator("unit", mode="before")
    @classmethod
    def blank_unit_to_none(cls, value: object) -> object:
        return _blank_to_none(value)


class CombinedGroceryItem(_WireModel):
    """Locally combined grocery entry.

    ``total_quantity`` is ``None`` when at least one contributing ingredient never recorded a
    quantity; the list renders such entries as "to taste".
    """

    name: str
    total_quantity: Optional[float] = None
    unit: Optional[str] = None
    category: GroceryCategory
    source_recipes: list[str] = Field(default_factory=list)


class SmartGroceryItem(_WireModel):
    """Grocery entry returned by the semantic merge.

    Unlike :class:`CombinedGroceryItem`, ``total_quantity`` must always be present and must be a
    finite, non-negative JSON number or ``null``; fraction strings are rejected.
    """

    name: str = Field(min_length=1)
    total_quantity: Optional[float] = Field(
        ...,
        strict=True,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("totalQuantity", "total_quantity", "quantity"),
        serialization_alias="totalQuantity",
    )
    unit: Optional[str] = None
    category: GroceryCategory
    source_recipes: list[str]

    @field_validator("unit", mode="before")
    @classmethod
    def blank_unit_to_none(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class PreCombinedItem(_WireModel):
    """Naive result entry as sent to the semantic merge service."""

    name: str
    quantity: Optional[str] = None
    unit: Optional[str] = None
    category: GroceryCategory
    source_recipes: list[str] = Field(default_factory=list)


class GroceryCacheEntry(_WireModel):
    """Cached merge result for an event, keyed by the recipe ids that produced it."""

    event_id: str
    items: list[SmartGroceryItem] = Field(default_factory=list)
    recipe_ids: list[str] = Field(default_factory=list)
    updated_at: Optional[datetime] = None


__all__ = [
    "GroceryCategory",
    "RecipeIngredient",
    "CombinedGroceryItem",
    "SmartGroceryItem",
    "PreCombinedItem",
    "GroceryCacheEntry",
]
