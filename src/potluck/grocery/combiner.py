"""Deterministic local combination of recipe ingredients."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from potluck.grocery.quantity import normalize_unit
from potluck.models.grocery import CombinedGroceryItem, GroceryCategory, RecipeIngredient

logger = logging.getLogger(__name__)


class UnknownRecipeError(LookupError):
    """Raised when an ingredient references a recipe missing from the name map."""

    def __init__(self, recipe_id: str, ingredient_id: str) -> None:
        super().__init__(
            f"Ingredient {ingredient_id!r} references recipe {recipe_id!r} "
            "which has no display name"
        )
        self.recipe_id = recipe_id
        self.ingredient_id = ingredient_id


def normalize_name_key(name: str) -> str:
    """Grouping key for an ingredient or pantry name (trimmed, case-folded)."""

    return name.strip().casefold()


@dataclass
class _Group:
    name: str
    unit: Optional[str]
    category: GroceryCategory
    total: float = 0.0
    missing_quantity: bool = False
    source_recipes: list[str] = field(default_factory=list)

    def add(self, quantity: Optional[float], recipe_name: str) -> None:
        if quantity is None:
            self.missing_quantity = True
        else:
            self.total += quantity
        if recipe_name not in self.source_recipes:
            self.source_recipes.append(recipe_name)

    def to_item(self) -> CombinedGroceryItem:
        return CombinedGroceryItem(
            name=self.name,
            total_quantity=None if self.missing_quantity else self.total,
            unit=self.unit,
            category=self.category,
            source_recipes=list(self.source_recipes),
        )


def combine_ingredients(
    ingredients: Iterable[RecipeIngredient],
    recipe_names: Mapping[str, str],
) -> list[CombinedGroceryItem]:
    """Combine ingredients sharing a name and unit into single grocery entries.

    Groups are keyed on the trimmed, case-folded name plus the normalized unit; an absent unit
    forms its own group. Quantities are summed within a group unless any member lacks one, in
    which case the total is absent. The first member of a group fixes its display name and
    category. Output keeps first-seen group order.

    Raises:
        UnknownRecipeError: when an ingredient's ``recipe_id`` is not in ``recipe_names``.
    """

    groups: dict[tuple[str, Optional[str]], _Group] = {}
    for ingredient in ingredients:
        try:
            recipe_name = recipe_names[ingredient.recipe_id]
        except KeyError:
            raise UnknownRecipeError(ingredient.recipe_id, ingredient.id) from None

        unit = normalize_unit(ingredient.unit)
        key = (normalize_name_key(ingredient.name), unit)
        group = groups.get(key)
        if group is None:
            group = _Group(name=ingredient.name.strip(), unit=unit, category=ingredient.category)
            groups[key] = group
        elif group.category != ingredient.category:
            logger.debug(
                "Category conflict for %s (%s): keeping %s over %s",
                group.name,
                unit,
                group.category.value,
                ingredient.category.value,
            )
        group.add(ingredient.quantity, recipe_name)

    combined = [group.to_item() for group in groups.values()]
    logger.debug(
        "Combined ingredients into %s grocery item(s)",
        len(combined),
    )
    return combined


__all__ = ["UnknownRecipeError", "combine_ingredients", "normalize_name_key"]
