"""Shared helpers for integration tests."""

from __future__ import annotations

from potluck.config import get_settings


def auth_headers() -> dict[str, str]:
    token = get_settings().api_token
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def grocery_payload(ingredients, recipe_names, **extra) -> dict[str, object]:
    """Serialize fixtures into the camelCase grocery-list request body."""

    payload: dict[str, object] = {
        "ingredients": [
            ingredient.model_dump(mode="json", by_alias=True) for ingredient in ingredients
        ],
        "recipeNames": dict(recipe_names),
    }
    payload.update(extra)
    return payload


class CountingMerger:
    """Merge backend double that returns a fixed answer and counts calls."""

    def __init__(self, result) -> None:
        self.result = result
        self.calls = 0

    def merge(self, pre_combined):
        self.calls += 1
        return self.result
