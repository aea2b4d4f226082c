"""Dependency definitions for the Potluck API server."""

from __future__ import annotations

from typing import Callable, List

from fastapi import Depends, HTTPException, Request, status

from potluck.config import get_settings
from potluck.db.grocery_cache import SqlGroceryCache
from potluck.db.pantry import (
    add_pantry_item,
    ensure_default_pantry_items,
    list_pantry_items,
    pantry_names,
    remove_pantry_item,
)
from potluck.grocery.interface import GroceryCache, SemanticMerger
from potluck.grocery.smart_combine import SmartCombiner
from potluck.merge.authority import MergeAuthority, build_merge_authority
from potluck.merge.client import build_merge_client
from potluck.models.pantry import PantryItem

PantryProvider = Callable[[str], List[PantryItem]]
PantryNamesProvider = Callable[[str], List[str]]
PantryCreator = Callable[[str, str], PantryItem]
PantryDeleter = Callable[[str, int], None]
PantrySeeder = Callable[[str], List[PantryItem]]


def get_grocery_cache() -> GroceryCache:
    """Return the default grocery cache backend."""

    return SqlGroceryCache()


def get_merge_client() -> SemanticMerger:
    """Return the semantic merge client built from settings."""

    return build_merge_client()


def get_smart_combiner(
    cache: GroceryCache = Depends(get_grocery_cache),
    merger: SemanticMerger = Depends(get_merge_client),
) -> SmartCombiner:
    return SmartCombiner(cache=cache, merger=merger)


def get_merge_authority() -> MergeAuthority:
    return build_merge_authority()


def get_pantry_provider() -> PantryProvider:
    return list_pantry_items


def get_pantry_names_provider() -> PantryNamesProvider:
    return pantry_names


def get_pantry_creator() -> PantryCreator:
    return add_pantry_item


def get_pantry_deleter() -> PantryDeleter:
    return remove_pantry_item


def get_pantry_seeder() -> PantrySeeder:
    return lambda user_id: ensure_default_pantry_items(user_id)


def require_api_token(
    request: Request,
    settings = Depends(get_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
