"""Shared pytest fixtures for the Potluck test suite."""

from __future__ import annotations

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from potluck.config import get_settings
from potluck.db.repository import reset_repository_state
from potluck.models.grocery import GroceryCategory, RecipeIngredient, SmartGroceryItem
from potluck.server.app import create_app

_ISOLATED_ENV = (
    "POTLUCK_API_TOKEN",
    "POTLUCK_MERGE_SERVICE_URL",
    "POTLUCK_MERGE_SERVICE_TOKEN",
    "POTLUCK_MERGE_LLM_API_KEY",
    "POTLUCK_MERGE_LLM_BASE_URL",
    "POTLUCK_MERGE_LLM_PROVIDER",
    "POTLUCK_DEFAULT_PANTRY_ITEMS",
    "ANTHROPIC_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Ensure each test uses an isolated SQLite database and no merge backend."""

    db_path = tmp_path / "test_potluck.db"
    monkeypatch.setenv("POTLUCK_DATABASE_PATH", str(db_path))
    for key in _ISOLATED_ENV:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    reset_repository_state()
    yield
    reset_repository_state()
    monkeypatch.delenv("POTLUCK_DATABASE_PATH", raising=False)
    get_settings.cache_clear()


@pytest.fixture()
def app() -> Generator[FastAPI, None, None]:
    """Create a new FastAPI app instance for each test and reset overrides."""

    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)


@pytest.fixture()
def recipe_names() -> dict[str, str]:
    return {"r1": "Garlic Pasta", "r2": "Veggie Stir Fry"}


@pytest.fixture()
def sample_ingredients() -> list[RecipeIngredient]:
    """Two recipes sharing garlic (spelled differently) plus a quantity-less salt."""

    return [
        RecipeIngredient(
            id="i1",
            recipe_id="r1",
            name="garlic",
            quantity=3,
            unit="cloves",
            category=GroceryCategory.PRODUCE,
        ),
        RecipeIngredient(
            id="i2",
            recipe_id="r1",
            name="spaghetti",
            quantity=1,
            unit="lb",
            category=GroceryCategory.PANTRY,
        ),
        RecipeIngredient(
            id="i3",
            recipe_id="r2",
            name="Garlic",
            quantity=2,
            unit="clove",
            category=GroceryCategory.PRODUCE,
        ),
        RecipeIngredient(
            id="i4",
            recipe_id="r2",
            name="soy sauce",
            quantity=2,
            unit="tbsp",
            category=GroceryCategory.CONDIMENTS,
        ),
        RecipeIngredient(
            id="i5",
            recipe_id="r2",
            name="salt",
            category=GroceryCategory.SPICES,
        ),
    ]


@pytest.fixture()
def merged_items() -> list[SmartGroceryItem]:
    """A plausible semantic merge answer for :func:`sample_ingredients`."""

    return [
        SmartGroceryItem(
            name="garlic",
            total_quantity=5.0,
            unit="clove",
            category=GroceryCategory.PRODUCE,
            source_recipes=["Garlic Pasta", "Veggie Stir Fry"],
        ),
        SmartGroceryItem(
            name="spaghetti",
            total_quantity=1.0,
            unit="lb",
            category=GroceryCategory.PANTRY,
            source_recipes=["Garlic Pasta"],
        ),
        SmartGroceryItem(
            name="soy sauce",
            total_quantity=2.0,
            unit="tbsp",
            category=GroceryCategory.CONDIMENTS,
            source_recipes=["Veggie Stir Fry"],
        ),
        SmartGroceryItem(
            name="salt",
            total_quantity=None,
            unit=None,
            category=GroceryCategory.SPICES,
            source_recipes=["Veggie Stir Fry"],
        ),
    ]
