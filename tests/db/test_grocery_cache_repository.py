"""Unit tests for the SQLite-backed grocery cache."""

from __future__ import annotations

import logging

from sqlalchemy import text

from potluck.db.grocery_cache import SqlGroceryCache
from potluck.db.models import GroceryCacheORM
from potluck.db.repository import get_engine, session_scope
from potluck.grocery.smart_combine import SmartCombiner
from tests.integration.utils import CountingMerger


def test_save_and_load_round_trip(merged_items):
    cache = SqlGroceryCache()

    cache.save("evt-1", merged_items, ["r2", "r1", "r2"])
    entry = cache.load("evt-1")

    assert entry is not None
    assert entry.event_id == "evt-1"
    assert entry.recipe_ids == ["r1", "r2"]
    assert entry.items == merged_items
    assert entry.updated_at is not None


def test_load_missing_event_returns_none():
    assert SqlGroceryCache().load("nope") is None


def test_save_replaces_existing_entry(merged_items):
    cache = SqlGroceryCache()
    cache.save("evt-1", merged_items, ["r1", "r2"])

    cache.save("evt-1", merged_items[:1], ["r1"])
    entry = cache.load("evt-1")

    assert entry.recipe_ids == ["r1"]
    assert [item.name for item in entry.items] == ["garlic"]
    with session_scope() as session:
        assert session.query(GroceryCacheORM).count() == 1


def test_entries_are_scoped_per_event(merged_items):
    cache = SqlGroceryCache()
    cache.save("evt-1", merged_items, ["r1"])
    cache.save("evt-2", merged_items[:2], ["r9"])

    cache.delete("evt-1")

    assert cache.load("evt-1") is None
    assert cache.load("evt-2").recipe_ids == ["r9"]


def test_delete_missing_event_is_noop():
    SqlGroceryCache().delete("never-saved")


def test_corrupt_row_is_treated_as_miss():
    with session_scope() as session:
        session.add(
            GroceryCacheORM(
                event_id="evt-bad",
                items=[{"name": "flour", "totalQuantity": "1 1/2", "category": "pantry"}],
                recipe_ids=["r1"],
            )
        )

    assert SqlGroceryCache().load("evt-bad") is None


def _drop_cache_table() -> None:
    with get_engine().begin() as connection:
        connection.execute(text("DROP TABLE event_grocery_cache"))


def test_database_errors_degrade_to_miss_and_noop(merged_items, caplog):
    cache = SqlGroceryCache()
    cache.save("evt-1", merged_items, ["r1"])
    _drop_cache_table()

    with caplog.at_level(logging.WARNING, logger="potluck.db.grocery_cache"):
        assert cache.load("evt-1") is None
        cache.save("evt-1", merged_items, ["r1", "r2"])
        cache.delete("evt-1")

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("Error loading grocery cache") for message in messages)
    assert any(message.startswith("Error saving grocery cache") for message in messages)
    assert any(message.startswith("Error deleting grocery cache") for message in messages)


def test_pipeline_still_merges_when_database_fails(
    sample_ingredients, recipe_names, merged_items
):
    get_engine()
    _drop_cache_table()
    merger = CountingMerger(merged_items)
    combiner = SmartCombiner(cache=SqlGroceryCache(), merger=merger)

    first = combiner.smart_combine("evt-1", sample_ingredients, recipe_names)
    second = combiner.smart_combine("evt-1", sample_ingredients, recipe_names)

    assert first.status == "merged"
    assert list(first.items) == merged_items
    assert second.status == "merged"
    assert merger.calls == 2
    combiner.invalidate("evt-1")
