"""Unit tests for the pantry repository helpers."""

from __future__ import annotations

import pytest

from potluck.db.pantry import (
    add_pantry_item,
    ensure_default_pantry_items,
    list_pantry_items,
    pantry_names,
    remove_pantry_item,
)


def test_add_and_list_pantry_items():
    add_pantry_item("alice", "Olive Oil ")
    add_pantry_item("alice", "salt")
    add_pantry_item("bob", "rice")

    items = list_pantry_items("alice")
    assert [item.name for item in items] == ["olive oil", "salt"]
    assert all(item.id for item in items)
    assert pantry_names("bob") == ["rice"]


def test_adding_existing_name_is_idempotent():
    first = add_pantry_item("alice", "salt")
    second = add_pantry_item("alice", "SALT")

    assert first.id == second.id
    assert len(list_pantry_items("alice")) == 1


def test_blank_name_is_rejected():
    with pytest.raises(ValueError):
        add_pantry_item("alice", "   ")


def test_remove_pantry_item():
    item = add_pantry_item("alice", "pepper")

    remove_pantry_item("alice", item.id)

    assert list_pantry_items("alice") == []


def test_remove_other_users_item_raises():
    item = add_pantry_item("alice", "pepper")

    with pytest.raises(ValueError):
        remove_pantry_item("bob", item.id)
    with pytest.raises(ValueError):
        remove_pantry_item("alice", 999)
    assert pantry_names("alice") == ["pepper"]


def test_default_pantry_items_are_seeded_once():
    ensure_default_pantry_items("alice")
    items = ensure_default_pantry_items("alice")

    assert [item.name for item in items] == ["pepper", "salt", "water"]


def test_default_pantry_items_follow_settings(monkeypatch):
    from potluck.config import get_settings

    monkeypatch.setenv("POTLUCK_DEFAULT_PANTRY_ITEMS", "Sugar, flour")
    get_settings.cache_clear()

    items = ensure_default_pantry_items("alice")

    assert [item.name for item in items] == ["flour", "sugar"]
