"""Integration tests for the event grocery-list endpoints."""

from __future__ import annotations

import httpx
import pytest
from fastapi import status

from potluck.merge.client import SemanticMergeClient
from potluck.merge.errors import MergeTransportError
from potluck.server import deps
from tests.integration.utils import CountingMerger, auth_headers, grocery_payload


def test_grocery_list_falls_back_when_merge_not_configured(
    client, sample_ingredients, recipe_names
):
    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(sample_ingredients, recipe_names),
        headers=auth_headers(),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["eventId"] == "evt-1"
    assert body["status"] == "fallback"
    assert body["fallbackReason"] == "skipped"
    assert [item["name"] for item in body["items"]] == [
        "garlic",
        "spaghetti",
        "soy sauce",
        "salt",
    ]
    garlic = body["items"][0]
    assert garlic["totalQuantity"] == pytest.approx(5.0)
    assert garlic["sourceRecipes"] == ["Garlic Pasta", "Veggie Stir Fry"]

    groups = body["groups"]
    assert [group["displayName"] for group in groups] == [
        "Produce",
        "Pantry",
        "Spices",
        "Condiments",
    ]
    assert groups[0]["lines"] == ["5 garlic cloves"]
    assert groups[2]["lines"] == ["salt (to taste)"]


def test_grocery_list_uses_and_reuses_semantic_merge(
    app, client, sample_ingredients, recipe_names, merged_items
):
    merger = CountingMerger(merged_items[:3])
    app.dependency_overrides[deps.get_merge_client] = lambda: merger
    payload = grocery_payload(sample_ingredients, recipe_names)

    first = client.post("/events/evt-1/grocery-list", json=payload, headers=auth_headers())
    second = client.post("/events/evt-1/grocery-list", json=payload, headers=auth_headers())

    assert first.json()["status"] == "merged"
    assert second.json()["status"] == "cached"
    assert [item["name"] for item in second.json()["items"]] == ["garlic", "spaghetti", "soy sauce"]
    assert merger.calls == 1

    response = client.delete("/events/evt-1/grocery-cache", headers=auth_headers())
    assert response.status_code == status.HTTP_204_NO_CONTENT

    third = client.post("/events/evt-1/grocery-list", json=payload, headers=auth_headers())
    assert third.json()["status"] == "merged"
    assert merger.calls == 2


def test_adding_a_recipe_triggers_a_new_merge(
    app, client, sample_ingredients, recipe_names, merged_items
):
    merger = CountingMerger(merged_items)
    app.dependency_overrides[deps.get_merge_client] = lambda: merger
    only_first = [ingredient for ingredient in sample_ingredients if ingredient.recipe_id == "r1"]

    client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(only_first, recipe_names),
        headers=auth_headers(),
    )
    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(sample_ingredients, recipe_names),
        headers=auth_headers(),
    )

    assert response.json()["status"] == "merged"
    assert merger.calls == 2


def test_merge_failure_is_reported_as_fallback(app, client, sample_ingredients, recipe_names):
    class FailingMerger:
        def merge(self, pre_combined):
            raise MergeTransportError("merge service unreachable")

    app.dependency_overrides[deps.get_merge_client] = FailingMerger

    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(sample_ingredients, recipe_names),
        headers=auth_headers(),
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "fallback"
    assert body["fallbackReason"] == "error"
    assert "unreachable" in body["error"]


def test_pantry_items_are_excluded(client, sample_ingredients, recipe_names):
    client.post("/users/alice/pantry", json={"name": "Garlic"}, headers=auth_headers())

    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(sample_ingredients, recipe_names, userId="alice", pantry=["salt"]),
        headers=auth_headers(),
    )

    body = response.json()
    assert [item["name"] for item in body["items"]] == ["spaghetti", "soy sauce"]
    assert body["removedCount"] == 2

    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(
            sample_ingredients, recipe_names, userId="alice", excludePantry=False
        ),
        headers=auth_headers(),
    )
    assert response.json()["removedCount"] == 0
    assert len(response.json()["items"]) == 4


def test_unknown_recipe_is_rejected(client, sample_ingredients):
    response = client.post(
        "/events/evt-1/grocery-list",
        json=grocery_payload(sample_ingredients, {"r1": "Garlic Pasta"}),
        headers=auth_headers(),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "r2" in response.json()["detail"]


def test_invalid_ingredient_payload_is_rejected(client):
    response = client.post(
        "/events/evt-1/grocery-list",
        json={"ingredients": [{"id": "i1", "recipeId": "r1", "name": "egg", "quantity": -1}]},
        headers=auth_headers(),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"][0]["type"] == "greater_than_equal"


def test_empty_event_returns_empty_list(client):
    response = client.post("/events/evt-1/grocery-list", json={}, headers=auth_headers())

    body = response.json()
    assert body["status"] == "fallback"
    assert body["fallbackReason"] == "empty"
    assert body["items"] == []
    assert body["groups"] == []


def test_grocery_list_csv_export(client, sample_ingredients, recipe_names):
    response = client.post(
        "/events/evt-1/grocery-list.csv",
        json=grocery_payload(sample_ingredients, recipe_names, eventName="Summer Potluck"),
        headers=auth_headers(),
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/csv")
    assert "grocery-list-summer-potluck.csv" in response.headers["content-disposition"]
    lines = response.text.splitlines()
    assert lines[0] == "Category,Item,Quantity,Unit,Recipes"
    assert lines[1] == "Produce,garlic,5,clove,Garlic Pasta; Veggie Stir Fry"
    assert len(lines) == 5


def test_negative_merge_quantity_falls_back_and_is_not_cached(
    app, client, sample_ingredients, recipe_names
):
    body = {
        "success": True,
        "items": [
            {
                "name": "garlic",
                "totalQuantity": -2,
                "unit": "clove",
                "category": "produce",
                "sourceRecipes": ["Garlic Pasta"],
            }
        ],
    }
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))
    app.dependency_overrides[deps.get_merge_client] = lambda: SemanticMergeClient(
        endpoint="http://merge.test/combine-ingredients", transport=transport
    )
    payload = grocery_payload(sample_ingredients, recipe_names)

    first = client.post("/events/evt-1/grocery-list", json=payload, headers=auth_headers())
    second = client.post("/events/evt-1/grocery-list", json=payload, headers=auth_headers())

    for response in (first, second):
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "fallback"
        assert response.json()["fallbackReason"] == "error"
    assert second.json()["groups"][0]["lines"] == ["5 garlic cloves"]
