"""Tests for per-character assignment endpoints and the bulk association read."""
from __future__ import annotations

import pytest


@pytest.fixture(name="tag_ids")
def tag_ids_fixture(client):
    return [
        client.post("/tags", json={"name": name}).json()["id"]
        for name in ("a", "b", "c")
    ]


@pytest.fixture(name="category_id")
def category_id_fixture(client):
    return client.post("/categories", json={"name": "C1"}).json()["id"]


def test_assign_tags(client, tag_ids):
    resp = client.post("/characters/alice.png/tags", json={"tagIds": tag_ids[:2]})
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Tags assigned successfully"
    assert sorted(link["tag_id"] for link in data["associations"]) == sorted(tag_ids[:2])
    assert all(link["character_id"] == "alice.png" for link in data["associations"])

    tags = client.get("/characters/alice.png/tags").json()
    assert sorted(t["id"] for t in tags) == sorted(tag_ids[:2])


def test_assign_tags_replaces(client, tag_ids):
    a, b, c = tag_ids
    client.post("/characters/alice/tags", json={"tagIds": [a, b]})
    client.post("/characters/alice/tags", json={"tagIds": [b, c]})

    ids = [t["id"] for t in client.get("/characters/alice/tags").json()]
    assert sorted(ids) == sorted([b, c])


def test_assign_empty_list_clears(client, tag_ids):
    client.post("/characters/alice/tags", json={"tagIds": tag_ids})
    resp = client.post("/characters/alice/tags", json={"tagIds": []})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Character tags cleared", "associations": []}
    assert client.get("/characters/alice/tags").json() == []


def test_assign_tags_non_array(client, tag_ids):
    client.post("/characters/x/tags", json={"tagIds": [tag_ids[0]]})
    resp = client.post("/characters/x/tags", json={"tagIds": tag_ids[1]})
    assert resp.status_code == 400
    assert "tagIds" in resp.json()["detail"]

    ids = [t["id"] for t in client.get("/characters/x/tags").json()]
    assert ids == [tag_ids[0]]


def test_assign_tags_missing_field(client):
    resp = client.post("/characters/x/tags", json={})
    assert resp.status_code == 400


def test_assign_tags_accepts_snake_case(client, tag_ids):
    resp = client.post("/characters/x/tags", json={"tag_ids": [tag_ids[0]]})
    assert resp.status_code == 200


def test_character_tags_unknown_character(client):
    resp = client.get("/characters/nobody/tags")
    assert resp.status_code == 200
    assert resp.json() == []


def test_character_id_with_slash(client, tag_ids):
    resp = client.post("/characters/folder/alice.png/tags", json={"tagIds": [tag_ids[0]]})
    assert resp.status_code == 200
    assert resp.json()["associations"][0]["character_id"] == "folder/alice.png"
    assert "folder/alice.png" in client.get("/characters/associations").json()


def test_assign_categories(client, category_id):
    resp = client.post("/characters/bob/categories", json={"categoryIds": [category_id]})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Categories assigned successfully"

    categories = client.get("/characters/bob/categories").json()
    assert [c["id"] for c in categories] == [category_id]
    assert categories[0]["name"] == "C1"


def test_assign_categories_clear(client, category_id):
    client.post("/characters/bob/categories", json={"categoryIds": [category_id]})
    resp = client.post("/characters/bob/categories", json={"categoryIds": []})
    assert resp.json()["message"] == "Character categories cleared"
    assert client.get("/characters/bob/categories").json() == []


def test_assign_categories_non_array(client):
    resp = client.post("/characters/bob/categories", json={"categoryIds": "C1"})
    assert resp.status_code == 400


def test_all_associations(client, tag_ids, category_id):
    t1 = tag_ids[0]
    client.post("/characters/alice/tags", json={"tagIds": [t1]})
    client.post("/characters/bob/categories", json={"categoryIds": [category_id]})

    resp = client.get("/characters/associations")
    assert resp.status_code == 200
    assert resp.json() == {
        "alice": {"tags": [t1], "categories": []},
        "bob": {"tags": [], "categories": [category_id]},
    }


def test_all_associations_empty(client):
    resp = client.get("/characters/associations")
    assert resp.status_code == 200
    assert resp.json() == {}
