"""Tests for the category endpoints."""
from __future__ import annotations


def test_create_category(client):
    resp = client.post(
        "/categories",
        json={"name": "Fantasy", "description": "Swords and sorcery", "color": "#663399"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Fantasy"
    assert data["description"] == "Swords and sorcery"
    assert data["color"] == "#663399"
    assert data["id"]


def test_create_category_defaults(client):
    resp = client.post("/categories", json={"name": "Sci-Fi"})
    assert resp.status_code == 201
    data = resp.json()
    assert data["description"] == ""
    assert data["color"] == "#28a745"


def test_create_category_duplicate(client):
    client.post("/categories", json={"name": "Fantasy"})
    resp = client.post("/categories", json={"name": "Fantasy"})
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Category already exists"


def test_create_category_empty_name(client):
    resp = client.post("/categories", json={"name": ""})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Category name is required"


def test_list_categories(client):
    client.post("/categories", json={"name": "one"})
    client.post("/categories", json={"name": "two"})
    resp = client.get("/categories")
    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()] == ["one", "two"]


def test_delete_category(client):
    category_id = client.post("/categories", json={"name": "tmp"}).json()["id"]
    client.post("/characters/bob/categories", json={"categoryIds": [category_id]})

    resp = client.delete(f"/categories/{category_id}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Category deleted successfully"}
    assert client.get("/categories").json() == []
    assert client.get("/characters/associations").json() == {}


def test_delete_unknown_category(client):
    resp = client.delete("/categories/unknown-id")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Category not found"
