import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from sqlmodel import select
from familyspots.main import app
from familyspots.models import Favorite, PlaceImage
from conftest import headers_for

client = TestClient(app)


@pytest.fixture
def place(make_place):
    return make_place(name="Zilker Park", slug="zilker-park-austin", amenities={"play_area": True})


@pytest.fixture
def created_favorite(place, auth_headers):
    response = client.post("/api/favorites/", json={"place_id": place.id, "note": "Sunday picnic"}, headers=auth_headers)
    assert response.status_code == 201
    return response.json()["data"]


def test_add_favorite(created_favorite, place, user):
    assert created_favorite["place_id"] == place.id
    assert created_favorite["user_id"] == user.id
    assert created_favorite["note"] == "Sunday picnic"

def test_add_favorite_duplicate(created_favorite, place, auth_headers):
    response = client.post("/api/favorites/", json={"place_id": place.id}, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["error"] == {"code": "DUPLICATE", "message": "Place is already in your favorites"}

def test_add_favorite_unknown_place(auth_headers):
    response = client.post("/api/favorites/", json={"place_id": 9999}, headers=auth_headers)
    assert response.status_code == 404

def test_add_favorite_requires_place_id(auth_headers):
    response = client.post("/api/favorites/", json={"note": "no place"}, headers=auth_headers)
    assert response.status_code == 400
    assert "place_id" in response.json()["error"]["details"]

def test_add_favorite_unauthorized(place):
    assert client.post("/api/favorites/", json={"place_id": place.id}).status_code == 401

def test_list_favorites(session, place, make_place, auth_headers, user):
    session.add(PlaceImage(place_id=place.id, url="https://img.test/zilker.jpg"))
    other = make_place(name="Barton Springs")
    session.add(Favorite(user_id=user.id, place_id=place.id, created_at=datetime(2025, 1, 1)))
    session.add(Favorite(user_id=user.id, place_id=other.id, created_at=datetime(2025, 2, 1)))
    session.commit()

    response = client.get("/api/favorites/", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert [entry["place"]["name"] for entry in body["data"]] == ["Barton Springs", "Zilker Park"]
    assert body["data"][1]["place"]["amenities"]["play_area"] is True
    assert body["data"][1]["place"]["images"][0]["url"] == "https://img.test/zilker.jpg"
    assert body["pagination"]["total"] == 2

def test_list_favorites_only_own(created_favorite, make_user):
    other = make_user(username="other1")
    response = client.get("/api/favorites/", headers=headers_for(other))
    assert response.json()["data"] == []
    assert response.json()["pagination"]["total_pages"] == 0

def test_remove_favorite(session, created_favorite, place, auth_headers):
    response = client.delete("/api/favorites/", params={"place_id": place.id}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"data": {"success": True}}
    assert session.exec(select(Favorite)).all() == []

def test_remove_favorite_requires_place_id(auth_headers):
    response = client.delete("/api/favorites/", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "place_id is required"
