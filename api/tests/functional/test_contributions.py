import pytest
from fastapi.testclient import TestClient
from familyspots.main import app
from familyspots.models import Contribution, ContributionStatus, ContributionType
from familyspots.services.contributions import record_contribution

client = TestClient(app)


@pytest.fixture
def place(make_place):
    return make_place(name="Little Readers", slug="little-readers-austin")


def test_submit_contribution(session, place, auth_headers, user):
    payload = {"type": "report_issue", "data": {"issue": "Changing table is broken"}}
    response = client.post(f"/api/places/{place.slug}/contributions", json=payload, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["type"] == "report_issue"
    assert data["status"] == "pending"
    assert data["user_id"] == user.id
    assert data["data"] == {"issue": "Changing table is broken"}

    # Pending contributions never touch the place
    session.refresh(place)
    assert place.name == "Little Readers"

def test_submit_contribution_as_admin(place, admin_headers):
    payload = {"type": "update_amenity", "data": {"high_chairs": True}}
    response = client.post(f"/api/places/{place.slug}/contributions", json=payload, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["status"] == "approved"

@pytest.mark.parametrize("contribution_type", ["new_place", "edit_place", "rename"])
def test_submit_contribution_rejects_type(place, auth_headers, contribution_type):
    response = client.post(
        f"/api/places/{place.slug}/contributions",
        json={"type": contribution_type, "data": {}},
        headers=auth_headers,
    )
    assert response.status_code == 400

def test_submit_contribution_unknown_place(auth_headers):
    response = client.post("/api/places/nowhere/contributions", json={"type": "add_photo"}, headers=auth_headers)
    assert response.status_code == 404

def test_list_my_contributions(session, place, user, admin, auth_headers):
    record_contribution(session, user, place.id, ContributionType.ADD_PHOTO, {"url": "https://img.test/a.jpg"})
    record_contribution(session, user, place.id, ContributionType.REPORT_ISSUE, {"issue": "Closed early"})
    record_contribution(session, admin, place.id, ContributionType.UPDATE_AMENITY, {"kids_menu": True})

    response = client.get("/api/contributions/", headers=auth_headers)
    assert response.status_code == 200
    body = response.json()
    assert [c["type"] for c in body["data"]] == ["report_issue", "add_photo"]
    assert body["pagination"]["total"] == 2


# RECORDER TESTS
def test_record_contribution_status_follows_role(session, place, user, admin):
    pending = record_contribution(session, user, place.id, ContributionType.ADD_PHOTO, {})
    approved = record_contribution(session, admin, place.id, ContributionType.ADD_PHOTO, {})
    assert pending.status == ContributionStatus.PENDING
    assert approved.status == ContributionStatus.APPROVED
    assert pending.reviewed_by is None

def test_record_contribution_without_commit(session, place, user):
    contribution = record_contribution(session, user, place.id, ContributionType.REPORT_ISSUE, {"x": 1}, commit=False)
    assert contribution.id is None
    session.commit()
    assert session.get(Contribution, contribution.id) is not None
