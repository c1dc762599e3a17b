import pytest
from fastapi.testclient import TestClient
from familyspots.main import app
from familyspots.models import SubscriptionPlan, SubscriptionStatus, UserSubscription

client = TestClient(app)


def test_read_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to FamilySpots API"}


#  Fixture for creating a test user
@pytest.fixture
def created_user(test_user_data, network_codes):
    response = client.post("/api/users/", json=test_user_data)
    assert response.status_code in network_codes["success"]
    return response.json()["data"]


@pytest.fixture
def login_headers(created_user, test_user_data):
    login_data = {
        "username": test_user_data["username"],
        "password": test_user_data["password"]
    }
    response = client.post("/api/token", data=login_data)
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


# CREATE USER TESTS
def test_create_user_success(test_user_data):
    response = client.post("/api/users/", json=test_user_data)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["username"] == test_user_data["username"]
    assert data["full_name"] == test_user_data["full_name"]
    assert data["role"] == "user"
    assert data["is_premium"] is False
    assert "password" not in data
    assert "hashed_password" not in data


def test_create_user_cannot_choose_role(test_user_data):
    response = client.post("/api/users/", json={**test_user_data, "role": "admin"})
    assert response.status_code == 201
    assert response.json()["data"]["role"] == "user"


def test_create_user_duplicate_username(created_user, test_user_data):
    response = client.post("/api/users/", json=test_user_data)
    assert response.status_code == 409
    assert response.json()["error"] == {"code": "DUPLICATE", "message": "Username already registered"}


def test_create_user_invalid_data(network_codes):
    invalid_data = {
        "username": "ab",
        "password": "short",
    }
    response = client.post("/api/users/", json=invalid_data)
    assert response.status_code in network_codes["error"]
    details = response.json()["error"]["details"]
    assert {"username", "password", "full_name"} <= set(details)


# AUTH TESTS
def test_login_success(login_headers):
    response = client.get("/api/users/me", headers=login_headers)
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "newparent"


def test_login_wrong_password(created_user, test_user_data):
    response = client.post("/api/token", data={"username": test_user_data["username"], "password": "wrongpassword"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Incorrect username or password"


def test_me_with_bad_token():
    response = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_me_without_token():
    response = client.get("/api/users/me")
    assert response.status_code == 401


# READ USER TESTS
def test_get_user_by_id(created_user):
    response = client.get(f"/api/users/{created_user['id']}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data == {"id": created_user["id"], "full_name": "New Parent", "avatar_url": None}


def test_get_user_not_found():
    response = client.get("/api/users/999999")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


# SUBSCRIPTION TESTS
def test_my_subscription_missing(auth_headers):
    response = client.get("/api/users/me/subscription", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "No subscription found"


def test_my_subscription(session, user, auth_headers):
    session.add(UserSubscription(
        user_id=user.id,
        stripe_customer_id="cus_1",
        stripe_subscription_id="sub_1",
        plan=SubscriptionPlan.PREMIUM_MONTHLY,
        status=SubscriptionStatus.TRIALING,
    ))
    session.commit()

    response = client.get("/api/users/me/subscription", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["plan"] == "premium_monthly"
    assert data["status"] == "trialing"
    assert data["cancel_at_period_end"] is False
