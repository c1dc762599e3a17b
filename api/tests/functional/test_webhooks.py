import json
import pytest
from fastapi.testclient import TestClient
from familyspots.main import app
from conftest import ANNUAL_PRICE, VALID_SIGNATURE, subscription_object

client = TestClient(app)


def post_event(event_type, obj, signature=VALID_SIGNATURE):
    payload = json.dumps({"id": "evt_1", "type": event_type, "data": {"object": obj}})
    headers = {"stripe-signature": signature} if signature else {}
    return client.post("/api/stripe/webhook", content=payload, headers=headers)


@pytest.fixture
def customer(billing_provider, user):
    return billing_provider.add_customer("cus_1", user.id)


def test_webhook_requires_signature():
    response = post_event("customer.subscription.updated", {}, signature=None)
    assert response.status_code == 400
    assert response.json()["error"] == {"code": "VALIDATION_ERROR", "message": "No signature"}

def test_webhook_rejects_bad_signature():
    response = post_event("customer.subscription.updated", {}, signature="t=1,v1=forged")
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid signature"

def test_webhook_acknowledges_irrelevant_events():
    response = post_event("charge.refunded", {"id": "ch_1"})
    assert response.status_code == 200
    assert response.json() == {"received": True}

def test_webhook_subscription_lifecycle(billing_provider, customer, auth_headers):
    billing_provider.subscriptions["sub_1"] = subscription_object(
        "sub_1", "cus_1", price_id=ANNUAL_PRICE, status="trialing"
    )
    checkout = {"id": "cs_1", "mode": "subscription", "subscription": "sub_1", "customer": "cus_1"}
    assert post_event("checkout.session.completed", checkout).json() == {"received": True}

    subscription = client.get("/api/users/me/subscription", headers=auth_headers).json()["data"]
    assert subscription["plan"] == "premium_annual"
    assert subscription["status"] == "trialing"
    assert client.get("/api/users/me", headers=auth_headers).json()["data"]["is_premium"] is False

    active = subscription_object("sub_1", "cus_1", price_id=ANNUAL_PRICE, status="active")
    post_event("customer.subscription.updated", active)
    # Redelivery of the same event
    post_event("customer.subscription.updated", active)
    assert client.get("/api/users/me", headers=auth_headers).json()["data"]["is_premium"] is True

    post_event("invoice.payment_failed", {"id": "in_1", "customer": "cus_1", "subscription": "sub_1"})
    subscription = client.get("/api/users/me/subscription", headers=auth_headers).json()["data"]
    assert subscription["status"] == "past_due"
    assert client.get("/api/users/me", headers=auth_headers).json()["data"]["is_premium"] is True

    post_event("customer.subscription.deleted", active)
    subscription = client.get("/api/users/me/subscription", headers=auth_headers).json()["data"]
    assert subscription["plan"] == "free"
    assert subscription["status"] == "canceled"
    assert client.get("/api/users/me", headers=auth_headers).json()["data"]["is_premium"] is False

def test_webhook_drops_unknown_customer(billing_provider, auth_headers):
    billing_provider.add_customer("cus_anon")
    response = post_event("customer.subscription.updated", subscription_object("sub_1", "cus_anon"))
    assert response.status_code == 200
    assert client.get("/api/users/me/subscription", headers=auth_headers).status_code == 404

def test_webhook_handler_failure_returns_500(billing_provider, customer):
    billing_provider.fail_lookups = True
    response = post_event("customer.subscription.updated", subscription_object("sub_1", "cus_1"))
    assert response.status_code == 500
    assert response.json() == {"error": {"code": "INTERNAL_ERROR", "message": "Webhook handler failed"}}
