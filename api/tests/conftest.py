import os

# Settings are read at import time
os.environ["ENV"] = "test"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["STRIPE_PREMIUM_MONTHLY_PRICE_ID"] = "price_monthly_test"
os.environ["STRIPE_PREMIUM_ANNUAL_PRICE_ID"] = "price_annual_test"

import json
import pytest
from functools import lru_cache
from sqlmodel import Session
from familyspots.main import app
from familyspots.models import Place, PlaceCategory, User, UserRole, default_amenities
from familyspots.database import init_db, engine, drop_all_tables
from familyspots.services.auth import create_access_token, get_password_hash
from familyspots.services.payments import InvalidSignature, USER_METADATA_KEY, get_billing_provider

MONTHLY_PRICE = "price_monthly_test"
ANNUAL_PRICE = "price_annual_test"
VALID_SIGNATURE = "t=1,v1=valid"


class FakeBillingProvider:
    """In-memory stand-in for the payment provider."""

    def __init__(self):
        self.customers = {}
        self.subscriptions = {}
        self.checkout_sessions = []
        self.fail_lookups = False

    def add_customer(self, customer_id, user_id=None, deleted=False):
        customer = {"id": customer_id, "metadata": {}}
        if user_id is not None:
            customer["metadata"][USER_METADATA_KEY] = str(user_id)
        if deleted:
            customer = {"id": customer_id, "deleted": True}
        self.customers[customer_id] = customer
        return customer

    def verify_event(self, payload, signature):
        if signature != VALID_SIGNATURE:
            raise InvalidSignature("No signatures found matching the expected signature")
        return json.loads(payload)

    def retrieve_subscription(self, subscription_id):
        return self.subscriptions[subscription_id]

    def retrieve_customer(self, customer_id):
        if self.fail_lookups:
            raise RuntimeError("provider unavailable")
        return self.customers[customer_id]

    def create_customer(self, user_id, name=None):
        customer_id = f"cus_{len(self.customers) + 1}"
        return self.add_customer(customer_id, user_id)

    def create_checkout_session(self, customer_id, price_id, success_url, cancel_url, trial_period_days):
        self.checkout_sessions.append({
            "customer": customer_id,
            "price": price_id,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "trial_period_days": trial_period_days,
        })
        return {"id": "cs_test", "url": f"https://checkout.test/{customer_id}"}

    def create_portal_session(self, customer_id, return_url):
        return {"id": "bps_test", "url": f"https://portal.test/{customer_id}"}

    def set_cancel_at_period_end(self, subscription_id, cancel):
        subscription = dict(self.subscriptions[subscription_id])
        subscription["cancel_at_period_end"] = cancel
        self.subscriptions[subscription_id] = subscription
        return subscription


def subscription_object(subscription_id, customer_id, price_id=MONTHLY_PRICE, status="active", **extra):
    subscription = {
        "id": subscription_id,
        "object": "subscription",
        "customer": customer_id,
        "status": status,
        "cancel_at_period_end": False,
        "current_period_start": 1735689600,
        "current_period_end": 1738368000,
        "items": {"data": [{"price": {"id": price_id}}]},
    }
    subscription.update(extra)
    return subscription


@pytest.fixture(scope="function", autouse=True)
def setup_test_db():
    init_db()  # Create all tables in in-memory SQLite
    yield
    drop_all_tables()


@pytest.fixture(autouse=True)
def billing_provider():
    provider = FakeBillingProvider()
    app.dependency_overrides[get_billing_provider] = lambda: provider
    yield provider
    app.dependency_overrides.pop(get_billing_provider, None)


@pytest.fixture(name="session")
def session_fixture():
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(session):
    def _make_user(username="parent1", role=UserRole.USER, full_name="Test Parent", password="testpassword123"):
        user = User(
            username=username,
            full_name=full_name,
            hashed_password=hashed(password),
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@lru_cache
def hashed(password):
    # One bcrypt hash per password for the whole run
    return get_password_hash(password)


def headers_for(user):
    token = create_access_token({"sub": user.username})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(username="admin1", role=UserRole.ADMIN, full_name="Admin User")


@pytest.fixture
def auth_headers(user):
    return headers_for(user)


@pytest.fixture
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture
def make_place(session):
    counter = {"n": 0}

    def _make_place(**overrides):
        counter["n"] += 1
        amenities = default_amenities()
        amenities.update(overrides.pop("amenities", {}))
        values = {
            "name": f"Place {counter['n']}",
            "slug": f"place-{counter['n']}",
            "category": PlaceCategory.CAFE,
            "address": "1 Main St",
            "city": "Austin",
            "state": "TX",
            "latitude": 30.2672,
            "longitude": -97.7431,
            "amenities": amenities,
        }
        values.update(overrides)
        place = Place(**values)
        session.add(place)
        session.commit()
        session.refresh(place)
        return place
    return _make_place


@pytest.fixture
def test_place_data():
    return {
        "name": "Sunny Cafe",
        "category": "cafe",
        "address": "100 Congress Ave",
        "city": "Austin",
        "state": "TX",
        "latitude": 30.2672,
        "longitude": -97.7431,
        "price_range": "$$",
        "amenities": {"high_chairs": True, "kids_menu": True, "noise_level": "moderate"},
    }


@pytest.fixture
def network_codes():
    return {
        "success": [200, 201],
        "error": [400, 401, 403, 404, 409]
    }


@pytest.fixture
def test_user_data():
    return {
        "username": "newparent",
        "password": "testpassword123",
        "full_name": "New Parent",
    }
