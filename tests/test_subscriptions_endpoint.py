"""
Endpoint tests for /subscriptions, including Stripe webhook signature checks.
Webhook payloads are signed locally with the test secret.
"""
import hashlib
import hmac
import json
import time
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobscout.main import app
from jobscout.core import config
from jobscout.core.dependencies import get_billing_service, get_stripe_client
from jobscout.db.base import Base
from jobscout.db.session import get_db
from jobscout.db import models  # noqa: F401
from jobscout.db.models.user import User
from jobscout.db.models.subscription import Subscription
from jobscout.db.repositories import SubscriptionRepository, UserRepository
from jobscout.services.billing_service import BillingService
from jobscout.services.stripe_service import StripeClient


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "whsec_test_secret"
PRICE_TO_PLAN = {"price_pro_monthly": "pro"}


class CheckoutOnlyStripeClient(StripeClient):
    """Real webhook verification, canned checkout and portal responses."""

    def create_checkout_session(self, **kwargs):
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    def create_portal_session(self, customer_id, return_url):
        return {"id": "bps_1", "url": f"https://billing.stripe.test/{customer_id}"}


def override_get_db():
    """Override database dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_get_billing_service():
    db = TestSessionLocal()
    try:
        yield BillingService(
            users=UserRepository(db),
            subscriptions=SubscriptionRepository(db),
            stripe_client=stripe_client,
            price_to_plan=PRICE_TO_PLAN,
        )
    finally:
        db.close()


stripe_client = CheckoutOnlyStripeClient(api_key="sk_test_dummy", webhook_secret=WEBHOOK_SECRET)


def auth_headers(user_id="user-1", email="jane@example.com"):
    token = jwt.encode(
        {"sub": user_id, "email": email, "aud": "authenticated", "exp": int(time.time()) + 3600},
        TEST_SECRET,
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}


def sign(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={signature}"


def deleted_event(subscription_id="sub_123"):
    return json.dumps({
        "id": "evt_1",
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": subscription_id, "customer": "cus_123", "status": "canceled"}},
    })


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db, monkeypatch):
    monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", TEST_SECRET)
    monkeypatch.setattr(config, "JWT_AUDIENCE", "authenticated")
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_client] = lambda: stripe_client
    app.dependency_overrides[get_billing_service] = override_get_billing_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def pro_subscription(db):
    db.add(User(id="user-1", email="jane@example.com", name="jane"))
    db.add(Subscription(user_id="user-1", plan_id="pro", status="active",
                        stripe_customer_id="cus_123", stripe_subscription_id="sub_123"))
    db.commit()


def test_plans_are_public(client):
    response = client.get("/subscriptions/plans")
    assert response.status_code == 200
    plans = response.json()["plans"]
    assert [plan["id"] for plan in plans] == ["free", "pro", "premium"]
    assert plans[0]["prompt_limit"] == 5


def test_current_subscription(client, pro_subscription):
    response = client.get("/subscriptions/current", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["plan_id"] == "pro"
    assert response.json()["status"] == "active"


def test_checkout_requires_auth(client):
    response = client.post("/subscriptions/checkout", json={"priceId": "price_pro_monthly", "billingCycle": "monthly"})
    assert response.status_code == 401


def test_checkout_creates_session(client, db):
    response = client.post(
        "/subscriptions/checkout",
        json={"priceId": "price_pro_monthly", "billingCycle": "monthly"},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}
    assert db.get(User, "user-1") is not None


def test_checkout_invalid_billing_cycle(client):
    response = client.post(
        "/subscriptions/checkout",
        json={"priceId": "price_pro_monthly", "billingCycle": "weekly"},
        headers=auth_headers(),
    )
    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "billingCycle"


def test_portal_session(client, pro_subscription):
    response = client.post("/subscriptions/portal", json={}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["url"] == "https://billing.stripe.test/cus_123"


def test_webhook_missing_signature(client, pro_subscription, db):
    response = client.post("/subscriptions/webhook", content=deleted_event())

    assert response.status_code == 400
    assert response.json() == {"error": "No signature found"}
    assert db.query(Subscription).count() == 1


def test_webhook_bad_signature_mutates_nothing(client, pro_subscription, db):
    payload = deleted_event()

    response = client.post(
        "/subscriptions/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload, secret="whsec_wrong")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid signature"}
    rows = db.query(Subscription).all()
    assert len(rows) == 1
    assert rows[0].status == "active"


def test_webhook_valid_signature(client, pro_subscription, db):
    payload = deleted_event()

    response = client.post(
        "/subscriptions/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload)},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}
    statuses = sorted((row.plan_id, row.status) for row in db.query(Subscription).all())
    assert statuses == [("free", "active"), ("pro", "canceled")]


def test_webhook_unknown_event_acknowledged(client, db):
    payload = json.dumps({"id": "evt_2", "type": "charge.refunded", "data": {"object": {"id": "ch_1"}}})

    response = client.post(
        "/subscriptions/webhook",
        content=payload,
        headers={"Stripe-Signature": sign(payload)},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}


def test_webhook_non_utf8_body_rejected(client, pro_subscription, db):
    response = client.post(
        "/subscriptions/webhook",
        content=b"\xff\xfe{bad",
        headers={"Stripe-Signature": sign("irrelevant")},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid signature"}
    rows = db.query(Subscription).all()
    assert len(rows) == 1
    assert rows[0].status == "active"
