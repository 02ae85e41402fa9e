"""
Tests for the plan catalog, checkout, trial and subscription endpoints.
"""
from types import SimpleNamespace

import pytest
import stripe

from app.core import config
from app.core.exceptions import SubscriptionExists
from app.core.plan_catalog import get_plan
from app.db.models.subscription import Subscription
from app.services import subscription_service
from app.services.stripe_service import build_checkout_params, get_period_bounds


@pytest.fixture
def fake_checkout(monkeypatch):
    """Stripe configured, Session.create captured."""
    calls = []

    def fake_create(**params):
        calls.append(params)
        return SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.com/c/pay/cs_test_123")

    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_dummy")
    monkeypatch.setattr(stripe.checkout.Session, "create", fake_create)
    return calls


def test_list_plans(client):
    response = client.get("/billing/plans")

    assert response.status_code == 200
    plans = response.json()
    assert [p["id"] for p in plans] == [
        "free-trial", "starter-monthly", "professional-monthly", "enterprise-monthly",
    ]
    professional = plans[2]
    assert professional["price_display"] == "$129"
    assert professional["popular"] is True
    assert professional["limits"]["max_candidates"] is None


def test_build_checkout_params():
    plan = get_plan("starter-monthly")

    params = build_checkout_params(plan, 42, "owner@example.com")

    assert params["mode"] == "subscription"
    assert params["customer_email"] == "owner@example.com"
    item = params["line_items"][0]
    assert item["price_data"]["unit_amount"] == 4900
    assert item["price_data"]["recurring"] == {"interval": "month"}
    assert params["metadata"]["user_id"] == "42"
    assert params["metadata"]["plan_id"] == "starter-monthly"
    assert params["subscription_data"]["metadata"] == {"user_id": "42", "plan_id": "starter-monthly"}
    assert params["success_url"].startswith(f"{config.APP_URL}/dashboard/settings?checkout=success")
    assert "{CHECKOUT_SESSION_ID}" in params["success_url"]
    assert params["cancel_url"] == f"{config.APP_URL}/dashboard/pricing?checkout=canceled"


def test_build_checkout_params_custom_urls():
    params = build_checkout_params(
        get_plan("enterprise-monthly"), 1, "a@example.com",
        success_url="https://app.example.com/ok", cancel_url="https://app.example.com/no",
    )
    assert params["success_url"] == "https://app.example.com/ok"
    assert params["cancel_url"] == "https://app.example.com/no"


def test_create_checkout_session(client, owner, owner_headers, fake_checkout):
    response = client.post("/billing/checkout", json={"plan_id": "professional-monthly"}, headers=owner_headers)

    assert response.status_code == 200
    assert response.json() == {
        "checkout_url": "https://checkout.stripe.com/c/pay/cs_test_123",
        "session_id": "cs_test_123",
    }
    assert fake_checkout[0]["metadata"]["user_id"] == str(owner.id)


def test_checkout_unknown_plan_is_404(client, owner_headers, fake_checkout):
    response = client.post("/billing/checkout", json={"plan_id": "platinum"}, headers=owner_headers)

    assert response.status_code == 404
    assert fake_checkout == []


def test_checkout_free_plan_is_400(client, owner_headers, fake_checkout):
    response = client.post("/billing/checkout", json={"plan_id": "free-trial"}, headers=owner_headers)

    assert response.status_code == 400
    assert fake_checkout == []


def test_checkout_without_stripe_key_is_502(client, owner_headers, monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", None)

    response = client.post("/billing/checkout", json={"plan_id": "starter-monthly"}, headers=owner_headers)

    assert response.status_code == 502


def test_checkout_requires_auth(client):
    response = client.post("/billing/checkout", json={"plan_id": "starter-monthly"})
    assert response.status_code == 401


def test_start_trial_then_conflict(client, owner_headers):
    first = client.post("/billing/trial", headers=owner_headers)

    assert first.status_code == 201
    data = first.json()
    assert data["plan_id"] == "free-trial"
    assert data["status"] == "trialing"
    assert data["is_active"] is True

    second = client.post("/billing/trial", headers=owner_headers)
    assert second.status_code == 409


def test_concurrent_trial_start_is_conflict(db, owner, subscribe, monkeypatch):
    """A row inserted after the existence check still surfaces as SubscriptionExists."""
    subscribe(owner, "free-trial", status="trialing")
    monkeypatch.setattr(subscription_service, "get_subscription", lambda db, tenant_id: None)

    with pytest.raises(SubscriptionExists):
        subscription_service.start_trial(db, owner.id)

    db.rollback()
    assert db.query(Subscription).filter_by(user_id=owner.id).count() == 1


def test_get_subscription(client, owner, owner_headers, subscribe):
    assert client.get("/billing/subscription", headers=owner_headers).json() is None

    subscribe(owner, "starter-monthly", status="past_due")

    data = client.get("/billing/subscription", headers=owner_headers).json()
    assert data["plan_id"] == "starter-monthly"
    assert data["is_active"] is False


def test_period_bounds_fall_back_to_items():
    start, end = get_period_bounds({
        "items": {"data": [{"current_period_start": 1717200000, "current_period_end": 1719792000}]},
    })
    assert start.isoformat() == "2024-06-01T00:00:00+00:00"
    assert end.isoformat() == "2024-07-01T00:00:00+00:00"
    assert get_period_bounds({}) == (None, None)
