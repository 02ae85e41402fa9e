"""
Integration tests for quota-consuming writes and the entitlement endpoints.
"""
from app.services import stripe_service
from app.services.entitlement_service import Entitlement

INTERVIEW = {"title": "Technical screen", "scheduled_at": "2030-01-15T15:00:00Z", "duration_minutes": 45}


def test_interview_quota_blocks_fourth_interview(client, owner_headers):
    for _ in range(3):
        response = client.post("/interviews", json=INTERVIEW, headers=owner_headers)
        assert response.status_code == 201

    response = client.post("/interviews", json=INTERVIEW, headers=owner_headers)

    assert response.status_code == 402
    detail = response.json()["detail"]
    assert detail["error"] == "quota_exceeded"
    assert detail["resource"] == "interviews"
    assert detail["plan"] == "free-trial"
    assert detail["limit"] == 3
    assert detail["used"] == 3
    assert detail["upgrade_url"].endswith("/dashboard/pricing?upgrade=interviews")
    assert len(client.get("/interviews", headers=owner_headers).json()) == 3


def test_interview_check_endpoint(client, owner_headers):
    client.post("/interviews", json=INTERVIEW, headers=owner_headers)

    data = client.get("/interviews/check", headers=owner_headers).json()

    assert data["resource"] == "interviews"
    assert data["allowed"] is True
    assert data["used"] == 1
    assert data["remaining"] == 2


def test_data_store_error_returns_503_not_402(client, owner_headers, monkeypatch):
    monkeypatch.setattr(
        "app.core.entitlement_guard.evaluate",
        lambda db, user_id, resource: Entitlement.data_store_error(),
    )

    response = client.post("/interviews", json=INTERVIEW, headers=owner_headers)

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "data_store_error"
    assert response.json()["detail"]["retryable"] is True


def test_job_quota(client, owner, owner_headers, subscribe):
    subscribe(owner, "starter-monthly")
    for i in range(10):
        assert client.post("/jobs", json={"title": f"Role {i}"}, headers=owner_headers).status_code == 201

    response = client.post("/jobs", json={"title": "One too many"}, headers=owner_headers)

    assert response.status_code == 402
    assert response.json()["detail"]["plan"] == "starter-monthly"


def test_candidates_unlimited_on_professional(client, owner, owner_headers, subscribe):
    subscribe(owner, "professional-monthly")
    for i in range(12):
        response = client.post("/candidates", json={"full_name": f"Candidate {i}"}, headers=owner_headers)
        assert response.status_code == 201

    assert len(client.get("/candidates", headers=owner_headers).json()) == 12


def test_quota_is_per_tenant(client, owner_headers, make_user, headers_for):
    for _ in range(3):
        client.post("/interviews", json=INTERVIEW, headers=owner_headers)

    other_headers = headers_for(make_user("other-tenant@example.com"))
    response = client.post("/interviews", json=INTERVIEW, headers=other_headers)

    assert response.status_code == 201


def test_entitlements_summary(client, owner_headers):
    response = client.get("/me/entitlements", headers=owner_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["plan_id"] == "free-trial"
    assert len(data["month_key"]) == 7
    assert set(data["resources"]) == {"interviews", "candidates", "jobs", "team_members", "analytics"}
    assert data["resources"]["analytics"]["needs_upgrade"] is True
    assert data["resources"]["jobs"]["limit"] == 5


def test_single_entitlement(client, owner_headers):
    data = client.get("/me/entitlements/team_members", headers=owner_headers).json()
    assert data["limit"] == 1
    # The owner fills the only free-trial seat
    assert data["used"] == 1
    assert data["allowed"] is False
    assert data["remaining"] == 0

    assert client.get("/me/entitlements/widgets", headers=owner_headers).status_code == 404


def test_entitlements_require_auth(client):
    assert client.get("/me/entitlements").status_code == 401
    assert client.get("/me/entitlements", headers={"Authorization": "Bearer invalid_token"}).status_code == 401


def test_upgrade_from_free_trial_to_professional(
    client, db, owner, owner_headers, post_event, monkeypatch
):
    """Quota hit on the free trial is lifted once the checkout webhook lands."""
    for _ in range(3):
        client.post("/interviews", json=INTERVIEW, headers=owner_headers)
    assert client.post("/interviews", json=INTERVIEW, headers=owner_headers).status_code == 402

    monkeypatch.setattr(stripe_service, "retrieve_subscription", lambda subscription_id: {
        "id": subscription_id,
        "status": "active",
        "current_period_start": 1717200000,
        "current_period_end": 1719792000,
    })
    webhook = post_event(client, {
        "id": "evt_upgrade",
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_upgrade",
            "customer": "cus_upgrade",
            "subscription": "sub_upgrade",
            "metadata": {"user_id": str(owner.id), "plan_id": "professional-monthly"},
        }},
    })
    assert webhook.status_code == 200

    response = client.post("/interviews", json=INTERVIEW, headers=owner_headers)
    assert response.status_code == 201

    entitlement = client.get("/me/entitlements/interviews", headers=owner_headers).json()
    assert entitlement["unlimited"] is True
    assert entitlement["plan_id"] == "professional-monthly"
