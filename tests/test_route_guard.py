"""
Tests for the gated-route middleware.
"""
from sqlalchemy.exc import OperationalError

from app.core import route_guard
from app.core.route_guard import (
    GuardDecision,
    blocked_feature,
    decide,
    is_gated_path,
    upgrade_location,
)
from app.core.security import create_access_token
from app.services.entitlement_service import Entitlement


def _allowed(tenant_id, resource):
    return Entitlement(allowed=True, limit=None, used=0, remaining=None, unlimited=True, needs_upgrade=False)


def _blocked(tenant_id, resource):
    return Entitlement(allowed=False, limit=0, used=0, remaining=0, unlimited=False, needs_upgrade=True)


def _broken(tenant_id, resource):
    return Entitlement.data_store_error()


def _never_called(tenant_id, resource):
    raise AssertionError("evaluator should not run")


def test_is_gated_path():
    assert is_gated_path("/dashboard/reports")
    assert is_gated_path("/dashboard/analytics/pipeline")
    assert not is_gated_path("/dashboard/reportsarchive")
    assert not is_gated_path("/dashboard/pricing")
    assert not is_gated_path("/interviews")


def test_blocked_feature_and_upgrade_location():
    assert blocked_feature("/dashboard/reports/weekly") == "reports"
    assert upgrade_location("/dashboard/analytics") == "/dashboard/pricing?upgrade=analytics&feature=analytics"


def test_decide_ungated_skips_evaluation():
    assert decide("/jobs", None, _never_called) == GuardDecision("allow")


def test_decide_anonymous_goes_to_login():
    assert decide("/dashboard/reports", None, _never_called) == GuardDecision("login", "/auth/login")


def test_decide_with_and_without_capability():
    assert decide("/dashboard/reports", 1, _allowed).action == "allow"
    decision = decide("/dashboard/reports", 1, _blocked)
    assert decision.action == "upgrade"
    assert decision.location == "/dashboard/pricing?upgrade=analytics&feature=reports"


def test_decide_data_error_is_not_an_upgrade():
    assert decide("/dashboard/reports", 1, _broken) == GuardDecision("unavailable")


def test_anonymous_request_redirects_to_login(client):
    response = client.get("/dashboard/reports", follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/auth/login"


def test_token_for_unknown_user_redirects_to_login(client):
    token = create_access_token({"sub": "ghost@example.com"})

    response = client.get("/dashboard/reports", headers={"Authorization": f"Bearer {token}"}, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/auth/login"


def test_free_trial_redirects_to_pricing(client, owner_headers):
    response = client.get("/dashboard/reports", headers=owner_headers, follow_redirects=False)

    assert response.status_code == 307
    assert response.headers["location"] == "/dashboard/pricing?upgrade=analytics&feature=reports"


def test_analytics_plan_reaches_reports(client, owner, owner_headers, subscribe):
    subscribe(owner, "starter-monthly")

    response = client.get("/dashboard/reports", headers=owner_headers, follow_redirects=False)

    assert response.status_code == 200
    data = response.json()
    assert data["interviews_this_month"] == 0
    assert "month_key" in data


def test_access_token_cookie_is_accepted(client, owner, subscribe):
    subscribe(owner, "enterprise-monthly")
    client.cookies.set("access_token", create_access_token({"sub": owner.email}))

    response = client.get("/dashboard/analytics", follow_redirects=False)

    # Guard lets the request through; no analytics page is mounted on the API
    assert response.status_code == 404


def test_data_error_returns_503(client, owner_headers, monkeypatch):
    monkeypatch.setattr(
        "app.core.route_guard.evaluate",
        lambda db, tenant_id, resource: Entitlement.data_store_error(),
    )

    response = client.get("/dashboard/reports", headers=owner_headers, follow_redirects=False)

    assert response.status_code == 503


def test_ungated_routes_untouched(client):
    response = client.get("/billing/plans", follow_redirects=False)
    assert response.status_code == 200


def test_guard_lookup_runs_in_threadpool(client, owner, owner_headers, subscribe, monkeypatch):
    subscribe(owner, "starter-monthly")
    offloaded = []

    async def recording_threadpool(func, *args, **kwargs):
        offloaded.append(args)
        return func(*args, **kwargs)

    monkeypatch.setattr(route_guard, "run_in_threadpool", recording_threadpool)

    response = client.get("/dashboard/reports", headers=owner_headers, follow_redirects=False)

    assert response.status_code == 200
    assert [args[0] for args in offloaded] == ["/dashboard/reports"]


def test_report_query_failure_returns_503(client, owner, owner_headers, subscribe, monkeypatch):
    subscribe(owner, "starter-monthly")

    def broken_summary(db, user_id):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr("app.api.routes.reports.get_usage_summary", broken_summary)

    response = client.get("/dashboard/reports", headers=owner_headers, follow_redirects=False)

    assert response.status_code == 503
    assert response.json()["detail"]["error"] == "data_store_error"
    assert response.json()["detail"]["retryable"] is True
