"""
Unit tests for the plan catalog.
"""
import pytest

from app.core.exceptions import PlanNotFound
from app.core.plan_catalog import (
    FREE_TRIAL_PLAN_ID,
    SUPPORTED_RESOURCES,
    find_plan,
    format_price,
    get_free_trial_plan,
    get_plan,
    get_plan_limit,
    is_unlimited,
    list_plans,
    resolve_plan,
)


def test_every_plan_defines_every_resource():
    """Each plan has a limit (or unlimited flag) for every metered resource."""
    for plan in list_plans():
        for resource in SUPPORTED_RESOURCES:
            limit = get_plan_limit(plan, resource)
            assert limit is None or isinstance(limit, (bool, int)), (plan.id, resource)


def test_catalog_order_and_ids():
    ids = [plan.id for plan in list_plans()]
    assert ids == ["free-trial", "starter-monthly", "professional-monthly", "enterprise-monthly"]
    assert len(set(ids)) == len(ids)


def test_free_trial_limits():
    plan = get_free_trial_plan()
    assert plan.id == FREE_TRIAL_PLAN_ID
    assert plan.is_free
    assert get_plan_limit(plan, "jobs") == 5
    assert get_plan_limit(plan, "candidates") == 10
    assert get_plan_limit(plan, "team_members") == 1
    assert get_plan_limit(plan, "interviews") == 3
    assert get_plan_limit(plan, "analytics") is False


def test_professional_unlimited_interviews_via_flag():
    plan = get_plan("professional-monthly")
    assert is_unlimited(plan, "interviews")
    assert is_unlimited(plan, "candidates")
    assert not is_unlimited(plan, "jobs")
    assert get_plan_limit(plan, "team_members") == 10


def test_enterprise_is_unlimited_everywhere():
    plan = get_plan("enterprise-monthly")
    for resource in SUPPORTED_RESOURCES:
        assert is_unlimited(plan, resource), resource


def test_numeric_caps_never_shrink_with_price():
    """Moving up the price ladder never lowers a cap."""
    plans = sorted(list_plans(), key=lambda p: p.price_in_cents)
    for lower, higher in zip(plans, plans[1:]):
        for resource in ("jobs", "candidates", "team_members", "interviews"):
            if is_unlimited(higher, resource):
                continue
            assert not is_unlimited(lower, resource)
            assert get_plan_limit(lower, resource) <= get_plan_limit(higher, resource)


def test_find_plan_is_exact_match():
    assert find_plan("starter-monthly").name == "Starter"
    assert find_plan("Starter-Monthly") is None
    assert find_plan("starter") is None
    assert find_plan(None) is None


def test_get_plan_unknown_raises():
    with pytest.raises(PlanNotFound) as exc_info:
        get_plan("gold-yearly")
    assert exc_info.value.plan_id == "gold-yearly"


def test_resolve_plan_falls_back_to_free_trial():
    assert resolve_plan("retired-plan").id == FREE_TRIAL_PLAN_ID
    assert resolve_plan(None).id == FREE_TRIAL_PLAN_ID
    assert resolve_plan("enterprise-monthly").id == "enterprise-monthly"


def test_limits_are_read_only():
    plan = get_free_trial_plan()
    with pytest.raises(TypeError):
        plan.limits["max_jobs"] = 500


def test_format_price():
    assert format_price(0) == "$0"
    assert format_price(4900) == "$49"
    assert format_price(12950) == "$129.50"
    assert format_price(1000, "eur") == "EUR 10"
