"""
Subscription plan catalog.

Single source of truth for pricing tiers and their entitlement limits.
Plan ids here are the ids passed to checkout and stored in subscriptions.plan_id.
A limit of None means unlimited; booleans are capability flags.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from app.core.exceptions import PlanNotFound

logger = logging.getLogger(__name__)

FREE_TRIAL_PLAN_ID = "free-trial"

LimitValue = Union[int, bool, None]

# Metered resource name -> key in Plan.limits
RESOURCE_LIMIT_KEYS: Dict[str, str] = {
    "candidates": "max_candidates",
    "jobs": "max_jobs",
    "team_members": "max_team_members",
    "interviews": "max_interviews_per_month",
    "analytics": "has_analytics",
}

# Explicit "unlimited" flags that override a numeric cap
UNLIMITED_FLAGS: Dict[str, str] = {
    "interviews": "has_unlimited_interviews",
}

CAPABILITY_RESOURCES: Tuple[str, ...] = ("analytics",)

SUPPORTED_RESOURCES: List[str] = list(RESOURCE_LIMIT_KEYS)


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    description: str
    price_in_cents: int
    currency: str
    billing_period: str
    limits: Mapping[str, LimitValue]
    features: Tuple[str, ...] = field(default_factory=tuple)
    popular: bool = False

    @property
    def is_free(self) -> bool:
        return self.price_in_cents == 0


def _limits(**values: LimitValue) -> Mapping[str, LimitValue]:
    return MappingProxyType(dict(values))


PRICING_PLANS: Tuple[Plan, ...] = (
    Plan(
        id=FREE_TRIAL_PLAN_ID,
        name="Free Trial",
        description="Try our platform free for 14 days",
        price_in_cents=0,
        currency="usd",
        billing_period="monthly",
        limits=_limits(
            max_candidates=10,
            max_jobs=5,
            max_team_members=1,
            max_interviews_per_month=3,
            has_unlimited_interviews=False,
            has_analytics=False,
        ),
        features=(
            "Up to 5 active job postings",
            "10 candidate profiles",
            "Basic candidate search",
            "Email support",
            "1 team member",
            "14-day free trial period",
        ),
    ),
    Plan(
        id="starter-monthly",
        name="Starter",
        description="Perfect for small teams getting started",
        price_in_cents=4900,
        currency="usd",
        billing_period="monthly",
        limits=_limits(
            max_candidates=50,
            max_jobs=10,
            max_team_members=2,
            max_interviews_per_month=20,
            has_unlimited_interviews=False,
            has_analytics=True,
        ),
        features=(
            "Up to 10 active job postings",
            "50 candidate profiles",
            "Basic candidate search",
            "Email support",
            "2 team members",
        ),
    ),
    Plan(
        id="professional-monthly",
        name="Professional",
        description="For growing teams with more hiring needs",
        price_in_cents=12900,
        currency="usd",
        billing_period="monthly",
        popular=True,
        limits=_limits(
            max_candidates=None,
            max_jobs=50,
            max_team_members=10,
            max_interviews_per_month=None,
            has_unlimited_interviews=True,
            has_analytics=True,
        ),
        features=(
            "Up to 50 active job postings",
            "Unlimited candidate profiles",
            "Advanced AI-powered search",
            "Interview scheduling",
            "Priority email support",
            "10 team members",
            "Analytics dashboard",
            "Custom branding",
        ),
    ),
    Plan(
        id="enterprise-monthly",
        name="Enterprise",
        description="For large organizations with custom needs",
        price_in_cents=29900,
        currency="usd",
        billing_period="monthly",
        limits=_limits(
            max_candidates=None,
            max_jobs=None,
            max_team_members=None,
            max_interviews_per_month=None,
            has_unlimited_interviews=True,
            has_analytics=True,
        ),
        features=(
            "Unlimited job postings",
            "Unlimited candidate profiles",
            "AI-powered matching & search",
            "Interview scheduling",
            "24/7 priority support",
            "Unlimited team members",
            "Advanced analytics",
            "Custom branding",
            "API access",
            "Dedicated account manager",
            "Custom integrations",
        ),
    ),
)

_PLANS_BY_ID: Mapping[str, Plan] = MappingProxyType({plan.id: plan for plan in PRICING_PLANS})

if len(_PLANS_BY_ID) != len(PRICING_PLANS) or FREE_TRIAL_PLAN_ID not in _PLANS_BY_ID:
    raise RuntimeError("Plan catalog must have unique ids and exactly one free-trial plan")


def list_plans() -> Tuple[Plan, ...]:
    """All plans in pricing-page order."""
    return PRICING_PLANS


def find_plan(plan_id: Optional[str]) -> Optional[Plan]:
    """Return the plan with exactly this id, or None."""
    if not plan_id:
        return None
    return _PLANS_BY_ID.get(plan_id)


def get_plan(plan_id: Optional[str]) -> Plan:
    """Like find_plan, but raises PlanNotFound for unknown ids."""
    plan = find_plan(plan_id)
    if plan is None:
        raise PlanNotFound(plan_id)
    return plan


def get_free_trial_plan() -> Plan:
    return _PLANS_BY_ID[FREE_TRIAL_PLAN_ID]


def resolve_plan(plan_id: Optional[str]) -> Plan:
    """
    Resolve a stored plan id, falling back to the free trial.

    Subscriptions may reference plan ids that were renamed or never existed;
    those tenants get the most restrictive plan instead of an error.
    """
    try:
        return get_plan(plan_id)
    except PlanNotFound:
        if plan_id:
            logger.warning(f"Unknown plan_id={plan_id!r}, falling back to {FREE_TRIAL_PLAN_ID}")
        return get_free_trial_plan()


def get_plan_limit(plan: Plan, resource: str) -> LimitValue:
    """
    Get the cap for a resource in a plan.

    Returns an int cap, None for unlimited, or a bool for capability resources.

    Raises:
        KeyError: resource is not metered
    """
    key = RESOURCE_LIMIT_KEYS[resource]
    return plan.limits.get(key)


def is_unlimited(plan: Plan, resource: str) -> bool:
    """Check the explicit unlimited flag first, then a None cap."""
    flag = UNLIMITED_FLAGS.get(resource)
    if flag and plan.limits.get(flag):
        return True
    if resource in CAPABILITY_RESOURCES:
        return bool(get_plan_limit(plan, resource))
    return get_plan_limit(plan, resource) is None


def format_price(price_in_cents: int, currency: str = "usd") -> str:
    symbol = "$" if currency.lower() == "usd" else f"{currency.upper()} "
    amount = price_in_cents / 100
    if amount == int(amount):
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"
