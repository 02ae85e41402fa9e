"""
Entitlement evaluation for metered resources.

Decides, per tenant, whether one more interview / candidate / job / team
member may be created right now, and whether analytics is available.
Results are never cached; callers re-evaluate right before every write.

Two tenant users submitting at the same moment can both pass the check and
both insert, overshooting the cap by at most (concurrent writers - 1).
"""
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.plan_catalog import (
    CAPABILITY_RESOURCES,
    SUPPORTED_RESOURCES,
    Plan,
    get_free_trial_plan,
    get_plan_limit,
    is_unlimited,
    resolve_plan,
)
from app.db.models.subscription import Subscription
from app.services.subscription_service import ACTIVE_STATUSES, get_subscription
from app.services.usage_service import count_usage

logger = logging.getLogger(__name__)

DATA_STORE_ERROR = "data_store_error"


@dataclass(frozen=True)
class Entitlement:
    allowed: bool
    limit: Optional[int]
    used: int
    remaining: Optional[int]
    unlimited: bool
    needs_upgrade: bool
    plan_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def unavailable(self) -> bool:
        """True when the decision came from a data error, not from the quota."""
        return self.error is not None

    @classmethod
    def unlimited_for(cls, plan: Plan) -> "Entitlement":
        return cls(
            allowed=True,
            limit=None,
            used=0,
            remaining=None,
            unlimited=True,
            needs_upgrade=False,
            plan_id=plan.id,
        )

    @classmethod
    def data_store_error(cls) -> "Entitlement":
        return cls(
            allowed=False,
            limit=None,
            used=0,
            remaining=None,
            unlimited=False,
            needs_upgrade=False,
            error=DATA_STORE_ERROR,
        )

    def to_dict(self) -> Dict:
        return asdict(self)


def get_active_subscription(db: Session, tenant_id: int) -> Optional[Subscription]:
    """Subscription row if its status grants plan access, else None."""
    subscription = get_subscription(db, tenant_id)
    if subscription is None or subscription.status not in ACTIVE_STATUSES:
        return None
    return subscription


def get_effective_plan(db: Session, tenant_id: int) -> Plan:
    """
    Plan the tenant is entitled to right now.

    Missing, canceled and past-due subscriptions all map to the free trial.
    """
    subscription = get_active_subscription(db, tenant_id)
    if subscription is None:
        return get_free_trial_plan()
    return resolve_plan(subscription.plan_id)


def evaluate_for_plan(
    db: Session,
    tenant_id: int,
    plan: Plan,
    resource: str,
    now: Optional[datetime] = None,
) -> Entitlement:
    """Apply a known plan to the tenant's current usage of one resource."""
    if resource not in SUPPORTED_RESOURCES:
        raise ValueError(f"Unknown metered resource: {resource}")

    if is_unlimited(plan, resource):
        return Entitlement.unlimited_for(plan)

    if resource in CAPABILITY_RESOURCES:
        # Capability flag is off
        return Entitlement(
            allowed=False,
            limit=0,
            used=0,
            remaining=0,
            unlimited=False,
            needs_upgrade=True,
            plan_id=plan.id,
        )

    limit = int(get_plan_limit(plan, resource))
    used = count_usage(db, tenant_id, resource, now)
    allowed = used < limit

    return Entitlement(
        allowed=allowed,
        limit=limit,
        used=used,
        remaining=max(0, limit - used),
        unlimited=False,
        needs_upgrade=not allowed,
        plan_id=plan.id,
    )


def evaluate(
    db: Session,
    tenant_id: int,
    resource: str,
    now: Optional[datetime] = None,
) -> Entitlement:
    """
    Evaluate a tenant's entitlement for a metered resource.

    Args:
        db: Database session
        tenant_id: Tenant (account owner) id
        resource: interviews, candidates, jobs, team_members or analytics
        now: Evaluation time; selects the interview counting month

    Returns:
        Entitlement. On a data-store failure the result has allowed=False,
        needs_upgrade=False and error="data_store_error" so callers do not
        send the user to the upgrade page for an outage.

    Raises:
        ValueError: resource is not metered
    """
    if resource not in SUPPORTED_RESOURCES:
        raise ValueError(f"Unknown metered resource: {resource}")

    try:
        plan = get_effective_plan(db, tenant_id)
        result = evaluate_for_plan(db, tenant_id, plan, resource, now)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Entitlement check failed: tenant_id={tenant_id}, resource={resource}, error={e}")
        return Entitlement.data_store_error()

    logger.debug(
        f"Entitlement evaluated: tenant_id={tenant_id}, resource={resource}, plan={result.plan_id}, "
        f"allowed={result.allowed}, used={result.used}, limit={result.limit}"
    )
    return result


def evaluate_all(db: Session, tenant_id: int, now: Optional[datetime] = None) -> Dict[str, Entitlement]:
    """Evaluate every metered resource; used for usage banners."""
    return {resource: evaluate(db, tenant_id, resource, now) for resource in SUPPORTED_RESOURCES}
