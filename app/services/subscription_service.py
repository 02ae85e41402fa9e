"""
Subscription persistence and status transitions.

States: trialing/active -> past_due -> canceled. A canceled row is terminal
for that Stripe subscription; a new checkout overwrites the same row through
the user_id upsert instead of creating a second one.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.core.config import TRIAL_PERIOD_DAYS
from app.core.exceptions import SubscriptionExists
from app.core.plan_catalog import FREE_TRIAL_PLAN_ID
from app.db.base import utcnow
from app.db.models.subscription import Subscription

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUSES = ("active", "trialing", "canceled", "past_due")
ACTIVE_STATUSES = ("active", "trialing")

UPSERT_FIELDS = (
    "plan_id",
    "status",
    "stripe_customer_id",
    "stripe_subscription_id",
    "current_period_start",
    "current_period_end",
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def normalize_status(status: Optional[str]) -> str:
    """
    Map a Stripe subscription status onto the local status set.

    incomplete/unpaid style states are treated as past_due; incomplete_expired
    as canceled.
    """
    if status in SUBSCRIPTION_STATUSES:
        return status
    if status == "incomplete_expired":
        return "canceled"
    return "past_due"


def get_subscription(db: Session, tenant_id: int) -> Optional[Subscription]:
    return db.execute(
        select(Subscription).where(Subscription.user_id == tenant_id)
    ).scalar_one_or_none()


def get_subscription_by_stripe_id(db: Session, stripe_subscription_id: str) -> Optional[Subscription]:
    return db.execute(
        select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
    ).scalar_one_or_none()


def start_trial(db: Session, tenant_id: int, now: Optional[datetime] = None) -> Subscription:
    """
    Client-initiated free trial.

    Raises:
        SubscriptionExists: tenant already has a subscription row, including
            one inserted concurrently
    """
    if get_subscription(db, tenant_id) is not None:
        raise SubscriptionExists()

    now = now or datetime.now(timezone.utc)
    subscription = Subscription(
        user_id=tenant_id,
        plan_id=FREE_TRIAL_PLAN_ID,
        status="trialing",
        current_period_start=now,
        current_period_end=now + timedelta(days=TRIAL_PERIOD_DAYS),
    )
    db.add(subscription)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent trial start won the unique user_id constraint
        db.rollback()
        raise SubscriptionExists()
    db.refresh(subscription)

    logger.info(f"Trial started: user_id={tenant_id}, ends={subscription.current_period_end}")
    return subscription


def upsert_subscription(db: Session, tenant_id: int, **fields: Any) -> Subscription:
    """
    Insert or update the tenant's subscription row in one statement.

    Conflict target is user_id, so redelivered checkout events overwrite the
    existing row with the latest values.
    """
    unknown = set(fields) - set(UPSERT_FIELDS)
    if unknown:
        raise ValueError(f"Unsupported subscription fields: {sorted(unknown)}")

    values: Dict[str, Any] = dict(fields, user_id=tenant_id, updated_at=utcnow())
    insert = _INSERT_BY_DIALECT.get(db.get_bind().dialect.name)

    if insert is None:
        # Fallback for dialects without ON CONFLICT support
        subscription = get_subscription(db, tenant_id)
        if subscription is None:
            subscription = Subscription(user_id=tenant_id)
            db.add(subscription)
        for key, value in values.items():
            setattr(subscription, key, value)
    else:
        stmt = insert(Subscription).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Subscription.user_id],
            set_={key: stmt.excluded[key] for key in values if key != "user_id"},
        )
        db.execute(stmt)

    db.commit()
    subscription = get_subscription(db, tenant_id)
    db.refresh(subscription)
    return subscription


def update_subscription_status(
    db: Session,
    subscription: Subscription,
    status: str,
    current_period_start: Optional[datetime] = None,
    current_period_end: Optional[datetime] = None,
    plan_id: Optional[str] = None,
) -> Subscription:
    if status not in SUBSCRIPTION_STATUSES:
        raise ValueError(f"Invalid subscription status: {status}")

    previous = subscription.status
    subscription.status = status
    if current_period_start is not None:
        subscription.current_period_start = current_period_start
    if current_period_end is not None:
        subscription.current_period_end = current_period_end
    if plan_id is not None:
        subscription.plan_id = plan_id

    db.commit()
    db.refresh(subscription)

    logger.info(
        f"Subscription status changed: user_id={subscription.user_id}, "
        f"{previous} -> {status}, plan={subscription.plan_id}"
    )
    return subscription


def cancel_subscription(db: Session, subscription: Subscription) -> Subscription:
    """Mark canceled; Stripe ids are kept for reconciliation."""
    return update_subscription_status(db, subscription, "canceled")


def serialize_subscription(subscription: Optional[Subscription]) -> Optional[Dict[str, Any]]:
    if subscription is None:
        return None

    def _iso(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "user_id": subscription.user_id,
        "plan_id": subscription.plan_id,
        "status": subscription.status,
        "stripe_customer_id": subscription.stripe_customer_id,
        "stripe_subscription_id": subscription.stripe_subscription_id,
        "current_period_start": _iso(subscription.current_period_start),
        "current_period_end": _iso(subscription.current_period_end),
        "updated_at": _iso(subscription.updated_at),
        "is_active": subscription.status in ACTIVE_STATUSES,
    }
