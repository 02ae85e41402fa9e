"""
Stripe webhook event handlers.

Each supported event type is parsed into its own dataclass and dispatched to
exactly one handler. Stripe delivers at least once and in no guaranteed order,
so every handler checks its own preconditions and is safe to re-run.

process_event() never raises: events that cannot be applied are logged and
acknowledged so they do not sit in Stripe's retry queue forever.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ProviderDataIncomplete
from app.core.plan_catalog import FREE_TRIAL_PLAN_ID, find_plan
from app.services import stripe_service
from app.services.stripe_service import BillingProviderError
from app.services.subscription_service import (
    cancel_subscription,
    get_subscription_by_stripe_id,
    normalize_status,
    update_subscription_status,
    upsert_subscription,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutCompleted:
    event_id: Optional[str]
    session_id: Optional[str]
    user_id: Optional[str]
    plan_id: Optional[str]
    customer_id: Optional[str]
    subscription_id: Optional[str]


@dataclass(frozen=True)
class SubscriptionUpdated:
    event_id: Optional[str]
    subscription_id: Optional[str]
    status: Optional[str]
    plan_id: Optional[str]
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]


@dataclass(frozen=True)
class SubscriptionDeleted:
    event_id: Optional[str]
    subscription_id: Optional[str]


@dataclass(frozen=True)
class InvoicePaymentFailed:
    event_id: Optional[str]
    subscription_id: Optional[str]


@dataclass(frozen=True)
class InvoicePaymentSucceeded:
    event_id: Optional[str]
    subscription_id: Optional[str]


BillingEvent = Union[
    CheckoutCompleted,
    SubscriptionUpdated,
    SubscriptionDeleted,
    InvoicePaymentFailed,
    InvoicePaymentSucceeded,
]


@dataclass
class WebhookOutcome:
    """What happened to one delivery; always acknowledged to Stripe."""
    event_type: str
    handled: bool
    detail: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


def _invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    subscription_id = invoice.get("subscription")
    if subscription_id:
        return subscription_id
    # Newer API versions nest it under parent.subscription_details
    parent = invoice.get("parent") or {}
    return (parent.get("subscription_details") or {}).get("subscription")


def parse_event(event: Dict[str, Any]) -> Optional[BillingEvent]:
    """Build the typed event for a raw Stripe event dict, or None if unsupported."""
    event_type = event.get("type")
    event_id = event.get("id")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "checkout.session.completed":
        metadata = obj.get("metadata") or {}
        return CheckoutCompleted(
            event_id=event_id,
            session_id=obj.get("id"),
            user_id=metadata.get("user_id"),
            plan_id=metadata.get("plan_id"),
            customer_id=obj.get("customer"),
            subscription_id=obj.get("subscription"),
        )

    if event_type == "customer.subscription.updated":
        period_start, period_end = stripe_service.get_period_bounds(obj)
        return SubscriptionUpdated(
            event_id=event_id,
            subscription_id=obj.get("id"),
            status=obj.get("status"),
            plan_id=(obj.get("metadata") or {}).get("plan_id"),
            current_period_start=period_start,
            current_period_end=period_end,
        )

    if event_type == "customer.subscription.deleted":
        return SubscriptionDeleted(event_id=event_id, subscription_id=obj.get("id"))

    if event_type == "invoice.payment_failed":
        return InvoicePaymentFailed(event_id=event_id, subscription_id=_invoice_subscription_id(obj))

    if event_type == "invoice.payment_succeeded":
        return InvoicePaymentSucceeded(event_id=event_id, subscription_id=_invoice_subscription_id(obj))

    return None


def _resolve_plan_id(*candidates: Optional[str]) -> str:
    for plan_id in candidates:
        if plan_id and find_plan(plan_id):
            return plan_id
        if plan_id:
            logger.warning(f"Checkout references unknown plan_id={plan_id!r}")
    return FREE_TRIAL_PLAN_ID


def handle_checkout_completed(event: CheckoutCompleted, db: Session) -> WebhookOutcome:
    """
    Upsert the tenant's subscription after a successful checkout.

    Raises:
        ProviderDataIncomplete: tenant id or subscription reference missing
        BillingProviderError: subscription lookup failed
    """
    if not event.user_id:
        raise ProviderDataIncomplete(f"checkout session {event.session_id} has no user_id metadata")
    if not event.subscription_id:
        raise ProviderDataIncomplete(f"checkout session {event.session_id} has no subscription reference")
    try:
        tenant_id = int(event.user_id)
    except ValueError as e:
        raise ProviderDataIncomplete(f"checkout session {event.session_id} has invalid user_id={event.user_id!r}") from e

    stripe_sub = stripe_service.retrieve_subscription(event.subscription_id)
    period_start, period_end = stripe_service.get_period_bounds(stripe_sub)
    plan_id = _resolve_plan_id(event.plan_id, (stripe_sub.get("metadata") or {}).get("plan_id"))

    subscription = upsert_subscription(
        db,
        tenant_id,
        plan_id=plan_id,
        status=normalize_status(stripe_sub.get("status") or "active"),
        stripe_customer_id=event.customer_id or stripe_sub.get("customer"),
        stripe_subscription_id=event.subscription_id,
        current_period_start=period_start,
        current_period_end=period_end,
    )

    logger.info(
        f"Checkout completed: user_id={tenant_id}, plan={subscription.plan_id}, "
        f"status={subscription.status}, subscription_id={event.subscription_id}"
    )
    return WebhookOutcome("checkout.session.completed", True, "subscription upserted", {"user_id": tenant_id})


def handle_subscription_updated(event: SubscriptionUpdated, db: Session) -> WebhookOutcome:
    subscription = get_subscription_by_stripe_id(db, event.subscription_id) if event.subscription_id else None
    if subscription is None:
        # May arrive before checkout.session.completed; checkout will carry current state
        logger.warning(f"subscription.updated: no local row for subscription_id={event.subscription_id}")
        return WebhookOutcome("customer.subscription.updated", False, "unknown subscription")

    plan_id = event.plan_id if event.plan_id and find_plan(event.plan_id) else None
    update_subscription_status(
        db,
        subscription,
        normalize_status(event.status),
        current_period_start=event.current_period_start,
        current_period_end=event.current_period_end,
        plan_id=plan_id,
    )
    return WebhookOutcome("customer.subscription.updated", True, "subscription updated")


def handle_subscription_deleted(event: SubscriptionDeleted, db: Session) -> WebhookOutcome:
    subscription = get_subscription_by_stripe_id(db, event.subscription_id) if event.subscription_id else None
    if subscription is None:
        logger.warning(f"subscription.deleted: no local row for subscription_id={event.subscription_id}")
        return WebhookOutcome("customer.subscription.deleted", False, "unknown subscription")

    cancel_subscription(db, subscription)
    return WebhookOutcome("customer.subscription.deleted", True, "subscription canceled")


def handle_invoice_payment_failed(event: InvoicePaymentFailed, db: Session) -> WebhookOutcome:
    subscription = get_subscription_by_stripe_id(db, event.subscription_id) if event.subscription_id else None
    if subscription is None:
        logger.warning(f"invoice.payment_failed: no local row for subscription_id={event.subscription_id}")
        return WebhookOutcome("invoice.payment_failed", False, "unknown subscription")
    if subscription.status == "canceled":
        return WebhookOutcome("invoice.payment_failed", False, "subscription already canceled")

    update_subscription_status(db, subscription, "past_due")
    return WebhookOutcome("invoice.payment_failed", True, "subscription past due")


def handle_invoice_payment_succeeded(event: InvoicePaymentSucceeded, db: Session) -> WebhookOutcome:
    subscription = get_subscription_by_stripe_id(db, event.subscription_id) if event.subscription_id else None
    if subscription is None:
        logger.warning(f"invoice.payment_succeeded: no local row for subscription_id={event.subscription_id}")
        return WebhookOutcome("invoice.payment_succeeded", False, "unknown subscription")
    if subscription.status != "past_due":
        return WebhookOutcome("invoice.payment_succeeded", False, "no recovery needed")

    update_subscription_status(db, subscription, "active")
    return WebhookOutcome("invoice.payment_succeeded", True, "subscription reactivated")


EVENT_HANDLERS: Dict[type, Callable[[Any, Session], WebhookOutcome]] = {
    CheckoutCompleted: handle_checkout_completed,
    SubscriptionUpdated: handle_subscription_updated,
    SubscriptionDeleted: handle_subscription_deleted,
    InvoicePaymentFailed: handle_invoice_payment_failed,
    InvoicePaymentSucceeded: handle_invoice_payment_succeeded,
}


def process_event(event: Dict[str, Any], db: Session) -> WebhookOutcome:
    """
    Apply a verified Stripe event.

    Every failure is logged and turned into an unhandled outcome; the webhook
    endpoint acknowledges the delivery either way.
    """
    event_type = event.get("type", "unknown")
    event_id = event.get("id")

    parsed = parse_event(event)
    if parsed is None:
        logger.info(f"Ignoring unsupported webhook event: type={event_type}, id={event_id}")
        return WebhookOutcome(event_type, False, "ignored")

    handler = EVENT_HANDLERS[type(parsed)]
    try:
        return handler(parsed, db)
    except ProviderDataIncomplete as e:
        logger.error(f"Webhook event missing data, acknowledged without changes: type={event_type}, id={event_id}, {e}")
        return WebhookOutcome(event_type, False, "incomplete provider data")
    except BillingProviderError as e:
        logger.error(
            f"Stripe lookup failed, needs manual reconciliation: type={event_type}, id={event_id}, error={e}"
        )
        return WebhookOutcome(event_type, False, "provider unavailable")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Database error applying webhook, needs manual reconciliation: type={event_type}, id={event_id}, error={e}"
        )
        return WebhookOutcome(event_type, False, "data store error")
    except Exception:
        db.rollback()
        logger.exception(f"Unexpected error applying webhook: type={event_type}, id={event_id}")
        return WebhookOutcome(event_type, False, "unexpected error")
