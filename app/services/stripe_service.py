"""
Stripe service for checkout sessions, subscription lookups and webhook verification.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe

from app.core import config
from app.core.exceptions import WebhookSignatureInvalid
from app.core.plan_catalog import Plan

logger = logging.getLogger(__name__)

# Initialize Stripe client
if config.STRIPE_SECRET_KEY:
    stripe.api_key = config.STRIPE_SECRET_KEY
else:
    logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")

# Bounded provider calls; a hung lookup must not hold a webhook request open
stripe.default_http_client = stripe.new_default_http_client(timeout=config.STRIPE_TIMEOUT_SECONDS)
stripe.max_network_retries = 1


class BillingProviderError(Exception):
    """Stripe call failed or timed out."""


def _require_api_key() -> None:
    if not config.STRIPE_SECRET_KEY:
        raise BillingProviderError("Stripe not configured - STRIPE_SECRET_KEY required")
    stripe.api_key = config.STRIPE_SECRET_KEY


def build_checkout_params(
    plan: Plan,
    user_id: int,
    user_email: str,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build Checkout Session parameters for a catalog plan.

    The line item is priced inline from the catalog, so no Stripe Price
    objects need to exist ahead of time.
    """
    if not success_url:
        success_url = f"{config.APP_URL}/dashboard/settings?checkout=success&session_id={{CHECKOUT_SESSION_ID}}"
    if not cancel_url:
        cancel_url = f"{config.APP_URL}/dashboard/pricing?checkout=canceled"

    metadata = {
        "user_id": str(user_id),
        "plan_id": plan.id,
        "plan_name": plan.name,
        "price_in_cents": str(plan.price_in_cents),
        "billing_period": plan.billing_period,
    }

    return {
        "mode": "subscription",
        "customer_email": user_email,
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": plan.currency,
                "product_data": {
                    "name": plan.name,
                    "description": plan.description,
                },
                "unit_amount": plan.price_in_cents,
                "recurring": {"interval": "month"},
            },
            "quantity": 1,
        }],
        "metadata": metadata,
        "subscription_data": {
            "metadata": {
                "user_id": str(user_id),
                "plan_id": plan.id,
            }
        },
        "success_url": success_url,
        "cancel_url": cancel_url,
        "allow_promotion_codes": True,
    }


def create_checkout_session(
    plan: Plan,
    user_id: int,
    user_email: str,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Dict[str, str]:
    """
    Create a hosted Stripe Checkout session in subscription mode.

    Returns:
        Dictionary with 'checkout_url' and 'session_id'

    Raises:
        BillingProviderError: Stripe is not configured or the call failed
    """
    _require_api_key()
    params = build_checkout_params(plan, user_id, user_email, success_url, cancel_url)

    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating checkout session: user_id={user_id}, plan={plan.id}, error={e}")
        raise BillingProviderError(f"Failed to create checkout session: {e}") from e

    logger.info(f"Created checkout session: session_id={session.id}, user_id={user_id}, plan={plan.id}")
    return {"checkout_url": session.url, "session_id": session.id}


def retrieve_subscription(subscription_id: str) -> Dict[str, Any]:
    """
    Fetch a subscription object from Stripe.

    Raises:
        BillingProviderError: timeout, network or API failure
    """
    _require_api_key()
    try:
        return stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as e:
        logger.error(f"Failed to retrieve subscription from Stripe: subscription_id={subscription_id}, error={e}")
        raise BillingProviderError(str(e)) from e


def verify_webhook(request_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Verify the Stripe-Signature header and parse the event.

    Args:
        request_body: Raw request body bytes
        signature: Stripe-Signature header value

    Returns:
        Parsed event as a plain dict

    Raises:
        WebhookSignatureInvalid: missing secret/header, bad signature or payload
    """
    secret = config.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET not configured")
        raise WebhookSignatureInvalid("Webhook secret not configured")
    if not signature:
        raise WebhookSignatureInvalid("Missing Stripe-Signature header")

    try:
        payload = request_body.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            payload, signature, secret, stripe.Webhook.DEFAULT_TOLERANCE
        )
        event = json.loads(payload)
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise WebhookSignatureInvalid(f"Invalid signature: {e}") from e
    except ValueError as e:
        # UnicodeDecodeError and JSONDecodeError are both ValueErrors
        logger.warning(f"Invalid webhook payload: {e}")
        raise WebhookSignatureInvalid(f"Invalid payload: {e}") from e

    if not isinstance(event, dict) or "type" not in event:
        raise WebhookSignatureInvalid("Invalid payload: not a Stripe event")

    logger.info(f"Verified webhook event: {event['type']}, id={event.get('id')}")
    return event


def from_timestamp(value: Optional[int]) -> Optional[datetime]:
    """Stripe epoch seconds -> aware UTC datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def get_period_bounds(subscription: Dict[str, Any]):
    """
    Current period (start, end) of a Stripe subscription.

    Newer API versions only report the period on subscription items.
    """
    start = subscription.get("current_period_start")
    end = subscription.get("current_period_end")
    if not start or not end:
        items = (subscription.get("items") or {}).get("data") or []
        if items:
            start = start or items[0].get("current_period_start")
            end = end or items[0].get("current_period_end")
    return from_timestamp(start), from_timestamp(end)
