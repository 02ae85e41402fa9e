"""
Billing endpoints: plan catalog, checkout, free trial and subscription lookup.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.exceptions import DataStoreError, NotFoundError, PlanNotFound
from app.core.plan_catalog import format_price, get_plan, list_plans
from app.db.session import get_db
from app.db.models.user import User
from app.schemas.billing import (
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    PlanResponse,
    SubscriptionResponse,
)
from app.services import stripe_service
from app.services.stripe_service import BillingProviderError
from app.services.subscription_service import get_subscription, serialize_subscription, start_trial

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.get("/plans", response_model=List[PlanResponse])
def get_plans():
    return [
        PlanResponse(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            price_in_cents=plan.price_in_cents,
            price_display=format_price(plan.price_in_cents, plan.currency),
            currency=plan.currency,
            billing_period=plan.billing_period,
            popular=plan.popular,
            features=list(plan.features),
            limits=dict(plan.limits),
        )
        for plan in list_plans()
    ]


@router.post("/checkout", response_model=CreateCheckoutSessionResponse)
def create_checkout(
    payload: CreateCheckoutSessionRequest,
    user: User = Depends(get_current_user_obj),
):
    """
    Start a Stripe Checkout session for a paid plan.

    The client redirects the browser to checkout_url.
    """
    try:
        plan = get_plan(payload.plan_id)
    except PlanNotFound:
        raise NotFoundError(f'Plan "{payload.plan_id}"')

    if plan.is_free:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The free trial does not go through checkout; use POST /billing/trial",
        )

    try:
        return stripe_service.create_checkout_session(
            plan,
            user.id,
            user.email,
            success_url=payload.success_url,
            cancel_url=payload.cancel_url,
        )
    except BillingProviderError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


@router.post("/trial", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def begin_trial(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    try:
        subscription = start_trial(db, user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Trial start failed: user_id={user.id}, error={e}")
        raise DataStoreError()
    return serialize_subscription(subscription)


@router.get("/subscription", response_model=Optional[SubscriptionResponse])
def current_subscription(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    """Current subscription row, or null for tenants that never subscribed."""
    try:
        return serialize_subscription(get_subscription(db, user.id))
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Subscription lookup failed: user_id={user.id}, error={e}")
        raise DataStoreError()
