"""
Entitlement endpoints.

Provides per-resource plan usage for the authenticated tenant; the web app
renders usage banners and upgrade prompts from these.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.exceptions import DataStoreError
from app.core.plan_catalog import SUPPORTED_RESOURCES
from app.db.session import get_db
from app.db.models.user import User
from app.schemas.usage import EntitlementResponse, EntitlementSummary
from app.services.entitlement_service import evaluate, evaluate_all, get_effective_plan
from app.services.usage_service import get_month_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Usage"])


@router.get("/entitlements", response_model=EntitlementSummary)
def get_entitlements(
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    """
    Entitlements for every metered resource.

    Resources whose usage could not be read carry error="data_store_error".
    """
    try:
        plan = get_effective_plan(db, user.id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Plan lookup failed: user_id={user.id}, error={e}")
        raise DataStoreError()

    resources = {
        resource: EntitlementResponse(resource=resource, **entitlement.to_dict())
        for resource, entitlement in evaluate_all(db, user.id).items()
    }
    logger.debug(f"Entitlement summary requested: user_id={user.id}, plan={plan.id}")

    return EntitlementSummary(plan_id=plan.id, month_key=get_month_key(), resources=resources)


@router.get("/entitlements/{resource}", response_model=EntitlementResponse)
def get_entitlement(
    resource: str,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db)
):
    if resource not in SUPPORTED_RESOURCES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown resource: {resource}")
    entitlement = evaluate(db, user.id, resource)
    return EntitlementResponse(resource=resource, **entitlement.to_dict())
