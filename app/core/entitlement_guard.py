"""
Entitlement enforcement dependency for quota-consuming writes.

require_entitlement() re-evaluates the tenant's plan and usage on every call,
right before the write, and refuses the request when the quota is used up.
"""
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user_obj
from app.core.exceptions import DataStoreError, QuotaExceeded
from app.db.session import get_db
from app.db.models.user import User
from app.services.entitlement_service import Entitlement, evaluate

logger = logging.getLogger(__name__)


def enforce_entitlement(db: Session, user_id: int, resource: str) -> Entitlement:
    """
    Evaluate and raise unless one more unit of `resource` may be created.

    Raises:
        DataStoreError: usage could not be read (503, retryable)
        QuotaExceeded: plan allowance used up (402, upgrade prompt)
    """
    entitlement = evaluate(db, user_id, resource)

    if entitlement.unavailable:
        raise DataStoreError("Could not verify plan usage, please retry")

    if not entitlement.allowed:
        logger.warning(
            f"Quota exceeded: user_id={user_id}, resource={resource}, "
            f"plan={entitlement.plan_id}, limit={entitlement.limit}, used={entitlement.used}"
        )
        raise QuotaExceeded(resource, entitlement.plan_id, entitlement.limit, entitlement.used)

    return entitlement


def require_entitlement(resource: str):
    """
    Dependency factory enforcing a metered resource before a write.

    Returns:
        Dependency yielding the authenticated User
    """
    def entitlement_checker(
        user: User = Depends(get_current_user_obj),
        db: Session = Depends(get_db)
    ) -> User:
        entitlement = enforce_entitlement(db, user.id, resource)
        logger.debug(
            f"Entitlement check passed: user_id={user.id}, resource={resource}, "
            f"remaining={entitlement.remaining if not entitlement.unlimited else 'unlimited'}"
        )
        return user

    return entitlement_checker
