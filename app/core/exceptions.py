"""
Error taxonomy for entitlement, billing and team flows.

HTTP-facing errors subclass HTTPException so route handlers can raise them
directly. PlanNotFound, ProviderDataIncomplete and WebhookSignatureInvalid are
never shown to end users and stay plain exceptions.
"""
from typing import Optional

from fastapi import HTTPException, status

from app.core.config import APP_URL


class AuthenticationRequired(HTTPException):
    """No valid session for the request."""
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


class QuotaExceeded(HTTPException):
    """
    Tenant used up its plan allowance for a metered resource.

    The write is refused; the client is expected to send the user to pricing.
    """
    def __init__(self, resource: str, plan_id: str, limit: Optional[int], used: int):
        self.resource = resource
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "error": "quota_exceeded",
                "resource": resource,
                "plan": plan_id,
                "limit": limit,
                "used": used,
                "remaining": 0,
                "upgrade_url": f"{APP_URL}/dashboard/pricing?upgrade={resource}",
            },
        )


class DataStoreError(HTTPException):
    """Persistence failure; callers may retry."""
    def __init__(self, detail: str = "Data store temporarily unavailable"):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "data_store_error", "message": detail, "retryable": True},
        )


class SubscriptionExists(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Subscription already exists for this account",
        )


class InvitationConflict(HTTPException):
    def __init__(self, detail: str = "This email has already been invited to your team"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvitationEmailMismatch(HTTPException):
    def __init__(self, invited_email: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Please log in with {invited_email} to accept this invitation",
        )


class InvitationExpired(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_410_GONE, detail="This invitation has expired")


class PlanNotFound(LookupError):
    def __init__(self, plan_id: Optional[str]):
        self.plan_id = plan_id
        super().__init__(f'Plan with id "{plan_id}" not found')


class WebhookSignatureInvalid(Exception):
    """Billing webhook payload failed verification; nothing is processed."""


class ProviderDataIncomplete(ValueError):
    """Billing event is missing metadata or references needed to apply it."""
