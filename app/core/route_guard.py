"""
Route guard for plan-gated feature paths.

Requests under a gated prefix must come from an authenticated tenant whose
plan includes analytics. Anonymous requests go to login; tenants without the
capability go to pricing with the blocked feature in the query string.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.auth_dependency import get_user_by_email
from app.core.security import decode_access_token
from app.db import session as db_session
from app.services.entitlement_service import Entitlement, evaluate

logger = logging.getLogger(__name__)

GATED_PREFIXES: Tuple[str, ...] = (
    "/dashboard/reports",
    "/dashboard/analytics",
)

GATED_CAPABILITY = "analytics"
LOGIN_PATH = "/auth/login"
PRICING_PATH = "/dashboard/pricing"


@dataclass(frozen=True)
class GuardDecision:
    action: str  # allow | login | upgrade | unavailable
    location: Optional[str] = None


def is_gated_path(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in GATED_PREFIXES)


def blocked_feature(path: str) -> str:
    """Second path segment names the feature, e.g. /dashboard/reports -> reports."""
    parts = [part for part in path.split("/") if part]
    return parts[1] if len(parts) > 1 else GATED_CAPABILITY


def upgrade_location(path: str) -> str:
    query = urlencode({"upgrade": GATED_CAPABILITY, "feature": blocked_feature(path)})
    return f"{PRICING_PATH}?{query}"


def decide(
    path: str,
    tenant_id: Optional[int],
    evaluator: Callable[[int, str], Entitlement],
) -> GuardDecision:
    """
    Routing rule for one request path.

    Args:
        path: Request path
        tenant_id: Authenticated tenant, or None
        evaluator: (tenant_id, resource) -> Entitlement
    """
    if not is_gated_path(path):
        return GuardDecision("allow")
    if tenant_id is None:
        return GuardDecision("login", LOGIN_PATH)

    entitlement = evaluator(tenant_id, GATED_CAPABILITY)
    if entitlement.allowed:
        return GuardDecision("allow")
    if entitlement.needs_upgrade:
        return GuardDecision("upgrade", upgrade_location(path))
    return GuardDecision("unavailable")


def extract_token(request: Request) -> Optional[str]:
    """Bearer header first, then the access_token cookie set by the web app."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.cookies.get("access_token")


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware applying decide() to every request.

    session_factory defaults to the application's SessionLocal, looked up per
    request so tests can swap it.
    """

    def __init__(self, app, session_factory: Optional[Callable] = None):
        super().__init__(app)
        self.session_factory = session_factory

    def _session(self):
        factory = self.session_factory or db_session.SessionLocal
        return factory()

    def resolve(self, path: str, token: Optional[str]) -> Tuple[Optional[int], GuardDecision]:
        """Blocking part of the guard: tenant lookup and entitlement evaluation."""
        tenant_id = None
        db = self._session()
        try:
            email = decode_access_token(token) if token else None
            if email:
                user = get_user_by_email(db, email)
                tenant_id = user.id if user else None

            decision = decide(path, tenant_id, lambda tid, resource: evaluate(db, tid, resource))
        except SQLAlchemyError as e:
            logger.error(f"Route guard lookup failed: path={path}, error={e}")
            decision = GuardDecision("unavailable")
        finally:
            db.close()
        return tenant_id, decision

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not is_gated_path(path):
            return await call_next(request)

        tenant_id, decision = await run_in_threadpool(self.resolve, path, extract_token(request))

        if decision.action == "allow":
            request.state.tenant_id = tenant_id
            return await call_next(request)

        if decision.action == "login":
            return RedirectResponse(url=decision.location, status_code=307)

        if decision.action == "upgrade":
            logger.info(f"Gated feature blocked: tenant_id={tenant_id}, path={path}")
            return RedirectResponse(url=decision.location, status_code=307)

        return JSONResponse(
            status_code=503,
            content={"detail": "Unable to verify plan access, please retry"},
        )
