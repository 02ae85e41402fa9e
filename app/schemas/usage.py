"""
Pydantic schemas for entitlement / usage endpoints.
"""
from typing import Dict, Optional
from pydantic import BaseModel, Field


class EntitlementResponse(BaseModel):
    """Entitlement decision for a single metered resource."""
    resource: str = Field(..., description="interviews, candidates, jobs, team_members or analytics")
    allowed: bool
    limit: Optional[int] = Field(None, description="Plan cap (None for unlimited)")
    used: int
    remaining: Optional[int] = Field(None, description="Remaining quota (None for unlimited)")
    unlimited: bool
    needs_upgrade: bool
    plan_id: Optional[str] = None
    error: Optional[str] = Field(None, description="Set when usage could not be read")

    class Config:
        json_schema_extra = {
            "example": {
                "resource": "interviews",
                "allowed": False,
                "limit": 3,
                "used": 3,
                "remaining": 0,
                "unlimited": False,
                "needs_upgrade": True,
                "plan_id": "free-trial",
                "error": None
            }
        }


class EntitlementSummary(BaseModel):
    """Response schema for GET /me/entitlements."""
    plan_id: str = Field(..., description="Effective plan id")
    month_key: str = Field(..., description="Interview counting month in YYYY-MM format")
    resources: Dict[str, EntitlementResponse]
