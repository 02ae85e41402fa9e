"""
Pydantic schemas for billing endpoints.
"""
from typing import Dict, List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field


class PlanResponse(BaseModel):
    """One catalog plan as shown on the pricing page."""
    id: str
    name: str
    description: str
    price_in_cents: int
    price_display: str
    currency: str
    billing_period: str
    popular: bool
    features: List[str]
    limits: Dict[str, Union[int, bool, None]]


class CreateCheckoutSessionRequest(BaseModel):
    """Request schema for creating checkout session."""
    plan_id: str = Field(..., description="Catalog plan id, e.g. 'starter-monthly'")
    success_url: Optional[str] = Field(None, description="Override for the post-payment redirect")
    cancel_url: Optional[str] = Field(None, description="Override for the canceled-payment redirect")

    class Config:
        json_schema_extra = {
            "example": {
                "plan_id": "professional-monthly"
            }
        }


class CreateCheckoutSessionResponse(BaseModel):
    """Response schema for checkout session creation."""
    checkout_url: str = Field(..., description="Stripe hosted checkout URL")
    session_id: str = Field(..., description="Stripe checkout session ID")


class SubscriptionResponse(BaseModel):
    user_id: int
    plan_id: str
    status: str
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class WebhookAck(BaseModel):
    received: bool = True


class BillingErrorResponse(BaseModel):
    """Error response schema for billing operations."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
