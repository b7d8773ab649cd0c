"""
Pydantic schemas for subscription endpoints.
"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class CheckoutRequest(BaseModel):
    """Request schema for creating a checkout session."""
    priceId: str = Field(..., min_length=1, description="Stripe price ID of the plan")
    billingCycle: str = Field(..., description="monthly or yearly", pattern="^(monthly|yearly)$")
    
    class Config:
        json_schema_extra = {
            "example": {
                "priceId": "price_123",
                "billingCycle": "monthly"
            }
        }


class CheckoutResponse(BaseModel):
    sessionId: str = Field(..., description="Stripe checkout session ID")
    url: Optional[str] = Field(None, description="Hosted checkout URL")


class PortalRequest(BaseModel):
    returnUrl: Optional[str] = Field(None, description="URL to return to after the portal session")


class PortalResponse(BaseModel):
    url: str = Field(..., description="Stripe customer portal URL")


class PlanResponse(BaseModel):
    id: str
    name: str
    description: str
    price_monthly: int
    price_yearly: int
    prompt_limit: Optional[int] = None
    stripe_price_id_monthly: Optional[str] = None
    stripe_price_id_yearly: Optional[str] = None
    features: List[str] = Field(default_factory=list)


class PlanListResponse(BaseModel):
    plans: List[PlanResponse]


class SubscriptionResponse(BaseModel):
    """Authoritative subscription for the caller."""
    plan_id: str
    status: str
    prompt_limit: Optional[int] = None
    stripe_customer_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


class WebhookResponse(BaseModel):
    received: bool = True
