"""
Subscription endpoints: plan catalog, checkout, billing portal, and the
Stripe webhook that reconciles local subscription state.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from jobscout.core.auth_dependency import AuthIdentity, get_current_identity
from jobscout.core.dependencies import get_billing_service, get_stripe_client
from jobscout.core.errors import InvalidRequest
from jobscout.core.logging_config import sanitize_log_data
from jobscout.core.plan_limits import list_plans
from jobscout.core.validation import validate_payload
from jobscout.schemas.billing import (
    CheckoutRequest,
    CheckoutResponse,
    PlanListResponse,
    PortalRequest,
    PortalResponse,
    SubscriptionResponse,
    WebhookResponse,
)
from jobscout.services.billing_service import BillingService
from jobscout.services.stripe_service import StripeClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


@router.get("/plans", response_model=PlanListResponse)
def get_plans():
    """Public plan catalog."""
    return {"plans": list_plans()}


@router.get("/current", response_model=SubscriptionResponse)
def get_current_subscription(
    identity: AuthIdentity = Depends(get_current_identity),
    service: BillingService = Depends(get_billing_service),
):
    """The caller's authoritative subscription (free/active when none is stored)."""
    return service.get_current_subscription(identity)


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    request: Request,
    identity: AuthIdentity = Depends(get_current_identity),
    service: BillingService = Depends(get_billing_service),
    payload: Any = Body(None),
):
    """
    Create a Stripe Checkout session for a paid plan.
    
    Reuses the caller's Stripe customer when one is on file.
    """
    result = validate_payload(CheckoutRequest, payload)
    if not result.ok:
        raise InvalidRequest(result.errors)

    return service.create_checkout_session(
        identity,
        price_id=result.data.priceId,
        billing_cycle=result.data.billingCycle,
        origin=request.headers.get("origin"),
    )


@router.post("/portal", response_model=PortalResponse)
def create_portal(
    request: Request,
    identity: AuthIdentity = Depends(get_current_identity),
    service: BillingService = Depends(get_billing_service),
    payload: Any = Body(None),
):
    """Create a Stripe billing portal session for the caller."""
    result = validate_payload(PortalRequest, payload or {})
    if not result.ok:
        raise InvalidRequest(result.errors)

    return service.create_portal_session(
        identity,
        return_url=result.data.returnUrl,
        origin=request.headers.get("origin"),
    )


@router.post("/webhook", response_model=WebhookResponse)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    stripe_client: StripeClient = Depends(get_stripe_client),
    service: BillingService = Depends(get_billing_service),
):
    """
    Stripe webhook receiver.
    
    The raw body is verified before anything is parsed. Once dispatched the
    endpoint answers 200 even if the event was ignored, so Stripe does not
    retry; only a bad signature (400) or a handler crash (500) differ.
    """
    payload = await request.body()
    logger.debug(
        "Webhook received: %s",
        sanitize_log_data({"content_length": len(payload), "stripe_signature": stripe_signature}),
    )

    event = stripe_client.construct_event(payload, stripe_signature)

    try:
        service.dispatch_event(event)
    except Exception:
        logger.exception(f"Webhook processing error: event_id={event.get('id')}, type={event.get('type')}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Webhook processing failed"},
        )

    return {"received": True}
