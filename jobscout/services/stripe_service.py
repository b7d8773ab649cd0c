"""
Stripe client for checkout, billing portal, and webhook verification.

StripeClient is constructed once per process and injected into handlers so
tests can swap in a double.
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe

from jobscout.core.config import STRIPE_SECRET_KEY, STRIPE_WEBHOOK_SECRET
from jobscout.core.errors import BillingError, InvalidSignature

logger = logging.getLogger(__name__)


class StripeClient:
    """Thin wrapper over the stripe SDK; the api key is passed per call instead of set globally."""

    def __init__(self, api_key: Optional[str] = None, webhook_secret: Optional[str] = None):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.webhook_secret = webhook_secret or STRIPE_WEBHOOK_SECRET
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not configured - Stripe features disabled")

    def _require_api_key(self) -> str:
        if not self.api_key:
            raise BillingError("Stripe not configured")
        return self.api_key

    def create_checkout_session(
        self,
        price_id: str,
        success_url: str,
        cancel_url: str,
        user_id: str,
        customer_id: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a hosted subscription checkout session.

        An existing customer id is reused; otherwise Stripe creates the customer
        from the email. The user id travels in metadata so webhooks can find
        the user before a customer id is stored locally.

        Returns:
            {"id": session id, "url": hosted checkout URL}
        """
        params: Dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "allow_promotion_codes": True,
            "client_reference_id": user_id,
            "metadata": {"user_id": user_id},
            "subscription_data": {"metadata": {"user_id": user_id}},
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self._require_api_key(), **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session: {e}")
            raise BillingError("Failed to create checkout session") from e

        logger.info(f"Created checkout session: session_id={session.id}, user_id={user_id}")
        return {"id": session.id, "url": session.url}

    def create_portal_session(self, customer_id: str, return_url: str) -> Dict[str, Any]:
        """Create a billing portal session for managing an existing subscription."""
        try:
            session = stripe.billing_portal.Session.create(
                api_key=self._require_api_key(),
                customer=customer_id,
                return_url=return_url,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating portal session: {e}")
            raise BillingError("Failed to create portal session") from e

        logger.info(f"Created billing portal session for customer_id={customer_id}")
        return {"id": session.id, "url": session.url}

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify the webhook signature and parse the event.

        Raises:
            InvalidSignature: missing header, missing secret, bad payload or signature mismatch
        """
        if not signature:
            logger.warning("Webhook received without Stripe-Signature header")
            raise InvalidSignature("No signature found")

        if not self.webhook_secret:
            logger.error("STRIPE_WEBHOOK_SECRET not configured - rejecting webhook")
            raise InvalidSignature()

        # Verify first, then parse into plain dicts for the reconciler
        try:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            stripe.WebhookSignature.verify_header(
                payload, signature, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
            event = json.loads(payload)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {e}")
            raise InvalidSignature() from e
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise InvalidSignature() from e

        if not isinstance(event, dict) or "type" not in event:
            logger.error("Webhook payload is not an event object")
            raise InvalidSignature()

        logger.info(f"Verified webhook event: {event['type']}, id={event.get('id')}")
        return event
