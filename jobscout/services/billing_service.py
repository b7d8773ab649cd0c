"""
Billing service for Stripe integration.

Handles checkout and portal sessions for the caller, and reconciles local
subscription state from Stripe webhook events. Each event handler is safe to
replay.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from jobscout.core.auth_dependency import AuthIdentity
from jobscout.core.config import (
    APP_URL,
    STRIPE_PRO_MONTHLY_PRICE_ID,
    STRIPE_PRO_YEARLY_PRICE_ID,
    STRIPE_PREMIUM_MONTHLY_PRICE_ID,
    STRIPE_PREMIUM_YEARLY_PRICE_ID,
)
from jobscout.core.errors import InvalidRequest
from jobscout.core.plan_limits import get_plan_limit
from jobscout.db.models.subscription import PlanId, Subscription, SubscriptionStatus
from jobscout.db.repositories import SubscriptionRepository, UserRepository
from jobscout.services.billing_invoice_handlers import (
    handle_invoice_payment_failed,
    handle_invoice_payment_succeeded,
)
from jobscout.services.stripe_service import StripeClient
from jobscout.services.user_provisioner import ensure_user_exists

logger = logging.getLogger(__name__)


def _build_price_mappings() -> Dict[str, str]:
    """Build price ID -> plan mapping from environment variables."""
    price_to_plan: Dict[str, str] = {}
    for price_id in (STRIPE_PRO_MONTHLY_PRICE_ID, STRIPE_PRO_YEARLY_PRICE_ID):
        if price_id:
            price_to_plan[price_id] = PlanId.PRO.value
    for price_id in (STRIPE_PREMIUM_MONTHLY_PRICE_ID, STRIPE_PREMIUM_YEARLY_PRICE_ID):
        if price_id:
            price_to_plan[price_id] = PlanId.PREMIUM.value
    return price_to_plan


PRICE_ID_TO_PLAN = _build_price_mappings()


def get_plan_from_price_id(price_id: Optional[str], price_to_plan: Optional[Dict[str, str]] = None) -> str:
    """Map a Stripe price ID to a plan by exact match; unknown prices map to free."""
    mapping = PRICE_ID_TO_PLAN if price_to_plan is None else price_to_plan
    if not price_id:
        return PlanId.FREE.value
    return mapping.get(price_id, PlanId.FREE.value)


def from_epoch(value: Optional[int]) -> Optional[datetime]:
    """Convert Stripe epoch seconds to an aware UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _first_item(subscription_data: Dict[str, Any]) -> Dict[str, Any]:
    items = (subscription_data.get("items") or {}).get("data") or []
    return items[0] if items else {}


def get_subscription_period(subscription_data: Dict[str, Any]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Billing period from the first item, falling back to the subscription object."""
    item = _first_item(subscription_data)
    start = item.get("current_period_start") or subscription_data.get("current_period_start")
    end = item.get("current_period_end") or subscription_data.get("current_period_end")
    return from_epoch(start), from_epoch(end)


class BillingService:
    """Checkout, portal and webhook reconciliation over the subscription repository."""

    def __init__(
        self,
        users: UserRepository,
        subscriptions: SubscriptionRepository,
        stripe_client: Optional[StripeClient] = None,
        price_to_plan: Optional[Dict[str, str]] = None,
    ):
        self.users = users
        self.subscriptions = subscriptions
        self.stripe_client = stripe_client
        self.price_to_plan = PRICE_ID_TO_PLAN if price_to_plan is None else price_to_plan

    # ============================================
    # Caller-facing operations
    # ============================================

    def get_current_subscription(self, identity: AuthIdentity) -> Dict[str, Any]:
        """Authoritative subscription, or a free/active placeholder when none is stored."""
        subscription = self.subscriptions.current_for_user(identity.id)
        if subscription is None:
            return {
                "plan_id": PlanId.FREE.value,
                "status": SubscriptionStatus.ACTIVE.value,
                "prompt_limit": get_plan_limit(PlanId.FREE.value),
            }
        return {
            "plan_id": subscription.plan_id,
            "status": subscription.status,
            "prompt_limit": get_plan_limit(subscription.plan_id),
            "stripe_customer_id": subscription.stripe_customer_id,
            "stripe_subscription_id": subscription.stripe_subscription_id,
            "current_period_start": subscription.current_period_start,
            "current_period_end": subscription.current_period_end,
        }

    def create_checkout_session(
        self,
        identity: AuthIdentity,
        price_id: str,
        billing_cycle: str,
        origin: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Start a hosted checkout for a paid plan.

        Raises:
            InvalidRequest: price ID is not one of the configured plan prices
            BillingError: Stripe rejected the request
        """
        if price_id not in self.price_to_plan:
            raise InvalidRequest([{"field": "priceId", "message": "Unknown price ID"}])

        user = ensure_user_exists(self.users, identity)

        existing = self.subscriptions.current_for_user(user.id)
        customer_id = existing.stripe_customer_id if existing else None

        base_url = origin or APP_URL
        session = self.stripe_client.create_checkout_session(
            price_id=price_id,
            success_url=f"{base_url}/dashboard?success=true&session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/pricing?canceled=true",
            user_id=user.id,
            customer_id=customer_id,
            customer_email=user.email or None,
        )

        logger.info(
            f"Checkout started: user_id={user.id}, plan={self.price_to_plan[price_id]}, "
            f"billing_cycle={billing_cycle}, reused_customer={bool(customer_id)}"
        )
        return {"sessionId": session["id"], "url": session.get("url")}

    def create_portal_session(
        self,
        identity: AuthIdentity,
        return_url: Optional[str] = None,
        origin: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Open the Stripe billing portal for the caller's customer.

        Raises:
            InvalidRequest: no Stripe customer is on file
        """
        subscription = self.subscriptions.current_for_user(identity.id)
        if not subscription or not subscription.stripe_customer_id:
            raise InvalidRequest(message="No billing account found for this user")

        return_url = return_url or f"{origin or APP_URL}/dashboard"
        session = self.stripe_client.create_portal_session(subscription.stripe_customer_id, return_url)
        return {"url": session["url"]}

    # ============================================
    # Webhook reconciliation
    # ============================================

    def _resolve_user_id(self, subscription_data: Dict[str, Any]) -> Optional[str]:
        customer_id = subscription_data.get("customer")
        if isinstance(customer_id, dict):
            customer_id = customer_id.get("id")

        if customer_id:
            record = self.subscriptions.find_by_customer(customer_id)
            if record:
                return record.user_id

        # Checkout puts the user id in subscription metadata for first-time customers
        user_id = (subscription_data.get("metadata") or {}).get("user_id")
        if user_id and self.users.get(user_id):
            return user_id

        return None

    def handle_subscription_change(self, subscription_data: Dict[str, Any]) -> Optional[Subscription]:
        """
        Handle customer.subscription.created / customer.subscription.updated.

        Upserts the user's subscription row. Events for unknown customers are
        logged and ignored since they may arrive before local state exists.
        """
        customer_id = subscription_data.get("customer")
        if isinstance(customer_id, dict):
            customer_id = customer_id.get("id")
        subscription_id = subscription_data.get("id")
        if not subscription_id:
            logger.warning(f"Subscription event without id ignored: customer_id={customer_id}")
            return None

        user_id = self._resolve_user_id(subscription_data)
        if not user_id:
            logger.error(f"No user found for Stripe customer: customer_id={customer_id}")
            return None

        price_id = (_first_item(subscription_data).get("price") or {}).get("id")
        plan_id = get_plan_from_price_id(price_id, self.price_to_plan)
        status = (
            SubscriptionStatus.ACTIVE.value
            if subscription_data.get("status") == "active"
            else SubscriptionStatus.INACTIVE.value
        )
        period_start, period_end = get_subscription_period(subscription_data)

        record = next(
            (
                row for row in self.subscriptions.find_by_stripe_subscription(subscription_id)
                if row.status != SubscriptionStatus.CANCELED.value
            ),
            None,
        )
        if record is None:
            current = self.subscriptions.current_for_user(user_id)
            if current is not None and current.status != SubscriptionStatus.CANCELED.value:
                record = current

        is_new = record is None
        if is_new:
            record = Subscription(user_id=user_id)

        record.plan_id = plan_id
        record.status = status
        record.stripe_customer_id = customer_id
        record.stripe_subscription_id = subscription_id
        record.current_period_start = period_start
        record.current_period_end = period_end
        if is_new:
            self.subscriptions.add(record)
        else:
            self.subscriptions.save()

        logger.info(
            f"Subscription reconciled: user_id={user_id}, plan={plan_id}, status={status}, "
            f"subscription_id={subscription_id}"
        )
        return record

    def handle_subscription_deleted(self, subscription_data: Dict[str, Any]) -> Optional[Subscription]:
        """
        Handle customer.subscription.deleted.

        Marks the row canceled and appends a new free/active row for the same
        user. A replayed event finds the row already canceled and appends nothing.
        """
        subscription_id = subscription_data.get("id")
        if not subscription_id:
            logger.warning("Subscription deletion event without id ignored")
            return None

        rows = self.subscriptions.find_by_stripe_subscription(subscription_id)
        if not rows:
            logger.warning(f"Subscription not found for deletion: subscription_id={subscription_id}")
            return None

        to_cancel = [row for row in rows if row.status != SubscriptionStatus.CANCELED.value]
        if not to_cancel:
            logger.info(f"Subscription already canceled: subscription_id={subscription_id}")
            return None

        for row in to_cancel:
            row.status = SubscriptionStatus.CANCELED.value
        self.subscriptions.save()

        canceled = to_cancel[0]
        free_row = self.subscriptions.add(
            Subscription(
                user_id=canceled.user_id,
                plan_id=PlanId.FREE.value,
                status=SubscriptionStatus.ACTIVE.value,
                stripe_customer_id=canceled.stripe_customer_id,
            )
        )

        logger.info(f"Subscription canceled: user_id={canceled.user_id}, downgraded to free, subscription_id={subscription_id}")
        return free_row

    def _event_handlers(self) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
        return {
            "customer.subscription.created": self.handle_subscription_change,
            "customer.subscription.updated": self.handle_subscription_change,
            "customer.subscription.deleted": self.handle_subscription_deleted,
            "invoice.payment_succeeded": lambda data: handle_invoice_payment_succeeded(data, self.subscriptions),
            "invoice.payment_failed": lambda data: handle_invoice_payment_failed(data, self.subscriptions),
        }

    def dispatch_event(self, event: Dict[str, Any]) -> bool:
        """
        Route a verified webhook event to its handler.

        Returns:
            True if the event type was handled, False if it was ignored
        """
        event_type = event.get("type")
        handler = self._event_handlers().get(event_type)
        if handler is None:
            logger.info(f"Unhandled event type: {event_type}")
            return False

        handler((event.get("data") or {}).get("object") or {})
        return True
