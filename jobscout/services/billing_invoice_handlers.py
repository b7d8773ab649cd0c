"""
Invoice event handlers for Stripe webhooks.

Handles invoice.payment_succeeded and invoice.payment_failed events.
"""
import logging
from typing import Any, Dict, Optional

from jobscout.db.models.subscription import SubscriptionStatus
from jobscout.db.repositories import SubscriptionRepository

logger = logging.getLogger(__name__)


def get_invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """Subscription id of an invoice, from the top level or the newer parent block."""
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        parent = invoice.get("parent") or {}
        details = parent.get("subscription_details") or {}
        subscription_id = details.get("subscription")
    if isinstance(subscription_id, dict):
        subscription_id = subscription_id.get("id")
    return subscription_id


def _set_invoice_subscription_status(
    event_type: str,
    invoice: Dict[str, Any],
    subscriptions: SubscriptionRepository,
    status: SubscriptionStatus,
) -> None:
    subscription_id = get_invoice_subscription_id(invoice)
    if not subscription_id:
        logger.warning(f"{event_type}: No subscription ID in invoice")
        return

    # Canceled rows are history and stay canceled
    rows = [
        row for row in subscriptions.find_by_stripe_subscription(subscription_id)
        if row.status != SubscriptionStatus.CANCELED.value
    ]
    if not rows:
        logger.warning(f"{event_type}: Subscription not found for subscription_id={subscription_id}")
        return

    for row in rows:
        row.status = status.value
    subscriptions.save()

    log = logger.warning if status == SubscriptionStatus.PAST_DUE else logger.info
    log(f"{event_type}: user_id={rows[0].user_id}, subscription_id={subscription_id}, status={status.value}")


def handle_invoice_payment_succeeded(invoice: Dict[str, Any], subscriptions: SubscriptionRepository) -> None:
    """Mark the invoice's subscription active after a successful payment."""
    _set_invoice_subscription_status(
        "invoice.payment_succeeded", invoice, subscriptions, SubscriptionStatus.ACTIVE
    )


def handle_invoice_payment_failed(invoice: Dict[str, Any], subscriptions: SubscriptionRepository) -> None:
    """Mark the invoice's subscription past_due after a failed payment."""
    _set_invoice_subscription_status(
        "invoice.payment_failed", invoice, subscriptions, SubscriptionStatus.PAST_DUE
    )
