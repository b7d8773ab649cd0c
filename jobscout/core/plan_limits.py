"""
Subscription plan catalog.

Single source of truth for plan names, prices and monthly prompt limits.
None means unlimited prompts for that plan.
"""
from typing import Any, Dict, List, Optional

from jobscout.core.config import (
    FREE_PROMPT_LIMIT,
    STRIPE_PRO_MONTHLY_PRICE_ID,
    STRIPE_PRO_YEARLY_PRICE_ID,
    STRIPE_PREMIUM_MONTHLY_PRICE_ID,
    STRIPE_PREMIUM_YEARLY_PRICE_ID,
)

SUPPORTED_PLANS: List[str] = ["free", "pro", "premium"]

# Prices are in cents
PLANS: Dict[str, Dict[str, Any]] = {
    "free": {
        "id": "free",
        "name": "Free",
        "description": "Perfect for trying out JobScout",
        "price_monthly": 0,
        "price_yearly": 0,
        "prompt_limit": FREE_PROMPT_LIMIT,
        "stripe_price_id_monthly": None,
        "stripe_price_id_yearly": None,
        "features": [
            f"{FREE_PROMPT_LIMIT} AI-generated resume contents",
            "Basic resume tailoring",
            "Email support",
        ],
    },
    "pro": {
        "id": "pro",
        "name": "Pro",
        "description": "For serious job seekers",
        "price_monthly": 997,
        "price_yearly": 9970,  # two months free
        "prompt_limit": None,
        "stripe_price_id_monthly": STRIPE_PRO_MONTHLY_PRICE_ID,
        "stripe_price_id_yearly": STRIPE_PRO_YEARLY_PRICE_ID,
        "features": [
            "Unlimited AI-generated content",
            "Advanced resume tailoring",
            "Priority support",
            "Export to multiple formats",
            "Resume templates",
        ],
    },
    "premium": {
        "id": "premium",
        "name": "Premium",
        "description": "For recruiters and career coaches",
        "price_monthly": 2997,
        "price_yearly": 29970,
        "prompt_limit": None,
        "stripe_price_id_monthly": STRIPE_PREMIUM_MONTHLY_PRICE_ID,
        "stripe_price_id_yearly": STRIPE_PREMIUM_YEARLY_PRICE_ID,
        "features": [
            "Everything in Pro",
            "Team collaboration",
            "Analytics dashboard",
            "White-label options",
            "Custom integrations",
        ],
    },
}


def get_plan_limit(plan_id: Optional[str]) -> Optional[int]:
    """
    Get the monthly prompt limit for a plan.
    
    Unknown or empty plan ids fall back to the free plan.
    """
    plan_id = plan_id.lower() if plan_id else "free"
    return PLANS.get(plan_id, PLANS["free"])["prompt_limit"]


def list_plans() -> List[Dict[str, Any]]:
    """Return the plan catalog in display order."""
    return [PLANS[plan_id] for plan_id in SUPPORTED_PLANS]
