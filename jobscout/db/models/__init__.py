"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from jobscout.db.models.user import User
from jobscout.db.models.prompt import Prompt, PromptStatus
from jobscout.db.models.generated_content import GeneratedContent
from jobscout.db.models.subscription import Subscription, PlanId, SubscriptionStatus

__all__ = [
    "User",
    "Prompt",
    "PromptStatus",
    "GeneratedContent",
    "Subscription",
    "PlanId",
    "SubscriptionStatus",
]
