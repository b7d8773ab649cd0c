import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from jobscout.db.base import Base
from jobscout.db.models.user import utcnow


class PlanId(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    PREMIUM = "premium"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PAST_DUE = "past_due"
    CANCELED = "canceled"


class Subscription(Base):
    """
    Subscription history row.
    
    Rows are appended on cancellation rather than rewritten, so a user may own
    several; SubscriptionRepository.current_for_user picks the authoritative one.
    """
    __tablename__ = "user_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    plan_id = Column(String, nullable=False, default=PlanId.FREE.value)
    status = Column(String, nullable=False, default=SubscriptionStatus.ACTIVE.value)

    stripe_customer_id = Column(String, nullable=True, index=True)
    stripe_subscription_id = Column(String, nullable=True, index=True)

    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Subscription(user_id='{self.user_id}', plan='{self.plan_id}', status='{self.status}')>"
