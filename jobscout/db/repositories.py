"""
Typed repositories over the SQLAlchemy session, one per entity.

Services talk to these classes instead of issuing queries themselves.
Write methods commit; callers roll back through rollback() on failure.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from jobscout.db.models.user import User
from jobscout.db.models.prompt import Prompt, PromptStatus, PROMPT_TRANSITIONS
from jobscout.db.models.generated_content import GeneratedContent
from jobscout.db.models.subscription import Subscription, SubscriptionStatus

logger = logging.getLogger(__name__)


class _Repository:
    def __init__(self, db: Session):
        self.db = db

    def rollback(self) -> None:
        self.db.rollback()


class UserRepository(_Repository):

    def get(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user


class PromptRepository(_Repository):

    def create(
        self,
        user_id: str,
        title: str,
        content: str,
        company: Optional[str] = None,
        position: Optional[str] = None,
        category: str = "general",
        status: PromptStatus = PromptStatus.PENDING,
    ) -> Prompt:
        prompt = Prompt(
            user_id=user_id,
            title=title,
            content=content,
            company=company,
            position=position,
            category=category,
            status=PromptStatus(status).value,
        )
        self.db.add(prompt)
        self.db.commit()
        self.db.refresh(prompt)
        return prompt

    def get_for_user(self, prompt_id: str, user_id: str) -> Optional[Prompt]:
        """Fetch an active prompt owned by user_id."""
        return (
            self.db.query(Prompt)
            .options(selectinload(Prompt.generated_content))
            .filter(
                Prompt.id == prompt_id,
                Prompt.user_id == user_id,
                Prompt.is_active.is_(True),
            )
            .first()
        )

    def set_status(self, prompt_id: str, status: PromptStatus) -> Prompt:
        """
        Move a prompt to a new lifecycle status.
        
        Raises:
            LookupError: prompt does not exist
            ValueError: transition is not allowed from the current status
        """
        prompt = self.db.get(Prompt, prompt_id)
        if prompt is None:
            raise LookupError(f"Prompt not found: {prompt_id}")

        current = PromptStatus(prompt.status)
        target = PromptStatus(status)
        if target not in PROMPT_TRANSITIONS[current]:
            raise ValueError(f"Invalid prompt status transition: {current.value} -> {target.value}")

        prompt.status = target.value
        self.db.commit()
        self.db.refresh(prompt)
        return prompt

    def count_active_between(self, user_id: str, start: datetime, end: datetime) -> int:
        """Count active prompts with start <= created_at < end."""
        count = (
            self.db.query(func.count(Prompt.id))
            .filter(
                Prompt.user_id == user_id,
                Prompt.is_active.is_(True),
                Prompt.created_at >= start,
                Prompt.created_at < end,
            )
            .scalar()
        )
        return int(count or 0)

    def list_active(self, user_id: str) -> List[Prompt]:
        return (
            self.db.query(Prompt)
            .options(selectinload(Prompt.generated_content))
            .filter(Prompt.user_id == user_id, Prompt.is_active.is_(True))
            .order_by(Prompt.created_at.desc())
            .all()
        )

    def deactivate(self, prompt: Prompt) -> Prompt:
        prompt.is_active = False
        self.db.commit()
        self.db.refresh(prompt)
        return prompt


class GeneratedContentRepository(_Repository):

    def create(
        self,
        prompt_id: str,
        user_id: str,
        bullet_points: List[str],
        skills: List[str],
        keywords: List[str],
        achievements: List[str],
        summary: Optional[str],
        model: str,
        processing_time_ms: Optional[int] = None,
    ) -> GeneratedContent:
        content = GeneratedContent(
            prompt_id=prompt_id,
            user_id=user_id,
            bullet_points=list(bullet_points),
            skills=list(skills),
            keywords=list(keywords),
            achievements=list(achievements),
            summary=summary,
            model=model,
            processing_time_ms=processing_time_ms,
        )
        self.db.add(content)
        self.db.commit()
        self.db.refresh(content)
        return content

    def for_prompt(self, prompt_id: str) -> List[GeneratedContent]:
        return (
            self.db.query(GeneratedContent)
            .filter(GeneratedContent.prompt_id == prompt_id)
            .order_by(GeneratedContent.created_at)
            .all()
        )


class SubscriptionRepository(_Repository):

    def _for_user_query(self, user_id: str):
        return (
            self.db.query(Subscription)
            .filter(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )

    def current_for_user(self, user_id: str) -> Optional[Subscription]:
        """
        Authoritative subscription for a user.
        
        The newest row that is not canceled wins; if every row is canceled,
        the newest canceled row is returned.
        """
        current = (
            self._for_user_query(user_id)
            .filter(Subscription.status != SubscriptionStatus.CANCELED.value)
            .first()
        )
        if current is not None:
            return current
        return self._for_user_query(user_id).first()

    def find_by_customer(self, customer_id: str) -> Optional[Subscription]:
        return (
            self.db.query(Subscription)
            .filter(Subscription.stripe_customer_id == customer_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .first()
        )

    def find_by_stripe_subscription(self, subscription_id: str) -> List[Subscription]:
        # NULL would match every row without a Stripe subscription
        if not subscription_id:
            return []
        return (
            self.db.query(Subscription)
            .filter(Subscription.stripe_subscription_id == subscription_id)
            .all()
        )

    def add(self, subscription: Subscription) -> Subscription:
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def save(self) -> None:
        self.db.commit()
