"""
Process-scoped external clients and per-request service wiring.

External clients are built once per process; services are built per request
around that request's database session. Tests replace any of these through
app.dependency_overrides.
"""
import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from jobscout.core import config
from jobscout.core.errors import GenerationFailed
from jobscout.db.repositories import (
    GeneratedContentRepository,
    PromptRepository,
    SubscriptionRepository,
    UserRepository,
)
from jobscout.db.session import get_db
from jobscout.llm.openai_provider import OpenAIProvider
from jobscout.services.billing_service import BillingService
from jobscout.services.content_generator import ContentGenerator
from jobscout.services.prompt_service import PromptService
from jobscout.services.stripe_service import StripeClient

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_content_generator() -> ContentGenerator:
    try:
        provider = OpenAIProvider()
    except ValueError as e:
        logger.error(f"Content generator not configured: {e}")
        raise GenerationFailed() from e
    return ContentGenerator(
        provider=provider,
        model=config.OPENAI_MODEL,
        temperature=config.OPENAI_TEMPERATURE,
        max_tokens=config.OPENAI_MAX_TOKENS,
    )


@lru_cache(maxsize=1)
def get_stripe_client() -> StripeClient:
    return StripeClient()


def get_prompt_repository(db: Session = Depends(get_db)) -> PromptRepository:
    return PromptRepository(db)


def get_prompt_service(db: Session = Depends(get_db)) -> PromptService:
    """Prompt service for read/delete endpoints; no generator needed."""
    return PromptService(
        users=UserRepository(db),
        prompts=PromptRepository(db),
        contents=GeneratedContentRepository(db),
    )


def get_generating_prompt_service(
    db: Session = Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator),
) -> PromptService:
    return PromptService(
        users=UserRepository(db),
        prompts=PromptRepository(db),
        contents=GeneratedContentRepository(db),
        generator=generator,
    )


def get_billing_service(
    db: Session = Depends(get_db),
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> BillingService:
    return BillingService(
        users=UserRepository(db),
        subscriptions=SubscriptionRepository(db),
        stripe_client=stripe_client,
    )
