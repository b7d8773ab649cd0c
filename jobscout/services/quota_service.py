"""
Quota service for monthly prompt usage.

Usage is the number of active prompts a user created in the current UTC
calendar month. It is recomputed on every call and never cached.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from jobscout.core.config import FREE_PROMPT_LIMIT
from jobscout.core.errors import PersistenceError
from jobscout.db.repositories import PromptRepository

logger = logging.getLogger(__name__)


@dataclass
class UsageSnapshot:
    can_create: bool
    used: int
    limit: Optional[int]

    def to_dict(self) -> Dict:
        return {"canCreate": self.can_create, "used": self.used, "limit": self.limit}


def get_month_key(now: Optional[datetime] = None) -> str:
    """Generate month key string in YYYY-MM format from the UTC ISO timestamp."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.isoformat()[:7]


def get_next_month(month_key: str) -> str:
    """Return the month after month_key ("2024-12" -> "2025-01")."""
    year, month = (int(part) for part in month_key.split("-"))
    next_month = 1 if month == 12 else month + 1
    next_year = year + 1 if month == 12 else year
    return f"{next_year}-{next_month:02d}"


def month_bounds(month_key: str) -> Tuple[datetime, datetime]:
    """Half-open UTC range [first instant of month, first instant of next month)."""
    start = datetime.fromisoformat(f"{month_key}-01T00:00:00+00:00")
    end = datetime.fromisoformat(f"{get_next_month(month_key)}-01T00:00:00+00:00")
    return start, end


def count_month_usage(prompts: PromptRepository, user_id: str, now: Optional[datetime] = None) -> int:
    """Count active prompts created this month. Storage errors propagate."""
    start, end = month_bounds(get_month_key(now))
    return prompts.count_active_between(user_id, start, end)


def check_usage_limit(
    prompts: PromptRepository,
    user_id: str,
    now: Optional[datetime] = None,
    limit: int = FREE_PROMPT_LIMIT,
) -> UsageSnapshot:
    """
    Check whether a user may create another prompt this month.

    The limit does not depend on the user's subscription plan.
    If the count query fails the check fails open so users are not blocked
    by a storage hiccup.

    Args:
        prompts: Prompt repository
        user_id: User ID
        now: Clock override for tests
        limit: Monthly prompt limit

    Returns:
        UsageSnapshot with can_create = used < limit
    """
    try:
        used = count_month_usage(prompts, user_id, now)
    except SQLAlchemyError as e:
        logger.error(f"Usage count failed, allowing creation: user_id={user_id}, error={e}")
        prompts.rollback()
        return UsageSnapshot(can_create=True, used=0, limit=limit)

    return UsageSnapshot(can_create=used < limit, used=used, limit=limit)


def get_usage_for_response(
    prompts: PromptRepository,
    user_id: str,
    now: Optional[datetime] = None,
    limit: int = FREE_PROMPT_LIMIT,
) -> Dict:
    """
    Get usage data formatted for GET /usage.

    Unlike check_usage_limit this does not fail open.

    Raises:
        PersistenceError: the count query failed
    """
    try:
        used = count_month_usage(prompts, user_id, now)
    except SQLAlchemyError as e:
        logger.error(f"Usage count failed: user_id={user_id}, error={e}", exc_info=True)
        prompts.rollback()
        raise PersistenceError("Failed to check usage") from e

    return {
        "prompts_used": used,
        "prompts_limit": limit,
        "can_create_prompt": used < limit,
        "remaining": max(0, limit - used),
    }
