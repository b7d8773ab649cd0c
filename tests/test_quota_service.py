"""
Unit tests for quota service.
Tests month boundaries, usage counting, and the fail-open policy.
"""
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobscout.db.base import Base
from jobscout.db import models  # noqa: F401
from jobscout.db.models.user import User
from jobscout.db.models.prompt import Prompt, PromptStatus
from jobscout.db.repositories import PromptRepository
from jobscout.core.errors import PersistenceError
from jobscout.services.quota_service import (
    UsageSnapshot,
    check_usage_limit,
    get_month_key,
    get_next_month,
    get_usage_for_response,
    month_bounds,
)


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

JANUARY = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
FEBRUARY = datetime(2024, 2, 10, 8, 30, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def test_user(db):
    user = User(id="user-1", email="test@example.com", name="test")
    db.add(user)
    db.commit()
    return user


def add_prompt(db, user_id, created_at, is_active=True):
    prompt = Prompt(
        user_id=user_id,
        title="Backend Engineer",
        content="We need a backend engineer",
        status=PromptStatus.COMPLETED.value,
        is_active=is_active,
        created_at=created_at,
    )
    db.add(prompt)
    db.commit()
    return prompt


class BrokenPromptRepository(PromptRepository):
    def count_active_between(self, user_id, start, end):
        raise OperationalError("SELECT count(*)", {}, Exception("database is locked"))


def test_get_next_month_rolls_year():
    assert get_next_month("2024-12") == "2025-01"


def test_get_next_month_pads_month():
    assert get_next_month("2024-01") == "2024-02"
    assert get_next_month("2024-09") == "2024-10"


def test_get_month_key_uses_utc():
    assert get_month_key(JANUARY) == "2024-01"
    # 23:30 on Jan 31 in UTC-5 is already February in UTC
    eastern = timezone(timedelta(hours=-5))
    assert get_month_key(datetime(2024, 1, 31, 23, 30, tzinfo=eastern)) == "2024-02"


def test_month_bounds_half_open():
    start, end = month_bounds("2024-12")
    assert start == datetime(2024, 12, 1, tzinfo=timezone.utc)
    assert end == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_month_boundary_counting(db, test_user):
    """Last second of January counts for January; first instant of February for February."""
    add_prompt(db, test_user.id, datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc))
    add_prompt(db, test_user.id, datetime(2024, 2, 1, 0, 0, 0, tzinfo=timezone.utc))
    repo = PromptRepository(db)

    assert check_usage_limit(repo, test_user.id, now=JANUARY).used == 1
    assert check_usage_limit(repo, test_user.id, now=FEBRUARY).used == 1


def test_inactive_prompts_not_counted(db, test_user):
    add_prompt(db, test_user.id, JANUARY)
    add_prompt(db, test_user.id, JANUARY, is_active=False)

    snapshot = check_usage_limit(PromptRepository(db), test_user.id, now=JANUARY)
    assert snapshot.used == 1


def test_other_users_not_counted(db, test_user):
    db.add(User(id="user-2", email="other@example.com", name="other"))
    db.commit()
    add_prompt(db, "user-2", JANUARY)

    assert check_usage_limit(PromptRepository(db), test_user.id, now=JANUARY).used == 0


def test_limit_boundary_one_below_allows(db, test_user):
    for _ in range(4):
        add_prompt(db, test_user.id, JANUARY)

    snapshot = check_usage_limit(PromptRepository(db), test_user.id, now=JANUARY, limit=5)
    assert snapshot == UsageSnapshot(can_create=True, used=4, limit=5)


def test_limit_boundary_at_limit_blocks(db, test_user):
    for _ in range(5):
        add_prompt(db, test_user.id, JANUARY)

    snapshot = check_usage_limit(PromptRepository(db), test_user.id, now=JANUARY, limit=5)
    assert snapshot.can_create is False
    assert snapshot.used == 5


def test_snapshot_to_dict():
    assert UsageSnapshot(can_create=True, used=1, limit=5).to_dict() == {
        "canCreate": True,
        "used": 1,
        "limit": 5,
    }


def test_check_usage_limit_fails_open(db, test_user):
    snapshot = check_usage_limit(BrokenPromptRepository(db), test_user.id, limit=5)
    assert snapshot == UsageSnapshot(can_create=True, used=0, limit=5)


def test_get_usage_for_response(db, test_user):
    for _ in range(2):
        add_prompt(db, test_user.id, JANUARY)

    result = get_usage_for_response(PromptRepository(db), test_user.id, now=JANUARY, limit=5)
    assert result == {
        "prompts_used": 2,
        "prompts_limit": 5,
        "can_create_prompt": True,
        "remaining": 3,
    }


def test_get_usage_for_response_does_not_fail_open(db, test_user):
    with pytest.raises(PersistenceError):
        get_usage_for_response(BrokenPromptRepository(db), test_user.id)
