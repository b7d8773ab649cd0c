"""
Endpoint tests for /prompts and /usage.
Tokens are minted locally with the test secret; the completion service is stubbed.
"""
import json
import time
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobscout.main import app
from jobscout.core import config
from jobscout.core.dependencies import get_content_generator
from jobscout.db.base import Base
from jobscout.db.session import get_db
from jobscout.db import models  # noqa: F401
from jobscout.db.models.prompt import Prompt, PromptStatus
from jobscout.db.models.user import User
from jobscout.llm.provider import LLMProvider, LLMResponse
from jobscout.services.content_generator import ContentGenerator


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_SECRET = "test-jwt-secret"
JOB_POST = "We need a backend engineer skilled in Go and PostgreSQL"

GENERATED = {
    "bullet_points": ["b1", "b2", "b3", "b4", "b5"],
    "skills": ["Go", "PostgreSQL", "Docker", "gRPC", "Redis"],
    "keywords": ["backend", "Go", "PostgreSQL", "scalable", "APIs"],
    "achievements": ["a1", "a2", "a3"],
    "summary": "Backend engineer focused on Go and PostgreSQL.",
}


class StubProvider(LLMProvider):
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error

    def chat(self, messages, model, temperature=0.7, max_tokens=None, **kwargs):
        if self.error:
            raise self.error
        return LLMResponse(content=self.content, model=model)


def override_get_db():
    """Override database dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


def make_token(user_id="user-1", email="jane@example.com", full_name="Jane Doe", secret=TEST_SECRET):
    claims = {
        "sub": user_id,
        "email": email,
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        "user_metadata": {"full_name": full_name},
    }
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(**kwargs):
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


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
def client(db, monkeypatch):
    """Test client with database and generator overridden."""
    monkeypatch.setattr(config, "SUPABASE_JWT_SECRET", TEST_SECRET)
    monkeypatch.setattr(config, "JWT_AUDIENCE", "authenticated")
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_content_generator] = (
        lambda: ContentGenerator(StubProvider(content=json.dumps(GENERATED)))
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def seed_prompts(db, count, user_id="user-1"):
    if db.get(User, user_id) is None:
        db.add(User(id=user_id, email="jane@example.com", name="jane"))
    for _ in range(count):
        db.add(Prompt(user_id=user_id, title="t", content=JOB_POST, status=PromptStatus.COMPLETED.value))
    db.commit()


def test_create_prompt_requires_auth(client):
    response = client.post("/prompts", json={"jobPost": JOB_POST})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_create_prompt_rejects_bad_token(client):
    response = client.post(
        "/prompts",
        json={"jobPost": JOB_POST},
        headers=auth_headers(secret="some-other-secret"),
    )
    assert response.status_code == 401


def test_create_prompt_success(client, db):
    response = client.post(
        "/prompts",
        json={"jobPost": JOB_POST, "company": "Acme", "position": "Backend Engineer"},
        headers=auth_headers(),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["usage"] == {"canCreate": True, "used": 1, "limit": 5}
    assert len(data["generated_content"]["bullet_points"]) == 5
    assert len(data["generated_content"]["skills"]) == 5
    assert len(data["generated_content"]["keywords"]) == 5
    assert len(data["generated_content"]["achievements"]) == 3
    assert data["generated_content"]["summary"] == GENERATED["summary"]

    prompt = db.get(Prompt, data["prompt_id"])
    assert prompt.status == PromptStatus.COMPLETED.value
    assert prompt.title == "Backend Engineer at Acme"
    assert db.get(User, "user-1").name == "Jane Doe"


def test_create_prompt_validation_error(client, db):
    response = client.post("/prompts", json={"jobPost": "short"}, headers=auth_headers())

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid request data"
    assert data["details"][0]["field"] == "jobPost"
    assert db.query(Prompt).count() == 0


def test_create_prompt_missing_body(client):
    response = client.post("/prompts", headers=auth_headers())
    assert response.status_code == 400


def test_create_prompt_limit_exceeded(client, db):
    seed_prompts(db, 5)

    response = client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers())

    assert response.status_code == 403
    data = response.json()
    assert data["error"] == "Usage limit exceeded"
    assert data["needsUpgrade"] is True
    assert data["usage"] == {"canCreate": False, "used": 5, "limit": 5}
    assert "5/5" in data["message"]
    assert db.query(Prompt).count() == 5


def test_create_prompt_generation_failure(client, db):
    app.dependency_overrides[get_content_generator] = (
        lambda: ContentGenerator(StubProvider(error=ConnectionError("upstream down")))
    )

    response = client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process job post with AI"}

    listing = client.get("/prompts/user", headers=auth_headers()).json()
    assert len(listing["prompts"]) == 1
    assert listing["prompts"][0]["status"] == "failed"
    assert listing["prompts"][0]["generated_content"] == []


def test_list_user_prompts(client):
    client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers())

    response = client.get("/prompts/user", headers=auth_headers())

    assert response.status_code == 200
    prompts = response.json()["prompts"]
    assert len(prompts) == 1
    assert prompts[0]["status"] == "completed"
    assert prompts[0]["generated_content"][0]["skills"] == GENERATED["skills"]


def test_list_is_scoped_to_caller(client):
    client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers())

    response = client.get("/prompts/user", headers=auth_headers(user_id="user-2", email="bob@example.com"))

    assert response.status_code == 200
    assert response.json()["prompts"] == []


def test_get_and_delete_prompt(client):
    created = client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers()).json()
    prompt_id = created["prompt_id"]

    response = client.get(f"/prompts/{prompt_id}", headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["id"] == prompt_id

    response = client.delete(f"/prompts/{prompt_id}", headers=auth_headers())
    assert response.status_code == 200
    assert response.json() == {"success": True, "prompt_id": prompt_id}

    assert client.get(f"/prompts/{prompt_id}", headers=auth_headers()).status_code == 404
    assert client.get("/usage", headers=auth_headers()).json()["prompts_used"] == 0


def test_usage_requires_auth(client):
    assert client.get("/usage").status_code == 401


def test_usage_endpoint(client, db):
    seed_prompts(db, 2)

    response = client.get("/usage", headers=auth_headers())

    assert response.status_code == 200
    assert response.json() == {
        "prompts_used": 2,
        "prompts_limit": 5,
        "can_create_prompt": True,
        "remaining": 3,
    }


def test_usage_at_limit(client, db):
    seed_prompts(db, 5)

    data = client.get("/usage", headers=auth_headers()).json()

    assert data["can_create_prompt"] is False
    assert data["remaining"] == 0


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


@pytest.mark.parametrize("reply", ["", "not json", "[1, 2, 3]"])
def test_create_prompt_unusable_reply_uses_generic_error(client, db, reply):
    """Empty, non-JSON or non-object replies all surface the same client message."""
    app.dependency_overrides[get_content_generator] = (
        lambda: ContentGenerator(StubProvider(content=reply))
    )

    response = client.post("/prompts", json={"jobPost": JOB_POST}, headers=auth_headers())

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process job post with AI"}
    assert db.query(Prompt).one().status == PromptStatus.FAILED.value
