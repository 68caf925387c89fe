import os
import sys
from pathlib import Path

# Ensure repository root is on sys.path so 'import backend' works
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are cached on first use; pin the test environment before any app import
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.core.security import create_access_token
from backend.app.db.base import get_db, get_session_factory, init_db
from backend.app.models.sql_models import Message, Review, User
from backend.app.policies.keywords import DEFAULT_KEYWORDS, KeywordPolicyStore


# Force pytest-anyio to use asyncio backend (avoid requiring 'trio')
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add(db, obj):
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@pytest.fixture
def make_user(db):
    def _make(username, role="creator"):
        return _add(db, User(username=username, email=f"{username}@example.com", role=role))

    return _make


@pytest.fixture
def make_review(db):
    def _make(creator, rating, text=None):
        return _add(db, Review(creator_id=creator.id, company_id="company-1", overall_rating=rating, review_text=text))

    return _make


@pytest.fixture
def make_message(db):
    def _make(sender, content):
        return _add(db, Message(conversation_id="conv-1", sender_id=sender.id, content=content))

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def creator(make_user):
    return make_user("creator1")


@pytest.fixture
def admins(make_user):
    return [make_user(f"admin{i}", role="admin") for i in range(3)]


@pytest.fixture
async def seeded(db):
    """Store holding the built-in keyword policy."""
    await KeywordPolicyStore(db).seed_defaults_if_empty(DEFAULT_KEYWORDS)
    return db


@pytest.fixture()
async def client(session_factory):
    from backend.app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
