"""
Global test fixtures and configuration.

This module provides base fixtures for all tests:
- In-memory SQLite database, rebuilt for every test
- Redis client (in-memory fake)
- Scripted AI client
- HTTP client with dependency overrides
- Base data fixtures (user, team, project, auth_headers)
"""

import os
import pytest
from typing import AsyncGenerator, List, Optional
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fakeredis import FakeAsyncRedis

# Set test environment variables BEFORE importing the app
os.environ["MODE"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DATABASE_URL_SYNC"] = "sqlite://"
os.environ["ACCESS_LOG_ENABLED"] = "false"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["RESEND_API_KEY"] = ""
os.environ["AI_API_KEY"] = ""

from vibe.main import app
from vibe.api.dependencies import get_db, get_redis
from vibe.db.base import Base
from vibe.services.ai_client import AIServiceError, get_ai_client
from tests.factories.user import auth_headers_for

TEST_DATABASE_URL = os.environ["DATABASE_URL"]


# ==================== Database ====================

@pytest.fixture(scope="function")
async def test_engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single SQLite connection alive for the whole test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session shared by the test and the app under test.

    Actions commit for real; isolation comes from the per-test database.
    """
    session_factory = sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    session = session_factory()

    yield session

    await session.close()


# ==================== Redis ====================

@pytest.fixture(scope="function")
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    """Fake Redis client (in-memory) for each test."""
    redis = FakeAsyncRedis()
    yield redis
    await redis.flushall()
    await redis.aclose()


# ==================== AI ====================

class FakeAIClient:
    """
    Stands in for AIClient.

    Replies are returned in order; once exhausted, `default` is returned.
    Setting `error` makes every call fail like an unreachable provider.
    """

    def __init__(self, replies: Optional[List[str]] = None, default: str = "AI reply"):
        self.replies = list(replies or [])
        self.default = default
        self.error: Optional[str] = None
        self.prompts: List[str] = []

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, max_tokens: int = 200) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise AIServiceError(self.error)
        if self.replies:
            return self.replies.pop(0)
        return self.default


@pytest.fixture
def ai_client() -> FakeAIClient:
    return FakeAIClient()


# ==================== FastAPI Client ====================

@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    redis_client: FakeAsyncRedis,
    ai_client: FakeAIClient
) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for testing FastAPI endpoints.

    Overrides get_db, get_redis and get_ai_client to use test fixtures.
    """

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_ai_client] = lambda: ai_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== Base Data Fixtures ====================

@pytest.fixture
async def user(db_session: AsyncSession):
    """The main test user (owner of the `team` fixture)."""
    from tests.factories.user import UserFactory
    user = await UserFactory.create_async(db_session, name="Owner User")
    await db_session.commit()
    return user


@pytest.fixture
async def other_user(db_session: AsyncSession):
    """A second user who belongs to no team."""
    from tests.factories.user import UserFactory
    user = await UserFactory.create_async(db_session, name="Other User")
    await db_session.commit()
    return user


@pytest.fixture
async def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
async def other_auth_headers(other_user):
    return auth_headers_for(other_user)


@pytest.fixture
async def team(db_session: AsyncSession, user):
    """Team owned by `user`, with the OWNER membership row."""
    from tests.factories.team import TeamFactory
    team = await TeamFactory.create_with_owner_async(db_session, owner=user)
    await db_session.commit()
    return team


@pytest.fixture
async def member(db_session: AsyncSession, team):
    """A user with the MEMBER role in `team`."""
    from tests.factories.user import UserFactory
    from tests.factories.team_member import TeamMemberFactory
    member = await UserFactory.create_async(db_session, name="Member User")
    await TeamMemberFactory.create_async(db_session, team_id=team.id, user_id=member.id, role="MEMBER")
    await db_session.commit()
    return member


@pytest.fixture
async def member_auth_headers(member):
    return auth_headers_for(member)


@pytest.fixture
async def project(db_session: AsyncSession, team, user):
    from tests.factories.project import ProjectFactory
    project = await ProjectFactory.create_async(db_session, team_id=team.id, owner_id=user.id)
    await db_session.commit()
    return project


@pytest.fixture
def anyio_backend():
    return "asyncio"
