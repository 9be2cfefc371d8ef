"""Service test fixtures — async DB, FastAPI test client, in-memory repositories.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager patched so the readiness probe sees the test engine
    - Every client test starts with an empty GatheringLockRegistry

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (JSON id lists and UUID columns behave the same as on PostgreSQL here)
    - Engine tests use in-memory repositories (fake_repositories.py) so interleaving
      is deterministic
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from meetup.db.base import Base
from meetup.infrastructure.database import get_db, DatabaseSessionManager
import meetup.infrastructure.database as db_module
from meetup.main import app
from meetup.models.user import User
from meetup.services.gathering_locks import GatheringLockRegistry
from tests.services.fake_repositories import (
    InMemoryGatheringRepository, InMemoryGroupRepository,
)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.gathering_locks = GatheringLockRegistry()

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
def make_user(test_db):
    """Insert a user directly into the test DB; returns the model."""
    async def _make(username: str) -> User:
        user = User(username=username)
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user
    return _make


@pytest.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest.fixture
def as_user():
    """Build the X-User-Id header for a user model."""
    def _headers(user: User) -> dict[str, str]:
        return {"X-User-Id": str(user.id)}
    return _headers


@pytest.fixture
def group_repo():
    return InMemoryGroupRepository()


@pytest.fixture
def gathering_repo():
    return InMemoryGatheringRepository()
