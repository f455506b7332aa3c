"""
Campus Tasker Backend - Test Configuration (conftest.py)
========================================================

What:  Shared fixtures: an in-memory SQLite database with the full schema,
       a session on it, a user factory, and an HTTP client wired to a fresh
       app instance that uses the same database.

Fixture Hierarchy (all function-scoped, so every test starts empty):
    engine          in-memory aiosqlite engine, tables from ORM metadata
    ├── db_session  AsyncSession for service-level tests
    │   ├── make_user             signs up a user through AuthService
    │   ├── make_task             posts an open task
    │   └── make_completed_task   open → accepted → completed
    └── test_client httpx AsyncClient → create_app() with get_db_session overridden
    mock_db_session AsyncMock session for error-path tests
"""

import itertools
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Must run before any tasker import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="tasker_test_"), "health.db"
)
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import pytest
import pytest_asyncio
from argon2 import PasswordHasher
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import tasker.models  # noqa: F401  registers every table on Base.metadata
from tasker.database import Base, enable_sqlite_foreign_keys, get_db_session
from tasker.models.task import Task
from tasker.models.user import ROLE_BOTH, UserProfile
from tasker.schemas.task import TaskCreate
from tasker.services.auth_service import auth_service
from tasker.services.task_service import task_service

TEST_PASSWORD = "correct-horse-battery"


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Cheap Argon2 parameters; the production defaults cost ~50ms per hash."""
    monkeypatch.setattr(
        auth_service,
        "_hasher",
        PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1),
    )


@pytest_asyncio.fixture
async def engine():
    """
    One in-memory database per test.

    StaticPool keeps a single connection, so every session in the test sees
    the same database.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """
    Factory creating users through the real sign-up path.

    Usage:
        poster = await make_user("Priya")
        tasker = await make_user("Rahul", role="tasker")
    """
    counter = itertools.count(1)

    async def _make(name="Student", role=ROLE_BOTH, phone=None) -> UserProfile:
        n = next(counter)
        session = await auth_service.sign_up(
            db_session,
            email=f"student{n}@campus.edu",
            password=TEST_PASSWORD,
            name=name,
            phone=phone,
        )
        profile = await db_session.get(UserProfile, session.user.id)
        if role != ROLE_BOTH:
            profile.role = role
            await db_session.flush()
        return profile

    return _make


@pytest.fixture
def make_task(db_session):
    """Factory posting an open task as `poster`; returns the ORM Task."""

    async def _make(poster, title="Carry groceries to Hostel B", price="150", deadline=None) -> Task:
        created = await task_service.create_task(
            db_session, poster, TaskCreate(title=title, price=price, deadline=deadline)
        )
        return await task_service.load_task(db_session, created.id)

    return _make


@pytest.fixture
def make_completed_task(db_session, make_task):
    """Factory walking a task through open → accepted → completed."""

    async def _make(poster, tasker) -> Task:
        task = await make_task(poster)
        await task_service.accept_task(db_session, tasker, task.id)
        await task_service.mark_complete(db_session, poster, task.id)
        return await task_service.load_task(db_session, task.id, refresh=True)

    return _make


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to a fresh app over ASGITransport.

    The lifespan is not run, so no startup wait for the real database.
    """
    from tasker.main import create_app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def signup(test_client):
    """
    Sign up over HTTP and return (user_id, auth headers).

    Usage:
        user_id, headers = await signup("Priya")
    """
    counter = itertools.count(1)

    async def _signup(name="Student", role=ROLE_BOTH):
        n = next(counter)
        response = await test_client.post(
            "/api/auth/signup",
            json={"email": f"api{n}@campus.edu", "password": TEST_PASSWORD, "name": name},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        if role != ROLE_BOTH:
            patched = await test_client.patch(
                f"/api/users/{body['user']['id']}", json={"role": role}, headers=headers
            )
            assert patched.status_code == 200, patched.text
        return body["user"]["id"], headers

    return _signup
