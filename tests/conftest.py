"""
Pytest configuration and shared fixtures.

This file provides common fixtures for all tests.

Tests run against a throwaway SQLite file per test function by default. Set
TEST_DATABASE_URL to an async URL (e.g. mysql+aiomysql://...) to run the same
suite against a server database; tables are created and dropped around
every test.
"""

import os
import tempfile
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

# Settings are read at import time; give them something safe before any
# freightdesk module is imported.
_DEFAULT_DB_DIR = Path(tempfile.mkdtemp(prefix="freightdesk-tests-"))
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-freightdesk-suite-0123456789")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DEFAULT_DB_DIR / 'app.db'}")

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from freightdesk import models  # noqa: E402, F401
from freightdesk.config import UserRole  # noqa: E402
from freightdesk.core.clock import FixedClock  # noqa: E402
from freightdesk.core.database import (  # noqa: E402
    build_engine,
    build_session_factory,
    get_db,
    get_session_factory,
)
from freightdesk.core.fingerprint import Fingerprint  # noqa: E402
from freightdesk.main import app as main_app  # noqa: E402
from freightdesk.models.user import Users  # noqa: E402
from freightdesk.services.auth import AuthService  # noqa: E402
from freightdesk.services.identity import IdentityService  # noqa: E402
from freightdesk.services.refresh_token_store import RefreshTokenStore  # noqa: E402

# Strong enough for validate_password_strength
TEST_PASSWORD = "Cargo-Pass-123!"

CLOCK_START = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


class StubFingerprintProvider:
    """Fingerprint provider whose value the test controls."""

    def __init__(self, value: str = "fp1") -> None:
        self.value = value

    def current(self) -> Fingerprint:
        return Fingerprint(value=self.value)


@pytest.fixture(scope="function")
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create test database engine for each test function.

    Scope is "function" so the async engine runs in the same event loop as
    the test. Uses build_engine() so SQLite gets the same write locking the
    application uses.
    """
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    test_engine = build_engine(url)

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen at CLOCK_START; advance() it to test expiry and retention."""
    return FixedClock(CLOCK_START)


@pytest.fixture
def fingerprints() -> StubFingerprintProvider:
    return StubFingerprintProvider("fp1")


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession], clock: FixedClock) -> RefreshTokenStore:
    return RefreshTokenStore(session_factory, clock=clock)


@pytest.fixture
def identity(session_factory: async_sessionmaker[AsyncSession], clock: FixedClock) -> IdentityService:
    return IdentityService(session_factory, clock=clock)


@pytest.fixture
def auth_service(
    store: RefreshTokenStore,
    identity: IdentityService,
    fingerprints: StubFingerprintProvider,
    clock: FixedClock,
) -> AuthService:
    return AuthService(store, identity, fingerprints, clock=clock)


@pytest.fixture
async def test_user(session_factory: async_sessionmaker[AsyncSession]) -> Users:
    """
    Bare customer-role user row for tests that only need a foreign key target.

    The password is not a real hash; use identity.create_customer() when a
    test needs to sign in.
    """
    user = Users(email="owner@example.com", role=UserRole.CUSTOMER, password="not-a-hash")
    async with session_factory() as session:
        session.add(user)
        await session.commit()
    return user


@pytest.fixture(scope="function")
def app(session_factory: async_sessionmaker[AsyncSession]) -> FastAPI:
    """
    FastAPI app wired to the test database.

    Overrides both the session factory (used by the auth services) and the
    plain request session (used by /health).
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    main_app.dependency_overrides[get_session_factory] = lambda: session_factory
    main_app.dependency_overrides[get_db] = override_get_db

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing API endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.post("/api/v1/auth/signin", json={...})
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Sample Data Dictionaries (for API request payloads)
# =============================================================================


@pytest.fixture
def sample_signup_data() -> dict:
    """Customer sign-up payload."""
    return {
        "email": "customer@example.com",
        "password": TEST_PASSWORD,
        "nickname": "parcelfan",
    }


@pytest.fixture
async def admin_headers(identity: IdentityService, client: AsyncClient) -> dict[str, str]:
    """Bearer header for a freshly provisioned administrator."""
    await identity.create_admin("root@example.com", TEST_PASSWORD)
    response = await client.post(
        "/api/v1/auth/signin",
        json={"email": "root@example.com", "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
