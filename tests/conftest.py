"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from paayo.core.database import get_db
from paayo.core.security import SESSION_COOKIE, AuthenticatedUser
from paayo.main import create_app
from paayo.middleware.csrf import CSRF_COOKIE, CSRF_HEADER
from paayo.middleware.rate_limit import limiters

# ============================================================================
# Test Data Constants
# ============================================================================

TEST_ADMIN_ID = "00000000-0000-0000-0000-000000000001"
TEST_EDITOR_ID = "00000000-0000-0000-0000-000000000002"
TEST_USER_ID = "00000000-0000-0000-0000-000000000003"
TEST_SESSION_TOKEN = "test-session-token"
TEST_CSRF_TOKEN = "a" * 64


def make_result(
    *,
    scalar: Any = None,
    items: list[Any] | None = None,
    rows: list[Any] | None = None,
    one: Any = None,
    rowcount: int = 0,
) -> Mock:
    """Mock of an SQLAlchemy ``Result`` covering the accessors services use."""
    result = Mock()
    result.scalar.return_value = scalar
    result.scalar_one_or_none.return_value = scalar
    result.scalars.return_value.all.return_value = items or []
    result.all.return_value = rows or []
    result.mappings.return_value.all.return_value = rows or []
    result.one.return_value = one
    result.one_or_none.return_value = one
    result.rowcount = rowcount
    return result


# ============================================================================
# Rate limiter isolation
# ============================================================================


@pytest.fixture(autouse=True)
def reset_rate_limiters() -> None:
    """Every test starts with empty token buckets."""
    for limiter in limiters.values():
        limiter.reset()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = Mock()
    db.add_all = Mock()
    return db


@pytest.fixture
def result_factory():
    """``make_result`` as a fixture, for tests that build results inline."""
    return make_result


# ============================================================================
# User Fixtures
# ============================================================================


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=TEST_ADMIN_ID,
        email="admin@paayo.com",
        name="Admin",
        role="admin",
        is_active=True,
    )


@pytest.fixture
def editor_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=TEST_EDITOR_ID,
        email="editor@paayo.com",
        name="Editor",
        role="editor",
        is_active=True,
    )


@pytest.fixture
def regular_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id=TEST_USER_ID,
        email="user@paayo.com",
        name="User",
        role="user",
        is_active=True,
    )


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(mock_db: AsyncMock) -> FastAPI:
    """Create test FastAPI application backed by the mock session."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    application.dependency_overrides[get_db] = override_get_db

    return application


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def csrf_headers(client: AsyncClient) -> dict[str, str]:
    """Set the CSRF cookie on the client and return the matching header."""
    client.cookies.set(CSRF_COOKIE, TEST_CSRF_TOKEN)
    return {CSRF_HEADER: TEST_CSRF_TOKEN}


@pytest.fixture
def login(client: AsyncClient):
    """Authenticate the client as ``user`` for the rest of the test.

    Usage:
        def test_something(client, login, admin_user):
            login(admin_user)
    """
    patches = []

    def _login(user: AuthenticatedUser) -> None:
        patcher = patch(
            "paayo.middleware.session.resolve_session",
            AsyncMock(return_value=user),
        )
        patcher.start()
        patches.append(patcher)
        client.cookies.set(SESSION_COOKIE, TEST_SESSION_TOKEN)

    yield _login

    for patcher in patches:
        patcher.stop()
