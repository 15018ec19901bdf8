"""Test fixtures for API tests.

The application is exercised in-process through httpx's ASGI transport with
the database dependency pointed at the per-test SQLite session.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from fxleague.main import app
from fxleague.models import Profile
from fxleague.utils.db import get_db
from fxleague.utils.security import create_access_token


# =============================================================================
# FastAPI App & Client Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_app(test_db: AsyncSession):
    """The application with get_db bound to the test session."""

    async def override_get_db():
        """Commits after the handler returns, like production get_db()."""
        try:
            yield test_db
            await test_db.commit()
        except Exception:
            await test_db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# Auth Fixtures
# =============================================================================


def bearer(profile: Profile) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


@pytest.fixture
def auth_headers(trader: Profile) -> dict[str, str]:
    return bearer(trader)


@pytest.fixture
def auth_headers_user2(trader2: Profile) -> dict[str, str]:
    return bearer(trader2)


@pytest.fixture
def operator_headers(operator_profile: Profile) -> dict[str, str]:
    return bearer(operator_profile)


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def invalid_auth_headers() -> dict[str, str]:
    return {"Authorization": "Bearer invalid-token-12345"}
