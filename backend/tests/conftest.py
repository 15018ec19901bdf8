"""Shared test fixtures.

Services and API tests run against an in-memory SQLite database (aiosqlite)
created fresh for every test.
"""

import os

# Settings are read at import time by fxleague.utils.db / security
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "fxleague-test-signing-key-0f3c9a7d1e5b8c2a")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fxleague.models import (
    Admin,
    AdminStatus,
    Base,
    Profile,
    RegistrationStatus,
    Tournament,
    TournamentRegistration,
)
from fxleague.services.identity import Identity

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory configured like fxleague.utils.db."""
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# =============================================================================
# Identity Fixtures
# =============================================================================


async def create_profile(
    db: AsyncSession,
    email: str | None = None,
    full_name: str | None = None,
    is_banned: bool = False,
    is_admin: bool = False,
) -> Profile:
    profile = Profile(
        id=str(uuid4()),
        email=email or f"{uuid4().hex[:8]}@example.com",
        full_name=full_name,
        is_banned=is_banned,
        email_verified=True,
    )
    db.add(profile)
    if is_admin:
        db.add(Admin(user_id=profile.id))
    await db.commit()
    return profile


def identity_for(profile: Profile, is_admin: bool = False) -> Identity:
    return Identity(
        user_id=profile.id,
        is_banned=profile.is_banned,
        email_verified=profile.email_verified,
        is_admin=is_admin,
    )


@pytest_asyncio.fixture
async def trader(test_db: AsyncSession) -> Profile:
    return await create_profile(test_db, email="trader@example.com", full_name="Ada Trader")


@pytest_asyncio.fixture
async def trader2(test_db: AsyncSession) -> Profile:
    return await create_profile(test_db, email="second@example.com", full_name="Bo Second")


@pytest_asyncio.fixture
async def operator_profile(test_db: AsyncSession) -> Profile:
    return await create_profile(
        test_db, email="ops@example.com", full_name="Ops Desk", is_admin=True
    )


@pytest.fixture
def trader_identity(trader: Profile) -> Identity:
    return identity_for(trader)


@pytest.fixture
def trader2_identity(trader2: Profile) -> Identity:
    return identity_for(trader2)


@pytest.fixture
def operator(operator_profile: Profile) -> Identity:
    return identity_for(operator_profile, is_admin=True)


# =============================================================================
# Tournament Fixtures
# =============================================================================


async def create_tournament(
    db: AsyncSession,
    title: str = "Daily Sprint",
    slug: str | None = "daily-sprint",
    start_at: datetime | None = None,
    end_at: datetime | None = None,
    prize_pool: int = 1000,
    winners_count: int = 3,
    prize_breakdown: list | None = None,
    admin_status: AdminStatus = AdminStatus.UPCOMING,
) -> Tournament:
    now = datetime.now(timezone.utc)
    tournament = Tournament(
        id=str(uuid4()),
        title=title,
        slug=slug,
        start_at=start_at or now - timedelta(hours=1),
        end_at=end_at or now + timedelta(hours=23),
        prize_pool=prize_pool,
        winners_count=winners_count,
        prize_breakdown=prize_breakdown,
        admin_status=admin_status,
    )
    db.add(tournament)
    await db.commit()
    return tournament


async def create_registration(
    db: AsyncSession,
    tournament: Tournament,
    profile: Profile,
    status: RegistrationStatus = RegistrationStatus.JOINED,
) -> TournamentRegistration:
    registration = TournamentRegistration(
        id=str(uuid4()),
        tournament_id=tournament.id,
        user_id=profile.id,
        status=status,
        details_submitted=status != RegistrationStatus.JOINED,
    )
    db.add(registration)
    await db.commit()
    return registration


@pytest_asyncio.fixture
async def tournament(test_db: AsyncSession) -> Tournament:
    return await create_tournament(test_db)


@pytest.fixture
def make_profile(test_db: AsyncSession):
    async def _make(**kwargs) -> Profile:
        return await create_profile(test_db, **kwargs)

    return _make


@pytest.fixture
def make_tournament(test_db: AsyncSession):
    async def _make(**kwargs) -> Tournament:
        return await create_tournament(test_db, **kwargs)

    return _make


@pytest.fixture
def make_registration(test_db: AsyncSession):
    async def _make(tournament: Tournament, profile: Profile, **kwargs) -> TournamentRegistration:
        return await create_registration(test_db, tournament, profile, **kwargs)

    return _make
