"""Shared test fixtures.

Every test gets its own SQLite file so service and HTTP tests run without
PostgreSQL or Redis. Redis is never initialized, which leaves the rate
limiter in pass-through mode.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("PLEDGETRACK_LOG_FORMAT", "console")

from pledgetrack.campaigns.seed import seed_catalog  # noqa: E402
from pledgetrack.campaigns.service import create_campaign  # noqa: E402
from pledgetrack.config import get_settings  # noqa: E402
from pledgetrack.database import close_db, get_engine, get_session, init_db  # noqa: E402
from pledgetrack.db import models  # noqa: E402, F401
from pledgetrack.db.base import Base  # noqa: E402
from pledgetrack.db.models import ChallengeType, Participant  # noqa: E402
from pledgetrack.main import create_app  # noqa: E402
from pledgetrack.participants.service import create_participant  # noqa: E402

OWNER = "owner-1"


def _sqlite_url(path: Path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Initialized engine over a migrated (create_all) temporary database."""
    await init_db(_sqlite_url(tmp_path / "pledgetrack.db"))
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def empty_database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Initialized engine over a database with no tables at all."""
    await init_db(_sqlite_url(tmp_path / "empty.db"))
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for arranging data and assertions."""
    async for session in get_session():
        yield session
        break


async def _client() -> AsyncGenerator[AsyncClient, None]:
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client over the migrated database."""
    async for ac in _client():
        yield ac


@pytest_asyncio.fixture
async def uninitialized_client(empty_database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client whose database has not been migrated."""
    async for ac in _client():
        yield ac


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"X-User-Id": OWNER}


@pytest.fixture
def mock_email_service(monkeypatch):
    """Mock the email service to prevent actual email sending."""
    mock_service = MagicMock()
    mock_service.send_template = AsyncMock(return_value=True)
    mock_service.send_email = AsyncMock(return_value=True)

    monkeypatch.setattr("pledgetrack.participants.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


@pytest_asyncio.fixture
async def make_participant(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[Participant]]:
    """Factory for an active participant in a fresh active campaign (committed)."""
    await seed_catalog(db_session)
    result = await db_session.execute(select(ChallengeType).where(ChallengeType.name == "Running"))
    running = result.scalar_one()

    async def _make(
        user_id: str = OWNER,
        goal_amount: int = 100,
        participant_name: str = "Alex",
        donation_url: str | None = "https://donate.example.org/run",
    ) -> Participant:
        campaign = await create_campaign(
            db_session,
            admin_user_id="admin-1",
            title="Spring Run",
            donation_url=donation_url,
        )
        participant = await create_participant(
            db_session,
            user_id=user_id,
            campaign_id=campaign.id,
            challenge_type_id=running.id,
            goal_amount=goal_amount,
            participant_name=participant_name,
        )
        await db_session.commit()
        return participant

    return _make


@pytest_asyncio.fixture
async def participant(make_participant) -> Participant:
    """An active 100-mile running challenge owned by OWNER."""
    return await make_participant()
