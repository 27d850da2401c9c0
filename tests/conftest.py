"""Pytest configuration and fixtures for the forum backend.

Provides:
- engine / session: a fresh SQLite database per test
- clock: deterministic "now" that advances one second per call
- lifecycle / deletion: services bound to the test session
- channel / other_channel: channels created through ChannelStore
- client: httpx AsyncClient talking to the app, with fake sessions
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_SERVICE_URL", "http://auth.test")
os.environ.setdefault("CREATE_TABLES", "false")
os.environ.setdefault("LOG_LEVEL", "warning")

from datetime import datetime, timedelta  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import Depends, HTTPException, status  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

import middleware.auth  # noqa: E402
from database import build_engine, build_sessionmaker, create_tables, get_db  # noqa: E402
from main import app  # noqa: E402
from middleware.rate_limit import reset_rate_limits  # noqa: E402
from routers import messages as messages_router  # noqa: E402
from schemas.identity import Identity  # noqa: E402
from services.deletion import DeletionPolicy  # noqa: E402
from services.lifecycle import MessageLifecycle  # noqa: E402
from services.message_store import ChannelStore, MessageStore  # noqa: E402

ALICE = Identity(id="user-alice", display_name="alice")
BOB = Identity(id="user-bob", display_name="bob")

TOKENS = {
    "alice-token": ALICE,
    "bob-token": BOB,
}


class FakeClock:
    """Returns a strictly increasing naive UTC time, one second per call."""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def alice() -> Identity:
    return ALICE


@pytest.fixture
def bob() -> Identity:
    return BOB


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite database, created fresh for each test."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'forum.db'}")
    await create_tables(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db_session:
        yield db_session


@pytest.fixture
def lifecycle(session, clock) -> MessageLifecycle:
    return MessageLifecycle(MessageStore(session), ChannelStore(session), clock=clock)


@pytest.fixture
def deletion(session) -> DeletionPolicy:
    return DeletionPolicy(MessageStore(session))


async def _create_channel(session, title: str, creator: Identity, tags=("physics",)):
    store = ChannelStore(session)
    async with store.transaction():
        created = await store.create(
            title=title,
            description=f"{title} discussions",
            creator_id=creator.id,
            tag_names=list(tags),
        )
    return created


@pytest_asyncio.fixture
async def channel(session, alice):
    return await _create_channel(session, "Quantum foundations", alice)


@pytest_asyncio.fixture
async def other_channel(session, alice):
    return await _create_channel(session, "Moral philosophy", alice, tags=("philosophy",))


async def fake_validate_session(session_token: str, client=None) -> Identity:
    identity = TOKENS.get(session_token)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session token",
        )
    return identity


@pytest_asyncio.fixture
async def client(session_factory, clock, monkeypatch):
    """HTTP client against the app, one database session per request."""

    async def override_get_db():
        async with session_factory() as db_session:
            yield db_session

    def override_lifecycle(db_session: AsyncSession = Depends(get_db)):
        return MessageLifecycle(MessageStore(db_session), ChannelStore(db_session), clock=clock)

    monkeypatch.setattr(middleware.auth, "validate_session", fake_validate_session)
    reset_rate_limits()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[messages_router.get_lifecycle] = override_lifecycle

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client

    app.dependency_overrides.clear()
    reset_rate_limits()
