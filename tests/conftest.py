# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("POSTGRES_URL", "sqlite+aiosqlite://")
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("LOGIN_URL", "https://login.example.com/login")

from magic_link_engine.core.postgres import Base
from magic_link_engine.core.security import ActionTokenSigner
from magic_link_engine.models import ClientORM, UserORM, UserStatus
from magic_link_engine.tokens.codec import CredentialCodec

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_SECRET = "unit-test-signing-key-0123456789abcdef"
FIXED_NOW = 1_700_000_000


class FixedClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: int = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FakeRedis:
    """The handful of redis.asyncio commands the engine uses, kept in a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self.store.get(key)

    async def set(
        self, key: str, value: str, nx: bool = False, ex: int | None = None
    ) -> bool | None:
        if nx and key in self.store:
            return None
        self.store[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def setex(self, key: str, seconds: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = seconds
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def ping(self) -> bool:
        return True


class RecordingAudit:
    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def log(self, **event: Any) -> None:
        self.events.append(event)

    def actions(self) -> list[str]:
        return [event["action"] for event in self.events]


class RecordingEmailProvider:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.sent: list[dict[str, Any]] = []

    async def send_email(self, to_emails: list[str], subject: str, html_content: str) -> bool:
        self.sent.append({"to": to_emails, "subject": subject, "html": html_content})
        return self.succeed


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture()
def signer() -> ActionTokenSigner:
    return ActionTokenSigner(secret_key=TEST_SECRET)


@pytest.fixture()
def codec(signer: ActionTokenSigner, clock: FixedClock) -> CredentialCodec:
    return CredentialCodec(signer=signer, clock=clock, ttl_seconds=900)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture()
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest_asyncio.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session: AsyncSession) -> UserORM:
    user = UserORM(
        id="u1",
        email="alice@example.com",
        first_name="Alice",
        status=UserStatus.PENDING_VERIFICATION,
        is_email_verified=False,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> ClientORM:
    client = ClientORM(
        client_id="app1",
        name="Example App",
        redirect_uris=["https://app/cb"],
        base_url=None,
    )
    db_session.add(client)
    await db_session.commit()
    return client
