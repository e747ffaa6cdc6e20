"""Shared test fixtures.

Provides an in-memory database, a fake Telegram Bot API served over real
HTTP, and an ASGI client with the app's dependencies pointed at both.
"""
import os
import time

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")

import httpx
import jwt
import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fake_telegram import FakeBotAPI, VALID_CHANNEL, VALID_TOKEN
from teledrive.config import settings
from teledrive.database import get_db
from teledrive.main import app
from teledrive.models import Base, Profile
from teledrive.routes.storage import get_gateway
from teledrive.services.credentials import TelegramCredentials
from teledrive.services.storage_gateway import StorageGateway
from teledrive.services.telegram_transport import TelegramTransport

PRINCIPAL_ID = "7f1c2d9e-user-one"
OTHER_PRINCIPAL_ID = "0a9b8c7d-user-two"
UNCONFIGURED_PRINCIPAL_ID = "5e5e5e5e-no-setup"


def make_token(sub: str = PRINCIPAL_ID, expires_in: int = 300, **extra) -> str:
    now = int(time.time())
    claims = {
        "sub": sub,
        "aud": settings.AUTH_JWT_AUDIENCE,
        "iat": now,
        "exp": now + expires_in,
        **extra,
    }
    return jwt.encode(claims, settings.AUTH_JWT_SECRET, algorithm="HS256")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        session.add_all([
            Profile(id=PRINCIPAL_ID, bot_token=VALID_TOKEN, channel_id=VALID_CHANNEL,
                    telegram_setup_completed=True),
            Profile(id=OTHER_PRINCIPAL_ID, bot_token=VALID_TOKEN, channel_id=VALID_CHANNEL,
                    telegram_setup_completed=True),
            Profile(id=UNCONFIGURED_PRINCIPAL_ID),
        ])
        await session.commit()

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Telegram
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def telegram_api():
    fake = FakeBotAPI()
    server = TestServer(fake.make_app())
    await server.start_server()
    fake.base_url = str(server.make_url("")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
def credentials():
    return TelegramCredentials(bot_token=VALID_TOKEN, channel_id=VALID_CHANNEL)


@pytest.fixture
def transport(telegram_api):
    return TelegramTransport(base_url=telegram_api.base_url, timeout=5)


@pytest.fixture
def gateway(transport):
    return StorageGateway(transport)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, gateway):
    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}
