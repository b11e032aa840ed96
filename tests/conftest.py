"""
Grammable — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) with the
       schema created from Base.metadata; the app's get_db_session
       dependency is overridden to use it.

Fixtures:
    ├── db_engine / session_factory: per-test database
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── create_user / create_gram: record factories
    ├── find_gram / count_grams: read back through a fresh session
    ├── test_client: HTTPX AsyncClient bound to the FastAPI app
    ├── sign_in: put a session cookie for a user on test_client
    └── png_bytes / sample_image_bytes: picture upload payloads
"""

import base64
import itertools
import os
import tempfile
from datetime import datetime, timezone
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any grammable import reads them
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="grammable_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production-0123456789"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from grammable.config import settings
from grammable.database import Base, get_db_session
from grammable.models import Gram, User
from grammable.services.auth_service import create_access_token, hash_password

DEFAULT_PASSWORD = "secretPassword"

# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'grammable.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session for service unit tests.

    Usage:
        mock_db_session.get.return_value = gram
        result = await gram_service.get_gram(mock_db_session, str(gram.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def create_user(session_factory):
    sequence = itertools.count(1)

    async def _create(email: Optional[str] = None, password: str = DEFAULT_PASSWORD) -> User:
        async with session_factory() as session:
            user = User(
                email=email or f"dummyEmail{next(sequence)}@gmail.com",
                hashed_password=hash_password(password),
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest.fixture
def create_gram(session_factory, create_user):
    async def _create(
        message: str = "hello",
        user: Optional[User] = None,
        picture: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Gram:
        if user is None:
            user = await create_user()
        async with session_factory() as session:
            gram = Gram(message=message, user_id=user.id, picture=picture)
            if created_at is not None:
                gram.created_at = created_at
            session.add(gram)
            await session.commit()
            return gram

    return _create


@pytest.fixture
def find_gram(session_factory):
    """Looks a gram up in a fresh session, so changes made by requests are visible."""
    async def _find(gram_id) -> Optional[Gram]:
        async with session_factory() as session:
            return await session.get(Gram, gram_id)

    return _find


@pytest.fixture
def latest_gram(session_factory):
    async def _latest() -> Optional[Gram]:
        async with session_factory() as session:
            result = await session.execute(
                select(Gram).order_by(Gram.created_at.desc()).limit(1)
            )
            return result.scalar_one_or_none()

    return _latest


@pytest.fixture
def count_grams(session_factory):
    async def _count() -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count(Gram.id)))
            return result.scalar() or 0

    return _count


# ══════════════════════════════════════════════════════════════════════════
# HTTP
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app over ASGITransport.
    Redirects are not followed, so tests can assert on 302 + Location.
    """
    from grammable.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def sign_in(test_client):
    def _sign_in(user: User) -> None:
        test_client.cookies.set(settings.session_cookie_name, create_access_token(user.id))

    return _sign_in


# ══════════════════════════════════════════════════════════════════════════
# Upload payloads
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def png_bytes():
    return base64.b64decode(PNG_BASE64)


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def utc_now():
    return datetime.now(timezone.utc)
