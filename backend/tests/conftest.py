"""
Pytest fixtures for test database, client, and authentication.

Each test gets a fresh SQLite database file (or TEST_DATABASE_URL when set,
e.g. a PostgreSQL test database) and a client whose DB dependency is
overridden with the test session.
"""

import os

# Must be set before the application settings are first read
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./gamerent_dev.db")

from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from gamerent.core.security import create_access_token, hash_password
from gamerent.db.base import Base
from gamerent.db.session import get_db
from gamerent.main import app
from gamerent.models.game import Game, GameImage, GameRule
from gamerent.models.user import User


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables on a per-test database, then drop them for isolation."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Independent sessions on the test database, one per concurrent caller."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """User A."""
    return await _create_user(db_session, "testuser", "test@example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    """User B."""
    return await _create_user(db_session, "otheruser", "other@example.com")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def other_auth_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest.fixture
def make_game(db_session: AsyncSession):
    """Factory creating a game with images and rules."""

    async def _make_game(
        name: str = "Catan",
        stock: int = 1,
        price: str = "35.00",
        available: bool = True,
    ) -> Game:
        game = Game(
            name=name,
            category="Strategy board game",
            summary=f"{name} summary",
            price=Decimal(price),
            players="3-4 players",
            duration="60-120 minutes",
            stock=stock,
            available=available,
        )
        game.images = [
            GameImage(image_url=f"/images/{name.lower()}-1.jpg", display_order=0),
            GameImage(image_url=f"/images/{name.lower()}-2.jpg", display_order=1),
        ]
        game.rules = [
            GameRule(rule_text="Set up the board.", rule_order=0),
            GameRule(rule_text="Roll the dice.", rule_order=1),
        ]
        db_session.add(game)
        await db_session.commit()
        await db_session.refresh(game)
        return game

    return _make_game


@pytest_asyncio.fixture
async def test_game(make_game) -> Game:
    """A sellable game with a single copy."""
    return await make_game()
