"""
Pytest fixtures: in-memory database, HTTP client, users, tokens and events.

Each test gets a fresh in-memory SQLite database (aiosqlite) with the full
schema, so tests are isolated and need no running Postgres or Redis.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, time, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ticketing.core.config import get_settings
from ticketing.core.security import create_access_token, hash_password
from ticketing.db.base import Base
from ticketing.db.session import get_db
from ticketing.main import app
from ticketing.models import Category, Event, User, Venue

TEST_DATABASE_URL = "sqlite+aiosqlite://"
API = "/api/v1"


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Send uploaded images to a per-test directory."""
    monkeypatch.setattr(get_settings(), "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db_session: AsyncSession, email: str, username: str) -> User:
    user = User(email=email, username=username, hashed_password=hash_password("testpassword123"))
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "test@example.com", "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "other@example.com", "otheruser")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def category(db_session: AsyncSession) -> Category:
    category = Category(name="Music", description="Live music")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest_asyncio.fixture
async def venue(db_session: AsyncSession) -> Venue:
    venue = Venue(name="Open Air Theatre", address="Tundikhel", city="Kathmandu", capacity=5000)
    db_session.add(venue)
    await db_session.commit()
    await db_session.refresh(venue)
    return venue


@pytest.fixture
def event_form(category: Category, venue: Venue):
    """Build a valid create-form payload, with overrides; None removes a field."""

    def build(**overrides) -> dict:
        data = {
            "title": "Music Night",
            "description": "An evening of live music",
            "category_id": str(category.id),
            "venue_id": str(venue.id),
            "start_date": "2025-06-01",
            "start_time": "18:00",
            "total_seats": "100",
            "price": "0",
        }
        data.update(overrides)
        return {key: value for key, value in data.items() if value is not None}

    return build


async def _make_event(db_session: AsyncSession, organizer: User, category: Category, venue: Venue, **fields) -> Event:
    start = date.today() + timedelta(days=30)
    values = dict(
        title="Test Concert",
        description="A test event",
        category_id=category.id,
        venue_id=venue.id,
        organizer_id=organizer.id,
        start_date=start,
        end_date=start + timedelta(days=1),
        start_time=time(19, 0),
        end_time=time(22, 30),
        price=1500,
        currency="NPR",
        total_seats=100,
        available_seats=100,
        status="upcoming",
        tags=["music", "live"],
        images=[],
    )
    values.update(fields)
    event = Event(**values)
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, test_user: User, category: Category, venue: Venue) -> Event:
    """An upcoming event with 100 seats owned by test_user."""
    return await _make_event(db_session, test_user, category, venue)


@pytest_asyncio.fixture
async def other_event(db_session: AsyncSession, other_user: User, category: Category, venue: Venue) -> Event:
    return await _make_event(db_session, other_user, category, venue, title="Someone Else's Gig")


@pytest_asyncio.fixture
async def sold_out_event(db_session: AsyncSession, test_user: User, category: Category, venue: Venue) -> Event:
    return await _make_event(
        db_session, test_user, category, venue,
        title="Sold Out Show", total_seats=50, available_seats=0,
    )
