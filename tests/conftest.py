"""Shared pytest fixtures for SubletConnect tests.

Service and API tests run against a fresh in-memory SQLite database built
from the ORM metadata for every test.
"""
import os

# Settings are read at import time by subletconnect.database.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("GCS_BUCKET_NAME", "")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from subletconnect.database import Base, get_db
import subletconnect.models  # noqa: F401  (registers every table)
from subletconnect.models.account import Account
from subletconnect.models.enums import AccountMode
from subletconnect.models.listing import Listing


@pytest.fixture
async def async_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(
        bind=async_engine, expire_on_commit=False, class_=AsyncSession
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession):
    """HTTP client bound to the app with ``get_db`` routed to the test
    session (commit on success, rollback on error, like the real one)."""
    from subletconnect.main import app

    async def _override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Factories ─────────────────────────────────────────────────────────────────


@pytest.fixture
def make_account(db_session: AsyncSession):
    counter = {"n": 0}

    async def _make(mode: str = AccountMode.LOOKING.value, **overrides) -> Account:
        counter["n"] += 1
        n = counter["n"]
        fields = {
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "full_name": f"User {n}",
            "age": 22,
            "gender": "Female" if n % 2 else "Male",
            "mode": mode,
            "search_location": "Guelph, ON",
        }
        fields.update(overrides)
        account = Account(**fields)
        db_session.add(account)
        await db_session.flush()
        return account

    return _make


@pytest.fixture
def make_listing(db_session: AsyncSession):
    async def _make(owner: Account, **overrides) -> Listing:
        fields = {
            "owner_id": owner.id,
            "title": "Room near campus",
            "price": 850,
            "type": "room",
            "available_date": "2025-09-01",
            "location": "Guelph, ON",
        }
        fields.update(overrides)
        listing = Listing(**fields)
        db_session.add(listing)
        await db_session.flush()
        return listing

    return _make
