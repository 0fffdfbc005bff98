"""
SubletConnect: database engine, sessions and shared column helpers.

The engine is built once at import time:

* Cloud Run talks to Cloud SQL through ``cloud-sql-python-connector`` with
  IAM auth, when ``CLOUD_SQL_USE_UNIX_SOCKET`` is set and an instance
  connection name is configured.
* Everything else (local Postgres, SQLite for tooling) uses ``DATABASE_URL``.

Routes receive a session through ``get_db``; the unit of work commits when
the handler returns and rolls back when it raises.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import JSON
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from subletconnect.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by the accounts, listings and swipe tables."""


# Postgres only; SQLite pools reject these arguments.
_SERVER_POOL = dict(
    pool_size=10,
    max_overflow=5,
    pool_timeout=30,
    pool_recycle=1800,
    pool_pre_ping=True,
)


def _cloud_sql_creator(settings):
    from google.cloud.sql.connector import Connector

    connector = Connector()

    async def connect():
        return await connector.connect_async(
            settings.CLOUD_SQL_INSTANCE_CONNECTION,
            "asyncpg",
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            db=settings.DB_NAME,
            enable_iam_auth=True,
        )

    return connect


def _normalise_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def build_engine() -> AsyncEngine:
    settings = get_settings()
    echo = settings.LOG_LEVEL == "DEBUG"

    if settings.CLOUD_SQL_USE_UNIX_SOCKET and settings.CLOUD_SQL_INSTANCE_CONNECTION:
        logger.info("Connecting to Cloud SQL instance %s", settings.CLOUD_SQL_INSTANCE_CONNECTION)
        return create_async_engine(
            "postgresql+asyncpg://",
            async_creator=_cloud_sql_creator(settings),
            echo=echo,
            **_SERVER_POOL,
        )

    url = _normalise_url(settings.DATABASE_URL)
    pool = {} if url.startswith("sqlite") else _SERVER_POOL
    logger.info("Connecting with DATABASE_URL (dialect %s)", url.split(":", 1)[0])
    return create_async_engine(url, echo=echo, **pool)


engine = build_engine()

async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and tooling).
JSONDocument = JSON().with_variant(postgresql.JSONB(), "postgresql")


def utcnow() -> datetime:
    """Timezone-aware ``now`` used for Python-side timestamp defaults."""
    return datetime.now(timezone.utc)


def dialect_insert(db_session: AsyncSession, table):
    """``INSERT`` construct with ``on_conflict_do_nothing`` for the dialect
    the session is bound to.  Used for every insert-if-absent write."""
    dialect = db_session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise RuntimeError(f"Unsupported database dialect for conditional insert: {dialect}")
