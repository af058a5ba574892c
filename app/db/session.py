"""
Database Session Management with Connection Pooling

This module handles async database connections using SQLAlchemy's async engine.

Key Features:
- Engine configuration per backend (SQLite gets NullPool, others the default pool)
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions
- Schema bootstrap for local development (Alembic owns production schema)
"""

import logging
from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from app.core.setting import settings
from app.db import models  # noqa: F401  (registers tables on SQLModel.metadata)

logger = logging.getLogger(__name__)


def create_engine_for_url(database_url: str, **kwargs: Any) -> AsyncEngine:
    """
    Create an async engine configured for the database behind `database_url`.

    SQLite-specific configuration:
    - NullPool: a fresh connection per session (file-based, no pooling needed)
    - check_same_thread=False: Required for async SQLite operations
    """
    engine_kwargs: dict[str, Any] = {"echo": False}
    if database_url.startswith("sqlite"):
        engine_kwargs["poolclass"] = NullPool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_pre_ping"] = True
    engine_kwargs.update(kwargs)
    return create_async_engine(database_url, **engine_kwargs)


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    """Session factory used by requests, background tasks and maintenance."""
    return async_sessionmaker(
        bind,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


engine = create_engine_for_url(settings.DATABASE_URL)

async_session_maker = create_session_maker(engine)


async def init_db(bind: AsyncEngine) -> None:
    """Create any missing tables."""
    async with bind.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema ensured")


async def ping(session: AsyncSession) -> bool:
    """Return True when the database answers a trivial query."""
    try:
        await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.

    This function:
    - Creates a new async session from the application's session factory
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception
    - Closes session automatically (context manager handles it)
    """
    session_maker: async_sessionmaker = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
