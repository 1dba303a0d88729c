"""
Muffin Vault Backend — Database Session Management
===================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   The engine is created by init_engine() during application startup,
       after the configuration has been validated. Each request gets its own
       session, committed when the handler succeeds and rolled back when it
       raises.
Who:   Route handlers receive sessions via Depends(get_db_session).

Transactions:
    The request session is the only transaction boundary the service has.
    The purchase flow relies on it: when any step after the note has been
    marked displayed raises, the rollback here undoes that write too.

Connection Pooling:
    pool_size / max_overflow come from settings (PostgreSQL only; SQLite
    URLs used in tests get SQLAlchemy's default pool for the dialect).
    pool_pre_ping validates connections before use.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from muffin_vault.config import settings

logger = logging.getLogger(__name__)

# ── Engine & Session Factory ──────────────────────────────────────────────
# Populated by init_engine(); None until the application has started.
engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test suite uses to build an in-memory schema.
    """
    pass


def init_engine(url: Optional[URL] = None) -> AsyncEngine:
    """
    Create the engine and session factory.

    Args:
        url: Connection URL; defaults to settings.sqlalchemy_url (the
             configured endpoint with the access key as password).

    Returns:
        The module-level engine, also stored for get_db_session().
    """
    global engine, async_session_factory

    url = url or settings.sqlalchemy_url
    engine_kwargs = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if url.get_backend_name() != "sqlite":
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )

    engine = create_async_engine(url, **engine_kwargs)
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info(
        "Database engine created for %s",
        url.render_as_string(hide_password=True),
    )
    return engine


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back, then re-raises for the global handlers
        5. Always: closes the session (returns connection to pool)

    Raises:
        RuntimeError: init_engine() has not run (application not started).
    """
    if async_session_factory is None:
        raise RuntimeError("Database engine is not initialized; call init_engine() first")

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close all pooled connections; called during application shutdown."""
    global engine, async_session_factory

    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    async_session_factory = None
