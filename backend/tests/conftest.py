"""
Muffin Vault Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before the application is imported.
       Service tests use either a mocked AsyncSession or a real in-memory
       SQLite database built from the ORM metadata; HTTP tests drive the app
       through httpx's ASGITransport with the session dependency overridden.

Fixtures:
    ├── mock_db_session: AsyncMock standing in for AsyncSession
    ├── db_engine:       in-memory SQLite engine with all tables created
    ├── session_factory: async_sessionmaker bound to db_engine
    ├── db_session:      one session on db_engine (service integration tests)
    ├── seed:            inserts the balance row and notes
    └── test_client:     httpx AsyncClient talking to the app
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

_static_dir = Path(tempfile.mkdtemp(prefix="muffin_vault_static_"))
(_static_dir / "index.html").write_text("<html><body>Muffin Vault</body></html>", encoding="utf-8")

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DATABASE_KEY"] = "test-key-not-real"
os.environ["STATIC_DIR"] = str(_static_dir)
os.environ["LOG_LEVEL"] = "WARNING"

from muffin_vault.database import Base, get_db_session  # noqa: E402
from muffin_vault.models.muffins import BALANCE_RECORD_ID, MuffinBalance  # noqa: E402
from muffin_vault.models.note import Note  # noqa: E402

BASE_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Mocked Session
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        result = MagicMock()
        result.one_or_none.return_value = row
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real (SQLite) Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite shared by every session of one test (StaticPool)."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory):
    """
    Insert the balance record and notes.

    Usage:
        ids = await seed(balance=1000, notes=["a", "b", ("c", True)])

    Each note is a text or a (text, displayed) tuple; created_at increases by
    one minute per note in list order. Returns the inserted note ids.
    """

    async def _seed(
        balance: Optional[int] = 0,
        high_score: Optional[int] = 0,
        notes: Iterable = (),
        with_record: bool = True,
    ) -> list:
        async with session_factory() as session:
            if with_record:
                session.add(
                    MuffinBalance(id=BALANCE_RECORD_ID, balance=balance, high_score=high_score)
                )
            rows = []
            for index, spec in enumerate(notes):
                text, displayed = spec if isinstance(spec, tuple) else (spec, False)
                note = Note(
                    text=text,
                    displayed=displayed,
                    created_at=BASE_TIME + timedelta(minutes=index),
                )
                session.add(note)
                rows.append(note)
            await session.commit()
            return [note.id for note in rows]

    return _seed


@pytest.fixture
def read_store(session_factory):
    """Snapshot of the store: (balance, high_score, hidden texts, displayed texts)."""
    from sqlalchemy import select

    async def _read() -> Tuple[Optional[int], Optional[int], list, list]:
        async with session_factory() as session:
            record = await session.get(MuffinBalance, BALANCE_RECORD_ID)
            notes = (await session.execute(select(Note.text, Note.displayed))).all()
        hidden = sorted(n.text for n in notes if not n.displayed)
        shown = sorted(n.text for n in notes if n.displayed)
        if record is None:
            return None, None, hidden, shown
        return record.balance, record.high_score, hidden, shown

    return _read


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient routed straight into the app.

    get_db_session is replaced by an equivalent dependency bound to the
    in-memory database (commit on success, rollback on error).
    """
    from muffin_vault.main import app

    async def _override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
