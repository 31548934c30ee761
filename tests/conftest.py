"""
Pytest Configuration and Fixtures

Shared test fixtures for unit and API tests.

Tests run against in-memory SQLite (aiosqlite) by default; set
TEST_DATABASE_URL to run them against PostgreSQL instead.
"""

import os

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import configure_mappers
from sqlalchemy.pool import StaticPool

from attendline.core.models import Base, Guardian, GuardianStudent, Student

# Ensure all mappers are configured
configure_mappers()

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture
async def async_engine():
    """Create async engine with a fresh schema."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    else:
        engine = create_async_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(async_engine) -> AsyncSession:
    """Create database session for testing."""
    session_factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def guardian(db_session: AsyncSession) -> Guardian:
    """Registered guardian without children."""
    guardian = Guardian(name="田中花子", line_user_id="U-guardian-1")
    db_session.add(guardian)
    await db_session.commit()
    return guardian


@pytest.fixture
async def child(db_session: AsyncSession, guardian: Guardian) -> Student:
    """Child linked to the guardian fixture."""
    student = Student(name="一郎", grade="小3")
    db_session.add(student)
    await db_session.commit()
    db_session.add(GuardianStudent(guardian_id=guardian.id, student_id=student.id))
    await db_session.commit()
    return student
