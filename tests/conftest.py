"""
Test configuration and fixtures.

This module sets up test environment and provides shared fixtures for all tests.
"""

import os

import pytest
from sqlalchemy import func, select

# Run every test against an in-memory SQLite database
# Must be set BEFORE any imports of database.connection or shared.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["ADMIN_JWT_SECRET"] = "test-secret-0123456789abcdef0123456789abcdef"
os.environ["ADMIN_ROLE"] = "Admin"
os.environ["AWARD_KEY_FIELDS"] = "year,name,award_type,category"


@pytest.fixture(scope="function", autouse=True)
async def cleanup_engine():
    """
    Dispose the database engine after each test.

    Each test runs in its own event loop; disposing releases the shared
    connection so the next test starts with a fresh in-memory database.
    """
    yield
    from database.connection import engine

    await engine.dispose()


@pytest.fixture
async def setup_database():
    """Create all tables in a fresh in-memory database."""
    from database.connection import engine
    from database.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield


@pytest.fixture
def count_rows():
    """Return an async helper counting the rows of a model's table."""
    from database.connection import AsyncSessionLocal

    async def _count(model) -> int:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count
