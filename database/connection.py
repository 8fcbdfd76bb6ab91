"""
Database connection module.

Builds the async engine and session factory from DATABASE_URL.

Usage:
    from database.connection import get_async_session

    async with get_async_session() as session:
        result = await session.execute(select(Production))
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from database.models import Award, Base
from database.reconciliation import KeySelector
from shared.config import get_settings

logger = logging.getLogger(__name__)

AWARD_KEY_INDEX = "uq_awards_alternate_key"


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options for the configured driver."""
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection, otherwise every checkout sees an empty database
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {"pool_pre_ping": True}


settings = get_settings()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_options(settings.DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a session that is closed when the block exits.

    Uncommitted work is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        yield session


def award_key_index_ddl(key_selector: KeySelector, dialect: Dialect) -> str:
    """
    CREATE UNIQUE INDEX statement over the configured award key.

    The awards table carries no constraint of its own because its key is
    configuration (AWARD_KEY_FIELDS); this index enforces it per deployment.
    """
    quote = dialect.identifier_preparer.quote
    mapper = inspect(Award)
    columns = ", ".join(quote(mapper.columns[name].name) for name in key_selector.fields)
    return (
        f"CREATE UNIQUE INDEX IF NOT EXISTS {quote(AWARD_KEY_INDEX)} "
        f"ON {quote(Award.__tablename__)} ({columns})"
    )


async def create_award_key_index() -> None:
    """
    Enforce AWARD_KEY_FIELDS with a unique index on awards.

    Fails with IntegrityError while the table still holds duplicates; run
    database.scripts.collapse_duplicates first. The index keeps its name
    when AWARD_KEY_FIELDS changes, so drop it before changing the key.
    """
    selector = KeySelector.from_setting(Award, get_settings().AWARD_KEY_FIELDS)
    async with engine.begin() as conn:
        await conn.execute(text(award_key_index_ddl(selector, conn.dialect)))
    logger.info(f"Award key index covers: {', '.join(selector.fields)}")


async def create_tables() -> None:
    """
    Create any missing tables and the award key index.

    Used by tests and local development; deployed schemas are managed
    outside this service.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created (if missing)")
    await create_award_key_index()
