"""
Seed data orchestration module.

Provides seed_all() function to execute all seed scripts in order.
Can be run standalone: python -m database.seeds
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.reconciliation import ReconcileResult
from database.seeds.awards import seed_awards
from database.seeds.cast_members import seed_cast_members
from database.seeds.productions import seed_productions

logger = logging.getLogger(__name__)


async def seed_all(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> list[ReconcileResult]:
    """
    Execute all seed scripts.

    Order:
    1. productions - independent
    2. cast_members - independent
    3. awards - independent (recipients are free text)

    Stops at the first failure; each seed commits on its own, so a rerun
    picks up where the failed one stopped.
    """
    logger.info("Starting database seeding...")

    results = [
        await seed_productions(session_factory),
        await seed_cast_members(session_factory),
        await seed_awards(session_factory),
    ]

    logger.info(
        "Database seeding complete: "
        + ", ".join(f"{r.entity}={r.total}" for r in results)
    )
    return results
