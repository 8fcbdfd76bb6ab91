"""
Seed script for cast_members table.

Populates the database with the company members shown on the cast page.
"""

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import CastMember
from database.reconciliation import KeySelector, ReconcileResult
from database.seeds.base import run_seed

CAST_MEMBER_KEY = KeySelector(CastMember, ("name",))

CAST_MEMBERS_DATA: list[dict[str, Any]] = [
    {
        "name": "Margaret Hale",
        "bio": "Founding artistic director.",
        "headshot_path": "img/cast/margaret-hale.jpg",
        "year_joined": 2009,
        "is_active": True,
    },
    {
        "name": "Samuel Price",
        "bio": "Director and resident lighting designer.",
        "headshot_path": "img/cast/samuel-price.jpg",
        "year_joined": 2011,
        "is_active": True,
    },
    {
        "name": "Laura Kim",
        "bio": "Actor, singer and director of the 2025 Our Town revival.",
        "headshot_path": "img/cast/laura-kim.jpg",
        "year_joined": 2014,
        "is_active": True,
    },
    {
        "name": "Daniel Ortiz",
        "bio": "Set designer and carpenter.",
        "headshot_path": "img/cast/daniel-ortiz.jpg",
        "year_joined": 2016,
        "is_active": False,
    },
]


async def seed_cast_members(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ReconcileResult:
    """Seed the cast_members table, matching members by name."""
    return await run_seed(CAST_MEMBERS_DATA, CAST_MEMBER_KEY, session_factory)


if __name__ == "__main__":
    from shared.logging_config import configure_logging

    configure_logging()
    asyncio.run(seed_cast_members())
