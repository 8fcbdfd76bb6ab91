"""
Seed script for productions table.

Populates the database with the company's past and current productions.
A production is identified by (title, season): revivals of a title in a
later season are separate productions.
"""

import asyncio
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import Production
from database.reconciliation import KeySelector, ReconcileResult
from database.seeds.base import run_seed

PRODUCTION_KEY = KeySelector(Production, ("title", "season"))

PRODUCTIONS_DATA: list[dict[str, Any]] = [
    {
        "title": "The Crucible",
        "season": "2014-2015",
        "playwright": "Arthur Miller",
        "director": "Margaret Hale",
        "venue": "Main Stage",
        "opening_date": date(2015, 3, 6),
        "closing_date": date(2015, 3, 22),
        "is_published": True,
    },
    {
        "title": "Our Town",
        "season": "2015-2016",
        "playwright": "Thornton Wilder",
        "director": "Samuel Price",
        "venue": "Main Stage",
        "opening_date": date(2015, 10, 9),
        "closing_date": date(2015, 10, 25),
        "is_published": True,
    },
    {
        "title": "Into the Woods",
        "season": "2015-2016",
        "playwright": "Stephen Sondheim, James Lapine",
        "director": "Margaret Hale",
        "venue": "Main Stage",
        "opening_date": date(2016, 4, 1),
        "closing_date": date(2016, 4, 24),
        "is_published": True,
    },
    {
        "title": "Guys and Dolls",
        "season": "2016-2017",
        "playwright": "Frank Loesser, Jo Swerling, Abe Burrows",
        "director": "Samuel Price",
        "venue": "Main Stage",
        "opening_date": date(2017, 2, 10),
        "closing_date": date(2017, 3, 5),
        "is_published": True,
    },
    {
        "title": "Our Town",
        "season": "2024-2025",
        "playwright": "Thornton Wilder",
        "director": "Laura Kim",
        "venue": "Studio Theater",
        "opening_date": date(2025, 2, 14),
        "closing_date": date(2025, 3, 2),
        "description": "A tenth-anniversary revival in the round.",
        "is_published": True,
    },
]


async def seed_productions(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ReconcileResult:
    """Seed the productions table, updating existing productions in place."""
    return await run_seed(PRODUCTIONS_DATA, PRODUCTION_KEY, session_factory)


if __name__ == "__main__":
    from shared.logging_config import configure_logging

    configure_logging()
    asyncio.run(seed_productions())
