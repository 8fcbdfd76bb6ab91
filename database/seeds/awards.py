"""
Seed script for awards table.

Populates the database with the awards and nominations listed on the
company's awards page.

An award row has no natural single-column identity: the same award name
recurs every year, across categories, for winners and nominees. The
alternate key is therefore a composite, read from AWARD_KEY_FIELDS
(default: year, name, award_type, category). The composite was chosen
from the awards on record so far; keep it in configuration so it can be
widened if two listed awards ever collide.
"""

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import Award, AwardType
from database.reconciliation import KeySelector, ReconcileResult
from database.seeds.base import run_seed
from shared.config import get_settings

AWARDS_DATA: list[dict[str, Any]] = [
    {
        "year": 2015,
        "name": "Best Ensemble",
        "award_type": AwardType.WINNER,
        "category": "Play",
        "recipient": "The Crucible company",
    },
    {
        "year": 2015,
        "name": "Best Director",
        "award_type": AwardType.NOMINEE,
        "category": "Play",
        "recipient": "Margaret Hale",
    },
    {
        "year": 2016,
        "name": "Best Production",
        "award_type": AwardType.WINNER,
        "category": "Musical",
        "recipient": "Into the Woods",
    },
    {
        "year": 2016,
        "name": "Best Production",
        "award_type": AwardType.NOMINEE,
        "category": "Play",
        "recipient": "Our Town",
    },
    {
        "year": 2016,
        "name": "Best Supporting Actress",
        "award_type": AwardType.NOMINEE,
        "category": "Musical",
        "recipient": "Laura Kim",
    },
    {
        "year": 2017,
        "name": "Best Set Design",
        "award_type": AwardType.WINNER,
        "category": "Play",
        "recipient": "Daniel Ortiz",
    },
    {
        "year": 2017,
        "name": "Best Ensemble",
        "award_type": AwardType.WINNER,
        "category": "Musical",
        "recipient": "Guys and Dolls company",
    },
]


def award_key() -> KeySelector:
    """Alternate-key selector for awards, from settings."""
    return KeySelector.from_setting(Award, get_settings().AWARD_KEY_FIELDS)


async def seed_awards(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> ReconcileResult:
    """
    Seed the awards table.

    Matches existing awards on the composite alternate key and updates
    them in place, so rerunning never duplicates an award.
    """
    return await run_seed(AWARDS_DATA, award_key(), session_factory)


if __name__ == "__main__":
    from shared.logging_config import configure_logging

    configure_logging()
    asyncio.run(seed_awards())
