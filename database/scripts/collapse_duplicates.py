"""
Script to collapse duplicate reference rows left by id-keyed seeding.

Earlier seeding matched rows on the database id, which catalog entries
never carry, so every startup inserted another copy of every award (and
of any other entity seeded the same way). This script:
1. Groups the rows of each entity by its seeding alternate key
2. Keeps the oldest row (lowest id) of each group
3. Deletes the remaining copies
4. Adds the unique index over the award key so copies cannot return

Run with:
    DATABASE_URL="postgresql+asyncpg://..." python -m database.scripts.collapse_duplicates [--dry-run]

IMPORTANT: Back up the database before running without --dry-run.
"""

import argparse
import asyncio
import logging
from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database.connection import create_award_key_index, get_async_session
from database.reconciliation import AlternateKey, KeySelector
from database.seeds.awards import award_key
from database.seeds.cast_members import CAST_MEMBER_KEY
from database.seeds.productions import PRODUCTION_KEY

logger = logging.getLogger(__name__)


async def collapse_duplicates(
    session: AsyncSession,
    key_selector: KeySelector,
    dry_run: bool = False,
) -> int:
    """
    Delete all but the oldest row per alternate key.

    Args:
        session: Open session; the caller commits
        key_selector: Alternate key to group rows by
        dry_run: Report duplicates without deleting them

    Returns:
        Number of rows deleted (or that would be deleted)
    """
    model = key_selector.model
    result = await session.execute(select(model).order_by(model.id))
    rows = result.scalars().all()

    groups: dict[AlternateKey, list] = defaultdict(list)
    for row in rows:
        groups[key_selector(row)].append(row)

    removed = 0
    for key, group in groups.items():
        if len(group) < 2:
            continue
        keeper, duplicates = group[0], group[1:]
        logger.info(
            f"{key_selector.entity} {key!r}: keeping id={keeper.id}, "
            f"removing ids={[row.id for row in duplicates]}",
            extra={"entity": key_selector.entity, "alternate_key": key},
        )
        removed += len(duplicates)
        if not dry_run:
            for row in duplicates:
                await session.delete(row)

    if not dry_run:
        await session.flush()
    return removed


async def collapse_all(dry_run: bool = False) -> dict[str, int]:
    """Collapse duplicates for every seeded entity in one transaction, then index the award key."""
    selectors = [PRODUCTION_KEY, CAST_MEMBER_KEY, award_key()]
    summary: dict[str, int] = {}

    async with get_async_session() as session:
        for selector in selectors:
            summary[selector.entity] = await collapse_duplicates(session, selector, dry_run)
        if dry_run:
            await session.rollback()
        else:
            await session.commit()

    verb = "Would remove" if dry_run else "Removed"
    for entity, count in summary.items():
        logger.info(f"{verb} {count} duplicate {entity} rows")

    if not dry_run:
        await create_award_key_index()
    return summary


if __name__ == "__main__":
    from shared.logging_config import configure_logging

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--dry-run", action="store_true", help="report without deleting")
    args = parser.parse_args()

    configure_logging()
    asyncio.run(collapse_all(dry_run=args.dry_run))
