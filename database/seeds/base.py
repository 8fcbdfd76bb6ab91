"""
Shared runner for the seed modules.

Each seed module declares a catalog and a key selector and hands them to
run_seed(), which reconciles them inside one session.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.reconciliation import (
    ConstraintViolationError,
    KeySelector,
    ReconcileResult,
    SQLAlchemyStore,
    Store,
    reconcile,
)

logger = logging.getLogger(__name__)


async def run_seed(
    catalog: Sequence[Any],
    key_selector: KeySelector,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    store_factory: Callable[[AsyncSession], Store] = SQLAlchemyStore,
) -> ReconcileResult:
    """
    Reconcile a catalog in a fresh session.

    If another process inserted one of our entities between our lookup and
    our insert, the unique constraint rejects the insert. That means the row
    is already seeded, so the run is repeated once and now updates it. A
    violation for a key outside this catalog is re-raised.

    Args:
        catalog: Seed entries
        key_selector: Alternate-key policy for the entity type
        session_factory: Session factory (default: AsyncSessionLocal)
        store_factory: Wraps a session in a Store

    Returns:
        ReconcileResult of the successful run
    """
    if session_factory is None:
        from database.connection import AsyncSessionLocal

        session_factory = AsyncSessionLocal

    catalog_keys = {key_selector(entry) for entry in catalog}

    try:
        async with session_factory() as session:
            return await reconcile(catalog, key_selector, store_factory(session))
    except ConstraintViolationError as e:
        if e.key not in catalog_keys:
            raise
        logger.warning(
            f"{key_selector.entity} {e.key!r} was inserted concurrently; reconciling again",
            extra={"entity": key_selector.entity, "alternate_key": e.key},
        )

    async with session_factory() as session:
        return await reconcile(catalog, key_selector, store_factory(session))
