"""
Unit tests for reconcile() against an in-memory recording store.

Tests cover:
- One lookup and one insert-or-update per entry, then a single commit
- Update in place vs. insert vs. unchanged classification
- Catalog left untouched
- Ambiguous catalogs rejected before the store is called
- Rollback and propagation of store failures
- Unique violations told apart from other integrity errors
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError

from database.models import Award, AwardType
from database.reconciliation import (
    AmbiguousKeyError,
    KeySelector,
    SQLAlchemyStore,
    StoreUnavailableError,
    is_unique_violation,
    reconcile,
)

AWARD_KEY = KeySelector(Award, ("year", "name", "award_type", "category"))


class RecordingStore:
    """Store keeping rows in a list and recording every call."""

    def __init__(self):
        self.rows: list = []
        self.calls: list[str] = []

    async def lookup(self, model, criteria):
        self.calls.append("lookup")
        for row in self.rows:
            if all(getattr(row, name) == value for name, value in criteria.items()):
                return row
        return None

    async def insert(self, model, values):
        self.calls.append("insert")
        row = model(**values)
        row.id = len(self.rows) + 1
        self.rows.append(row)
        return row.id

    async def update(self, record, values):
        self.calls.append("update")
        changed = False
        for name, value in values.items():
            if getattr(record, name) != value:
                setattr(record, name, value)
                changed = True
        return changed

    async def commit(self):
        self.calls.append("commit")

    async def rollback(self):
        self.calls.append("rollback")


def award(recipient="Alice", **overrides):
    data = {
        "year": 2015,
        "name": "Best Ensemble",
        "award_type": AwardType.WINNER,
        "category": "Play",
        "recipient": recipient,
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
class TestReconcileCalls:
    """Call pattern against the store."""

    async def test_empty_store_inserts_every_entry(self):
        store = RecordingStore()
        catalog = [award(), award(category="Musical")]

        result = await reconcile(catalog, AWARD_KEY, store)

        assert store.calls == ["lookup", "insert", "lookup", "insert", "commit"]
        assert (result.created, result.updated, result.unchanged) == (2, 0, 0)
        assert [row.id for row in store.rows] == [1, 2]

    async def test_rerun_updates_instead_of_inserting(self):
        store = RecordingStore()
        catalog = [award(), award(category="Musical")]
        await reconcile(catalog, AWARD_KEY, store)
        store.calls.clear()

        result = await reconcile(catalog, AWARD_KEY, store)

        assert store.calls == ["lookup", "update", "lookup", "update", "commit"]
        assert (result.created, result.updated, result.unchanged) == (0, 0, 2)
        assert len(store.rows) == 2

    async def test_changed_field_counts_as_updated(self):
        store = RecordingStore()
        await reconcile([award("Alice")], AWARD_KEY, store)

        result = await reconcile([award("Bob")], AWARD_KEY, store)

        assert result.updated == 1
        assert len(store.rows) == 1
        assert store.rows[0].id == 1
        assert store.rows[0].recipient == "Bob"

    async def test_empty_catalog_only_commits(self):
        store = RecordingStore()

        result = await reconcile([], AWARD_KEY, store)

        assert store.calls == ["commit"]
        assert result.total == 0

    async def test_id_keyed_selector_inserts_on_every_run(self):
        store = RecordingStore()
        naive = KeySelector(Award, ("id",))
        catalog = [award(), award(category="Musical")]

        await reconcile(catalog, naive, store)
        await reconcile(catalog, naive, store)

        assert len(store.rows) == 4


@pytest.mark.asyncio
class TestReconcileCatalog:
    """The input catalog is never modified."""

    async def test_dict_entries_unchanged(self):
        store = RecordingStore()
        entry = award()
        snapshot = dict(entry)

        await reconcile([entry], AWARD_KEY, store)

        assert entry == snapshot
        assert "id" not in entry

    async def test_instance_entries_stay_transient(self):
        store = RecordingStore()
        entry = Award(**award())

        await reconcile([entry], AWARD_KEY, store)

        assert entry.id is None
        assert inspect(entry).transient
        assert store.rows[0] is not entry

    async def test_instance_entry_only_sets_assigned_fields(self):
        store = RecordingStore()
        await reconcile([award("Alice")], AWARD_KEY, store)

        partial = Award(year=2015, name="Best Ensemble", award_type=AwardType.WINNER, category="Play")
        result = await reconcile([partial], AWARD_KEY, store)

        assert result.unchanged == 1
        assert store.rows[0].recipient == "Alice"

    async def test_non_business_field_rejected(self):
        store = RecordingStore()

        with pytest.raises(ValueError, match="id"):
            await reconcile([award(id=7)], AWARD_KEY, store)
        assert store.calls == []

    async def test_wrong_entry_type_rejected(self):
        store = RecordingStore()

        with pytest.raises(TypeError):
            await reconcile([("2015", "Best Ensemble")], AWARD_KEY, store)


@pytest.mark.asyncio
class TestReconcileFailures:
    """Fail-fast behavior."""

    async def test_ambiguous_catalog_never_touches_store(self):
        store = RecordingStore()
        catalog = [award("Alice"), award("Bob")]

        with pytest.raises(AmbiguousKeyError):
            await reconcile(catalog, AWARD_KEY, store)

        assert store.calls == []
        assert store.rows == []

    async def test_failure_mid_run_rolls_back_and_propagates(self):
        store = RecordingStore()
        store.insert = AsyncMock(side_effect=[1, StoreUnavailableError("connection lost")])

        with pytest.raises(StoreUnavailableError):
            await reconcile([award(), award(category="Musical")], AWARD_KEY, store)

        assert store.calls[-1] == "rollback"
        assert "commit" not in store.calls

    async def test_sqlalchemy_store_translates_operational_error(self):
        session = MagicMock()
        session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, ConnectionRefusedError("refused"))
        )
        session.rollback = AsyncMock()

        with pytest.raises(StoreUnavailableError):
            await reconcile([award()], AWARD_KEY, SQLAlchemyStore(session))

        session.rollback.assert_awaited_once()

    async def test_not_null_violation_is_not_a_constraint_conflict(self):
        session = MagicMock()
        session.execute = AsyncMock(return_value=MagicMock())
        session.execute.return_value.scalars.return_value.all.return_value = []
        session.flush = AsyncMock(
            side_effect=IntegrityError(
                "INSERT", {}, DriverError("NOT NULL constraint failed", sqlstate="23502")
            )
        )
        session.rollback = AsyncMock()

        with pytest.raises(IntegrityError):
            await reconcile([award()], AWARD_KEY, SQLAlchemyStore(session))

        session.rollback.assert_awaited_once()


class DriverError(Exception):
    """DBAPI error carrying the attributes real drivers set."""

    def __init__(self, message, sqlstate=None, sqlite_errorname=None):
        super().__init__(message)
        if sqlstate:
            self.sqlstate = sqlstate
        if sqlite_errorname:
            self.sqlite_errorname = sqlite_errorname


def integrity_error(message, **attrs) -> IntegrityError:
    return IntegrityError("INSERT INTO awards ...", {}, DriverError(message, **attrs))


class TestIsUniqueViolation:
    def test_postgres_unique_sqlstate(self):
        error = integrity_error("duplicate key value violates unique constraint", sqlstate="23505")

        assert is_unique_violation(error) is True

    def test_postgres_not_null_sqlstate(self):
        error = integrity_error('null value in column "season"', sqlstate="23502")

        assert is_unique_violation(error) is False

    def test_postgres_foreign_key_sqlstate(self):
        error = integrity_error("violates foreign key constraint", sqlstate="23503")

        assert is_unique_violation(error) is False

    def test_sqlite_unique_errorname(self):
        error = integrity_error(
            "UNIQUE constraint failed: productions.title, productions.season",
            sqlite_errorname="SQLITE_CONSTRAINT_UNIQUE",
        )

        assert is_unique_violation(error) is True

    def test_sqlite_not_null_errorname(self):
        error = integrity_error(
            "NOT NULL constraint failed: productions.season",
            sqlite_errorname="SQLITE_CONSTRAINT_NOTNULL",
        )

        assert is_unique_violation(error) is False

    def test_falls_back_to_message(self):
        assert is_unique_violation(integrity_error("UNIQUE constraint failed: awards.name"))
        assert not is_unique_violation(integrity_error("CHECK constraint failed: year"))
