"""
Idempotent reconciliation of reference-data catalogs into the database.

A catalog is a fixed list of entries (plain dicts, or transient model
instances) describing reference rows such as awards or productions. Each
entry is matched against the database by its alternate key, a tuple of
business fields that identifies the logical entity without the
database-assigned id. A match is updated in place; a miss is inserted.
Running reconcile() any number of times therefore leaves exactly one row
per logical entity.

The alternate key must never include the primary key: catalog entries
have no id until the database assigns one, so an id-based lookup misses
on every run and each run inserts another copy of every entry.

Usage:
    selector = KeySelector(Award, ("year", "name", "award_type", "category"))
    async with AsyncSessionLocal() as session:
        result = await reconcile(AWARDS_DATA, selector, SQLAlchemyStore(session))
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

AlternateKey = tuple[Any, ...]


# ============================================================================
# Errors
# ============================================================================


class SeedingError(Exception):
    """Base class for reconciliation failures."""

    pass


class AmbiguousKeyError(SeedingError):
    """Two catalog entries project to the same alternate key."""

    def __init__(self, entity: str, key: AlternateKey, first: int, second: int):
        self.entity = entity
        self.key = key
        super().__init__(
            f"{entity} catalog entries #{first} and #{second} share alternate key {key!r}; "
            f"widen the key selector"
        )


class StoreUnavailableError(SeedingError):
    """The database could not be reached or rejected the connection."""

    pass


class ConstraintViolationError(SeedingError):
    """An insert hit a unique constraint (another writer got there first)."""

    def __init__(self, entity: str, key: AlternateKey | None, detail: str = ""):
        self.entity = entity
        self.key = key
        self.detail = detail
        super().__init__(f"{entity} write for key {key!r} violated a constraint: {detail}")


class DuplicateRecordsError(SeedingError):
    """The database already holds more than one row for an alternate key."""

    def __init__(self, entity: str, key: AlternateKey, count: int):
        self.entity = entity
        self.key = key
        self.count = count
        super().__init__(
            f"{count} {entity} rows share alternate key {key!r}; "
            f"run database.scripts.collapse_duplicates first"
        )


# ============================================================================
# Key selection
# ============================================================================


def business_fields(model: type) -> tuple[str, ...]:
    """
    Mapped attribute names a catalog entry may set.

    Excludes primary keys and database-maintained columns (server defaults).
    """
    fields = []
    for attr in inspect(model).column_attrs:
        column = attr.columns[0]
        if column.primary_key or column.server_default is not None:
            continue
        fields.append(attr.key)
    return tuple(fields)


@dataclass(frozen=True)
class KeySelector:
    """
    Alternate-key policy for one entity type.

    Projects a catalog entry (or a persisted row) onto the values of
    ``fields``. Prefer the smallest set of fields that is unique per
    logical entity.
    """

    model: type
    fields: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError(f"{self.entity} key selector needs at least one field")

        mapper = inspect(self.model)
        mapped = {attr.key for attr in mapper.column_attrs}
        unknown = [name for name in self.fields if name not in mapped]
        if unknown:
            raise ValueError(f"{self.entity} has no mapped field(s): {', '.join(unknown)}")

        if self.primary_key_fields:
            logger.warning(
                f"{self.entity} key selector includes primary key {list(self.primary_key_fields)}; "
                f"unsaved catalog entries never match and every run will insert duplicates",
                extra={"entity": self.entity},
            )

    @classmethod
    def from_setting(cls, model: type, value: str) -> "KeySelector":
        """Build a selector from a comma-separated field list."""
        fields = tuple(name.strip() for name in value.split(",") if name.strip())
        return cls(model, fields)

    @property
    def entity(self) -> str:
        return self.model.__name__

    @property
    def primary_key_fields(self) -> tuple[str, ...]:
        """Key fields that map to primary-key columns."""
        mapper = inspect(self.model)
        primary_keys = {mapper.get_property_by_column(col).key for col in mapper.primary_key}
        return tuple(name for name in self.fields if name in primary_keys)

    @property
    def is_surrogate(self) -> bool:
        """True when every key field is a primary-key column."""
        return len(self.primary_key_fields) == len(self.fields)

    def __call__(self, entry: Any) -> AlternateKey:
        if isinstance(entry, Mapping):
            return tuple(entry.get(name) for name in self.fields)
        return tuple(getattr(entry, name, None) for name in self.fields)

    def criteria(self, key: AlternateKey) -> dict[str, Any]:
        """Field/value pairs to look a key up by."""
        return dict(zip(self.fields, key))


def _entry_values(entry: Any, model: type, allowed: tuple[str, ...]) -> dict[str, Any]:
    """Business-field values explicitly set on a catalog entry."""
    if isinstance(entry, Mapping):
        values = dict(entry)
    elif isinstance(entry, model):
        # Only attributes the catalog actually assigned, not unloaded defaults
        values = {
            name: value
            for name, value in inspect(entry).dict.items()
            if not name.startswith("_")
        }
    else:
        raise TypeError(
            f"{model.__name__} catalog entries must be mappings or {model.__name__} "
            f"instances, got {type(entry).__name__}"
        )

    unexpected = [name for name, value in values.items() if name not in allowed and value is not None]
    if unexpected:
        raise ValueError(
            f"{model.__name__} catalog entry sets non-business field(s): {', '.join(unexpected)}"
        )
    return {name: value for name, value in values.items() if name in allowed}


# ============================================================================
# Store
# ============================================================================


UNIQUE_VIOLATION_SQLSTATE = "23505"
SQLITE_UNIQUE_ERRORS = ("SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY")


def is_unique_violation(error: IntegrityError) -> bool:
    """
    Whether an IntegrityError came from a unique constraint.

    NOT NULL, CHECK and foreign key failures are data errors, not a
    concurrent writer, and return False.
    """
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE

    errorname = getattr(orig, "sqlite_errorname", None)
    if errorname:
        return errorname in SQLITE_UNIQUE_ERRORS

    message = str(orig).lower()
    return "duplicate key value" in message or "unique constraint failed" in message


class Store(Protocol):
    """Persistence operations reconcile() relies on."""

    async def lookup(self, model: type, criteria: Mapping[str, Any]) -> Any | None: ...

    async def insert(self, model: type, values: Mapping[str, Any]) -> Any: ...

    async def update(self, record: Any, values: Mapping[str, Any]) -> bool: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class SQLAlchemyStore:
    """
    Store backed by an AsyncSession.

    Translates driver failures into StoreUnavailableError and unique
    constraint violations into ConstraintViolationError. Any other
    IntegrityError (NOT NULL, CHECK, foreign key) propagates unchanged.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lookup(self, model: type, criteria: Mapping[str, Any]) -> Any | None:
        stmt = select(model).where(
            *(getattr(model, name) == value for name, value in criteria.items())
        )
        try:
            result = await self.session.execute(stmt)
        except (OperationalError, InterfaceError, OSError) as e:
            raise StoreUnavailableError(f"{model.__name__} lookup failed: {e}") from e

        rows = result.scalars().all()
        if len(rows) > 1:
            raise DuplicateRecordsError(model.__name__, tuple(criteria.values()), len(rows))
        return rows[0] if rows else None

    async def insert(self, model: type, values: Mapping[str, Any]) -> Any:
        """Insert a row and return the identifier the database assigned."""
        record = model(**values)
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            raise ConstraintViolationError(model.__name__, None, str(e.orig)) from e
        except (OperationalError, InterfaceError, OSError) as e:
            raise StoreUnavailableError(f"{model.__name__} insert failed: {e}") from e

        identity = inspect(record).identity
        return identity[0] if identity and len(identity) == 1 else identity

    async def update(self, record: Any, values: Mapping[str, Any]) -> bool:
        """Copy changed values onto a persisted row. Returns True if anything changed."""
        changed = False
        for name, value in values.items():
            if getattr(record, name) != value:
                setattr(record, name, value)
                changed = True
        return changed

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            raise ConstraintViolationError("commit", None, str(e.orig)) from e
        except (OperationalError, InterfaceError, OSError) as e:
            raise StoreUnavailableError(f"Commit failed: {e}") from e

    async def rollback(self) -> None:
        await self.session.rollback()


# ============================================================================
# Reconciliation
# ============================================================================


@dataclass
class ReconcileResult:
    """Outcome counts for one reconcile() run."""

    entity: str
    created: int = 0
    updated: int = 0
    unchanged: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated + self.unchanged


def index_catalog(catalog: Sequence[Any], key_selector: KeySelector) -> list[AlternateKey]:
    """
    Project every entry onto its alternate key.

    Raises:
        AmbiguousKeyError: If two entries share a key. The one exception is
            an all-None key from a selector made only of primary-key
            columns: an unsaved id carries no identity and is not compared.
    """
    keys: list[AlternateKey] = []
    seen: dict[AlternateKey, int] = {}
    unsaved_ids_match_nothing = key_selector.is_surrogate
    for position, entry in enumerate(catalog):
        key = key_selector(entry)
        keys.append(key)
        if unsaved_ids_match_nothing and all(value is None for value in key):
            continue
        if key in seen:
            raise AmbiguousKeyError(key_selector.entity, key, seen[key], position)
        seen[key] = position
    return keys


async def reconcile(
    catalog: Sequence[Any],
    key_selector: KeySelector,
    store: Store,
) -> ReconcileResult:
    """
    Make the store hold exactly one row per catalog entry.

    For each entry: one lookup by alternate key, then an in-place update
    of the matched row or an insert of a new one. A single commit follows
    the whole catalog. The catalog itself is never modified.

    Args:
        catalog: Entries to seed (dicts or transient model instances)
        key_selector: Alternate-key policy for the entity type
        store: Persistence backend

    Returns:
        ReconcileResult with created/updated/unchanged counts

    Raises:
        AmbiguousKeyError: Catalog collision, raised before any store call
        StoreUnavailableError: Database unreachable
        ConstraintViolationError: Concurrent insert of the same entity
        DuplicateRecordsError: Store already holds duplicates for a key
        IntegrityError: Any other constraint failure (NOT NULL, CHECK, FK)
    """
    model = key_selector.model
    entity = key_selector.entity
    allowed = business_fields(model)

    keys = index_catalog(catalog, key_selector)
    prepared = [_entry_values(entry, model, allowed) for entry in catalog]

    result = ReconcileResult(entity=entity)
    try:
        for key, values in zip(keys, prepared):
            existing = await store.lookup(model, key_selector.criteria(key))

            if existing is None:
                try:
                    identifier = await store.insert(model, values)
                except ConstraintViolationError as e:
                    raise ConstraintViolationError(entity, key, e.detail) from e
                result.created += 1
                logger.info(
                    f"Created {entity} {key!r} (id={identifier})",
                    extra={"entity": entity, "alternate_key": key, "action": "created"},
                )
            elif await store.update(existing, values):
                result.updated += 1
                logger.info(
                    f"Updated {entity} {key!r}",
                    extra={"entity": entity, "alternate_key": key, "action": "updated"},
                )
            else:
                result.unchanged += 1
                logger.debug(
                    f"{entity} {key!r} already up to date",
                    extra={"entity": entity, "alternate_key": key, "action": "unchanged"},
                )

        await store.commit()
    except Exception:
        await store.rollback()
        raise

    logger.info(
        f"{entity} reconciliation complete: created={result.created}, "
        f"updated={result.updated}, unchanged={result.unchanged}",
        extra={"entity": entity},
    )
    return result
