"""
Scavenger Hunt Backend - Temporal Record Store
===============================================

What:  Generic append-only versioning engine with a single-active-row
       invariant, parameterized by ORM model and natural-key column.
How:   Every change is a new row. `update` closes the active row and
       inserts its successor in the same transaction; `soft_delete` closes
       it without a successor; history is every row sharing the key.
Who:   Instantiated once per entity kind (accounts, waypoint sequences)
       and called by the application services.

Concurrency Model:
    The partial unique index (key WHERE valid_until IS NULL) is the
    authoritative guard. The application-level existence check in
    `create` is only a fast path: if two requests race past it, the
    second INSERT violates the index and is reported as ConflictError.

    `update` locks the active row (SELECT ... FOR UPDATE on PostgreSQL)
    before closing it, and both statements share the request transaction,
    so a concurrent reader sees either the old or the new active row,
    never zero. A waiter released from that lock finds the row it queued
    for already closed; it re-reads the active row once and updates the
    successor instead of reporting the key as missing.

    `soft_delete` is a single conditional UPDATE. Zero affected rows means
    there was nothing active to close.

Keys are treated as already-normalized opaque strings; normalization
happens once, in the validation layer.
"""

import copy
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from sqlalchemy import and_, exists, inspect, nulls_first, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from scavenger.exceptions import ConflictError, DatabaseError, NotFoundError, ScavengerError
from scavenger.models.temporal import TemporalMixin, utcnow

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=TemporalMixin)

# Columns the store owns; never copied from one version to the next
_VERSION_COLUMNS = frozenset({"id", "valid_from", "valid_until"})


class TemporalStore(Generic[RecordT]):
    """
    Versioned storage for one entity kind.

    Args:
        model:      ORM class mixing in TemporalMixin, with an `id` primary key
        key_column: attribute holding the natural key (e.g. "username")
        resource:   human-readable entity name used in error messages
    """

    def __init__(self, model: Type[RecordT], key_column: str, resource: str):
        self.model = model
        self.key_column = key_column
        self.resource = resource
        self._key = getattr(model, key_column)

    # ── Queries ───────────────────────────────────────────────────────────

    def _active(self, key: str):
        return and_(self._key == key, self.model.valid_until.is_(None))

    async def find_active(self, db: AsyncSession, key: str) -> Optional[RecordT]:
        """Current version for `key`, or None. Absence is not an error here."""
        async with self._guard("find_active", key):
            result = await db.execute(select(self.model).where(self._active(key)).limit(1))
            return result.scalar_one_or_none()

    async def exists_any_version(self, db: AsyncSession, key: str) -> bool:
        """True if any row, active or historical, was ever stored under `key`."""
        async with self._guard("exists_any_version", key):
            result = await db.execute(select(exists().where(self._key == key)))
            return bool(result.scalar())

    async def history(self, db: AsyncSession, key: str) -> List[RecordT]:
        """Every version of `key`, newest valid_from first. Empty if never stored."""
        async with self._guard("history", key):
            result = await db.execute(
                select(self.model)
                .where(self._key == key)
                .order_by(self.model.valid_from.desc(), nulls_first(self.model.valid_until.desc()))
            )
            return list(result.scalars().all())

    async def find_active_by(self, db: AsyncSession, **criteria: Any) -> List[RecordT]:
        """Active versions whose columns equal `criteria`, oldest first."""
        async with self._guard("find_active_by", None):
            query = select(self.model).where(self.model.valid_until.is_(None))
            for column, value in criteria.items():
                query = query.where(getattr(self.model, column) == value)
            result = await db.execute(query.order_by(self.model.valid_from, self._key))
            return list(result.scalars().all())

    async def list(self, db: AsyncSession, include_history: bool = False) -> List[RecordT]:
        """
        Active versions ordered by key, or every stored version when
        `include_history` is set (newest first within a key).
        """
        async with self._guard("list", None):
            query = select(self.model)
            if not include_history:
                query = query.where(self.model.valid_until.is_(None))
            query = query.order_by(self._key, self.model.valid_from.desc())
            result = await db.execute(query)
            return list(result.scalars().all())

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, key: str, fields: Mapping[str, Any]) -> RecordT:
        """
        Insert the first active version for `key`.

        Raises:
            ConflictError: an active row already exists (checked up front, and
                           enforced by the partial unique index on insert)
        """
        async with self._guard("create", key):
            if await self.find_active(db, key) is not None:
                raise ConflictError(f"{self.resource} already exists", key=key)

            record = self.model(**self._row(key, fields), valid_from=utcnow(), valid_until=None)
            db.add(record)
            await self._flush_or_conflict(db, key)
            logger.info("Created %s '%s' (version %s)", self.resource, key, record.id)
            return record

    async def update(self, db: AsyncSession, key: str, fields: Mapping[str, Any]) -> RecordT:
        """
        Replace the active version of `key` with a new one.

        Fields absent from `fields` are carried over from the current version
        (deep-copied). The close and the insert share one timestamp and one
        transaction.

        Raises:
            NotFoundError: no active row for `key`
        """
        async with self._guard("update", key):
            current = await self._lock_active(db, key)
            if current is None:
                # A writer holding the lock may have replaced the row while we
                # waited; its successor is only visible to a fresh statement.
                current = await self._lock_active(db, key)
            if current is None:
                raise NotFoundError(self.resource, key)

            carried = {
                attr.key: copy.deepcopy(getattr(current, attr.key))
                for attr in inspect(self.model).column_attrs
                if attr.key not in _VERSION_COLUMNS
            }
            carried.update(self._row(key, fields))

            now = utcnow()
            closed = await db.execute(
                update(self.model)
                .where(self.model.id == current.id, self.model.valid_until.is_(None))
                .values(valid_until=now)
            )
            if closed.rowcount == 0:
                # Closed by a concurrent writer between the lock and the update
                raise NotFoundError(self.resource, key)

            successor = self.model(**carried, valid_from=now, valid_until=None)
            db.add(successor)
            await self._flush_or_conflict(db, key)
            logger.info(
                "Updated %s '%s' (version %s → %s)", self.resource, key, current.id, successor.id
            )
            return successor

    async def soft_delete(self, db: AsyncSession, key: str) -> None:
        """
        Close the active version of `key`; no successor is inserted.

        Raises:
            NotFoundError: no active row (including a second delete of the same key)
        """
        async with self._guard("soft_delete", key):
            result = await db.execute(
                update(self.model).where(self._active(key)).values(valid_until=utcnow())
            )
            if result.rowcount == 0:
                raise NotFoundError(self.resource, key)
            logger.info("Soft-deleted %s '%s'", self.resource, key)

    # ── Internals ─────────────────────────────────────────────────────────

    async def _lock_active(self, db: AsyncSession, key: str) -> Optional[RecordT]:
        result = await db.execute(
            select(self.model).where(self._active(key)).limit(1).with_for_update()
        )
        return result.scalar_one_or_none()

    def _row(self, key: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        row = {name: value for name, value in fields.items() if name not in _VERSION_COLUMNS}
        row[self.key_column] = key
        return row

    async def _flush_or_conflict(self, db: AsyncSession, key: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent request activated the same key first
            await db.rollback()
            logger.warning("Unique active-row constraint rejected %s '%s'", self.resource, key)
            raise ConflictError(f"{self.resource} already exists", key=key)

    @asynccontextmanager
    async def _guard(self, operation: str, key: Optional[str]) -> AsyncIterator[None]:
        """Translate unexpected SQLAlchemy failures into DatabaseError."""
        try:
            yield
        except ScavengerError:
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Database error during %s.%s(%s): %s",
                self.resource,
                operation,
                key,
                str(e),
                exc_info=True,
            )
            raise DatabaseError(
                context={"operation": operation, "resource": self.resource, "error_type": type(e).__name__},
            ) from e
