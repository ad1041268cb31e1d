"""
Entity Store.

Thin persistence layer over a SQLAlchemy session. Services talk to the
database through these primitives so that filtering, reference expansion
and the atomic counter updates used by stock accounting live in one place.

Store methods flush but never commit: the calling service owns the
transaction boundary.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy import Select, case, func, select, update
from sqlalchemy.orm import Session, selectinload

from wms.db.base_class import Base
from wms.utils.identifiers import is_valid_id

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


@dataclass(frozen=True)
class In:
    """Set membership filter: column value is one of ``values``."""
    values: Iterable[Any]


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring filter on a string column."""
    text: str


@dataclass(frozen=True)
class Below:
    """Strict upper bound: column value is less than ``limit``."""
    limit: Any


Filters = Mapping[str, Any]


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class EntityStore:
    """
    Generic store for all mapped record types.

    Filters map column names to a plain value (exact match), ``In``,
    ``Contains`` or ``Below``. ``expand`` names relationships to load eagerly.
    """

    def __init__(self, db: Session):
        self._db = db

    # ========================================================================
    # Reads
    # ========================================================================

    def find_by_id(self, model: type[ModelT], entity_id: str, expand: Sequence[str] = ()) -> ModelT | None:
        if not is_valid_id(entity_id):
            return None
        if expand:
            return self.find_one(model, {"id": entity_id}, expand=expand)
        return self._db.get(model, entity_id)

    def find_one(self, model: type[ModelT], filters: Filters, expand: Sequence[str] = ()) -> ModelT | None:
        stmt = self._select(model, filters, expand).limit(1)
        return self._db.scalars(stmt).first()

    def find_many(
        self,
        model: type[ModelT],
        filters: Filters | None = None,
        expand: Sequence[str] = (),
        order_by: str | None = None,
    ) -> list[ModelT]:
        stmt = self._select(model, filters or {}, expand)
        if order_by:
            stmt = stmt.order_by(getattr(model, order_by))
        return list(self._db.scalars(stmt).unique().all())

    def count(self, model: type[ModelT], filters: Filters) -> int:
        stmt = select(func.count()).select_from(model)
        for clause in self._where(model, filters):
            stmt = stmt.where(clause)
        return self._db.scalar(stmt) or 0

    def sum_field(self, model: type[ModelT], field: str, filters: Filters) -> int:
        stmt = select(func.coalesce(func.sum(getattr(model, field)), 0))
        for clause in self._where(model, filters):
            stmt = stmt.where(clause)
        return int(self._db.scalar(stmt) or 0)

    def distinct_values(self, model: type[ModelT], field: str, filters: Filters) -> list[Any]:
        column = getattr(model, field)
        stmt = select(column).distinct()
        for clause in self._where(model, filters):
            stmt = stmt.where(clause)
        return [value for value in self._db.scalars(stmt).all() if value is not None]

    # ========================================================================
    # Writes
    # ========================================================================

    def insert(self, model: type[ModelT], **values: Any) -> ModelT:
        record = model(**values)
        self._db.add(record)
        self._db.flush()
        return record

    def update_by_id(self, model: type[ModelT], entity_id: str, patch: Mapping[str, Any]) -> ModelT | None:
        record = self._db.get(model, entity_id)
        if record is None:
            return None
        for key, value in patch.items():
            setattr(record, key, value)
        self._db.flush()
        return record

    def update_many(self, model: type[ModelT], filters: Filters, patch: Mapping[str, Any]) -> int:
        """Bulk update; loaded objects matching the filters are synchronised."""
        stmt = update(model).values(**patch)
        for clause in self._where(model, filters):
            stmt = stmt.where(clause)
        result = self._db.execute(stmt)
        return result.rowcount or 0

    def delete_by_id(self, model: type[ModelT], entity_id: str) -> bool:
        record = self._db.get(model, entity_id)
        if record is None:
            return False
        self._db.delete(record)
        self._db.flush()
        return True

    # ========================================================================
    # Atomic counters
    # ========================================================================

    def increment_with_ceiling(
        self,
        model: type[ModelT],
        entity_id: str,
        field: str,
        amount: int,
        ceiling_field: str,
    ) -> bool:
        """
        Add ``amount`` to ``field`` only if the result stays within ``ceiling_field``.

        Runs as one conditional UPDATE so two writers can never both pass
        the check on the same stale value. Returns False when the row is
        missing or the ceiling would be exceeded.
        """
        column = getattr(model, field)
        ceiling = getattr(model, ceiling_field)
        stmt = (
            update(model)
            .where(model.id == entity_id, column + amount <= ceiling)
            .values({field: column + amount})
            .execution_options(synchronize_session=False)
        )
        result = self._db.execute(stmt)
        self._expire(model, entity_id)
        return result.rowcount == 1

    def decrement_floored(self, model: type[ModelT], entity_id: str, field: str, amount: int) -> bool:
        """Subtract ``amount`` from ``field`` without letting it drop below zero."""
        column = getattr(model, field)
        stmt = (
            update(model)
            .where(model.id == entity_id)
            .values({field: case((column - amount < 0, 0), else_=column - amount)})
            .execution_options(synchronize_session=False)
        )
        result = self._db.execute(stmt)
        self._expire(model, entity_id)
        return result.rowcount == 1

    # ========================================================================
    # Private Helpers
    # ========================================================================

    def _select(self, model: type[ModelT], filters: Filters, expand: Sequence[str]) -> Select:
        stmt = select(model)
        for clause in self._where(model, filters):
            stmt = stmt.where(clause)
        for name in expand:
            stmt = stmt.options(selectinload(getattr(model, name)))
        return stmt

    @staticmethod
    def _where(model: type[ModelT], filters: Filters) -> list[Any]:
        clauses = []
        for name, value in filters.items():
            column = getattr(model, name)
            if isinstance(value, In):
                clauses.append(column.in_(list(value.values)))
            elif isinstance(value, Contains):
                clauses.append(column.ilike(f"%{_escape_like(value.text)}%", escape="\\"))
            elif isinstance(value, Below):
                clauses.append(column < value.limit)
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    def _expire(self, model: type[ModelT], entity_id: str) -> None:
        # Bulk UPDATEs bypass the identity map; drop any cached copy
        record = self._db.identity_map.get(self._db.identity_key(model, entity_id))
        if record is not None:
            self._db.expire(record)
