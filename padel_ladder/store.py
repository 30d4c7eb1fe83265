"""
Store access for the ladder.

The services only ever talk to a ``Store``: a handful of per-table
select/insert/update calls against named relations. Every call is its own
unit of work. Nothing here spans two calls, so multi-step writes have to be
sequenced (and their partial failures reported) by the caller.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from padel_ladder import models  # noqa: F401  registers the tables
from padel_ladder.database import Base, SessionLocal

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

Row = Dict[str, Any]


class StoreError(Exception):
    """A call against the store failed. Never shown to API callers."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __str__(self):
        parts = [self.message]
        if self.code:
            parts.append(f"code={self.code}")
        if self.details:
            parts.append(f"details={self.details}")
        return " | ".join(parts)


class UniqueViolation(StoreError):
    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message, code=UNIQUE_VIOLATION, details=details)


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    OPS = ("eq", "in", "ilike")

    def __post_init__(self):
        if self.op not in self.OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")

    def matches(self, row: Row) -> bool:
        current = row.get(self.column)
        if self.op == "eq":
            return current == self.value
        if self.op == "in":
            return current in self.value
        return current is not None and str(current).lower() == str(self.value).lower()


def eq(column, value):
    return Filter(column, "eq", value)


def in_(column, values):
    return Filter(column, "in", list(values))


def ilike(column, value):
    return Filter(column, "ilike", value)


class Store(ABC):
    @abstractmethod
    async def select(
        self,
        table: str,
        where: Optional[Sequence[Filter]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> List[Row]:
        ...

    @abstractmethod
    async def insert(self, table: str, rows: Sequence[Row]) -> List[Row]:
        """Insert ``rows`` and return them as stored, ids included."""

    @abstractmethod
    async def update(self, table: str, values: Row, where: Sequence[Filter]) -> List[Row]:
        """Update every row matching ``where``; an empty result means none matched."""


class SqlStore(Store):
    """``Store`` over the async SQLAlchemy engine, one session per call."""

    def __init__(self, session_factory=SessionLocal, metadata=Base.metadata):
        self.session_factory = session_factory
        self.metadata = metadata

    def _table(self, name):
        try:
            return self.metadata.tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}")

    def _clause(self, table, condition: Filter):
        column = table.c[condition.column]
        if condition.op == "eq":
            return column == condition.value
        if condition.op == "in":
            return column.in_(condition.value)
        return func.lower(column) == str(condition.value).lower()

    def _where(self, table, stmt, where):
        for condition in where or ():
            stmt = stmt.where(self._clause(table, condition))
        return stmt

    async def select(self, table, where=None, order_by=None, descending=False):
        t = self._table(table)
        stmt = self._where(t, select(t), where)
        if order_by:
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return [dict(r) for r in result.mappings().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"select from {table} failed", details=str(e)) from e

    async def insert(self, table, rows):
        t = self._table(table)
        stored = []
        try:
            async with self.session_factory() as session:
                for row in rows:
                    result = await session.execute(insert(t).values(**row).returning(*t.c))
                    stored.append(dict(result.mappings().one()))
                await session.commit()
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise UniqueViolation(f"insert into {table} violates a unique constraint", details=str(e.orig)) from e
            raise StoreError(f"insert into {table} failed", details=str(e.orig)) from e
        except SQLAlchemyError as e:
            raise StoreError(f"insert into {table} failed", details=str(e)) from e
        return stored

    async def update(self, table, values, where):
        t = self._table(table)
        stmt = self._where(t, update(t).values(**values), where).returning(*t.c)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                updated = [dict(r) for r in result.mappings().all()]
                await session.commit()
                return updated
        except IntegrityError as e:
            if _is_unique_violation(e):
                raise UniqueViolation(f"update of {table} violates a unique constraint", details=str(e.orig)) from e
            raise StoreError(f"update of {table} failed", details=str(e.orig)) from e
        except SQLAlchemyError as e:
            raise StoreError(f"update of {table} failed", details=str(e)) from e


def _is_unique_violation(error: IntegrityError) -> bool:
    orig = error.orig
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION or getattr(orig, "pgcode", None) == UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig).lower()


_store: Optional[Store] = None


def get_store() -> Store:
    """FastAPI dependency; tests swap it through ``app.dependency_overrides``."""
    global _store
    if _store is None:
        _store = SqlStore()
    return _store
