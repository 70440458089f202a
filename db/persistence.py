"""
Persistence façade: maps records to rows through the statement builder.

Invariants:
    - One statement per call, each on its own pooled connection and committed
      on success; upsert is the only call that runs two statements, and it
      runs them in one transaction
    - Never raises for statement or mapping problems: every call returns an
      Outcome, with failed >= 1 and a wrapped error when something went wrong
    - Values are always bound parameters; SQL text is built from declarations

Upsert is check-then-write. Under READ COMMITTED a row inserted by someone
else between the check and our INSERT surfaces as a uniqueness error, and a
row deleted between the check and our UPDATE makes the update a silent no-op.
Callers that cannot live with that must use the engine directly.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from pydantic import ValidationError

from core.errors import ApiError, StatementFailure, TypeMismatch
from db.fields import Record, enumerate_fields, from_row, populate
from db.statements import (
    Statement,
    build_delete,
    build_exists,
    build_insert,
    build_search,
    build_select,
    build_update,
)
from utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Outcome:
    """Report of a database operation."""

    affected: int = 0
    ok: int = 0
    failed: int = 0
    error: ApiError | None = None

    @property
    def is_success(self) -> bool:
        """No failures, no error and at least one OK element."""
        return self.ok > 0 and self.failed == 0 and self.error is None

    @property
    def is_failed(self) -> bool:
        return self.failed > 0 or self.error is not None

    @classmethod
    def failure(cls, error: ApiError) -> "Outcome":
        return cls(failed=1, error=error)

    def to_dict(self) -> dict[str, int]:
        """Client-facing form: zero counters omitted, error never included."""
        return {k: v for k, v in (("affected", self.affected), ("ok", self.ok), ("failed", self.failed)) if v}


class Database:
    """Record-level access to one SQL database."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def insert(self, table: str, record: Record) -> Outcome:
        """
        Insert the set fields of record. Does not check for an existing row;
        duplicates are for the schema to refuse.
        """
        try:
            statement = build_insert(table, enumerate_fields(record))
        except TypeMismatch as e:
            return Outcome.failure(e)
        return await self._write("insert", statement)

    async def update(self, table: str, record: Record, *where: Any) -> Outcome:
        """Update the set fields of record; predicate columns are never SET."""
        try:
            statement = self._update_statement(table, record, where)
        except TypeMismatch as e:
            return Outcome.failure(e)
        return await self._write("update", statement)

    async def delete(self, table: str, *where: Any) -> Outcome:
        """Delete matching rows. Deleting nothing is not an error."""
        try:
            statement = build_delete(table, build_search(where))
        except TypeMismatch as e:
            return Outcome.failure(e)
        return await self._write("delete", statement)

    async def exists(self, table: str, *where: Any) -> Outcome:
        """ok=1 when at least one row matches."""
        try:
            statement = build_exists(table, build_search(where))
        except TypeMismatch as e:
            return Outcome.failure(e)
        try:
            async with self.engine.connect() as conn:
                row = (await self._execute(conn, "exists", statement)).first()
        except SQLAlchemyError as e:
            return Outcome.failure(StatementFailure("exists(): query failed", e))
        return Outcome(ok=1 if row is not None else 0)

    async def select(self, table: str, target: Record, *where: Any) -> Outcome:
        """Fill target from the first matching row. ok=0 when nothing matched."""
        if not isinstance(target, Record):
            return Outcome.failure(TypeMismatch(
                f"select(): target must be a record instance, got {type(target).__name__}"
            ))
        try:
            statement = self._select_statement(table, type(target), where, limit=None)
        except TypeMismatch as e:
            return Outcome.failure(e)
        try:
            async with self.engine.connect() as conn:
                row = (await self._execute(conn, "select", statement)).mappings().first()
        except SQLAlchemyError as e:
            return Outcome.failure(StatementFailure("select(): query failed", e))
        if row is None:
            return Outcome()
        try:
            populate(target, dict(row))
        except ValidationError as e:
            return Outcome.failure(StatementFailure(f"select(): row does not fit {type(target).__name__}", e))
        return Outcome(ok=1)

    async def select_many(
        self,
        table: str,
        target: list,
        record_type: type[Record],
        *where: Any,
        limit: int | None = None,
    ) -> Outcome:
        """Append one fresh record_type instance to target per matching row."""
        if not isinstance(target, list):
            return Outcome.failure(TypeMismatch(
                f"select_many(): target must be a list, got {type(target).__name__}"
            ))
        if not (isinstance(record_type, type) and issubclass(record_type, Record)):
            return Outcome.failure(TypeMismatch(
                f"select_many(): {record_type!r} is not a record type"
            ))
        try:
            statement = self._select_statement(table, record_type, where, limit=limit)
        except TypeMismatch as e:
            return Outcome.failure(e)
        try:
            async with self.engine.connect() as conn:
                rows = (await self._execute(conn, "select_many", statement)).mappings().all()
        except SQLAlchemyError as e:
            return Outcome.failure(StatementFailure("select_many(): query failed", e))
        try:
            target.extend(from_row(record_type, dict(row)) for row in rows)
        except ValidationError as e:
            return Outcome.failure(StatementFailure(f"select_many(): row does not fit {record_type.__name__}", e))
        return Outcome(ok=len(rows))

    async def upsert(self, table: str, record: Record, *where: Any) -> Outcome:
        """Update the row matching where, or insert record if there is none."""
        try:
            search = build_search(where)
            probe = build_exists(table, search)
            insert = build_insert(table, enumerate_fields(record))
            entries = enumerate_fields(record, exclude={w.column for w in search})
        except TypeMismatch as e:
            return Outcome.failure(e)
        # A record holding nothing but its key leaves an existing row as it is.
        update = build_update(table, entries, search) if entries else None
        try:
            async with self.engine.begin() as conn:
                found = (await self._execute(conn, "upsert", probe)).first() is not None
                if found and update is None:
                    return Outcome(ok=1)
                result = await self._execute(conn, "upsert", update if found else insert)
                affected = max(result.rowcount, 0)
        except SQLAlchemyError as e:
            return Outcome.failure(StatementFailure("upsert(): EXEC failed", e))
        return Outcome(ok=1, affected=affected)

    async def ping(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("database_ping_failed", extra={"error": str(e)})
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()

    def _update_statement(self, table: str, record: Record, where: tuple[Any, ...]) -> Statement:
        search = build_search(where)
        entries = enumerate_fields(record, exclude={w.column for w in search})
        return build_update(table, entries, search)

    def _select_statement(
        self, table: str, record_type: type[Record], where: tuple[Any, ...], limit: int | None
    ) -> Statement:
        columns = [entry.column for entry in enumerate_fields(record_type, populate=True)]
        return build_select(table, columns, build_search(where), limit=limit)

    async def _write(self, operation: str, statement: Statement) -> Outcome:
        try:
            async with self.engine.begin() as conn:
                result = await self._execute(conn, operation, statement)
                affected = max(result.rowcount, 0)
        except SQLAlchemyError as e:
            return Outcome.failure(StatementFailure(f"{operation}(): EXEC failed", e))
        return Outcome(ok=1, affected=affected)

    @staticmethod
    async def _execute(conn: AsyncConnection, operation: str, statement: Statement):
        logger.debug("statement", extra={"operation": operation, "query": statement.sql})
        return await conn.execute(text(statement.sql), statement.params)
