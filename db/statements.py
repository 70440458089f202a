"""
SQL statement builder.

Builds INSERT/UPDATE/SELECT/DELETE text with named placeholders :p1, :p2, ...
numbered in emission order. Values only ever travel as bind parameters;
table and column names come from record declarations and are checked
against an identifier pattern before they reach the SQL text.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, NamedTuple, Sequence

from core.errors import TypeMismatch
from db.fields import FieldEntry, to_db_value
from utils.validators import is_identifier

OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "ILIKE"})


class Where(NamedTuple):
    """One filter predicate: column, operator, value."""

    column: str
    operator: str
    value: Any


@dataclass
class Statement:
    sql: str
    params: dict[str, Any] = field(default_factory=dict)


class _Binder:
    """Hands out placeholders in emission order and collects their values."""

    def __init__(self) -> None:
        self.params: dict[str, Any] = {}

    def bind(self, value: Any) -> str:
        name = f"p{len(self.params) + 1}"
        self.params[name] = value
        return f":{name}"


def build_search(predicates: Iterable[Any]) -> list[Where]:
    """Normalize (column, operator, value) triples and reject anything unsafe."""
    search: list[Where] = []
    for item in predicates:
        if not isinstance(item, (tuple, list)) or len(item) != 3:
            raise TypeMismatch(f"predicate must be a (column, operator, value) triple, got {item!r}")
        column, operator, value = item
        _check_identifier(column)
        op = str(operator).upper()
        if op not in OPERATORS:
            raise TypeMismatch(f"unsupported operator {operator!r}")
        search.append(Where(column, op, to_db_value(value)))
    return search


def _check_identifier(name: Any) -> None:
    if not isinstance(name, str) or not is_identifier(name):
        raise TypeMismatch(f"invalid identifier {name!r}")


def _where_clause(search: Sequence[Where], binder: _Binder) -> str:
    if not search:
        return ""
    terms = [f"{w.column} {w.operator} {binder.bind(w.value)}" for w in search]
    return " WHERE " + " AND ".join(terms)


def build_insert(table: str, entries: Sequence[FieldEntry]) -> Statement:
    _check_identifier(table)
    binder = _Binder()
    if not entries:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES")
    columns = []
    placeholders = []
    for entry in entries:
        _check_identifier(entry.column)
        columns.append(entry.column)
        placeholders.append(binder.bind(entry.value))
    sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join(placeholders)})"
    return Statement(sql, binder.params)


def build_update(table: str, entries: Sequence[FieldEntry], search: Sequence[Where]) -> Statement:
    """SET values bind first, predicate values after them."""
    _check_identifier(table)
    if not entries:
        raise TypeMismatch(f"nothing to update in {table}")
    binder = _Binder()
    assignments = []
    for entry in entries:
        _check_identifier(entry.column)
        assignments.append(f"{entry.column} = {binder.bind(entry.value)}")
    sql = f"UPDATE {table} SET {', '.join(assignments)}{_where_clause(search, binder)}"
    return Statement(sql, binder.params)


def build_select(
    table: str,
    columns: Sequence[str],
    search: Sequence[Where],
    limit: int | None = None,
) -> Statement:
    _check_identifier(table)
    if not columns:
        raise TypeMismatch(f"no columns to select from {table}")
    for column in columns:
        _check_identifier(column)
    binder = _Binder()
    sql = f"SELECT {', '.join(columns)} FROM {table}{_where_clause(search, binder)}"
    if limit is not None:
        sql += f" LIMIT {binder.bind(int(limit))}"
    return Statement(sql, binder.params)


def build_exists(table: str, search: Sequence[Where]) -> Statement:
    _check_identifier(table)
    binder = _Binder()
    return Statement(f"SELECT 1 FROM {table}{_where_clause(search, binder)} LIMIT 1", binder.params)


def build_delete(table: str, search: Sequence[Where]) -> Statement:
    _check_identifier(table)
    binder = _Binder()
    return Statement(f"DELETE FROM {table}{_where_clause(search, binder)}", binder.params)
