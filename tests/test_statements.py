"""
Statement builder tests: SQL text and bind order.
"""

import pytest

from core.errors import TypeMismatch
from db.fields import FieldEntry
from db.statements import (
    build_delete,
    build_exists,
    build_insert,
    build_search,
    build_select,
    build_update,
)


def entries(**values) -> list[FieldEntry]:
    return [FieldEntry(column, value, column) for column, value in values.items()]


def test_insert_binds_in_column_order() -> None:
    stmt = build_insert("tracks", entries(id="t1", type="net"))
    assert stmt.sql == "INSERT INTO tracks (id, type) VALUES (:p1, :p2)"
    assert stmt.params == {"p1": "t1", "p2": "net"}


def test_insert_without_entries_uses_defaults() -> None:
    assert build_insert("tracks", []).sql == "INSERT INTO tracks DEFAULT VALUES"


def test_update_binds_set_values_before_predicates() -> None:
    stmt = build_update("tracks", entries(type="server"), build_search([("id", "=", "t1")]))
    assert stmt.sql == "UPDATE tracks SET type = :p1 WHERE id = :p2"
    assert stmt.params == {"p1": "server", "p2": "t1"}


def test_update_needs_entries() -> None:
    with pytest.raises(TypeMismatch):
        build_update("tracks", [], [])


def test_select_with_predicates_and_limit() -> None:
    search = build_search([("type", "=", "net"), ("station_count_max", ">=", 2)])
    stmt = build_select("tracks", ["id", "type"], search, limit=10)
    assert stmt.sql == "SELECT id, type FROM tracks WHERE type = :p1 AND station_count_max >= :p2 LIMIT :p3"
    assert stmt.params == {"p1": "net", "p2": 2, "p3": 10}


def test_select_without_predicates() -> None:
    stmt = build_select("users", ["id"], [])
    assert stmt.sql == "SELECT id FROM users"
    assert stmt.params == {}


def test_exists_and_delete() -> None:
    search = build_search([("id", "=", "t1")])
    assert build_exists("tracks", search).sql == "SELECT 1 FROM tracks WHERE id = :p1 LIMIT 1"
    assert build_delete("tracks", search).sql == "DELETE FROM tracks WHERE id = :p1"
    assert build_delete("tracks", []).sql == "DELETE FROM tracks"


def test_operator_is_normalized() -> None:
    search = build_search([("username", "like", "a%")])
    assert search[0].operator == "LIKE"


@pytest.mark.parametrize(
    "predicate",
    [
        ("id", "=="),
        ("id; DROP TABLE users", "=", 1),
        ("id", "= 1 OR 1 =", 1),
        "id = 1",
    ],
)
def test_unsafe_predicates_rejected(predicate) -> None:
    with pytest.raises(TypeMismatch):
        build_search([predicate])


def test_unsafe_table_rejected() -> None:
    with pytest.raises(TypeMismatch):
        build_delete("tracks; --", [])


def test_values_never_reach_sql_text() -> None:
    stmt = build_select("users", ["id"], build_search([("username", "=", "x' OR '1'='1")]))
    assert "OR" not in stmt.sql
    assert stmt.params["p1"] == "x' OR '1'='1"
