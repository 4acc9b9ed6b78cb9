"""Unit tests for the DB-API executor."""

import sqlite3
from unittest.mock import MagicMock, Mock

import pytest

from ravesql.driver import DBAPICursor, DBAPIExecutor, detect_paramstyle
from ravesql.exceptions import ExecutionError, MalformedParametersError
from ravesql.parameters import ParameterSet, ParameterStyle


@pytest.fixture
def executor(sqlite_connection: sqlite3.Connection) -> DBAPIExecutor:
    return DBAPIExecutor(sqlite_connection)


def test_detect_paramstyle_reads_driver_module(sqlite_connection: sqlite3.Connection) -> None:
    assert detect_paramstyle(sqlite_connection) is ParameterStyle(sqlite3.paramstyle)


def test_detect_paramstyle_falls_back_to_named() -> None:
    assert detect_paramstyle(object()) is ParameterStyle.NAMED


def test_explicit_parameter_style(sqlite_connection: sqlite3.Connection) -> None:
    assert DBAPIExecutor(sqlite_connection, parameter_style="named").parameter_style is ParameterStyle.NAMED


@pytest.mark.parametrize("style", [ParameterStyle.QMARK, ParameterStyle.NAMED])
def test_execute_and_fetch(sqlite_connection: sqlite3.Connection, style: ParameterStyle) -> None:
    executor = DBAPIExecutor(sqlite_connection, parameter_style=style)

    inserted = executor.execute("INSERT INTO person (id, name) VALUES (:id, :name)", ParameterSet(id=1, name="Alice"))
    rows = executor.fetch_all("SELECT id, name FROM person WHERE id = :id OR name = :name", {"id": 1, "name": "x"})

    assert inserted == 1
    assert rows == [{"id": 1, "name": "Alice"}]


def test_fetch_all_without_rows(executor: DBAPIExecutor) -> None:
    assert executor.fetch_all("SELECT id, name FROM person", {}) == []


def test_execute_many_returns_one_count_per_element(executor: DBAPIExecutor) -> None:
    executor.execute_many(
        "INSERT INTO person (id, name) VALUES (:id, :name)",
        [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}, {"id": 3, "name": "Alicia"}],
    )

    counts = executor.execute_many(
        "DELETE FROM person WHERE name LIKE :pattern", [{"pattern": "Ali%"}, {"pattern": "Zed%"}, {"pattern": "B%"}]
    )

    assert counts == [2, 0, 1]


def test_execute_many_failure_reports_index(executor: DBAPIExecutor) -> None:
    with pytest.raises(ExecutionError) as exc_info:
        executor.execute_many(
            "INSERT INTO person (id, name) VALUES (:id, :name)",
            [{"id": 1, "name": "Alice"}, {"id": 1, "name": "Duplicate"}, {"id": 2, "name": "Bob"}],
        )

    assert exc_info.value.index == 1
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)
    assert executor.fetch_all("SELECT id FROM person", {}) == [{"id": 1}]


def test_missing_parameter_is_reported_before_execution(executor: DBAPIExecutor) -> None:
    with pytest.raises(MalformedParametersError):
        executor.execute("INSERT INTO person (id, name) VALUES (:id, :name)", {"id": 1})


def test_executor_never_commits() -> None:
    connection = MagicMock()
    cursor = connection.cursor.return_value
    cursor.rowcount = 1
    executor = DBAPIExecutor(connection, parameter_style=ParameterStyle.QMARK)

    assert executor.execute("UPDATE person SET name = :name", {"name": "Alice"}) == 1

    cursor.execute.assert_called_once_with("UPDATE person SET name = ?", ["Alice"])
    cursor.close.assert_called_once_with()
    connection.commit.assert_not_called()
    connection.rollback.assert_not_called()


def test_cursor_context_manager_closes_cursor() -> None:
    connection = Mock()
    with DBAPICursor(connection) as cursor:
        assert cursor is connection.cursor.return_value
    cursor.close.assert_called_once_with()
