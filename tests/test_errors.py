# 說明：本測試驗證 SQLAlchemy 例外與錯誤分類之間的轉換。
from __future__ import annotations

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from users_migrate.errors import (
    ConstraintViolation,
    MigrationError,
    StoreUnavailable,
    store_errors,
    translate_store_error,
)


class _DuplicateTable(Exception):
    pgcode = "42P07"


def test_integrity_error_is_constraint_violation() -> None:
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("UNIQUE constraint failed: users.email"))
    assert isinstance(translate_store_error(exc), ConstraintViolation)


def test_existing_table_is_constraint_violation() -> None:
    exc = OperationalError("CREATE TABLE", {}, sqlite3.OperationalError("table users already exists"))
    assert isinstance(translate_store_error(exc), ConstraintViolation)


def test_postgres_duplicate_table_code_is_constraint_violation() -> None:
    exc = ProgrammingError("CREATE TABLE", {}, _DuplicateTable("relation exists"))
    assert isinstance(translate_store_error(exc), ConstraintViolation)


def test_connection_failure_is_store_unavailable() -> None:
    exc = OperationalError(None, None, sqlite3.OperationalError("unable to open database file"))
    assert isinstance(translate_store_error(exc), StoreUnavailable)


def test_other_programming_error_stays_generic() -> None:
    exc = ProgrammingError("SELECT", {}, Exception("syntax error"))
    translated = translate_store_error(exc)
    assert type(translated) is MigrationError


def test_store_errors_keeps_original_cause() -> None:
    original = IntegrityError("INSERT", {}, sqlite3.IntegrityError("NOT NULL constraint failed"))
    with pytest.raises(ConstraintViolation) as info:
        with store_errors():
            raise original
    assert info.value.__cause__ is original


class _InsufficientPrivilege(Exception):
    pgcode = "42501"


class _ConnectionFailure(Exception):
    pgcode = "08006"


def test_permission_denied_is_store_unavailable() -> None:
    exc = ProgrammingError("CREATE TABLE", {}, _InsufficientPrivilege("permission denied for schema public"))
    assert isinstance(translate_store_error(exc), StoreUnavailable)


def test_mysql_access_denied_is_store_unavailable() -> None:
    exc = OperationalError(None, None, Exception(1045, "Access denied for user 'app'"))
    assert isinstance(translate_store_error(exc), StoreUnavailable)


def test_postgres_connection_exception_is_store_unavailable() -> None:
    exc = OperationalError(None, None, _ConnectionFailure("server closed the connection unexpectedly"))
    assert isinstance(translate_store_error(exc), StoreUnavailable)


def test_locked_database_is_store_unavailable() -> None:
    exc = OperationalError("INSERT", {}, sqlite3.OperationalError("database is locked"))
    assert isinstance(translate_store_error(exc), StoreUnavailable)


def test_missing_table_is_not_store_unavailable() -> None:
    exc = OperationalError("INSERT", {}, sqlite3.OperationalError("no such table: users"))
    translated = translate_store_error(exc)
    assert type(translated) is MigrationError
