# 說明：本模組定義遷移與資料存取的錯誤分類，並把 SQLAlchemy 例外轉換為 ConstraintViolation / StoreUnavailable。
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)

# PostgreSQL duplicate_table / duplicate_object 與 MySQL ER_TABLE_EXISTS_ERROR
_DUPLICATE_OBJECT_CODES = {"42P07", "42710", "1050"}
# insufficient_privilege 與 MySQL 的存取拒絕
_PERMISSION_CODES = {"42501", "1044", "1045", "1142"}
# MySQL 無法連線、連線中斷
_CONNECTION_CODES = {"2002", "2003", "2006", "2013"}
# PostgreSQL connection_exception (08xxx) 與 invalid_authorization (28xxx)
_UNAVAILABLE_SQLSTATE_CLASSES = ("08", "28")
_UNAVAILABLE_MESSAGES = (
    "unable to open",
    "readonly",
    "read-only",
    "locked",
    "could not connect",
    "connection refused",
    "permission denied",
    "access denied",
)


class MigrationError(Exception):
    """遷移或資料存取失敗的共同基底類別。"""


class ConstraintViolation(MigrationError):
    """資料表已存在，或違反唯一性等儲存層約束。"""


class StoreUnavailable(MigrationError):
    """無法連線或無權限存取目標資料庫。"""


def _error_code(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return str(args[0])
    return None


def _is_duplicate_object(exc: DBAPIError) -> bool:
    if _error_code(exc) in _DUPLICATE_OBJECT_CODES:
        return True
    return "already exists" in str(exc.orig).lower()


def _is_unavailable(exc: DBAPIError) -> bool:
    if exc.connection_invalidated:
        return True
    code = _error_code(exc)
    if code is not None:
        if code in _PERMISSION_CODES or code in _CONNECTION_CODES:
            return True
        if len(code) == 5 and code.startswith(_UNAVAILABLE_SQLSTATE_CLASSES):
            return True
    message = str(exc.orig).lower()
    return any(marker in message for marker in _UNAVAILABLE_MESSAGES)


def translate_store_error(exc: SQLAlchemyError) -> MigrationError:
    """將 SQLAlchemy 例外轉換為對應的錯誤分類；無法歸類者（例如資料表不存在）為 MigrationError。"""

    if isinstance(exc, IntegrityError):
        return ConstraintViolation(str(exc.orig))
    if isinstance(exc, (OperationalError, ProgrammingError)) and _is_duplicate_object(exc):
        return ConstraintViolation(str(exc.orig))
    if isinstance(exc, InterfaceError):
        return StoreUnavailable(str(exc.orig))
    if isinstance(exc, DBAPIError):
        if _is_unavailable(exc):
            return StoreUnavailable(str(exc.orig))
        return MigrationError(str(exc.orig))
    return MigrationError(str(exc))


@contextmanager
def store_errors() -> Iterator[None]:
    """包裝一段資料庫操作，將底層例外轉換後原樣往上拋出，不重試也不清理。"""

    try:
        yield
    except SQLAlchemyError as exc:
        raise translate_store_error(exc) from exc
