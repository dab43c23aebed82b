# 說明：本模組定義 users 資料表的 SQLAlchemy MetaData，作為遷移、schema 比對與 DDL 輸出的共同依據。
from __future__ import annotations

from sqlalchemy import TIMESTAMP, Column, Integer, MetaData, Table, Text, text
from sqlalchemy.dialects import registry, sqlite
from sqlalchemy.exc import NoSuchModuleError
from sqlalchemy.schema import CreateTable

USERS_TABLE = "users"

SQLITE_TIMESTAMP_FORMAT = (
    "%(year)04d-%(month)02d-%(day)02d %(hour)02d:%(minute)02d:%(second)02d"
)


class SQLiteTimestamp(sqlite.DATETIME):
    """DDL 仍輸出 TIMESTAMP，寫入格式與 CURRENT_TIMESTAMP 相同（精確到秒）。"""

    __visit_name__ = "TIMESTAMP"


metadata = MetaData()

users_table = Table(
    USERS_TABLE,
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True, nullable=False),
    Column("email", Text, nullable=False, unique=True),
    # SQLite 以 "YYYY-MM-DD HH:MM:SS"（UTC、秒級、無時區）儲存 CURRENT_TIMESTAMP
    Column(
        "created_at",
        TIMESTAMP(timezone=False).with_variant(
            SQLiteTimestamp(storage_format=SQLITE_TIMESTAMP_FORMAT), "sqlite"
        ),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
    sqlite_autoincrement=True,
)


def render_create_ddl(dialect_name: str = "sqlite") -> str:
    """輸出指定方言下建立 users 資料表的 DDL。"""

    try:
        dialect_cls = registry.load(dialect_name)
    except NoSuchModuleError as exc:
        raise ValueError(f"不支援的資料庫方言：{dialect_name}") from exc
    ddl = CreateTable(users_table).compile(dialect=dialect_cls())
    return str(ddl).strip()
