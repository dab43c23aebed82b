# 說明：本模組以 SQLAlchemy Core 提供 users 資料表的基本存取（新增、查詢、更新建立時間、刪除），並轉換儲存層錯誤。
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection, Row

from .errors import store_errors
from .schema import users_table


@dataclass(slots=True)
class User:
    """users 資料表中的一筆紀錄，created_at 為不含時區的 UTC 時間。"""

    id: int
    email: str
    created_at: datetime


def _to_user(row: Row) -> User:
    return User(id=row.id, email=row.email, created_at=row.created_at)


def utc_now() -> datetime:
    """回傳精確到秒、不含時區的 UTC 時間，與 CURRENT_TIMESTAMP 的格式一致。"""

    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def create_user(conn: Connection, email: str) -> User:
    """新增使用者，id 與 created_at 由資料庫產生。"""

    if not email or not email.strip():
        raise ValueError("email 不可為空白。")
    with store_errors():
        result = conn.execute(insert(users_table).values(email=email))
        # 使用本連線的 last inserted id，避免多連線同時寫入時取錯資料
        (user_id,) = result.inserted_primary_key
        row = conn.execute(select(users_table).where(users_table.c.id == user_id)).one()
    return _to_user(row)


def get_user(conn: Connection, user_id: int) -> Optional[User]:
    with store_errors():
        row = conn.execute(select(users_table).where(users_table.c.id == user_id)).one_or_none()
    return _to_user(row) if row is not None else None


def list_users(conn: Connection) -> List[User]:
    with store_errors():
        rows = conn.execute(select(users_table).order_by(users_table.c.id)).all()
    return [_to_user(row) for row in rows]


def touch_created_at(conn: Connection, user_id: int, when: Optional[datetime] = None) -> None:
    """將指定使用者的 created_at 更新為目前時間（或指定時間）。"""

    value = when if when is not None else utc_now()
    with store_errors():
        conn.execute(
            update(users_table).where(users_table.c.id == user_id).values(created_at=value)
        )


def delete_user(conn: Connection, user_id: int) -> bool:
    with store_errors():
        result = conn.execute(delete(users_table).where(users_table.c.id == user_id))
    return result.rowcount > 0


def delete_all_users(conn: Connection) -> int:
    with store_errors():
        result = conn.execute(delete(users_table))
    return result.rowcount
