# 說明：本測試涵蓋 users 資料表的儲存層行為：預設建立時間、email 唯一性，以及 id 遞增且不重複使用。
from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from users_migrate.errors import ConstraintViolation, MigrationError, StoreUnavailable
from users_migrate.users import (
    create_user,
    delete_all_users,
    delete_user,
    get_user,
    list_users,
    touch_created_at,
    utc_now,
)


def test_created_at_defaults_to_insertion_time(migrated_engine) -> None:
    before = utc_now()
    with migrated_engine.begin() as conn:
        user = create_user(conn, "clock@example.com")
    after = datetime.now(timezone.utc).replace(tzinfo=None)

    assert user.created_at.tzinfo is None
    assert user.created_at.microsecond == 0
    assert before <= user.created_at <= after


def test_duplicate_email_is_rejected_and_first_row_kept(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        first = create_user(conn, "dup@example.com")

    with pytest.raises(ConstraintViolation):
        with migrated_engine.begin() as conn:
            create_user(conn, "dup@example.com")

    with migrated_engine.connect() as conn:
        users = list_users(conn)
    assert users == [first]


def test_ids_increase_in_insertion_order(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        ids = [create_user(conn, f"user{index}@example.com").id for index in range(3)]

    assert len(set(ids)) == 3
    assert ids == sorted(ids)


def test_ids_are_never_reused_after_delete(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        create_user(conn, "a@example.com")
        last = create_user(conn, "b@example.com")
    with migrated_engine.begin() as conn:
        assert delete_user(conn, last.id)
    with migrated_engine.begin() as conn:
        replacement = create_user(conn, "c@example.com")

    assert replacement.id > last.id


def test_ids_are_not_reused_after_deleting_everything(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        issued = [create_user(conn, f"bulk{index}@example.com").id for index in range(2)]
        assert delete_all_users(conn) == 2
        fresh = create_user(conn, "fresh@example.com")

    assert fresh.id > max(issued)


def test_touch_created_at_overwrites_timestamp(migrated_engine) -> None:
    moment = datetime(2001, 2, 3, 4, 5, 6)
    with migrated_engine.begin() as conn:
        user = create_user(conn, "touch@example.com")
        touch_created_at(conn, user.id, moment)
        updated = get_user(conn, user.id)

    assert updated is not None
    assert updated.created_at == moment
    assert updated.email == user.email


def test_get_and_delete_missing_user(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        assert get_user(conn, 404) is None
        assert not delete_user(conn, 404)


def test_blank_email_is_rejected(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        with pytest.raises(ValueError):
            create_user(conn, "  ")


def test_insert_before_migration_reports_missing_schema(engine) -> None:
    with pytest.raises(MigrationError) as info:
        with engine.begin() as conn:
            create_user(conn, "early@example.com")

    assert not isinstance(info.value, (StoreUnavailable, ConstraintViolation))
    assert "no such table" in str(info.value)


def test_touched_timestamp_is_stored_like_current_timestamp(migrated_engine) -> None:
    with migrated_engine.begin() as conn:
        user = create_user(conn, "format@example.com")
        touch_created_at(conn, user.id, datetime(2001, 2, 3, 4, 5, 6, 789))
        other = create_user(conn, "default@example.com")
        raw = dict(conn.execute(text("SELECT id, created_at FROM users")).all())

    assert raw[user.id] == "2001-02-03 04:05:06"
    assert len(raw[other.id]) == len(raw[user.id])
