# 說明：本模組實作 users 遷移的套用流程，支援透過 Alembic 版本表追蹤（至多套用一次）與不追蹤的直接套用兩種方式。
from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.operations import Operations
from alembic.script import Script, ScriptDirectory
from alembic.script.revision import ResolutionError
from sqlalchemy import create_engine

from .config import LoadedConfig, MigrateSettings, build_alembic_config, build_loaded_config
from .detector.status import MigrationStatusDetector
from .errors import MigrationError, store_errors

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MigrationResult:
    """彙整一次遷移套用的結果。"""

    revision: Optional[str]
    tracked: bool
    applied: bool
    heads_before: List[str] = field(default_factory=list)
    heads_after: List[str] = field(default_factory=list)


def apply_migration(
    loaded: LoadedConfig,
    *,
    tracked: bool = True,
    revision: str = "head",
) -> MigrationResult:
    """
    將 users 遷移套用到目標資料庫。

    tracked=True 時交由 Alembic 版本表判斷是否已套用，重複執行不會有任何變更；
    tracked=False 時直接執行遷移的 upgrade()，資料表已存在便會拋出 ConstraintViolation。
    任何錯誤都會原樣往上拋出，不重試。
    """

    alembic_cfg = build_alembic_config(loaded)
    try:
        if tracked:
            return _apply_tracked(alembic_cfg, revision)
        return _apply_untracked(alembic_cfg, loaded, revision)
    except MigrationError as exc:
        logger.error("套用遷移失敗（%s）：%s", type(exc).__name__, exc)
        raise


def _apply_tracked(alembic_cfg: Config, revision: str) -> MigrationResult:
    detector = MigrationStatusDetector(alembic_cfg)
    before = detector.detect()
    if before.has_unknown_heads:
        raise MigrationError(
            f"資料庫版本表包含未知的版本：{', '.join(before.unknown_database_heads)}"
        )

    if not before.pending:
        logger.info("遷移已套用過，略過：%s", ", ".join(before.database_heads))
        return MigrationResult(
            revision=None,
            tracked=True,
            applied=False,
            heads_before=before.database_heads,
            heads_after=before.database_heads,
        )

    logger.info("開始套用遷移：%s", ", ".join(before.pending))
    with store_errors():
        command.upgrade(alembic_cfg, revision)
    after = detector.detect()
    logger.info("遷移完成，目前版本：%s", ", ".join(after.database_heads))
    return MigrationResult(
        revision=after.database_heads[0] if after.database_heads else None,
        tracked=True,
        applied=after.database_heads != before.database_heads,
        heads_before=before.database_heads,
        heads_after=after.database_heads,
    )


def _resolve_script(alembic_cfg: Config, revision: str) -> Script:
    script_dir = ScriptDirectory.from_config(alembic_cfg)
    target = script_dir.get_current_head() if revision == "head" else revision
    if target is None:
        raise MigrationError("遷移腳本目錄中沒有任何版本。")
    try:
        script = script_dir.get_revision(target)
    except ResolutionError as exc:
        raise MigrationError(f"找不到遷移版本：{target}") from exc
    if script is None:
        raise MigrationError(f"找不到遷移版本：{target}")
    return script


def _apply_untracked(alembic_cfg: Config, loaded: LoadedConfig, revision: str) -> MigrationResult:
    script = _resolve_script(alembic_cfg, revision)
    logger.info("不經版本表直接套用遷移：%s", script.revision)

    engine = create_engine(loaded.database_url, echo=loaded.echo_sql, future=True)
    try:
        with store_errors():
            with engine.begin() as conn:
                context = MigrationContext.configure(conn)
                heads = list(context.get_current_heads())
                with Operations.context(context):
                    script.module.upgrade()
    finally:
        engine.dispose()

    return MigrationResult(
        revision=script.revision,
        tracked=False,
        applied=True,
        heads_before=heads,
        heads_after=heads,
    )


def render_sql(loaded: LoadedConfig, revision: str = "head") -> str:
    """以 Alembic 離線模式輸出升級所需的 SQL，不連線資料庫。"""

    alembic_cfg = build_alembic_config(loaded)
    buffer = io.StringIO()
    alembic_cfg.output_buffer = buffer
    command.upgrade(alembic_cfg, revision, sql=True)
    return buffer.getvalue()


async def migrate(
    database_url: Optional[str] = None,
    *,
    tracked: bool = True,
    alembic_ini_path: Optional[str] = None,
    script_location: Optional[str] = None,
    echo_sql: Optional[bool] = None,
) -> MigrationResult:
    """
    應用程式啟動時呼叫的主要入口，會在背景執行緒中套用 users 遷移。
    """

    overrides = {
        "database_url": database_url,
        "alembic_ini_path": alembic_ini_path,
        "script_location": script_location,
        "echo_sql": echo_sql,
    }
    settings = MigrateSettings(**{key: value for key, value in overrides.items() if value is not None})
    loaded_config = build_loaded_config(settings)
    return await asyncio.to_thread(apply_migration, loaded_config, tracked=tracked)
