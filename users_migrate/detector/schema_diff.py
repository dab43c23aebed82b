# 說明：本模組透過 Alembic autogenerate 機制比對 users 資料表定義與實際資料庫 schema，回報差異摘要。
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from alembic.autogenerate.api import compare_metadata
from alembic.config import Config
from alembic.migration import MigrationContext
from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Connection

from ..errors import store_errors


@dataclass(slots=True)
class SchemaDiffReport:
    """記錄 schema 差異的摘要資訊。"""

    has_changes: bool = False
    operations: List[str] = field(default_factory=list)


class SchemaDiffDetector:
    """利用 Alembic autogenerate 比對資料表定義與資料庫差異。"""

    def __init__(
        self,
        alembic_cfg: Config,
        metadata: MetaData,
        database_url: Optional[str] = None,
    ) -> None:
        if not metadata.tables:
            raise ValueError("SchemaDiffDetector 需要至少定義一個資料表的 MetaData。")
        self.alembic_cfg = alembic_cfg
        self.metadata = metadata
        self.database_url = database_url or alembic_cfg.get_main_option("sqlalchemy.url")

    def detect(self) -> SchemaDiffReport:
        if not self.database_url:
            raise ValueError("Alembic 設定中缺少 sqlalchemy.url，無法進行 schema 比對。")

        engine = create_engine(self.database_url, future=True)
        try:
            with store_errors():
                with engine.connect() as connection:
                    operations = self._collect_diffs(connection)
        finally:
            engine.dispose()

        return SchemaDiffReport(has_changes=bool(operations), operations=operations)

    def _include_object(self, obj, name, type_, reflected, compare_to) -> bool:
        # 只比對本套件定義的資料表，忽略版本表等其他物件
        if type_ == "table":
            return name in self.metadata.tables
        return True

    def _collect_diffs(self, connection: Connection) -> List[str]:
        context = MigrationContext.configure(
            connection,
            opts={
                "compare_type": True,
                "compare_server_default": True,
                "include_object": self._include_object,
                "target_metadata": self.metadata,
            },
        )
        diffs = compare_metadata(context, self.metadata)
        return [self._render_diff(diff) for diff in diffs]

    def _render_diff(self, diff: Tuple[object, ...] | List[Tuple[object, ...]]) -> str:
        # modify_* 類型的差異會以巢狀 list 回傳
        if isinstance(diff, list):
            return "; ".join(str(item) for item in diff)
        return str(diff)
