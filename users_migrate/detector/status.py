# 說明：本模組比對 Alembic 遷移腳本與資料庫版本表（遷移紀錄），判斷 users 遷移是否已套用、尚待套用或版本漂移。
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from alembic.config import Config
from alembic.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine

from ..errors import store_errors


@dataclass(slots=True)
class MigrationStatus:
    """遷移紀錄的狀態摘要。"""

    script_heads: List[str] = field(default_factory=list)
    database_heads: List[str] = field(default_factory=list)
    pending: List[str] = field(default_factory=list)
    unknown_database_heads: List[str] = field(default_factory=list)

    @property
    def is_applied(self) -> bool:
        return bool(self.database_heads) and not self.pending and not self.unknown_database_heads

    @property
    def has_unknown_heads(self) -> bool:
        return bool(self.unknown_database_heads)


class MigrationStatusDetector:
    """讀取遷移腳本與資料庫版本表並計算尚待套用的版本。"""

    def __init__(self, alembic_cfg: Config, database_url: Optional[str] = None) -> None:
        self.alembic_cfg = alembic_cfg
        self.database_url = database_url or alembic_cfg.get_main_option("sqlalchemy.url")

    def detect(self) -> MigrationStatus:
        script_dir = ScriptDirectory.from_config(self.alembic_cfg)
        script_heads = list(script_dir.get_heads())
        known = {script.revision for script in script_dir.walk_revisions()}

        database_heads = self._fetch_database_heads()
        unknown = [head for head in database_heads if head not in known]

        applied: Set[str] = set()
        for head in database_heads:
            if head in known:
                applied |= self._ancestors(script_dir, head)

        # walk_revisions 由 head 往 base 走，反轉後即為套用順序
        pending = [
            script.revision
            for script in reversed(list(script_dir.walk_revisions()))
            if script.revision not in applied
        ]
        return MigrationStatus(
            script_heads=script_heads,
            database_heads=database_heads,
            pending=pending,
            unknown_database_heads=unknown,
        )

    def _ancestors(self, script_dir: ScriptDirectory, revision: str) -> Set[str]:
        seen: Set[str] = set()
        stack = [revision]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            script = script_dir.get_revision(current)
            down: Sequence[str]
            if script.down_revision is None:
                down = ()
            elif isinstance(script.down_revision, tuple):
                down = script.down_revision
            else:
                down = (script.down_revision,)
            stack.extend(down)
        return seen

    def _fetch_database_heads(self) -> List[str]:
        if not self.database_url:
            raise ValueError("未提供資料庫連線 URL，無法檢查資料庫版本。")
        engine = create_engine(self.database_url, future=True)
        try:
            with store_errors():
                with engine.connect() as conn:
                    # 版本表不存在時回傳空 tuple
                    return list(MigrationContext.configure(conn).get_current_heads())
        finally:
            engine.dispose()
