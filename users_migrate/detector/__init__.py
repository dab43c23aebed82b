# 說明：匯出資料庫檢查相關的公開介面，方便外部模組引用。
from .schema_diff import SchemaDiffDetector, SchemaDiffReport
from .status import MigrationStatus, MigrationStatusDetector

__all__ = [
    "MigrationStatus",
    "MigrationStatusDetector",
    "SchemaDiffDetector",
    "SchemaDiffReport",
]
