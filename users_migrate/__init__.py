# 說明：本模組提供對外匯出的主要 API，包括遷移套用、錯誤分類與 users 資料表定義。
from .errors import ConstraintViolation, MigrationError, StoreUnavailable
from .runner import MigrationResult, apply_migration, migrate
from .schema import metadata, users_table

__all__ = [
    "ConstraintViolation",
    "MigrationError",
    "MigrationResult",
    "StoreUnavailable",
    "apply_migration",
    "metadata",
    "migrate",
    "users_table",
]
