# 說明：本模組負責讀取並組態 users_migrate 套件所需的設定，包含資料庫連線、Alembic 腳本路徑與日誌等級。
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from alembic.config import Config
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_SCRIPT_LOCATION = PACKAGE_DIR / "migrations"


class MigrateSettings(BaseSettings):
    """套件的主設定，可由 USERS_MIGRATE_* 環境變數或 .env 覆寫。"""

    database_url: str = "sqlite:///db.sqlite"
    alembic_ini_path: Optional[str] = None
    script_location: Optional[str] = None
    log_level: str = Field(default="INFO")
    echo_sql: bool = False

    model_config = SettingsConfigDict(
        env_prefix="USERS_MIGRATE_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )


@dataclass(slots=True)
class LoadedConfig:
    """整合後可供遷移流程使用的設定。"""

    database_url: str
    script_location: Path
    alembic_ini_path: Optional[Path] = None
    echo_sql: bool = False


def build_loaded_config(settings: MigrateSettings) -> LoadedConfig:
    """將 Pydantic 設定轉換為遷移流程可用的結構。"""

    if not settings.database_url:
        raise ValueError("未提供資料庫連線 URL。")
    ini_path = (
        Path(settings.alembic_ini_path).resolve() if settings.alembic_ini_path else None
    )
    script_path = (
        Path(settings.script_location).resolve()
        if settings.script_location
        else DEFAULT_SCRIPT_LOCATION
    )
    return LoadedConfig(
        database_url=settings.database_url,
        script_location=script_path,
        alembic_ini_path=ini_path,
        echo_sql=settings.echo_sql,
    )


def build_alembic_config(loaded: LoadedConfig) -> Config:
    """建立 Alembic Config；未指定 ini 檔時使用記憶體中的設定。"""

    if loaded.alembic_ini_path is not None:
        alembic_cfg = Config(str(loaded.alembic_ini_path))
    else:
        alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(loaded.script_location))
    # configparser 會把 % 當成插值符號
    alembic_cfg.set_main_option("sqlalchemy.url", loaded.database_url.replace("%", "%%"))
    alembic_cfg.attributes["echo_sql"] = loaded.echo_sql
    return alembic_cfg
