# 說明：本測試設定檔建立臨時 SQLite 資料庫與遷移設定，供各項功能測試共用。
from __future__ import annotations

from pathlib import Path
import sys
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from users_migrate.config import DEFAULT_SCRIPT_LOCATION, LoadedConfig
from users_migrate.runner import apply_migration


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'db.sqlite'}"


@pytest.fixture()
def loaded_config(database_url: str) -> LoadedConfig:
    """指向臨時 SQLite 資料庫、使用套件內建遷移腳本的設定。"""

    return LoadedConfig(database_url=database_url, script_location=DEFAULT_SCRIPT_LOCATION)


@pytest.fixture()
def engine(database_url: str) -> Iterator[Engine]:
    engine = create_engine(database_url, future=True)
    yield engine
    engine.dispose()


@pytest.fixture()
def migrated_engine(loaded_config: LoadedConfig, engine: Engine) -> Engine:
    """已套用 users 遷移的資料庫。"""

    apply_migration(loaded_config)
    return engine
