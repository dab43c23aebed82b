# 說明：本模組提供統一的日誌設定，讓套件與 Alembic 的訊息輸出到同一個 handler。
from __future__ import annotations

import logging.config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str = "INFO") -> None:
    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": LOG_FORMAT},
            },
            "handlers": {
                "default": {"class": "logging.StreamHandler", "formatter": "plain"},
            },
            "loggers": {
                "users_migrate": {"handlers": ["default"], "level": level, "propagate": False},
                "alembic": {"handlers": ["default"], "level": level, "propagate": False},
                "sqlalchemy.engine": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            },
        }
    )
