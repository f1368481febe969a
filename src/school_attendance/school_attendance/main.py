from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from config import get_settings_module

from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .settings import EngineSettings

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_settings() -> EngineSettings:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    return EngineSettings.from_module(importlib.import_module(settings_module))


def create_engine(settings: Optional[EngineSettings] = None) -> Container:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    db = settings.db_config
    logger.info(
        "Starting attendance engine db=%s@%s:%s/%s cache=%s",
        db.get("user"),
        db.get("host"),
        db.get("port", 3306),
        db.get("database"),
        settings.cache_backend.value,
    )

    if settings.auto_init_db:
        config = DBConfig.from_dict(dict(db), timeout_seconds=settings.store_timeout_seconds)
        apply_schema(config, schema_path=SCHEMA_PATH)
        logger.info("Schema ready (tables=%d)", len(list_tables(config)))

    return build_container(settings)
