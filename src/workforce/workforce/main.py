from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .history.controller import register as register_history
from .ingest.controller import register as register_ingest

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    import_config = dict(getattr(settings, "IMPORT_CONFIG", {}))
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["MAX_CONTENT_LENGTH"] = getattr(settings, "MAX_CONTENT_LENGTH", None)

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, import_config=import_config)

    if container.import_config.reconcile_on_startup:
        failed = container.history_service.reconcile_stale(
            older_than_minutes=container.import_config.stale_upload_minutes
        )
        if failed:
            logger.warning("Marked %d stale uploads as FAILED", failed)

    register_ingest(app, container)
    register_history(app, container)

    return app
