from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .core.constants import DASHBOARD_WORKERS, DEFAULT_PAGE_SIZE, EXPORT_ROW_LIMIT
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.connection import DBConfig

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .payroll.controller import register as register_payroll

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _error_response(*, kind: str, message: str, status: int, details=None):
    payload = {"success": False, "kind": kind, "message": message}
    if details is not None:
        payload["details"] = details
    return jsonify(payload), status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(err: DomainError):
        return _error_response(kind=err.kind, message=err.message, status=err.http_status, details=err.details)

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        kind = "not_found" if err.code == 404 else "http_error"
        return _error_response(kind=kind, message=err.description or err.name, status=err.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        logger.exception("[labour-ledger] unhandled error: %s", err)
        return _error_response(kind="internal", message="Internal server error", status=500)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug(
        "[labour-ledger] settings=%s db=%s",
        settings_module,
        DBConfig.from_mapping(db_config).describe(),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.debug("[labour-ledger] schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.debug("[labour-ledger] demo seed ready")

        container = build_container(
            db_config=db_config,
            page_size=int(getattr(settings, "DEFAULT_PAGE_SIZE", DEFAULT_PAGE_SIZE)),
            export_row_limit=int(getattr(settings, "EXPORT_ROW_LIMIT", EXPORT_ROW_LIMIT)),
            dashboard_workers=int(getattr(settings, "DASHBOARD_WORKERS", DASHBOARD_WORKERS)),
        )

    app.extensions["labour_ledger"] = container

    @app.route("/", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"success": True, "message": "Labour ledger API is running"})

    register_attendance(app, container)
    register_payroll(app, container)
    register_error_handlers(app)

    return app
