from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import json_ok, register_error_handlers
from .container import Container, build_container
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, list_tables
from .enrollments.controller import register as register_enrollments
from .reports.controller import register as register_reports
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def _configure_logging(settings, debug: bool) -> None:
    level = getattr(settings, "LOG_LEVEL", None) or ("DEBUG" if debug else "INFO")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    A prebuilt `container` (e.g. one wired to in-memory repositories) skips
    all database work: schema bootstrap, admin seeding and MySQL wiring.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(settings, app.config["DEBUG"])

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        container = build_container(db_config=db_config)
        logger.info("settings=%s db=%s", settings_module, container.conn.describe())

        if getattr(settings, "AUTO_INIT_DB", False):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))

        if getattr(settings, "BOOTSTRAP_ADMIN", False):
            container.user_service.ensure_admin(
                email=getattr(settings, "ADMIN_EMAIL"),
                password=getattr(settings, "ADMIN_PASSWORD"),
                name=getattr(settings, "ADMIN_NAME", "Administrator"),
            )

    app.extensions["container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_courses(app, container)
    register_enrollments(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return json_ok(status="ok")

    return app
