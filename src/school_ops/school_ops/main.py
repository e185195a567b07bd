from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_STAFF_SESSION_DAYS, DEFAULT_STUDENT_SESSION_HOURS
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .identity.controller import register as register_identity
from .notifications.controller import register as register_notifications
from .workshops.controller import register as register_workshops

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = settings.SECRET_KEY
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    staff_days = int(getattr(settings, "STAFF_SESSION_DAYS", DEFAULT_STAFF_SESSION_DAYS))
    student_hours = int(getattr(settings, "STUDENT_SESSION_HOURS", DEFAULT_STUDENT_SESSION_HOURS))
    app.permanent_session_lifetime = timedelta(days=staff_days)

    backend = str(getattr(settings, "STORAGE_BACKEND", "mysql"))
    db_config = getattr(settings, "DB_CONFIG", None)
    logger.info("settings=%s backend=%s", settings_module, backend)

    if container is None:
        if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            backend=backend,
            staff_session_days=staff_days,
            student_session_hours=student_hours,
        )
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(container)
            logger.info("demo seed ready")

    app.extensions["school_ops"] = container
    register_error_handlers(app)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    register_identity(app, container)
    register_attendance(app, container)
    register_workshops(app, container)
    register_notifications(app, container)

    return app
