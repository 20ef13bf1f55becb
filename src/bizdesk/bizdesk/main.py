from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, send_from_directory

from config import get_settings_module

from .common.web import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .analytics.controller import register as register_analytics
from .leaves.controller import register as register_leaves
from .policies.controller import register as register_policies
from .projects.controller import register as register_projects
from .users.controller import register as register_users

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(app: Flask, level_name: Optional[str]) -> None:
    level = logging.DEBUG if app.config["DEBUG"] else logging.INFO
    if level_name:
        level = getattr(logging, str(level_name).upper(), level)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    app.logger.setLevel(level)


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app; tests pass a ready ``container`` to skip MySQL."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    session_days = int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS))
    app.config["SESSION_DAYS"] = session_days
    app.permanent_session_lifetime = timedelta(days=session_days)
    app.config["MAX_CONTENT_LENGTH"] = 16 * 1024 * 1024

    _configure_logging(app, getattr(settings, "LOG_LEVEL", None))
    app.logger.debug(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            app.logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_users(db_config)
            app.logger.info("Demo seed ready")

        container = build_container(
            db_config=db_config,
            upload_folder=getattr(settings, "UPLOAD_FOLDER", str(REPO_ROOT / "uploads")),
            public_upload_url=getattr(settings, "PUBLIC_UPLOAD_URL", "/uploads"),
            parent_pin=str(getattr(settings, "PARENT_PIN", "1094")),
            secret_key=app.secret_key,
        )

    app.extensions["bizdesk"] = container
    register_error_handlers(app)

    register_users(app, container)
    register_projects(app, container)
    register_leaves(app, container)
    register_policies(app, container)
    register_analytics(app, container)

    @app.route("/uploads/<path:filename>", methods=["GET"], endpoint="uploaded_file")
    def uploaded_file(filename: str):
        return send_from_directory(container.storage.root, filename)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return {"success": True, "status": "ok"}

    return app
