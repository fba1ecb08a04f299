from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.connection import DBConfig
from .enrollments.controller import register as register_enrollments
from .grades.controller import register as register_grades
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]

SETTING_NAMES = (
    "CACHE_ENABLED",
    "GRADE_WEIGHT_POLICY",
    "EXCUSED_POLICY",
    "PASSING_THRESHOLD",
    "QR_TOKEN_MAX_AGE_MINUTES",
    "QR_TOKEN_FUTURE_SKEW_MINUTES",
    "REQUIRE_QR_TOKEN",
)


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    Tests pass a ready container built on in-memory repositories; otherwise
    the MySQL container is built from the selected settings module.
    """

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    for name in SETTING_NAMES:
        if hasattr(settings, name):
            app.config[name] = getattr(settings, name)

    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = dict(getattr(settings, "DB_CONFIG"))
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_mapping(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready")

        container = build_container(db_config=db_config, settings=app.config)

    app.extensions["academic_container"] = container

    register_courses(app, container)
    register_enrollments(app, container)
    register_grades(app, container)
    register_attendance(app, container)
    register_reports(app, container)

    return app
