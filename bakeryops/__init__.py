import logging
import os
from typing import Any

from flask import Flask
from sqlalchemy.pool import StaticPool

from .blueprints_registry import register_blueprints
from .config import ENV_DIAGNOSTICS
from .extensions import db, limiter, migrate
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(config: dict[str, Any] | None = None) -> Flask:
    app = Flask(__name__)
    os.makedirs(app.instance_path, exist_ok=True)

    _load_base_config(app, config)
    _configure_sqlite_engine_options(app)

    db.init_app(app)
    migrate.init_app(app, db)
    _configure_rate_limiter(app)

    register_blueprints(app)
    from . import models  # noqa: F401  # ensure models registered for Alembic

    configure_logging(app)
    _install_error_handlers(app)
    _install_global_resilience_handlers(app)

    from .management import register_commands

    register_commands(app)
    _run_optional_create_all(app)

    return app


def _load_base_config(app: Flask, config: dict[str, Any] | None) -> None:
    app.config.from_object("bakeryops.config.Config")
    if config:
        app.config.update(config)
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS
    for warning in ENV_DIAGNOSTICS.get("warnings", ()):
        logger.warning("Environment configuration warning: %s", warning)

    if config and "DATABASE_URL" in config:
        app.config["SQLALCHEMY_DATABASE_URI"] = config["DATABASE_URL"]


def _configure_sqlite_engine_options(app: Flask) -> None:
    """Configure SQLite engine options for testing/memory databases"""
    uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if app.config.get("TESTING") or uri.startswith("sqlite"):
        opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}))
        # Remove pool args that SQLite memory + StaticPool don't accept
        opts.pop("pool_size", None)
        opts.pop("max_overflow", None)
        opts.pop("pool_timeout", None)
        if uri == "sqlite:///:memory:":
            opts["poolclass"] = StaticPool
            opts["connect_args"] = {"check_same_thread": False}
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts


def _configure_rate_limiter(app: Flask) -> None:
    storage_uri = (
        app.config.get("RATELIMIT_STORAGE_URI")
        or app.config.get("RATELIMIT_STORAGE_URL")
        or "memory://"
    )
    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    limiter.init_app(app)

    if app.config.get("ENV") == "production" and storage_uri.startswith("memory://"):
        raise RuntimeError("Rate limiter storage must be Redis-backed in production.")


def _install_error_handlers(app: Flask) -> None:
    """Render service errors through the JSON response envelope."""
    from werkzeug.exceptions import HTTPException

    from .services.exceptions import BakeryOpsError
    from .utils.api_responses import APIResponse

    @app.errorhandler(BakeryOpsError)
    def _service_error_handler(err: BakeryOpsError):
        if err.status_code >= 500:
            logger.error("Service error %s: %s", err.code, err.message)
        else:
            logger.info("Request rejected (%s): %s", err.code, err.message)
        return APIResponse.error(err.message, errors=err.details, status_code=err.status_code, code=err.code)

    @app.errorhandler(HTTPException)
    def _http_error_handler(err: HTTPException):
        return APIResponse.error(err.description or err.name, status_code=err.code or 500,
                                 code=err.name.upper().replace(" ", "_"))


def _install_global_resilience_handlers(app: Flask) -> None:
    """Install global DB rollback and storage failure handler."""
    from sqlalchemy.exc import SQLAlchemyError

    from .utils.api_responses import APIResponse

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            db.session.rollback()

    @app.errorhandler(SQLAlchemyError)
    def _db_error_handler(e):
        logger.error("Storage error: %s", e)
        db.session.rollback()
        return APIResponse.error(
            "Service temporarily unavailable. Please try again shortly.",
            status_code=503,
            code="STORAGE_UNAVAILABLE",
        )


def _run_optional_create_all(app: Flask) -> None:
    value = os.environ.get("SQLALCHEMY_CREATE_ALL")
    if value is None:
        logger.info("db.create_all() not enabled; Alembic migrations are the source of truth")
        return
    if value.strip().lower() not in {"1", "true", "yes", "on"}:
        logger.info("db.create_all() disabled via SQLALCHEMY_CREATE_ALL=%s", value)
        return

    logger.info("Local dev: creating tables via db.create_all() (SQLALCHEMY_CREATE_ALL)")
    with app.app_context():
        db.create_all()
        logger.info("Database tables created/verified")
