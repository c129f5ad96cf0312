"""
ThinkHub
Flask Application Factory.

Usage:
    from thinkhub import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from thinkhub.config import load_config
from thinkhub.middleware.jwt_auth import init_jwt_middleware
from thinkhub.middleware.logging_config import configure_logging
from thinkhub.middleware.rate_limiter import init_rate_limits
from thinkhub.middleware.timing import init_request_timing
from thinkhub.models import db
from thinkhub.utils.errors import SERVICE_EXCEPTIONS, E, api_error, exception_response

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # no global limit, applied per blueprint
)


def _register_error_handlers(app):
    """Map service exceptions to the standard JSON error envelope.

    Every handler rolls back first so a failed request never leaves a
    half-written unit of work in the session.
    """

    def _service_error(error):
        db.session.rollback()
        return exception_response(error)

    for exc_class in SERVICE_EXCEPTIONS:
        app.register_error_handler(exc_class, _service_error)

    @app.errorhandler(SQLAlchemyError)
    def _database(error):
        db.session.rollback()
        logger.exception("Database error endpoint=%s", request.endpoint)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(404)
    def _route_not_found(e):
        return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})

    @app.errorhandler(405)
    def _method_not_allowed(e):
        return api_error(E.METHOD_NOT_ALLOWED, "Method not allowed")

    @app.errorhandler(429)
    def _rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"limit": e.description})

    @app.errorhandler(500)
    def _server_error(e):
        db.session.rollback()
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed demo users, a project, milestones and tasks."""
        from thinkhub.services.demo_seed import seed_demo

        summary = seed_demo()
        db.session.commit()
        logger.info("Seeded demo data: %s", summary)
        for email, token in summary["tokens"].items():
            click.echo(f"{email}: Bearer {token}")


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(load_config(config_name))

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config["CORS_ORIGINS"]
    if cors_origins:
        CORS(app, origins="*" if cors_origins == ["*"] else cors_origins)

    # ── Request timing + identity ────────────────────────────────────────
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from thinkhub.models import activity as _activity_models    # noqa: F401
    from thinkhub.models import auth as _auth_models            # noqa: F401
    from thinkhub.models import milestone as _milestone_models  # noqa: F401
    from thinkhub.models import project as _project_models      # noqa: F401

    if app.config.get("DEBUG"):
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from thinkhub.blueprints.dashboard_bp import dashboard_bp
    from thinkhub.blueprints.document_bp import document_bp
    from thinkhub.blueprints.health_bp import health_bp
    from thinkhub.blueprints.member_bp import member_bp
    from thinkhub.blueprints.milestone_bp import milestone_bp
    from thinkhub.blueprints.project_bp import project_bp
    from thinkhub.blueprints.task_bp import task_bp

    app.register_blueprint(dashboard_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(member_bp)
    app.register_blueprint(milestone_bp)
    app.register_blueprint(task_bp)
    app.register_blueprint(document_bp)
    app.register_blueprint(health_bp)

    _register_error_handlers(app)
    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
