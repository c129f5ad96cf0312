"""
ThinkHub configuration.

``create_app`` loads one of the classes below through ``load_config``,
picked by the ``APP_ENV`` environment variable (development by default).
Dashboard and activity-feed tunables can be overridden from the
environment with the same names.
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


def _env_list(name: str, default: str = "") -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _database_url(default=None):
    # SQLAlchemy only accepts the postgresql:// scheme
    raw = os.getenv("DATABASE_URL", "")
    return raw.replace("postgres://", "postgresql://", 1) if raw else default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY") or secrets.token_hex(32)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_EXPIRES = _env_int("JWT_ACCESS_EXPIRES", 3600)
    DEBUG = False
    TESTING = False

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}

    # Empty list: CORS disabled. ["*"]: any origin.
    CORS_ORIGINS = _env_list("CORS_ORIGINS", "*")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # GET /dashboard/recent-activity
    ACTIVITY_FEED_DEFAULT_LIMIT = _env_int("ACTIVITY_FEED_DEFAULT_LIMIT", 20)
    ACTIVITY_FEED_MAX_LIMIT = _env_int("ACTIVITY_FEED_MAX_LIMIT", 100)

    # GET /dashboard/stats upcomingDeadlines
    DEADLINE_WINDOW_DAYS = _env_int("DEADLINE_WINDOW_DAYS", 14)
    DEADLINE_RISK_DAYS = _env_int("DEADLINE_RISK_DAYS", 3)
    DEADLINE_LIST_SIZE = _env_int("DEADLINE_LIST_SIZE", 5)

    @classmethod
    def validate(cls):
        """Raise RuntimeError when the environment is unusable."""
        if cls.ACTIVITY_FEED_DEFAULT_LIMIT > cls.ACTIVITY_FEED_MAX_LIMIT:
            raise RuntimeError("ACTIVITY_FEED_DEFAULT_LIMIT exceeds ACTIVITY_FEED_MAX_LIMIT")
        if cls.DEADLINE_RISK_DAYS > cls.DEADLINE_WINDOW_DAYS:
            raise RuntimeError("DEADLINE_RISK_DAYS exceeds DEADLINE_WINDOW_DAYS")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(
        f"sqlite:///{os.path.join(basedir, 'instance', 'thinkhub_dev.db')}"
    )


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = _env_list("CORS_ORIGINS")
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }

    @classmethod
    def validate(cls):
        super().validate()
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def load_config(name: str):
    """Return the validated config class for *name*."""
    try:
        cls = config[name]
    except KeyError:
        raise RuntimeError(f"Unknown APP_ENV {name!r}; expected one of {sorted(config)}")
    cls.validate()
    return cls
