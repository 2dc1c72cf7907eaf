"""Environment-driven settings for the Codely auth service.

The class is picked by ``APP_ENV``; individual values come from environment
variables (or a local ``.env`` file) so nothing secret lives in code.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any, Final

from dotenv import load_dotenv

ENV_VAR: Final[str] = "APP_ENV"
_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Read a yes/no flag; ``1``, ``true``, ``yes``, ``y`` and ``on`` count as set."""
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_ACCESS_SECRET_KEY: str
        HMAC key for access tokens. Must differ from the refresh key.
    JWT_REFRESH_SECRET_KEY: str
        HMAC key for refresh tokens.
    JWT_ALGORITHM: str
        Signing algorithm shared by both token kinds.
    JWT_ACCESS_TOKEN_EXPIRES_MINUTES: int
        Access token lifetime in minutes.
    JWT_REFRESH_TOKEN_EXPIRES_DAYS: int
        Refresh token lifetime in days.
    JWT_ISSUER: str
        ``iss`` claim stamped on every token.
    GOOGLE_CLIENT_ID: str
        Expected audience of Google ID tokens. Federated sign-in is refused
        when empty.
    REFRESH_TOKEN_BACKEND: str
        ``"sql"`` (default) or ``"redis"``; where refresh-token membership
        lives.
    REDIS_URL: str | None
        Connection URL for the optional Redis backend.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    LOG_FORMAT: str
        ``json`` (default) or ``text`` log lines.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET_KEY = os.getenv("JWT_ACCESS_SECRET_KEY", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "CHANGE_ME_REFRESH")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_TOKEN_EXPIRES_MINUTES = env_int("JWT_ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    JWT_REFRESH_TOKEN_EXPIRES_DAYS = env_int("JWT_REFRESH_TOKEN_EXPIRES_DAYS", 7)
    JWT_ISSUER = os.getenv("JWT_ISSUER", "codely")

    # Federation
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_CERTS_URL = os.getenv("GOOGLE_CERTS_URL", "https://www.googleapis.com/oauth2/v3/certs")

    # Storage
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sql")
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False

    # Environment variables that must be present before the app boots
    REQUIRED_ENV: tuple[str, ...] = ()


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps the SQL refresh-token backend so no Redis server is needed.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    REFRESH_TOKEN_BACKEND = "sql"
    JWT_ACCESS_SECRET_KEY = "test-access-secret"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret"
    GOOGLE_CLIENT_ID = "test-client-id.apps.googleusercontent.com"
    USE_PROXYFIX = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Refuses to boot without real secrets, a database URL and a Google client
    id (see :func:`ensure_env`).
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REQUIRED_ENV = (
        "SECRET_KEY",
        "JWT_ACCESS_SECRET_KEY",
        "JWT_REFRESH_SECRET_KEY",
        "DATABASE_URL",
        "GOOGLE_CLIENT_ID",
    )


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def ensure_env(names: Iterable[str], environ: Mapping[str, Any] | None = None) -> None:
    """Fail fast when required environment variables are missing.

    :param names: Variable names that must be set (empty values count as missing).
    :param environ: Mapping to inspect; defaults to :data:`os.environ`.
    :raises RuntimeError: Listing every missing variable.
    """
    source = os.environ if environ is None else environ
    missing = [name for name in names if not source.get(name)]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
