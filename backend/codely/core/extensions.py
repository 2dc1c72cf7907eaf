"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis
from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError
from sqlalchemy import MetaData

if TYPE_CHECKING:
    from codely.services.auth.service import SessionService

# Global naming convention so IntegrityError messages carry stable names
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None

SESSION_SERVICE_KEY = "codely.session_service"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, the optional Redis client and the session service.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`codely.models` package so SQLAlchemy metadata is complete
        before ``create_all``.
    """
    db.init_app(app)

    from codely import models as _models  # noqa: F401

    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
    else:
        redis_client = redis.Redis.from_url(redis_url)
        try:
            redis_client.ping()
        except RedisError as exc:
            raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
        app.extensions["redis_client"] = redis_client

    app.extensions[SESSION_SERVICE_KEY] = build_session_service(app)


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL and call init_app().")
    return redis_client


def build_session_service(app: Flask) -> SessionService:
    """Wire codec, credential store and Google verifier from ``app.config``.

    ``REFRESH_TOKEN_BACKEND`` picks where refresh-token membership lives:
    ``"sql"`` keeps it in the ``refresh_tokens`` table, ``"redis"`` in a
    per-user sorted set.
    """
    from codely.infra.google.google_identity_verifier import GoogleIdentityVerifier
    from codely.infra.jwt.jwt_token_codec import JWTTokenCodec
    from codely.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
    from codely.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
    from codely.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
    from codely.services.auth.service import SessionService

    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sql")).strip().lower()
    if backend == "redis":
        refresh_store = RedisRefreshTokenStore(r=get_redis())
    elif backend == "sql":
        refresh_store = SQLAlchemyRefreshTokenStore()
    else:
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND {backend!r} (expected 'sql' or 'redis').")

    verifier = None
    if app.config.get("GOOGLE_CLIENT_ID"):
        verifier = GoogleIdentityVerifier(
            client_id=app.config["GOOGLE_CLIENT_ID"],
            certs_url=app.config.get("GOOGLE_CERTS_URL", GoogleIdentityVerifier.DEFAULT_CERTS_URL),
        )

    return SessionService(
        credentials=SQLAlchemyCredentialStore(refresh_store=refresh_store),
        tokens=JWTTokenCodec.from_config(app.config),
        identity_verifier=verifier,
    )


def get_session_service() -> SessionService:
    """Return the session service bound to the current application."""
    service = current_app.extensions.get(SESSION_SERVICE_KEY)
    if service is None:
        raise RuntimeError("Session service is not initialized. Call init_app() first.")
    return service
