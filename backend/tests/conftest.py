"""Pytest fixtures building an isolated application per test.

Each test gets a fresh Flask app bound to its own in-memory SQLite database
(Flask-SQLAlchemy keeps a single static connection for ``:memory:``), so
data committed by the credential store never leaks between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy.orm import scoped_session

from codely.core.config import TestingConfig
from codely.core.extensions import SESSION_SERVICE_KEY
from codely.core.extensions import db as _db  # Flask-SQLAlchemy instance
from codely.factory import create_app  # application factory under test


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps refresh tokens in SQL so no Redis server is needed.
    - Avoids hitting external services (Google keys are never fetched).
    """

    REDIS_URL = None
    REQUIRED_ENV = ()
    LOG_LEVEL = "WARNING"


@pytest.fixture()
def app():
    """Create a Flask application with its schema, inside an app context.

    Yields
    ------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app):
    """Flask test client sharing the fixture's app context."""
    return app.test_client()


@pytest.fixture()
def session(app) -> scoped_session:
    """Return the Flask-scoped SQLAlchemy session used by the stores."""
    return _db.session


@pytest.fixture()
def session_service(app):
    """The :class:`SessionService` wired by the factory."""
    return app.extensions[SESSION_SERVICE_KEY]


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to the app session ------------------------------------
@pytest.fixture()
def factories_session(session):
    """Wire Factory Boy's session helper to the per-test session."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield session
    SQLAlchemySession.set(None)
