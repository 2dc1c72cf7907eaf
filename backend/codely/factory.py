"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from codely.core.config import BaseConfig, ensure_env, get_config
from codely.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Production configs list ``REQUIRED_ENV``; a missing variable stops the
    boot with :class:`RuntimeError` before any extension is touched.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    ensure_env(app.config.get("REQUIRED_ENV", ()))

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), app.config.get("LOG_FORMAT", "json"))

    # Proxy headers if running behind a reverse proxy
    from codely.core import proxy

    proxy.init_app(app)

    from codely.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from codely.core import cors

    cors.init_app(app)

    from codely.api import init_app as init_api

    init_api(app)

    from codely.core import errors

    errors.init_app(app)

    from codely import cli as app_cli

    app_cli.init_app(app)

    return app
