"""CORS configuration for the browser client calling the API."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Allow the Codely web client to call the API with bearer tokens.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. A blank value or ``"*"`` opens the API to any origin.

    Notes
    -----
    Tokens travel in the ``Authorization`` header and JSON bodies, never in
    cookies, so credentials support stays off. ``X-Request-ID`` is exposed so
    the client can quote it when reporting a failed call.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        supports_credentials=False,
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
