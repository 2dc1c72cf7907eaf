"""HTTP surface: versioned blueprints plus the service-error translation hook."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flask import Blueprint, Flask

from codely.core.errors import APIError, api_error_response
from codely.services._shared.base import BaseService
from codely.services._shared.errors import InternalError, ServiceError

log = logging.getLogger(__name__)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Mount each ``(blueprint, relative_prefix)`` pair under ``base_prefix`` (e.g. ``/api/v1``)."""

    root = "/" + base_prefix.strip("/")
    for bp, rel_prefix in entries:
        rel = rel_prefix.strip("/")
        app.register_blueprint(bp, url_prefix=f"{root}/{rel}" if rel else root)


def handle_service_error(err: ServiceError):
    """Translate a service error into its problem+json response."""

    if isinstance(err, InternalError):
        log.error("service.internal_error", exc_info=err)
    translated = BaseService.translate_exceptions(err)
    if not isinstance(translated, APIError):  # pragma: no cover - every ServiceError maps
        raise err
    return api_error_response(translated)


def init_app(app: Flask) -> None:
    """Register the available API versions and the service error handler."""

    api_base = app.config.get("API_BASE_PREFIX", "/api")

    from codely.api.v1 import API_VERSION as V1
    from codely.api.v1 import REGISTRY as V1_REGISTRY

    register_blueprint_group(app, base_prefix=f"{api_base}/{V1}", entries=V1_REGISTRY)
    app.register_error_handler(ServiceError, handle_service_error)


__all__ = ["handle_service_error", "init_app", "register_blueprint_group"]
