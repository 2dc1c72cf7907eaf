"""Service layer public API.

Re-exports
----------
- Base primitives (from ``codely.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Session service (from ``codely.services.auth``)
    * :class:`SessionService`
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from .auth.service import SessionService

__all__ = [
    "BaseService",
    "ServiceContext",
    "SessionService",
]
