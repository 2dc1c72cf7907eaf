"""Session lifecycle service and its DTOs."""

from .dto import (
    GoogleSignInIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
    UserPublicOut,
)
from .service import SessionService

__all__ = [
    "GoogleSignInIn",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "RegisterIn",
    "SessionService",
    "TokenPairOut",
    "UserPublicOut",
]
