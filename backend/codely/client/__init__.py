"""Async client for the Codely API with a refresh-aware session guard."""

from .api_client import ApiClient
from .auth_api import AuthApi
from .errors import AuthApiError, ClientError, SessionExpiredError
from .guard import SessionGuard
from .storage import FileTokenStorage, MemoryTokenStorage, TokenPair, TokenStorage
from .tokens import decode_unverified, is_token_expired

__all__ = [
    "ApiClient",
    "AuthApi",
    "AuthApiError",
    "ClientError",
    "FileTokenStorage",
    "MemoryTokenStorage",
    "SessionExpiredError",
    "SessionGuard",
    "TokenPair",
    "TokenStorage",
    "decode_unverified",
    "is_token_expired",
]
