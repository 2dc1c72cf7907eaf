"""Marshmallow schemas and boundary validation helpers."""

from .auth import (
    GoogleSignInSchema,
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    WhoAmISchema,
)
from .validation import ValidationResult, validate_payload

__all__ = [
    "GoogleSignInSchema",
    "LoginSchema",
    "RefreshSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "ValidationResult",
    "WhoAmISchema",
    "validate_payload",
]
