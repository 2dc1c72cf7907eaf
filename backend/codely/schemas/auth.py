"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate

from codely.services._shared.ports.credential_store import USERNAME_MAX_LENGTH


def not_blank(message: str):
    """Validator rejecting strings that are empty once stripped."""

    def _check(value: str) -> None:
        if not value.strip():
            raise ValidationError(message)

    return _check


def _text(message: str, **kwargs: Any) -> fields.String:
    return fields.String(
        required=True,
        validate=not_blank(message),
        error_messages={"required": message, "null": message, "invalid": message},
        **kwargs,
    )


class _AuthSchema(Schema):
    """Unknown keys are dropped; listed string fields are trimmed before validation."""

    class Meta:
        unknown = EXCLUDE

    trimmed: tuple[str, ...] = ()

    @pre_load
    def _strip(self, data: Any, **kwargs: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        for key in self.trimmed:
            if isinstance(out.get(key), str):
                out[key] = out[key].strip()
        return out


class RegisterSchema(_AuthSchema):
    """Input payload for account registration."""

    trimmed = ("username", "email")

    username = fields.String(
        required=True,
        validate=[
            not_blank("Invalid or missing username"),
            validate.Length(
                max=USERNAME_MAX_LENGTH,
                error=f"Username must be at most {USERNAME_MAX_LENGTH} characters",
            ),
        ],
        error_messages={
            "required": "Invalid or missing username",
            "null": "Invalid or missing username",
            "invalid": "Invalid or missing username",
        },
    )
    email = fields.Email(
        required=True,
        validate=validate.Length(max=254, error="Invalid or missing email"),
        error_messages={
            "required": "Invalid or missing email",
            "null": "Invalid or missing email",
            "invalid": "Invalid or missing email",
        },
    )
    password = _text("Invalid or missing password")


class LoginSchema(_AuthSchema):
    """Input payload for authenticating a user."""

    trimmed = ("email",)

    email = _text("Invalid or missing email")
    password = _text("Invalid or missing password")


class RefreshSchema(_AuthSchema):
    """Input payload carrying a refresh token (refresh and logout)."""

    trimmed = ("refreshToken",)

    refreshToken = _text("Refresh token is required")


class GoogleSignInSchema(_AuthSchema):
    """Input payload for Google sign-in."""

    trimmed = ("credential",)

    credential = _text("Google credential is required")


class TokenPairSchema(Schema):
    """Response payload containing the access/refresh pair."""

    accessToken = fields.String(required=True, attribute="access_token")
    refreshToken = fields.String(required=True, attribute="refresh_token")


class WhoAmISchema(Schema):
    """Response payload exposing identity details for the authenticated user."""

    id = fields.String(required=True)
    username = fields.String(required=True)
    email = fields.String(required=True)
    avatar = fields.String(allow_none=True)
