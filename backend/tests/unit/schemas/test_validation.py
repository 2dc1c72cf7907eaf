# tests/unit/schemas/test_validation.py
from __future__ import annotations

import pytest

from codely.schemas import (
    GoogleSignInSchema,
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    validate_payload,
)
from codely.services._shared.errors import RequestValidationError
from codely.services.auth.dto import TokenPairOut


def test_register_trims_username_and_email():
    result = validate_payload(
        RegisterSchema(),
        {"username": "  ada ", "email": " Ada@Example.com ", "password": " pw "},
    )

    assert result.ok
    assert result.data == {"username": "ada", "email": "Ada@Example.com", "password": " pw "}


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"email": "a@b.co", "password": "x"}, "Invalid or missing username"),
        ({"username": "   ", "email": "a@b.co", "password": "x"}, "Invalid or missing username"),
        (
            {"username": "a" * 51, "email": "a@b.co", "password": "x"},
            "Username must be at most 50 characters",
        ),
        ({"username": "ada", "email": "not-an-email", "password": "x"}, "Invalid or missing email"),
        ({"username": "ada", "password": "x"}, "Invalid or missing email"),
        ({"username": "ada", "email": "a@b.co", "password": ""}, "Invalid or missing password"),
        ({"username": "ada", "email": "a@b.co", "password": None}, "Invalid or missing password"),
    ],
)
def test_register_rejections(payload, message):
    result = validate_payload(RegisterSchema(), payload)

    assert not result.ok
    assert result.message == message


def test_first_error_follows_field_order():
    result = validate_payload(RegisterSchema(), {})

    assert result.message == "Invalid or missing username"
    assert set(result.errors) == {"username", "email", "password"}


def test_unknown_fields_are_dropped():
    result = validate_payload(
        LoginSchema(), {"email": "a@b.co", "password": "x", "remember": True}
    )

    assert result.data == {"email": "a@b.co", "password": "x"}


def test_login_does_not_validate_email_format():
    """Any non-blank email reaches the service, which answers with the generic error."""
    assert validate_payload(LoginSchema(), {"email": "whatever", "password": "x"}).ok


@pytest.mark.parametrize("payload", [None, [], "text", 3])
def test_non_object_body(payload):
    result = validate_payload(RefreshSchema(), payload)

    assert not result.ok
    assert result.message == "Invalid request body"


def test_refresh_and_google_messages():
    assert validate_payload(RefreshSchema(), {}).message == "Refresh token is required"
    assert validate_payload(RefreshSchema(), {"refreshToken": " "}).message == (
        "Refresh token is required"
    )
    assert validate_payload(GoogleSignInSchema(), {}).message == "Google credential is required"


def test_unwrap_raises_request_validation_error():
    result = validate_payload(RefreshSchema(), {})

    with pytest.raises(RequestValidationError) as exc_info:
        result.unwrap()
    assert str(exc_info.value) == "Refresh token is required"
    assert "refreshToken" in exc_info.value.errors


def test_token_pair_dump_uses_camel_case():
    dumped = TokenPairSchema().dump(TokenPairOut(access_token="a", refresh_token="r"))

    assert dumped == {"accessToken": "a", "refreshToken": "r"}


def test_register_accepts_username_at_column_width():
    result = validate_payload(
        RegisterSchema(), {"username": "a" * 50, "email": "a@b.co", "password": "x"}
    )

    assert result.ok
