"""Authentication endpoints using the session service."""

from __future__ import annotations

from flask import Blueprint

from codely.api.deps import json_response, load_body, require_auth, timing
from codely.core.extensions import get_session_service
from codely.schemas import (
    GoogleSignInSchema,
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    WhoAmISchema,
)
from codely.services._shared.ports import TokenClaims
from codely.services.auth.dto import (
    GoogleSignInIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
google_schema = GoogleSignInSchema()
token_schema = TokenPairSchema()
whoami_schema = WhoAmISchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return its first token pair."""

    data = load_body(register_schema)
    pair = get_session_service().register(
        RegisterIn(username=data["username"], email=data["email"], password=data["password"])
    )
    return json_response(token_schema.dump(pair), status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = load_body(login_schema)
    pair = get_session_service().login(LoginIn(email=data["email"], password=data["password"]))
    return json_response(token_schema.dump(pair))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token."""

    data = load_body(refresh_schema)
    pair = get_session_service().refresh(RefreshIn(refresh_token=data["refreshToken"]))
    return json_response(token_schema.dump(pair))


@bp.post("/logout")
@timing
def logout():
    data = load_body(refresh_schema)
    get_session_service().logout(LogoutIn(refresh_token=data["refreshToken"]))
    return json_response({"message": "Logged out successfully"})


@bp.post("/google")
@timing
def google():
    """Sign in (or sign up) with a Google ID token."""

    data = load_body(google_schema)
    pair = get_session_service().google_sign_in(GoogleSignInIn(credential=data["credential"]))
    return json_response(token_schema.dump(pair))


@bp.get("/validate")
@require_auth
@timing
def validate(claims: TokenClaims):
    return json_response({"valid": True})


@bp.get("/whoami")
@require_auth
@timing
def whoami(claims: TokenClaims):
    """Return the authenticated user profile."""

    profile = get_session_service().whoami(claims)
    return json_response(whoami_schema.dump(profile))
