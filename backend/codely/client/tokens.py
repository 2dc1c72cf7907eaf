"""Local, signature-free inspection of access tokens."""

from __future__ import annotations

import time
from typing import Any

import jwt


def decode_unverified(token: str | None) -> dict[str, Any] | None:
    """
    Return the claim payload without checking the signature.

    The client never holds the signing keys; this is only good for reading
    ``exp``. Returns ``None`` for anything that is not a decodable JWT.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    return payload if isinstance(payload, dict) else None


def is_token_expired(token: str | None, *, now: float | None = None, leeway: int = 0) -> bool:
    """
    ``True`` when the token's ``exp`` has passed (minus ``leeway`` seconds).

    Undecodable tokens and tokens without a numeric ``exp`` count as expired.
    """
    payload = decode_unverified(token)
    if payload is None:
        return True
    exp = payload.get("exp")
    if not isinstance(exp, int | float):
        return True
    current = time.time() if now is None else now
    return exp <= current + leeway
