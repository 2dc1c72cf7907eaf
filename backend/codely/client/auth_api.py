"""Async wrapper over the ``/api/v1/auth`` endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import AuthApiError
from .storage import TokenPair

log = logging.getLogger(__name__)

DEFAULT_PREFIX = "/api/v1/auth"


def problem_code(response: httpx.Response) -> tuple[str | None, str]:
    """Return ``(code, detail)`` from a problem+json body, tolerating junk."""
    try:
        body = response.json()
    except ValueError:
        return None, response.reason_phrase
    if not isinstance(body, dict):
        return None, response.reason_phrase
    return body.get("code"), str(body.get("detail") or response.reason_phrase)


class AuthApi:
    """
    Thin async client for the session endpoints.

    :param base_url: Server origin, e.g. ``"https://codely.example"``.
    :param transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    :param prefix: Path of the auth blueprint.
    """

    def __init__(
        self,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        prefix: str = DEFAULT_PREFIX,
        timeout: float = 10.0,
    ) -> None:
        self.prefix = prefix.rstrip("/")
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> AuthApi:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------- transport --------------------

    async def _call(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, f"{self.prefix}{path}", **kwargs)
        except httpx.HTTPError as exc:
            log.warning("auth_api.transport_error", extra={"endpoint": path})
            raise AuthApiError(0, "network_error", str(exc)) from exc
        if response.is_success:
            return response
        code, detail = problem_code(response)
        raise AuthApiError(response.status_code, code, detail)

    async def _pair(self, path: str, payload: dict[str, str]) -> TokenPair:
        response = await self._call("POST", path, json=payload)
        try:
            body = response.json()
            access, refresh = body["accessToken"], body["refreshToken"]
        except (ValueError, KeyError, TypeError) as exc:
            # a 2xx that is not a token pair, e.g. an HTML page from a proxy
            log.warning("auth_api.invalid_response", extra={"endpoint": path})
            raise AuthApiError(
                response.status_code, "invalid_response", "Malformed token response"
            ) from exc
        if not (isinstance(access, str) and isinstance(refresh, str) and access and refresh):
            raise AuthApiError(response.status_code, "invalid_response", "Malformed token response")
        return TokenPair(access_token=access, refresh_token=refresh)

    # -------------------- endpoints --------------------

    async def register(self, username: str, email: str, password: str) -> TokenPair:
        return await self._pair(
            "/register", {"username": username, "email": email, "password": password}
        )

    async def login(self, email: str, password: str) -> TokenPair:
        return await self._pair("/login", {"email": email, "password": password})

    async def refresh(self, refresh_token: str) -> TokenPair:
        return await self._pair("/refresh", {"refreshToken": refresh_token})

    async def google_sign_in(self, credential: str) -> TokenPair:
        return await self._pair("/google", {"credential": credential})

    async def logout(self, refresh_token: str) -> None:
        await self._call("POST", "/logout", json={"refreshToken": refresh_token})

    async def validate(self, access_token: str) -> bool:
        """``True`` if the server accepts ``access_token``; ``False`` on 401."""
        try:
            await self._call(
                "GET", "/validate", headers={"Authorization": f"Bearer {access_token}"}
            )
        except AuthApiError as exc:
            if exc.status == 401:
                return False
            raise
        return True
