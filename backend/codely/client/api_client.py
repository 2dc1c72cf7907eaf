"""Authenticated API client with refresh-and-replay on expired access tokens."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .auth_api import problem_code
from .errors import SessionExpiredError
from .guard import SessionGuard

log = logging.getLogger(__name__)

# Problem code the bearer middleware uses for bad signatures and elapsed expiry
INVALID_TOKEN_CODE = "invalid_token"


class ApiClient:
    """
    httpx client that attaches the guard's bearer token to every request.

    On a ``401`` with code ``invalid_token`` the request is replayed once:

    * with the stored token, if it changed while the request was in flight
      (another request already refreshed);
    * otherwise after awaiting the guard's shared refresh, which queues this
      request behind any refresh already running.

    A failed refresh, or any ``401`` on the replay, signs the client out and
    raises :class:`SessionExpiredError`.
    """

    def __init__(
        self,
        guard: SessionGuard,
        base_url: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.guard = guard
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -------------------- core --------------------

    async def _send(self, method: str, url: str, token: str | None, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return await self._client.request(method, url, headers=headers, **kwargs)

    @staticmethod
    def _is_invalid_token(response: httpx.Response) -> bool:
        if response.status_code != 401:
            return False
        code, _ = problem_code(response)
        return code == INVALID_TOKEN_CODE

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        sent_with = self.guard.access_token
        response = await self._send(method, url, sent_with, **kwargs)
        if not self._is_invalid_token(response):
            return response

        current = self.guard.access_token
        if current is None or current == sent_with:
            if not await self.guard.refresh():
                raise SessionExpiredError()
            current = self.guard.access_token

        replay = await self._send(method, url, current, **kwargs)
        if replay.status_code == 401:
            log.info("api_client.replay_rejected", extra={"endpoint": url})
            self.guard.expire_session()
            raise SessionExpiredError()
        return replay

    # -------------------- verbs -------------------

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PATCH", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)
