# tests/unit/client/test_api_client.py
"""ApiClient refresh-and-replay against a scripted resource server."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from codely.client import (
    ApiClient,
    AuthApi,
    MemoryTokenStorage,
    SessionExpiredError,
    SessionGuard,
    TokenPair,
)

BASE_URL = "https://codely.test"


class FakeServer:
    """
    Accepts exactly one access token at a time; refresh mints the next one.

    ``reject_all`` makes every protected call fail, even after a refresh.
    """

    def __init__(self, *, reject_all: bool = False) -> None:
        self.valid_access = "access-1"
        self.reject_all = reject_all
        self.refresh_calls = 0
        self.seen: list[tuple[str, str | None]] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/auth/refresh":
            self.refresh_calls += 1
            await asyncio.sleep(0.02)
            body = json.loads(request.content)
            n = self.refresh_calls + 1
            self.valid_access = f"access-{n}"
            return httpx.Response(
                200,
                json={"accessToken": self.valid_access, "refreshToken": f"{body['refreshToken']}+"},
            )

        auth = request.headers.get("Authorization")
        self.seen.append((request.url.path, auth))
        if auth is None:
            return httpx.Response(401, json={"code": "missing_token", "detail": "Unauthorized"})
        if self.reject_all or auth != f"Bearer {self.valid_access}":
            return httpx.Response(401, json={"code": "invalid_token", "detail": "Invalid token"})
        return httpx.Response(200, json={"ok": True, "path": request.url.path})


def make_client(server: FakeServer, pair: TokenPair | None) -> tuple[ApiClient, SessionGuard]:
    transport = httpx.MockTransport(server)
    guard = SessionGuard(MemoryTokenStorage(pair), AuthApi(BASE_URL, transport=transport))
    return ApiClient(guard, BASE_URL, transport=transport), guard


@pytest.mark.asyncio
async def test_valid_token_passes_through():
    server = FakeServer()
    client, _ = make_client(server, TokenPair("access-1", "r"))

    response = await client.get("/api/v1/projects")

    assert response.status_code == 200
    assert server.refresh_calls == 0
    assert server.seen == [("/api/v1/projects", "Bearer access-1")]


@pytest.mark.asyncio
async def test_invalid_token_is_refreshed_and_replayed():
    server = FakeServer()
    server.valid_access = "access-fresh"
    client, guard = make_client(server, TokenPair("access-stale", "r"))

    response = await client.post("/api/v1/projects", json={"name": "demo"})

    assert response.status_code == 200
    assert server.refresh_calls == 1
    assert guard.access_token == "access-2"
    assert guard.storage.get_refresh_token() == "r+"
    assert server.seen[-1] == ("/api/v1/projects", "Bearer access-2")


@pytest.mark.asyncio
async def test_concurrent_401s_queue_behind_one_refresh():
    server = FakeServer()
    server.valid_access = "access-rotated-away"
    client, _ = make_client(server, TokenPair("access-stale", "r"))

    responses = await asyncio.gather(*(client.get(f"/api/v1/items/{i}") for i in range(4)))

    assert [r.status_code for r in responses] == [200] * 4
    assert server.refresh_calls == 1


@pytest.mark.asyncio
async def test_replays_with_token_refreshed_by_someone_else():
    """A request that went out before a refresh replays with the newer token, no second refresh."""
    server = FakeServer()
    server.valid_access = "access-new"
    guard = SessionGuard(
        MemoryTokenStorage(TokenPair("access-old", "r")),
        AuthApi(BASE_URL, transport=httpx.MockTransport(server)),
    )

    async def refreshed_elsewhere(request: httpx.Request) -> httpx.Response:
        # the stored pair changes while this request is in flight
        guard.sign_in(TokenPair("access-new", "r2"))
        return await server(request)

    client = ApiClient(guard, BASE_URL, transport=httpx.MockTransport(refreshed_elsewhere))

    response = await client.get("/api/v1/projects")

    assert response.status_code == 200
    assert server.refresh_calls == 0
    assert server.seen[-1] == ("/api/v1/projects", "Bearer access-new")


@pytest.mark.asyncio
async def test_second_401_expires_the_session():
    server = FakeServer(reject_all=True)
    client, guard = make_client(server, TokenPair("access-1", "r"))
    expired: list[bool] = []
    guard.on_session_expired(lambda: expired.append(True))

    with pytest.raises(SessionExpiredError) as exc_info:
        await client.get("/api/v1/projects")

    assert str(exc_info.value) == "Session expired, please log in again"
    assert guard.is_authenticated is False
    assert expired == [True]


@pytest.mark.asyncio
async def test_failed_refresh_raises_session_expired():
    async def refuse_refresh(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/refresh"):
            return httpx.Response(401, json={"code": "invalid_refresh_token"})
        return httpx.Response(401, json={"code": "invalid_token"})

    transport = httpx.MockTransport(refuse_refresh)
    guard = SessionGuard(
        MemoryTokenStorage(TokenPair("a", "r")), AuthApi(BASE_URL, transport=transport)
    )
    client = ApiClient(guard, BASE_URL, transport=transport)

    with pytest.raises(SessionExpiredError):
        await client.delete("/api/v1/projects/1")
    assert guard.is_authenticated is False


@pytest.mark.asyncio
async def test_missing_token_is_not_retried():
    server = FakeServer()
    client, _ = make_client(server, None)

    response = await client.get("/api/v1/projects")

    assert response.status_code == 401
    assert server.refresh_calls == 0
