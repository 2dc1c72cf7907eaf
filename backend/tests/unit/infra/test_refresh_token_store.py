# tests/unit/infra/test_refresh_token_store.py
"""
Refresh-token membership stores.

The same contract runs against the in-memory double and the Redis store
(backed by fakeredis):

- add / tokens keep insertion order
- remove is conditional and reports whether this call removed the token
- clear empties one user's set and reports the count
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from codely.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from codely.services._shared.errors import InternalError
from codely.services._shared.ports import InMemoryRefreshTokenStore


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture(params=["memory", "redis"])
def store(request, fake_redis):
    if request.param == "memory":
        return InMemoryRefreshTokenStore()
    return RedisRefreshTokenStore(r=fake_redis)


def test_add_and_list_in_order(store):
    store.add("u1", "t1")
    store.add("u1", "t2")
    store.add("u2", "t3")

    assert store.tokens("u1") == ["t1", "t2"]
    assert store.tokens("u2") == ["t3"]
    assert store.tokens("nobody") == []


def test_remove_is_conditional(store):
    store.add("u1", "t1")

    assert store.remove("u1", "t1") is True
    assert store.remove("u1", "t1") is False
    assert store.tokens("u1") == []


def test_remove_requires_matching_owner(store):
    store.add("u1", "t1")

    assert store.remove("u2", "t1") is False
    assert store.tokens("u1") == ["t1"]


def test_clear_returns_count_and_spares_other_users(store):
    store.add("u1", "t1")
    store.add("u1", "t2")
    store.add("u2", "t3")

    assert store.clear("u1") == 2
    assert store.clear("u1") == 0
    assert store.tokens("u1") == []
    assert store.tokens("u2") == ["t3"]


def test_concurrent_remove_has_exactly_one_winner():
    """Among N racing removals of the same token exactly one observes True."""
    store = InMemoryRefreshTokenStore()
    store.add("u1", "hot")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: store.remove("u1", "hot"), range(16)))

    assert results.count(True) == 1


def test_redis_ttl_is_applied_to_the_user_set(fake_redis):
    store = RedisRefreshTokenStore(r=fake_redis, ttl_seconds=60)
    store.add("u1", "t1")

    ttl = fake_redis.ttl("rt:u:u1")
    assert 0 < ttl <= 60


def test_redis_failures_surface_as_internal_error():
    server = fakeredis.FakeServer()
    server.connected = False
    store = RedisRefreshTokenStore(r=fakeredis.FakeRedis(server=server))

    with pytest.raises(InternalError) as exc_info:
        store.remove("u1", "t1")
    assert isinstance(exc_info.value.__cause__, RedisConnectionError)
