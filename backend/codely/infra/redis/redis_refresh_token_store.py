# comments in English; reST docstrings
from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import redis
from redis.exceptions import RedisError

from codely.services._shared.errors import InternalError
from codely.services._shared.ports import RefreshTokenStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token membership.

    Each user owns a sorted set ``rt:u:<user_id>`` whose members are token
    strings scored by insertion time. ``ZREM`` reports how many members it
    removed, which gives the atomic conditional remove for free.

    :param r: A Redis client (already connected).
    :param ttl_seconds: Optional expiry applied to the whole set on every add,
        usually the refresh-token lifetime.
    """

    r: redis.Redis
    ttl_seconds: int | None = None

    # -------------------- helpers --------------------

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _decode(value: bytes | str) -> str:
        return value.decode() if isinstance(value, bytes) else value

    # -------------------- API ------------------------

    def add(self, user_id: str, token: str) -> None:
        key = self._ku(user_id)
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.zadd(key, {token: time.time()})
            if self.ttl_seconds:
                pipe.expire(key, int(self.ttl_seconds))
            pipe.execute()
        except RedisError as exc:
            log.error("refresh_store.redis_error", exc_info=True)
            raise InternalError() from exc

    def remove(self, user_id: str, token: str) -> bool:
        try:
            removed = self.r.zrem(self._ku(user_id), token)
        except RedisError as exc:
            log.error("refresh_store.redis_error", exc_info=True)
            raise InternalError() from exc
        return int(removed) == 1

    def clear(self, user_id: str) -> int:
        key = self._ku(user_id)
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.zcard(key)
            pipe.delete(key)
            count, _ = pipe.execute()
        except RedisError as exc:
            log.error("refresh_store.redis_error", exc_info=True)
            raise InternalError() from exc
        return int(count)

    def tokens(self, user_id: str) -> list[str]:
        try:
            members = self.r.zrange(self._ku(user_id), 0, -1)
        except RedisError as exc:
            log.error("refresh_store.redis_error", exc_info=True)
            raise InternalError() from exc
        return [self._decode(m) for m in members]
