"""Client-side session guard: validate-or-refresh with one shared refresh."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from .auth_api import AuthApi
from .errors import AuthApiError
from .storage import TokenPair, TokenStorage
from .tokens import is_token_expired

log = logging.getLogger(__name__)

TokensListener = Callable[[TokenPair | None], None]
ExpiredListener = Callable[[], None]


class SessionGuard:
    """
    Holds the current token pair and refreshes it at most once at a time.

    All state is per instance: the in-flight refresh task and the listener
    lists. Callers that need a refresh while one is running await the same
    task instead of starting another, so a refresh token is never presented
    twice by the same client.

    :param storage: Where the pair lives between calls.
    :param auth_api: Client for the auth endpoints.
    :param leeway: Seconds before ``exp`` at which the access token already
        counts as expired.
    """

    def __init__(self, storage: TokenStorage, auth_api: AuthApi, *, leeway: int = 0) -> None:
        self.storage = storage
        self.auth_api = auth_api
        self.leeway = leeway
        self._refresh_task: asyncio.Task[bool] | None = None
        self._tokens_listeners: list[TokensListener] = []
        self._expired_listeners: list[ExpiredListener] = []

    # -------------------- state --------------------

    @property
    def access_token(self) -> str | None:
        return self.storage.get_access_token()

    @property
    def is_authenticated(self) -> bool:
        return self.storage.get_access_token() is not None

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None

    # -------------------- listeners ----------------

    def on_tokens_updated(self, callback: TokensListener) -> Callable[[], None]:
        """Call ``callback(pair)`` on sign-in/refresh and ``callback(None)`` on clear."""
        self._tokens_listeners.append(callback)
        return lambda: self._tokens_listeners.remove(callback)

    def on_session_expired(self, callback: ExpiredListener) -> Callable[[], None]:
        self._expired_listeners.append(callback)
        return lambda: self._expired_listeners.remove(callback)

    def _emit_tokens(self, pair: TokenPair | None) -> None:
        for cb in list(self._tokens_listeners):
            cb(pair)

    # -------------------- sign in / out ------------

    def sign_in(self, pair: TokenPair) -> None:
        self.storage.set_tokens(pair)
        self._emit_tokens(pair)

    async def sign_out(self) -> None:
        """Revoke the refresh token server-side if possible; always clear locally."""
        refresh_token = self.storage.get_refresh_token()
        self.storage.clear()
        self._emit_tokens(None)
        if not refresh_token:
            return
        try:
            await self.auth_api.logout(refresh_token)
        except AuthApiError as exc:
            log.info("session_guard.logout_failed", extra={"reason": exc.code or exc.status})

    def expire_session(self) -> None:
        """Drop both tokens and notify session-expired listeners."""
        self.storage.clear()
        self._emit_tokens(None)
        for cb in list(self._expired_listeners):
            cb()

    # -------------------- validation ---------------

    async def ensure_valid(self) -> bool:
        """
        ``True`` when a usable access token is stored afterwards.

        No token gives ``False`` without a network call; an unexpired token
        (local check of the unsigned ``exp`` claim) gives ``True``; otherwise
        the shared refresh decides.
        """
        access = self.storage.get_access_token()
        if not access:
            return False
        if not is_token_expired(access, leeway=self.leeway):
            return True
        return await self.refresh()

    async def refresh(self) -> bool:
        """Join the in-flight refresh or start one. Never raises for auth failures."""
        task = self._refresh_task
        if task is None:
            task = asyncio.get_running_loop().create_task(self._run_refresh())
            self._refresh_task = task
        # shield: a cancelled caller must not cancel the refresh others wait on
        return await asyncio.shield(task)

    async def _run_refresh(self) -> bool:
        try:
            refresh_token = self.storage.get_refresh_token()
            if not refresh_token:
                self.expire_session()
                return False
            try:
                pair = await self.auth_api.refresh(refresh_token)
            except AuthApiError as exc:
                log.info(
                    "session_guard.refresh_failed",
                    extra={"reason": exc.code or exc.status},
                )
                self.expire_session()
                return False
            self.sign_in(pair)
            return True
        finally:
            self._refresh_task = None
