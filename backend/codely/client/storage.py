"""Durable client-side token storage."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

log = logging.getLogger(__name__)

ACCESS_KEY = "accessToken"
REFRESH_KEY = "refreshToken"


@dataclass(frozen=True, slots=True)
class TokenPair:
    """Access/refresh pair as returned by the auth endpoints."""

    access_token: str
    refresh_token: str


class TokenStorage(Protocol):
    """Where the client keeps its current pair."""

    def get_access_token(self) -> str | None: ...

    def get_refresh_token(self) -> str | None: ...

    def set_tokens(self, pair: TokenPair) -> None: ...

    def clear(self) -> None: ...


class MemoryTokenStorage(TokenStorage):
    """Process-local storage; one instance per client."""

    def __init__(self, pair: TokenPair | None = None) -> None:
        self._pair = pair

    def get_access_token(self) -> str | None:
        return self._pair.access_token if self._pair else None

    def get_refresh_token(self) -> str | None:
        return self._pair.refresh_token if self._pair else None

    def set_tokens(self, pair: TokenPair) -> None:
        self._pair = pair

    def clear(self) -> None:
        self._pair = None


class FileTokenStorage(TokenStorage):
    """
    JSON file storage surviving restarts, keyed like browser ``localStorage``
    (``accessToken`` / ``refreshToken``).

    Writes go through a temp file and :func:`os.replace` so a crash never
    leaves half a pair on disk. The file is created with mode ``0600``.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            log.warning("token_storage.corrupt", extra={"reason": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def get_access_token(self) -> str | None:
        return self._read().get(ACCESS_KEY) or None

    def get_refresh_token(self) -> str | None:
        return self._read().get(REFRESH_KEY) or None

    def set_tokens(self, pair: TokenPair) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump({ACCESS_KEY: pair.access_token, REFRESH_KEY: pair.refresh_token}, fh)
        os.replace(tmp, self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
