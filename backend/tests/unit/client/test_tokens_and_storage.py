# tests/unit/client/test_tokens_and_storage.py
from __future__ import annotations

import json
import os
import stat
import time

import jwt
import pytest

from codely.client import (
    FileTokenStorage,
    MemoryTokenStorage,
    TokenPair,
    decode_unverified,
    is_token_expired,
)


def _token(exp_offset: float | None) -> str:
    payload = {"sub": "1", "type": "access"}
    if exp_offset is not None:
        payload["exp"] = int(time.time() + exp_offset)
    return jwt.encode(payload, "client-never-knows-this", algorithm="HS256")


# ------------------------------ tokens ------------------------------------ #
def test_decode_unverified_ignores_signature():
    payload = decode_unverified(_token(60))

    assert payload["sub"] == "1"


@pytest.mark.parametrize("token", [None, "", "junk", "a.b.c"])
def test_decode_unverified_rejects_junk(token):
    assert decode_unverified(token) is None


def test_is_token_expired():
    assert is_token_expired(_token(60)) is False
    assert is_token_expired(_token(-1)) is True
    assert is_token_expired(_token(None)) is True
    assert is_token_expired("junk") is True


def test_leeway_expires_tokens_early():
    token = _token(30)

    assert is_token_expired(token, leeway=60) is True
    assert is_token_expired(token, now=time.time() + 31) is True


# ------------------------------ storage ----------------------------------- #
def test_memory_storage():
    storage = MemoryTokenStorage()
    assert storage.get_access_token() is None

    storage.set_tokens(TokenPair("a", "r"))
    assert (storage.get_access_token(), storage.get_refresh_token()) == ("a", "r")

    storage.clear()
    assert storage.get_refresh_token() is None


def test_file_storage_survives_a_new_instance(tmp_path):
    path = tmp_path / "session" / "tokens.json"
    FileTokenStorage(path).set_tokens(TokenPair("a", "r"))

    reopened = FileTokenStorage(path)

    assert reopened.get_access_token() == "a"
    assert reopened.get_refresh_token() == "r"
    assert json.loads(path.read_text()) == {"accessToken": "a", "refreshToken": "r"}


@pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
def test_file_storage_is_private(tmp_path):
    path = tmp_path / "tokens.json"
    FileTokenStorage(path).set_tokens(TokenPair("a", "r"))

    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_file_storage_clear_and_corruption(tmp_path):
    path = tmp_path / "tokens.json"
    storage = FileTokenStorage(path)
    storage.clear()  # no file yet
    assert storage.get_access_token() is None

    path.write_text("{not json")
    assert storage.get_access_token() is None

    storage.set_tokens(TokenPair("a", "r"))
    storage.clear()
    assert not path.exists()
