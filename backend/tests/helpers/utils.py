"""Tiny helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager

from codely.services._shared.ports import TokenClaims


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


def claims_for(sub: str = "1", username: str = "ada", email: str = "ada@example.com") -> TokenClaims:
    """Unissued claims for codec tests."""
    return TokenClaims(sub=sub, username=username, email=email)
