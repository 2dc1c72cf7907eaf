# tests/unit/infra/test_unit_of_work.py
from __future__ import annotations

import pytest

from codely.models import User
from codely.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _user(name: str) -> User:
    return User(email=f"{name}@example.com", username=name, password_hash="x")


def test_rw_scope_commits_on_clean_exit(app, session):
    with SQLAlchemyUnitOfWork() as uow:
        uow.users.add(_user("ada"))

    session.rollback()
    assert SQLAlchemyUnitOfWork().users.exists_by_email("ada@example.com")


def test_rw_scope_rolls_back_on_error(app):
    with pytest.raises(ValueError), SQLAlchemyUnitOfWork() as uow:
        uow.users.add(_user("ada"))
        raise ValueError("abort")

    assert not SQLAlchemyUnitOfWork().users.exists_by_email("ada@example.com")


def test_ro_scope_refuses_writes(app):
    with pytest.raises(RuntimeError), SQLAlchemyReadOnlyUnitOfWork() as uow:
        uow.users.add(_user("ada"))

    with pytest.raises(RuntimeError), SQLAlchemyReadOnlyUnitOfWork() as uow:
        uow.commit()


def test_ro_guard_is_removed_on_exit(app):
    with SQLAlchemyReadOnlyUnitOfWork():
        pass

    with SQLAlchemyUnitOfWork() as uow:
        uow.users.add(_user("ada"))


def test_exists_rejects_unknown_columns(app):
    with pytest.raises(KeyError):
        SQLAlchemyUnitOfWork().users.exists(password_hash="x")
