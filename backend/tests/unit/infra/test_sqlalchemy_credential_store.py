# tests/unit/infra/test_sqlalchemy_credential_store.py
from __future__ import annotations

import pytest
from sqlalchemy.exc import OperationalError

from codely.infra.sqlalchemy.credential_store import SQLAlchemyCredentialStore
from codely.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore, parse_user_id
from codely.models import RefreshToken, User
from codely.services._shared.errors import DuplicateError, DuplicateKind, InternalError
from tests.factories.user import RefreshTokenFactory, UserFactory


@pytest.fixture()
def store(app) -> SQLAlchemyCredentialStore:
    return SQLAlchemyCredentialStore()


class TestIdentities:
    def test_create_hashes_password_and_returns_record(self, store, session):
        record = store.create("ada", "  Ada@Example.com ", "s3cret!")

        assert record.id.isdigit()
        assert record.email == "Ada@Example.com"
        assert record.password_hash and record.password_hash != "s3cret!"
        assert session.get(User, int(record.id)) is not None

    def test_verify_password(self, store):
        record = store.create("ada", "ada@example.com", "s3cret!")

        assert store.verify_password(record, "s3cret!") is True
        assert store.verify_password(record, "wrong") is False

    def test_federated_account_has_no_password(self, store):
        record = store.create(
            "ada", "ada@example.com", None, external_id="g-1", avatar_ref="https://x/a.png"
        )

        assert record.password_hash is None
        assert record.external_id == "g-1"
        assert record.avatar_ref == "https://x/a.png"
        assert store.verify_password(record, "") is False

    def test_duplicate_email_and_username(self, store, factories_session):
        UserFactory(email="taken@example.com", username="taken")

        with pytest.raises(DuplicateError) as by_email:
            store.create("fresh", "taken@example.com", "pw")
        with pytest.raises(DuplicateError) as by_username:
            store.create("taken", "fresh@example.com", "pw")

        assert by_email.value.kind is DuplicateKind.EMAIL
        assert by_username.value.kind is DuplicateKind.USERNAME

    def test_email_lookup_is_case_sensitive(self, store, factories_session):
        user = UserFactory(email="Ada@Example.com")

        assert store.find_by_email("Ada@Example.com").id == str(user.id)
        assert store.find_by_email(" Ada@Example.com ").id == str(user.id)
        assert store.find_by_email("ada@example.com") is None

    def test_find_by_id_tolerates_foreign_ids(self, store, factories_session):
        user = UserFactory()

        assert store.find_by_id(str(user.id)).username == user.username
        assert store.find_by_id("999999") is None
        assert store.find_by_id("not-an-id") is None

    def test_link_external_identity_is_idempotent(self, store, factories_session):
        user = UserFactory()

        first = store.link_external_identity(str(user.id), "google-sub")
        second = store.link_external_identity(str(user.id), "google-sub")

        assert first == second
        assert store.find_by_external_id("google-sub").id == str(user.id)

    def test_link_never_replaces_another_subject(self, store, factories_session):
        user = UserFactory(external_id="google-a")

        record = store.link_external_identity(str(user.id), "google-b")

        assert record.external_id == "google-a"
        assert store.find_by_external_id("google-b") is None

    def test_lookups_leave_no_pending_writes(self, store, session, factories_session):
        UserFactory(email="ro@example.com")

        store.find_by_email("ro@example.com")

        assert not session.new and not session.dirty


class TestRefreshTokens:
    def test_add_remove_clear(self, store, factories_session):
        user = UserFactory()
        uid = str(user.id)

        store.add_refresh_token(uid, "t1")
        store.add_refresh_token(uid, "t2")
        assert store.refresh_tokens(uid) == ["t1", "t2"]

        assert store.remove_refresh_token(uid, "t1") is True
        assert store.remove_refresh_token(uid, "t1") is False
        assert store.clear_refresh_tokens(uid) == 1
        assert store.refresh_tokens(uid) == []

    def test_remove_checks_owner(self, store, factories_session):
        row = RefreshTokenFactory(token="owned")
        stranger = UserFactory()

        assert store.remove_refresh_token(str(stranger.id), "owned") is False
        assert store.refresh_tokens(str(row.user_id)) == ["owned"]

    def test_malformed_ids_never_match(self, store):
        assert store.remove_refresh_token("nope", "t") is False
        assert store.clear_refresh_tokens("nope") == 0
        assert store.refresh_tokens("nope") == []

    def test_token_rows_are_deleted_not_flagged(self, store, session, factories_session):
        user = UserFactory()
        store.add_refresh_token(str(user.id), "t1")
        store.remove_refresh_token(str(user.id), "t1")

        assert session.query(RefreshToken).count() == 0


def test_parse_user_id():
    assert parse_user_id("12") == 12
    assert parse_user_id(7) == 7
    assert parse_user_id("u-12") is None
    assert parse_user_id("") is None


def test_database_failures_surface_as_internal_error(app):
    class _BrokenRepo:
        def tokens_for_user(self, uid):
            raise OperationalError("SELECT", {}, Exception("db down"))

    class _BrokenUoW:
        refresh_tokens = _BrokenRepo()

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return None

    store = SQLAlchemyRefreshTokenStore(rw_uow=_BrokenUoW, ro_uow=_BrokenUoW)

    with pytest.raises(InternalError):
        store.tokens("1")
