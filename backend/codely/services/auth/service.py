# codely/services/auth/service.py
from __future__ import annotations

import secrets

from codely.services._shared.base import BaseService, ServiceContext
from codely.services._shared.errors import (
    DuplicateError,
    DuplicateKind,
    InvalidCredentialsError,
    InvalidExternalCredentialError,
    InvalidRefreshTokenError,
)
from codely.services._shared.ports import (
    USERNAME_MAX_LENGTH,
    CredentialStore,
    ExternalIdentity,
    ExternalIdentityVerifier,
    TokenClaims,
    TokenCodec,
    UserRecord,
)
from codely.services.auth.dto import (
    GoogleSignInIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    TokenPairOut,
    UserPublicOut,
)

# Attempts at a free username for federated accounts before giving up
_USERNAME_ATTEMPTS = 5
_SUFFIX_DIGITS = 4


class SessionService(BaseService):
    """
    Session lifecycle: register, login, refresh, logout, Google sign-in.

    Every refresh token moves ``Issued -> Consumed`` (rotation) or
    ``Issued -> Revoked`` (logout, reuse detection). Consumption is the
    store's conditional remove and always happens before a successor is
    minted; presenting a token that is no longer a member burns the owner's
    whole refresh-token family.

    The service keeps no state of its own, all of it lives behind the
    :class:`CredentialStore`.
    """

    def __init__(
        self,
        *,
        credentials: CredentialStore,
        tokens: TokenCodec,
        identity_verifier: ExternalIdentityVerifier | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        :param credentials: Identity + refresh-token membership store.
        :param tokens: Codec signing/verifying both token kinds.
        :param identity_verifier: Google ID-token verifier; ``None`` disables
            federated sign-in.
        """
        super().__init__(ctx=ctx)
        self.credentials = credentials
        self.tokens = tokens
        self.identity_verifier = identity_verifier

    # ------------------------------------------------------------------ #
    # Register / Login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> TokenPairOut:
        """
        Create a local account and sign it in.

        :raises DuplicateError: ``EMAIL`` or ``USERNAME`` collision.
        """
        if self.credentials.find_by_email(dto.email) is not None:
            raise DuplicateError(DuplicateKind.EMAIL)

        user = self.credentials.create(dto.username, dto.email, dto.password)
        self.log.info("session.register", extra={"user_id": user.id})
        return self._issue_pair(user)

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Prior sessions stay valid. The error is the same for an unknown
        email and a wrong password.

        :raises InvalidCredentialsError: If credentials do not match.
        """
        user = self.credentials.find_by_email(dto.email)
        if user is None or not self.credentials.verify_password(user, dto.password):
            self.log.info("session.login.failed", extra={"reason": "invalid_credentials"})
            raise InvalidCredentialsError()

        self.log.info("session.login", extra={"user_id": user.id})
        return self._issue_pair(user)

    # ------------------------------------------------------------------ #
    # Refresh with rotation + reuse detection
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Consume a refresh token and emit its successor pair.

        Security
        --------
        - Expired, malformed and forged tokens, and tokens of deleted users,
          all fail with the same :class:`InvalidRefreshTokenError`.
        - A verified token that is no longer in the owner's set is treated
          as reuse: every refresh token of that user is revoked.
        """
        claims = self.tokens.verify_refresh_token(dto.refresh_token)
        if claims is None:
            raise InvalidRefreshTokenError()

        user = self.credentials.find_by_id(claims.sub)
        if user is None:
            raise InvalidRefreshTokenError()

        if not self.credentials.remove_refresh_token(user.id, dto.refresh_token):
            revoked = self.credentials.clear_refresh_tokens(user.id)
            self.log.warning(
                "session.refresh.reuse_detected",
                extra={"user_id": user.id, "revoked": revoked},
            )
            raise InvalidRefreshTokenError()

        self.log.info("session.refresh", extra={"user_id": user.id})
        return self._issue_pair(user)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the given refresh token if it verifies. Never fails and never
        reveals whether anything was removed.
        """
        claims = self.tokens.verify_refresh_token(dto.refresh_token)
        if claims is None:
            return
        removed = self.credentials.remove_refresh_token(claims.sub, dto.refresh_token)
        self.log.info("session.logout", extra={"user_id": claims.sub, "revoked": int(removed)})

    # ------------------------------------------------------------------ #
    # Google sign-in
    # ------------------------------------------------------------------ #

    def google_sign_in(self, dto: GoogleSignInIn) -> TokenPairOut:
        """
        Verify a Google ID token, find-or-create the local identity, sign in.

        Lookup order is the Google subject, then the email; an account found
        by email only gets the subject linked unless it is already linked to
        another one.

        :raises InvalidExternalCredentialError: If verification fails, the
            token carries no email, federation is not configured, or no free
            username could be derived for a new account.
        """
        if self.identity_verifier is None:
            raise InvalidExternalCredentialError()

        identity = self.identity_verifier.verify(dto.credential)
        if identity is None or not identity.email:
            raise InvalidExternalCredentialError()

        user = self.credentials.find_by_external_id(identity.subject)
        if user is None:
            user = self.credentials.find_by_email(identity.email)
            if user is not None and user.external_id is None:
                user = self.credentials.link_external_identity(user.id, identity.subject)
                self.log.info(
                    "session.google.linked",
                    extra={"user_id": user.id, "provider": "google"},
                )
            elif user is not None:
                # already bound to another Google subject; the link is kept as is
                self.log.warning(
                    "session.google.link_conflict",
                    extra={"user_id": user.id, "provider": "google"},
                )
            else:
                user = self._create_federated(identity)
                self.log.info(
                    "session.google.created",
                    extra={"user_id": user.id, "provider": "google"},
                )

        return self._issue_pair(user)

    # ------------------------------------------------------------------ #
    # Validate / profile / operator tools
    # ------------------------------------------------------------------ #

    def validate(self, access_token: str) -> TokenClaims | None:
        return self.tokens.verify_access_token(access_token)

    def whoami(self, claims: TokenClaims) -> UserPublicOut:
        """
        Load the profile behind verified access-token claims.

        :raises InvalidCredentialsError: If the account no longer exists.
        """
        user = self.credentials.find_by_id(claims.sub)
        if user is None:
            raise InvalidCredentialsError("Account no longer exists")
        return UserPublicOut(
            id=user.id,
            username=user.username,
            email=user.email,
            avatar=user.avatar_ref,
        )

    def revoke_all_sessions(self, email: str) -> int:
        """
        Revoke every refresh token of the account with ``email``.

        :returns: Number of revoked tokens, ``0`` for unknown accounts.
        """
        user = self.credentials.find_by_email(email)
        if user is None:
            return 0
        revoked = self.credentials.clear_refresh_tokens(user.id)
        self.log.warning("session.revoke_all", extra={"user_id": user.id, "revoked": revoked})
        return revoked

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user: UserRecord) -> TokenPairOut:
        claims = TokenClaims(sub=user.id, username=user.username, email=user.email)
        access = self.tokens.issue_access_token(claims)
        refresh = self.tokens.issue_refresh_token(claims)
        self.credentials.add_refresh_token(user.id, refresh)
        return TokenPairOut(access_token=access, refresh_token=refresh)

    def _create_federated(self, identity: ExternalIdentity) -> UserRecord:
        email = identity.email or ""
        base = (identity.name or email.split("@", 1)[0]).strip() or "user"
        base = base[: USERNAME_MAX_LENGTH - _SUFFIX_DIGITS]
        candidates = [base] + [
            f"{base}{secrets.randbelow(10**_SUFFIX_DIGITS):0{_SUFFIX_DIGITS}d}"
            for _ in range(_USERNAME_ATTEMPTS - 1)
        ]
        for username in candidates:
            try:
                return self.credentials.create(
                    username,
                    email,
                    None,
                    external_id=identity.subject,
                    avatar_ref=identity.picture,
                )
            except DuplicateError as exc:
                if exc.kind is not DuplicateKind.USERNAME:
                    # the email was taken by a concurrent registration
                    raise InvalidExternalCredentialError() from exc
        self.log.warning("session.google.username_exhausted", extra={"provider": "google"})
        raise InvalidExternalCredentialError()
