"""Auth business logic: register/login/federated/exchange/refresh/me/logout."""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from datetime import timedelta

from authsvc.auth.errors import AccountNotActiveError
from authsvc.auth.errors import AccountNotFoundError
from authsvc.auth.errors import EmailAlreadyInUseError
from authsvc.auth.errors import ExchangeCodeExpiredError
from authsvc.auth.errors import ExchangeCodeNotFoundError
from authsvc.auth.errors import FederatedAuthError
from authsvc.auth.errors import InvalidCredentialsError
from authsvc.auth.errors import RefreshTokenExpiredError
from authsvc.auth.errors import RefreshTokenNotFoundError
from authsvc.auth.exchange_codes import ExchangeCodeStore
from authsvc.auth.federated import FederatedProfileFetcher
from authsvc.auth.linking import IdentityLinkResolver
from authsvc.auth.models import LOCAL_PROVIDER
from authsvc.auth.models import Account
from authsvc.auth.models import AccountStatus
from authsvc.auth.models import Role
from authsvc.auth.refresh_store import RefreshTokenStore
from authsvc.auth.repository import create_account
from authsvc.auth.repository import get_account_by_email
from authsvc.auth.repository import get_account_by_id
from authsvc.auth.schema import init_auth_schema
from authsvc.core.clock import Clock
from authsvc.core.clock import to_utc_iso
from authsvc.core.clock import utc_now
from authsvc.core.config import Settings
from authsvc.core.email import normalize_and_validate_email
from authsvc.core.email import normalize_email
from authsvc.core.password import BcryptCredentialVerifier
from authsvc.core.password import CredentialVerifier
from authsvc.core.tokens import TokenCodec
from authsvc.logging import get_logger

logger = get_logger(__name__)


def startup_auth_schema(settings: Settings) -> None:
    """Ensure auth tables exist before handling traffic."""
    init_auth_schema(settings)


class AuthService:
    """Compose credential checks, identity linking and token issuance.

    Every operation that hands out tokens for an existing account goes
    through the ACTIVE gate. ``me`` is a pure read and bypasses it.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        clock: Clock = utc_now,
        verifier: CredentialVerifier | None = None,
        codec: TokenCodec | None = None,
        refresh_store: RefreshTokenStore | None = None,
        exchange_codes: ExchangeCodeStore | None = None,
        resolver: IdentityLinkResolver | None = None,
        fetchers: Mapping[str, FederatedProfileFetcher] | None = None,
    ) -> None:
        self.settings = settings
        self.clock = clock
        self.verifier = verifier or BcryptCredentialVerifier()
        self.codec = codec or TokenCodec(settings.authsvc_jwt_secret, clock=clock)
        self.refresh_store = refresh_store or RefreshTokenStore(settings, clock=clock)
        self.exchange_codes = exchange_codes or ExchangeCodeStore(settings, clock=clock)
        self.resolver = resolver or IdentityLinkResolver(settings, clock=clock)
        self.fetchers = dict(fetchers or {})

    # -- password ---------------------------------------------------------

    def register(self, email: str, password: str) -> dict[str, object]:
        """Create an ACTIVE USER account with a local link and issue a token pair."""
        normalized_email = normalize_and_validate_email(email)
        if get_account_by_email(settings=self.settings, email=normalized_email) is not None:
            raise EmailAlreadyInUseError("email already in use")

        try:
            account = create_account(
                settings=self.settings,
                email=normalized_email,
                password_hash=self.verifier.hash(password),
                status=AccountStatus.ACTIVE,
                roles=[Role.USER],
                created_at=to_utc_iso(self.clock()),
                provider=LOCAL_PROVIDER,
                provider_subject_id=normalized_email,
            )
        except sqlite3.IntegrityError as exc:
            raise EmailAlreadyInUseError("email already in use") from exc

        logger.info("account_registered", account_id=account.id)
        return self._issue_token_pair(account)

    def login(self, email: str, password: str) -> dict[str, object]:
        """Authenticate with email/password; unknown email and bad password look the same."""
        account = get_account_by_email(settings=self.settings, email=normalize_email(email))
        if account is None:
            logger.info("login_rejected", reason="unknown_email")
            raise InvalidCredentialsError("invalid email or password")
        if not self.verifier.matches(password, account.password_hash):
            logger.info("login_rejected", reason="password_mismatch", account_id=account.id)
            raise InvalidCredentialsError("invalid email or password")

        self._require_active(account)
        return self._issue_token_pair(account)

    # -- federated --------------------------------------------------------

    def federated_login(
        self,
        provider: str,
        provider_subject_id: str,
        email: str | None,
    ) -> dict[str, object]:
        account = self._resolve(provider, provider_subject_id, email)
        self._require_active(account)
        return self._issue_token_pair(account)

    def federated_code_login(self, provider: str, code: str) -> dict[str, object]:
        """Exchange a provider authorization code and sign the user in."""
        fetcher = self._fetcher(provider)
        profile = fetcher.exchange_code(code)
        return self.federated_login(fetcher.provider, profile.sub, profile.email)

    def redirect_success(self, email: str) -> str:
        """Hand identity across a redirect; tokens are minted later by ``exchange_code``."""
        code = self.exchange_codes.issue(email)
        logger.info("exchange_code_issued")
        return code

    def complete_redirect_login(self, provider: str, code: str) -> str:
        """Provider callback: resolve the account, then issue an exchange code."""
        fetcher = self._fetcher(provider)
        profile = fetcher.exchange_code(code)
        account = self._resolve(fetcher.provider, profile.sub, profile.email)
        return self.redirect_success(account.email)

    def exchange_code(self, code: str) -> dict[str, object]:
        try:
            email = self.exchange_codes.redeem(code)
        except (ExchangeCodeNotFoundError, ExchangeCodeExpiredError) as exc:
            logger.info("exchange_code_rejected", reason=type(exc).__name__)
            raise
        account = get_account_by_email(settings=self.settings, email=email)
        if account is None:
            raise AccountNotFoundError("account not found")
        self._require_active(account)
        return self._issue_token_pair(account)

    def authorization_url(self, provider: str, state: str) -> str:
        return self._fetcher(provider).authorization_url(state)

    # -- refresh / session ------------------------------------------------

    def refresh(self, refresh_token: str) -> dict[str, object]:
        """Rotate a refresh token.

        Liveness is decided by the store row, not the signature: a signed,
        unexpired token whose row was replaced or deleted is rejected.
        """
        record = self.refresh_store.find_by_token(refresh_token)
        if record is None:
            logger.info("refresh_rejected", reason="not_found")
            raise RefreshTokenNotFoundError("refresh token not found")
        if record.is_expired(self.clock()):
            self.refresh_store.delete(record.id)
            logger.info("refresh_rejected", reason="expired", account_id=record.account_id)
            raise RefreshTokenExpiredError("refresh token expired")

        account = get_account_by_id(settings=self.settings, account_id=record.account_id)
        if account is None:
            raise AccountNotFoundError("account not found")
        self._require_active(account)
        return self._issue_token_pair(account, previous_refresh_token=refresh_token)

    def me(self, email: str) -> dict[str, object]:
        account = get_account_by_email(settings=self.settings, email=email)
        if account is None:
            raise AccountNotFoundError("account not found")
        return account.profile()

    def logout(self, email: str) -> None:
        """Drop the account's refresh row; issued access tokens live until exp."""
        account = get_account_by_email(settings=self.settings, email=email)
        if account is None:
            return
        deleted = self.refresh_store.delete_by_account(account.id)
        logger.info("logout", account_id=account.id, deleted=deleted)

    # -- helpers ----------------------------------------------------------

    def _resolve(self, provider: str, provider_subject_id: str, email: str | None) -> Account:
        # Federated providers are stored under their upper-cased registration name.
        return self.resolver.resolve(
            provider.upper(),
            provider_subject_id,
            normalize_email(email) if email else email,
        )

    def _fetcher(self, provider: str) -> FederatedProfileFetcher:
        fetcher = self.fetchers.get(provider.lower())
        if fetcher is None:
            raise FederatedAuthError(f"unsupported identity provider: {provider}")
        return fetcher

    @staticmethod
    def _require_active(account: Account) -> None:
        if account.status is not AccountStatus.ACTIVE:
            logger.info("account_gate_rejected", account_id=account.id, status=account.status.value)
            raise AccountNotActiveError(account.status.value)

    def _issue_token_pair(
        self,
        account: Account,
        *,
        previous_refresh_token: str | None = None,
    ) -> dict[str, object]:
        """Mint access + refresh tokens and store the refresh row.

        Logins replace whatever row the account has. A refresh only swaps its
        own row, so a concurrent logout or rotation makes it fail instead.
        """
        access_ttl = self.settings.authsvc_access_token_expire_seconds
        refresh_ttl = self.settings.authsvc_refresh_token_expire_seconds

        access_token = self.codec.issue_access_token(account.email, account.role_names, access_ttl)
        refresh_token = self.codec.issue_refresh_token(account.email, refresh_ttl)
        expires_at = self.clock() + timedelta(seconds=refresh_ttl)
        if previous_refresh_token is None:
            self.refresh_store.upsert(
                account_id=account.id,
                token=refresh_token,
                expires_at=expires_at,
            )
        else:
            try:
                self.refresh_store.rotate(
                    account_id=account.id,
                    old_token=previous_refresh_token,
                    new_token=refresh_token,
                    expires_at=expires_at,
                )
            except RefreshTokenNotFoundError:
                logger.info("refresh_rejected", reason="superseded", account_id=account.id)
                raise
        logger.info("token_pair_issued", account_id=account.id)

        return {
            "access_token": access_token,
            "token_type": "Bearer",
            "expires_in": access_ttl,
            "refresh_token": refresh_token,
            "refresh_expires_in": refresh_ttl,
            "user": account.profile(),
        }
