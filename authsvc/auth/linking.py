"""Resolve an external identity-provider subject to a local account."""

from __future__ import annotations

import sqlite3

from authsvc.auth.errors import MissingEmailClaimError
from authsvc.auth.models import Account
from authsvc.auth.models import AccountStatus
from authsvc.auth.models import Role
from authsvc.auth.repository import create_account
from authsvc.auth.repository import create_identity_link
from authsvc.auth.repository import get_account_by_email
from authsvc.auth.repository import get_account_by_id
from authsvc.auth.repository import get_identity_link
from authsvc.core.clock import Clock
from authsvc.core.clock import to_utc_iso
from authsvc.core.clock import utc_now
from authsvc.core.config import Settings
from authsvc.logging import get_logger

logger = get_logger(__name__)


class IdentityLinkResolver:
    """Find, link or create the account behind a (provider, subject) pair.

    An existing link wins over an email match; email is only the first-time
    correlation key, so a user who registered locally and later signs in
    with a provider using the same email keeps a single account.
    """

    def __init__(self, settings: Settings, *, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock

    def resolve(self, provider: str, provider_subject_id: str, email: str | None) -> Account:
        if not email:
            raise MissingEmailClaimError("email not found from identity provider")

        try:
            return self._resolve_once(provider, provider_subject_id, email)
        except sqlite3.IntegrityError:
            # A concurrent first login won the unique constraint; its rows are now readable.
            logger.info("identity_link_race_retry", provider=provider)
            return self._resolve_once(provider, provider_subject_id, email)

    def _resolve_once(self, provider: str, provider_subject_id: str, email: str) -> Account:
        link = get_identity_link(
            settings=self._settings,
            provider=provider,
            provider_subject_id=provider_subject_id,
        )
        if link is not None:
            account = get_account_by_id(settings=self._settings, account_id=link.account_id)
            if account is not None:
                return account

        created_at = to_utc_iso(self._clock())
        account = get_account_by_email(settings=self._settings, email=email)
        if account is not None:
            create_identity_link(
                settings=self._settings,
                account_id=account.id,
                provider=provider,
                provider_subject_id=provider_subject_id,
                created_at=created_at,
            )
            logger.info("identity_linked", provider=provider, account_id=account.id)
            return account

        account = create_account(
            settings=self._settings,
            email=email,
            password_hash=None,
            status=AccountStatus.ACTIVE,
            roles=[Role.USER],
            created_at=created_at,
            provider=provider,
            provider_subject_id=provider_subject_id,
        )
        logger.info("account_created_from_identity", provider=provider, account_id=account.id)
        return account
