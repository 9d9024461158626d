"""One-time exchange codes bridging a redirect login to the token API."""

from __future__ import annotations

import secrets
from datetime import datetime
from datetime import timedelta

from authsvc.auth.errors import ExchangeCodeExpiredError
from authsvc.auth.errors import ExchangeCodeNotFoundError
from authsvc.core.clock import Clock
from authsvc.core.clock import from_utc_iso
from authsvc.core.clock import to_utc_iso
from authsvc.core.clock import utc_now
from authsvc.core.config import Settings
from authsvc.core.db import connect


class ExchangeCodeStore:
    """Issue and redeem single-use, time-boxed codes bound to an email."""

    def __init__(self, settings: Settings, *, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock
        self._ttl = timedelta(seconds=settings.authsvc_exchange_code_expire_seconds)

    def issue(self, email: str) -> str:
        code = secrets.token_urlsafe(32)
        now = self._clock()
        conn = connect(self._settings)
        try:
            conn.execute(
                """
                INSERT INTO exchange_codes (code, email, expires_at, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (code, email, to_utc_iso(now + self._ttl), to_utc_iso(now)),
            )
            conn.commit()
        finally:
            conn.close()
        return code

    def redeem(self, code: str) -> str:
        """Consume a code and return its email.

        The row is deleted before expiry is judged, so an expired code is
        gone too and no code is ever redeemable twice.
        """
        conn = connect(self._settings)
        try:
            # IMMEDIATE takes the write lock up front: two redeemers cannot both read the row.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT email, expires_at FROM exchange_codes WHERE code = ?",
                (code,),
            ).fetchone()
            if row is not None:
                conn.execute("DELETE FROM exchange_codes WHERE code = ?", (code,))
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if row is None:
            raise ExchangeCodeNotFoundError("exchange code not found")
        email, expires_at = row
        if self._clock() >= from_utc_iso(str(expires_at)):
            raise ExchangeCodeExpiredError("exchange code expired")
        return str(email)

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = to_utc_iso(now or self._clock())
        conn = connect(self._settings)
        try:
            cursor = conn.execute(
                "DELETE FROM exchange_codes WHERE expires_at <= ?",
                (cutoff,),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
