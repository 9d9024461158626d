"""Server-side refresh token rows: at most one live token per account."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime

from authsvc.auth.errors import RefreshTokenNotFoundError
from authsvc.auth.repository import new_id
from authsvc.core.clock import Clock
from authsvc.core.clock import from_utc_iso
from authsvc.core.clock import to_utc_iso
from authsvc.core.clock import utc_now
from authsvc.core.config import Settings
from authsvc.core.db import connect


def hash_refresh_token(plain_token: str) -> str:
    return hashlib.sha256(plain_token.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """Stored refresh token metadata; the plain token is never persisted."""

    id: str
    account_id: str
    token_hash: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class RefreshTokenStore:
    """SQLite-backed store keyed by account.

    ``upsert`` is a single ``INSERT ... ON CONFLICT(account_id)`` statement, so
    concurrent logins for one account never leave zero or two rows behind.
    ``rotate`` is a conditional UPDATE on the presented token, so a refresh
    never resurrects a row that logout or another rotation already removed.
    Rows do not self-expire; callers judge expiry on read.
    """

    def __init__(self, settings: Settings, *, clock: Clock = utc_now) -> None:
        self._settings = settings
        self._clock = clock

    def upsert(self, *, account_id: str, token: str, expires_at: datetime) -> None:
        conn = connect(self._settings)
        try:
            conn.execute(
                """
                INSERT INTO refresh_tokens (id, account_id, token_hash, expires_at, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (account_id) DO UPDATE SET
                    id = excluded.id,
                    token_hash = excluded.token_hash,
                    expires_at = excluded.expires_at,
                    created_at = excluded.created_at
                """,
                (
                    new_id(),
                    account_id,
                    hash_refresh_token(token),
                    to_utc_iso(expires_at),
                    to_utc_iso(self._clock()),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def rotate(
        self,
        *,
        account_id: str,
        old_token: str,
        new_token: str,
        expires_at: datetime,
    ) -> None:
        """Swap ``old_token`` for ``new_token`` only while ``old_token`` is still the live row.

        Raises RefreshTokenNotFoundError when the row was replaced or deleted
        after the caller read it.
        """
        conn = connect(self._settings)
        try:
            cursor = conn.execute(
                """
                UPDATE refresh_tokens
                SET id = ?, token_hash = ?, expires_at = ?, created_at = ?
                WHERE account_id = ? AND token_hash = ?
                """,
                (
                    new_id(),
                    hash_refresh_token(new_token),
                    to_utc_iso(expires_at),
                    to_utc_iso(self._clock()),
                    account_id,
                    hash_refresh_token(old_token),
                ),
            )
            conn.commit()
            rotated = cursor.rowcount
        finally:
            conn.close()
        if rotated == 0:
            raise RefreshTokenNotFoundError("refresh token not found")

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        conn = connect(self._settings)
        try:
            row = conn.execute(
                """
                SELECT id, account_id, token_hash, expires_at, created_at
                FROM refresh_tokens
                WHERE token_hash = ?
                """,
                (hash_refresh_token(token),),
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        record_id, account_id, token_hash, expires_at, created_at = row
        return RefreshTokenRecord(
            id=str(record_id),
            account_id=str(account_id),
            token_hash=str(token_hash),
            expires_at=from_utc_iso(str(expires_at)),
            created_at=from_utc_iso(str(created_at)),
        )

    def delete(self, record_id: str) -> None:
        """Delete one row by id; a row already replaced by a newer upsert is left alone."""
        conn = connect(self._settings)
        try:
            conn.execute("DELETE FROM refresh_tokens WHERE id = ?", (record_id,))
            conn.commit()
        finally:
            conn.close()

    def delete_by_account(self, account_id: str) -> int:
        conn = connect(self._settings)
        try:
            cursor = conn.execute(
                "DELETE FROM refresh_tokens WHERE account_id = ?",
                (account_id,),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = to_utc_iso(now or self._clock())
        conn = connect(self._settings)
        try:
            cursor = conn.execute(
                "DELETE FROM refresh_tokens WHERE expires_at <= ?",
                (cutoff,),
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
