"""Persistence helpers for accounts and identity links."""

from __future__ import annotations

import sqlite3
import uuid
from collections.abc import Iterable

from authsvc.auth.models import Account
from authsvc.auth.models import AccountStatus
from authsvc.auth.models import IdentityLink
from authsvc.auth.models import Role
from authsvc.core.config import Settings
from authsvc.core.db import connect

AccountRow = tuple[str, str, str | None, str, str]


def new_id() -> str:
    return str(uuid.uuid4())


def _load_account(conn: sqlite3.Connection, row: AccountRow | None) -> Account | None:
    if row is None:
        return None
    account_id, email, password_hash, status, created_at = row
    roles = conn.execute(
        "SELECT role FROM account_roles WHERE account_id = ?",
        (account_id,),
    ).fetchall()
    return Account(
        id=str(account_id),
        email=str(email),
        password_hash=None if password_hash is None else str(password_hash),
        status=AccountStatus(status),
        created_at=str(created_at),
        roles=frozenset(Role(role) for (role,) in roles),
    )


def create_account(
    *,
    settings: Settings,
    email: str,
    password_hash: str | None,
    status: AccountStatus,
    roles: Iterable[Role],
    created_at: str,
    provider: str,
    provider_subject_id: str,
) -> Account:
    """Insert an account, its roles and its first identity link in one transaction.

    Raises sqlite3.IntegrityError when the email or the provider subject is taken.
    """
    account_id = new_id()
    role_set = frozenset(roles)
    conn = connect(settings)
    try:
        conn.execute("BEGIN")
        conn.execute(
            """
            INSERT INTO accounts (id, email, password_hash, status, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (account_id, email, password_hash, status.value, created_at),
        )
        conn.executemany(
            "INSERT INTO account_roles (account_id, role) VALUES (?, ?)",
            [(account_id, role.value) for role in sorted(role_set, key=lambda r: r.value)],
        )
        conn.execute(
            """
            INSERT INTO identity_links (id, account_id, provider, provider_subject_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (new_id(), account_id, provider, provider_subject_id, created_at),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    return Account(
        id=account_id,
        email=email,
        password_hash=password_hash,
        status=status,
        created_at=created_at,
        roles=role_set,
    )


def get_account_by_email(*, settings: Settings, email: str) -> Account | None:
    conn = connect(settings)
    try:
        row = conn.execute(
            """
            SELECT id, email, password_hash, status, created_at
            FROM accounts
            WHERE email = ?
            """,
            (email,),
        ).fetchone()
        return _load_account(conn, row)
    finally:
        conn.close()


def get_account_by_id(*, settings: Settings, account_id: str) -> Account | None:
    conn = connect(settings)
    try:
        row = conn.execute(
            """
            SELECT id, email, password_hash, status, created_at
            FROM accounts
            WHERE id = ?
            """,
            (account_id,),
        ).fetchone()
        return _load_account(conn, row)
    finally:
        conn.close()


def update_account_status(*, settings: Settings, email: str, status: AccountStatus) -> bool:
    """Set an account status; returns False when no account has that email."""
    conn = connect(settings)
    try:
        cursor = conn.execute(
            "UPDATE accounts SET status = ? WHERE email = ?",
            (status.value, email),
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()


def get_identity_link(
    *,
    settings: Settings,
    provider: str,
    provider_subject_id: str,
) -> IdentityLink | None:
    conn = connect(settings)
    try:
        row = conn.execute(
            """
            SELECT id, account_id, provider, provider_subject_id
            FROM identity_links
            WHERE provider = ? AND provider_subject_id = ?
            """,
            (provider, provider_subject_id),
        ).fetchone()
        if row is None:
            return None
        link_id, account_id, link_provider, subject_id = row
        return IdentityLink(
            id=str(link_id),
            account_id=str(account_id),
            provider=str(link_provider),
            provider_subject_id=str(subject_id),
        )
    finally:
        conn.close()


def create_identity_link(
    *,
    settings: Settings,
    account_id: str,
    provider: str,
    provider_subject_id: str,
    created_at: str,
) -> IdentityLink:
    """Insert one identity link; sqlite3.IntegrityError if the subject is already bound."""
    link_id = new_id()
    conn = connect(settings)
    try:
        conn.execute(
            """
            INSERT INTO identity_links (id, account_id, provider, provider_subject_id, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (link_id, account_id, provider, provider_subject_id, created_at),
        )
        conn.commit()
    finally:
        conn.close()
    return IdentityLink(
        id=link_id,
        account_id=account_id,
        provider=provider,
        provider_subject_id=provider_subject_id,
    )
