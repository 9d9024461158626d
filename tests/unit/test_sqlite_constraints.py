"""SQLite schema constraint tests for auth tables."""

from __future__ import annotations

import sqlite3

import pytest

from authsvc.auth.schema import init_auth_schema
from authsvc.core.config import Settings
from authsvc.core.db import create_sqlite_connection


def _insert_account(conn: sqlite3.Connection, account_id: str, email: str) -> None:
    conn.execute(
        "INSERT INTO accounts (id, email, password_hash, status, created_at) VALUES (?, ?, NULL, 'ACTIVE', '2026-02-14T00:00:00Z')",
        (account_id, email),
    )


def test_foreign_key_rejects_refresh_row_without_account(settings: Settings) -> None:
    """Input: refresh row for missing account -> Output: IntegrityError."""
    conn = create_sqlite_connection(settings.authsvc_sqlite_path)
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO refresh_tokens (id, account_id, token_hash, expires_at, created_at) VALUES ('r1', 'missing', 'h', 'x', 'x')"
            )
    finally:
        conn.close()


def test_refresh_tokens_allow_one_row_per_account(settings: Settings) -> None:
    """Input: second plain insert for same account -> Output: IntegrityError."""
    conn = create_sqlite_connection(settings.authsvc_sqlite_path)
    try:
        _insert_account(conn, "a1", "a@x.com")
        conn.execute(
            "INSERT INTO refresh_tokens (id, account_id, token_hash, expires_at, created_at) VALUES ('r1', 'a1', 'h1', 'x', 'x')"
        )
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO refresh_tokens (id, account_id, token_hash, expires_at, created_at) VALUES ('r2', 'a1', 'h2', 'x', 'x')"
            )
    finally:
        conn.close()


def test_provider_subject_binds_to_a_single_link(settings: Settings) -> None:
    """Input: same (provider, subject) for two accounts -> Output: IntegrityError."""
    conn = create_sqlite_connection(settings.authsvc_sqlite_path)
    try:
        _insert_account(conn, "a1", "a@x.com")
        _insert_account(conn, "a2", "b@x.com")
        conn.execute(
            "INSERT INTO identity_links (id, account_id, provider, provider_subject_id, created_at) VALUES ('l1', 'a1', 'GOOGLE', 'g-1', 'x')"
        )
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO identity_links (id, account_id, provider, provider_subject_id, created_at) VALUES ('l2', 'a2', 'GOOGLE', 'g-1', 'x')"
            )
    finally:
        conn.close()


def test_deleting_account_cascades(settings: Settings) -> None:
    """Input: delete account -> Output: its roles, links and refresh row are gone."""
    conn = create_sqlite_connection(settings.authsvc_sqlite_path)
    try:
        _insert_account(conn, "a1", "a@x.com")
        conn.execute("INSERT INTO account_roles (account_id, role) VALUES ('a1', 'USER')")
        conn.execute(
            "INSERT INTO identity_links (id, account_id, provider, provider_subject_id, created_at) VALUES ('l1', 'a1', 'local', 'a@x.com', 'x')"
        )
        conn.execute(
            "INSERT INTO refresh_tokens (id, account_id, token_hash, expires_at, created_at) VALUES ('r1', 'a1', 'h1', 'x', 'x')"
        )
        conn.execute("DELETE FROM accounts WHERE id = 'a1'")

        for table in ("account_roles", "identity_links", "refresh_tokens"):
            count = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            assert count == 0, table
    finally:
        conn.close()


def test_schema_init_is_idempotent(settings: Settings) -> None:
    init_auth_schema(settings)
    init_auth_schema(settings)
