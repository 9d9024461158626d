"""SQLite connection helpers for backend persistence."""

from __future__ import annotations

import sqlite3

from authsvc.core.config import Settings


def create_sqlite_connection(path: str, *, timeout: float = 5.0) -> sqlite3.Connection:
    """Create a SQLite connection with foreign key enforcement enabled."""
    conn = sqlite3.connect(path, timeout=timeout)
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def connect(settings: Settings) -> sqlite3.Connection:
    """Open a connection to the configured database."""
    return create_sqlite_connection(
        settings.authsvc_sqlite_path,
        timeout=settings.authsvc_sqlite_timeout_seconds,
    )
