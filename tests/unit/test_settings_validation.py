"""Configuration guard tests."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from authsvc.core.config import Settings


@pytest.mark.parametrize(
    ("refresh_expire", "access_expire"),
    [
        (3600, 3600),
        (3599, 3600),
    ],
)
def test_refresh_expiry_must_exceed_access_expiry(refresh_expire: int, access_expire: int) -> None:
    """Input: refresh expiry <= access expiry -> Output: settings validation fails."""
    with pytest.raises(ValidationError):
        Settings(
            authsvc_jwt_secret="unit-test-secret-key-32-bytes-minimum",
            authsvc_refresh_token_expire_seconds=refresh_expire,
            authsvc_access_token_expire_seconds=access_expire,
        )


def test_jwt_secret_requires_minimum_32_bytes() -> None:
    """Input: secret shorter than 32 bytes -> Output: settings validation fails."""
    with pytest.raises(ValidationError):
        Settings(authsvc_jwt_secret="1234567890123456789012345678901")


def test_defaults_follow_token_lifetimes(monkeypatch: pytest.MonkeyPatch) -> None:
    """Input: only the secret in env -> Output: 1h access, 7d refresh, 300s exchange code."""
    monkeypatch.setenv("AUTHSVC_JWT_SECRET", "env-secret-that-is-at-least-32-bytes-long")

    settings = Settings()

    assert settings.authsvc_access_token_expire_seconds == 3600
    assert settings.authsvc_refresh_token_expire_seconds == 604800
    assert settings.authsvc_exchange_code_expire_seconds == 300


def test_cors_origins_are_split() -> None:
    settings = Settings(
        authsvc_jwt_secret="unit-test-secret-key-32-bytes-minimum",
        authsvc_cors_allow_origins="http://a.test, http://b.test,",
    )
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
