"""Shared fixtures for auth service tests."""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import timezone
from pathlib import Path

import pytest
from passlib.context import CryptContext

from authsvc.auth.errors import FederatedAuthError
from authsvc.auth.federated import FederatedProfile
from authsvc.auth.schema import init_auth_schema
from authsvc.auth.service import AuthService
from authsvc.core.config import Settings
from authsvc.core.password import BcryptCredentialVerifier

TEST_JWT_SECRET = "unit-test-secret-key-32-bytes-minimum"


class FrozenClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeProfileFetcher:
    """In-memory identity provider keyed by authorization code."""

    provider = "google"

    def __init__(self) -> None:
        self.profiles: dict[str, FederatedProfile] = {}

    def add(self, code: str, *, sub: str, email: str | None) -> None:
        self.profiles[code] = FederatedProfile(sub=sub, email=email, email_verified=email is not None)

    def authorization_url(self, state: str) -> str:
        return f"https://idp.test/authorize?state={state}"

    def exchange_code(self, code: str) -> FederatedProfile:
        try:
            return self.profiles[code]
        except KeyError:
            raise FederatedAuthError("Error during Google code exchange: invalid_grant") from None


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 2, 14, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a per-test SQLite file with an initialized schema."""
    app_settings = Settings(
        authsvc_jwt_secret=TEST_JWT_SECRET,
        authsvc_sqlite_path=str(tmp_path / "authsvc.sqlite3"),
        authsvc_frontend_url="http://frontend.test",
        authsvc_log_json=False,
    )
    init_auth_schema(app_settings)
    return app_settings


@pytest.fixture
def verifier() -> BcryptCredentialVerifier:
    """bcrypt at minimum cost keeps the suite fast."""
    return BcryptCredentialVerifier(CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def fetcher() -> FakeProfileFetcher:
    return FakeProfileFetcher()


@pytest.fixture
def service(
    settings: Settings,
    clock: FrozenClock,
    verifier: BcryptCredentialVerifier,
    fetcher: FakeProfileFetcher,
) -> AuthService:
    return AuthService(settings, clock=clock, verifier=verifier, fetchers={"google": fetcher})
