"""Process-wide runtime state shared by REST handlers."""

from __future__ import annotations

from authsvc.auth.federated import build_profile_fetchers
from authsvc.auth.service import AuthService
from authsvc.auth.service import startup_auth_schema
from authsvc.core.config import Settings
from authsvc.core.config import load_settings
from authsvc.logging import configure_logging

settings: Settings | None = None
auth_service: AuthService | None = None


def build_auth_service(app_settings: Settings) -> AuthService:
    return AuthService(app_settings, fetchers=build_profile_fetchers(app_settings))


def startup(app_settings: Settings | None = None, service: AuthService | None = None) -> AuthService:
    """Load settings, ensure the schema exists and build the auth service."""
    global settings, auth_service
    settings = app_settings or load_settings()
    configure_logging(
        log_level=settings.authsvc_log_level,
        json_output=settings.authsvc_log_json,
    )
    startup_auth_schema(settings)
    auth_service = service or build_auth_service(settings)
    return auth_service


def get_auth_service() -> AuthService:
    if auth_service is None:
        return startup()
    return auth_service


__all__ = [
    "Settings",
    "auth_service",
    "build_auth_service",
    "get_auth_service",
    "settings",
    "startup",
]
