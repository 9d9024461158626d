"""Application settings for the auth service runtime and tests."""

from __future__ import annotations

from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

MIN_JWT_SECRET_BYTES = 32


class Settings(BaseSettings):
    """Typed settings loaded from environment variables or explicit kwargs."""

    model_config = SettingsConfigDict(frozen=True)

    authsvc_app_env: str = "dev"
    authsvc_app_host: str = "127.0.0.1"
    authsvc_app_port: int = Field(default=8000, ge=1)

    authsvc_jwt_secret: str = Field(min_length=1)
    authsvc_access_token_expire_seconds: int = Field(default=3600, ge=1)
    authsvc_refresh_token_expire_seconds: int = Field(default=604800, ge=1)
    authsvc_exchange_code_expire_seconds: int = Field(default=300, ge=1)

    authsvc_sqlite_path: str = "authsvc.db"
    authsvc_sqlite_timeout_seconds: float = Field(default=5.0, gt=0)
    authsvc_cors_allow_origins: str = "*"
    authsvc_frontend_url: str = "http://localhost:3000"

    authsvc_google_client_id: str = ""
    authsvc_google_client_secret: str = ""
    authsvc_google_redirect_uri: str = ""

    authsvc_log_level: str = "INFO"
    authsvc_log_json: bool = True

    @field_validator("authsvc_jwt_secret")
    @classmethod
    def validate_jwt_secret_length(cls, value: str) -> str:
        """HS256 needs at least 256 bits of key material."""
        if len(value.encode("utf-8")) < MIN_JWT_SECRET_BYTES:
            raise ValueError(
                f"AUTHSVC_JWT_SECRET must be at least {MIN_JWT_SECRET_BYTES} bytes"
            )
        return value

    @model_validator(mode="after")
    def validate_refresh_outlives_access(self) -> "Settings":
        """Ensure refresh tokens live longer than access tokens."""
        if (
            self.authsvc_refresh_token_expire_seconds
            <= self.authsvc_access_token_expire_seconds
        ):
            raise ValueError(
                "AUTHSVC_REFRESH_TOKEN_EXPIRE_SECONDS must be greater than "
                "AUTHSVC_ACCESS_TOKEN_EXPIRE_SECONDS"
            )
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.authsvc_cors_allow_origins.split(",")
            if origin.strip()
        ]


def load_settings() -> Settings:
    """Load settings from process environment."""
    return Settings()
