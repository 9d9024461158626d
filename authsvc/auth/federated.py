"""Identity-provider handshakes that turn an authorization code into a profile."""

from __future__ import annotations

from typing import Any
from typing import Protocol

import httpx
import jwt
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import ValidationError

from authsvc.auth.errors import FederatedAuthError
from authsvc.core.config import Settings
from authsvc.logging import get_logger

logger = get_logger(__name__)

GOOGLE_PROVIDER = "google"
GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class FederatedProfile(BaseModel):
    """Provider-neutral subset every fetcher must supply."""

    model_config = ConfigDict(extra="ignore")

    sub: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None


class GoogleUserInfo(FederatedProfile):
    """Claims of a Google id_token."""

    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None
    locale: str | None = None
    hd: str | None = None
    iss: str | None = None
    azp: str | None = None
    aud: str | list[str] | None = None
    iat: int | None = None
    exp: int | None = None
    at_hash: str | None = None
    nonce: str | None = None


class FederatedProfileFetcher(Protocol):
    """Per-provider capability selected by provider name."""

    provider: str

    def authorization_url(self, state: str) -> str: ...

    def exchange_code(self, code: str) -> FederatedProfile: ...


def decode_id_token(id_token: str) -> GoogleUserInfo:
    """Read the claim set of an id_token received straight from the token endpoint."""
    if len(id_token.split(".")) < 2:
        raise FederatedAuthError("Invalid id_token format")
    try:
        claims: dict[str, Any] = jwt.decode(id_token, options={"verify_signature": False})
        return GoogleUserInfo.model_validate(claims)
    except (jwt.InvalidTokenError, ValidationError) as exc:
        raise FederatedAuthError("Failed to decode id_token") from exc


class GoogleProfileFetcher:
    """OAuth2 authorization-code exchange against Google."""

    provider = GOOGLE_PROVIDER

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._http = http_client or httpx.Client(timeout=timeout_seconds)

    def authorization_url(self, state: str) -> str:
        url = httpx.URL(
            GOOGLE_AUTHORIZATION_URL,
            params={
                "client_id": self._client_id,
                "redirect_uri": self._redirect_uri,
                "response_type": "code",
                "scope": "openid email profile",
                "state": state,
            },
        )
        return str(url)

    def exchange_code(self, code: str) -> GoogleUserInfo:
        try:
            response = self._http.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "redirect_uri": self._redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("federated_exchange_failed", provider=self.provider, error=str(exc))
            raise FederatedAuthError("Error during Google code exchange") from exc

        if response.is_error:
            logger.warning(
                "federated_exchange_failed",
                provider=self.provider,
                status=response.status_code,
            )
            raise FederatedAuthError(f"Error during Google code exchange: {response.text}")

        try:
            body = response.json()
        except ValueError as exc:
            raise FederatedAuthError("Error during Google code exchange") from exc

        id_token = body.get("id_token") if isinstance(body, dict) else None
        if not id_token:
            raise FederatedAuthError("No id_token found in Google response")
        return decode_id_token(str(id_token))


def build_profile_fetchers(settings: Settings) -> dict[str, FederatedProfileFetcher]:
    """Register fetchers for every provider that has client credentials configured."""
    fetchers: dict[str, FederatedProfileFetcher] = {}
    if settings.authsvc_google_client_id:
        fetchers[GOOGLE_PROVIDER] = GoogleProfileFetcher(
            client_id=settings.authsvc_google_client_id,
            client_secret=settings.authsvc_google_client_secret,
            redirect_uri=settings.authsvc_google_redirect_uri,
        )
    return fetchers
