"""Google profile fetcher tests against a mocked token endpoint."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import jwt
import pytest

from authsvc.auth.errors import FederatedAuthError
from authsvc.auth.federated import GOOGLE_TOKEN_URL
from authsvc.auth.federated import GoogleProfileFetcher
from authsvc.auth.federated import build_profile_fetchers
from authsvc.auth.federated import decode_id_token
from authsvc.core.config import Settings

ID_TOKEN_CLAIMS = {
    "sub": "109876543210",
    "email": "a@x.com",
    "email_verified": True,
    "name": "Alice",
    "iss": "https://accounts.google.com",
    "aud": "client-1",
    "exp": 1,
    "unexpected_claim": "ignored",
}


def _id_token(claims: dict[str, object]) -> str:
    return jwt.encode(claims, "google-signing-key-that-we-never-verify", algorithm="HS256")


def _fetcher(handler) -> GoogleProfileFetcher:
    return GoogleProfileFetcher(
        client_id="client-1",
        client_secret="secret-1",
        redirect_uri="http://localhost:8000/api/auth/oauth2/callback/google",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_exchange_code_posts_form_and_decodes_profile() -> None:
    """Input: token endpoint returns id_token -> Output: profile with sub/email."""
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["form"] = parse_qs(request.read().decode("utf-8"))
        return httpx.Response(200, json={"access_token": "at", "id_token": _id_token(ID_TOKEN_CLAIMS)})

    profile = _fetcher(handler).exchange_code("auth-code")

    assert seen["url"] == GOOGLE_TOKEN_URL
    assert seen["form"]["code"] == ["auth-code"]
    assert seen["form"]["grant_type"] == ["authorization_code"]
    assert seen["form"]["client_secret"] == ["secret-1"]
    assert profile.sub == "109876543210"
    assert profile.email == "a@x.com"
    assert profile.email_verified is True


def test_token_endpoint_error_carries_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text='{"error": "invalid_grant"}')

    with pytest.raises(FederatedAuthError, match="Error during Google code exchange: .*invalid_grant"):
        _fetcher(handler).exchange_code("bad-code")


def test_transport_failure_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FederatedAuthError, match="Error during Google code exchange"):
        _fetcher(handler).exchange_code("auth-code")


def test_missing_id_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "at"})

    with pytest.raises(FederatedAuthError, match="No id_token found in Google response"):
        _fetcher(handler).exchange_code("auth-code")


def test_decode_id_token_rejects_bad_shapes() -> None:
    with pytest.raises(FederatedAuthError, match="Invalid id_token format"):
        decode_id_token("single-segment")
    with pytest.raises(FederatedAuthError, match="Failed to decode id_token"):
        decode_id_token("!!!.@@@.###")
    with pytest.raises(FederatedAuthError, match="Failed to decode id_token"):
        decode_id_token(_id_token({"email": "a@x.com"}))


def test_authorization_url_carries_client_and_state() -> None:
    url = httpx.URL(_fetcher(lambda request: httpx.Response(200)).authorization_url("state-1"))

    assert url.host == "accounts.google.com"
    assert url.params["client_id"] == "client-1"
    assert url.params["response_type"] == "code"
    assert url.params["state"] == "state-1"


def test_fetchers_registered_only_when_configured(settings: Settings) -> None:
    assert build_profile_fetchers(settings) == {}

    configured = settings.model_copy(update={"authsvc_google_client_id": "client-1"})
    assert set(build_profile_fetchers(configured)) == {"google"}
