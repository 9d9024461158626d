"""Auth REST routes."""

from __future__ import annotations

import hmac
import secrets

from fastapi import APIRouter
from fastapi import Cookie
from fastapi import Header
from fastapi import Response
from fastapi.responses import RedirectResponse

import authsvc.runtime as runtime
from authsvc.api.deps import require_current_claims
from authsvc.auth.errors import FederatedAuthError
from authsvc.auth.models import ExchangeCodeRequest
from authsvc.auth.models import FederatedLoginRequest
from authsvc.auth.models import LoginRequest
from authsvc.auth.models import RefreshRequest
from authsvc.auth.models import RegisterRequest

router = APIRouter()

OAUTH_STATE_COOKIE = "authsvc_oauth_state"
OAUTH_STATE_MAX_AGE_SECONDS = 600


@router.post("/api/auth/register")
def register(payload: RegisterRequest) -> dict[str, object]:
    """Create an account and issue its first token pair."""
    return runtime.get_auth_service().register(payload.email, payload.password)


@router.post("/api/auth/login")
def login(payload: LoginRequest) -> dict[str, object]:
    """Authenticate with email/password and issue a fresh token pair."""
    return runtime.get_auth_service().login(payload.email, payload.password)


@router.post("/api/auth/google")
def google_login(payload: FederatedLoginRequest) -> dict[str, object]:
    """Exchange a Google authorization code for a token pair."""
    return runtime.get_auth_service().federated_code_login("google", payload.code)


@router.get("/api/auth/oauth2/authorize/{provider}")
def oauth2_authorize(provider: str) -> RedirectResponse:
    """Start a redirect login at the identity provider."""
    state = secrets.token_urlsafe(24)
    url = runtime.get_auth_service().authorization_url(provider, state)
    response = RedirectResponse(url, status_code=302)
    response.set_cookie(
        OAUTH_STATE_COOKIE,
        state,
        max_age=OAUTH_STATE_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/api/auth/oauth2/callback/{provider}")
def oauth2_callback(
    provider: str,
    code: str,
    state: str,
    authsvc_oauth_state: str | None = Cookie(default=None),
) -> RedirectResponse:
    """Finish a redirect login and hand an exchange code to the frontend."""
    if authsvc_oauth_state is None or not hmac.compare_digest(authsvc_oauth_state, state):
        raise FederatedAuthError("oauth2 state mismatch")

    service = runtime.get_auth_service()
    exchange_code = service.complete_redirect_login(provider, code)
    frontend_url = service.settings.authsvc_frontend_url.rstrip("/")
    response = RedirectResponse(
        f"{frontend_url}/{provider.lower()}-login-success?code={exchange_code}",
        status_code=302,
    )
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@router.post("/api/auth/oauth2/exchange")
def oauth2_exchange(payload: ExchangeCodeRequest) -> dict[str, object]:
    """Redeem a one-time exchange code for a token pair."""
    return runtime.get_auth_service().exchange_code(payload.code)


@router.post("/api/auth/refresh")
def refresh(payload: RefreshRequest) -> dict[str, object]:
    """Rotate refresh token and issue a new access/refresh pair."""
    return runtime.get_auth_service().refresh(payload.refresh_token)


@router.get("/api/auth/me")
def me_route(authorization: str | None = Header(default=None, alias="Authorization")) -> dict[str, object]:
    """Return the profile behind a Bearer access token."""
    claims = require_current_claims(authorization)
    return runtime.get_auth_service().me(str(claims["sub"]))


@router.post("/api/auth/logout", status_code=204)
def logout(authorization: str | None = Header(default=None, alias="Authorization")) -> Response:
    """Kill the caller's refresh token; the access token lives until exp."""
    claims = require_current_claims(authorization)
    runtime.get_auth_service().logout(str(claims["sub"]))
    return Response(status_code=204)
