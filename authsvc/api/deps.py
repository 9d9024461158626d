"""Dependency helpers shared by API routers."""

from __future__ import annotations

from typing import Any

from fastapi import Header

import authsvc.runtime as runtime
from authsvc.auth.http import raise_token_expired
from authsvc.auth.http import raise_token_invalid
from authsvc.core.tokens import ACCESS_TOKEN_TYPE
from authsvc.core.tokens import TokenError
from authsvc.core.tokens import TokenExpiredError


def verify_access_token(access_token: str) -> dict[str, Any]:
    """Verify a bearer access token; no store lookup, revocation is refresh-anchored."""
    try:
        return runtime.get_auth_service().codec.verify(
            access_token,
            expected_type=ACCESS_TOKEN_TYPE,
        )
    except TokenExpiredError:
        raise_token_expired()
    except TokenError:
        raise_token_invalid()


def require_current_claims(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """Read and validate Bearer access token from Authorization header."""
    if authorization is None:
        raise_token_invalid()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise_token_invalid()
    return verify_access_token(token)
