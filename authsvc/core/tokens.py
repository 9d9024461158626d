"""JWT access/refresh token codec."""

from __future__ import annotations

import secrets
from collections.abc import Iterable
from datetime import timedelta
from datetime import timezone
from typing import Any

import jwt

from authsvc.core.clock import Clock
from authsvc.core.clock import utc_now

ALGORITHM = "HS256"
MIN_SECRET_BYTES = 32

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_REQUIRED_CLAIMS = ("sub", "iat", "exp", "type")


class SigningKeyWeakError(ValueError):
    """Raised when the configured secret is too short for HS256."""


class TokenError(ValueError):
    """Base token verification error."""


class TokenMalformedError(TokenError):
    """Raised when a token cannot be decoded or misses required claims."""


class TokenSignatureInvalidError(TokenError):
    """Raised when a token signature does not match the signing key."""


class TokenExpiredError(TokenError):
    """Raised when a token is past its exp claim."""


class TokenCodec:
    """Issue and verify compact HS256 tokens carrying sub/authorities/iat/exp.

    Verification is a pure computation: it never consults a store, so a
    refresh token that verifies here may still be dead server-side.
    """

    def __init__(self, secret: str, *, clock: Clock = utc_now) -> None:
        key = secret.encode("utf-8")
        if len(key) < MIN_SECRET_BYTES:
            raise SigningKeyWeakError(
                f"signing secret must be at least {MIN_SECRET_BYTES} bytes, got {len(key)}"
            )
        self._key = key
        self._clock = clock

    def issue_access_token(
        self,
        subject: str,
        authorities: Iterable[str],
        ttl_seconds: int,
    ) -> str:
        return self._encode(
            subject=subject,
            token_type=ACCESS_TOKEN_TYPE,
            ttl_seconds=ttl_seconds,
            extra={"authorities": sorted(authorities)},
        )

    def issue_refresh_token(self, subject: str, ttl_seconds: int) -> str:
        return self._encode(
            subject=subject,
            token_type=REFRESH_TOKEN_TYPE,
            ttl_seconds=ttl_seconds,
        )

    def verify(self, token: str, *, expected_type: str | None = None) -> dict[str, Any]:
        """Verify signature and expiry, returning the claim set."""
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(_REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenSignatureInvalidError("token signature is invalid") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenMalformedError("token is malformed") from exc

        exp = payload.get("exp")
        if not isinstance(exp, int) or not isinstance(payload.get("sub"), str):
            raise TokenMalformedError("missing or invalid sub/exp")
        if expected_type is not None and payload.get("type") != expected_type:
            raise TokenMalformedError(f"expected a {expected_type} token")

        now_ts = int(self._clock().astimezone(timezone.utc).timestamp())
        if now_ts >= exp:
            raise TokenExpiredError("token expired")

        return payload

    def subject_of(self, token: str) -> str:
        return str(self.verify(token)["sub"])

    def authorities_of(self, token: str) -> list[str]:
        authorities = self.verify(token).get("authorities") or []
        return [str(authority) for authority in authorities]

    def _encode(
        self,
        *,
        subject: str,
        token_type: str,
        ttl_seconds: int,
        extra: dict[str, Any] | None = None,
    ) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
            "jti": secrets.token_urlsafe(16),
            "type": token_type,
        }
        if extra:
            payload.update(extra)
        return jwt.encode(payload, self._key, algorithm=ALGORITHM)
