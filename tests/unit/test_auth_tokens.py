"""TokenCodec contract tests."""

from __future__ import annotations

from datetime import datetime
from datetime import timedelta
from datetime import timezone

import jwt
import pytest

from authsvc.core.tokens import ACCESS_TOKEN_TYPE
from authsvc.core.tokens import REFRESH_TOKEN_TYPE
from authsvc.core.tokens import SigningKeyWeakError
from authsvc.core.tokens import TokenCodec
from authsvc.core.tokens import TokenExpiredError
from authsvc.core.tokens import TokenMalformedError
from authsvc.core.tokens import TokenSignatureInvalidError

SECRET = "this-is-a-very-long-secret-key-that-is-at-least-32-bytes"
NOW = datetime(2026, 2, 14, 0, 0, tzinfo=timezone.utc)


def _codec(now: datetime = NOW, secret: str = SECRET) -> TokenCodec:
    return TokenCodec(secret, clock=lambda: now)


def test_access_token_carries_subject_authorities_and_timestamps() -> None:
    """Input: access token for a@x.com/USER -> Output: sub, authorities, iat, exp claims."""
    token = _codec().issue_access_token("a@x.com", ["USER"], 60)

    claims = _codec(NOW + timedelta(seconds=30)).verify(token)

    assert token.count(".") == 2
    assert claims["sub"] == "a@x.com"
    assert claims["authorities"] == ["USER"]
    assert claims["iat"] == int(NOW.timestamp())
    assert claims["exp"] == int(NOW.timestamp()) + 60
    assert claims["type"] == ACCESS_TOKEN_TYPE


def test_refresh_token_has_no_authorities() -> None:
    """Input: refresh token -> Output: subject only, refresh type."""
    codec = _codec()
    token = codec.issue_refresh_token("a@x.com", 3600)

    claims = codec.verify(token, expected_type=REFRESH_TOKEN_TYPE)

    assert claims["sub"] == "a@x.com"
    assert "authorities" not in claims
    assert codec.authorities_of(token) == []


def test_tokens_issued_in_same_second_differ() -> None:
    """Input: two refresh tokens at one instant -> Output: distinct strings."""
    codec = _codec()
    assert codec.issue_refresh_token("a@x.com", 60) != codec.issue_refresh_token("a@x.com", 60)


def test_expired_token_is_rejected() -> None:
    """Input: token checked at exp -> Output: TokenExpiredError."""
    token = _codec().issue_access_token("a@x.com", ["USER"], 1)

    with pytest.raises(TokenExpiredError):
        _codec(NOW + timedelta(seconds=1)).verify(token)


def test_token_signed_with_other_key_is_rejected() -> None:
    """Input: token from another secret -> Output: TokenSignatureInvalidError."""
    foreign = _codec(secret="another-secret-that-is-long-enough-for-hs256").issue_access_token(
        "a@x.com", ["USER"], 60
    )

    with pytest.raises(TokenSignatureInvalidError):
        _codec().verify(foreign)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_garbage_is_malformed(token: str) -> None:
    """Input: non-JWT strings -> Output: TokenMalformedError."""
    with pytest.raises(TokenMalformedError):
        _codec().verify(token)


def test_token_missing_required_claims_is_malformed() -> None:
    """Input: correctly signed token without sub/type -> Output: TokenMalformedError."""
    token = jwt.encode({"exp": int(NOW.timestamp()) + 60, "iat": 0}, SECRET, algorithm="HS256")

    with pytest.raises(TokenMalformedError):
        _codec().verify(token)


def test_refresh_token_is_not_accepted_as_access_token() -> None:
    """Input: refresh token verified as access -> Output: TokenMalformedError."""
    codec = _codec()
    token = codec.issue_refresh_token("a@x.com", 60)

    with pytest.raises(TokenMalformedError):
        codec.verify(token, expected_type=ACCESS_TOKEN_TYPE)


def test_subject_and_authorities_extraction() -> None:
    codec = _codec()
    token = codec.issue_access_token("a@x.com", ["USER", "ADMIN"], 60)

    assert codec.subject_of(token) == "a@x.com"
    assert codec.authorities_of(token) == ["ADMIN", "USER"]


def test_short_secret_fails_fast() -> None:
    """Input: secret under 32 bytes -> Output: SigningKeyWeakError at construction."""
    with pytest.raises(SigningKeyWeakError):
        TokenCodec("too-short")


def test_adequate_secret_signs() -> None:
    assert _codec().issue_access_token("user", [], 3600)
