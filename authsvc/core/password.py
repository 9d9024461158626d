"""Password hashing capability used by the auth service."""

from __future__ import annotations

from typing import Protocol

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

# Keep algorithms centralized so auth code only depends on the verifier.
_PASSWORD_CONTEXT = CryptContext(schemes=["bcrypt"], deprecated="auto")


class CredentialVerifier(Protocol):
    """Opaque hash/verify boundary; implementations must compare in constant time."""

    def hash(self, plaintext: str) -> str: ...

    def matches(self, plaintext: str, digest: str | None) -> bool: ...


class BcryptCredentialVerifier:
    """bcrypt verifier backed by passlib."""

    def __init__(self, context: CryptContext = _PASSWORD_CONTEXT) -> None:
        self._context = context

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def matches(self, plaintext: str, digest: str | None) -> bool:
        if not digest:
            return False
        try:
            return self._context.verify(plaintext, digest)
        except (UnknownHashError, ValueError):
            return False
