"""Auth-domain errors raised by stores, resolver and service."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth-domain errors."""


class UnauthorizedError(AuthError):
    """Authentication outcome failure; callers only ever see a generic 401."""


class InvalidCredentialsError(UnauthorizedError):
    """Raised for unknown email or wrong password alike."""


class AccountNotActiveError(UnauthorizedError):
    """Raised when a token-producing operation hits a non-ACTIVE account."""

    def __init__(self, status: str) -> None:
        super().__init__(f"account is {status}")
        self.status = status


class AccountNotFoundError(UnauthorizedError):
    """Raised when an account looked up by email no longer exists."""


class RefreshTokenNotFoundError(UnauthorizedError):
    """Raised when a refresh token has no live store row."""


class RefreshTokenExpiredError(UnauthorizedError):
    """Raised when a refresh token row is past its expiry."""


class ExchangeCodeNotFoundError(UnauthorizedError):
    """Raised when an exchange code is unknown or already redeemed."""


class ExchangeCodeExpiredError(UnauthorizedError):
    """Raised when an exchange code was redeemed after its TTL."""


class EmailAlreadyInUseError(AuthError):
    """Raised when registering an email that already has an account."""


class FederatedAuthError(AuthError):
    """Raised when the identity-provider handshake fails."""


class MissingEmailClaimError(FederatedAuthError):
    """Raised when a federated profile carries no email."""
