"""Email normalization and validation helpers for auth."""

from __future__ import annotations

import unicodedata

import regex

MAX_EMAIL_LENGTH = 254
# local@domain.tld, no whitespace or control characters anywhere.
_EMAIL_PATTERN = regex.compile(r"^[^@\s\p{Cc}]+@[^@\s\p{Cc}.][^@\s\p{Cc}]*\.[^@\s\p{Cc}.]+$")


class EmailValidationError(ValueError):
    """Raised when an email address violates auth validation rules."""


def normalize_email(raw_email: str) -> str:
    """Trim, normalize to NFC and lower-case.

    Email is the correlation key between local and federated identities, and
    providers do not preserve the case a user registered with.
    """
    return unicodedata.normalize("NFC", raw_email.strip()).lower()


def validate_email(email: str) -> None:
    if not email:
        raise EmailValidationError("email must not be blank")
    if len(email) > MAX_EMAIL_LENGTH:
        raise EmailValidationError(f"email must be at most {MAX_EMAIL_LENGTH} characters")
    if _EMAIL_PATTERN.match(email) is None:
        raise EmailValidationError("email is not a valid address")


def normalize_and_validate_email(raw_email: str) -> str:
    """Apply trim + NFC and validate the address shape."""
    normalized = normalize_email(raw_email)
    validate_email(normalized)
    return normalized
