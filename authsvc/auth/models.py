"""Auth request bodies and account domain records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

LOCAL_PROVIDER = "local"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    DELETED = "DELETED"
    PENDING = "PENDING"


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True, slots=True)
class Account:
    """Local account as persisted in the accounts table."""

    id: str
    email: str
    password_hash: str | None
    status: AccountStatus
    created_at: str
    roles: frozenset[Role]

    @property
    def role_names(self) -> list[str]:
        return sorted(role.value for role in self.roles)

    def profile(self) -> dict[str, object]:
        return {
            "id": self.id,
            "email": self.email,
            "status": self.status.value,
            "roles": self.role_names,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class IdentityLink:
    """Binding of a local account to one provider subject."""

    id: str
    account_id: str
    provider: str
    provider_subject_id: str


class RegisterRequest(BaseModel):
    """POST /api/auth/register request body."""

    email: str
    password: str


class LoginRequest(BaseModel):
    """POST /api/auth/login request body."""

    email: str
    password: str


class RefreshRequest(BaseModel):
    """POST /api/auth/refresh request body."""

    refresh_token: str


class FederatedLoginRequest(BaseModel):
    """POST /api/auth/google request body."""

    code: str


class ExchangeCodeRequest(BaseModel):
    """POST /api/auth/oauth2/exchange request body."""

    code: str
