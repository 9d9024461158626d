"""HTTP helpers for unified auth errors."""

from __future__ import annotations

from typing import Any
from typing import NoReturn

from fastapi import HTTPException
from fastapi import Request
from fastapi.responses import JSONResponse

from authsvc.auth.errors import AuthError
from authsvc.auth.errors import EmailAlreadyInUseError
from authsvc.auth.errors import FederatedAuthError
from authsvc.auth.errors import MissingEmailClaimError
from authsvc.auth.errors import UnauthorizedError
from authsvc.core.email import EmailValidationError
from authsvc.logging import get_logger

logger = get_logger(__name__)

UNAUTHORIZED_MESSAGE = "authentication failed"


def api_error(*, code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a unified API error payload."""
    return {"code": code, "message": message, "detail": detail or {}}


def _http_error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=api_error(code=code, message=message, detail={}),
    )


def to_http_exception(exc: AuthError | EmailValidationError) -> HTTPException:
    """Map a domain error to its HTTP outcome.

    Every authentication failure collapses to one 401 so callers cannot tell
    unknown accounts, wrong passwords, suspended accounts or dead tokens apart.
    """
    if isinstance(exc, UnauthorizedError):
        return _http_error(401, "AUTH_UNAUTHORIZED", UNAUTHORIZED_MESSAGE)
    if isinstance(exc, EmailAlreadyInUseError):
        return _http_error(409, "AUTH_EMAIL_CONFLICT", "email already in use")
    if isinstance(exc, MissingEmailClaimError):
        return _http_error(401, "AUTH_FEDERATED_EMAIL_MISSING", "identity provider returned no email")
    if isinstance(exc, FederatedAuthError):
        return _http_error(401, "AUTH_FEDERATED_FAILED", "identity provider authentication failed")
    if isinstance(exc, EmailValidationError):
        return _http_error(400, "VALIDATION_ERROR", str(exc))
    return _http_error(500, "INTERNAL_ERROR", "internal server error")


def raise_token_invalid() -> NoReturn:
    """Raise unified invalid-bearer-token response."""
    raise HTTPException(
        status_code=401,
        detail=api_error(code="AUTH_TOKEN_INVALID", message="invalid access token", detail={}),
        headers={"WWW-Authenticate": "Bearer"},
    )


def raise_token_expired() -> NoReturn:
    """Raise unified expired-bearer-token response."""
    raise HTTPException(
        status_code=401,
        detail=api_error(code="AUTH_TOKEN_EXPIRED", message="access token expired", detail={}),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def handle_http_exception(_: Request, exc: HTTPException) -> JSONResponse:
    """Unify HTTP errors to {code,message,detail} payload."""
    if isinstance(exc.detail, dict) and {"code", "message", "detail"} <= set(exc.detail):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.detail,
            headers=exc.headers,
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=api_error(
            code="HTTP_ERROR",
            message=str(exc.detail),
            detail={},
        ),
        headers=exc.headers,
    )


async def handle_auth_error(request: Request, exc: Exception) -> JSONResponse:
    """Translate domain errors raised by the service layer."""
    logger.info(
        "auth_error",
        error=type(exc).__name__,
        reason=str(exc),
        path=request.url.path,
    )
    return await handle_http_exception(request, to_http_exception(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Keep internals in the log, never in the response body."""
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=api_error(code="INTERNAL_ERROR", message="internal server error", detail={}),
    )
