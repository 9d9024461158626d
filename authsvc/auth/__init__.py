"""Auth module: accounts, identity links, refresh rotation and exchange codes."""

from authsvc.auth.http import handle_http_exception
from authsvc.auth.models import LoginRequest
from authsvc.auth.models import RegisterRequest
from authsvc.auth.service import AuthService
from authsvc.auth.service import startup_auth_schema

__all__ = [
    "AuthService",
    "LoginRequest",
    "RegisterRequest",
    "handle_http_exception",
    "startup_auth_schema",
]
