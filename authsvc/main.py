"""FastAPI application factory for the auth service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

import authsvc.runtime as runtime
from authsvc.api.routers.auth import router as auth_router
from authsvc.auth.errors import AuthError
from authsvc.auth.http import handle_auth_error
from authsvc.auth.http import handle_http_exception
from authsvc.auth.http import handle_unexpected_error
from authsvc.auth.service import AuthService
from authsvc.core.config import Settings
from authsvc.core.config import load_settings
from authsvc.core.email import EmailValidationError


def create_app(app_settings: Settings | None = None, service: AuthService | None = None) -> FastAPI:
    """Build the app; settings are loaded from the environment when not given."""
    app_settings = app_settings or load_settings()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        runtime.startup(app_settings, service)
        yield

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials="*" not in app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(EmailValidationError, handle_auth_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(auth_router)
    return app


__all__ = ["create_app"]
