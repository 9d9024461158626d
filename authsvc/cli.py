"""Command-line runner for operator housekeeping."""

from __future__ import annotations

import argparse
from collections.abc import Sequence

from authsvc.auth.exchange_codes import ExchangeCodeStore
from authsvc.auth.models import AccountStatus
from authsvc.auth.refresh_store import RefreshTokenStore
from authsvc.auth.repository import update_account_status
from authsvc.auth.schema import init_auth_schema
from authsvc.core.config import Settings
from authsvc.core.config import load_settings
from authsvc.core.email import normalize_email


def purge_expired(settings: Settings) -> dict[str, int]:
    """Delete expired refresh rows and exchange codes."""
    return {
        "refresh_tokens": RefreshTokenStore(settings).purge_expired(),
        "exchange_codes": ExchangeCodeStore(settings).purge_expired(),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="authsvc", description="Auth service operator commands")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create auth tables if missing")
    commands.add_parser("purge-expired", help="remove expired refresh tokens and exchange codes")

    set_status = commands.add_parser("set-status", help="change an account status")
    set_status.add_argument("email")
    set_status.add_argument("status", choices=[status.value for status in AccountStatus])

    serve = commands.add_parser("serve", help="run the HTTP API with uvicorn")
    serve.add_argument("--reload", action="store_true")
    return parser


def main(argv: Sequence[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or load_settings()

    if args.command == "serve":
        import uvicorn

        uvicorn.run(
            "authsvc.main:create_app",
            factory=True,
            host=settings.authsvc_app_host,
            port=settings.authsvc_app_port,
            reload=args.reload,
        )
        return 0

    init_auth_schema(settings)
    if args.command == "purge-expired":
        counts = purge_expired(settings)
        print(f"purged refresh_tokens={counts['refresh_tokens']} exchange_codes={counts['exchange_codes']}")
    elif args.command == "set-status":
        if not update_account_status(
            settings=settings,
            email=normalize_email(args.email),
            status=AccountStatus(args.status),
        ):
            print(f"no account for {args.email}")
            return 1
        print(f"{args.email} -> {args.status}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
