"""Command line interface for drive_uploader."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import Settings, load_env_file, resolve_default_env_file
from .errors import ConfigError, CredentialExchangeError

DEFAULT_HOST = "0.0.0.0"

logger = logging.getLogger(__name__)
console = Console(stderr=True)


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, log_level: Optional[str]) -> str:
    """
    Configure root logging for the process.

    ``--debug`` wins over ``--log-level``, which wins over LOG_LEVEL.
    Returns the effective level name.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL")
        level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _run_serve(host: str, port: Optional[int], log_level: str) -> int:
    import uvicorn

    from .api import create_app

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        raise CLIError(str(exc)) from exc

    app = create_app(settings)
    uvicorn.run(
        app,
        host=host,
        port=port or settings.port,
        log_config=None,
        log_level=log_level.lower(),
    )
    return 0


async def _run_authorize(code: Optional[str]) -> int:
    from .services import OAuthTokenSource

    client_id = os.getenv("CLIENT_ID")
    client_secret = os.getenv("CLIENT_SECRET")
    redirect_uri = os.getenv("REDIRECT_URI") or "urn:ietf:wg:oauth:2.0:oob"
    if not client_id or not client_secret:
        raise CLIError("CLIENT_ID and CLIENT_SECRET must be set to authorize")

    async with OAuthTokenSource(client_id, client_secret, redirect_uri, refresh_token=None) as source:
        if not code:
            console.print("Authorize this app by visiting this url:")
            console.print(source.build_authorization_url(), soft_wrap=True)
            code = console.input("Enter the code from that page here: ").strip()
        if not code:
            raise CLIError("no authorization code given")
        try:
            tokens = await source.exchange_code(code)
        except CredentialExchangeError as exc:
            raise CLIError(f"Error retrieving access token: {exc.message}") from exc

    refresh_token = tokens.get("refresh_token")
    if not refresh_token:
        raise CLIError("token response did not include a refresh token (was consent re-prompted?)")
    console.print(f"Your refresh token: {refresh_token}", soft_wrap=True)
    console.print("Copy this refresh token into your .env file as REFRESH_TOKEN=")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-uploader",
        description="Broker resumable Google Drive uploads for browser clients.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file (default: ./.env if present)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument("--version", action="version", version=f"drive-uploader {__version__}")

    commands = parser.add_subparsers(dest="command")

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default=DEFAULT_HOST, help=f"Bind address (default {DEFAULT_HOST})")
    serve.add_argument("--port", type=int, default=None, help="Port (default from PORT or 3000)")

    authorize = commands.add_parser("authorize", help="Obtain a refresh token (one-time setup)")
    authorize.add_argument("--code", default=None, help="Authorization code, skips the prompt")

    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or resolve_default_env_file()
    loaded_keys = []
    if used_env_file is not None:
        try:
            loaded_keys = load_env_file(Path(used_env_file))
        except ConfigError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    level_name = _setup_logging(debug=args.debug, log_level=args.log_level)
    if used_env_file is not None:
        logger.debug("Loaded %d variable(s) from %s: %s", len(loaded_keys), used_env_file, ", ".join(loaded_keys))

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "serve":
            return _run_serve(args.host, args.port, level_name)
        if args.command == "authorize":
            return asyncio.run(_run_authorize(args.code))
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130

    parser.print_help()
    return 2


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
