"""Command-line interface for the credential service."""

from __future__ import annotations
import argparse
import logging
import secrets
import sys
from getpass import getpass
from typing import Sequence

from credential_service.config import Settings, load_settings
from credential_service.errors import ConfigurationError
from credential_service.passwords import PasswordHasher

logger = logging.getLogger("credential_service.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Credential service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Bind address for the API (default: HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the API (default: PORT or 3000)",
    )

    secret_parser = subparsers.add_parser(
        "generate-secret", help="Print a random value suitable for JWT_SECRET"
    )
    secret_parser.add_argument(
        "--bytes",
        dest="num_bytes",
        type=int,
        default=48,
        help="Number of random bytes to encode (default: 48)",
    )

    subparsers.add_parser(
        "hash-password",
        help="Hash a password with the configured bcrypt work factor",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "generate-secret", "hash-password"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _serve(*, settings: Settings, host: str | None, port: int | None) -> None:
    from credential_service.api import create_app
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting credential service on http://%s:%s", bind_host, bind_port)

    app = create_app(settings=settings)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level="info")


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass("Password: ")
        if not password:
            print("Password must not be empty. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _hash_password(settings: Settings) -> int:
    password = _prompt_for_password()
    if password is None:
        print("Failed to read a password after three attempts.", file=sys.stderr)
        return 1
    hasher = PasswordHasher(settings.bcrypt_rounds)
    print(hasher.hash(password))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)

    if args.command == "generate-secret":
        print(secrets.token_urlsafe(max(16, args.num_bytes)))
        return 0

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("%s", exc)
        return 2

    if args.command == "hash-password":
        return _hash_password(settings)

    _serve(settings=settings, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
