"""
devRant password login.

``request_auth_token`` performs the raw exchange; ``SessionManager``
decides when to call it and where the result is kept.
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from typing import Optional

from .decoding import error_message, parse_json
from .errors import AuthError, DecodeError
from .transport import Transport, encode_form
from .types import APP_ID, UNKNOWN_ERROR_MESSAGE, Credentials

logger = logging.getLogger(__name__)

AUTH_PATH = "/users/auth-token"


def request_auth_token(
    transport: Transport,
    username: str,
    password: str,
    app_id: int = APP_ID,
    timeout: Optional[float] = None,
) -> Credentials:
    """Exchange a username and password for an auth token.

    Raises AuthError carrying the server's message when the login is
    rejected, and lets TransportError through untouched.
    """
    body, content_type = encode_form(
        {"app": app_id, "username": username, "password": password}
    )
    raw = transport.exchange(
        "POST",
        transport.url(AUTH_PATH),
        headers={"Content-Type": content_type},
        body=body,
        timeout=timeout,
    )

    try:
        return Credentials.from_json(parse_json(raw))
    except DecodeError:
        message = error_message(raw) or UNKNOWN_ERROR_MESSAGE
        logger.info("login rejected for %s: %s", username, message)
        raise AuthError(message) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Log in to devRant")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", help="prompted for when omitted")
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="do not store the token and login in the keyring",
    )
    return parser


def main() -> None:
    """CLI entry point: log in and print the credentials as JSON."""
    from .config import ClientConfig
    from .session import SessionManager
    from .storage import KeyringSecretStore

    args = _build_parser().parse_args()
    password = args.password or getpass.getpass("Password: ")

    config = ClientConfig.from_env()
    session = SessionManager(
        Transport(config.api_base, config.timeout_sec),
        KeyringSecretStore(config.keyring_service),
        persist=config.persist_session and not args.no_persist,
        app_id=config.app_id,
    )

    print(f"[*] Logging in as {args.username}...", file=sys.stderr)
    result = session.authenticate(args.username, password)
    if not result.ok:
        print(f"[!] {result.message}", file=sys.stderr)
        sys.exit(1)

    print(f"[+] Logged in, user id {result.value.user_id}", file=sys.stderr)
    json.dump(result.value.to_dict(), sys.stdout, indent=2)
    print()
