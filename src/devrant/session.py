"""
Session lifecycle: log in, keep the token, log in again when it expires.

Concurrent callers that find the token expired share one re-authentication.
The first caller performs the login; the rest wait on the same future and
see the same outcome.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Optional

from .auth import request_auth_token
from .errors import AuthError, ConfigError, DecodeError, StorageError, TransportError
from .storage import CREDENTIALS_KEY, LOGIN_KEY, SecretStore
from .transport import Transport
from .types import APP_ID, Credentials, ErrorKind, Failure, Result, Success

logger = logging.getLogger(__name__)

NO_LOGIN_MESSAGE = "Not logged in. Authenticate with a username and password first."


def transport_failure(exc: TransportError) -> Failure:
    kind = ErrorKind.TIMEOUT if exc.timed_out else ErrorKind.TRANSPORT
    return Failure(kind, str(exc))


class SessionManager:
    """Owns the current credentials.

    With ``persist`` on, credentials and the login pair are written to the
    secret store after every successful login and read back on first use.
    With it off, everything stays in memory for the life of the object.
    """

    def __init__(
        self,
        transport: Transport,
        secret_store: Optional[SecretStore] = None,
        persist: bool = True,
        app_id: int = APP_ID,
        clock: Callable[[], float] = time.time,
    ):
        if persist and secret_store is None:
            raise ConfigError("a secret store is required when persist=True")
        self._transport = transport
        self._store = secret_store
        self._persist = persist
        self._app_id = app_id
        self._clock = clock

        self._lock = threading.Lock()
        self._refresh: Optional[Future] = None
        self._credentials: Optional[Credentials] = None
        self._login: Optional[tuple[str, str]] = None
        self._loaded = not persist

    @property
    def persist(self) -> bool:
        return self._persist

    @property
    def credentials(self) -> Optional[Credentials]:
        with self._lock:
            return self._current()

    # ── Store access (caller holds the lock) ──────────────

    def _current(self) -> Optional[Credentials]:
        if not self._loaded:
            self._loaded = True
            try:
                blob = self._store.get(CREDENTIALS_KEY)
                if blob is not None:
                    self._credentials = Credentials.from_bytes(blob)
            except (DecodeError, ValueError):
                logger.warning("discarding unreadable stored credentials")
            except StorageError as exc:
                logger.warning("could not read stored credentials: %s", exc)
        return self._credentials

    def _stored_login(self) -> Optional[tuple[str, str]]:
        if self._login is not None or not self._persist:
            return self._login
        try:
            blob = self._store.get(LOGIN_KEY)
        except StorageError as exc:
            logger.warning("could not read stored login: %s", exc)
            return None
        if blob is None:
            return None
        try:
            data = json.loads(blob.decode("utf-8"))
            return data["username"], data["password"]
        except (ValueError, KeyError, TypeError):
            logger.warning("discarding unreadable stored login")
            return None

    def _save(self, credentials: Credentials, username: str, password: str) -> None:
        self._credentials = credentials
        self._login = (username, password)
        self._loaded = True
        if not self._persist:
            return
        try:
            self._store.set(CREDENTIALS_KEY, credentials.to_bytes())
            self._store.set(
                LOGIN_KEY,
                json.dumps({"username": username, "password": password}).encode("utf-8"),
            )
        except StorageError as exc:
            logger.warning("logged in, but the session could not be stored: %s", exc)

    def _forget_stored_credentials(self) -> None:
        if not self._persist:
            return
        try:
            self._store.delete(CREDENTIALS_KEY)
        except StorageError as exc:
            logger.warning("could not clear stored credentials: %s", exc)

    # ── Public API ────────────────────────────────────────

    def authenticate(self, username: str, password: str) -> Result[Credentials]:
        """Log in and make the new credentials current.

        A rejected login clears the stored credentials but leaves the
        in-memory session as it was.
        """
        try:
            credentials = request_auth_token(
                self._transport, username, password, app_id=self._app_id
            )
        except AuthError as exc:
            with self._lock:
                self._forget_stored_credentials()
            return Failure(ErrorKind.AUTH, str(exc))
        except TransportError as exc:
            return transport_failure(exc)

        with self._lock:
            self._save(credentials, username, password)
        logger.info("authenticated as user %d", credentials.user_id)
        return Success(credentials)

    def ensure_valid(self) -> Result[Credentials]:
        """Return usable credentials, logging in again if they expired."""
        with self._lock:
            current = self._current()
            if current is not None and not current.is_expired(self._clock()):
                return Success(current)
            future = self._refresh
            owner = future is None
            if owner:
                future = self._refresh = Future()

        if not owner:
            return future.result()

        try:
            result = self._reauthenticate()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        finally:
            with self._lock:
                self._refresh = None
        future.set_result(result)
        return result

    def _reauthenticate(self) -> Result[Credentials]:
        with self._lock:
            login = self._stored_login()
        if login is None:
            return Failure(ErrorKind.AUTH, NO_LOGIN_MESSAGE)
        logger.info("session expired, logging in again as %s", login[0])
        return self.authenticate(*login)

    def sign_out(self) -> None:
        with self._lock:
            self._credentials = None
            self._login = None
            self._loaded = True
            if not self._persist:
                return
            for key in (CREDENTIALS_KEY, LOGIN_KEY):
                try:
                    self._store.delete(key)
                except StorageError as exc:
                    logger.warning("could not clear %s: %s", key, exc)
