"""
Tests for devrant.session module.

Covers:
- authenticate: success, rejected login, transport failures
- ensure_valid: cached token, refresh with the stored login, no login
- Concurrent callers sharing one refresh
- Persisted vs in-memory sessions
"""

import base64
import json
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from devrant.errors import AuthError, ConfigError, StorageError, TransportError
from devrant.session import NO_LOGIN_MESSAGE, SessionManager
from devrant.storage import CREDENTIALS_KEY, LOGIN_KEY, KeyringSecretStore, MemorySecretStore
from devrant.transport import Transport
from devrant.types import Credentials, ErrorKind


def _stored(store, credentials, username="alice", password="pw"):
    store.set(CREDENTIALS_KEY, credentials.to_bytes())
    store.set(
        LOGIN_KEY,
        json.dumps({"username": username, "password": password}).encode("utf-8"),
    )
    return store


class TestConstruction:

    def test_persist_needs_store(self):
        with pytest.raises(ConfigError):
            SessionManager(MagicMock(), persist=True)

    def test_ephemeral_needs_no_store(self):
        assert SessionManager(MagicMock(), persist=False).credentials is None


class TestAuthenticate:

    @patch("devrant.session.request_auth_token")
    def test_success_persists(self, mock_token, credentials):
        mock_token.return_value = credentials
        store = MemorySecretStore()
        session = SessionManager(MagicMock(), store)

        result = session.authenticate("alice", "pw")

        assert result.ok
        assert result.value == credentials
        assert Credentials.from_bytes(store.get(CREDENTIALS_KEY)) == credentials
        assert json.loads(store.get(LOGIN_KEY)) == {"username": "alice", "password": "pw"}

    @patch("devrant.transport.requests.request")
    def test_server_error_message_is_returned_verbatim(self, mock_request, make_response):
        mock_request.return_value = make_response({"error": "invalid username or password"})
        session = SessionManager(Transport(), MemorySecretStore())

        result = session.authenticate("alice", "wrong")

        assert not result.ok
        assert result.kind is ErrorKind.AUTH
        assert result.message == "invalid username or password"

    @patch("devrant.session.request_auth_token")
    def test_rejection_clears_stored_credentials_only(self, mock_token, credentials):
        store = _stored(MemorySecretStore(), credentials)
        session = SessionManager(MagicMock(), store)
        assert session.credentials == credentials
        mock_token.side_effect = AuthError("nope")

        session.authenticate("alice", "wrong")

        assert store.get(CREDENTIALS_KEY) is None
        assert store.get(LOGIN_KEY) is not None
        assert session.credentials == credentials

    @patch("devrant.session.request_auth_token")
    def test_timeout_kind(self, mock_token):
        mock_token.side_effect = TransportError("slow", timed_out=True)
        result = SessionManager(MagicMock(), persist=False).authenticate("a", "b")
        assert result.kind is ErrorKind.TIMEOUT

    @patch("devrant.session.request_auth_token")
    def test_transport_kind(self, mock_token):
        mock_token.side_effect = TransportError("down")
        result = SessionManager(MagicMock(), persist=False).authenticate("a", "b")
        assert result.kind is ErrorKind.TRANSPORT

    @patch("devrant.session.request_auth_token")
    def test_store_failure_still_logs_in(self, mock_token, credentials):
        mock_token.return_value = credentials
        store = MagicMock()
        store.get.return_value = None
        store.set.side_effect = StorageError("locked")
        session = SessionManager(MagicMock(), store)

        assert session.authenticate("alice", "pw").ok
        assert session.credentials == credentials

    @patch("devrant.session.request_auth_token")
    def test_ephemeral_writes_nothing(self, mock_token, credentials):
        mock_token.return_value = credentials
        store = MemorySecretStore()
        session = SessionManager(MagicMock(), store, persist=False)

        session.authenticate("alice", "pw")

        assert store.get(CREDENTIALS_KEY) is None
        assert session.credentials == credentials


class TestEnsureValid:

    @patch("devrant.session.request_auth_token")
    def test_valid_token_skips_login(self, mock_token, credentials):
        session = SessionManager(
            MagicMock(), _stored(MemorySecretStore(), credentials), clock=lambda: 1_000
        )

        result = session.ensure_valid()

        assert result.value == credentials
        mock_token.assert_not_called()

    @patch("devrant.session.request_auth_token")
    def test_expired_token_logs_in_with_stored_login(
        self, mock_token, credentials, expired_credentials
    ):
        mock_token.return_value = credentials
        session = SessionManager(
            MagicMock(),
            _stored(MemorySecretStore(), expired_credentials, "alice", "pw"),
            clock=lambda: 5_000,
        )

        result = session.ensure_valid()

        assert result.value == credentials
        assert mock_token.call_args[0][1:3] == ("alice", "pw")

    def test_no_login_fails(self):
        result = SessionManager(MagicMock(), MemorySecretStore()).ensure_valid()
        assert result.kind is ErrorKind.AUTH
        assert result.message == NO_LOGIN_MESSAGE

    @patch("devrant.session.request_auth_token")
    def test_unreadable_stored_credentials_are_ignored(self, mock_token, credentials):
        mock_token.return_value = credentials
        store = MemorySecretStore()
        store.set(CREDENTIALS_KEY, b"not json")
        store.set(LOGIN_KEY, b'{"username": "alice", "password": "pw"}')

        assert SessionManager(MagicMock(), store).ensure_valid().ok
        mock_token.assert_called_once()

    @patch("devrant.session.request_auth_token")
    @patch("devrant.storage.keyring")
    def test_corrupt_keyring_login_fails_as_no_login(
        self, mock_keyring, mock_token, expired_credentials
    ):
        values = {
            CREDENTIALS_KEY: base64.b64encode(expired_credentials.to_bytes()).decode("ascii"),
            LOGIN_KEY: "abc",
        }
        mock_keyring.get_password.side_effect = lambda service, key: values.get(key)
        session = SessionManager(MagicMock(), KeyringSecretStore(), clock=lambda: 5_000)

        result = session.ensure_valid()

        assert result.kind is ErrorKind.AUTH
        assert result.message == NO_LOGIN_MESSAGE
        mock_token.assert_not_called()

    @patch("devrant.session.request_auth_token")
    def test_ephemeral_session_refreshes_from_memory(
        self, mock_token, credentials, expired_credentials
    ):
        mock_token.side_effect = [expired_credentials, credentials]
        session = SessionManager(MagicMock(), persist=False, clock=lambda: 5_000)
        session.authenticate("alice", "pw")

        assert session.ensure_valid().value == credentials
        assert mock_token.call_count == 2


class TestConcurrentRefresh:

    @patch("devrant.session.request_auth_token")
    def test_single_login_for_many_callers(
        self, mock_token, credentials, expired_credentials
    ):
        def slow_login(*args, **kwargs):
            time.sleep(0.2)
            return credentials

        mock_token.side_effect = slow_login
        session = SessionManager(
            MagicMock(),
            _stored(MemorySecretStore(), expired_credentials),
            clock=lambda: 5_000,
        )

        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            result = session.ensure_valid()
            with lock:
                results.append(result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert mock_token.call_count == 1
        assert len(results) == 8
        assert all(r.ok and r.value == credentials for r in results)

    @patch("devrant.session.request_auth_token")
    def test_waiters_share_failure(self, mock_token, expired_credentials):
        def slow_reject(*args, **kwargs):
            time.sleep(0.2)
            raise AuthError("invalid username or password")

        mock_token.side_effect = slow_reject
        session = SessionManager(
            MagicMock(),
            _stored(MemorySecretStore(), expired_credentials),
            clock=lambda: 5_000,
        )

        barrier = threading.Barrier(4)
        results = []

        def worker():
            barrier.wait()
            results.append(session.ensure_valid())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert mock_token.call_count == 1
        assert [r.message for r in results] == ["invalid username or password"] * 4


class TestSignOut:

    def test_clears_everything(self, credentials):
        store = _stored(MemorySecretStore(), credentials)
        session = SessionManager(MagicMock(), store)

        session.sign_out()

        assert session.credentials is None
        assert store.get(CREDENTIALS_KEY) is None
        assert store.get(LOGIN_KEY) is None
