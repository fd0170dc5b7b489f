"""
Where session state lives between runs.

Secrets (the encoded credentials and the login pair) go to the system
keyring. Pagination cursors go to a small JSON file.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import StorageError

logger = logging.getLogger(__name__)

CREDENTIALS_KEY = "credentials"
LOGIN_KEY = "login"

LAST_SET_KEY = "last_set"
LAST_NOTIFICATION_CHECK_KEY = "last_notification_check"


class SecretStore(Protocol):
    def get(self, key: str) -> Optional[bytes]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, key: str) -> None: ...


class KeyValueCache(Protocol):
    def get_string(self, key: str) -> Optional[str]: ...

    def set_string(self, key: str, value: str) -> None: ...

    def get_int(self, key: str) -> Optional[int]: ...

    def set_int(self, key: str, value: int) -> None: ...


# ── Secrets ───────────────────────────────────────────────


class KeyringSecretStore:
    """Secrets in the OS keyring, base64-encoded under one service name."""

    def __init__(self, service: str = "devrant"):
        self.service = service

    def get(self, key: str) -> Optional[bytes]:
        try:
            value = keyring.get_password(self.service, key)
        except KeyringError as e:
            raise StorageError(f"keyring read failed for {key}: {e}") from e
        if value is None:
            return None
        try:
            return base64.b64decode(value.encode("ascii"), validate=True)
        except (binascii.Error, ValueError) as e:
            raise StorageError(f"keyring value for {key} is not valid base64: {e}") from e

    def set(self, key: str, value: bytes) -> None:
        try:
            keyring.set_password(
                self.service, key, base64.b64encode(value).decode("ascii")
            )
        except KeyringError as e:
            raise StorageError(f"keyring write failed for {key}: {e}") from e
        logger.debug("stored %s in keyring service %s", key, self.service)

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError:
            logger.debug("nothing stored for %s", key)
        except KeyringError as e:
            raise StorageError(f"keyring delete failed for {key}: {e}") from e


class MemorySecretStore:
    def __init__(self) -> None:
        self._values: dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._values.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


# ── Cache ─────────────────────────────────────────────────


class MemoryCache:
    def __init__(self) -> None:
        self._values: dict[str, object] = {}

    def get_string(self, key: str) -> Optional[str]:
        value = self._values.get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        self._values[key] = value

    def get_int(self, key: str) -> Optional[int]:
        value = self._values.get(key)
        return value if isinstance(value, int) else None

    def set_int(self, key: str, value: int) -> None:
        self._values[key] = value


class JSONFileCache:
    """A flat JSON object on disk, rewritten on every update."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise StorageError(f"failed to read cache file {self.path}: {e}") from e
        except ValueError:
            logger.warning("ignoring unreadable cache file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _update(self, key: str, value: object) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as e:
                raise StorageError(f"failed to write cache file {self.path}: {e}") from e

    def get_string(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_string(self, key: str, value: str) -> None:
        self._update(key, value)

    def get_int(self, key: str) -> Optional[int]:
        value = self._load().get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def set_int(self, key: str, value: int) -> None:
        self._update(key, int(value))
