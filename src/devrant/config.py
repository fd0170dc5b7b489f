"""
Client configuration, from code or from ``DEVRANT_*`` environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigError
from .types import API_BASE, APP_ID

DEFAULT_CACHE_PATH = Path.home() / ".devrant" / "cache.json"
DEFAULT_KEYRING_SERVICE = "devrant"
DEFAULT_TIMEOUT_SEC = 30.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings shared by the session and the client.

    - persist_session: keep credentials, the login pair and pagination
      cursors between runs. When off, every operation needs an explicit token.
    - timeout_sec: passed to every HTTP exchange; None waits forever.
    """

    api_base: str = API_BASE
    app_id: int = APP_ID
    timeout_sec: Optional[float] = DEFAULT_TIMEOUT_SEC
    persist_session: bool = True
    cache_path: Path = field(default=DEFAULT_CACHE_PATH)
    keyring_service: str = DEFAULT_KEYRING_SERVICE

    def __post_init__(self) -> None:
        if not self.api_base.startswith(("https://", "http://")):
            raise ConfigError(f"api_base must be an http(s) URL: {self.api_base!r}")
        if self.app_id < 1:
            raise ConfigError("app_id must be >= 1")
        if self.timeout_sec is not None and self.timeout_sec <= 0:
            raise ConfigError("timeout_sec must be > 0")
        if not self.keyring_service.strip():
            raise ConfigError("keyring_service must not be empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        if env.get("DEVRANT_API_BASE"):
            kwargs["api_base"] = env["DEVRANT_API_BASE"].rstrip("/")

        raw_timeout = (env.get("DEVRANT_TIMEOUT") or "").strip()
        if raw_timeout:
            if raw_timeout.lower() == "none":
                kwargs["timeout_sec"] = None
            else:
                try:
                    kwargs["timeout_sec"] = float(raw_timeout)
                except ValueError as e:
                    raise ConfigError(f"DEVRANT_TIMEOUT is not a number: {raw_timeout!r}") from e

        raw_persist = (env.get("DEVRANT_PERSIST_SESSION") or "").strip().lower()
        if raw_persist:
            if raw_persist in _TRUE:
                kwargs["persist_session"] = True
            elif raw_persist in _FALSE:
                kwargs["persist_session"] = False
            else:
                raise ConfigError(
                    f"DEVRANT_PERSIST_SESSION must be a boolean: {raw_persist!r}"
                )

        if env.get("DEVRANT_CACHE_PATH"):
            kwargs["cache_path"] = Path(env["DEVRANT_CACHE_PATH"]).expanduser()

        if env.get("DEVRANT_KEYRING_SERVICE"):
            kwargs["keyring_service"] = env["DEVRANT_KEYRING_SERVICE"]

        return cls(**kwargs)
