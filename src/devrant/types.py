"""
Shared types for the devRant client.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Generic, Optional, TypeVar, Union

from .decoding import Fields

API_BASE = "https://devrant.com/api"

# Every request identifies itself as the official iOS app.
APP_ID = 3

DEFAULT_HEADERS = {
    "User-Agent": "devrant-python/0.1.0",
    "Accept": "application/json, text/plain, */*",
}

UNKNOWN_ERROR_MESSAGE = "An unknown error has occurred."

T = TypeVar("T")


class VoteState(IntEnum):
    """The logged-in user's vote on a rant or comment."""

    UPVOTED = 1
    UNVOTED = 0
    DOWNVOTED = -1
    # The rant or comment belongs to the logged-in user.
    UNVOTABLE = -2


class RantType(IntEnum):
    RANT = 1
    COLLAB = 2
    MEME = 3
    QUESTION = 4
    DEVRANT = 5
    RANDOM = 6
    UNDEFINED = 7


class ProfileContentType(str, Enum):
    ALL = "all"
    RANTS = "rants"
    UPVOTED = "upvoted"
    COMMENTS = "comments"
    FAVORITES = "favorites"
    VIEWED = "viewed"


class NotificationCategory(str, Enum):
    ALL = "all"
    UPVOTES = "upvotes"
    MENTIONS = "mentions"
    COMMENTS = "comments"
    SUBS = "subs"


@dataclass(frozen=True)
class Credentials:
    """An auth token issued by ``/users/auth-token``.

    Never mutated: a refresh produces a new instance.
    """

    token_id: int
    token_key: str
    expire_time: int
    user_id: int

    @classmethod
    def from_json(cls, data: object) -> "Credentials":
        envelope = Fields("UserCredentials", data)
        token = Fields("AuthToken", envelope.required("auth_token", dict))
        return cls(
            token_id=token.required("id", int),
            token_key=token.required("key", str),
            expire_time=token.required("expire_time", int),
            user_id=token.required("user_id", int),
        )

    def to_dict(self) -> dict[str, dict[str, object]]:
        return {
            "auth_token": {
                "id": self.token_id,
                "key": self.token_key,
                "expire_time": self.expire_time,
                "user_id": self.user_id,
            }
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def from_bytes(cls, blob: bytes) -> "Credentials":
        return cls.from_json(json.loads(blob.decode("utf-8")))

    def is_expired(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return self.expire_time <= now

    def query_params(self) -> dict[str, object]:
        """The token triple as the API expects it on every request."""
        return {
            "user_id": self.user_id,
            "token_id": self.token_id,
            "token_key": self.token_key,
        }


# ── Results ───────────────────────────────────────────────


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    AUTH = "auth"
    DECODE = "decode"
    API = "api"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Success[T], Failure]
