"""
Username maps: JSON objects keyed by user id.

The notification feed and the subscribed feed both send one, but with
different member names, so each has its own decoder. The user id only
exists as the key and is copied onto every decoded entry.
"""

from __future__ import annotations

from dataclasses import dataclass

from .decoding import Fields
from .errors import DecodeError
from .models import UserAvatar


def _entries(entity: str, data: object):
    # An empty map is serialized as [] by the server.
    if data == []:
        return []
    if not isinstance(data, dict):
        raise DecodeError(entity, "<root>", "expected an object")
    return data.items()


@dataclass(frozen=True)
class NotificationUser:
    user_id: str
    username: str
    avatar: UserAvatar

    @classmethod
    def from_json(cls, key: str, data: object) -> "NotificationUser":
        f = Fields("NotificationUser", data)
        return cls(
            user_id=key,
            username=f.required("name", str),
            avatar=f.nested("avatar", UserAvatar.from_json),
        )


@dataclass(frozen=True)
class NotificationUsernameMap:
    """``{"<uid>": {"avatar": {...}, "name": "..."}}``"""

    users: list[NotificationUser]

    @classmethod
    def from_json(cls, data: object) -> "NotificationUsernameMap":
        return cls(
            users=[
                NotificationUser.from_json(key, value)
                for key, value in _entries("NotificationUsernameMap", data)
            ]
        )

    def __len__(self) -> int:
        return len(self.users)


@dataclass(frozen=True)
class SubscribedUser:
    user_id: int
    username: str
    avatar: UserAvatar
    score: int

    @classmethod
    def from_json(cls, key: str, data: object) -> "SubscribedUser":
        f = Fields("SubscribedUser", data)
        try:
            user_id = int(key)
        except ValueError:
            raise DecodeError(f.entity, "<key>", f"not a user id: {key!r}") from None
        return cls(
            user_id=user_id,
            username=f.required("username", str),
            avatar=f.nested("avatar", UserAvatar.from_json),
            score=f.required("score", int),
        )


@dataclass(frozen=True)
class SubscribedUsernameMap:
    """``{"<uid>": {"username": "...", "avatar": {...}, "score": 0}}``"""

    users: list[SubscribedUser]

    @classmethod
    def from_json(cls, data: object) -> "SubscribedUsernameMap":
        return cls(
            users=[
                SubscribedUser.from_json(key, value)
                for key, value in _entries("SubscribedUsernameMap", data)
            ]
        )

    def __len__(self) -> int:
        return len(self.users)
