"""
The notification feed (``/users/me/notif-feed``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .decoding import Fields
from .errors import DecodeError
from .usernames import NotificationUsernameMap


class NotificationType(str, Enum):
    RANT_UPVOTE = "content_vote"
    COMMENT_UPVOTE = "comment_vote"
    COMMENT_CONTENT = "comment_content"
    COMMENT_DISCUSS = "comment_discuss"
    COMMENT_MENTION = "comment_mention"
    RANT_SUB = "rant_sub"


@dataclass
class Notification:
    type: NotificationType
    rant_id: int
    uid: int
    created_time: int
    read: bool
    comment_id: Optional[int] = None

    @classmethod
    def from_json(cls, data: object) -> "Notification":
        f = Fields("Notification", data)
        raw_type = f.required("type", str)
        try:
            kind = NotificationType(raw_type)
        except ValueError:
            raise DecodeError(f.entity, "type", f"unknown type {raw_type!r}") from None
        read = f.optional("read", bool)
        if read is None:
            read = bool(f.required("read", int))
        return cls(
            type=kind,
            rant_id=f.required("rant_id", int),
            uid=f.required("uid", int),
            created_time=f.required("created_time", int),
            read=read,
            comment_id=f.optional("comment_id", int),
        )


@dataclass(frozen=True)
class UnreadNotifications:
    all: int
    comments: int
    mentions: int
    subs: int
    total: int
    upvotes: int

    @classmethod
    def from_json(cls, data: object) -> "UnreadNotifications":
        f = Fields("UnreadNotifications", data)
        return cls(
            all=f.required("all", int),
            comments=f.required("comments", int),
            mentions=f.required("mentions", int),
            subs=f.required("subs", int),
            total=f.required("total", int),
            upvotes=f.required("upvotes", int),
        )


@dataclass
class Notifications:
    check_time: int
    items: list[Notification]
    unread: UnreadNotifications
    username_map: Optional[NotificationUsernameMap] = None

    @classmethod
    def from_json(cls, data: object) -> "Notifications":
        f = Fields("Notifications", data)
        items = f.optional("items", list)
        return cls(
            check_time=f.required("check_time", int),
            items=[] if items is None else f.list_of("items", Notification.from_json),
            unread=f.nested("unread", UnreadNotifications.from_json),
            username_map=f.optional_nested("username_map", NotificationUsernameMap.from_json),
        )

    @classmethod
    def from_response(cls, data: object) -> "Notifications":
        """Unwrap the ``{"data": {...}}`` envelope the endpoint returns."""
        return Fields("NotificationFeed", data).nested("data", cls.from_json)
