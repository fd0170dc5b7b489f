"""
Feed payloads: the main rant feed, weekly group rants and the
subscribed feed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

from .decoding import Fields
from .errors import DecodeError
from .json_value import JSONValue
from .models import RantInFeed, RantInSubscribedFeed
from .usernames import SubscribedUsernameMap


# ── Rant feed ─────────────────────────────────────────────


@dataclass(frozen=True)
class FeedSettings:
    notification_state: str
    notification_token: Optional[str] = None

    @classmethod
    def from_json(cls, data: object) -> "FeedSettings":
        f = Fields("FeedSettings", data)
        # notif_state is text, or the integer -1 when notifications are off.
        return cls(
            notification_state=f.string_or_int("notif_state"),
            notification_token=f.optional("notif_token", str),
        )


@dataclass(frozen=True)
class News:
    id: int
    type: str
    headline: str
    body: str
    footer: str
    height: int
    action: str

    ACTIONS = ("grouprant", "none", "rant")

    @classmethod
    def from_json(cls, data: object) -> "News":
        f = Fields("News", data)
        action = f.required("action", str)
        if action not in cls.ACTIONS:
            raise DecodeError(f.entity, "action", f"unknown action {action!r}")
        return cls(
            id=f.required("id", int),
            type=f.required("type", str),
            headline=f.required("headline", str),
            body=f.required("body", str),
            footer=f.required("footer", str),
            height=f.required("height", int),
            action=action,
        )


@dataclass
class RantFeed:
    rants: list[RantInFeed]
    settings: FeedSettings
    set: str
    notif_count: int
    unread_total: int
    weekly_rant_week: Optional[int] = None
    is_user_dpp: int = 0
    news: Optional[News] = None

    @classmethod
    def from_json(cls, data: object) -> "RantFeed":
        f = Fields("RantFeed", data)
        unread = Fields("RantFeed.unread", f.required("unread", dict))
        return cls(
            rants=f.list_of("rants", RantInFeed.from_json),
            settings=f.nested("settings", FeedSettings.from_json),
            set=f.required("set", str),
            notif_count=f.required("num_notifs", int),
            unread_total=unread.required("total", int),
            weekly_rant_week=f.optional("wrw", int),
            is_user_dpp=f.default("dpp", int, 0),
            news=f.optional_nested("news", News.from_json),
        )


# ── Weekly group rants ────────────────────────────────────


@dataclass(frozen=True)
class Week:
    week: int
    prompt: str
    date: str
    rant_count: int

    @classmethod
    def from_json(cls, data: object) -> "Week":
        f = Fields("Week", data)
        return cls(
            week=f.required("week", int),
            prompt=f.required("prompt", str),
            date=f.required("date", str),
            rant_count=f.required("num_rants", int),
        )


@dataclass(frozen=True)
class WeeklyList:
    weeks: list[Week]

    @classmethod
    def from_json(cls, data: object) -> "WeeklyList":
        return cls(weeks=Fields("WeeklyList", data).list_of("weeks", Week.from_json))


# ── Subscribed feed ───────────────────────────────────────


@dataclass(frozen=True)
class PageInfo:
    end_cursor: str
    has_next_page: bool

    @classmethod
    def from_json(cls, data: object) -> "PageInfo":
        f = Fields("PageInfo", data)
        return cls(
            end_cursor=f.required("end_cursor", str),
            has_next_page=f.required("has_next_page", bool),
        )


@dataclass(frozen=True)
class RecommendedUsers:
    users: list[int]
    has_next_page: bool

    @classmethod
    def from_json(cls, data: object) -> "RecommendedUsers":
        f = Fields("RecommendedUsers", data)
        users = [
            Fields("RecommendedUser", item).required("uid", int)
            for item in f.required("items", list)
        ]
        return cls(users=users, has_next_page=f.required("has_next_page", bool))


def _retyped(blob: JSONValue, decoder):
    # Each sub-document goes through its own typed pass.
    return decoder(json.loads(blob.dumps()))


@dataclass
class SubscribedFeed:
    rants: list[RantInSubscribedFeed]
    page_info: PageInfo
    recommended_users: RecommendedUsers
    username_map: SubscribedUsernameMap

    @classmethod
    def from_value(cls, value: JSONValue) -> "SubscribedFeed":
        feed = value["feed"]
        activity = feed["activity"]
        return cls(
            rants=[
                _retyped(item, RantInSubscribedFeed.from_json)
                for item in activity["items"].items()
            ],
            page_info=_retyped(activity["page_info"], PageInfo.from_json),
            recommended_users=_retyped(feed["rec_users"], RecommendedUsers.from_json),
            username_map=_retyped(feed["users"], SubscribedUsernameMap.from_json),
        )

    @classmethod
    def from_bytes(cls, raw: bytes) -> "SubscribedFeed":
        return cls.from_value(JSONValue.loads(raw))
