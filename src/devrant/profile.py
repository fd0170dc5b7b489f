"""
User profiles (``/users/{id}``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .decoding import Fields
from .models import Comment, RantInFeed, UserAvatar


@dataclass(frozen=True)
class UserCounts:
    rants: int
    upvoted: int
    comments: int
    favorites: int
    collabs: int

    @classmethod
    def from_json(cls, data: object) -> "UserCounts":
        f = Fields("UserCounts", data)
        return cls(
            rants=f.required("rants", int),
            upvoted=f.required("upvoted", int),
            comments=f.required("comments", int),
            favorites=f.required("favorites", int),
            collabs=f.required("collabs", int),
        )


@dataclass
class UserContent:
    rants: list[RantInFeed]
    upvoted: list[RantInFeed]
    comments: list[Comment]
    # Only present when requested, and viewed only for the logged-in user.
    favorites: Optional[list[RantInFeed]] = None
    viewed: Optional[list[RantInFeed]] = None

    @classmethod
    def from_json(cls, data: object) -> "UserContent":
        f = Fields("UserContent", data)
        return cls(
            rants=f.list_of("rants", RantInFeed.from_json),
            upvoted=f.list_of("upvoted", RantInFeed.from_json),
            comments=f.list_of("comments", Comment.from_json),
            favorites=f.optional_list_of("favorites", RantInFeed.from_json),
            viewed=f.optional_list_of("viewed", RantInFeed.from_json),
        )


@dataclass
class Profile:
    username: str
    score: int
    about: str
    location: str
    created_time: int
    skills: str
    github: str
    content: UserContent
    counts: UserCounts
    avatar: UserAvatar
    avatar_small: UserAvatar
    website: Optional[str] = None
    is_user_dpp: int = 0

    @classmethod
    def from_json(cls, data: object) -> "Profile":
        f = Fields("Profile", data)
        outer = Fields("Profile.content", f.required("content", dict))
        return cls(
            username=f.required("username", str),
            score=f.required("score", int),
            about=f.required("about", str),
            location=f.required("location", str),
            created_time=f.required("created_time", int),
            skills=f.required("skills", str),
            github=f.required("github", str),
            content=outer.nested("content", UserContent.from_json),
            counts=outer.nested("counts", UserCounts.from_json),
            avatar=f.nested("avatar", UserAvatar.from_json),
            avatar_small=f.nested("avatar_sm", UserAvatar.from_json),
            website=f.optional("website", str),
            is_user_dpp=f.default("dpp", int, 0),
        )

    @classmethod
    def from_response(cls, data: object) -> "Profile":
        return Fields("ProfileResponse", data).nested("profile", cls.from_json)
