"""
Rants, comments and the small records embedded in them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from .decoding import Fields
from .errors import DecodeError
from .ranges import TextRange, resolve_link_range
from .types import VoteState


def decode_vote_state(fields: Fields, key: str = "vote_state") -> VoteState:
    raw = fields.required(key, int)
    try:
        return VoteState(raw)
    except ValueError:
        raise DecodeError(fields.entity, key, f"unknown vote state {raw}") from None


class _Votable:
    """Local updates applied after the server confirms a vote."""

    score: int
    vote_state: VoteState

    def apply_vote(self, echoed: "_Votable") -> None:
        self.vote_state = echoed.vote_state
        self.score = echoed.score


@dataclass(frozen=True)
class UserAvatar:
    background_color: str
    image: Optional[str] = None

    @classmethod
    def from_json(cls, data: object) -> "UserAvatar":
        f = Fields("UserAvatar", data)
        return cls(background_color=f.required("b", str), image=f.optional("i", str))


@dataclass(frozen=True)
class AttachedImage:
    url: str
    width: int
    height: int

    @classmethod
    def from_json(cls, data: object) -> "AttachedImage":
        f = Fields("AttachedImage", data)
        return cls(
            url=f.required("url", str),
            width=f.required("width", int),
            height=f.required("height", int),
        )


@dataclass(frozen=True)
class Link:
    """A URL or mention the server found in a rant or comment.

    ``start`` and ``end`` are UTF-8 byte offsets. ``calculated_range`` is
    not sent by the server; it is filled in against the owning text when
    the rant or comment is decoded.
    """

    kind: str
    url: str
    title: str
    short_url: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    calculated_range: Optional[TextRange] = None

    @classmethod
    def from_json(cls, data: object) -> "Link":
        f = Fields("Link", data)
        return cls(
            kind=f.required("type", str),
            url=f.string_or_int("url"),
            title=f.required("title", str),
            short_url=f.optional("short_url", str),
            start=f.optional("start", int),
            end=f.optional("end", int),
        )

    def resolved_against(self, text: str) -> "Link":
        return replace(
            self,
            calculated_range=resolve_link_range(text, self.title, self.start, self.end),
        )


def _decode_links(f: Fields, text: str) -> Optional[list[Link]]:
    links = f.optional_list_of("links", Link.from_json)
    if links is None:
        return None
    return [link.resolved_against(text) for link in links]


@dataclass(frozen=True)
class Weekly:
    date: str
    height: int
    topic: str
    week: int

    @classmethod
    def from_json(cls, data: object) -> "Weekly":
        f = Fields("Weekly", data)
        return cls(
            date=f.required("date", str),
            height=f.required("height", int),
            topic=f.required("topic", str),
            week=f.required("week", int),
        )


@dataclass(frozen=True)
class Collab:
    type_long: Optional[str] = None
    description: Optional[str] = None
    tech_stack: Optional[str] = None
    team_size: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_fields(cls, f: Fields) -> Optional["Collab"]:
        collab = cls(
            type_long=f.optional("c_type_long", str),
            description=f.optional("c_description", str),
            tech_stack=f.optional("c_tech_stack", str),
            team_size=f.optional_string_or_int("c_team_size"),
            url=f.optional("c_url", str),
        )
        return None if collab == cls() else collab


@dataclass
class Rant(_Votable):
    """A single rant as returned by ``/devrant/rants/{id}``."""

    id: int
    text: str
    score: int
    created_time: int
    comment_count: int
    tags: list[str]
    vote_state: VoteState
    is_edited: bool
    user_id: int
    username: str
    user_score: int
    user_avatar: UserAvatar
    user_avatar_large: UserAvatar
    attached_image: Optional[AttachedImage] = None
    weekly: Optional[Weekly] = None
    is_favorite: bool = False
    link: Optional[str] = None
    links: Optional[list[Link]] = None
    collab: Optional[Collab] = None
    is_user_dpp: int = 0

    @classmethod
    def from_json(cls, data: object) -> "Rant":
        f = Fields("Rant", data)
        text = f.required("text", str)
        return cls(
            id=f.required("id", int),
            text=text,
            score=f.required("score", int),
            created_time=f.required("created_time", int),
            comment_count=f.required("num_comments", int),
            tags=f.string_list("tags"),
            vote_state=decode_vote_state(f),
            is_edited=f.required("edited", bool),
            user_id=f.required("user_id", int),
            username=f.required("user_username", str),
            user_score=f.required("user_score", int),
            user_avatar=f.nested("user_avatar", UserAvatar.from_json),
            user_avatar_large=f.nested("user_avatar_lg", UserAvatar.from_json),
            attached_image=f.optional_nested("attached_image", AttachedImage.from_json),
            weekly=f.optional_nested("weekly", Weekly.from_json),
            is_favorite=bool(f.default("favorited", int, 0)),
            link=f.optional("link", str),
            links=_decode_links(f, text),
            collab=Collab.from_fields(f),
            is_user_dpp=f.default("user_dpp", int, 0),
        )


@dataclass
class RantInFeed(_Votable):
    """The summarized rant found in feeds and on profiles."""

    id: int
    text: str
    score: int
    created_time: int
    comment_count: int
    tags: list[str]
    vote_state: VoteState
    is_edited: bool
    user_id: int
    username: str
    user_score: int
    user_avatar: UserAvatar
    user_avatar_large: UserAvatar
    attached_image: Optional[AttachedImage] = None
    link: Optional[str] = None
    collab_type: Optional[int] = None
    collab_type_long: Optional[str] = None
    is_user_dpp: int = 0

    @classmethod
    def from_json(cls, data: object) -> "RantInFeed":
        f = Fields("RantInFeed", data)
        return cls(
            id=f.required("id", int),
            text=f.required("text", str),
            score=f.required("score", int),
            created_time=f.required("created_time", int),
            comment_count=f.required("num_comments", int),
            tags=f.string_list("tags"),
            vote_state=decode_vote_state(f),
            is_edited=f.required("edited", bool),
            user_id=f.required("user_id", int),
            username=f.required("user_username", str),
            user_score=f.required("user_score", int),
            user_avatar=f.nested("user_avatar", UserAvatar.from_json),
            user_avatar_large=f.nested("user_avatar_lg", UserAvatar.from_json),
            attached_image=f.optional_nested("attached_image", AttachedImage.from_json),
            link=f.optional("link", str),
            collab_type=f.optional("c_type", int),
            collab_type_long=f.optional("c_type_long", str),
            is_user_dpp=f.default("user_dpp", int, 0),
        )


@dataclass
class Comment(_Votable):
    id: int
    rant_id: int
    body: str
    score: int
    created_time: int
    vote_state: VoteState
    user_id: int
    username: str
    user_score: int
    user_avatar: UserAvatar
    links: Optional[list[Link]] = None
    attached_image: Optional[AttachedImage] = None
    is_user_dpp: int = 0

    @classmethod
    def from_json(cls, data: object) -> "Comment":
        f = Fields("Comment", data)
        body = f.required("body", str)
        return cls(
            id=f.required("id", int),
            rant_id=f.required("rant_id", int),
            body=body,
            score=f.required("score", int),
            created_time=f.required("created_time", int),
            vote_state=decode_vote_state(f),
            user_id=f.required("user_id", int),
            username=f.required("user_username", str),
            user_score=f.required("user_score", int),
            user_avatar=f.nested("user_avatar", UserAvatar.from_json),
            links=_decode_links(f, body),
            attached_image=f.optional_nested("attached_image", AttachedImage.from_json),
            is_user_dpp=f.default("user_dpp", int, 0),
        )


@dataclass(frozen=True)
class RelatedUserAction:
    user_id: int
    action: str

    ACTIONS = ("liked", "posted", "commented")

    @classmethod
    def from_json(cls, data: object) -> "RelatedUserAction":
        f = Fields("RelatedUserAction", data)
        uid = f.string_or_int("uid")
        action = f.required("action", str)
        if not uid.lstrip("-").isdigit():
            raise DecodeError(f.entity, "uid", f"not a user id: {uid!r}")
        if action not in cls.ACTIONS:
            raise DecodeError(f.entity, "action", f"unknown action {action!r}")
        return cls(user_id=int(uid), action=action)


@dataclass
class RantInSubscribedFeed(_Votable):
    """A rant in the subscribed feed, with what followed users did to it."""

    id: int
    text: str
    score: int
    created_time: int
    comment_count: int
    tags: list[str]
    vote_state: VoteState
    is_edited: bool
    related_user_actions: list[RelatedUserAction] = field(default_factory=list)
    attached_image: Optional[AttachedImage] = None

    @classmethod
    def from_json(cls, data: object) -> "RantInSubscribedFeed":
        envelope = Fields("RantInSubscribedFeed", data)
        f = Fields("RantInSubscribedFeed.rant", envelope.required("rant", dict))
        return cls(
            id=f.required("id", int),
            text=f.required("text", str),
            score=f.required("score", int),
            created_time=f.required("created_time", int),
            comment_count=f.required("num_comments", int),
            tags=f.string_list("tags"),
            vote_state=decode_vote_state(f),
            is_edited=f.required("edited", bool),
            related_user_actions=envelope.list_of("actions", RelatedUserAction.from_json),
            attached_image=f.optional_nested("attached_image", AttachedImage.from_json),
        )
