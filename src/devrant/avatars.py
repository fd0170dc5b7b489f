"""
Avatar builder catalog (``/devrant/avatars/build``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .decoding import Fields

AVATAR_IMAGE_BASE = "https://avatars.devrant.com/"


@dataclass(frozen=True)
class AvatarCustomizationImage:
    background_color: str
    full_image: str
    mid_image: str

    @classmethod
    def from_json(cls, data: object) -> "AvatarCustomizationImage":
        f = Fields("AvatarCustomizationImage", data)
        return cls(
            background_color=f.required("b", str),
            full_image=f.required("full", str),
            mid_image=f.required("mid", str),
        )

    @property
    def full_image_url(self) -> str:
        return AVATAR_IMAGE_BASE + self.full_image

    @property
    def mid_image_url(self) -> str:
        return AVATAR_IMAGE_BASE + self.mid_image


@dataclass(frozen=True)
class AvatarCustomizationType:
    id: str
    label: str
    sub_type: Optional[int] = None
    for_gender: Optional[str] = None

    @classmethod
    def from_json(cls, data: object) -> "AvatarCustomizationType":
        f = Fields("AvatarCustomizationType", data)
        return cls(
            id=f.string_or_int("id"),
            label=f.required("label", str),
            sub_type=f.optional("sub_type", int),
            for_gender=f.optional("for_gender", str),
        )


@dataclass(frozen=True)
class AvatarCustomizationOption:
    image: AvatarCustomizationImage
    id: Optional[str] = None
    background_color: Optional[str] = None
    required_points: Optional[int] = None
    is_selected: Optional[bool] = None

    @classmethod
    def from_json(cls, data: object) -> "AvatarCustomizationOption":
        f = Fields("AvatarCustomizationOption", data)
        return cls(
            image=f.nested("img", AvatarCustomizationImage.from_json),
            id=f.optional_string_or_int("id"),
            background_color=f.optional("bg", str),
            required_points=f.optional("points", int),
            is_selected=f.optional("selected", bool),
        )


@dataclass(frozen=True)
class AvatarCustomizationResults:
    avatars: list[AvatarCustomizationOption]
    user_score: int
    types: Optional[list[AvatarCustomizationType]] = None

    @classmethod
    def from_json(cls, data: object) -> "AvatarCustomizationResults":
        f = Fields("AvatarCustomizationResults", data)
        me = Fields("AvatarCustomizationCurrentUserInfo", f.required("me", dict))
        avatars = []
        if f.optional("avatars", list) is not None:
            avatars = f.list_of("avatars", AvatarCustomizationOption.from_json)
        types = None
        if f.optional("options", list) is not None:
            types = f.list_of("options", AvatarCustomizationType.from_json)
        return cls(avatars=avatars, user_score=me.required("score", int), types=types)
