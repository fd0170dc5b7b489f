"""
devRant API client
Feeds, rants, comments, votes, profiles, notifications, avatars.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from enum import Enum
from typing import Callable, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from .avatars import AvatarCustomizationResults
from .config import ClientConfig
from .decoding import Fields, error_message, parse_json
from .errors import DecodeError, StorageError, TransportError
from .feeds import RantFeed, SubscribedFeed, WeeklyList
from .images import image_upload
from .models import Comment, Rant, RantInFeed
from .notifications import Notifications
from .profile import Profile
from .session import SessionManager, transport_failure
from .storage import (
    LAST_NOTIFICATION_CHECK_KEY,
    LAST_SET_KEY,
    JSONFileCache,
    KeyringSecretStore,
    KeyValueCache,
)
from .transport import Transport, UploadFile, encode_form, encode_multipart
from .types import (
    UNKNOWN_ERROR_MESSAGE,
    Credentials,
    ErrorKind,
    Failure,
    NotificationCategory,
    ProfileContentType,
    RantType,
    Result,
    Success,
    VoteState,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_TOKEN_MESSAGE = "No token was specified."


def _json(decoder: Callable[[object], T]) -> Callable[[bytes], T]:
    return lambda raw: decoder(parse_json(raw))


def _success_only(data: object) -> None:
    if Fields("Response", data).required("success", bool) is not True:
        raise DecodeError("Response", "success", "request was not successful")


def _rant_with_comments(data: object) -> tuple[Rant, list[Comment]]:
    f = Fields("RantResponse", data)
    comments = f.optional("comments", list)
    return (
        f.nested("rant", Rant.from_json),
        [] if comments is None else f.list_of("comments", Comment.from_json),
    )


class DevRantClient:
    """devRant API client.

    With a persisting session, every operation obtains (and if needed
    refreshes) its own token and the ``token`` argument is ignored.
    Otherwise each call must pass ``token`` explicitly.
    """

    def __init__(
        self,
        session: Optional[SessionManager] = None,
        transport: Optional[Transport] = None,
        cache: Optional[KeyValueCache] = None,
        config: Optional[ClientConfig] = None,
    ):
        self.config = config or ClientConfig()
        self._transport = transport or Transport(
            self.config.api_base, self.config.timeout_sec
        )
        self.session = session
        self._cache = cache

    @classmethod
    def from_config(cls, config: Optional[ClientConfig] = None) -> "DevRantClient":
        """Client wired to the keyring and the on-disk cursor cache."""
        config = config or ClientConfig.from_env()
        transport = Transport(config.api_base, config.timeout_sec)
        session = SessionManager(
            transport,
            KeyringSecretStore(config.keyring_service),
            persist=config.persist_session,
            app_id=config.app_id,
        )
        cache = JSONFileCache(config.cache_path) if config.persist_session else None
        return cls(session=session, transport=transport, cache=cache, config=config)

    @property
    def persists(self) -> bool:
        return self.session is not None and self.session.persist

    def authenticate(self, username: str, password: str) -> Result[Credentials]:
        if self.session is None:
            self.session = SessionManager(
                self._transport, persist=False, app_id=self.config.app_id
            )
        return self.session.authenticate(username, password)

    # ── Plumbing ──────────────────────────────────────────

    def _credentials(self, token: Optional[Credentials]) -> Result[Credentials]:
        if self.persists:
            return self.session.ensure_valid()
        if token is None:
            return Failure(ErrorKind.AUTH, NO_TOKEN_MESSAGE)
        return Success(token)

    def _request(
        self,
        method: str,
        path: str,
        decode: Callable[[bytes], T],
        token: Optional[Credentials] = None,
        query: Optional[Mapping[str, object]] = None,
        form: Optional[Mapping[str, object]] = None,
        files: Sequence[UploadFile] = (),
        timeout: Optional[float] = None,
        authenticated: bool = True,
    ) -> Result[T]:
        params: dict[str, object] = {"app": self.config.app_id}
        if authenticated:
            credentials = self._credentials(token)
            if not credentials.ok:
                return credentials
            params.update(credentials.value.query_params())

        headers: dict[str, str] = {}
        body = None
        if form is None and not files:
            url = self._transport.url(path, {**(query or {}), **params})
        else:
            url = self._transport.url(path, query)
            fields = {**(form or {}), **params}
            if files:
                body, content_type = encode_multipart(fields, files)
            else:
                body, content_type = encode_form(fields)
            headers["Content-Type"] = content_type

        try:
            raw = self._transport.exchange(
                method, url, headers=headers, body=body, timeout=timeout
            )
        except TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return transport_failure(exc)

        try:
            return Success(decode(raw))
        except DecodeError as exc:
            logger.debug("could not decode %s %s: %s", method, path, exc)
            message = error_message(raw)
            if message is not None:
                return Failure(ErrorKind.API, message)
            return Failure(ErrorKind.DECODE, UNKNOWN_ERROR_MESSAGE)

    def _remember(self, store: Callable[[KeyValueCache], None]) -> None:
        if not self.persists or self._cache is None:
            return
        try:
            store(self._cache)
        except StorageError as exc:
            logger.warning("could not update the local cache: %s", exc)

    def _cached(self, read: Callable[[KeyValueCache], T]) -> Optional[T]:
        if not self.persists or self._cache is None:
            return None
        try:
            return read(self._cache)
        except StorageError as exc:
            logger.warning("could not read the local cache: %s", exc)
            return None

    # ── Feeds ─────────────────────────────────────────────

    def get_rant_feed(
        self,
        skip: int = 0,
        sort: str = "algo",
        limit: int = 20,
        prev_set: Optional[str] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[RantFeed]:
        if prev_set is None:
            prev_set = self._cached(lambda c: c.get_string(LAST_SET_KEY))

        result = self._request(
            "GET",
            "/devrant/rants",
            _json(RantFeed.from_json),
            token=token,
            query={
                "limit": limit,
                "skip": skip,
                "sort": sort,
                "prev_set": prev_set,
                "plat": 1,
                "nari": 1,
            },
            timeout=timeout,
        )
        if result.ok:
            self._remember(lambda c: c.set_string(LAST_SET_KEY, result.value.set))
        return result

    def get_weekly_list(
        self, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[WeeklyList]:
        return self._request(
            "GET", "/devrant/weekly-list", _json(WeeklyList.from_json),
            token=token, timeout=timeout,
        )

    def get_weekly_rants(
        self,
        week: Optional[int] = None,
        skip: int = 0,
        sort: str = "algo",
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[RantFeed]:
        return self._request(
            "GET",
            "/devrant/weekly-rants",
            _json(RantFeed.from_json),
            token=token,
            query={"week": week, "skip": skip, "sort": sort},
            timeout=timeout,
        )

    def get_subscribed_feed(
        self,
        last_end_cursor: Optional[str] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[SubscribedFeed]:
        return self._request(
            "GET",
            "/me/subscribed-feed",
            SubscribedFeed.from_bytes,
            token=token,
            query={"activity_before": last_end_cursor},
            timeout=timeout,
        )

    # ── Rants ─────────────────────────────────────────────

    def get_rant(
        self,
        rant_id: int,
        last_comment_id: Optional[int] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[tuple[Rant, list[Comment]]]:
        return self._request(
            "GET",
            f"/devrant/rants/{rant_id}",
            _json(_rant_with_comments),
            token=token,
            query={"last_comment_id": last_comment_id},
            timeout=timeout,
        )

    def vote_on_rant(
        self,
        rant_id: int,
        vote: VoteState,
        reason: Optional[int] = None,
        rant: Optional[Union[Rant, RantInFeed]] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[Rant]:
        """Vote on a rant and return the rant as the server now sees it.

        When ``rant`` is given, its vote state and score are updated in
        place from the server's echo once the vote succeeds.
        """
        result = self._request(
            "POST",
            f"/devrant/rants/{rant_id}/vote",
            _json(lambda data: Fields("VoteResponse", data).nested("rant", Rant.from_json)),
            token=token,
            form={"vote": int(vote), "reason": reason},
            timeout=timeout,
        )
        if result.ok and rant is not None:
            rant.apply_vote(result.value)
        return result

    def post_rant(
        self,
        text: str,
        tags: Iterable[str] = (),
        kind: RantType = RantType.RANT,
        image: Optional[bytes] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[int]:
        """Post a rant; the result holds the new rant's id."""
        return self._request(
            "POST",
            "/devrant/rants",
            _json(lambda data: Fields("PostRantResponse", data).required("rant_id", int)),
            token=token,
            form={"rant": text, "tags": ",".join(tags), "type": int(kind)},
            files=[image_upload(image)] if image is not None else (),
            timeout=timeout,
        )

    def edit_rant(
        self,
        rant_id: int,
        text: str,
        tags: Iterable[str] = (),
        image: Optional[bytes] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        return self._request(
            "POST",
            f"/devrant/rants/{rant_id}",
            _json(_success_only),
            token=token,
            form={"rant": text, "tags": ",".join(tags)},
            files=[image_upload(image)] if image is not None else (),
            timeout=timeout,
        )

    def delete_rant(
        self, rant_id: int, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "DELETE", f"/devrant/rants/{rant_id}", _json(_success_only),
            token=token, timeout=timeout,
        )

    def favorite_rant(
        self,
        rant_id: int,
        rant: Optional[Rant] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        result = self._request(
            "POST", f"/devrant/rants/{rant_id}/favorite", _json(_success_only),
            token=token, form={}, timeout=timeout,
        )
        if result.ok and rant is not None:
            rant.is_favorite = True
        return result

    def unfavorite_rant(
        self,
        rant_id: int,
        rant: Optional[Rant] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        result = self._request(
            "POST", f"/devrant/rants/{rant_id}/unfavorite", _json(_success_only),
            token=token, form={}, timeout=timeout,
        )
        if result.ok and rant is not None:
            rant.is_favorite = False
        return result

    # ── Comments ──────────────────────────────────────────

    def get_comment(
        self, comment_id: int, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[Comment]:
        return self._request(
            "GET",
            f"/comments/{comment_id}",
            _json(lambda data: Fields("CommentResponse", data).nested("comment", Comment.from_json)),
            token=token,
            timeout=timeout,
        )

    def vote_on_comment(
        self,
        comment_id: int,
        vote: VoteState,
        comment: Optional[Comment] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[Comment]:
        result = self._request(
            "POST",
            f"/comments/{comment_id}/vote",
            _json(lambda data: Fields("VoteResponse", data).nested("comment", Comment.from_json)),
            token=token,
            form={"vote": int(vote)},
            timeout=timeout,
        )
        if result.ok and comment is not None:
            comment.apply_vote(result.value)
        return result

    def post_comment(
        self,
        rant_id: int,
        text: str,
        image: Optional[bytes] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        return self._request(
            "POST",
            f"/devrant/rants/{rant_id}/comments",
            _json(_success_only),
            token=token,
            form={"comment": text},
            files=[image_upload(image)] if image is not None else (),
            timeout=timeout,
        )

    def edit_comment(
        self,
        comment_id: int,
        text: str,
        image: Optional[bytes] = None,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        return self._request(
            "POST",
            f"/comments/{comment_id}",
            _json(_success_only),
            token=token,
            form={"comment": text},
            files=[image_upload(image)] if image is not None else (),
            timeout=timeout,
        )

    def delete_comment(
        self, comment_id: int, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "DELETE", f"/comments/{comment_id}", _json(_success_only),
            token=token, timeout=timeout,
        )

    # ── Users ─────────────────────────────────────────────

    def get_profile(
        self,
        user_id: int,
        content_type: ProfileContentType = ProfileContentType.ALL,
        skip: int = 0,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[Profile]:
        return self._request(
            "GET",
            f"/users/{user_id}",
            _json(Profile.from_response),
            token=token,
            query={"content": content_type.value, "skip": skip},
            timeout=timeout,
        )

    def edit_profile(
        self,
        about: str = "",
        skills: str = "",
        location: str = "",
        website: str = "",
        github: str = "",
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[None]:
        return self._request(
            "POST",
            "/users/me/edit-profile",
            _json(_success_only),
            token=token,
            form={
                "profile_about": about,
                "profile_skills": skills,
                "profile_location": location,
                "profile_website": website,
                "profile_github": github,
            },
            timeout=timeout,
        )

    def get_user_id(self, username: str, timeout: Optional[float] = None) -> Result[int]:
        return self._request(
            "GET",
            "/get-user-id",
            _json(lambda data: Fields("UserIDResponse", data).required("user_id", int)),
            query={"username": username},
            timeout=timeout,
            authenticated=False,
        )

    def subscribe_to_user(
        self, user_id: int, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "POST", f"/users/{user_id}/subscribe", _json(_success_only),
            token=token, form={}, timeout=timeout,
        )

    def unsubscribe_from_user(
        self, user_id: int, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "DELETE", f"/users/{user_id}/subscribe", _json(_success_only),
            token=token, timeout=timeout,
        )

    # ── Notifications ─────────────────────────────────────

    def get_notification_feed(
        self,
        category: NotificationCategory = NotificationCategory.ALL,
        last_check_time: Optional[int] = None,
        should_get_new_notifs: bool = True,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[Notifications]:
        path = "/users/me/notif-feed"
        if category is not NotificationCategory.ALL:
            path = f"{path}/{category.value}"

        last_time = None
        if should_get_new_notifs:
            last_time = last_check_time
            if last_time is None:
                last_time = self._cached(lambda c: c.get_int(LAST_NOTIFICATION_CHECK_KEY))

        result = self._request(
            "GET",
            path,
            _json(Notifications.from_response),
            token=token,
            query={"last_time": last_time if last_time is not None else 0, "ext_prof": 1},
            timeout=timeout,
        )
        if result.ok:
            self._remember(
                lambda c: c.set_int(LAST_NOTIFICATION_CHECK_KEY, result.value.check_time)
            )
        return result

    def clear_notifications(
        self, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "DELETE", "/users/me/notif-feed", _json(_success_only),
            token=token, timeout=timeout,
        )

    # ── Avatars ───────────────────────────────────────────

    def get_avatar_customization_options(
        self,
        option_type: str,
        image_id: str,
        sub_option: Optional[int] = None,
        include_types: bool = False,
        token: Optional[Credentials] = None,
        timeout: Optional[float] = None,
    ) -> Result[AvatarCustomizationResults]:
        return self._request(
            "GET",
            "/devrant/avatars/build",
            _json(AvatarCustomizationResults.from_json),
            token=token,
            query={
                "option": option_type,
                "image_id": image_id,
                "sub_option": sub_option,
                "features": 1 if include_types else 0,
            },
            timeout=timeout,
        )

    def confirm_avatar_customization(
        self, image_id: str, token: Optional[Credentials] = None, timeout: Optional[float] = None
    ) -> Result[None]:
        return self._request(
            "POST", "/users/me/avatar", _json(_success_only),
            token=token, form={"image_id": image_id}, timeout=timeout,
        )


# ── CLI ───────────────────────────────────────────────────


def _jsonable(value: object) -> object:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="devRant API client")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("feed")
    p.add_argument("--skip", type=int, default=0)
    p.add_argument("--sort", default="algo")
    p.add_argument("--limit", type=int, default=20)

    p = sub.add_parser("rant")
    p.add_argument("--rant-id", type=int, required=True)

    p = sub.add_parser("vote")
    p.add_argument("--rant-id", type=int, required=True)
    p.add_argument("--vote", type=int, choices=[1, 0, -1], required=True)

    p = sub.add_parser("post")
    p.add_argument("--text", required=True)
    p.add_argument("--tags", nargs="*", default=[])

    p = sub.add_parser("delete-rant")
    p.add_argument("--rant-id", type=int, required=True)

    p = sub.add_parser("comment")
    p.add_argument("--rant-id", type=int, required=True)
    p.add_argument("--text", required=True)

    p = sub.add_parser("delete-comment")
    p.add_argument("--comment-id", type=int, required=True)

    p = sub.add_parser("profile")
    p.add_argument("--username", required=True)

    p = sub.add_parser("notifications")
    p.add_argument(
        "--category",
        choices=[c.value for c in NotificationCategory],
        default=NotificationCategory.ALL.value,
    )

    sub.add_parser("clear-notifications")
    sub.add_parser("weekly")
    sub.add_parser("subscribed")

    return parser


def _profile_by_name(client: DevRantClient, username: str) -> Result[Profile]:
    user_id = client.get_user_id(username)
    if not user_id.ok:
        return user_id
    return client.get_profile(user_id.value)


_DISPATCH = {
    "feed": lambda c, a: c.get_rant_feed(a.skip, a.sort, a.limit),
    "rant": lambda c, a: c.get_rant(a.rant_id),
    "vote": lambda c, a: c.vote_on_rant(a.rant_id, VoteState(a.vote)),
    "post": lambda c, a: c.post_rant(a.text, a.tags),
    "delete-rant": lambda c, a: c.delete_rant(a.rant_id),
    "comment": lambda c, a: c.post_comment(a.rant_id, a.text),
    "delete-comment": lambda c, a: c.delete_comment(a.comment_id),
    "profile": lambda c, a: _profile_by_name(c, a.username),
    "notifications": lambda c, a: c.get_notification_feed(NotificationCategory(a.category)),
    "clear-notifications": lambda c, _: c.clear_notifications(),
    "weekly": lambda c, _: c.get_weekly_list(),
    "subscribed": lambda c, _: c.get_subscribed_feed(),
}


def main() -> None:
    """CLI entry point for API operations."""
    args = _build_parser().parse_args()
    client = DevRantClient.from_config()

    handler = _DISPATCH.get(args.command)
    if not handler:
        print("Unknown command", file=sys.stderr)
        sys.exit(1)

    result = handler(client, args)
    if not result.ok:
        print(json.dumps({"error": result.message, "kind": result.kind.value}), file=sys.stderr)
        sys.exit(1)

    value = result.value
    json.dump(
        {"success": True} if value is None else _jsonable(value),
        sys.stdout,
        ensure_ascii=False,
        indent=2,
    )
    print()
