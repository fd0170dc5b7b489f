"""
Tests for devrant.usernames module.

Covers:
- Notification username maps (keyed by string id)
- Subscribed feed username maps (keyed by numeric id)
- Empty maps sent as arrays
"""

import pytest

from devrant.errors import DecodeError
from devrant.usernames import NotificationUsernameMap, SubscribedUsernameMap


class TestNotificationUsernameMap:

    def test_single_entry(self, avatar):
        users = NotificationUsernameMap.from_json({"501": {"avatar": avatar, "name": "alice"}})
        assert len(users) == 1
        (user,) = users.users
        assert user.user_id == "501"
        assert user.username == "alice"
        assert user.avatar.background_color == "2a8b9d"

    def test_every_key_becomes_an_entry(self, avatar):
        data = {str(uid): {"avatar": avatar, "name": f"u{uid}"} for uid in range(5)}
        users = NotificationUsernameMap.from_json(data)
        assert len(users) == 5
        assert {u.user_id for u in users.users} == set(data)

    def test_entry(self, avatar):
        users = NotificationUsernameMap.from_json({"501": {"avatar": avatar, "name": "alice"}})
        [user] = users.users
        assert (user.user_id, user.username) == ("501", "alice")

    def test_empty_array_is_empty_map(self):
        assert len(NotificationUsernameMap.from_json([])) == 0

    def test_bad_entry_fails(self):
        with pytest.raises(DecodeError):
            NotificationUsernameMap.from_json({"501": {"name": "alice"}})

    def test_non_object_fails(self):
        with pytest.raises(DecodeError):
            NotificationUsernameMap.from_json("nope")


class TestSubscribedUsernameMap:

    def test_entry(self, avatar):
        users = SubscribedUsernameMap.from_json(
            {"501": {"username": "alice", "avatar": avatar, "score": 9}}
        )
        [user] = users.users
        assert user.user_id == 501
        assert user.score == 9

    def test_notification_shape_is_rejected(self, avatar):
        with pytest.raises(DecodeError):
            SubscribedUsernameMap.from_json({"501": {"avatar": avatar, "name": "alice"}})

    def test_non_numeric_key_fails(self, avatar):
        with pytest.raises(DecodeError):
            SubscribedUsernameMap.from_json(
                {"alice": {"username": "alice", "avatar": avatar, "score": 9}}
            )
