"""
Shared fixtures for the devrant test suite.
"""

import json
from unittest.mock import MagicMock

import pytest

from devrant.types import Credentials


# ── Token fixtures ───────────────────────────────────────────

@pytest.fixture
def credentials():
    return Credentials(
        token_id=7,
        token_key="k3y",
        expire_time=2_000_000_000,
        user_id=42,
    )


@pytest.fixture
def expired_credentials():
    return Credentials(token_id=6, token_key="old", expire_time=1_000, user_id=42)


@pytest.fixture
def auth_token_body():
    """Response from /users/auth-token."""
    return {
        "success": True,
        "auth_token": {
            "id": 7,
            "key": "k3y",
            "expire_time": 2_000_000_000,
            "user_id": 42,
        },
    }


# ── Payload fixtures ─────────────────────────────────────────

@pytest.fixture
def avatar():
    return {"b": "2a8b9d", "i": "v-37_c-1_b-1_g-m_9-1_1-1.png"}


@pytest.fixture
def feed_rant(avatar):
    """A rant as it appears in /devrant/rants."""
    return {
        "id": 1001,
        "text": "it works on my machine",
        "score": 12,
        "created_time": 1_650_000_000,
        "attached_image": None,
        "num_comments": 3,
        "tags": ["rant", "works"],
        "vote_state": 1,
        "edited": False,
        "rt": 1,
        "rc": 1,
        "user_id": 501,
        "user_username": "alice",
        "user_score": 900,
        "user_avatar": avatar,
        "user_avatar_lg": {"b": "2a8b9d"},
    }


@pytest.fixture
def rant(feed_rant):
    """A full rant as returned by /devrant/rants/{id}."""
    return {
        **feed_rant,
        "text": "Try: example.com",
        "favorited": 1,
        "links": [
            {
                "type": "url",
                "url": "https://example.com",
                "short_url": "https://dvr.nt/x",
                "title": "example.com",
                "start": 5,
                "end": 16,
            }
        ],
    }


@pytest.fixture
def comment(avatar):
    return {
        "id": 2001,
        "rant_id": 1001,
        "body": "same here",
        "score": 2,
        "created_time": 1_650_000_100,
        "vote_state": 0,
        "user_id": 502,
        "user_username": "bob",
        "user_score": 10,
        "user_avatar": avatar,
    }


@pytest.fixture
def feed_body(feed_rant):
    return {
        "success": True,
        "rants": [feed_rant],
        "settings": {"notif_state": -1, "notif_token": ""},
        "set": "5f2c1a",
        "wrw": 300,
        "dpp": 0,
        "num_notifs": 4,
        "unread": {"total": 4},
        "news": {
            "id": 1,
            "type": "intlink",
            "headline": "Weekly Group Rant",
            "body": "What is your worst bug?",
            "footer": "Add tag 'wk300' to your rant",
            "height": 100,
            "action": "grouprant",
        },
    }


@pytest.fixture
def notification_body(avatar):
    return {
        "success": True,
        "data": {
            "items": [
                {
                    "type": "comment_mention",
                    "rant_id": 1001,
                    "comment_id": 2001,
                    "created_time": 1_650_000_200,
                    "read": 0,
                    "uid": 501,
                },
                {
                    "type": "content_vote",
                    "rant_id": 1001,
                    "created_time": 1_650_000_300,
                    "read": 1,
                    "uid": 502,
                },
            ],
            "check_time": 1_650_000_400,
            "username_map": {
                "501": {"avatar": avatar, "name": "alice"},
                "502": {"avatar": {"b": "7bc8a4"}, "name": "bob"},
            },
            "unread": {
                "all": 1,
                "upvotes": 0,
                "mentions": 1,
                "comments": 0,
                "subs": 0,
                "total": 1,
            },
            "num_unread": 1,
        },
    }


@pytest.fixture
def subscribed_body(avatar):
    return {
        "success": True,
        "feed": {
            "activity": {
                "items": [
                    {
                        "type": "rant",
                        "rant": {
                            "id": 1001,
                            "text": "subscribed rant",
                            "score": 5,
                            "created_time": 1_650_000_000,
                            "attached_image": "",
                            "num_comments": 0,
                            "tags": ["devrant"],
                            "vote_state": 0,
                            "edited": True,
                            "rt": 1,
                            "rc": 1,
                        },
                        "actions": [
                            {"uid": "501", "action": "posted"},
                            {"uid": 502, "action": "liked"},
                        ],
                    }
                ],
                "page_info": {"end_cursor": "MTAwMQ==", "has_next_page": True},
            },
            "rec_users": {"items": [{"uid": 503}], "has_next_page": False},
            "users": {
                "501": {"username": "alice", "avatar": avatar, "score": 900},
            },
        },
    }


@pytest.fixture
def profile_body(feed_rant, comment, avatar):
    return {
        "success": True,
        "profile": {
            "username": "alice",
            "score": 900,
            "about": "backend",
            "location": "Berlin",
            "created_time": 1_500_000_000,
            "skills": "python",
            "github": "alice",
            "website": "https://alice.dev",
            "content": {
                "content": {
                    "rants": [feed_rant],
                    "upvoted": [],
                    "comments": [comment],
                    "favorites": [],
                },
                "counts": {
                    "rants": 1,
                    "upvoted": 0,
                    "comments": 1,
                    "favorites": 0,
                    "collabs": 0,
                },
            },
            "avatar": avatar,
            "avatar_sm": {"b": "2a8b9d", "i": "small.png"},
            "dpp": 1,
        },
    }


@pytest.fixture
def avatar_options_body():
    return {
        "success": True,
        "avatars": [
            {
                "id": 12,
                "img": {"b": "2a8b9d", "full": "full/a.png", "mid": "mid/a.png"},
                "points": 10,
                "selected": True,
            }
        ],
        "me": {"score": 900},
        "options": [
            {"id": "g", "label": "Gender"},
            {"id": 5, "label": "Hair", "sub_type": 1, "for_gender": "m"},
        ],
    }


# ── Mock response factory ────────────────────────────────────

@pytest.fixture
def make_response():
    """Build a mock requests.Response carrying a JSON (or raw) body."""

    def _make(body=None, status_code=200, raw=None):
        resp = MagicMock()
        resp.status_code = status_code
        resp.content = raw if raw is not None else json.dumps(body).encode("utf-8")
        return resp

    return _make
