"""
Tests for devrant.types module.

Covers:
- Credentials decoding, expiry and serialization
- Frozen dataclass immutability
- Vote and result types
- Module-level constants
"""

import dataclasses
import json

import pytest

from devrant.errors import DecodeError
from devrant.types import (
    API_BASE,
    APP_ID,
    DEFAULT_HEADERS,
    Credentials,
    ErrorKind,
    Failure,
    RantType,
    Success,
    VoteState,
)


class TestCredentialsDecoding:

    def test_from_auth_token_envelope(self, auth_token_body):
        creds = Credentials.from_json(auth_token_body)
        assert creds.token_id == 7
        assert creds.token_key == "k3y"
        assert creds.expire_time == 2_000_000_000
        assert creds.user_id == 42

    def test_missing_envelope_raises(self):
        with pytest.raises(DecodeError):
            Credentials.from_json({"success": False})

    def test_missing_key_raises(self, auth_token_body):
        del auth_token_body["auth_token"]["key"]
        with pytest.raises(DecodeError) as exc_info:
            Credentials.from_json(auth_token_body)
        assert exc_info.value.field == "key"

    def test_string_id_is_rejected(self, auth_token_body):
        auth_token_body["auth_token"]["id"] = "7"
        with pytest.raises(DecodeError):
            Credentials.from_json(auth_token_body)


class TestCredentialsSerialization:

    def test_to_dict_matches_wire_shape(self, credentials):
        assert credentials.to_dict() == {
            "auth_token": {
                "id": 7,
                "key": "k3y",
                "expire_time": 2_000_000_000,
                "user_id": 42,
            }
        }

    def test_bytes_are_json(self, credentials):
        assert json.loads(credentials.to_bytes())["auth_token"]["id"] == 7

    def test_from_bytes_restores(self, credentials):
        assert Credentials.from_bytes(credentials.to_bytes()) == credentials

    def test_query_params(self, credentials):
        assert credentials.query_params() == {
            "user_id": 42,
            "token_id": 7,
            "token_key": "k3y",
        }


class TestCredentialsExpiry:

    def test_not_expired_before_expire_time(self, credentials):
        assert credentials.is_expired(now=1_999_999_999) is False

    def test_expired_at_expire_time(self, credentials):
        assert credentials.is_expired(now=2_000_000_000) is True

    def test_expired_after_expire_time(self, expired_credentials):
        assert expired_credentials.is_expired(now=1_001) is True

    def test_defaults_to_current_time(self, expired_credentials):
        assert expired_credentials.is_expired() is True


class TestCredentialsFrozen:

    def test_cannot_set_token_key(self, credentials):
        with pytest.raises(dataclasses.FrozenInstanceError):
            credentials.token_key = "hacked"

    def test_equal_when_fields_match(self, credentials):
        assert credentials == Credentials(7, "k3y", 2_000_000_000, 42)


class TestVoteState:

    def test_wire_values(self):
        assert VoteState(1) is VoteState.UPVOTED
        assert VoteState(0) is VoteState.UNVOTED
        assert VoteState(-1) is VoteState.DOWNVOTED
        assert VoteState(-2) is VoteState.UNVOTABLE

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            VoteState(2)

    def test_rant_type_values(self):
        assert int(RantType.RANT) == 1
        assert int(RantType.UNDEFINED) == 7


class TestResults:

    def test_success_is_ok(self):
        result = Success([1, 2])
        assert result.ok is True
        assert result.value == [1, 2]

    def test_failure_is_not_ok(self):
        result = Failure(ErrorKind.API, "nope")
        assert result.ok is False
        assert result.kind is ErrorKind.API
        assert result.message == "nope"


class TestConstants:

    def test_api_base_is_https(self):
        assert API_BASE == "https://devrant.com/api"

    def test_app_id(self):
        assert APP_ID == 3

    def test_default_headers_has_user_agent(self):
        assert "User-Agent" in DEFAULT_HEADERS
