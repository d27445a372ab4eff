"""
Scavenger Hunt Backend - Validation Layer Tests
================================================

What:  Input models and the helpers in scavenger.validation. No database.

What we test:
    ✅ username normalization and email shape
    ✅ password strength rules
    ✅ role enum, empty role lists, duplicate collapsing
    ✅ waypoint entry bounds and non-blank text
    ✅ every violation is reported, not only the first
    ✅ path/body key mismatch
    ✅ challenge name, start time, duration and invitee rules
"""

import pytest

from scavenger.exceptions import ValidationError
from scavenger.schemas.account import AccountCreate, AccountUpdate, LoginRequest, Role
from scavenger.schemas.challenge import ChallengeCreate, InviteRequest
from scavenger.schemas.waypoint import WaypointSequenceCreate, waypoint_to_record
from scavenger.validation import (
    ensure_keys_match,
    normalize_sequence_name,
    normalize_username,
    parse_input,
    parse_role_filter,
)


def rules(exc_info):
    return {(v["field"], v["rule"]) for v in exc_info.value.violations}


class TestAccountInput:
    def test_username_is_trimmed_and_lowercased(self, account_payload):
        account_payload["username"] = "  Mixed.Case@Example.COM "
        data = parse_input(AccountCreate, account_payload)
        assert data.username == "mixed.case@example.com"

    @pytest.mark.parametrize("username", ["not-an-email", "a@b", "a b@c.com", "@b.com", ""])
    def test_malformed_username_rejected(self, account_payload, username):
        account_payload["username"] = username
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert ("username", "email_format") in rules(exc_info)

    def test_non_string_username_rejected(self, account_payload):
        account_payload["username"] = 42
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert exc_info.value.violations[0]["field"] == "username"

    @pytest.mark.parametrize(
        "password,rule",
        [
            ("short1", "password_length"),
            ("lettersonly", "password_strength"),
            ("1234567890", "password_strength"),
        ],
    )
    def test_weak_password_rejected(self, account_payload, password, rule):
        account_payload["password"] = password
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert ("password", rule) in rules(exc_info)

    def test_blank_nickname_rejected(self, account_payload):
        account_payload["nickname"] = "   "
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert ("nickname", "blank") in rules(exc_info)

    def test_empty_roles_rejected(self, account_payload):
        account_payload["roles"] = []
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert exc_info.value.violations[0]["field"] == "roles"

    def test_unknown_role_rejected(self, account_payload):
        account_payload["roles"] = ["player", "superuser"]
        with pytest.raises(ValidationError) as exc_info:
            parse_input(AccountCreate, account_payload)
        assert exc_info.value.violations[0]["field"] == "roles.1"

    def test_duplicate_roles_collapse(self, account_payload):
        account_payload["roles"] = ["player", "admin", "player"]
        data = parse_input(AccountCreate, account_payload)
        assert data.roles == [Role.PLAYER, Role.ADMIN]

    def test_all_violations_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(
                AccountCreate,
                {"username": "bad", "password": "short", "nickname": "", "roles": []},
            )
        assert {field for field, _ in rules(exc_info)} == {"username", "password", "nickname", "roles"}
        assert exc_info.value.message == "4 validation errors"

    def test_update_password_is_optional(self):
        data = parse_input(AccountUpdate, {"username": "a@b.com", "nickname": "New"})
        assert data.password is None
        assert data.roles is None

    def test_update_password_still_checked_when_given(self):
        with pytest.raises(ValidationError):
            parse_input(AccountUpdate, {"username": "a@b.com", "password": "weak"})

    def test_login_requires_both_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(LoginRequest, {"username": "a@b.com"})
        assert ("password", "missing") in rules(exc_info)

    def test_non_object_payload_rejected(self):
        with pytest.raises(ValidationError):
            parse_input(LoginRequest, ["a@b.com", "password123"])


class TestWaypointInput:
    def test_valid_sequence_is_normalized(self, sequence_payload):
        sequence_payload["waypoint_name"] = "  Tour "
        data = parse_input(WaypointSequenceCreate, sequence_payload)
        assert data.waypoint_name == "tour"
        assert len(data.data) == 1

    @pytest.mark.parametrize(
        "path,value",
        [
            (("location", "lat"), 90.5),
            (("location", "lat"), -91),
            (("location", "long"), 180.01),
            (("location", "long"), -200),
            (("location", "lat"), True),
            (("location", "lat"), "40.7"),
            (("location", "long"), False),
            (("location", "long"), "-74.0"),
            (("radius",), 0),
            (("radius",), -5),
            (("waypoint_seq_id",), 0),
            (("clue",), "  "),
            (("image_subject",), ""),
        ],
    )
    def test_out_of_policy_entry_rejected(self, sequence_payload, path, value):
        target = sequence_payload["data"][0]
        for part in path[:-1]:
            target = target[part]
        target[path[-1]] = value

        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)

        fields = {v["field"] for v in exc_info.value.violations}
        assert "data.0." + ".".join(path) in fields

    def test_integer_coordinates_accepted(self, sequence_payload):
        sequence_payload["data"][0]["location"] = {"lat": 40, "long": -74}
        data = parse_input(WaypointSequenceCreate, sequence_payload)
        assert data.data[0].location.lat == 40.0

    @pytest.mark.parametrize("name", ["summary", " Summary "])
    def test_reserved_name_rejected(self, sequence_payload, name):
        sequence_payload["waypoint_name"] = name
        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)
        assert ("waypoint_name", "reserved_name") in rules(exc_info)

    def test_blank_hint_rejected(self, sequence_payload):
        sequence_payload["data"][0]["hints"] = ["fine", " "]
        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)
        assert ("data.0.hints.1", "blank") in rules(exc_info)

    def test_hints_default_to_empty(self, sequence_payload):
        del sequence_payload["data"][0]["hints"]
        data = parse_input(WaypointSequenceCreate, sequence_payload)
        assert data.data[0].hints == []

    def test_one_bad_entry_fails_whole_sequence(self, sequence_payload, waypoint_entry):
        second = dict(waypoint_entry, waypoint_seq_id=2, radius=0)
        sequence_payload["data"].append(second)
        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)
        assert ("data.1.radius", "greater_than") in rules(exc_info)

    def test_sequence_ids_must_be_consecutive(self, sequence_payload, waypoint_entry):
        sequence_payload["data"].append(dict(waypoint_entry, waypoint_seq_id=3))
        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)
        assert ("data", "sequence_order") in rules(exc_info)

    def test_name_too_long_rejected(self, sequence_payload):
        sequence_payload["waypoint_name"] = "n" * 256
        with pytest.raises(ValidationError) as exc_info:
            parse_input(WaypointSequenceCreate, sequence_payload)
        assert exc_info.value.violations[0]["field"] == "waypoint_name"

    def test_three_independent_violations_all_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(
                WaypointSequenceCreate,
                {"waypoint_name": "", "waypoint_description": "", "data": []},
            )
        assert {v["field"] for v in exc_info.value.violations} == {
            "waypoint_name",
            "waypoint_description",
            "data",
        }

    def test_waypoint_to_record_maps_every_field(self, sequence_payload):
        entry = parse_input(WaypointSequenceCreate, sequence_payload).data[0]
        assert waypoint_to_record(entry) == {
            "waypoint_seq_id": 1,
            "location": {"lat": 40.7, "long": -74.0},
            "radius": 50,
            "clue": "x",
            "hints": [],
            "image_subject": "y",
        }


class TestChallengeInput:
    def test_valid_challenge_is_normalized(self, challenge_payload):
        challenge_payload["challenge_name"] = "  Night Run "
        del challenge_payload["duration"]
        data = parse_input(ChallengeCreate, challenge_payload)

        assert data.challenge_name == "Night Run"
        assert data.duration == 90
        assert data.invited_users == []
        assert data.start_time.utcoffset() is not None

    @pytest.mark.parametrize("name", ["ab", "  ab  ", "x" * 33])
    def test_name_length_enforced_after_trimming(self, challenge_payload, name):
        challenge_payload["challenge_name"] = name
        with pytest.raises(ValidationError) as exc_info:
            parse_input(ChallengeCreate, challenge_payload)
        assert ("challenge_name", "name_length") in rules(exc_info)

    def test_start_time_needs_an_offset(self, challenge_payload):
        challenge_payload["start_time"] = "2026-11-01T18:00:00"
        with pytest.raises(ValidationError) as exc_info:
            parse_input(ChallengeCreate, challenge_payload)
        assert exc_info.value.violations[0]["field"] == "start_time"

    def test_negative_duration_rejected(self, challenge_payload):
        challenge_payload["duration"] = -1
        with pytest.raises(ValidationError) as exc_info:
            parse_input(ChallengeCreate, challenge_payload)
        assert exc_info.value.violations[0]["field"] == "duration"

    def test_invited_users_are_normalized_and_deduplicated(self, challenge_payload):
        challenge_payload["invited_users"] = ["A@b.com", "a@b.com ", "c@d.com"]
        data = parse_input(ChallengeCreate, challenge_payload)
        assert data.invited_users == ["a@b.com", "c@d.com"]

    def test_malformed_invitee_rejected(self, challenge_payload):
        challenge_payload["invited_users"] = ["a@b.com", "nope"]
        with pytest.raises(ValidationError) as exc_info:
            parse_input(ChallengeCreate, challenge_payload)
        assert ("invited_users.1", "email_format") in rules(exc_info)

    def test_invite_request_needs_someone(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_input(InviteRequest, {"invited_users": []})
        assert exc_info.value.violations[0]["field"] == "invited_users"


class TestKeyHelpers:
    def test_normalizers(self):
        assert normalize_username("  A@B.Com ") == "a@b.com"
        assert normalize_sequence_name(" Tour ") == "tour"

    def test_matching_keys_pass(self):
        ensure_keys_match("tour", "tour", "waypoint_name")

    def test_mismatched_keys_raise(self):
        with pytest.raises(ValidationError) as exc_info:
            ensure_keys_match("tour", "other", "waypoint_name")
        assert "must match" in exc_info.value.message
        assert exc_info.value.violations[0]["rule"] == "key_mismatch"

    def test_role_filter(self):
        assert parse_role_filter(None) is None
        assert parse_role_filter("Admin") is Role.ADMIN
        with pytest.raises(ValidationError):
            parse_role_filter("root")
