"""
Tests for postback data encoding and decoding.
"""

import pytest

from attendline.engagement.postback import MAX_POSTBACK_LENGTH, PostbackAction, encode_postback, parse_postback


class TestEncodePostback:
    def test_colon_format(self):
        assert encode_postback("attendance", "status", "present") == "attendance:status:present"

    def test_empty_value(self):
        assert encode_postback("attendance", "date_picker") == "attendance:date_picker:"

    def test_rejects_colon_in_key(self):
        with pytest.raises(ValueError, match="must not contain"):
            encode_postback("attendance", "a:b", "x")

    def test_rejects_too_long(self):
        with pytest.raises(ValueError, match=str(MAX_POSTBACK_LENGTH)):
            encode_postback("registration", "guardian_name", "x" * MAX_POSTBACK_LENGTH)


class TestParsePostback:
    def test_colon_format(self):
        assert parse_postback("attendance:student:8f2d") == PostbackAction("attendance", "student", "8f2d")

    def test_value_may_contain_colons(self):
        action = parse_postback("registration:guardian_name:Taro: Tanaka")

        assert action == PostbackAction("registration", "guardian_name", "Taro: Tanaka")

    def test_query_string_format(self):
        action = parse_postback("flow=attendance&key=status&value=absent")

        assert action == PostbackAction("attendance", "status", "absent")

    def test_query_string_action_alias(self):
        action = parse_postback("flow=status&action=range&value=month")

        assert action == PostbackAction("status", "range", "month")

    def test_query_string_value_with_colon(self):
        action = parse_postback("flow=attendance&key=date&value=2026-02-14T10:00")

        assert action == PostbackAction("attendance", "date", "2026-02-14T10:00")

    @pytest.mark.parametrize("data", [None, "", "garbage", "flow=attendance", ":status:x"])
    def test_unrecognized(self, data):
        assert parse_postback(data) is None

    def test_encoded_value_is_recovered(self):
        data = encode_postback("attendance", "comment", "none")

        assert parse_postback(data) == PostbackAction("attendance", "comment", "none")
