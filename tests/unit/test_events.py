"""
Tests for inbound event normalization (LINE payload -> InboundEvent -> flow event).
"""

from datetime import date

from attendline.engagement.events import ButtonEvent, DatePickedEvent, InboundEvent, TextEvent, to_flow_event
from attendline.webhooks.line import normalize_event


class TestNormalizeEvent:
    def test_text_message(self):
        event = normalize_event(
            {
                "type": "message",
                "replyToken": "r1",
                "source": {"type": "user", "userId": "U1"},
                "message": {"type": "text", "id": "m1", "text": "一郎"},
            }
        )

        assert event == InboundEvent(source_user_id="U1", kind="text", text="一郎", reply_token="r1")

    def test_postback_with_date(self):
        event = normalize_event(
            {
                "type": "postback",
                "replyToken": "r2",
                "source": {"userId": "U1"},
                "postback": {"data": "attendance:date_picker:", "params": {"date": "2026-02-14"}},
            }
        )

        assert event is not None
        assert event.kind == "postback"
        assert event.postback_data == "attendance:date_picker:"
        assert event.picked_date == "2026-02-14"

    def test_follow(self):
        event = normalize_event({"type": "follow", "replyToken": "r3", "source": {"userId": "U1"}})

        assert event == InboundEvent(source_user_id="U1", kind="follow", reply_token="r3")

    def test_unsupported_events_are_dropped(self):
        assert normalize_event({"type": "unfollow", "source": {"userId": "U1"}}) is None
        assert (
            normalize_event({"type": "message", "source": {"userId": "U1"}, "message": {"type": "sticker"}})
            is None
        )

    def test_missing_user_is_dropped(self):
        assert normalize_event({"type": "follow", "source": {"type": "group", "groupId": "G1"}}) is None

    def test_malformed_nested_objects_are_dropped(self):
        assert normalize_event({"type": "message", "source": "broken"}) is None
        assert normalize_event({"type": "message", "source": {"userId": "U1"}, "message": "hi"}) is None
        assert (
            normalize_event(
                {"type": "message", "source": {"userId": "U1"}, "message": {"type": "text", "text": 42}}
            )
            is None
        )

    def test_postback_with_malformed_params(self):
        event = normalize_event(
            {"type": "postback", "source": {"userId": "U1"}, "postback": {"data": "x:y:z", "params": "bad"}}
        )

        assert event is not None
        assert event.picked_date is None


class TestToFlowEvent:
    def test_text_is_normalized(self):
        assert to_flow_event(InboundEvent("U1", "text", text="  一郎　")) == TextEvent(content="一郎")

    def test_button(self):
        event = InboundEvent("U1", "postback", postback_data="attendance:status:late")

        assert to_flow_event(event) == ButtonEvent(flow="attendance", key="status", value="late")

    def test_picked_date(self):
        event = InboundEvent("U1", "postback", postback_data="status:date_picker:", picked_date="2026-02-14")

        assert to_flow_event(event) == DatePickedEvent(picked=date(2026, 2, 14))

    def test_invalid_picked_date(self):
        event = InboundEvent("U1", "postback", postback_data="status:date_picker:", picked_date="2026-13-01")

        assert to_flow_event(event) is None

    def test_follow_has_no_flow_event(self):
        assert to_flow_event(InboundEvent("U1", "follow")) is None
