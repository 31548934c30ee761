"""
Tests for LINE Messaging API Client

Tests reply sending, profile lookup, payload building and signature checks.
"""

import base64
import hashlib
import hmac
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from attendline.engagement.line_client import (
    LineClient,
    LineError,
    build_text_message,
    verify_signature,
)
from attendline.engagement.prompts import OutboundMessage, QuickOption


def ok_response(payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.content = b"{}" if payload is None else b"data"
    response.json.return_value = payload or {}
    return response


class TestLineClientInitialization:
    def test_client_initialization(self):
        client = LineClient(channel_access_token="test_token")

        assert client.channel_access_token == "test_token"
        assert client.base_url == "https://api.line.me/v2/bot"

    def test_client_initialization_from_settings(self):
        with patch("attendline.engagement.line_client.settings") as mock_settings:
            mock_settings.LINE_CHANNEL_ACCESS_TOKEN = "settings_token"
            mock_settings.LINE_API_BASE_URL = "https://example.test/v2/bot"

            client = LineClient.from_settings()

            assert client.channel_access_token == "settings_token"
            assert client.base_url == "https://example.test/v2/bot"


class TestReplyMessages:
    async def test_reply_success(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ok_response()

            await client.reply_messages(reply_token="reply-1", messages=[OutboundMessage(text="こんにちは")])

            mock_request.assert_called_once()
            args, kwargs = mock_request.call_args
            assert args == ("POST", "https://api.line.me/v2/bot/message/reply")
            assert kwargs["headers"]["Authorization"] == "Bearer test_token"
            assert kwargs["json"] == {
                "replyToken": "reply-1",
                "messages": [{"type": "text", "text": "こんにちは"}],
            }

    async def test_too_many_messages(self):
        client = LineClient(channel_access_token="test_token")

        with pytest.raises(ValueError, match="Maximum 5"):
            await client.reply_messages(
                reply_token="reply-1", messages=[OutboundMessage(text=str(i)) for i in range(6)]
            )

    async def test_api_error(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            response = MagicMock()
            response.status_code = 400
            response.json.return_value = {"message": "Invalid reply token"}
            mock_request.return_value = response

            with pytest.raises(LineError, match="Invalid reply token"):
                await client.reply_messages(reply_token="bad", messages=[OutboundMessage(text="x")])

    async def test_network_error(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.ConnectError("Connection failed")

            with pytest.raises(LineError, match="HTTP error"):
                await client.reply_messages(reply_token="reply-1", messages=[OutboundMessage(text="x")])


class TestDisplayName:
    async def test_returns_display_name(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ok_response({"userId": "U1", "displayName": "はなこ"})

            assert await client.get_display_name("U1") == "はなこ"
            assert mock_request.call_args.args == ("GET", "https://api.line.me/v2/bot/profile/U1")

    async def test_failure_returns_none(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = httpx.ReadTimeout("timeout")

            assert await client.get_display_name("U1") is None

    async def test_blank_name_returns_none(self):
        client = LineClient(channel_access_token="test_token")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = ok_response({"displayName": "  "})

            assert await client.get_display_name("U1") is None


class TestBuildTextMessage:
    def test_quick_reply_items(self):
        message = OutboundMessage(
            text="出欠を選んでください。",
            quick_options=[
                QuickOption(label="出席", postback_data="attendance:status:present", display_text="出席"),
                QuickOption(label="日付を選ぶ", postback_data="attendance:date_picker:", picker=True),
            ],
        )

        payload = build_text_message(message)

        items = payload["quickReply"]["items"]
        assert items[0]["action"] == {
            "type": "postback",
            "label": "出席",
            "data": "attendance:status:present",
            "displayText": "出席",
        }
        assert items[1]["action"]["type"] == "datetimepicker"
        assert items[1]["action"]["mode"] == "date"

    def test_quick_reply_limit(self):
        options = [QuickOption(label=str(i), postback_data=f"x:y:{i}") for i in range(20)]

        payload = build_text_message(OutboundMessage(text="t", quick_options=options))

        assert len(payload["quickReply"]["items"]) == 13


class TestVerifySignature:
    def test_valid_signature(self):
        body = b'{"events":[]}'
        signature = base64.b64encode(hmac.new(b"secret", body, hashlib.sha256).digest()).decode()

        assert verify_signature(body, signature, "secret") is True

    def test_invalid_signature(self):
        assert verify_signature(b'{"events":[]}', "bm9wZQ==", "secret") is False
