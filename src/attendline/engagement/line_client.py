"""
LINE Messaging API Client

Replies to guardians through the LINE reply API and looks up profile names.
Also verifies webhook signatures.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from attendline.config import settings
from attendline.engagement.prompts import MAX_QUICK_OPTIONS, OutboundMessage, QuickOption

logger = logging.getLogger(__name__)

MAX_REPLY_MESSAGES = 5


class LineError(Exception):
    """LINE API error."""

    pass


def verify_signature(body: bytes, signature: str, channel_secret: str) -> bool:
    """Check X-Line-Signature: base64(HMAC-SHA256(channel_secret, body))."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


class LineClient:
    """Client for the LINE Messaging API."""

    def __init__(
        self,
        *,
        channel_access_token: str,
        base_url: str = "https://api.line.me/v2/bot",
    ):
        """Initialize LINE client.

        Args:
            channel_access_token: Channel access token
            base_url: Messaging API base URL
        """
        self.channel_access_token = channel_access_token
        self.base_url = base_url

    @classmethod
    def from_settings(cls) -> LineClient:
        """Create client from application settings."""
        return cls(
            channel_access_token=settings.LINE_CHANNEL_ACCESS_TOKEN,
            base_url=settings.LINE_API_BASE_URL,
        )

    async def reply_messages(self, *, reply_token: str, messages: Sequence[OutboundMessage]) -> None:
        """Reply to an inbound event.

        Args:
            reply_token: Reply token from the webhook event (single use, short-lived)
            messages: Messages to send, in order (max 5)

        Raises:
            ValueError: If more than 5 messages are given
            LineError: If API request fails
        """
        if len(messages) > MAX_REPLY_MESSAGES:
            raise ValueError(f"Maximum {MAX_REPLY_MESSAGES} messages per reply")

        payload = {
            "replyToken": reply_token,
            "messages": [build_text_message(message) for message in messages],
        }

        await self._request("POST", "/message/reply", json=payload)
        logger.info(f"Replied with {len(messages)} message(s)")

    async def get_display_name(self, user_id: str) -> str | None:
        """Profile display name of a LINE user, or None if unavailable."""
        try:
            profile = await self._request("GET", f"/profile/{user_id}")
        except LineError as e:
            logger.warning(f"Failed to fetch LINE profile for {user_id}: {e}")
            return None

        display_name = profile.get("displayName")
        return display_name if isinstance(display_name, str) and display_name.strip() else None

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send API request to the Messaging API.

        Returns:
            Decoded JSON response (empty dict for empty bodies)

        Raises:
            LineError: If API request fails
        """
        headers = {
            "Authorization": f"Bearer {self.channel_access_token}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    headers=headers,
                    timeout=10.0,
                )

                if response.status_code != 200:
                    try:
                        error_message = response.json().get("message", "Unknown error")
                    except ValueError:
                        error_message = response.text or "Unknown error"
                    logger.error(
                        f"LINE API error: {response.status_code} - {error_message}",
                        extra={"path": path},
                    )
                    raise LineError(f"LINE API error ({response.status_code}): {error_message}")

                if not response.content:
                    return {}
                data: dict[str, Any] = response.json()
                return data

        except LineError:
            raise
        except httpx.HTTPError as e:
            logger.error(f"HTTP error calling LINE API: {e}")
            raise LineError(f"HTTP error: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error calling LINE API: {e}")
            raise LineError(f"Unexpected error: {e}") from e


def build_text_message(message: OutboundMessage) -> dict[str, Any]:
    """Convert an OutboundMessage into a LINE text message object."""
    payload: dict[str, Any] = {"type": "text", "text": message.text}
    if message.quick_options:
        payload["quickReply"] = {
            "items": [_quick_reply_item(option) for option in message.quick_options[:MAX_QUICK_OPTIONS]]
        }
    return payload


def _quick_reply_item(option: QuickOption) -> dict[str, Any]:
    action: dict[str, Any]
    if option.picker:
        action = {
            "type": "datetimepicker",
            "label": option.label,
            "data": option.postback_data,
            "mode": "date",
        }
    else:
        action = {
            "type": "postback",
            "label": option.label,
            "data": option.postback_data,
        }
        if option.display_text:
            action["displayText"] = option.display_text
    return {"type": "action", "action": action}
