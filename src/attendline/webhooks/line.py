"""
LINE Messaging API Webhook Handler

Verifies the delivery signature, normalizes each LINE event and runs it
through the flow executor, then replies with the resulting prompts.
Events of one delivery are processed sequentially; a failure in one event
never stops the rest.
"""
# ruff: noqa: B008 - FastAPI Depends in function defaults is standard pattern

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, HTTPException, Request

from attendline.config import settings
from attendline.core.database import get_db
from attendline.engagement.events import InboundEvent
from attendline.engagement.flow_executor import FlowExecutor
from attendline.engagement.line_client import MAX_REPLY_MESSAGES, LineClient, LineError, verify_signature

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/line", tags=["webhooks"])


@router.post("")
async def handle_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    """Handle a LINE webhook delivery.

    Returns:
        {"ok": True} once every event was attempted, so LINE does not redeliver

    Raises:
        HTTPException: 401 on signature mismatch, 400 on an unparseable body
    """
    raw_body = await request.body()
    signature = request.headers.get("x-line-signature")

    if settings.LINE_CHANNEL_SECRET and signature:
        if not verify_signature(raw_body, signature, settings.LINE_CHANNEL_SECRET):
            logger.warning("Rejected LINE webhook: invalid signature")
            raise HTTPException(status_code=401, detail="Invalid signature")
    else:
        logger.warning("LINE signature not verified (channel secret or X-Line-Signature missing)")

    try:
        body = json.loads(raw_body or b"{}")
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to parse webhook body: {e}")
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e

    if not isinstance(body, dict) or not isinstance(body.get("events", []), list):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    events = body.get("events", [])
    logger.info(f"LINE webhook received with {len(events)} event(s)")

    line_client = LineClient.from_settings() if settings.line_reply_enabled else None

    for raw_event in events:
        await _handle_event(raw_event, db, line_client)

    return {"ok": True}


async def _handle_event(raw_event: Any, db: AsyncSession, line_client: LineClient | None) -> None:
    """Run one event through the flow executor and deliver the replies."""
    try:
        event = normalize_event(raw_event)
    except Exception as e:
        logger.error(f"Failed to read webhook event: {e}", exc_info=True)
        return
    if event is None:
        return

    try:
        executor = FlowExecutor(db=db, line_client=line_client)
        result = await executor.process_event(event)
    except Exception as e:
        logger.error(
            f"Failed to handle {event.kind} event from {event.source_user_id}: {e}",
            exc_info=True,
        )
        await db.rollback()
        return

    if result.error:
        logger.warning(
            f"Flow recovered from error for {event.source_user_id}: {result.error}",
            extra={"flow": result.flow_name},
        )
    else:
        logger.info(
            f"Flow executed: {result.flow_name} (completed: {result.completed})",
            extra={"flow": result.flow_name, "next_step": result.next_step},
        )

    if line_client is None or not event.reply_token or not result.messages:
        return

    try:
        await line_client.reply_messages(
            reply_token=event.reply_token,
            messages=result.messages[:MAX_REPLY_MESSAGES],
        )
    except LineError as e:
        # State is already saved; the guardian can continue from the next prompt
        logger.error(f"Failed to reply to {event.source_user_id}: {e}")


def normalize_event(raw: dict[str, Any]) -> InboundEvent | None:
    """Build an InboundEvent from a LINE webhook event.

    Supported: message (text only), postback (with optional params.date), follow.

    Returns:
        InboundEvent, or None for unsupported events and events without a user
    """
    if not isinstance(raw, dict):
        return None

    user_id = _as_dict(raw.get("source")).get("userId")
    if not user_id or not isinstance(user_id, str):
        logger.debug(f"Ignoring event without userId: {raw.get('type')}")
        return None

    event_type = raw.get("type")
    reply_token = raw.get("replyToken")
    if not isinstance(reply_token, str):
        reply_token = None

    if event_type == "message":
        message = _as_dict(raw.get("message"))
        if message.get("type") != "text" or not isinstance(message.get("text", ""), str):
            logger.info(f"Ignoring non-text message ({message.get('type')}) from {user_id}")
            return None
        return InboundEvent(
            source_user_id=user_id,
            kind="text",
            text=message.get("text", ""),
            reply_token=reply_token,
        )

    if event_type == "postback":
        postback = _as_dict(raw.get("postback"))
        params = _as_dict(postback.get("params"))
        return InboundEvent(
            source_user_id=user_id,
            kind="postback",
            postback_data=postback.get("data", ""),
            picked_date=params.get("date"),
            reply_token=reply_token,
        )

    if event_type == "follow":
        return InboundEvent(source_user_id=user_id, kind="follow", reply_token=reply_token)

    logger.debug(f"Ignoring unsupported LINE event type: {event_type}")
    return None


def _as_dict(value: Any) -> dict[str, Any]:
    """Nested webhook objects; anything that is not an object reads as empty."""
    return value if isinstance(value, dict) else {}
