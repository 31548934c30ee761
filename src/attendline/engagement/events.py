"""
Inbound Events

InboundEvent is the transport-neutral shape the webhook builds from a LINE
event. The flow engine reduces it to one of three flow events: free text, a
button press, or a date picked from the date picker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Literal

from attendline.core.validation import ValidationError, normalize_text, parse_iso_date
from attendline.engagement.postback import parse_postback

logger = logging.getLogger(__name__)

EventKind = Literal["text", "postback", "follow"]


@dataclass(frozen=True)
class InboundEvent:
    """Normalized inbound chat event.

    Attributes:
        source_user_id: LINE user id of the sender
        kind: text, postback or follow
        text: Message text (text events)
        postback_data: Raw postback data (postback events)
        picked_date: YYYY-MM-DD from a date picker (postback events)
        reply_token: Single-use token for replying (absent for redeliveries)
    """

    source_user_id: str
    kind: EventKind
    text: str | None = None
    postback_data: str | None = None
    picked_date: str | None = None
    reply_token: str | None = None


@dataclass(frozen=True)
class TextEvent:
    content: str


@dataclass(frozen=True)
class ButtonEvent:
    flow: str
    key: str
    value: str


@dataclass(frozen=True)
class DatePickedEvent:
    picked: date


FlowEvent = TextEvent | ButtonEvent | DatePickedEvent


def to_flow_event(event: InboundEvent) -> FlowEvent | None:
    """Reduce an inbound event to a flow event.

    Returns:
        The flow event, or None for follow events and unparseable postbacks
    """
    if event.kind == "text":
        return TextEvent(content=normalize_text(event.text))

    if event.kind == "postback":
        if event.picked_date:
            try:
                return DatePickedEvent(picked=parse_iso_date(event.picked_date))
            except ValidationError:
                logger.warning(f"Ignoring invalid picked date: {event.picked_date!r}")
                return None
        action = parse_postback(event.postback_data)
        if action is None:
            return None
        return ButtonEvent(flow=action.flow, key=action.key, value=action.value)

    return None
