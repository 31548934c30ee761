"""
Postback Data Codec

Buttons carry `{flow}:{key}:{value}` (e.g. `attendance:status:present`).
Older rich menus and quick replies sent query-string data
(`flow=attendance&key=status&value=present`, with `action` as an alias of
`key`), which is still accepted on input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import parse_qs

logger = logging.getLogger(__name__)

MAX_POSTBACK_LENGTH = 300


@dataclass(frozen=True)
class PostbackAction:
    """Decoded button press."""

    flow: str
    key: str
    value: str = ""


def encode_postback(flow: str, key: str, value: str = "") -> str:
    """Encode a button press as `{flow}:{key}:{value}`.

    Raises:
        ValueError: If flow/key contain ':' or the result exceeds the LINE limit
    """
    if ":" in flow or ":" in key:
        raise ValueError(f"flow and key must not contain ':' ({flow!r}, {key!r})")
    data = f"{flow}:{key}:{value}"
    if len(data) > MAX_POSTBACK_LENGTH:
        raise ValueError(f"Postback data exceeds {MAX_POSTBACK_LENGTH} characters")
    return data


def parse_postback(data: str | None) -> PostbackAction | None:
    """Decode postback data in either encoding.

    Returns:
        PostbackAction, or None if the data matches neither encoding
    """
    if not data:
        return None

    data = data.strip()

    parts = data.split(":", 2)
    if len(parts) >= 2 and all(part and "=" not in part for part in parts[:2]):
        return PostbackAction(flow=parts[0], key=parts[1], value=parts[2] if len(parts) == 3 else "")

    params = parse_qs(data, keep_blank_values=True)
    flow = _first(params, "flow")
    key = _first(params, "key") or _first(params, "action")
    if flow and key:
        return PostbackAction(flow=flow, key=key, value=_first(params, "value") or "")

    logger.warning(f"Unrecognized postback data: {data!r}")
    return None


def _first(params: dict[str, list[str]], name: str) -> str | None:
    values = params.get(name)
    return values[0] if values else None
