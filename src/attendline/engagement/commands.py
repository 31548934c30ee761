"""
Command handling for LINE conversations.

Top-level commands work at any step: begin a flow from the menu, CANCEL and
HELP. Also parses the one-line attendance command of the first bot version:

    出欠 <出席|欠席|遅刻|未定> <YYYY-MM-DD> <child name> [reason]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Literal

from attendline.core.models import STATUS_LABELS, AttendanceStatus
from attendline.core.validation import ValidationError, normalize_text, parse_iso_date
from attendline.engagement.postback import PostbackAction
from attendline.engagement.prompts import MENU_LABELS

CommandKind = Literal["start", "cancel", "help"]
StartableFlow = Literal["attendance", "status", "settings"]


@dataclass(frozen=True)
class CommandResult:
    """Recognized top-level command."""

    kind: CommandKind
    flow: StartableFlow | None = None


CANCEL_WORDS = frozenset(["キャンセル", "やめる", "中止", "cancel", "stop"])
HELP_WORDS = frozenset(["ヘルプ", "メニュー", "help", "menu"])

# Text aliases for menu labels
START_WORDS: dict[str, StartableFlow] = {
    MENU_LABELS["attendance"]: "attendance",
    "出欠": "attendance",
    "欠席連絡": "attendance",
    MENU_LABELS["status"]: "status",
    "確認": "status",
    MENU_LABELS["settings"]: "settings",
    "設定": "settings",
}

STARTABLE_FLOWS: frozenset[str] = frozenset(["attendance", "status", "settings"])


def parse_text_command(text: str | None) -> CommandResult | None:
    """Recognize a command typed as text (case-insensitive)."""
    normalized = normalize_text(text).casefold()
    if not normalized:
        return None

    if normalized in CANCEL_WORDS:
        return CommandResult(kind="cancel")

    if normalized in HELP_WORDS:
        return CommandResult(kind="help")

    for word, flow in START_WORDS.items():
        if normalized == word.casefold():
            return CommandResult(kind="start", flow=flow)

    return None


def parse_postback_command(action: PostbackAction | None) -> CommandResult | None:
    """Recognize a menu postback (`menu:start:<flow>`, `menu:cancel`, `menu:help`)."""
    if action is None or action.flow != "menu":
        return None

    if action.key == "start" and action.value in STARTABLE_FLOWS:
        return CommandResult(kind="start", flow=action.value)  # type: ignore[arg-type]
    if action.key == "cancel":
        return CommandResult(kind="cancel")
    if action.key == "help":
        return CommandResult(kind="help")

    return None


# ============================================================================
# Legacy one-line attendance command
# ============================================================================


@dataclass(frozen=True)
class LegacyAttendanceCommand:
    status: AttendanceStatus
    requested_for: date
    student_name: str
    reason: str | None = None


_LEGACY_PATTERN = re.compile(
    r"^出欠\s+(出席|欠席|遅刻|未定|present|absent|late|unknown)\s+(\d{4}-\d{2}-\d{2})\s+(\S+)(?:\s+(.+))?$",
    re.IGNORECASE,
)


def parse_status_label(text: str | None) -> AttendanceStatus | None:
    """Map a status label (出席 / present ...) to AttendanceStatus."""
    normalized = normalize_text(text).casefold()
    for status, label in STATUS_LABELS.items():
        if normalized in (label, status.value):
            return status
    return None


def parse_legacy_attendance(text: str | None) -> LegacyAttendanceCommand | None:
    """Parse `出欠 <status> <YYYY-MM-DD> <child> [reason]`.

    Returns:
        LegacyAttendanceCommand, or None if the text is not this command
    """
    match = _LEGACY_PATTERN.match(normalize_text(text))
    if not match:
        return None

    status_label, date_text, student_name, reason = match.groups()
    status = parse_status_label(status_label)
    if status is None:
        return None

    try:
        requested_for = parse_iso_date(date_text)
    except ValidationError:
        return None

    return LegacyAttendanceCommand(
        status=status,
        requested_for=requested_for,
        student_name=student_name,
        reason=reason.strip() if reason and reason.strip() else None,
    )
