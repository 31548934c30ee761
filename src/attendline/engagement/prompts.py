"""
Conversation Prompts

Outbound message builders for every step of the guided dialogs. Messages are
transport-neutral; line_client.py turns them into LINE payloads.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

from attendline.core.models import AttendanceStatus
from attendline.engagement.lesson_calendar import format_lesson_date
from attendline.engagement.postback import encode_postback

if TYPE_CHECKING:
    from attendline.core.models import Student
    from attendline.engagement.gateway import AttendanceRecord

MAX_QUICK_OPTIONS = 13
MAX_LABEL_LENGTH = 20

GRADE_CHOICES = ("年少", "年中", "年長", "小1", "小2", "小3", "小4", "小5", "小6", "中1", "中2", "中3")

# Free-text answers meaning "no comment"
NO_COMMENT_WORDS = frozenset(["なし", "無し", "特になし", "ない", "none", "no", "-"])

YES_WORDS = frozenset(["はい", "yes", "y", "追加する", "登録する"])
NO_WORDS = frozenset(["いいえ", "no", "n", "終了", "おわり", "終わり"])

# Menu commands (rich menu buttons send postbacks; the labels also work as text)
MENU_LABELS = {
    "attendance": "出欠連絡",
    "status": "出欠確認",
    "settings": "子ども追加",
}


@dataclass(frozen=True)
class QuickOption:
    """Button-style suggested reply.

    Attributes:
        label: Button label (max 20 characters)
        postback_data: Data returned when pressed
        display_text: Text echoed into the chat when pressed
        picker: Open a date picker instead of sending immediately
    """

    label: str
    postback_data: str
    display_text: str | None = None
    picker: bool = False


@dataclass
class OutboundMessage:
    """Text message with optional quick options."""

    text: str
    quick_options: list[QuickOption] = field(default_factory=list)


def _label(text: str) -> str:
    return text if len(text) <= MAX_LABEL_LENGTH else text[: MAX_LABEL_LENGTH - 1] + "…"


def _option(flow: str, key: str, value: str, label: str, display_text: str | None = None) -> QuickOption:
    return QuickOption(
        label=_label(label),
        postback_data=encode_postback(flow, key, value),
        display_text=display_text if display_text is not None else label,
    )


def _with_notice(text: str, notice: str | None) -> str:
    return f"{notice}\n\n{text}" if notice else text


# ============================================================================
# Menu / commands
# ============================================================================


def menu_options() -> list[QuickOption]:
    return [_option("menu", "start", flow, label) for flow, label in MENU_LABELS.items()]


def help_message(guardian_name: str | None = None) -> OutboundMessage:
    greeting = f"{guardian_name}さん、こんにちは。" if guardian_name else "こんにちは。"
    return OutboundMessage(
        text=(
            f"{greeting}\n"
            "下のボタンから操作を選んでください。\n\n"
            "・出欠連絡: 授業日の出欠を連絡します\n"
            "・出欠確認: 連絡済みの出欠を確認します\n"
            "・子ども追加: お子さまを追加登録します\n\n"
            "途中でやめるときは「キャンセル」と送ってください。"
        ),
        quick_options=menu_options(),
    )


def cancelled_message(had_active_flow: bool) -> OutboundMessage:
    text = "操作を中止しました。" if had_active_flow else "中止する操作はありません。"
    return OutboundMessage(text=text, quick_options=menu_options())


def restart_message() -> OutboundMessage:
    """Shown when a draft turned out to be incomplete."""
    return OutboundMessage(
        text="申し訳ありません、入力内容を確認できませんでした。お手数ですが最初からやり直してください。",
        quick_options=menu_options(),
    )


# ============================================================================
# Registration / settings
# ============================================================================


def ask_guardian_name(display_name: str | None = None, notice: str | None = None) -> OutboundMessage:
    text = _with_notice(
        "はじめまして。出欠連絡の利用登録をします。\n保護者さまのお名前を入力してください。", notice
    )
    options = []
    if display_name:
        options.append(_option("registration", "guardian_name", display_name, display_name))
    return OutboundMessage(text=text, quick_options=options)


def ask_child_name(notice: str | None = None, first: bool = True) -> OutboundMessage:
    question = "お子さまのお名前を入力してください。" if first else "次のお子さまのお名前を入力してください。"
    return OutboundMessage(text=_with_notice(question, notice))


def ask_child_grade(flow: str, child_name: str, notice: str | None = None) -> OutboundMessage:
    return OutboundMessage(
        text=_with_notice(f"{child_name}さんの学年を選ぶか、入力してください。", notice),
        quick_options=[_option(flow, "grade", grade, grade) for grade in GRADE_CHOICES],
    )


def ask_more_children(flow: str, child_name: str, grade: str | None, notice: str | None = None) -> OutboundMessage:
    registered = f"{child_name}さん（{grade}）を登録しました。" if grade else f"{child_name}さんを登録しました。"
    message = confirm_more_children(flow, notice)
    message.text = _with_notice(f"{registered}\n{MORE_CHILDREN_QUESTION}", notice)
    return message


MORE_CHILDREN_QUESTION = "ほかにも登録するお子さまはいますか？"


def confirm_more_children(flow: str, notice: str | None = None) -> OutboundMessage:
    """Yes/no question alone, for re-asking after an unclear answer."""
    return OutboundMessage(
        text=_with_notice(MORE_CHILDREN_QUESTION, notice),
        quick_options=[
            _option(flow, "more", "yes", "はい"),
            _option(flow, "more", "no", "いいえ"),
        ],
    )


def children_registered(guardian_name: str | None, children: Sequence[Student]) -> OutboundMessage:
    names = "\n".join(f"・{child.name}" + (f"（{child.grade}）" if child.grade else "") for child in children)
    greeting = f"{guardian_name}さん、登録が完了しました。" if guardian_name else "登録が完了しました。"
    return OutboundMessage(
        text=f"{greeting}\n\n登録済みのお子さま:\n{names}",
        quick_options=menu_options(),
    )


def child_required(resume_flow: str) -> OutboundMessage:
    action = "出欠連絡" if resume_flow == "attendance" else "出欠確認"
    return OutboundMessage(text=f"{action}の前に、お子さまの登録が必要です。")


# ============================================================================
# Attendance / status
# ============================================================================


def choose_student(flow: str, children: Sequence[Student], notice: str | None = None) -> OutboundMessage:
    question = "どのお子さまの出欠を連絡しますか？" if flow == "attendance" else "どのお子さまの出欠を確認しますか？"
    return OutboundMessage(
        text=_with_notice(question, notice),
        quick_options=[
            _option(flow, "student", str(child.id), child.name) for child in children[:MAX_QUICK_OPTIONS]
        ],
    )


def choose_date(student_name: str, lesson_dates: Sequence[date], notice: str | None = None) -> OutboundMessage:
    # Keep a slot for the date picker
    options = [
        _option("attendance", "date", day.isoformat(), format_lesson_date(day))
        for day in lesson_dates[: MAX_QUICK_OPTIONS - 1]
    ]
    options.append(
        QuickOption(
            label="日付を選ぶ",
            postback_data=encode_postback("attendance", "date_picker"),
            picker=True,
        )
    )
    return OutboundMessage(
        text=_with_notice(
            f"{student_name}さんの授業日を選んでください。\n（YYYY-MM-DD形式で入力もできます）", notice
        ),
        quick_options=options,
    )


def choose_status(student_name: str, day: date, notice: str | None = None) -> OutboundMessage:
    return OutboundMessage(
        text=_with_notice(f"{format_lesson_date(day)} の{student_name}さんの出欠を選んでください。", notice),
        quick_options=[_option("attendance", "status", status.value, status.label) for status in AttendanceStatus],
    )


def ask_comment(status: AttendanceStatus) -> OutboundMessage:
    question = (
        "理由や連絡事項があれば入力してください。なければ「なし」を押してください。"
        if status != AttendanceStatus.PRESENT
        else "連絡事項があれば入力してください。なければ「なし」を押してください。"
    )
    return OutboundMessage(text=question, quick_options=[_option("attendance", "comment", "none", "なし")])


def attendance_confirmation(
    student_name: str, day: date, status: AttendanceStatus, reason: str | None
) -> OutboundMessage:
    text = f"出欠を登録しました: {student_name} {format_lesson_date(day)} {status.label}"
    if reason:
        text += f"\n連絡事項: {reason}"
    return OutboundMessage(text=text, quick_options=menu_options())


def choose_range(student_name: str, lookahead: int, notice: str | None = None) -> OutboundMessage:
    return OutboundMessage(
        text=_with_notice(
            f"{student_name}さんの確認する期間を選んでください。\n（YYYY-MM-DD形式で日付を入力もできます）",
            notice,
        ),
        quick_options=[
            _option("status", "range", f"next{lookahead}", f"次回から{lookahead}回分"),
            _option("status", "range", "month", "今月"),
            QuickOption(
                label="日付を選ぶ",
                postback_data=encode_postback("status", "date_picker"),
                picker=True,
            ),
        ],
    )


def status_lines(dates: Sequence[date], records: dict[date, AttendanceRecord]) -> list[str]:
    """One line per date: status label (+ reason) or 未回答."""
    lines = []
    for day in dates:
        record = records.get(day)
        if record is None:
            lines.append(f"{format_lesson_date(day)} 未回答")
        elif record.reason:
            lines.append(f"{format_lesson_date(day)} {record.status.label}（{record.reason}）")
        else:
            lines.append(f"{format_lesson_date(day)} {record.status.label}")
    return lines


def status_summary(student_name: str, lines: Sequence[str]) -> OutboundMessage:
    if not lines:
        return OutboundMessage(
            text=f"{student_name}さん: 対象期間に授業日がありません。", quick_options=menu_options()
        )
    body = "\n".join(lines)
    return OutboundMessage(text=f"{student_name}さんの出欠状況\n{body}", quick_options=menu_options())


def legacy_attendance_saved(student_name: str, day: date, status: AttendanceStatus) -> OutboundMessage:
    return OutboundMessage(text=f"出欠を登録しました: {student_name} {day.isoformat()} {status.label}")


def message_received(guardian_name: str | None = None) -> OutboundMessage:
    """Reply to free text outside any dialog; the text is kept for staff."""
    menu = help_message(guardian_name)
    return OutboundMessage(text=f"メッセージを受け付けました。\n\n{menu.text}", quick_options=menu.quick_options)
