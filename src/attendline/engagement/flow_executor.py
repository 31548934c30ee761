"""
LINE Conversation Flow Executor

Orchestrates multi-step LINE conversations with guardians.
Loads the guardian's flow session, interprets the inbound event against the
current (flow, step), calls the domain gateway, saves the next state and
returns the prompts to send.

Flows:
    registration  ask_guardian_name -> ask_child_name -> ask_child_grade -> ask_more_children
    settings      ask_child_name -> ask_child_grade -> ask_more_children
    attendance    choose_student -> choose_date -> choose_status -> ask_comment
    status        choose_student -> choose_range

The session is always saved before prompts are returned, so a failed reply
never leaves the stored state behind what the guardian sees next.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from attendline.config import settings
from attendline.core.models import AttendanceStatus, Guardian, Student
from attendline.core.validation import (
    ValidationError,
    labels_match,
    parse_iso_date,
    validate_grade,
    validate_person_name,
)
from attendline.engagement import prompts
from attendline.engagement.commands import (
    CommandResult,
    parse_legacy_attendance,
    parse_postback_command,
    parse_status_label,
    parse_text_command,
)
from attendline.engagement.events import (
    ButtonEvent,
    DatePickedEvent,
    FlowEvent,
    InboundEvent,
    TextEvent,
    to_flow_event,
)
from attendline.engagement.gateway import DomainGateway
from attendline.engagement.lesson_calendar import LessonCalendar, today_utc
from attendline.engagement.postback import parse_postback
from attendline.engagement.prompts import OutboundMessage
from attendline.engagement.session_store import Session, SessionStore
from attendline.engagement.state import (
    AttendanceState,
    AttendanceStep,
    ConversationState,
    Flow,
    IdleState,
    RegistrationState,
    RegistrationStep,
    ResumableFlow,
    SettingsState,
    SettingsStep,
    StatusState,
    StatusStep,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from attendline.engagement.line_client import LineClient

logger = logging.getLogger(__name__)

# Upper bound for "next N lessons" status lookups
MAX_LOOKAHEAD = 10

# "next", "next5", "次回", "次回3"
NEXT_RANGE_PATTERN = re.compile(r"(?:next|次回)(\d*)")


@dataclass
class FlowResult:
    """Result of processing an event through a flow.

    Attributes:
        flow_name: Flow the session is in after processing
        next_step: Step awaiting input (None when the session is idle)
        completed: Whether a flow finished with this event
        messages: Prompts to send back, in order
        error: Recoverable problem worth logging (input was not rejected)
    """

    flow_name: str
    next_step: str | None
    completed: bool
    messages: list[OutboundMessage] = field(default_factory=list)
    error: str | None = None


class SessionCorruption(Exception):
    """Draft fields required at a step are missing from the stored session."""

    pass


class FlowExecutor:
    """Executes LINE conversation flows.

    Responsibilities:
    - Resolve the guardian for the LINE user and force registration for unknown users
    - Route events to the handler of the current (flow, step)
    - Handle top-level commands (menu, cancel, help) at any step
    - Persist the next state before returning prompts
    """

    def __init__(
        self,
        *,
        db: AsyncSession,
        gateway: DomainGateway | None = None,
        store: SessionStore | None = None,
        calendar: LessonCalendar | None = None,
        line_client: LineClient | None = None,
    ):
        """Initialize flow executor.

        Args:
            db: Database session shared by the gateway and session store
            gateway: Domain operations (default: DomainGateway on db)
            store: Session persistence (default: SessionStore on db)
            calendar: Lesson days (default: from settings)
            line_client: Used to offer the LINE display name during registration
        """
        self.db = db
        self.gateway = gateway or DomainGateway(db=db)
        self.store = store or SessionStore(db=db)
        self.calendar = calendar or LessonCalendar.from_settings()
        self.line_client = line_client

    async def process_event(self, event: InboundEvent) -> FlowResult:
        """Process one inbound event and advance the guardian's flow.

        Args:
            event: Normalized inbound event

        Returns:
            FlowResult with the prompts to send

        Raises:
            ConstraintViolation: If a write references missing guardian/child rows
        """
        user_id = event.source_user_id
        guardian = await self.gateway.find_guardian_by_external_id(user_id)
        session = await self.store.load(user_id) or Session(external_user_id=user_id)
        if guardian is not None:
            session.guardian_id = guardian.id

        flow_event = to_flow_event(event)
        command = self._parse_command(event)

        logger.info(
            f"Event {event.kind} from {user_id} at {session.state.flow}/{session.state.step}",
            extra={"command": command.kind if command else None},
        )

        if guardian is None:
            return await self._route_unregistered(session, flow_event, command)

        if event.kind == "follow":
            return await self._finish(session, guardian, [prompts.help_message(guardian.name)])

        if command is not None:
            return await self._handle_command(session, guardian, command)

        try:
            return await self._dispatch(session, guardian, flow_event, event)
        except SessionCorruption as e:
            logger.warning(f"Session corrupted for {user_id}: {e}. Resetting.")
            await self.store.reset(user_id, guardian.id)
            return FlowResult(
                flow_name=Flow.IDLE,
                next_step=None,
                completed=False,
                messages=[prompts.restart_message()],
                error=str(e),
            )

    def _parse_command(self, event: InboundEvent) -> CommandResult | None:
        if event.kind == "text":
            return parse_text_command(event.text)
        if event.kind == "postback" and not event.picked_date:
            return parse_postback_command(parse_postback(event.postback_data))
        return None

    # ========================================================================
    # Routing
    # ========================================================================

    async def _route_unregistered(
        self,
        session: Session,
        flow_event: FlowEvent | None,
        command: CommandResult | None,
    ) -> FlowResult:
        """Every event from a user without a guardian record goes to registration.

        Only the guardian-name answer is processed; anything else (re)starts
        registration. An attendance/status request is kept as resume_flow.
        """
        state = session.state
        requested: ResumableFlow | None = None
        if command is not None and command.kind == "start" and command.flow in ("attendance", "status"):
            requested = command.flow  # type: ignore[assignment]

        if (
            isinstance(state, RegistrationState)
            and state.step == RegistrationStep.ASK_GUARDIAN_NAME
            and command is None
            and flow_event is not None
        ):
            return await self._registration_guardian_name(session, state, flow_event)

        resume_flow = requested
        if resume_flow is None and isinstance(state, RegistrationState):
            resume_flow = state.resume_flow

        session.guardian_id = None
        session.state = RegistrationState(resume_flow=resume_flow)
        await self.store.save(session)

        display_name = await self._display_name(session.external_user_id)
        return self._result(session, [prompts.ask_guardian_name(display_name)])

    async def _handle_command(self, session: Session, guardian: Guardian, command: CommandResult) -> FlowResult:
        """Handle menu commands (START flow, CANCEL, HELP) at any step."""
        if command.kind == "start" and command.flow is not None:
            logger.info(f"Starting {command.flow} for {session.external_user_id} (was {session.state.flow})")
            return await self._start_flow(session, guardian, command.flow)

        if command.kind == "cancel":
            had_active_flow = not isinstance(session.state, IdleState)
            return await self._finish(session, guardian, [prompts.cancelled_message(had_active_flow)])

        # HELP leaves the current dialog untouched
        return self._result(session, [prompts.help_message(guardian.name)])

    async def _dispatch(
        self,
        session: Session,
        guardian: Guardian,
        flow_event: FlowEvent | None,
        event: InboundEvent,
    ) -> FlowResult:
        state = session.state

        if isinstance(state, IdleState):
            return await self._handle_idle(session, guardian, event)

        if flow_event is None:
            # Unparseable postback: ask the same question again
            return await self._reprompt(session, guardian)

        if isinstance(state, RegistrationState):
            if state.step == RegistrationStep.ASK_GUARDIAN_NAME:
                return await self._registration_guardian_name(session, state, flow_event)
            return await self._child_step(session, guardian, state, flow_event)
        if isinstance(state, SettingsState):
            return await self._child_step(session, guardian, state, flow_event)
        if isinstance(state, AttendanceState):
            return await self._attendance_step(session, guardian, state, flow_event)
        if isinstance(state, StatusState):
            return await self._status_step(session, guardian, state, flow_event)

        raise SessionCorruption(f"Unknown flow: {state.flow}")

    async def _handle_idle(self, session: Session, guardian: Guardian, event: InboundEvent) -> FlowResult:
        """No dialog in progress: legacy one-line command or free message."""
        if event.kind != "text" or not event.text or not event.text.strip():
            return self._result(session, [prompts.help_message(guardian.name)])

        legacy = parse_legacy_attendance(event.text)
        if legacy is not None:
            student = await self._find_child_by_name(guardian.id, legacy.student_name)
            if student is None:
                student = await self.gateway.create_child(guardian.id, legacy.student_name)
            await self.gateway.upsert_attendance(
                guardian.id, student.id, legacy.requested_for, legacy.status, legacy.reason
            )
            await self.gateway.record_message(guardian.id, student.id, "inbound", event.text.strip())
            reply = prompts.legacy_attendance_saved(student.name, legacy.requested_for, legacy.status)
            await self.gateway.record_message(guardian.id, student.id, "outbound", reply.text)
            return FlowResult(flow_name=Flow.IDLE, next_step=None, completed=True, messages=[reply])

        # Free message for staff
        await self.gateway.record_message(guardian.id, None, "inbound", event.text.strip())
        return self._result(session, [prompts.message_received(guardian.name)])

    async def _start_flow(self, session: Session, guardian: Guardian, flow: str) -> FlowResult:
        """(Re)start a flow at its first step, discarding any dialog in progress."""
        if flow == Flow.SETTINGS:
            return await self._save_and_prompt(session, SettingsState(), [prompts.ask_child_name()])

        children = await self.gateway.list_children_of_guardian(guardian.id)
        if not children:
            resume_flow: ResumableFlow = "attendance" if flow == Flow.ATTENDANCE else "status"
            logger.info(f"No children for guardian {guardian.id}; registering one before {flow}")
            return await self._save_and_prompt(
                session,
                SettingsState(resume_flow=resume_flow),
                [prompts.child_required(resume_flow), prompts.ask_child_name()],
            )

        if flow == Flow.ATTENDANCE:
            return await self._save_and_prompt(
                session, AttendanceState(), [prompts.choose_student(Flow.ATTENDANCE, children)]
            )
        if flow == Flow.STATUS:
            return await self._save_and_prompt(session, StatusState(), [prompts.choose_student(Flow.STATUS, children)])

        raise ValueError(f"Flow cannot be started from the menu: {flow}")

    async def _reprompt(self, session: Session, guardian: Guardian, notice: str | None = None) -> FlowResult:
        """Repeat the question of the current step without changing state."""
        state = session.state

        if isinstance(state, RegistrationState) and state.step == RegistrationStep.ASK_GUARDIAN_NAME:
            return self._result(session, [prompts.ask_guardian_name(notice=notice)])

        if isinstance(state, RegistrationState | SettingsState):
            if state.step in (RegistrationStep.ASK_CHILD_NAME, SettingsStep.ASK_CHILD_NAME):
                return self._result(session, [prompts.ask_child_name(notice=notice)])
            if state.step in (RegistrationStep.ASK_CHILD_GRADE, SettingsStep.ASK_CHILD_GRADE):
                if not state.pending_child_name:
                    raise SessionCorruption("pending_child_name missing at ask_child_grade")
                return self._result(
                    session, [prompts.ask_child_grade(state.flow, state.pending_child_name, notice=notice)]
                )
            return self._result(session, [prompts.confirm_more_children(state.flow, notice)])

        if isinstance(state, AttendanceState | StatusState):
            if state.step in (AttendanceStep.CHOOSE_STUDENT, StatusStep.CHOOSE_STUDENT):
                children = await self.gateway.list_children_of_guardian(guardian.id)
                return self._result(session, [prompts.choose_student(state.flow, children, notice=notice)])

            student = await self._draft_student(guardian, state.student_id)
            if isinstance(state, StatusState):
                return self._result(session, [prompts.choose_range(student.name, settings.STATUS_LOOKAHEAD, notice)])
            if state.step == AttendanceStep.CHOOSE_DATE:
                return self._result(session, [prompts.choose_date(student.name, self._shortcut_dates(), notice)])
            if state.step == AttendanceStep.CHOOSE_STATUS:
                if state.requested_for is None:
                    raise SessionCorruption("requested_for missing at choose_status")
                return self._result(session, [prompts.choose_status(student.name, state.requested_for, notice)])
            if state.status is None:
                raise SessionCorruption("status missing at ask_comment")
            return self._result(session, [prompts.ask_comment(state.status)])

        return self._result(session, [prompts.help_message(guardian.name)])

    # ========================================================================
    # Registration / settings
    # ========================================================================

    async def _registration_guardian_name(
        self, session: Session, state: RegistrationState, flow_event: FlowEvent
    ) -> FlowResult:
        """ask_guardian_name: find-or-create the guardian, rename if needed."""
        raw_name: str | None = None
        if isinstance(flow_event, TextEvent):
            raw_name = flow_event.content
        elif (
            isinstance(flow_event, ButtonEvent)
            and flow_event.flow == Flow.REGISTRATION
            and flow_event.key == "guardian_name"
        ):
            raw_name = flow_event.value

        try:
            name = validate_person_name(raw_name, field="Guardian name")
        except ValidationError:
            display_name = await self._display_name(session.external_user_id)
            return self._result(
                session, [prompts.ask_guardian_name(display_name, notice="お名前を入力してください。")]
            )

        guardian = await self.gateway.find_guardian_by_external_id(session.external_user_id)
        if guardian is None:
            guardian = await self.gateway.create_guardian(name, session.external_user_id)
        elif guardian.name != name:
            guardian = await self.gateway.rename_guardian(guardian.id, name)

        session.guardian_id = guardian.id
        return await self._save_and_prompt(
            session,
            state.model_copy(update={"step": RegistrationStep.ASK_CHILD_NAME}),
            [prompts.ask_child_name(notice=f"{name}さん、ありがとうございます。")],
        )

    async def _child_step(
        self,
        session: Session,
        guardian: Guardian,
        state: RegistrationState | SettingsState,
        flow_event: FlowEvent,
    ) -> FlowResult:
        """Child-adding steps shared by registration and settings."""
        steps = RegistrationStep if isinstance(state, RegistrationState) else SettingsStep

        if state.step == steps.ASK_CHILD_NAME:
            if not isinstance(flow_event, TextEvent):
                return await self._reprompt(session, guardian)
            try:
                child_name = validate_person_name(flow_event.content, field="Child name")
            except ValidationError:
                return await self._reprompt(session, guardian, notice="お子さまのお名前を入力してください。")
            return await self._save_and_prompt(
                session,
                state.model_copy(update={"step": steps.ASK_CHILD_GRADE, "pending_child_name": child_name}),
                [prompts.ask_child_grade(state.flow, child_name)],
            )

        if state.step == steps.ASK_CHILD_GRADE:
            raw_grade: str | None = None
            if isinstance(flow_event, TextEvent):
                raw_grade = flow_event.content
            elif isinstance(flow_event, ButtonEvent) and flow_event.flow == state.flow and flow_event.key == "grade":
                raw_grade = flow_event.value
            try:
                grade = validate_grade(raw_grade)
            except ValidationError:
                return await self._reprompt(session, guardian, notice="学年を選ぶか、入力してください。")

            if not state.pending_child_name:
                raise SessionCorruption("pending_child_name missing at ask_child_grade")

            child = await self.gateway.create_child(guardian.id, state.pending_child_name, grade)
            return await self._save_and_prompt(
                session,
                state.model_copy(update={"step": steps.ASK_MORE_CHILDREN, "pending_child_name": None}),
                [prompts.ask_more_children(state.flow, child.name, child.grade)],
            )

        # ask_more_children
        answer = _yes_no(flow_event, state.flow)
        if answer is None:
            return await self._reprompt(session, guardian, notice="「はい」か「いいえ」を選んでください。")

        if answer:
            return await self._save_and_prompt(
                session, state.model_copy(update={"step": steps.ASK_CHILD_NAME}), [prompts.ask_child_name(first=False)]
            )

        children = await self.gateway.list_children_of_guardian(guardian.id)
        done = prompts.children_registered(guardian.name, children)
        logger.info(
            f"{state.flow} completed for guardian {guardian.id} ({len(children)} children)",
            extra={"resume_flow": state.resume_flow},
        )

        if state.resume_flow is None:
            result = await self._finish(session, guardian, [done])
            result.completed = True
            return result

        await self.store.reset(session.external_user_id, guardian.id)
        session.state = IdleState()
        resumed = await self._start_flow(session, guardian, state.resume_flow)
        resumed.messages.insert(0, OutboundMessage(text=done.text))
        resumed.completed = True
        return resumed

    # ========================================================================
    # Attendance
    # ========================================================================

    async def _attendance_step(
        self,
        session: Session,
        guardian: Guardian,
        state: AttendanceState,
        flow_event: FlowEvent,
    ) -> FlowResult:
        if state.step == AttendanceStep.CHOOSE_STUDENT:
            return await self._choose_student(session, guardian, state, flow_event)

        if state.step == AttendanceStep.CHOOSE_DATE:
            student = await self._draft_student(guardian, state.student_id)
            picked = _picked_date(flow_event, Flow.ATTENDANCE)
            if picked is None:
                return await self._reprompt(
                    session, guardian, notice="日付をボタンで選ぶか、YYYY-MM-DD形式で入力してください。"
                )
            return await self._save_and_prompt(
                session,
                state.model_copy(update={"step": AttendanceStep.CHOOSE_STATUS, "requested_for": picked}),
                [prompts.choose_status(student.name, picked)],
            )

        if state.step == AttendanceStep.CHOOSE_STATUS:
            status = _picked_status(flow_event)
            if status is None:
                return await self._reprompt(session, guardian, notice="出席・欠席・遅刻・未定から選んでください。")
            return await self._save_and_prompt(
                session,
                state.model_copy(update={"step": AttendanceStep.ASK_COMMENT, "status": status}),
                [prompts.ask_comment(status)],
            )

        # ask_comment
        if isinstance(flow_event, ButtonEvent) and flow_event.flow == Flow.ATTENDANCE and flow_event.key == "comment":
            return await self._finalize_attendance(session, guardian, state, comment=None)
        if isinstance(flow_event, TextEvent) and flow_event.content:
            return await self._finalize_attendance(session, guardian, state, comment=flow_event.content)
        return await self._reprompt(session, guardian)

    async def _finalize_attendance(
        self,
        session: Session,
        guardian: Guardian,
        state: AttendanceState,
        *,
        comment: str | None,
    ) -> FlowResult:
        """Commit the attendance draft.

        Args:
            comment: Free-text comment, or None when the "none" button was pressed
        """
        if state.student_id is None or state.requested_for is None or state.status is None:
            raise SessionCorruption(
                f"Incomplete attendance draft: student={state.student_id} "
                f"date={state.requested_for} status={state.status}"
            )

        reason = None
        if comment is not None and comment.casefold() not in prompts.NO_COMMENT_WORDS:
            reason = comment

        await self.gateway.upsert_attendance(
            guardian.id, state.student_id, state.requested_for, state.status, reason
        )

        student = await self._find_child(guardian.id, state.student_id)
        student_name = student.name if student else ""
        confirmation = prompts.attendance_confirmation(student_name, state.requested_for, state.status, reason)

        if comment is not None:
            await self.gateway.record_message(guardian.id, state.student_id, "inbound", comment)
        await self.gateway.record_message(guardian.id, state.student_id, "outbound", confirmation.text)

        result = await self._finish(session, guardian, [confirmation])
        result.completed = True
        return result

    # ========================================================================
    # Status lookup
    # ========================================================================

    async def _status_step(
        self,
        session: Session,
        guardian: Guardian,
        state: StatusState,
        flow_event: FlowEvent,
    ) -> FlowResult:
        if state.step == StatusStep.CHOOSE_STUDENT:
            return await self._choose_student(session, guardian, state, flow_event)

        student = await self._draft_student(guardian, state.student_id)
        dates = self._resolve_range(flow_event)
        if dates is None:
            return await self._reprompt(session, guardian, notice="期間をボタンで選ぶか、YYYY-MM-DD形式で入力してください。")

        records = {}
        if dates:
            records = await self.gateway.attendance_records_for(guardian.id, student.id, min(dates), max(dates))

        summary = prompts.status_summary(student.name, prompts.status_lines(dates, records))
        result = await self._finish(session, guardian, [summary])
        result.completed = True
        return result

    def _resolve_range(self, flow_event: FlowEvent) -> list[date] | None:
        """Turn a range answer into ascending lesson dates (None if unrecognized)."""
        picked = _picked_date(flow_event, Flow.STATUS)
        if picked is not None:
            return [picked]

        if isinstance(flow_event, ButtonEvent) and flow_event.flow == Flow.STATUS and flow_event.key == "range":
            value = flow_event.value
        elif isinstance(flow_event, TextEvent):
            value = flow_event.content.casefold()
        else:
            return None

        if value in ("month", "今月"):
            return self.calendar.lesson_dates_in_month(today_utc())

        match = NEXT_RANGE_PATTERN.fullmatch(value)
        if match:
            count = settings.STATUS_LOOKAHEAD
            if match.group(1) and int(match.group(1)) > 0:
                count = min(int(match.group(1)), MAX_LOOKAHEAD)
            return self.calendar.next_lesson_dates(count)

        return None

    # ========================================================================
    # Shared steps and helpers
    # ========================================================================

    async def _choose_student(
        self,
        session: Session,
        guardian: Guardian,
        state: AttendanceState | StatusState,
        flow_event: FlowEvent,
    ) -> FlowResult:
        """choose_student for attendance and status: match by button id or name."""
        children = await self.gateway.list_children_of_guardian(guardian.id)
        if not children:
            return await self._start_flow(session, guardian, state.flow)

        chosen: Student | None = None
        if isinstance(flow_event, ButtonEvent) and flow_event.flow == state.flow and flow_event.key == "student":
            chosen = next((child for child in children if str(child.id) == flow_event.value), None)
        elif isinstance(flow_event, TextEvent):
            chosen = next((child for child in children if labels_match(flow_event.content, child.name)), None)

        if chosen is None:
            return self._result(
                session,
                [prompts.choose_student(state.flow, children, notice="ボタンからお子さまを選んでください。")],
            )

        if isinstance(state, AttendanceState):
            return await self._save_and_prompt(
                session,
                state.model_copy(update={"step": AttendanceStep.CHOOSE_DATE, "student_id": chosen.id}),
                [prompts.choose_date(chosen.name, self._shortcut_dates())],
            )
        return await self._save_and_prompt(
            session,
            state.model_copy(update={"step": StatusStep.CHOOSE_RANGE, "student_id": chosen.id}),
            [prompts.choose_range(chosen.name, settings.STATUS_LOOKAHEAD)],
        )

    def _shortcut_dates(self) -> list[date]:
        return self.calendar.next_lesson_dates(settings.DATE_SHORTCUT_COUNT)

    async def _draft_student(self, guardian: Guardian, student_id: UUID | None) -> Student:
        """The child selected earlier in the dialog."""
        if student_id is None:
            raise SessionCorruption("student_id missing from draft")
        student = await self._find_child(guardian.id, student_id)
        if student is None:
            raise SessionCorruption(f"Child {student_id} no longer linked to guardian {guardian.id}")
        return student

    async def _find_child(self, guardian_id: UUID, student_id: UUID) -> Student | None:
        children = await self.gateway.list_children_of_guardian(guardian_id)
        return next((child for child in children if child.id == student_id), None)

    async def _find_child_by_name(self, guardian_id: UUID, name: str) -> Student | None:
        children = await self.gateway.list_children_of_guardian(guardian_id)
        return next((child for child in children if labels_match(name, child.name)), None)

    async def _display_name(self, user_id: str) -> str | None:
        if self.line_client is None:
            return None
        return await self.line_client.get_display_name(user_id)

    async def _save_and_prompt(
        self, session: Session, state: ConversationState, messages: list[OutboundMessage]
    ) -> FlowResult:
        session.state = state
        await self.store.save(session)
        return self._result(session, messages)

    async def _finish(self, session: Session, guardian: Guardian, messages: list[OutboundMessage]) -> FlowResult:
        """Reset the session to idle and return the final messages."""
        await self.store.reset(session.external_user_id, guardian.id)
        session.state = IdleState()
        return self._result(session, messages)

    def _result(self, session: Session, messages: list[OutboundMessage]) -> FlowResult:
        state = session.state
        idle = isinstance(state, IdleState)
        return FlowResult(
            flow_name=state.flow,
            next_step=None if idle else str(state.step),
            completed=False,
            messages=messages,
        )


def _yes_no(flow_event: FlowEvent, flow: str) -> bool | None:
    if isinstance(flow_event, ButtonEvent) and flow_event.flow == flow and flow_event.key == "more":
        if flow_event.value == "yes":
            return True
        if flow_event.value == "no":
            return False
        return None
    if isinstance(flow_event, TextEvent):
        answer = flow_event.content.casefold()
        if answer in prompts.YES_WORDS:
            return True
        if answer in prompts.NO_WORDS:
            return False
    return None


def _picked_date(flow_event: FlowEvent, flow: str) -> date | None:
    """Date from a picker, a date shortcut button, or YYYY-MM-DD text."""
    if isinstance(flow_event, DatePickedEvent):
        return flow_event.picked
    try:
        if isinstance(flow_event, ButtonEvent) and flow_event.flow == flow and flow_event.key == "date":
            return parse_iso_date(flow_event.value)
        if isinstance(flow_event, TextEvent):
            return parse_iso_date(flow_event.content)
    except ValidationError:
        return None
    return None


def _picked_status(flow_event: FlowEvent) -> AttendanceStatus | None:
    if isinstance(flow_event, ButtonEvent) and flow_event.flow == Flow.ATTENDANCE and flow_event.key == "status":
        try:
            return AttendanceStatus(flow_event.value)
        except ValueError:
            return None
    if isinstance(flow_event, TextEvent):
        return parse_status_label(flow_event.content)
    return None
