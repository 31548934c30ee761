"""
Conversation State Types

Flow state is a tagged union keyed by `flow`. Each variant carries only the
draft fields of its own dialog, and each flow has its own step enum, so an
attendance session can never hold status-lookup data or a status step.

Persisted as FlowSession(flow, step, data) where `data` is everything except
`flow` and `step`.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from attendline.core.models import AttendanceStatus


class Flow(StrEnum):
    IDLE = "idle"
    REGISTRATION = "registration"
    SETTINGS = "settings"
    ATTENDANCE = "attendance"
    STATUS = "status"


class RegistrationStep(StrEnum):
    ASK_GUARDIAN_NAME = "ask_guardian_name"
    ASK_CHILD_NAME = "ask_child_name"
    ASK_CHILD_GRADE = "ask_child_grade"
    ASK_MORE_CHILDREN = "ask_more_children"


class SettingsStep(StrEnum):
    ASK_CHILD_NAME = "ask_child_name"
    ASK_CHILD_GRADE = "ask_child_grade"
    ASK_MORE_CHILDREN = "ask_more_children"


class AttendanceStep(StrEnum):
    CHOOSE_STUDENT = "choose_student"
    CHOOSE_DATE = "choose_date"
    CHOOSE_STATUS = "choose_status"
    ASK_COMMENT = "ask_comment"


class StatusStep(StrEnum):
    CHOOSE_STUDENT = "choose_student"
    CHOOSE_RANGE = "choose_range"


# Flows that can be re-entered after a registration side-trip
ResumableFlow = Literal["attendance", "status"]


class _FlowState(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class IdleState(_FlowState):
    flow: Literal["idle"] = "idle"
    step: Literal["idle"] = "idle"


class RegistrationState(_FlowState):
    """Guardian name, then one or more children."""

    flow: Literal["registration"] = "registration"
    step: RegistrationStep = RegistrationStep.ASK_GUARDIAN_NAME
    pending_child_name: str | None = None
    resume_flow: ResumableFlow | None = None


class SettingsState(_FlowState):
    """Adding children for an existing guardian."""

    flow: Literal["settings"] = "settings"
    step: SettingsStep = SettingsStep.ASK_CHILD_NAME
    pending_child_name: str | None = None
    resume_flow: ResumableFlow | None = None


class AttendanceState(_FlowState):
    """Attendance draft: child, lesson date, status."""

    flow: Literal["attendance"] = "attendance"
    step: AttendanceStep = AttendanceStep.CHOOSE_STUDENT
    student_id: UUID | None = None
    requested_for: date | None = None
    status: AttendanceStatus | None = None


class StatusState(_FlowState):
    """Status lookup draft: child; range is resolved at the final step."""

    flow: Literal["status"] = "status"
    step: StatusStep = StatusStep.CHOOSE_STUDENT
    student_id: UUID | None = None


ConversationState = Annotated[
    IdleState | RegistrationState | SettingsState | AttendanceState | StatusState,
    Field(discriminator="flow"),
]

_state_adapter: TypeAdapter[ConversationState] = TypeAdapter(ConversationState)


def decode_state(flow: str, step: str, data: dict[str, Any] | None) -> ConversationState:
    """Build a state from its persisted columns.

    Raises:
        pydantic.ValidationError: If flow, step or draft fields are not valid
    """
    payload = dict(data or {})
    payload["flow"] = flow
    payload["step"] = step
    return _state_adapter.validate_python(payload)


def encode_state(state: ConversationState) -> tuple[str, str, dict[str, Any]]:
    """Split a state into (flow, step, data) columns with JSON-safe data."""
    data = state.model_dump(mode="json", exclude={"flow", "step"}, exclude_none=True)
    return state.flow, str(state.step), data
