"""
Attendance Models

One attendance answer per child per lesson date.
"""

from __future__ import annotations

from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .students import Student
    from .users import Guardian

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class AttendanceStatus(StrEnum):
    """Attendance answer reported by a guardian."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        """Japanese label shown on buttons and summaries."""
        return STATUS_LABELS[self]


STATUS_LABELS: dict[AttendanceStatus, str] = {
    AttendanceStatus.PRESENT: "出席",
    AttendanceStatus.ABSENT: "欠席",
    AttendanceStatus.LATE: "遅刻",
    AttendanceStatus.UNKNOWN: "未定",
}


class AttendanceRequest(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Attendance reported for a child on a lesson date.

    Unique per (student_id, requested_for): a later answer replaces the earlier one.
    """

    __tablename__ = "attendance_requests"
    __table_args__ = (
        UniqueConstraint("student_id", "requested_for", name="uq_attendance_student_date"),
        CheckConstraint(
            "status IN ('present', 'absent', 'late', 'unknown')", name="check_attendance_status"
        ),
        Index("idx_attendance_requested_for", "requested_for"),
        Index("idx_attendance_guardian", "guardian_id"),
    )

    guardian_id: Mapped[UUID] = mapped_column(
        ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False
    )
    requested_for: Mapped[date] = mapped_column(Date, nullable=False, comment="Lesson date")
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=AttendanceStatus.UNKNOWN.value
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    guardian: Mapped[Guardian] = relationship(back_populates="attendance_requests")
    student: Mapped[Student] = relationship()
