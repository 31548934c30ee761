"""
Student Models

Children enrolled at the school and their guardian links.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .users import Guardian

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class Student(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """A child attending lessons. Linked to guardians many-to-many."""

    __tablename__ = "students"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade: Mapped[str | None] = mapped_column(
        String(20), nullable=True, comment="School grade as entered (e.g. 小3)"
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    guardians: Mapped[list[Guardian]] = relationship(
        secondary="guardian_students", back_populates="students", viewonly=True
    )


class GuardianStudent(Base):
    """Association row between a guardian and a child.

    The composite primary key rejects duplicate links.
    """

    __tablename__ = "guardian_students"
    __table_args__ = (Index("idx_guardian_students_student", "student_id"),)

    guardian_id: Mapped[UUID] = mapped_column(
        ForeignKey("guardians.id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[UUID] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
