"""
Engagement Models

Log of chat messages exchanged with guardians.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from .students import Student
    from .users import Guardian

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class Message(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """Every inbound or outbound chat message worth keeping for staff.

    Append-only.
    """

    __tablename__ = "messages"
    __table_args__ = (
        CheckConstraint("direction IN ('inbound', 'outbound')", name="check_direction"),
        Index("idx_messages_guardian", "guardian_id"),
        Index("idx_messages_student", "student_id"),
    )

    guardian_id: Mapped[UUID] = mapped_column(
        ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=True
    )

    direction: Mapped[str] = mapped_column(
        String(10), nullable=False, comment="inbound or outbound"
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    guardian: Mapped[Guardian] = relationship(back_populates="messages")
    student: Mapped[Student | None] = relationship()
