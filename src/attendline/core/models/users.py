"""
Guardian Model

Guardians (parents) who report attendance over LINE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .attendance import AttendanceRequest
    from .engagement import Message
    from .students import Student

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin


class Guardian(Base, UUIDPrimaryKeyMixin, CreatedAtMixin):
    """A guardian of one or more children attending the school.

    The LINE user id is the identity key for the chat bot: set on first contact
    and never reassigned.
    """

    __tablename__ = "guardians"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    line_user_id: Mapped[str | None] = mapped_column(
        String(64), unique=True, nullable=True, comment="LINE user id (chat identity)"
    )

    # Relationships
    students: Mapped[list[Student]] = relationship(
        secondary="guardian_students",
        back_populates="guardians",
        order_by="Student.name",
        viewonly=True,
    )
    attendance_requests: Mapped[list[AttendanceRequest]] = relationship(
        back_populates="guardian", cascade="all, delete-orphan", passive_deletes=True
    )
    messages: Mapped[list[Message]] = relationship(
        back_populates="guardian", cascade="all, delete-orphan", passive_deletes=True
    )
