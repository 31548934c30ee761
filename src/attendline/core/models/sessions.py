"""
Conversation Session Model

Where each LINE user currently is in a guided dialog.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class FlowSession(Base):
    """Persisted flow state, one row per LINE user id.

    Written on every transition; treated as absent once expires_at has passed.
    """

    __tablename__ = "flow_sessions"
    __table_args__ = (Index("idx_flow_sessions_expires_at", "expires_at"),)

    external_user_id: Mapped[str] = mapped_column(
        String(64), primary_key=True, comment="LINE user id"
    )
    guardian_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("guardians.id", ondelete="CASCADE"), nullable=True
    )

    flow: Mapped[str] = mapped_column(String(20), nullable=False, default="idle")
    step: Mapped[str] = mapped_column(String(40), nullable=False, default="idle")
    data: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, comment="Flow-specific draft answers"
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
    )
