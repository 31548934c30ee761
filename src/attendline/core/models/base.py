"""
SQLAlchemy Base Model and Mixins

Provides base class and common mixins for all attendline models.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, event, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDPrimaryKeyMixin:
    """Mixin for UUID primary key."""

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4, comment="UUID primary key")


class CreatedAtMixin:
    """Mixin for an immutable creation timestamp (UTC, timezone-aware)."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
        nullable=False,
        comment="Creation timestamp (UTC)",
    )


# Event listeners to auto-generate UUIDs and timestamps for in-memory objects
@event.listens_for(UUIDPrimaryKeyMixin, "init", propagate=True)
def receive_init_uuid(target, args, kwargs):  # type: ignore[no-untyped-def]
    """Auto-generate UUID on instance creation if not provided."""
    if "id" not in kwargs:
        target.id = uuid4()


@event.listens_for(CreatedAtMixin, "init", propagate=True)
def receive_init_created_at(target, args, kwargs):  # type: ignore[no-untyped-def]
    """Auto-generate created_at on instance creation if not provided."""
    if "created_at" not in kwargs:
        target.created_at = datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from backends without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
