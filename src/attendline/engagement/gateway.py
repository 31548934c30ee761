"""
Domain Gateway

The guardian, child, attendance and message operations the conversation flows
need. Every call commits on its own; the flows never rely on atomicity across
calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from attendline.core.models import (
    AttendanceRequest,
    AttendanceStatus,
    Guardian,
    GuardianStudent,
    Message,
    Student,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

MessageDirection = Literal["inbound", "outbound"]


class ConstraintViolation(Exception):
    """A write referenced a guardian or child that does not exist."""

    pass


@dataclass(frozen=True)
class AttendanceRecord:
    """Stored attendance answer for one date."""

    status: AttendanceStatus
    reason: str | None = None


class DomainGateway:
    """SQLAlchemy-backed guardian/child/attendance/message operations."""

    def __init__(self, *, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Guardians
    # ------------------------------------------------------------------

    async def find_guardian_by_external_id(self, external_id: str) -> Guardian | None:
        stmt = select(Guardian).where(Guardian.line_user_id == external_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_guardian(self, name: str, external_id: str) -> Guardian:
        """Create a guardian bound to a LINE user id.

        A concurrent insert for the same LINE id resolves to the existing row.
        """
        guardian = Guardian(name=name, line_user_id=external_id)
        self.db.add(guardian)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.find_guardian_by_external_id(external_id)
            if existing is None:
                raise
            logger.info(f"Guardian for {external_id} created concurrently, reusing {existing.id}")
            return existing

        logger.info(f"Created guardian {guardian.id} for LINE user {external_id}")
        return guardian

    async def rename_guardian(self, guardian_id: UUID, name: str) -> Guardian:
        guardian = await self.db.get(Guardian, guardian_id)
        if guardian is None:
            raise ConstraintViolation(f"Guardian not found: {guardian_id}")
        guardian.name = name
        await self.db.commit()
        return guardian

    # ------------------------------------------------------------------
    # Children
    # ------------------------------------------------------------------

    async def list_children_of_guardian(self, guardian_id: UUID) -> list[Student]:
        stmt = (
            select(Student)
            .join(GuardianStudent, GuardianStudent.student_id == Student.id)
            .where(GuardianStudent.guardian_id == guardian_id)
            .order_by(Student.name, Student.created_at)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_child(self, guardian_id: UUID, name: str, grade: str | None = None) -> Student:
        """Create a child linked to the guardian.

        If the guardian already has a child with this name, that child is
        reused (grade updated when given) instead of creating a duplicate.
        A link that already exists is not an error.

        Raises:
            ConstraintViolation: If the guardian does not exist
        """
        if await self.db.get(Guardian, guardian_id) is None:
            raise ConstraintViolation(f"Guardian not found: {guardian_id}")

        existing = next(
            (child for child in await self.list_children_of_guardian(guardian_id) if child.name == name),
            None,
        )
        if existing is not None:
            if grade and existing.grade != grade:
                existing.grade = grade
                await self.db.commit()
            logger.info(f"Guardian {guardian_id} already has child '{name}' ({existing.id})")
            return existing

        student = Student(name=name, grade=grade)
        self.db.add(student)
        await self.db.commit()

        await self._link(guardian_id, student.id)
        logger.info(f"Created child {student.id} ('{name}', grade {grade}) for guardian {guardian_id}")
        return student

    async def _link(self, guardian_id: UUID, student_id: UUID) -> None:
        """Insert the guardian-child link; a duplicate link counts as success."""
        existing = await self.db.get(GuardianStudent, (guardian_id, student_id))
        if existing is not None:
            return

        self.db.add(GuardianStudent(guardian_id=guardian_id, student_id=student_id))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if await self.db.get(GuardianStudent, (guardian_id, student_id)) is None:
                raise
            logger.debug(f"Link {guardian_id} -> {student_id} already present")

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------

    async def upsert_attendance(
        self,
        guardian_id: UUID,
        student_id: UUID,
        requested_for: date,
        status: AttendanceStatus,
        reason: str | None = None,
    ) -> AttendanceRequest:
        """Insert or replace the attendance answer for (student, date).

        Raises:
            ConstraintViolation: If guardian or student rows do not exist
        """
        if await self.db.get(Guardian, guardian_id) is None:
            raise ConstraintViolation(f"Guardian not found: {guardian_id}")
        if await self.db.get(Student, student_id) is None:
            raise ConstraintViolation(f"Student not found: {student_id}")

        stmt = select(AttendanceRequest).where(
            AttendanceRequest.student_id == student_id,
            AttendanceRequest.requested_for == requested_for,
        )
        result = await self.db.execute(stmt)
        record = result.scalar_one_or_none()

        if record is None:
            record = AttendanceRequest(student_id=student_id, requested_for=requested_for)
            self.db.add(record)

        record.guardian_id = guardian_id
        record.status = AttendanceStatus(status).value
        record.reason = reason

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConstraintViolation(f"Failed to upsert attendance: {e.orig}") from e

        logger.info(
            f"Attendance saved: student {student_id} {requested_for.isoformat()} {record.status}",
            extra={"guardian_id": str(guardian_id)},
        )
        return record

    async def attendance_records_for(
        self, guardian_id: UUID, student_id: UUID, from_date: date, to_date: date
    ) -> dict[date, AttendanceRecord]:
        """Attendance answers for a child in [from_date, to_date].

        Only children linked to the guardian are visible.
        """
        stmt = (
            select(AttendanceRequest)
            .join(
                GuardianStudent,
                (GuardianStudent.student_id == AttendanceRequest.student_id)
                & (GuardianStudent.guardian_id == guardian_id),
            )
            .where(AttendanceRequest.student_id == student_id)
            .where(AttendanceRequest.requested_for >= from_date)
            .where(AttendanceRequest.requested_for <= to_date)
            .order_by(AttendanceRequest.requested_for)
        )
        result = await self.db.execute(stmt)
        return {
            row.requested_for: AttendanceRecord(status=AttendanceStatus(row.status), reason=row.reason)
            for row in result.scalars().all()
        }

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def record_message(
        self,
        guardian_id: UUID,
        student_id: UUID | None,
        direction: MessageDirection,
        body: str,
    ) -> None:
        """Append to the message log. Best effort: failures are logged only.

        The insert runs in a savepoint so a failure leaves the enclosing
        transaction and already-loaded objects untouched.
        """
        try:
            async with self.db.begin_nested():
                if await self.db.get(Guardian, guardian_id) is None:
                    logger.warning(f"Not recording {direction} message: guardian {guardian_id} not found")
                    return
                self.db.add(
                    Message(guardian_id=guardian_id, student_id=student_id, direction=direction, body=body)
                )
        except Exception as e:
            logger.warning(
                f"Failed to record {direction} message for guardian {guardian_id}: {e}",
                extra={"student_id": str(student_id) if student_id else None},
            )
            return

        await self.db.commit()
