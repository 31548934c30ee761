"""
attendline SQLAlchemy Models
"""

from .attendance import STATUS_LABELS, AttendanceRequest, AttendanceStatus
from .base import Base, CreatedAtMixin, UUIDPrimaryKeyMixin, as_utc
from .engagement import Message
from .sessions import FlowSession
from .students import GuardianStudent, Student
from .users import Guardian

__all__ = [
    # Base
    "Base",
    "UUIDPrimaryKeyMixin",
    "CreatedAtMixin",
    "as_utc",
    # Users
    "Guardian",
    # Students
    "Student",
    "GuardianStudent",
    # Attendance
    "AttendanceRequest",
    "AttendanceStatus",
    "STATUS_LABELS",
    # Engagement
    "Message",
    # Sessions
    "FlowSession",
]
