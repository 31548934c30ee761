"""Initial attendance schema

Revision ID: 4c1e7a2b9d10
Revises:
Create Date: 2026-10-18 09:00:00.000000+00:00

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4c1e7a2b9d10"  # pragma: allowlist secret
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "guardians",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("line_user_id", sa.String(length=64), nullable=True, comment="LINE user id (chat identity)"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("line_user_id"),
    )

    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("grade", sa.String(length=20), nullable=True, comment="School grade as entered (e.g. 小3)"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "guardian_students",
        sa.Column("guardian_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["guardian_id"], ["guardians.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("guardian_id", "student_id"),
    )
    op.create_index("idx_guardian_students_student", "guardian_students", ["student_id"])

    op.create_table(
        "attendance_requests",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("guardian_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=False),
        sa.Column("requested_for", sa.Date(), nullable=False, comment="Lesson date"),
        sa.Column("status", sa.String(length=10), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.CheckConstraint(
            "status IN ('present', 'absent', 'late', 'unknown')", name="check_attendance_status"
        ),
        sa.ForeignKeyConstraint(["guardian_id"], ["guardians.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("student_id", "requested_for", name="uq_attendance_student_date"),
    )
    op.create_index("idx_attendance_requested_for", "attendance_requests", ["requested_for"])
    op.create_index("idx_attendance_guardian", "attendance_requests", ["guardian_id"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), nullable=False, comment="UUID primary key"),
        sa.Column("guardian_id", sa.Uuid(), nullable=False),
        sa.Column("student_id", sa.Uuid(), nullable=True),
        sa.Column("direction", sa.String(length=10), nullable=False, comment="inbound or outbound"),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
            comment="Creation timestamp (UTC)",
        ),
        sa.CheckConstraint("direction IN ('inbound', 'outbound')", name="check_direction"),
        sa.ForeignKeyConstraint(["guardian_id"], ["guardians.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["student_id"], ["students.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_messages_guardian", "messages", ["guardian_id"])
    op.create_index("idx_messages_student", "messages", ["student_id"])

    op.create_table(
        "flow_sessions",
        sa.Column("external_user_id", sa.String(length=64), nullable=False, comment="LINE user id"),
        sa.Column("guardian_id", sa.Uuid(), nullable=True),
        sa.Column("flow", sa.String(length=20), nullable=False),
        sa.Column("step", sa.String(length=40), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False, comment="Flow-specific draft answers"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["guardian_id"], ["guardians.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("external_user_id"),
    )
    op.create_index("idx_flow_sessions_expires_at", "flow_sessions", ["expires_at"])


def downgrade() -> None:
    op.drop_index("idx_flow_sessions_expires_at", table_name="flow_sessions")
    op.drop_table("flow_sessions")
    op.drop_index("idx_messages_student", table_name="messages")
    op.drop_index("idx_messages_guardian", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_attendance_guardian", table_name="attendance_requests")
    op.drop_index("idx_attendance_requested_for", table_name="attendance_requests")
    op.drop_table("attendance_requests")
    op.drop_index("idx_guardian_students_student", table_name="guardian_students")
    op.drop_table("guardian_students")
    op.drop_table("students")
    op.drop_table("guardians")
