# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial database schema.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-03-02

Creates all tables matching the SQLAlchemy models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False, ondelete: str | None = "CASCADE") -> sa.Column:
    return sa.Column(
        name,
        sa.String(36),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""
    # ==========================================================================
    # 1. Identity
    # ==========================================================================
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("emergency_contact", JSON, nullable=True),
        sa.Column("banned", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("ban_reason", sa.Text, nullable=True),
        sa.Column("ban_expires", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('member', 'super-admin')", name="valid_global_role"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "user_sessions",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])

    # ==========================================================================
    # 2. Organizations and membership
    # ==========================================================================
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("principal_name", sa.String(255), nullable=True),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("logo", sa.String(500), nullable=True),
        sa.Column("metadata", JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_organizations_slug", "organizations", ["slug"])

    op.create_table(
        "members",
        _id(),
        _fk("user_id", "users.id"),
        _fk("organization_id", "organizations.id"),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_members_user_org"),
        sa.CheckConstraint("role IN ('member', 'admin', 'owner')", name="valid_member_role"),
    )
    op.create_index("ix_members_user_id", "members", ["user_id"])
    op.create_index("ix_members_organization_id", "members", ["organization_id"])

    op.create_table(
        "invitations",
        _id(),
        sa.Column("email", sa.String(255), nullable=False),
        _fk("organization_id", "organizations.id"),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        _fk("inviter_id", "users.id", nullable=True, ondelete="SET NULL"),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", "organization_id", name="uq_invitations_email_org"),
        sa.CheckConstraint("status IN ('pending', 'accepted')", name="valid_invitation_status"),
    )
    op.create_index("ix_invitations_email", "invitations", ["email"])
    op.create_index("ix_invitations_organization_id", "invitations", ["organization_id"])

    # ==========================================================================
    # 3. Person profiles
    # ==========================================================================
    op.create_table(
        "teachers",
        _id(),
        _fk("user_id", "users.id"),
        _fk("organization_id", "organizations.id"),
        sa.Column("subjects", JSON, nullable=False),
        sa.Column("certifications", JSON, nullable=False),
        sa.Column("employee_id", sa.String(50), nullable=True),
        sa.Column("cv_url", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_teachers_user_org"),
    )
    op.create_index("ix_teachers_organization_id", "teachers", ["organization_id"])

    op.create_table(
        "students",
        _id(),
        _fk("user_id", "users.id"),
        _fk("organization_id", "organizations.id"),
        sa.Column("grade", sa.String(50), nullable=False),
        sa.Column("authorized_pickups", JSON, nullable=True),
        sa.Column("medical_info", JSON, nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_students_user_org"),
    )
    op.create_index("ix_students_organization_id", "students", ["organization_id"])

    op.create_table(
        "parents",
        _id(),
        _fk("user_id", "users.id"),
        _fk("organization_id", "organizations.id"),
        sa.Column("primary_contact", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("relationship", sa.String(50), nullable=False),
        sa.Column("occupation", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "organization_id", name="uq_parents_user_org"),
    )
    op.create_index("ix_parents_organization_id", "parents", ["organization_id"])

    op.create_table(
        "student_parents",
        _id(),
        _fk("student_id", "students.id"),
        _fk("parent_id", "parents.id"),
        *_timestamps(),
        sa.UniqueConstraint("student_id", "parent_id", name="uq_student_parents_pair"),
    )

    # ==========================================================================
    # 4. Classrooms
    # ==========================================================================
    op.create_table(
        "classrooms",
        _id(),
        _fk("organization_id", "organizations.id"),
        _fk("teacher_id", "teachers.id", ondelete=None),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("grade", sa.String(50), nullable=False),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=True),
        sa.Column("room", sa.String(100), nullable=True),
        sa.Column("schedule", JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_classrooms_organization_id", "classrooms", ["organization_id"])

    op.create_table(
        "classroom_enrollments",
        _id(),
        _fk("classroom_id", "classrooms.id"),
        _fk("student_id", "students.id"),
        *_timestamps(),
        sa.UniqueConstraint("classroom_id", "student_id", name="uq_classroom_enrollments_pair"),
    )

    # ==========================================================================
    # 5. Attendance and grades
    # ==========================================================================
    op.create_table(
        "attendance_sessions",
        _id(),
        _fk("organization_id", "organizations.id"),
        _fk("classroom_id", "classrooms.id"),
        sa.Column("date", sa.Date, nullable=False),
        _fk("marked_by_id", "users.id", nullable=True, ondelete="SET NULL"),
        *_timestamps(),
        sa.UniqueConstraint(
            "classroom_id", "date", name="uq_attendance_sessions_classroom_date"
        ),
    )

    op.create_table(
        "attendance_records",
        _id(),
        _fk("session_id", "attendance_sessions.id"),
        _fk("student_id", "students.id"),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "session_id", "student_id", name="uq_attendance_records_session_student"
        ),
        sa.CheckConstraint(
            "status IN ('Present', 'Absent', 'Late')", name="valid_attendance_status"
        ),
    )
    op.create_index("ix_attendance_records_student_id", "attendance_records", ["student_id"])

    op.create_table(
        "grades",
        _id(),
        _fk("organization_id", "organizations.id"),
        _fk("student_id", "students.id"),
        _fk("classroom_id", "classrooms.id"),
        _fk("teacher_id", "teachers.id", ondelete=None),
        sa.Column("subject", sa.String(100), nullable=False),
        sa.Column("grade", sa.String(50), nullable=False),
        sa.Column("grading_period", sa.String(50), nullable=False),
        sa.Column("comments", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_grades_student_id", "grades", ["student_id"])
    op.create_index("ix_grades_classroom_id", "grades", ["classroom_id"])

    # ==========================================================================
    # 6. Quizzes
    # ==========================================================================
    op.create_table(
        "quizzes",
        _id(),
        _fk("organization_id", "organizations.id"),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        _fk("created_by", "users.id", nullable=True, ondelete="SET NULL"),
        *_timestamps(),
    )
    op.create_index("ix_quizzes_organization_id", "quizzes", ["organization_id"])

    op.create_table(
        "questions",
        _id(),
        _fk("quiz_id", "quizzes.id"),
        sa.Column("text", sa.Text, nullable=False),
        sa.Column("options", JSON, nullable=False),
        sa.Column("correct_answer", sa.Text, nullable=False),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "responses",
        _id(),
        _fk("quiz_id", "quizzes.id"),
        _fk("user_id", "users.id"),
        sa.Column("answers", JSON, nullable=False),
        sa.Column("score", sa.Float, nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("quiz_id", "user_id", name="uq_responses_quiz_user"),
    )
    op.create_index("ix_responses_quiz_id", "responses", ["quiz_id"])
    op.create_index("ix_responses_completed_at", "responses", ["completed_at"])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        "responses",
        "questions",
        "quizzes",
        "grades",
        "attendance_records",
        "attendance_sessions",
        "classroom_enrollments",
        "classrooms",
        "student_parents",
        "parents",
        "students",
        "teachers",
        "invitations",
        "members",
        "organizations",
        "user_sessions",
        "users",
    ):
        op.drop_table(table)
