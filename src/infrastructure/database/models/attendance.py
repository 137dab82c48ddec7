# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance session and record models."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.school import Classroom, Student


class AttendanceSession(UUIDMixin, TimestampMixin, Base):
    """One attendance-taking event per classroom per date."""

    __tablename__ = "attendance_sessions"
    __table_args__ = (
        sa.UniqueConstraint(
            "classroom_id", "date", name="uq_attendance_sessions_classroom_date"
        ),
    )

    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    classroom_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    marked_by_id: Mapped[str | None] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    classroom: Mapped[Classroom] = relationship("Classroom")
    records: Mapped[list[AttendanceRecord]] = relationship(
        "AttendanceRecord",
        back_populates="session",
        cascade="all, delete-orphan",
    )


class AttendanceRecord(UUIDMixin, TimestampMixin, Base):
    """Attendance status of one student in one session."""

    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint(
            "session_id", "student_id", name="uq_attendance_records_session_student"
        ),
        sa.CheckConstraint(
            "status IN ('Present', 'Absent', 'Late')",
            name="valid_attendance_status",
        ),
    )

    session_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("attendance_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    session: Mapped[AttendanceSession] = relationship(
        "AttendanceSession", back_populates="records"
    )
    student: Mapped[Student] = relationship("Student")
