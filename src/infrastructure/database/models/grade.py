# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic grade model."""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.school import Classroom, Student, Teacher


class Grade(UUIDMixin, TimestampMixin, Base):
    """Grade given by a teacher for a student in a classroom subject.

    The grade value is free text ("A-", "87.5", "Pass"); only numeric values
    take part in averages.
    """

    __tablename__ = "grades"

    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    classroom_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("teachers.id"),
        nullable=False,
    )
    subject: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    grade: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    grading_period: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    comments: Mapped[str | None] = mapped_column(sa.Text, nullable=True)

    student: Mapped[Student] = relationship("Student")
    classroom: Mapped[Classroom] = relationship("Classroom")
    teacher: Mapped[Teacher] = relationship("Teacher")
