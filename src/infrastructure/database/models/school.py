# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person profiles and classroom models.

Teacher, Student and Parent each wrap a User and are scoped to one
organization. Students link to parents and classrooms through join rows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.organization import Organization
    from src.infrastructure.database.models.user import User


class Teacher(UUIDMixin, TimestampMixin, Base):
    """Teacher profile."""

    __tablename__ = "teachers"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "organization_id", name="uq_teachers_user_org"),
    )

    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subjects: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    certifications: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    employee_id: Mapped[str | None] = mapped_column(sa.String(50), nullable=True)
    cv_url: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)

    user: Mapped[User] = relationship("User")
    organization: Mapped[Organization] = relationship("Organization")
    classrooms: Mapped[list[Classroom]] = relationship("Classroom", back_populates="teacher")


class Student(UUIDMixin, TimestampMixin, Base):
    """Student profile."""

    __tablename__ = "students"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "organization_id", name="uq_students_user_org"),
    )

    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    grade: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    authorized_pickups: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    medical_info: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    photo_url: Mapped[str | None] = mapped_column(sa.String(500), nullable=True)

    user: Mapped[User] = relationship("User")
    parents: Mapped[list[StudentParent]] = relationship(
        "StudentParent",
        back_populates="student",
        cascade="all, delete-orphan",
    )
    enrollments: Mapped[list[ClassroomEnrollment]] = relationship(
        "ClassroomEnrollment",
        back_populates="student",
        cascade="all, delete-orphan",
    )


class Parent(UUIDMixin, TimestampMixin, Base):
    """Parent or guardian profile."""

    __tablename__ = "parents"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "organization_id", name="uq_parents_user_org"),
    )

    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    primary_contact: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    relation: Mapped[str] = mapped_column("relationship", sa.String(50), nullable=False)
    occupation: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)

    user: Mapped[User] = relationship("User")
    students: Mapped[list[StudentParent]] = relationship(
        "StudentParent",
        back_populates="parent",
        cascade="all, delete-orphan",
    )


class StudentParent(UUIDMixin, TimestampMixin, Base):
    """Student to parent link."""

    __tablename__ = "student_parents"
    __table_args__ = (
        sa.UniqueConstraint("student_id", "parent_id", name="uq_student_parents_pair"),
    )

    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("parents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    student: Mapped[Student] = relationship("Student", back_populates="parents")
    parent: Mapped[Parent] = relationship("Parent", back_populates="students")


class Classroom(UUIDMixin, TimestampMixin, Base):
    """Classroom with one teacher and an enrolled roster."""

    __tablename__ = "classrooms"

    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    teacher_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("teachers.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    grade: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    subject: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    capacity: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)
    room: Mapped[str | None] = mapped_column(sa.String(100), nullable=True)
    schedule: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    teacher: Mapped[Teacher] = relationship("Teacher", back_populates="classrooms")
    enrollments: Mapped[list[ClassroomEnrollment]] = relationship(
        "ClassroomEnrollment",
        back_populates="classroom",
        cascade="all, delete-orphan",
    )


class ClassroomEnrollment(UUIDMixin, TimestampMixin, Base):
    """Student enrolled in a classroom."""

    __tablename__ = "classroom_enrollments"
    __table_args__ = (
        sa.UniqueConstraint(
            "classroom_id", "student_id", name="uq_classroom_enrollments_pair"
        ),
    )

    classroom_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("classrooms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    classroom: Mapped[Classroom] = relationship("Classroom", back_populates="enrollments")
    student: Mapped[Student] = relationship("Student", back_populates="enrollments")
