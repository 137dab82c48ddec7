# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz, question and response models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDMixin
from src.utils.datetime import utc_now

if TYPE_CHECKING:
    from src.infrastructure.database.models.organization import Organization
    from src.infrastructure.database.models.user import User


class Quiz(UUIDMixin, TimestampMixin, Base):
    """Quiz owned by an organization."""

    __tablename__ = "quizzes"

    organization_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    organization: Mapped[Organization] = relationship("Organization")
    questions: Mapped[list[Question]] = relationship(
        "Question",
        back_populates="quiz",
        order_by="Question.position",
        cascade="all, delete-orphan",
    )
    responses: Mapped[list[Response]] = relationship(
        "Response",
        back_populates="quiz",
        cascade="all, delete-orphan",
    )


class Question(UUIDMixin, TimestampMixin, Base):
    """Multiple-choice question. correct_answer is one of options."""

    __tablename__ = "questions"

    quiz_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(sa.Text, nullable=False)
    options: Mapped[list[str]] = mapped_column(nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(sa.Text, nullable=False)
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    quiz: Mapped[Quiz] = relationship("Quiz", back_populates="questions")


class Response(UUIDMixin, TimestampMixin, Base):
    """A user's submitted answers for a quiz, with the server-computed score."""

    __tablename__ = "responses"
    __table_args__ = (
        sa.UniqueConstraint("quiz_id", "user_id", name="uq_responses_quiz_user"),
    )

    quiz_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        sa.String(36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    answers: Mapped[dict[str, Any]] = mapped_column(nullable=False, default=dict)
    score: Mapped[float] = mapped_column(sa.Float, nullable=False, default=0.0)
    correct_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    total_questions: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    completed_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )

    quiz: Mapped[Quiz] = relationship("Quiz", back_populates="responses")
    user: Mapped[User] = relationship("User")
