# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz, question, response and dashboard models."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.user import UserBrief


class QuizCreateRequest(BaseModel):
    """Create a quiz in an organization."""

    organization_id: str
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    is_active: bool = True


class QuizUpdateRequest(BaseModel):
    """Partial quiz update."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    is_active: bool | None = None


class BulkDeleteQuizzesRequest(BaseModel):
    """Delete several quizzes."""

    quiz_ids: list[str] = Field(min_length=1, max_length=500)


class QuestionCreateRequest(BaseModel):
    """Add a multiple-choice question. correct_answer must be an option."""

    text: str = Field(min_length=1, max_length=5000)
    options: list[str] = Field(min_length=2, max_length=20)
    correct_answer: str
    order: int | None = Field(default=None, ge=0)


class QuestionUpdateRequest(BaseModel):
    """Partial question update."""

    text: str | None = Field(default=None, min_length=1, max_length=5000)
    options: list[str] | None = Field(default=None, min_length=2, max_length=20)
    correct_answer: str | None = None
    order: int | None = Field(default=None, ge=0)


class QuestionImportRequest(BaseModel):
    """JSON import of questions, appended in order."""

    questions: list[QuestionCreateRequest] = Field(min_length=1, max_length=500)


class QuestionResponse(BaseModel):
    """Question with its correct answer (management view)."""

    id: str
    quiz_id: str
    text: str
    options: list[str]
    correct_answer: str
    order: int


class QuizResponse(BaseModel):
    """Quiz with counts."""

    id: str
    organization_id: str
    organization_name: str | None = None
    title: str
    description: str | None = None
    is_active: bool
    created_by: str | None = None
    question_count: int = 0
    response_count: int = 0
    created_at: datetime
    updated_at: datetime


class QuizDetailResponse(QuizResponse):
    """Quiz with its questions."""

    questions: list[QuestionResponse] = Field(default_factory=list)


class TakingQuestion(BaseModel):
    """Question as shown to a quiz taker, without the correct answer."""

    id: str
    text: str
    options: list[str]
    order: int


class QuizForTaking(BaseModel):
    """Active quiz ready to be taken."""

    id: str
    title: str
    description: str | None = None
    questions: list[TakingQuestion] = Field(default_factory=list)


class SubmitResponseRequest(BaseModel):
    """Answers keyed by question id."""

    answers: dict[str, str] = Field(default_factory=dict)


class QuestionReview(BaseModel):
    """Per-question outcome shown when reviewing a response."""

    question_id: str
    text: str
    options: list[str]
    selected_answer: str | None = None
    correct_answer: str
    correct: bool
    label: str


class ResponseResult(BaseModel):
    """Stored response with derived score.

    score is a 0..1 fraction; percentage is round(score*100).
    """

    id: str
    quiz_id: str
    user_id: str
    answers: dict[str, str] = Field(default_factory=dict)
    score: float
    percentage: int
    correct_count: int = 0
    total: int = 0
    completed_at: datetime


class ExistingResponse(ResponseResult):
    """The caller's own response with a review of each question."""

    review: list[QuestionReview] = Field(default_factory=list)


class ResponseListItem(BaseModel):
    """Response row in the management listing."""

    id: str
    quiz_id: str
    user: UserBrief
    answers: dict[str, str] = Field(default_factory=dict)
    score: float
    percentage: int
    completed_at: datetime


class DashboardMetrics(BaseModel):
    """Dashboard counters across the caller's organizations."""

    total_quizzes: int = 0
    completed_today: int = 0
    team_members: int = 0
    active_invites: int = 0
