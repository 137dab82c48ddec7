# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz service.

This module provides the QuizService that handles:
- Quiz listing across the caller's organizations, with counts
- Quiz and question management, including JSON question import
- Taking a quiz, submitting one response per user and reviewing it
- Response listing and CSV export for organization managers

Example:
    >>> service = QuizService(db_session)
    >>> quiz = await service.create_quiz(user, QuizCreateRequest(...))
    >>> await service.add_question(user, quiz.id, QuestionCreateRequest(...))
    >>> result = await service.submit_response(user, quiz.id, SubmitResponseRequest(...))
    >>> result.percentage
    75
"""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import ConflictError, NotFoundError, ValidationFailureError
from src.domains.query import PageRequest, SortSpec, paginate
from src.domains.quiz.export import ExportRow, export_filename, render_responses_csv
from src.domains.quiz.scoring import score_response, to_percentage
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import Organization, Question, Quiz, Response, User
from src.models.common import PageResponse
from src.models.quiz import (
    ExistingResponse,
    QuestionCreateRequest,
    QuestionResponse,
    QuestionReview,
    QuestionUpdateRequest,
    QuizCreateRequest,
    QuizDetailResponse,
    QuizForTaking,
    QuizResponse,
    QuizUpdateRequest,
    ResponseListItem,
    ResponseResult,
    SubmitResponseRequest,
    TakingQuestion,
)
from src.models.user import UserBrief
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

RESPONSES_FORBIDDEN = "Insufficient permissions to view responses"

QUIZ_SORT = SortSpec(
    columns={
        "title": Quiz.title,
        "createdAt": Quiz.created_at,
        "updatedAt": Quiz.updated_at,
    },
)

RESPONSE_SORT = SortSpec(
    columns={
        "score": Response.score,
        "completedAt": Response.completed_at,
        "userName": User.name,
        "userEmail": User.email,
    },
    default="completedAt",
)


class QuizNotFoundError(NotFoundError):
    """Raised when a quiz is not found."""

    def __init__(self) -> None:
        super().__init__("Quiz not found")


class QuestionNotFoundError(NotFoundError):
    """Raised when a question is not found."""

    def __init__(self) -> None:
        super().__init__("Question not found")


class QuizInactiveError(ValidationFailureError):
    """Raised when taking or submitting an inactive quiz."""

    def __init__(self) -> None:
        super().__init__("Quiz is not active")


class QuizAlreadyCompletedError(ConflictError):
    """Raised on a second response for the same quiz and user."""

    def __init__(self) -> None:
        super().__init__("Quiz already completed")


class InvalidAnswerError(ValidationFailureError):
    """Raised when the correct answer is not one of the options."""

    def __init__(self) -> None:
        super().__init__("Correct answer must be one of the options")


def _validate_choice(options: list[str], correct_answer: str) -> None:
    if correct_answer not in options:
        raise InvalidAnswerError()


class QuizService:
    """Service for quizzes, questions and responses.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    # =========================================================================
    # Quizzes
    # =========================================================================

    async def list_quizzes(
        self,
        user: Principal,
        page_request: PageRequest,
        organization_ids: list[str] | None = None,
    ) -> PageResponse[QuizResponse]:
        """List quizzes in the caller's organizations.

        Inactive quizzes are included so they can be managed.
        """
        scope = await self.gate.resolve_scope(user, organization_ids)
        if scope is not None and not scope:
            return PageResponse[QuizResponse]()

        statement = select(Quiz).options(selectinload(Quiz.organization))
        if scope is not None:
            statement = statement.where(Quiz.organization_id.in_(scope))

        page = await paginate(
            self.db,
            statement,
            page_request,
            search_columns=[Quiz.title, Quiz.description],
            sort_spec=QUIZ_SORT,
            tie_breaker=Quiz.id,
        )

        quiz_ids = [q.id for q in page.items]
        question_counts = await self._counts_by_quiz(Question, quiz_ids)
        response_counts = await self._counts_by_quiz(Response, quiz_ids)

        return PageResponse[QuizResponse](
            items=[
                self._to_response(
                    q,
                    question_count=question_counts.get(q.id, 0),
                    response_count=response_counts.get(q.id, 0),
                )
                for q in page.items
            ],
            total_count=page.total_count,
            total_pages=page.total_pages,
        )

    async def get_quiz(self, user: Principal, quiz_id: str) -> QuizDetailResponse:
        """Get a quiz with its questions (management view)."""
        quiz = await self._get_by_id(quiz_id)
        await self.gate.ensure(user, quiz.organization_id, ResourceKind.QUIZ, Action.READ)
        return await self._to_detail(quiz)

    async def create_quiz(self, user: Principal, request: QuizCreateRequest) -> QuizDetailResponse:
        """Create a quiz."""
        if await self.db.get(Organization, request.organization_id) is None:
            raise NotFoundError("Organization not found")

        async def apply() -> Quiz:
            quiz = Quiz(
                organization_id=request.organization_id,
                title=request.title.strip(),
                description=request.description,
                is_active=request.is_active,
                created_by=user.id,
            )
            self.db.add(quiz)
            await self.db.commit()
            return quiz

        quiz = await self.gate.with_scoped_permission(
            user, request.organization_id, ResourceKind.QUIZ, Action.CREATE, apply
        )
        logger.info("Quiz created: %s in %s by %s", quiz.id, quiz.organization_id, user.id)
        return await self._to_detail(await self._get_by_id(quiz.id))

    async def update_quiz(
        self,
        user: Principal,
        quiz_id: str,
        request: QuizUpdateRequest,
    ) -> QuizDetailResponse:
        """Partially update a quiz."""
        quiz = await self._get_by_id(quiz_id)

        async def apply() -> None:
            for field, value in request.model_dump(exclude_unset=True).items():
                if field in ("title", "is_active") and value is None:
                    continue
                setattr(quiz, field, value)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, quiz.organization_id, ResourceKind.QUIZ, Action.UPDATE, apply
        )
        logger.info("Quiz updated: %s by %s", quiz_id, user.id)
        return await self._to_detail(await self._get_by_id(quiz_id))

    async def delete_quiz(self, user: Principal, quiz_id: str) -> None:
        """Delete a quiz with its questions and responses."""
        quiz = await self._get_by_id(quiz_id)

        async def apply() -> None:
            await self._delete_quizzes([quiz.id])

        await self.gate.with_scoped_permission(
            user, quiz.organization_id, ResourceKind.QUIZ, Action.DELETE, apply
        )
        logger.info("Quiz deleted: %s by %s", quiz_id, user.id)

    async def bulk_delete_quizzes(self, user: Principal, quiz_ids: list[str]) -> int:
        """Delete the listed quizzes the caller may delete.

        Quizzes in organizations where the caller lacks delete permission
        are skipped.

        Returns:
            Number of quizzes deleted.
        """
        result = await self.db.execute(
            select(Quiz.id, Quiz.organization_id).where(Quiz.id.in_(set(quiz_ids)))
        )
        rows = result.all()

        permitted: dict[str, bool] = {}
        deletable = []
        for quiz_id, organization_id in rows:
            if organization_id not in permitted:
                permitted[organization_id] = await self.gate.allows(
                    user, organization_id, Action.DELETE
                )
            if permitted[organization_id]:
                deletable.append(quiz_id)

        if deletable:
            await self._delete_quizzes(deletable)

        logger.info(
            "Quizzes bulk-deleted by %s: requested=%d deleted=%d",
            user.id,
            len(quiz_ids),
            len(deletable),
        )
        return len(deletable)

    # =========================================================================
    # Questions
    # =========================================================================

    async def add_question(
        self,
        user: Principal,
        quiz_id: str,
        request: QuestionCreateRequest,
    ) -> QuestionResponse:
        """Add a question; without an explicit order it goes last."""
        quiz = await self._get_by_id(quiz_id)

        async def apply() -> Question:
            _validate_choice(request.options, request.correct_answer)
            question = Question(
                quiz_id=quiz.id,
                text=request.text,
                options=list(request.options),
                correct_answer=request.correct_answer,
                position=request.order if request.order is not None else self._next_position(quiz),
            )
            self.db.add(question)
            await self.db.commit()
            return question

        question = await self.gate.with_scoped_permission(
            user, quiz.organization_id, ResourceKind.QUESTION, Action.CREATE, apply
        )
        logger.info("Question %s added to quiz %s by %s", question.id, quiz_id, user.id)
        return self._question_to_response(question)

    async def update_question(
        self,
        user: Principal,
        question_id: str,
        request: QuestionUpdateRequest,
    ) -> QuestionResponse:
        """Partially update a question, keeping the answer among the options."""
        question = await self._get_question(question_id)

        async def apply() -> None:
            updates = request.model_dump(exclude_unset=True)
            options = updates.get("options") or question.options
            correct_answer = updates.get("correct_answer") or question.correct_answer
            _validate_choice(options, correct_answer)

            if updates.get("text") is not None:
                question.text = updates["text"]
            question.options = list(options)
            question.correct_answer = correct_answer
            if updates.get("order") is not None:
                question.position = updates["order"]
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, question.quiz.organization_id, ResourceKind.QUESTION, Action.UPDATE, apply
        )
        logger.info("Question updated: %s by %s", question_id, user.id)
        return self._question_to_response(question)

    async def delete_question(self, user: Principal, question_id: str) -> None:
        """Delete a question."""
        question = await self._get_question(question_id)

        async def apply() -> None:
            await self.db.delete(question)
            await self.db.commit()

        await self.gate.with_scoped_permission(
            user, question.quiz.organization_id, ResourceKind.QUESTION, Action.DELETE, apply
        )
        logger.info("Question deleted: %s by %s", question_id, user.id)

    async def import_questions(
        self,
        user: Principal,
        quiz_id: str,
        items: list[QuestionCreateRequest],
    ) -> list[QuestionResponse]:
        """Append questions in order. Nothing is written if any item is invalid."""
        quiz = await self._get_by_id(quiz_id)

        async def apply() -> list[Question]:
            for item in items:
                _validate_choice(item.options, item.correct_answer)

            position = self._next_position(quiz)
            created = []
            async with transaction(self.db):
                for item in items:
                    question = Question(
                        quiz_id=quiz.id,
                        text=item.text,
                        options=list(item.options),
                        correct_answer=item.correct_answer,
                        position=position,
                    )
                    self.db.add(question)
                    created.append(question)
                    position += 1
            return created

        created = await self.gate.with_scoped_permission(
            user, quiz.organization_id, ResourceKind.QUESTION, Action.CREATE, apply
        )
        logger.info("Imported %d questions into quiz %s by %s", len(created), quiz_id, user.id)
        return [self._question_to_response(q) for q in created]

    # =========================================================================
    # Taking and responses
    # =========================================================================

    async def get_quiz_for_taking(self, user: Principal, quiz_id: str) -> QuizForTaking:
        """Active quiz with ordered questions and hidden answers."""
        quiz = await self._get_by_id(quiz_id)
        if not quiz.is_active:
            raise QuizInactiveError()
        await self.gate.ensure(user, quiz.organization_id, ResourceKind.QUIZ, Action.READ)

        return QuizForTaking(
            id=quiz.id,
            title=quiz.title,
            description=quiz.description,
            questions=[
                TakingQuestion(id=q.id, text=q.text, options=list(q.options), order=q.position)
                for q in quiz.questions
            ],
        )

    async def submit_response(
        self,
        user: Principal,
        quiz_id: str,
        request: SubmitResponseRequest,
    ) -> ResponseResult:
        """Score and store the caller's single response to a quiz.

        Raises:
            QuizInactiveError: The quiz is not active.
            QuizAlreadyCompletedError: The caller already responded.
        """
        quiz = await self._get_by_id(quiz_id)
        if not quiz.is_active:
            raise QuizInactiveError()
        await self.gate.ensure(user, quiz.organization_id, ResourceKind.RESPONSE, Action.READ)

        if await self._find_response(quiz.id, user.id) is not None:
            raise QuizAlreadyCompletedError()

        known_ids = {q.id for q in quiz.questions}
        answers = {qid: answer for qid, answer in request.answers.items() if qid in known_ids}
        result = score_response(quiz.questions, answers)

        response = Response(
            quiz_id=quiz.id,
            user_id=user.id,
            answers=answers,
            score=result.score,
            correct_count=result.correct_count,
            total_questions=result.total,
            completed_at=utc_now(),
        )
        self.db.add(response)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise QuizAlreadyCompletedError() from e

        logger.info(
            "Response submitted: quiz=%s user=%s score=%.4f",
            quiz.id,
            user.id,
            result.score,
        )
        return ResponseResult(
            id=response.id,
            quiz_id=response.quiz_id,
            user_id=response.user_id,
            answers=answers,
            score=result.score,
            percentage=result.percentage,
            correct_count=result.correct_count,
            total=result.total,
            completed_at=response.completed_at,
        )

    async def get_existing_response(self, user: Principal, quiz_id: str) -> ExistingResponse | None:
        """The caller's own response with a per-question review, if any.

        Score, percentage and counts are the values recorded at submission.
        The review walks the quiz's current questions.
        """
        quiz = await self._get_by_id(quiz_id)
        await self.gate.ensure(user, quiz.organization_id, ResourceKind.RESPONSE, Action.READ)

        response = await self._find_response(quiz.id, user.id)
        if response is None:
            return None

        outcomes = {
            o.question_id: o for o in score_response(quiz.questions, response.answers).per_question
        }
        return ExistingResponse(
            id=response.id,
            quiz_id=response.quiz_id,
            user_id=response.user_id,
            answers=response.answers,
            score=response.score,
            percentage=to_percentage(response.score),
            correct_count=response.correct_count,
            total=response.total_questions,
            completed_at=response.completed_at,
            review=[
                QuestionReview(
                    question_id=q.id,
                    text=q.text,
                    options=list(q.options),
                    selected_answer=outcomes[q.id].selected_answer,
                    correct_answer=q.correct_answer,
                    correct=outcomes[q.id].correct,
                    label=outcomes[q.id].label,
                )
                for q in quiz.questions
            ],
        )

    async def list_responses(
        self,
        user: Principal,
        quiz_id: str,
        page_request: PageRequest,
        organization_ids: list[str] | None = None,
    ) -> PageResponse[ResponseListItem]:
        """List a quiz's responses (admins/owners of its organization)."""
        quiz = await self._get_by_id(quiz_id)
        await self.gate.ensure_manager(
            user, quiz.organization_id, ResourceKind.RESPONSE, RESPONSES_FORBIDDEN
        )
        if organization_ids and quiz.organization_id not in organization_ids:
            return PageResponse[ResponseListItem]()

        page = await paginate(
            self.db,
            self._responses_statement(quiz.id),
            page_request,
            search_columns=[User.name, User.email],
            sort_spec=RESPONSE_SORT,
            tie_breaker=Response.id,
        )
        return PageResponse[ResponseListItem](
            items=[self._response_item(r) for r in page.items],
            total_count=page.total_count,
            total_pages=page.total_pages,
        )

    async def export_responses_csv(self, user: Principal, quiz_id: str) -> tuple[str, str]:
        """Export every response of a quiz.

        Returns:
            (filename, csv content)
        """
        quiz = await self._get_by_id(quiz_id)
        await self.gate.ensure_manager(
            user, quiz.organization_id, ResourceKind.RESPONSE, RESPONSES_FORBIDDEN
        )

        result = await self.db.execute(
            self._responses_statement(quiz.id).order_by(
                Response.completed_at.desc(), Response.id
            )
        )
        rows = [
            ExportRow(
                user_name=r.user.name,
                user_email=r.user.email,
                score=r.score,
                completed_at=r.completed_at,
                answers=r.answers,
            )
            for r in result.scalars().all()
        ]
        logger.info("Responses exported: quiz=%s rows=%d by %s", quiz.id, len(rows), user.id)
        return export_filename(quiz.title, utc_now()), render_responses_csv(rows)

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    async def _get_by_id(self, quiz_id: str) -> Quiz:
        result = await self.db.execute(
            select(Quiz)
            .options(selectinload(Quiz.organization), selectinload(Quiz.questions))
            .where(Quiz.id == quiz_id)
            .execution_options(populate_existing=True)
        )
        quiz = result.scalar_one_or_none()
        if quiz is None:
            raise QuizNotFoundError()
        return quiz

    async def _get_question(self, question_id: str) -> Question:
        result = await self.db.execute(
            select(Question).options(selectinload(Question.quiz)).where(Question.id == question_id)
        )
        question = result.scalar_one_or_none()
        if question is None:
            raise QuestionNotFoundError()
        return question

    async def _find_response(self, quiz_id: str, user_id: str) -> Response | None:
        result = await self.db.execute(
            select(Response).where(Response.quiz_id == quiz_id, Response.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def _counts_by_quiz(self, model, quiz_ids: list[str]) -> dict[str, int]:
        if not quiz_ids:
            return {}
        result = await self.db.execute(
            select(model.quiz_id, func.count())
            .where(model.quiz_id.in_(quiz_ids))
            .group_by(model.quiz_id)
        )
        return {quiz_id: count for quiz_id, count in result}

    async def _delete_quizzes(self, quiz_ids: Iterable[str]) -> None:
        ids = list(quiz_ids)
        async with transaction(self.db):
            await self.db.execute(delete(Response).where(Response.quiz_id.in_(ids)))
            await self.db.execute(delete(Question).where(Question.quiz_id.in_(ids)))
            await self.db.execute(delete(Quiz).where(Quiz.id.in_(ids)))

    @staticmethod
    def _responses_statement(quiz_id: str):
        return (
            select(Response)
            .join(User, User.id == Response.user_id)
            .options(selectinload(Response.user))
            .where(Response.quiz_id == quiz_id)
        )

    @staticmethod
    def _next_position(quiz: Quiz) -> int:
        return max((q.position for q in quiz.questions), default=-1) + 1

    @staticmethod
    def _question_to_response(question: Question) -> QuestionResponse:
        return QuestionResponse(
            id=question.id,
            quiz_id=question.quiz_id,
            text=question.text,
            options=list(question.options),
            correct_answer=question.correct_answer,
            order=question.position,
        )

    @staticmethod
    def _response_item(response: Response) -> ResponseListItem:
        return ResponseListItem(
            id=response.id,
            quiz_id=response.quiz_id,
            user=UserBrief.model_validate(response.user),
            answers=response.answers,
            score=response.score,
            percentage=to_percentage(response.score),
            completed_at=response.completed_at,
        )

    @staticmethod
    def _to_response(quiz: Quiz, question_count: int = 0, response_count: int = 0) -> QuizResponse:
        return QuizResponse(
            id=quiz.id,
            organization_id=quiz.organization_id,
            organization_name=quiz.organization.name if quiz.organization else None,
            title=quiz.title,
            description=quiz.description,
            is_active=quiz.is_active,
            created_by=quiz.created_by,
            question_count=question_count,
            response_count=response_count,
            created_at=quiz.created_at,
            updated_at=quiz.updated_at,
        )

    async def _to_detail(self, quiz: Quiz) -> QuizDetailResponse:
        response_counts = await self._counts_by_quiz(Response, [quiz.id])
        base = self._to_response(
            quiz,
            question_count=len(quiz.questions),
            response_count=response_counts.get(quiz.id, 0),
        )
        return QuizDetailResponse(
            **base.model_dump(),
            questions=[self._question_to_response(q) for q in quiz.questions],
        )
