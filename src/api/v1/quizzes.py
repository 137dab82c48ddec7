# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz API endpoints.

This module provides endpoints for quizzes, their questions and responses:
- GET / - Paginated quizzes across the caller's organizations
- POST / - Create a quiz
- POST /bulk-delete - Delete several quizzes
- GET /{quiz_id} - Quiz with questions
- PATCH /{quiz_id} - Update quiz
- DELETE /{quiz_id} - Delete quiz with questions and responses
- POST /{quiz_id}/questions - Add a question
- POST /{quiz_id}/questions/import - Append a batch of questions
- PATCH /questions/{question_id} - Update a question
- DELETE /questions/{question_id} - Delete a question
- GET /{quiz_id}/take - Questions without answers
- POST /{quiz_id}/responses - Submit answers (once per user)
- GET /{quiz_id}/responses/mine - The caller's scored response, if any
- GET /{quiz_id}/responses - Paginated responses (admins and owners)
- GET /{quiz_id}/responses/export - Responses as a CSV download

Example:
    POST /api/v1/quizzes/{quiz_id}/responses
    {
        "answers": {"q1...": "Paris", "q2...": "4"}
    }
"""

import logging

from fastapi import APIRouter, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import CurrentUser, DbSession, OrganizationIds, PageParams
from src.domains.quiz.service import QuizService
from src.models.common import ActionResponse, CountResponse, PageResponse, SuccessResponse
from src.models.quiz import (
    BulkDeleteQuizzesRequest,
    ExistingResponse,
    QuestionCreateRequest,
    QuestionImportRequest,
    QuestionResponse,
    QuestionUpdateRequest,
    QuizCreateRequest,
    QuizDetailResponse,
    QuizForTaking,
    QuizResponse,
    QuizUpdateRequest,
    ResponseListItem,
    ResponseResult,
    SubmitResponseRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_quiz_service(db: AsyncSession) -> QuizService:
    return QuizService(db)


# =========================================================================
# Quizzes
# =========================================================================


@router.get(
    "",
    response_model=ActionResponse[PageResponse[QuizResponse]],
    summary="List quizzes",
    description=(
        "Quizzes of the requested organizations, or of all the caller's "
        "organizations when none are given. Sortable by title, createdAt and updatedAt."
    ),
)
async def list_quizzes(
    current_user: CurrentUser,
    db: DbSession,
    page_request: PageParams,
    organization_ids: OrganizationIds,
) -> ActionResponse[PageResponse[QuizResponse]]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(
        await service.list_quizzes(current_user, page_request, organization_ids)
    )


@router.post(
    "",
    response_model=ActionResponse[QuizDetailResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create quiz",
)
async def create_quiz(
    data: QuizCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuizDetailResponse]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.create_quiz(current_user, data))


@router.post(
    "/bulk-delete",
    response_model=ActionResponse[CountResponse],
    summary="Delete quizzes",
)
async def bulk_delete_quizzes(
    data: BulkDeleteQuizzesRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[CountResponse]:
    """Delete the listed quizzes the caller may delete; returns how many were removed."""
    service = _get_quiz_service(db)
    count = await service.bulk_delete_quizzes(current_user, data.quiz_ids)
    return ActionResponse.ok(CountResponse(count=count))


@router.get(
    "/{quiz_id}",
    response_model=ActionResponse[QuizDetailResponse],
    summary="Get quiz",
)
async def get_quiz(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuizDetailResponse]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.get_quiz(current_user, quiz_id))


@router.patch(
    "/{quiz_id}",
    response_model=ActionResponse[QuizDetailResponse],
    summary="Update quiz",
)
async def update_quiz(
    quiz_id: str,
    data: QuizUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuizDetailResponse]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.update_quiz(current_user, quiz_id, data))


@router.delete(
    "/{quiz_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Delete quiz",
)
async def delete_quiz(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_quiz_service(db)
    await service.delete_quiz(current_user, quiz_id)
    return ActionResponse.ok(SuccessResponse())


# =========================================================================
# Questions
# =========================================================================


@router.post(
    "/{quiz_id}/questions",
    response_model=ActionResponse[QuestionResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Add question",
)
async def add_question(
    quiz_id: str,
    data: QuestionCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuestionResponse]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.add_question(current_user, quiz_id, data))


@router.post(
    "/{quiz_id}/questions/import",
    response_model=ActionResponse[list[QuestionResponse]],
    status_code=status.HTTP_201_CREATED,
    summary="Import questions",
)
async def import_questions(
    quiz_id: str,
    data: QuestionImportRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[list[QuestionResponse]]:
    """Append questions after the existing ones. Nothing is stored if any item is invalid."""
    service = _get_quiz_service(db)
    return ActionResponse.ok(
        await service.import_questions(current_user, quiz_id, data.questions)
    )


@router.patch(
    "/questions/{question_id}",
    response_model=ActionResponse[QuestionResponse],
    summary="Update question",
)
async def update_question(
    question_id: str,
    data: QuestionUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuestionResponse]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.update_question(current_user, question_id, data))


@router.delete(
    "/questions/{question_id}",
    response_model=ActionResponse[SuccessResponse],
    summary="Delete question",
)
async def delete_question(
    question_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[SuccessResponse]:
    service = _get_quiz_service(db)
    await service.delete_question(current_user, question_id)
    return ActionResponse.ok(SuccessResponse())


# =========================================================================
# Taking and responses
# =========================================================================


@router.get(
    "/{quiz_id}/take",
    response_model=ActionResponse[QuizForTaking],
    summary="Quiz for taking",
)
async def get_quiz_for_taking(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[QuizForTaking]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.get_quiz_for_taking(current_user, quiz_id))


@router.post(
    "/{quiz_id}/responses",
    response_model=ActionResponse[ResponseResult],
    status_code=status.HTTP_201_CREATED,
    summary="Submit response",
)
async def submit_response(
    quiz_id: str,
    data: SubmitResponseRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ResponseResult]:
    """Score and store the caller's answers.

    The score is the fraction of questions answered correctly. A second
    submission for the same quiz is refused.
    """
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.submit_response(current_user, quiz_id, data))


@router.get(
    "/{quiz_id}/responses/mine",
    response_model=ActionResponse[ExistingResponse | None],
    summary="My response",
)
async def get_existing_response(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> ActionResponse[ExistingResponse | None]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(await service.get_existing_response(current_user, quiz_id))


@router.get(
    "/{quiz_id}/responses/export",
    summary="Export responses as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_responses_csv(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    service = _get_quiz_service(db)
    filename, content = await service.export_responses_csv(current_user, quiz_id)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/{quiz_id}/responses",
    response_model=ActionResponse[PageResponse[ResponseListItem]],
    summary="List responses",
    description="Sortable by score, completedAt, userName and userEmail.",
)
async def list_responses(
    quiz_id: str,
    current_user: CurrentUser,
    db: DbSession,
    page_request: PageParams,
    organization_ids: OrganizationIds,
) -> ActionResponse[PageResponse[ResponseListItem]]:
    service = _get_quiz_service(db)
    return ActionResponse.ok(
        await service.list_responses(current_user, quiz_id, page_request, organization_ids)
    )
