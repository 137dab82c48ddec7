# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Attendance service.

One attendance session exists per classroom per date. Marking is an upsert
keyed on (session, student), so repeating a mark or a bulk payload leaves
the same final state.

Example:
    >>> service = AttendanceService(db_session)
    >>> session = await service.create_session(user, classroom_id, date.today())
    >>> await service.bulk_mark(user, session.id, BulkMarkAttendanceRequest(records=[...]))
    3
"""

import datetime as dt
import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.domains.access import Action, PermissionGate, Principal, ResourceKind
from src.domains.errors import NotFoundError, ValidationFailureError
from src.infrastructure.database.connection import transaction
from src.infrastructure.database.models import (
    AttendanceRecord,
    AttendanceSession,
    Classroom,
    Student,
)
from src.models.attendance import (
    AttendanceRecordResponse,
    AttendanceSessionResponse,
    AttendanceStats,
    AttendanceStatus,
    BulkMarkAttendanceRequest,
    MarkAttendanceRequest,
)
from src.models.user import UserBrief
from src.utils.numbers import round_half_up

logger = logging.getLogger(__name__)


class AttendanceSessionNotFoundError(NotFoundError):
    """Raised when an attendance session is not found."""

    def __init__(self) -> None:
        super().__init__("Attendance session not found")


def compute_attendance_stats(statuses: Iterable[str]) -> AttendanceStats:
    """Tally statuses; percentage is present/total*100, 0 when empty."""
    stats = AttendanceStats()
    for status in statuses:
        stats.total += 1
        if status == AttendanceStatus.PRESENT.value:
            stats.present += 1
        elif status == AttendanceStatus.ABSENT.value:
            stats.absent += 1
        elif status == AttendanceStatus.LATE.value:
            stats.late += 1

    if stats.total:
        stats.percentage = round_half_up(stats.present / stats.total * 100)
    return stats


def collapse_records(
    records: Iterable[MarkAttendanceRequest],
) -> dict[str, MarkAttendanceRequest]:
    """Keep one record per student; the last occurrence wins."""
    collapsed: dict[str, MarkAttendanceRequest] = {}
    for record in records:
        collapsed.pop(record.student_id, None)
        collapsed[record.student_id] = record
    return collapsed


class AttendanceService:
    """Service for attendance sessions and records.

    Attributes:
        db: Async database session.
        gate: Scoped-permission gate.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.gate = PermissionGate(db)

    async def create_session(
        self,
        user: Principal,
        classroom_id: str,
        date: dt.date,
    ) -> AttendanceSessionResponse:
        """Open the session for (classroom, date), or return the existing one."""
        classroom = await self.db.get(Classroom, classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found")
        await self.gate.ensure(
            user, classroom.organization_id, ResourceKind.ATTENDANCE, Action.CREATE
        )

        existing = await self._find_session(classroom_id, date)
        if existing is not None:
            return self._session_to_response(existing)

        session = AttendanceSession(
            organization_id=classroom.organization_id,
            classroom_id=classroom_id,
            date=date,
            marked_by_id=user.id,
        )
        self.db.add(session)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same day.
            await self.db.rollback()
            existing = await self._find_session(classroom_id, date)
            if existing is None:
                raise
            return self._session_to_response(existing)

        logger.info("Attendance session %s opened for %s on %s", session.id, classroom_id, date)
        return self._session_to_response(await self._get_session(session.id))

    async def mark(
        self,
        user: Principal,
        session_id: str,
        request: MarkAttendanceRequest,
    ) -> AttendanceRecordResponse:
        """Upsert one student's status in a session."""
        session = await self._get_session(session_id)

        async def apply() -> AttendanceRecord:
            await self._ensure_students_in_org([request.student_id], session.organization_id)
            record = self._find_record(session, request.student_id)
            if record is None:
                record = AttendanceRecord(session_id=session.id, student_id=request.student_id)
                self.db.add(record)
            record.status = request.status.value
            record.notes = request.notes
            await self.db.commit()
            return record

        record = await self.gate.with_scoped_permission(
            user, session.organization_id, ResourceKind.ATTENDANCE, Action.UPDATE, apply
        )
        return AttendanceRecordResponse(
            id=record.id,
            session_id=record.session_id,
            student_id=record.student_id,
            status=AttendanceStatus(record.status),
            notes=record.notes,
            date=session.date,
            classroom_id=session.classroom_id,
        )

    async def bulk_mark(
        self,
        user: Principal,
        session_id: str,
        request: BulkMarkAttendanceRequest,
    ) -> int:
        """Upsert many records in one all-or-nothing write.

        Returns:
            Number of distinct students written.
        """
        session = await self._get_session(session_id)
        collapsed = collapse_records(request.records)

        async def apply() -> int:
            await self._ensure_students_in_org(list(collapsed), session.organization_id)
            async with transaction(self.db):
                for student_id, item in collapsed.items():
                    record = self._find_record(session, student_id)
                    if record is None:
                        record = AttendanceRecord(session_id=session.id, student_id=student_id)
                        self.db.add(record)
                        session.records.append(record)
                    record.status = item.status.value
                    record.notes = item.notes
            return len(collapsed)

        count = await self.gate.with_scoped_permission(
            user, session.organization_id, ResourceKind.ATTENDANCE, Action.UPDATE, apply
        )
        logger.info("Attendance bulk-marked: session=%s records=%d by %s", session_id, count, user.id)
        return count

    async def get_session(self, user: Principal, session_id: str) -> AttendanceSessionResponse:
        """Get a session with its records."""
        session = await self._get_session(session_id)
        await self.gate.ensure(
            user, session.organization_id, ResourceKind.ATTENDANCE, Action.READ
        )
        return self._session_to_response(session)

    async def list_by_classroom(
        self,
        user: Principal,
        classroom_id: str,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> list[AttendanceSessionResponse]:
        """List a classroom's sessions, newest date first."""
        classroom = await self.db.get(Classroom, classroom_id)
        if classroom is None:
            raise NotFoundError("Classroom not found")
        await self.gate.ensure(
            user, classroom.organization_id, ResourceKind.ATTENDANCE, Action.READ
        )

        query = (
            select(AttendanceSession)
            .options(self._records_loader())
            .where(AttendanceSession.classroom_id == classroom_id)
            .order_by(AttendanceSession.date.desc(), AttendanceSession.id)
        )
        if start:
            query = query.where(AttendanceSession.date >= start)
        if end:
            query = query.where(AttendanceSession.date <= end)

        result = await self.db.execute(query)
        return [self._session_to_response(s) for s in result.scalars().all()]

    async def list_by_student(
        self,
        user: Principal,
        student_id: str,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> list[AttendanceRecordResponse]:
        """List a student's records, newest date first."""
        student = await self._get_student(student_id)
        await self.gate.ensure(
            user, student.organization_id, ResourceKind.ATTENDANCE, Action.READ
        )

        query = (
            select(AttendanceRecord, AttendanceSession)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .where(AttendanceRecord.student_id == student_id)
            .order_by(AttendanceSession.date.desc(), AttendanceRecord.id)
        )
        if start:
            query = query.where(AttendanceSession.date >= start)
        if end:
            query = query.where(AttendanceSession.date <= end)

        result = await self.db.execute(query)
        return [
            AttendanceRecordResponse(
                id=record.id,
                session_id=record.session_id,
                student_id=record.student_id,
                status=AttendanceStatus(record.status),
                notes=record.notes,
                date=session.date,
                classroom_id=session.classroom_id,
            )
            for record, session in result.all()
        ]

    async def get_stats(self, user: Principal, student_id: str) -> AttendanceStats:
        """Attendance totals of a student."""
        student = await self._get_student(student_id)
        await self.gate.ensure(
            user, student.organization_id, ResourceKind.ATTENDANCE, Action.READ
        )
        return await self.stats_for_student(student_id)

    async def stats_for_student(self, student_id: str) -> AttendanceStats:
        """Ungated totals, for callers that already checked access."""
        result = await self.db.execute(
            select(AttendanceRecord.status).where(AttendanceRecord.student_id == student_id)
        )
        return compute_attendance_stats(result.scalars().all())

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    @staticmethod
    def _records_loader():
        return (
            selectinload(AttendanceSession.records)
            .selectinload(AttendanceRecord.student)
            .selectinload(Student.user)
        )

    async def _get_session(self, session_id: str) -> AttendanceSession:
        result = await self.db.execute(
            select(AttendanceSession)
            .options(self._records_loader())
            .where(AttendanceSession.id == session_id)
            .execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise AttendanceSessionNotFoundError()
        return session

    async def _find_session(self, classroom_id: str, date: dt.date) -> AttendanceSession | None:
        result = await self.db.execute(
            select(AttendanceSession)
            .options(self._records_loader())
            .where(
                AttendanceSession.classroom_id == classroom_id,
                AttendanceSession.date == date,
            )
        )
        return result.scalar_one_or_none()

    async def _get_student(self, student_id: str) -> Student:
        student = await self.db.get(Student, student_id)
        if student is None:
            raise NotFoundError("Student not found")
        return student

    async def _ensure_students_in_org(self, student_ids: list[str], organization_id: str) -> None:
        if not student_ids:
            return
        result = await self.db.execute(
            select(Student.id).where(
                Student.id.in_(student_ids),
                Student.organization_id == organization_id,
            )
        )
        found = set(result.scalars().all())
        missing = [sid for sid in student_ids if sid not in found]
        if missing:
            raise ValidationFailureError(
                f"Students not found in this organization: {', '.join(missing)}"
            )

    @staticmethod
    def _find_record(session: AttendanceSession, student_id: str) -> AttendanceRecord | None:
        for record in session.records:
            if record.student_id == student_id:
                return record
        return None

    @staticmethod
    def _session_to_response(session: AttendanceSession) -> AttendanceSessionResponse:
        records = [
            AttendanceRecordResponse(
                id=r.id,
                session_id=r.session_id,
                student_id=r.student_id,
                status=AttendanceStatus(r.status),
                notes=r.notes,
                date=session.date,
                classroom_id=session.classroom_id,
                student=UserBrief.model_validate(r.student.user) if r.student else None,
            )
            for r in session.records
        ]
        return AttendanceSessionResponse(
            id=session.id,
            organization_id=session.organization_id,
            classroom_id=session.classroom_id,
            date=session.date,
            marked_by_id=session.marked_by_id,
            records=records,
            created_at=session.created_at,
        )
