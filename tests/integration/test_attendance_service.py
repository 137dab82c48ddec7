# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for attendance sessions and marking."""

from datetime import date

import pytest
import pytest_asyncio

from src.domains.access import OrgRole
from src.domains.attendance.service import AttendanceService
from src.domains.errors import PermissionDeniedError, ValidationFailureError
from src.models.attendance import (
    AttendanceStatus,
    BulkMarkAttendanceRequest,
    MarkAttendanceRequest,
)

pytestmark = pytest.mark.integration

DAY = date(2025, 3, 14)


@pytest_asyncio.fixture
async def roster(seed):
    """An organization with an admin, a classroom and three students."""
    org = await seed.organization()
    admin = await seed.user_in(org, OrgRole.ADMIN)
    classroom = await seed.classroom(org)
    students = [await seed.student(org) for _ in range(3)]
    return org, admin, classroom, students


class TestAttendanceSessions:
    """Tests for session creation."""

    @pytest.mark.asyncio
    async def test_one_session_per_classroom_and_day(self, db_session, roster, principal) -> None:
        _, admin, classroom, _ = roster
        service = AttendanceService(db_session)

        first = await service.create_session(principal(admin), classroom.id, DAY)
        again = await service.create_session(principal(admin), classroom.id, DAY)

        assert first.id == again.id
        assert first.date == DAY

    @pytest.mark.asyncio
    async def test_plain_member_cannot_open_session(self, db_session, seed, roster, principal) -> None:
        org, _, classroom, _ = roster
        member = await seed.user_in(org, OrgRole.MEMBER)
        service = AttendanceService(db_session)

        with pytest.raises(PermissionDeniedError):
            await service.create_session(principal(member), classroom.id, DAY)


class TestMarking:
    """Tests for mark and bulk_mark."""

    @pytest.mark.asyncio
    async def test_bulk_mark_is_idempotent(self, db_session, roster, principal) -> None:
        """Test that repeating a bulk payload leaves the same records."""
        _, admin, classroom, students = roster
        service = AttendanceService(db_session)
        session = await service.create_session(principal(admin), classroom.id, DAY)
        payload = BulkMarkAttendanceRequest(
            records=[
                MarkAttendanceRequest(student_id=students[0].id, status=AttendanceStatus.PRESENT),
                MarkAttendanceRequest(student_id=students[1].id, status=AttendanceStatus.ABSENT),
                MarkAttendanceRequest(student_id=students[2].id, status=AttendanceStatus.LATE),
            ]
        )

        assert await service.bulk_mark(principal(admin), session.id, payload) == 3
        first = await service.get_session(principal(admin), session.id)
        assert await service.bulk_mark(principal(admin), session.id, payload) == 3
        second = await service.get_session(principal(admin), session.id)

        assert len(second.records) == 3
        assert {(r.student_id, r.status) for r in first.records} == {
            (r.student_id, r.status) for r in second.records
        }

    @pytest.mark.asyncio
    async def test_duplicates_in_payload_keep_the_last(self, db_session, roster, principal) -> None:
        _, admin, classroom, students = roster
        service = AttendanceService(db_session)
        session = await service.create_session(principal(admin), classroom.id, DAY)

        count = await service.bulk_mark(
            principal(admin),
            session.id,
            BulkMarkAttendanceRequest(
                records=[
                    MarkAttendanceRequest(student_id=students[0].id, status=AttendanceStatus.ABSENT),
                    MarkAttendanceRequest(student_id=students[0].id, status=AttendanceStatus.PRESENT),
                ]
            ),
        )

        detail = await service.get_session(principal(admin), session.id)
        assert count == 1
        assert [r.status for r in detail.records] == [AttendanceStatus.PRESENT]

    @pytest.mark.asyncio
    async def test_student_from_another_org_rejects_whole_batch(
        self, db_session, seed, roster, principal
    ) -> None:
        _, admin, classroom, students = roster
        foreign = await seed.student(await seed.organization())
        service = AttendanceService(db_session)
        session = await service.create_session(principal(admin), classroom.id, DAY)

        with pytest.raises(ValidationFailureError):
            await service.bulk_mark(
                principal(admin),
                session.id,
                BulkMarkAttendanceRequest(
                    records=[
                        MarkAttendanceRequest(student_id=students[0].id, status=AttendanceStatus.PRESENT),
                        MarkAttendanceRequest(student_id=foreign.id, status=AttendanceStatus.PRESENT),
                    ]
                ),
            )

        detail = await service.get_session(principal(admin), session.id)
        assert detail.records == []

    @pytest.mark.asyncio
    async def test_mark_updates_in_place_and_feeds_stats(self, db_session, roster, principal) -> None:
        _, admin, classroom, students = roster
        service = AttendanceService(db_session)
        session = await service.create_session(principal(admin), classroom.id, DAY)
        later = await service.create_session(principal(admin), classroom.id, date(2025, 3, 15))
        student_id = students[0].id

        await service.mark(
            principal(admin),
            session.id,
            MarkAttendanceRequest(student_id=student_id, status=AttendanceStatus.ABSENT),
        )
        await service.mark(
            principal(admin),
            session.id,
            MarkAttendanceRequest(student_id=student_id, status=AttendanceStatus.PRESENT),
        )
        await service.mark(
            principal(admin),
            later.id,
            MarkAttendanceRequest(student_id=student_id, status=AttendanceStatus.LATE),
        )

        stats = await service.get_stats(principal(admin), student_id)
        assert (stats.total, stats.present, stats.late) == (2, 1, 1)
        assert stats.percentage == 50.0
