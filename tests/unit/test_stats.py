# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for attendance and grade aggregation helpers."""

import pytest

from src.domains.attendance.service import collapse_records, compute_attendance_stats
from src.domains.grade.service import compute_grade_stats, parse_numeric
from src.models.attendance import AttendanceStatus, MarkAttendanceRequest
from src.utils.numbers import round_half_up

pytestmark = pytest.mark.unit


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "value,places,expected",
        [(0.125, 2, 0.13), (2.675, 2, 2.68), (12.5, 0, 13.0), (66.666, 2, 66.67), (1.0, 2, 1.0)],
    )
    def test_rounds_half_away_from_zero(self, value: float, places: int, expected: float) -> None:
        assert round_half_up(value, places) == expected


class TestAttendanceStats:
    """Tests for compute_attendance_stats."""

    def test_empty_is_all_zero(self) -> None:
        stats = compute_attendance_stats([])

        assert stats.total == 0
        assert stats.percentage == 0.0

    def test_counts_and_percentage(self) -> None:
        stats = compute_attendance_stats(["Present", "Present", "Absent", "Late"])

        assert (stats.total, stats.present, stats.absent, stats.late) == (4, 2, 1, 1)
        assert stats.percentage == 50.0

    def test_percentage_is_rounded_to_two_places(self) -> None:
        stats = compute_attendance_stats(["Present", "Present", "Absent"])

        assert stats.percentage == 66.67


class TestCollapseRecords:
    """Tests for collapse_records."""

    def test_last_record_per_student_wins(self) -> None:
        records = [
            MarkAttendanceRequest(student_id="s1", status=AttendanceStatus.ABSENT),
            MarkAttendanceRequest(student_id="s2", status=AttendanceStatus.PRESENT),
            MarkAttendanceRequest(student_id="s1", status=AttendanceStatus.LATE),
        ]

        collapsed = collapse_records(records)

        assert set(collapsed) == {"s1", "s2"}
        assert collapsed["s1"].status == AttendanceStatus.LATE


class TestGradeStats:
    """Tests for parse_numeric and compute_grade_stats."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("90", 90.0),
            (" 87.5 ", 87.5),
            ("85%", 85.0),
            ("92/100", 92.0),
            (".5", 0.5),
            ("-3", -3.0),
            ("1e2", 100.0),
            ("A+", None),
            ("B 90", None),
            ("", None),
            ("nan", None),
            ("inf", None),
        ],
    )
    def test_parse_numeric(self, value: str, expected) -> None:
        assert parse_numeric(value) == expected

    def test_empty(self) -> None:
        stats = compute_grade_stats([])

        assert stats.total_grades == 0
        assert stats.average_grade == 0.0
        assert stats.grades_by_subject == {}

    def test_averages_use_numeric_grades_only(self) -> None:
        stats = compute_grade_stats(
            [("Math", "90"), ("Math", "85"), ("Math", "A"), ("Science", "70")]
        )

        assert stats.total_grades == 4
        assert stats.grades_by_subject == {"Math": 87.5, "Science": 70.0}
        assert stats.average_grade == 81.67

    def test_subject_mean_is_a_true_mean(self) -> None:
        """Test that three grades average to their arithmetic mean, not a pairwise running average."""
        stats = compute_grade_stats([("Art", "60"), ("Art", "80"), ("Art", "100")])

        assert stats.grades_by_subject["Art"] == 80.0

    def test_grades_with_trailing_text_are_averaged(self) -> None:
        stats = compute_grade_stats([("Math", "85%"), ("Math", "95")])

        assert stats.grades_by_subject == {"Math": 90.0}
        assert stats.average_grade == 90.0
