# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for quiz scoring."""

from dataclasses import dataclass

import pytest

from src.domains.quiz.scoring import (
    CORRECT_LABEL,
    INCORRECT_LABEL,
    score_response,
    to_percentage,
)

pytestmark = pytest.mark.unit


@dataclass
class FakeQuestion:
    id: str
    correct_answer: str


@pytest.fixture
def four_questions() -> list[FakeQuestion]:
    return [
        FakeQuestion("q1", "Paris"),
        FakeQuestion("q2", "4"),
        FakeQuestion("q3", "H2O"),
        FakeQuestion("q4", "Jupiter"),
    ]


class TestScoreResponse:
    """Tests for score_response."""

    def test_three_of_four_scores_seventy_five_percent(self, four_questions) -> None:
        """Test the K/N score with one wrong answer."""
        result = score_response(
            four_questions,
            {"q1": "Paris", "q2": "4", "q3": "H2O", "q4": "Saturn"},
        )

        assert result.score == 0.75
        assert result.percentage == 75
        assert result.correct_count == 3
        assert result.total == 4

    def test_missing_answers_count_as_incorrect(self, four_questions) -> None:
        result = score_response(four_questions, {"q1": "Paris"})

        assert result.score == 0.25
        assert [o.selected_answer for o in result.per_question] == ["Paris", None, None, None]

    def test_no_questions_scores_zero(self) -> None:
        """Test that a quiz without questions scores 0.0 instead of dividing by zero."""
        result = score_response([], {"q1": "anything"})

        assert result.score == 0.0
        assert result.total == 0
        assert result.percentage == 0

    def test_comparison_is_exact_string_equality(self) -> None:
        result = score_response([FakeQuestion("q1", "Paris")], {"q1": "paris "})

        assert result.score == 0.0

    def test_unknown_question_ids_are_ignored(self, four_questions) -> None:
        result = score_response(four_questions, {"q1": "Paris", "other": "x"})

        assert result.correct_count == 1
        assert result.total == 4

    def test_outcome_labels(self, four_questions) -> None:
        result = score_response(four_questions, {"q1": "Paris", "q2": "5"})

        assert result.per_question[0].label == CORRECT_LABEL
        assert result.per_question[1].label == INCORRECT_LABEL

    def test_score_stays_within_bounds(self, four_questions) -> None:
        all_right = {q.id: q.correct_answer for q in four_questions}

        assert score_response(four_questions, all_right).score == 1.0
        assert score_response(four_questions, {}).score == 0.0


class TestToPercentage:
    """Tests for to_percentage."""

    @pytest.mark.parametrize(
        "score,expected",
        [(0.0, 0), (0.125, 13), (1 / 3, 33), (2 / 3, 67), (1.0, 100)],
    )
    def test_rounds_half_up(self, score: float, expected: int) -> None:
        assert to_percentage(score) == expected
