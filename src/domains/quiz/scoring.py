# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Quiz scoring.

Scores are always computed on the server from the stored questions. A
client-supplied score is never trusted.

    score = correct answers / number of questions

An answer is correct only when it is string-equal to the question's
correct option. Missing answers count as incorrect, and a quiz without
questions scores 0.0.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from src.utils.numbers import round_half_up

CORRECT_LABEL = "Correct!"
INCORRECT_LABEL = "Incorrect"


class ScorableQuestion(Protocol):
    id: str
    correct_answer: str


@dataclass(frozen=True)
class QuestionOutcome:
    """Outcome of one question."""

    question_id: str
    selected_answer: str | None
    correct: bool

    @property
    def label(self) -> str:
        return CORRECT_LABEL if self.correct else INCORRECT_LABEL


@dataclass(frozen=True)
class ScoreResult:
    """Result of scoring one response.

    Attributes:
        score: Fraction of correct answers in [0, 1].
        correct_count: Number of correct answers.
        total: Number of questions.
        per_question: Outcome per question, in question order.
    """

    score: float
    correct_count: int
    total: int
    per_question: list[QuestionOutcome] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        return to_percentage(self.score)


def score_response(
    questions: Sequence[ScorableQuestion],
    answers: Mapping[str, str],
) -> ScoreResult:
    """Score answers (question id -> chosen option) against the questions."""
    outcomes = []
    for question in questions:
        selected = answers.get(question.id)
        outcomes.append(
            QuestionOutcome(
                question_id=question.id,
                selected_answer=selected,
                correct=selected is not None and selected == question.correct_answer,
            )
        )

    total = len(outcomes)
    correct_count = sum(1 for o in outcomes if o.correct)
    return ScoreResult(
        score=correct_count / total if total else 0.0,
        correct_count=correct_count,
        total=total,
        per_question=outcomes,
    )


def to_percentage(score: float) -> int:
    """round(score * 100), rounding half away from zero (0.125 -> 13)."""
    return int(round_half_up(score * 100, 0))
