"""
Weighted scoring.

``compute_score`` is a pure function of the questions, the answers and an
optional positional weight map: no clock, no hidden state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from loguru import logger

from src.quiz.models import Question

from .base import GradingResult, StrategyRegistry
from . import strategies  # noqa: F401  (registers the strategies)

DEFAULT_WEIGHT = 1


@dataclass(frozen=True)
class QuestionOutcome:
    """Scoring of one attempt position."""

    position: int
    question_id: str
    weight: int
    result: GradingResult

    @property
    def is_correct(self) -> bool:
        return self.result.is_correct

    def to_dict(self) -> dict[str, Any]:
        return {
            "position": self.position,
            "question_id": self.question_id,
            "weight": self.weight,
            **self.result.to_dict(),
        }


@dataclass(frozen=True)
class ScoreResult:
    """Earned and total weight plus the percentage score."""

    earned_weight: int
    total_weight: int
    percentage: float
    outcomes: tuple[QuestionOutcome, ...] = field(default_factory=tuple)

    @property
    def correct_count(self) -> int:
        return sum(1 for o in self.outcomes if o.is_correct)

    @property
    def question_count(self) -> int:
        return len(self.outcomes)

    @property
    def rounded_percentage(self) -> int:
        """Whole-number percentage for display."""
        return int(self.percentage + 0.5)

    def to_dict(self) -> dict[str, Any]:
        return {
            "earned_weight": self.earned_weight,
            "total_weight": self.total_weight,
            "percentage": self.percentage,
            "correct_count": self.correct_count,
            "question_count": self.question_count,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }


def _is_positive(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def resolve_weight(
    position: int,
    question: Question,
    question_weights: Mapping[int, int] | None = None,
) -> int:
    """
    Weight for one position.

    A positional map wins when it holds a positive number for ``position``;
    otherwise the question's own weight; otherwise 1.
    """
    if question_weights is not None:
        weight = question_weights.get(position)
        if _is_positive(weight):
            return weight
        if weight is not None:
            logger.debug(f"Ignoring non-positive weight {weight!r} at position {position}")

    if _is_positive(question.weight):
        return question.weight
    return DEFAULT_WEIGHT


def grade_answer(question: Question, answer: Any, case_sensitive: bool = False) -> GradingResult:
    """Check one answer with the strategy for the question's kind."""
    strategy = StrategyRegistry.for_question(question, case_sensitive=case_sensitive)
    return strategy.grade(question, answer)


def compute_score(
    ordered_questions: Sequence[Question],
    answers: Sequence[Any],
    question_weights: Mapping[int, int] | None = None,
    case_sensitive: bool = False,
) -> ScoreResult:
    """
    Score an attempt.

    Args:
        ordered_questions: Questions in attempt order
        answers: Answers aligned with ``ordered_questions``; ``None`` or a
            missing trailing entry means unanswered
        question_weights: Optional positional weight map (legacy binding)
        case_sensitive: Text answers compared case-sensitively

    Returns:
        ScoreResult; percentage is 0 when there is nothing to score
    """
    earned = 0
    total = 0
    outcomes = []

    for position, question in enumerate(ordered_questions):
        answer = answers[position] if position < len(answers) else None
        weight = resolve_weight(position, question, question_weights)
        result = grade_answer(question, answer, case_sensitive=case_sensitive)

        total += weight
        if result.is_correct:
            earned += weight

        outcomes.append(
            QuestionOutcome(
                position=position,
                question_id=question.id,
                weight=weight,
                result=result,
            )
        )

    percentage = (earned / total) * 100 if total > 0 else 0.0
    return ScoreResult(
        earned_weight=earned,
        total_weight=total,
        percentage=percentage,
        outcomes=tuple(outcomes),
    )
