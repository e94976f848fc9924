"""
Quiz attempt state.

An attempt is a snapshot: its questions and configuration are copied from the
template when it is created, answers are the only thing that changes while it
is in progress, and once finalized nothing changes at all.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .errors import AttemptStateError
from .models import FeedbackMode, Question, QuizTemplate

if TYPE_CHECKING:
    from src.grading.scoring import ScoreResult


def new_attempt_id() -> str:
    return str(uuid.uuid4())[:8]


@dataclass(frozen=True)
class AttemptConfig:
    """Template settings copied into the attempt."""

    passing_score: int = 70
    feedback_mode: FeedbackMode = FeedbackMode.INSTANT
    time_limit_per_question: int | None = None
    question_weights: dict[int, int] = field(default_factory=dict)
    randomize_questions: bool = False
    randomize_answers: bool = False
    weight_binding: str = "question"  # or "position"

    @classmethod
    def from_template(cls, template: QuizTemplate, weight_binding: str = "question") -> "AttemptConfig":
        return cls(
            passing_score=template.passing_score,
            feedback_mode=template.feedback_mode,
            time_limit_per_question=template.time_limit_per_question,
            question_weights=dict(template.question_weights),
            randomize_questions=template.randomize_questions,
            randomize_answers=template.randomize_answers,
            weight_binding=weight_binding,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "passing_score": self.passing_score,
            "feedback_mode": self.feedback_mode.value,
            "time_limit_per_question": self.time_limit_per_question,
            "question_weights": {str(k): v for k, v in self.question_weights.items()},
            "randomize_questions": self.randomize_questions,
            "randomize_answers": self.randomize_answers,
            "weight_binding": self.weight_binding,
        }


@dataclass(frozen=True)
class AnswerRecord:
    """A submitted answer. A timed-out answer is kept but scores as unanswered."""

    value: Any
    answered_at: datetime
    elapsed_seconds: float | None = None
    timed_out: bool = False

    @property
    def scored_value(self) -> Any:
        return None if self.timed_out else self.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "answered_at": self.answered_at.isoformat(),
            "elapsed_seconds": self.elapsed_seconds,
            "timed_out": self.timed_out,
        }


@dataclass
class QuizAttempt:
    """One learner's run through a quiz."""

    quiz_id: str
    ordered_questions: tuple[Question, ...]
    option_orders: tuple[tuple[int, ...], ...]
    config: AttemptConfig
    learner_id: str = "default"
    attempt_number: int = 1
    attempt_id: str = field(default_factory=new_attempt_id)
    started_at: datetime = field(default_factory=datetime.now)

    answers: list[AnswerRecord | None] = field(default_factory=list)
    flagged: set[int] = field(default_factory=set)

    # Set once by finalize()
    score: ScoreResult | None = None
    is_passing: bool | None = None
    submitted_at: datetime | None = None

    def __post_init__(self):
        if not self.answers:
            self.answers = [None] * len(self.ordered_questions)

    @property
    def is_finalized(self) -> bool:
        return self.submitted_at is not None

    @property
    def question_count(self) -> int:
        return len(self.ordered_questions)

    @property
    def answered_count(self) -> int:
        return sum(1 for a in self.answers if a is not None)

    def question_at(self, position: int) -> Question:
        self._check_position(position)
        return self.ordered_questions[position]

    def answer_values(self) -> list[Any]:
        """Answers as the scoring engine sees them (None when unanswered or timed out)."""
        return [a.scored_value if a is not None else None for a in self.answers]

    def record_answer(self, position: int, record: AnswerRecord) -> None:
        """Store (or replace) the answer at ``position``."""
        if self.is_finalized:
            raise AttemptStateError(f"Attempt {self.attempt_id} is already submitted")
        self._check_position(position)
        self.answers[position] = record

    def toggle_flag(self, position: int) -> bool:
        """Flag or unflag a question for later review. Returns the new state."""
        if self.is_finalized:
            raise AttemptStateError(f"Attempt {self.attempt_id} is already submitted")
        self._check_position(position)
        if position in self.flagged:
            self.flagged.discard(position)
            return False
        self.flagged.add(position)
        return True

    def flagged_positions(self) -> list[int]:
        """Flagged positions in attempt order, the sequence a flagged review walks."""
        return sorted(self.flagged)

    def finalize(self, score: ScoreResult, is_passing: bool, submitted_at: datetime | None = None) -> None:
        """Freeze the attempt with its score. Can only happen once."""
        if self.is_finalized:
            raise AttemptStateError(f"Attempt {self.attempt_id} is already submitted")
        self.score = score
        self.is_passing = is_passing
        self.submitted_at = submitted_at or datetime.now()

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self.ordered_questions):
            raise AttemptStateError(
                f"Position {position} is outside attempt {self.attempt_id} "
                f"({len(self.ordered_questions)} questions)"
            )

    def to_dict(self) -> dict[str, Any]:
        """JSON-compatible record for the persistence sink."""
        return {
            "attempt_id": self.attempt_id,
            "quiz_id": self.quiz_id,
            "learner_id": self.learner_id,
            "attempt_number": self.attempt_number,
            "started_at": self.started_at.isoformat(),
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "config": self.config.to_dict(),
            "ordered_questions": [q.model_dump(mode="json") for q in self.ordered_questions],
            "option_orders": [list(order) for order in self.option_orders],
            "answers": [a.to_dict() if a is not None else None for a in self.answers],
            "flagged": self.flagged_positions(),
            "score": self.score.to_dict() if self.score is not None else None,
            "is_passing": self.is_passing,
        }
